from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import ValidationError

from app.core.config import settings
from app.integrations.linkedin import LinkedInDataClient, default_email_lookup
from app.integrations.pdfco import extract_pdf_text
from app.integrations.skill_demand import SkillDemandProvider, default_skill_demand_provider
from app.parsing.models import ParsedDoc
from app.parsing.parse import DocumentExtractionError
from app.schemas.analysis import AnalysisResult, SkillDemand
from app.schemas.resume import LinkedInProfile, ParsedResume
from app.schemas.search import DeepSearchResults, SearchContext, WebPresenceResult
from app.search.deep_search import (
    DeepSearchOrchestrator,
    build_web_presence,
    default_orchestrator,
    select_linkedin_candidates,
    summarize_for_analysis,
)
from app.services.llm import LLMError, json_completion_required
from app.services.prompts import (
    ANALYSIS_SYSTEM,
    RESUME_PARSE_SYSTEM,
    build_analysis_prompt,
    build_resume_parse_prompt,
)
from app.verification.linkedin_verifier import LinkedInVerifier

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[dict[str, Any]], None]

MAX_SEARCH_SKILLS = 10


class AnalysisError(RuntimeError):
    def __init__(self, stage: str, message: str, *, code: str = "analysis_failed"):
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.code = code


def _drop_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _drop_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_drop_nulls(item) for item in value if item is not None]
    return value


def parse_resume_with_llm(raw_text: str) -> ParsedResume:
    payload = json_completion_required(
        system_prompt=RESUME_PARSE_SYSTEM,
        user_prompt=build_resume_parse_prompt(raw_text),
        temperature=0.0,
        purpose="resume_parse",
    )
    payload = _drop_nulls(payload)
    payload["raw_text"] = raw_text
    try:
        return ParsedResume.model_validate(payload)
    except ValidationError as exc:
        raise LLMError(f"Parsed resume did not match the expected shape: {exc.error_count()} errors", code="llm_invalid") from exc


def analyze_profile_with_llm(
    resume: ParsedResume,
    web_presence: list[WebPresenceResult],
    linkedin_profile: LinkedInProfile | None,
    skill_demands: list[SkillDemand],
    deep_search_summary: str,
) -> dict[str, Any]:
    return json_completion_required(
        system_prompt=ANALYSIS_SYSTEM,
        user_prompt=build_analysis_prompt(
            resume=resume.model_dump(exclude={"raw_text"}),
            web_presence=[item.model_dump() for item in web_presence],
            linkedin_profile=linkedin_profile.model_dump() if linkedin_profile else None,
            skill_demands=[item.model_dump() for item in skill_demands],
            deep_search_summary=deep_search_summary,
        ),
        temperature=0.3,
        max_output_tokens=8000,
        purpose="profile_analysis",
    )


def default_verifier() -> LinkedInVerifier:
    return LinkedInVerifier(LinkedInDataClient(), default_email_lookup())


@dataclass
class AnalysisCollaborators:
    extract_text: Callable[[bytes, str], ParsedDoc] = extract_pdf_text
    parse_resume: Callable[[str], ParsedResume] = parse_resume_with_llm
    orchestrator_factory: Callable[[], DeepSearchOrchestrator] = default_orchestrator
    verifier_factory: Callable[[], LinkedInVerifier] = default_verifier
    skill_demand_factory: Callable[[], SkillDemandProvider] = default_skill_demand_provider
    analyze_profile: Callable[..., dict[str, Any]] = analyze_profile_with_llm


@dataclass
class _SearchStageOutcome:
    results: DeepSearchResults | None = None
    web_presence: list[WebPresenceResult] = field(default_factory=list)
    linkedin_profile: LinkedInProfile | None = None


def _emit_progress(
    progress_callback: ProgressCallback | None,
    *,
    step: int,
    stage: str,
    message: str,
    percent: int,
    detail: str = "",
) -> None:
    if not progress_callback:
        return
    progress_callback(
        {
            "step": step,
            "stage": stage,
            "message": message,
            "detail": detail[:240],
            "percent": max(0, min(100, percent)),
            "emitted_at": datetime.now(timezone.utc).isoformat(),
        }
    )


def build_search_context(resume: ParsedResume) -> SearchContext:
    first_role = resume.experience[0] if resume.experience else None
    industry = None
    if first_role and first_role.description:
        industry = " ".join(first_role.description.split()[:5]) or None
    return SearchContext(
        company=first_role.company or None if first_role else None,
        title=first_role.title or None if first_role else None,
        location=resume.location,
        email=resume.email,
        skills=[skill.name for skill in resume.skills[:MAX_SEARCH_SKILLS]],
        industry=industry,
    )


def _run_search_stage(
    resume: ParsedResume,
    collaborators: AnalysisCollaborators,
    progress_callback: ProgressCallback | None,
    warnings: list[str],
) -> _SearchStageOutcome:
    outcome = _SearchStageOutcome()
    _emit_progress(
        progress_callback,
        step=3,
        stage="search",
        message="Performing deep web search...",
        percent=40,
        detail="Searching for profiles, news, publications, speaking engagements, patents and more",
    )
    try:
        if resume.full_name:
            results = collaborators.orchestrator_factory().search(resume.full_name, build_search_context(resume))
            outcome.results = results
            outcome.web_presence = build_web_presence(results)
            if results.searches_performed == 0 and results.searches_failed > 0:
                warnings.append("Web search unavailable: every search request failed.")
                _emit_progress(
                    progress_callback,
                    step=3,
                    stage="search",
                    message="Web search unavailable",
                    percent=55,
                    detail="Search API could not be reached or is not configured; skipping web presence discovery",
                )
            else:
                _emit_progress(
                    progress_callback,
                    step=3,
                    stage="search",
                    message="Deep search complete",
                    percent=55,
                    detail=(
                        f"Found {results.total_results} results across {results.searches_performed} searches "
                        f"({results.summary.overall_visibility} visibility)"
                    ),
                )
            candidates = select_linkedin_candidates(results)
        else:
            warnings.append("Resume has no name; web search skipped.")
            candidates = []

        if candidates or resume.email:
            _emit_progress(
                progress_callback,
                step=3,
                stage="search",
                message="Verifying LinkedIn profile...",
                percent=58,
                detail=f"{len(candidates)} candidate profile(s)",
            )
            verifier = collaborators.verifier_factory()
            outcome.linkedin_profile = verifier.verify(candidates, resume)
            if outcome.linkedin_profile is not None and not any(
                item.url == outcome.linkedin_profile.url for item in outcome.web_presence
            ):
                outcome.web_presence.append(
                    WebPresenceResult(
                        platform="linkedin",
                        url=outcome.linkedin_profile.url,
                        title=outcome.linkedin_profile.headline,
                        description=outcome.linkedin_profile.summary,
                    )
                )
    except Exception as exc:  # noqa: BLE001 - web presence is optional for the report
        logger.warning("analysis_search_stage_failed: %s", exc)
        warnings.append("Web search limited: some searches failed.")
        _emit_progress(
            progress_callback,
            step=3,
            stage="search",
            message="Web search limited",
            percent=60,
            detail=f"Some searches failed: {str(exc)[:100]}",
        )
    return outcome


def _run_market_stage(
    resume: ParsedResume,
    collaborators: AnalysisCollaborators,
    progress_callback: ProgressCallback | None,
    warnings: list[str],
) -> list[SkillDemand]:
    _emit_progress(
        progress_callback,
        step=4,
        stage="market",
        message="Analyzing labor market data...",
        percent=65,
        detail="Evaluating demand for your skills",
    )
    skill_names = [skill.name for skill in resume.skills if skill.name.strip()]
    if not skill_names:
        return []
    try:
        demands = collaborators.skill_demand_factory().get_skill_demand(skill_names[: settings.skill_demand_limit])
    except Exception as exc:  # noqa: BLE001 - market data is optional for the report
        logger.warning("analysis_market_stage_failed: %s", exc)
        warnings.append("Labor market data unavailable.")
        return []
    _emit_progress(
        progress_callback,
        step=4,
        stage="market",
        message="Market analysis complete",
        percent=75,
        detail=f"Analyzed {len(demands)} skills",
    )
    return demands


def extract_and_parse(
    content: bytes,
    filename: str,
    *,
    collaborators: AnalysisCollaborators | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ParsedResume:
    active = collaborators or AnalysisCollaborators()

    _emit_progress(
        progress_callback,
        step=1,
        stage="extract",
        message="Extracting text from resume...",
        percent=5,
        detail="Reading your PDF",
    )
    try:
        parsed_doc = active.extract_text(content, filename)
    except DocumentExtractionError as exc:
        logger.warning("analysis_extract_failed code=%s filename=%r: %s", exc.code, filename, exc)
        raise AnalysisError(
            "extract",
            "Failed to extract text from PDF. Please ensure it's a valid PDF file.",
            code=exc.code,
        ) from exc

    _emit_progress(
        progress_callback,
        step=2,
        stage="parse",
        message="Analyzing resume content...",
        percent=20,
        detail="Identifying your skills, experience and education",
    )
    try:
        resume = active.parse_resume(parsed_doc.text)
    except LLMError as exc:
        logger.warning("analysis_parse_failed code=%s: %s", exc.code, exc)
        raise AnalysisError("parse", f"Failed to parse resume: {exc}", code=exc.code) from exc

    _emit_progress(
        progress_callback,
        step=2,
        stage="parse",
        message="Resume parsed successfully",
        percent=35,
        detail=f"Found {len(resume.skills)} skills and {len(resume.experience)} work experiences",
    )
    return resume


def run_analysis(
    content: bytes,
    filename: str,
    progress_callback: ProgressCallback | None = None,
    *,
    collaborators: AnalysisCollaborators | None = None,
) -> AnalysisResult:
    """Run the full resume intelligence pipeline.

    Extraction, parsing and the final synthesis are fatal and raise
    AnalysisError. Web search, LinkedIn verification and market data degrade
    to warnings so a report is still produced.
    """
    active = collaborators or AnalysisCollaborators()
    started = time.perf_counter()
    warnings: list[str] = []

    resume = extract_and_parse(content, filename, collaborators=active, progress_callback=progress_callback)
    search = _run_search_stage(resume, active, progress_callback, warnings)
    skill_demands = _run_market_stage(resume, active, progress_callback, warnings)

    _emit_progress(
        progress_callback,
        step=5,
        stage="synthesis",
        message="Generating comprehensive analysis...",
        percent=85,
        detail="Combining resume, web presence and market data",
    )
    summary = summarize_for_analysis(search.results) if search.results else "No deep search results available."
    try:
        analysis = active.analyze_profile(
            resume,
            search.web_presence,
            search.linkedin_profile,
            skill_demands,
            summary,
        )
    except LLMError as exc:
        logger.warning("analysis_synthesis_failed code=%s: %s", exc.code, exc)
        raise AnalysisError("synthesis", f"Failed to generate analysis: {exc}", code=exc.code) from exc

    _emit_progress(
        progress_callback,
        step=5,
        stage="synthesis",
        message="Analysis complete!",
        percent=100,
        detail="Your profile report is ready",
    )
    logger.info(
        json.dumps(
            {
                "event": "analysis_done",
                "skills": len(resume.skills),
                "experience": len(resume.experience),
                "web_results": search.results.total_results if search.results else 0,
                "linkedin_verified": search.linkedin_profile is not None,
                "warnings": len(warnings),
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        )
    )
    return AnalysisResult(
        parsed_resume=resume,
        web_presence=search.web_presence,
        linkedin_profile=search.linkedin_profile,
        skill_demands=skill_demands,
        analysis=analysis,
        deep_search_results=search.results,
        warnings=warnings,
    )
