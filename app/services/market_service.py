from __future__ import annotations

import logging

from pydantic import ValidationError

from app.integrations.adzuna import AdzunaClient
from app.schemas.market import (
    JobCompatibility,
    JobCompatibilityRequest,
    SalaryData,
    SalaryEstimate,
    SalaryEstimateRequest,
    SalaryPercentile,
)
from app.services.llm import LLMError, json_completion_required
from app.services.prompts import (
    COMPATIBILITY_SYSTEM,
    SALARY_PERCENTILE_SYSTEM,
    build_compatibility_prompt,
    build_salary_percentile_prompt,
)

logger = logging.getLogger(__name__)


def experience_percentile(title: str, years_experience: float) -> SalaryPercentile:
    """Percentile band from tenure alone: 50 plus 5 per year, capped at 90, widened by 10 each way."""
    base = min(50 + int(years_experience) * 5, 90)
    return SalaryPercentile(
        low=max(base - 10, 25),
        high=min(base + 10, 95),
        rationale=f"Based on {years_experience:g} years of experience in {title} roles.",
    )


def estimate_percentile_with_llm(request: SalaryEstimateRequest, band: SalaryData) -> SalaryPercentile:
    payload = json_completion_required(
        system_prompt=SALARY_PERCENTILE_SYSTEM,
        user_prompt=build_salary_percentile_prompt(
            title=request.title,
            location=request.location,
            years_experience=request.years_experience,
            skills=request.skills,
            recent_titles=request.recent_titles,
            salary_band=band.model_dump(),
        ),
        temperature=0.2,
        max_output_tokens=500,
        purpose="salary_percentile",
    )
    try:
        percentile = SalaryPercentile.model_validate(payload)
    except ValidationError as exc:
        raise LLMError(f"Salary percentile did not match the expected shape: {exc.error_count()} errors", code="llm_invalid") from exc
    if percentile.low > percentile.high:
        percentile = percentile.model_copy(update={"low": percentile.high, "high": percentile.low})
    return percentile


def estimate_salary(request: SalaryEstimateRequest, *, client: AdzunaClient | None = None) -> SalaryEstimate:
    band = (client or AdzunaClient()).get_salary_data(request.title, request.location)
    try:
        percentile = estimate_percentile_with_llm(request, band)
    except LLMError as exc:
        logger.warning("salary_percentile_fallback code=%s: %s", exc.code, exc)
        percentile = experience_percentile(request.title, request.years_experience)

    return SalaryEstimate(
        min=band.min,
        max=band.max,
        median=band.median,
        percentile=percentile,
        location=request.location,
        sample_size=band.sample_size,
    )


def assess_job_compatibility(request: JobCompatibilityRequest) -> JobCompatibility:
    """Score one candidate against one posting. Needs the LLM; raises LLMError otherwise."""
    payload = json_completion_required(
        system_prompt=COMPATIBILITY_SYSTEM,
        user_prompt=build_compatibility_prompt(
            job=request.job.model_dump(),
            profile_analysis=request.profile_analysis,
            market_value=request.market_value.model_dump() if request.market_value else None,
        ),
        temperature=0.3,
        max_output_tokens=1500,
        purpose="job_compatibility",
    )
    try:
        return JobCompatibility.model_validate(payload)
    except ValidationError as exc:
        raise LLMError(f"Compatibility result did not match the expected shape: {exc.error_count()} errors", code="llm_invalid") from exc
