"""Decide which (if any) LinkedIn search hit belongs to the resume's owner.

Candidates are tried one at a time in score order and the loop stops at the
first accepted profile, so later candidates are never fetched. When no
candidate is accepted the resume email, if any, is used to look the profile
up directly.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import httpx

from app.core.search_config import get_search_value
from app.integrations.linkedin import (
    LinkedInEmailLookup,
    LinkedInProfileFetcher,
    NullEmailLookup,
    ProfileFetchError,
)
from app.schemas.resume import LinkedInProfile, ParsedResume
from app.schemas.search import CatalogedSearchResult

logger = logging.getLogger(__name__)

PROFESSIONAL_TITLE_MARKERS = (
    "professor", "director", "manager", "engineer", "analyst",
    "senior", "lead", "head", "vp", "chief",
)
STUDENT_MARKERS = ("student", "studying")
ACADEMIC_EMPLOYER_MARKERS = ("university", "college", "institute")
ACADEMIC_TITLE_MARKERS = ("professor", "researcher", "postdoc", "phd", "lecturer")
STOPWORDS = frozenset(
    {
        "inc", "inc.", "corp", "corp.", "corporation", "llc", "ltd", "ltd.", "limited",
        "company", "group", "holdings", "the", "and", "of", "for", "at", "with",
        "technologies", "technology", "solutions", "services", "international",
    }
)
# words that say "this is a school" rather than which school
_INSTITUTION_GENERIC = frozenset(ACADEMIC_EMPLOYER_MARKERS) | {"school", "state", "department", "faculty"}


@dataclass(frozen=True)
class VerificationDecision:
    url: str
    accepted: bool
    reason: str
    detail: str = ""


def name_tokens(name: str | None) -> set[str]:
    return {token for token in (name or "").lower().replace(",", " ").split() if len(token) > 2}


def significant_words(value: str | None, *, exclude: frozenset[str] = frozenset()) -> list[str]:
    words = []
    for raw in (value or "").lower().replace(",", " ").replace("|", " ").split():
        word = raw.strip(".()-&/")
        if len(word) > 3 and word not in STOPWORDS and word not in exclude:
            words.append(word)
    return words


def is_academic(resume: ParsedResume) -> bool:
    for role in resume.experience:
        company = role.company.lower()
        title = role.title.lower()
        if any(marker in company for marker in ACADEMIC_EMPLOYER_MARKERS):
            return True
        if any(marker in title for marker in ACADEMIC_TITLE_MARKERS):
            return True
    return False


def has_professional_titles(resume: ParsedResume) -> bool:
    for role in resume.experience:
        title_words = set(role.title.lower().replace(",", " ").split())
        title = role.title.lower()
        for marker in PROFESSIONAL_TITLE_MARKERS:
            # short markers like "vp" must be whole words
            if (len(marker) <= 3 and marker in title_words) or (len(marker) > 3 and marker in title):
                return True
    return False


class LinkedInVerifier:
    def __init__(
        self,
        fetcher: LinkedInProfileFetcher,
        email_lookup: LinkedInEmailLookup | None = None,
        *,
        min_connections: int | None = None,
        min_roles_for_connection_guard: int | None = None,
    ):
        self._fetcher = fetcher
        self._email_lookup = email_lookup or NullEmailLookup()
        self._min_connections = (
            min_connections
            if min_connections is not None
            else int(get_search_value("verification.min_connections", 50))
        )
        self._min_roles = (
            min_roles_for_connection_guard
            if min_roles_for_connection_guard is not None
            else int(get_search_value("verification.min_roles_for_connection_guard", 3))
        )
        self.last_decisions: list[VerificationDecision] = []

    def _record(self, url: str, accepted: bool, reason: str, detail: str = "") -> None:
        decision = VerificationDecision(url=url, accepted=accepted, reason=reason, detail=detail)
        self.last_decisions.append(decision)
        log = logger.info if accepted else logger.warning
        log(
            json.dumps(
                {
                    "event": "linkedin_verification",
                    "url": url,
                    "accepted": accepted,
                    "reason": reason,
                    "detail": detail,
                }
            )
        )

    def _fetch(self, url: str) -> LinkedInProfile | None:
        try:
            return self._fetcher.fetch_profile(url)
        except (ProfileFetchError, httpx.HTTPError, ValueError) as exc:
            self._record(url, False, "fetch_failed", str(exc)[:200])
            return None

    def _name_matches(self, profile: LinkedInProfile, resume: ParsedResume) -> bool:
        resume_tokens = name_tokens(resume.full_name)
        profile_tokens = name_tokens(profile.full_name)
        if not resume_tokens:
            return True
        # a profile with no name cannot confirm a named resume
        return bool(resume_tokens & profile_tokens)

    def _context_match(self, profile: LinkedInProfile, resume: ParsedResume) -> str | None:
        """Return the acceptance reason, or None when the profile contradicts the resume."""
        headline = (profile.headline or "").lower()
        fetched_employers = [role.company.lower() for role in profile.experience if role.company]
        companies = [role.company for role in resume.experience if role.company.strip()]
        titles = [role.title for role in resume.experience if role.title.strip()]

        if not companies and not titles:
            return "accepted_name_only"

        for company in companies:
            for word in significant_words(company):
                if word in headline or any(word in employer for employer in fetched_employers):
                    return "accepted_company"

        for title in titles:
            if "professor" in title.lower():
                if "professor" in headline:
                    return "accepted_title"
                continue
            if any(word in headline for word in significant_words(title)):
                return "accepted_title"

        for company in companies:
            lowered = company.lower()
            if not any(marker in lowered for marker in ACADEMIC_EMPLOYER_MARKERS):
                continue
            if "professor" in headline:
                return "accepted_academic"
            distinctive = significant_words(company, exclude=_INSTITUTION_GENERIC)
            if distinctive and any(word in headline for word in distinctive):
                return "accepted_academic"

        return None

    def _check_profile(self, profile: LinkedInProfile, resume: ParsedResume) -> tuple[bool, str]:
        if not self._name_matches(profile, resume):
            return False, "name_mismatch"

        headline = (profile.headline or "").lower()
        professional = has_professional_titles(resume)
        academic = is_academic(resume)

        if any(marker in headline for marker in STUDENT_MARKERS) and professional and not academic:
            return False, "student_mismatch"

        if (
            profile.connections is not None
            and profile.connections < self._min_connections
            and len(resume.experience) >= self._min_roles
            and professional
        ):
            return False, "low_connections"

        reason = self._context_match(profile, resume)
        if reason is None:
            return False, "context_mismatch"
        return True, reason

    def _passes_prefilter(self, candidate: CatalogedSearchResult, resume: ParsedResume) -> bool:
        tokens = name_tokens(resume.full_name)
        if not tokens:
            return True
        text = f"{candidate.title} {candidate.snippet}".lower()
        return any(token in text for token in tokens)

    def verify(
        self,
        candidates: list[CatalogedSearchResult],
        resume: ParsedResume,
    ) -> LinkedInProfile | None:
        self.last_decisions = []

        for candidate in candidates:
            if not self._passes_prefilter(candidate, resume):
                self._record(candidate.url, False, "name_prefilter")
                continue

            profile = self._fetch(candidate.url)
            if profile is None:
                continue

            accepted, reason = self._check_profile(profile, resume)
            self._record(candidate.url, accepted, reason, profile.headline or "")
            if accepted:
                return profile

        return self._verify_by_email(resume)

    def _verify_by_email(self, resume: ParsedResume) -> LinkedInProfile | None:
        if not resume.email:
            return None

        try:
            url = self._email_lookup.lookup_by_email(resume.email)
        except (ProfileFetchError, httpx.HTTPError, ValueError) as exc:
            self._record("", False, "email_lookup_failed", str(exc)[:200])
            return None
        if not url:
            self._record("", False, "email_lookup_empty")
            return None

        profile = self._fetch(url)
        if profile is None:
            return None
        if not self._name_matches(profile, resume):
            self._record(url, False, "name_mismatch", "email fallback")
            return None
        self._record(url, True, "accepted_email_lookup")
        return profile
