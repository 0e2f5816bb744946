from __future__ import annotations

import logging
import re
import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Protocol

import httpx

from app.core.config import settings
from app.schemas.analysis import SkillDemand

logger = logging.getLogger(__name__)

JOBSPIKR_API_URL = "https://api.jobspikr.com/v2"
LIGHTCAST_AUTH_URL = "https://auth.emsicloud.com/connect/token"
LIGHTCAST_API_URL = "https://emsiservices.com"
TOKEN_EXPIRY_BUFFER_S = 300

_HIGH_DEMAND = (
    "python", "javascript", "typescript", "react", "aws", "kubernetes", "docker",
    "machine learning", "ai", "data science", "cloud", "devops", "node.js",
    "sql", "java", "go", "rust", "terraform", "azure", "gcp",
)
_MEDIUM_DEMAND = (
    "angular", "vue", "ruby", "php", "c++", "c#", ".net", "mongodb", "postgresql",
    "redis", "graphql", "rest api", "microservices", "agile", "scrum",
)
_HIGH_GROWTH = ("ai", "machine learning", "rust", "kubernetes", "typescript", "go")
_NEGATIVE_GROWTH = ("jquery", "perl", "cobol", "flash")
_SKILL_RELATIONS: dict[str, list[str]] = {
    "python": ["pandas", "numpy", "django", "flask", "machine learning"],
    "javascript": ["typescript", "react", "node.js", "vue", "angular"],
    "typescript": ["javascript", "react", "node.js", "angular", "nestjs"],
    "react": ["typescript", "redux", "next.js", "javascript", "css"],
    "aws": ["terraform", "kubernetes", "docker", "devops", "cloud architecture"],
    "kubernetes": ["docker", "helm", "terraform", "aws", "devops"],
    "machine learning": ["python", "tensorflow", "pytorch", "data science", "ai"],
    "java": ["spring boot", "maven", "microservices", "sql", "aws"],
    "sql": ["postgresql", "mysql", "database design", "data modeling", "python"],
}
_DEFAULT_RELATED = ["problem solving", "communication", "teamwork"]


class SkillDemandProvider(Protocol):
    def get_skill_demand(self, skill_names: list[str]) -> list[SkillDemand]: ...


def _mentions(skill: str, markers: tuple[str, ...]) -> bool:
    normalized = skill.lower()
    return any(re.search(rf"(?<![a-z0-9]){re.escape(marker)}(?![a-z0-9])", normalized) for marker in markers)


def estimated_demand_score(skill: str) -> int:
    if _mentions(skill, _HIGH_DEMAND):
        return 80
    if _mentions(skill, _MEDIUM_DEMAND):
        return 60
    return 50


def estimated_growth_rate(skill: str) -> int:
    if _mentions(skill, _HIGH_GROWTH):
        return 25
    if _mentions(skill, _NEGATIVE_GROWTH):
        return -10
    return 5


def estimated_related_skills(skill: str) -> list[str]:
    return list(_SKILL_RELATIONS.get(skill.lower(), _DEFAULT_RELATED))


def estimate_skill_demand(skill_name: str) -> SkillDemand:
    return SkillDemand(
        skill_name=skill_name,
        demand_score=estimated_demand_score(skill_name),
        growth_rate=estimated_growth_rate(skill_name),
        related_skills=estimated_related_skills(skill_name),
    )


class HeuristicSkillDemand:
    def get_skill_demand(self, skill_names: list[str]) -> list[SkillDemand]:
        return [estimate_skill_demand(name) for name in skill_names]


def demand_score_from_job_count(job_count: int) -> int:
    if job_count > 500:
        return 90
    if job_count > 200:
        return 75
    if job_count > 100:
        return 65
    if job_count > 50:
        return 55
    if job_count > 20:
        return 45
    return 35


def related_skills_from_jobs(jobs: list[dict[str, Any]], primary_skill: str) -> list[str]:
    counts: Counter[str] = Counter()
    primary = primary_skill.lower()
    for job in jobs:
        for skill in job.get("skills") or []:
            if str(skill).lower() != primary:
                counts[str(skill)] += 1
    return [skill for skill, _ in counts.most_common(5)]


def growth_from_job_dates(jobs: list[dict[str, Any]], *, now: datetime | None = None) -> int:
    reference = now or datetime.now(timezone.utc)
    cutoff = reference - timedelta(days=30)
    recent = 0
    for job in jobs:
        posted_raw = job.get("posted_date")
        if not posted_raw:
            continue
        try:
            posted = datetime.fromisoformat(str(posted_raw).replace("Z", "+00:00"))
        except ValueError:
            continue
        if posted.tzinfo is None:
            posted = posted.replace(tzinfo=timezone.utc)
        if posted > cutoff:
            recent += 1
    ratio = recent / len(jobs) if jobs else 0.5
    return round((ratio - 0.3) * 40)


class JobsPikrClient:
    def __init__(
        self,
        client_id: str | None = None,
        auth_key: str | None = None,
        *,
        max_skills: int = 10,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client_id = client_id if client_id is not None else settings.jobspikr_client_id
        self._auth_key = auth_key if auth_key is not None else settings.jobspikr_auth_key
        self._max_skills = max_skills
        self._timeout_s = timeout_s or settings.http_timeout_s
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._client_id and self._auth_key)

    def _fetch_jobs(self, client: httpx.Client, skill_name: str) -> dict[str, Any]:
        response = client.get(
            f"{JOBSPIKR_API_URL}/data",
            params={
                "client_id": self._client_id,
                "client_auth_key": self._auth_key,
                "job_description": skill_name,
                "job_type": "fulltime",
                "country": "US",
                "page_size": "100",
            },
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("JobsPikr returned an unexpected payload")
        return payload

    def get_skill_demand(self, skill_names: list[str]) -> list[SkillDemand]:
        if not self.configured:
            logger.info("jobspikr_not_configured using estimated skill demand")
            return HeuristicSkillDemand().get_skill_demand(skill_names)

        results: list[SkillDemand] = []
        with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
            for skill_name in skill_names[: self._max_skills]:
                try:
                    data = self._fetch_jobs(client, skill_name)
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning("jobspikr_skill_failed skill=%r: %s", skill_name, exc)
                    results.append(estimate_skill_demand(skill_name))
                    continue
                jobs = [job for job in data.get("data") or [] if isinstance(job, dict)]
                job_count = int(data.get("total_count") or 0)
                results.append(
                    SkillDemand(
                        skill_name=skill_name,
                        demand_score=demand_score_from_job_count(job_count),
                        growth_rate=growth_from_job_dates(jobs),
                        job_postings=job_count,
                        related_skills=related_skills_from_jobs(jobs, skill_name),
                    )
                )
        return results


@dataclass
class LightcastToken:
    value: str
    expires_at: float


class LightcastTokenCache:
    """OAuth client-credentials token cache owned by a single LightcastClient."""

    def __init__(
        self,
        fetch_token: Callable[[], tuple[str, int]],
        *,
        clock: Callable[[], float] = time.monotonic,
        expiry_buffer_s: int = TOKEN_EXPIRY_BUFFER_S,
    ):
        self._fetch_token = fetch_token
        self._clock = clock
        self._expiry_buffer_s = expiry_buffer_s
        self._token: LightcastToken | None = None

    def is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._token.expires_at

    def acquire(self) -> str:
        if self._token is not None and self.is_valid():
            return self._token.value
        value, expires_in = self._fetch_token()
        self._token = LightcastToken(
            value=value,
            expires_at=self._clock() + max(0, expires_in - self._expiry_buffer_s),
        )
        return value

    def invalidate(self) -> None:
        self._token = None


class LightcastClient:
    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
        token_cache: LightcastTokenCache | None = None,
    ):
        self._client_id = client_id if client_id is not None else settings.lightcast_client_id
        self._client_secret = client_secret if client_secret is not None else settings.lightcast_client_secret
        self._timeout_s = timeout_s or settings.http_timeout_s
        self._transport = transport
        self.token_cache = token_cache or LightcastTokenCache(self._request_token)

    @property
    def configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def _request_token(self) -> tuple[str, int]:
        if not self.configured:
            raise RuntimeError("LIGHTCAST_CLIENT_ID and LIGHTCAST_CLIENT_SECRET are required")
        with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
            response = client.post(
                LIGHTCAST_AUTH_URL,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                    "scope": "emsi_open",
                },
            )
        response.raise_for_status()
        data = response.json()
        return str(data["access_token"]), int(data.get("expires_in") or 3600)

    def get_skill_demand(self, skill_names: list[str]) -> list[SkillDemand]:
        if not self.configured:
            return HeuristicSkillDemand().get_skill_demand(skill_names)

        token = self.token_cache.acquire()
        headers = {"Authorization": f"Bearer {token}"}
        results: list[SkillDemand] = []
        with httpx.Client(timeout=self._timeout_s, headers=headers, transport=self._transport) as client:
            for skill_name in skill_names:
                try:
                    found = client.get(
                        f"{LIGHTCAST_API_URL}/skills/versions/latest/skills",
                        params={"q": skill_name, "limit": "1"},
                    )
                    if found.status_code >= 400:
                        continue
                    matches = found.json().get("data") or []
                    if not matches:
                        continue
                    skill = matches[0]
                    detail = client.get(f"{LIGHTCAST_API_URL}/skills/versions/latest/skills/{skill['id']}")
                    if detail.status_code >= 400:
                        continue
                    detail_data = detail.json().get("data") or {}
                except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
                    logger.warning("lightcast_skill_failed skill=%r: %s", skill_name, exc)
                    continue
                results.append(
                    SkillDemand(
                        skill_name=str(skill.get("name") or skill_name),
                        demand_score=max(0, min(100, int(detail_data.get("importance") or 50))),
                        growth_rate=float(detail_data.get("growth") or 0),
                        related_skills=[
                            str(item.get("name"))
                            for item in detail_data.get("relatedSkills") or []
                            if isinstance(item, dict) and item.get("name")
                        ],
                    )
                )
        return results


def default_skill_demand_provider() -> SkillDemandProvider:
    jobspikr = JobsPikrClient()
    if jobspikr.configured:
        return jobspikr
    lightcast = LightcastClient()
    if lightcast.configured:
        return lightcast
    return HeuristicSkillDemand()
