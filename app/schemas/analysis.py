from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .resume import LinkedInProfile, ParsedResume
from .search import DeepSearchResults, WebPresenceResult


class SkillDemand(BaseModel):
    skill_name: str
    demand_score: int = Field(ge=0, le=100)
    growth_rate: float = 0.0
    average_salary: float | None = None
    job_postings: int | None = None
    related_skills: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    parsed_resume: ParsedResume
    web_presence: list[WebPresenceResult] = Field(default_factory=list)
    linkedin_profile: LinkedInProfile | None = None
    skill_demands: list[SkillDemand] = Field(default_factory=list)
    analysis: dict[str, Any] = Field(default_factory=dict)
    deep_search_results: DeepSearchResults | None = None
    warnings: list[str] = Field(default_factory=list)


class JobSearchRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    page: int = Field(default=1, ge=1, le=50)


class JobSearchResult(BaseModel):
    id: str
    title: str
    company: str
    location: str
    description: str = ""
    url: str = ""
    salary_min: float | None = None
    salary_max: float | None = None
    created_at: str | None = None
    category: str | None = None


class JobSearchResponse(BaseModel):
    jobs: list[JobSearchResult] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
