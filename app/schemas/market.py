from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .analysis import JobSearchResult


class SalaryData(BaseModel):
    min: int
    max: int
    median: int
    sample_size: int = 0


class SalaryPercentile(BaseModel):
    low: int = Field(ge=0, le=100)
    high: int = Field(ge=0, le=100)
    rationale: str = ""


class SalaryEstimateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    years_experience: float = Field(default=3, ge=0, le=60)
    skills: list[str] = Field(default_factory=list, max_length=50)
    recent_titles: list[str] = Field(default_factory=list, max_length=10)

    @field_validator("title", "location")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        normalized = " ".join(value.split())
        if not normalized:
            raise ValueError("must not be blank")
        return normalized


class SalaryEstimate(BaseModel):
    min: int
    max: int
    median: int
    percentile: SalaryPercentile
    location: str
    sample_size: int = 0


class CompatibilityBreakdown(BaseModel):
    skills: int = Field(ge=0, le=100)
    experience: int = Field(ge=0, le=100)
    industry: int = Field(ge=0, le=100)


class SalaryLeverage(BaseModel):
    target_low: int
    target_high: int
    rationale: str = ""


class JobCompatibilityRequest(BaseModel):
    job: JobSearchResult
    profile_analysis: dict[str, Any]
    market_value: SalaryEstimate | None = None


class JobCompatibility(BaseModel):
    score: int = Field(ge=0, le=100)
    breakdown: CompatibilityBreakdown
    strengths: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    salary_leverage: SalaryLeverage | None = None
    recommendation: str = ""
