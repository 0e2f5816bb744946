from .analysis import AnalysisResult, JobSearchRequest, JobSearchResponse, JobSearchResult, SkillDemand
from .market import (
    CompatibilityBreakdown,
    JobCompatibility,
    JobCompatibilityRequest,
    SalaryData,
    SalaryEstimate,
    SalaryEstimateRequest,
    SalaryLeverage,
    SalaryPercentile,
)
from .resume import (
    Certification,
    Education,
    LinkedInPost,
    LinkedInProfile,
    ParsedResume,
    Skill,
    WorkExperience,
)
from .search import (
    BUCKET_FOR_CATEGORY,
    BUCKET_NAMES,
    CATEGORIES,
    CatalogedSearchResult,
    DeepSearchRequest,
    DeepSearchResults,
    SearchContext,
    SearchHit,
    SearchSummary,
    WebPresenceResult,
)

__all__ = [
    "AnalysisResult",
    "JobSearchRequest",
    "JobSearchResponse",
    "JobSearchResult",
    "SkillDemand",
    "CompatibilityBreakdown",
    "JobCompatibility",
    "JobCompatibilityRequest",
    "SalaryData",
    "SalaryEstimate",
    "SalaryEstimateRequest",
    "SalaryLeverage",
    "SalaryPercentile",
    "Certification",
    "Education",
    "LinkedInPost",
    "LinkedInProfile",
    "ParsedResume",
    "Skill",
    "WorkExperience",
    "BUCKET_FOR_CATEGORY",
    "BUCKET_NAMES",
    "CATEGORIES",
    "CatalogedSearchResult",
    "DeepSearchRequest",
    "DeepSearchResults",
    "SearchContext",
    "SearchHit",
    "SearchSummary",
    "WebPresenceResult",
]
