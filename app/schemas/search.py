from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal[
    "profile",
    "news",
    "publication",
    "speaking",
    "patent",
    "award",
    "podcast",
    "video",
    "opensource",
    "press",
    "mention",
]
Visibility = Literal["high", "medium", "low", "minimal"]

CATEGORIES: tuple[str, ...] = (
    "profile",
    "news",
    "publication",
    "speaking",
    "patent",
    "award",
    "podcast",
    "video",
    "opensource",
    "press",
    "mention",
)

# category tag -> bucket attribute on DeepSearchResults
BUCKET_FOR_CATEGORY: dict[str, str] = {
    "profile": "profiles",
    "news": "news",
    "publication": "publications",
    "speaking": "speaking",
    "patent": "patents",
    "award": "awards",
    "podcast": "podcasts",
    "video": "videos",
    "opensource": "opensource",
    "press": "press",
    "mention": "mentions",
}
BUCKET_NAMES: tuple[str, ...] = tuple(BUCKET_FOR_CATEGORY.values())


class SearchHit(BaseModel):
    title: str = ""
    link: str = ""
    snippet: str = ""
    date: str | None = None
    source: str | None = None


class SearchContext(BaseModel):
    company: str | None = None
    title: str | None = None
    location: str | None = None
    email: str | None = None
    skills: list[str] = Field(default_factory=list)
    industry: str | None = None


class CatalogedSearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    platform: str
    url: str
    title: str
    snippet: str
    date: str | None = None
    source: str | None = None
    relevance_score: int = Field(ge=0, le=100)
    search_query: str


class SearchSummary(BaseModel):
    has_linkedin: bool = False
    has_github: bool = False
    has_twitter: bool = False
    category_counts: dict[str, int] = Field(default_factory=dict)
    distinct_platforms: int = 0
    overall_visibility: Visibility = "minimal"

    @property
    def news_count(self) -> int:
        return self.category_counts.get("news", 0)

    @property
    def publication_count(self) -> int:
        return self.category_counts.get("publications", 0)

    @property
    def speaking_count(self) -> int:
        return self.category_counts.get("speaking", 0)


class DeepSearchResults(BaseModel):
    profiles: list[CatalogedSearchResult] = Field(default_factory=list)
    news: list[CatalogedSearchResult] = Field(default_factory=list)
    publications: list[CatalogedSearchResult] = Field(default_factory=list)
    speaking: list[CatalogedSearchResult] = Field(default_factory=list)
    patents: list[CatalogedSearchResult] = Field(default_factory=list)
    awards: list[CatalogedSearchResult] = Field(default_factory=list)
    podcasts: list[CatalogedSearchResult] = Field(default_factory=list)
    videos: list[CatalogedSearchResult] = Field(default_factory=list)
    opensource: list[CatalogedSearchResult] = Field(default_factory=list)
    press: list[CatalogedSearchResult] = Field(default_factory=list)
    mentions: list[CatalogedSearchResult] = Field(default_factory=list)
    total_results: int = 0
    searches_performed: int = 0
    searches_failed: int = 0
    summary: SearchSummary = Field(default_factory=SearchSummary)

    def buckets(self) -> dict[str, list[CatalogedSearchResult]]:
        return {name: getattr(self, name) for name in BUCKET_NAMES}

    def all_results(self) -> list[CatalogedSearchResult]:
        merged: list[CatalogedSearchResult] = []
        for bucket in self.buckets().values():
            merged.extend(bucket)
        return merged


class WebPresenceResult(BaseModel):
    platform: str
    url: str
    title: str | None = None
    description: str | None = None


class DeepSearchRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    context: SearchContext | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        normalized = " ".join(value.split())
        if not normalized:
            raise ValueError("name must not be blank")
        return normalized
