from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.integrations.serpapi import SearchProviderError, WebSearchClient
from app.schemas.search import CATEGORIES, CatalogedSearchResult, SearchHit

from .categorizer import categorize_result
from .platform import identify_platform
from .scoring import calculate_relevance

logger = logging.getLogger(__name__)

DISCOVERED = "discovered"
NEWS = "news"


@dataclass
class ExecutionOutcome:
    query: str
    results: list[CatalogedSearchResult] = field(default_factory=list)
    ok: bool = True
    error: str | None = None


class SearchExecutor:
    """Run one web (or news) query and catalog every hit it returns."""

    def __init__(self, client: WebSearchClient, *, current_year: int | None = None):
        self._client = client
        self._current_year = current_year

    def catalog(self, hit: SearchHit, query: str, category: str, name: str) -> CatalogedSearchResult:
        resolved = categorize_result(hit) if category == DISCOVERED else category
        return CatalogedSearchResult(
            category=resolved,
            platform=identify_platform(hit.link),
            url=hit.link,
            title=hit.title,
            snippet=hit.snippet,
            date=hit.date,
            source=hit.source,
            relevance_score=calculate_relevance(hit, name, current_year=self._current_year),
            search_query=query,
        )

    def execute(self, query: str, category: str, name: str, max_results: int = 10) -> ExecutionOutcome:
        if category != DISCOVERED and category not in CATEGORIES:
            raise ValueError(f"Unknown search category: {category}")

        try:
            if category == NEWS:
                hits = self._client.search_news(query)[:max_results]
            else:
                hits = self._client.search_web(query, max_results)
            results = [self.catalog(hit, query, category, name) for hit in hits if hit.link]
        except SearchProviderError as exc:
            logger.warning("search_query_failed query=%r code=%s status=%s: %s", query, exc.code, exc.status_code, exc)
            return ExecutionOutcome(query=query, ok=False, error=str(exc))
        except Exception as exc:  # noqa: BLE001 - one failed query must not abort the fan-out
            logger.warning("search_query_failed query=%r error=%s: %s", query, type(exc).__name__, exc)
            return ExecutionOutcome(query=query, ok=False, error=str(exc) or type(exc).__name__)

        return ExecutionOutcome(query=query, results=results)
