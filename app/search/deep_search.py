"""Deep web search: fan a person's name out across many queries, then
deduplicate, bucket and rank everything that comes back.

All queries run concurrently but results are merged only after every call
has settled, in query construction order (web queries first, news last), so
the first occurrence of a URL wins regardless of which call finished first.
"""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from app.core.config import settings
from app.core.search_config import get_search_value
from app.integrations.serpapi import SerpApiClient
from app.schemas.search import (
    BUCKET_FOR_CATEGORY,
    BUCKET_NAMES,
    CatalogedSearchResult,
    DeepSearchResults,
    SearchContext,
    SearchSummary,
    WebPresenceResult,
)

from .categorizer import RULES_VERSION
from .executor import DISCOVERED, NEWS, ExecutionOutcome, SearchExecutor

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 4

DEFAULT_WEIGHTS: dict[str, int] = {
    "profiles": 3,
    "news": 4,
    "publications": 5,
    "speaking": 4,
    "patents": 5,
    "awards": 3,
    "podcasts": 3,
    "videos": 2,
    "opensource": 2,
    "press": 3,
    "mentions": 1,
}
DEFAULT_THRESHOLDS: dict[str, dict[str, int]] = {
    "high": {"score": 40, "platforms": 6},
    "medium": {"score": 20, "platforms": 4},
    "low": {"score": 5, "platforms": 2, "results": 3},
}

# (bucket, heading, limit) for the shorter digest sections
_SUMMARY_SECTIONS: tuple[tuple[str, str, int], ...] = (
    ("publications", "Publications & Research", 5),
    ("speaking", "Speaking Engagements", 5),
    ("patents", "Patents", 5),
    ("awards", "Awards & Recognition", 5),
    ("press", "Press & Company News", 5),
    ("videos", "Video Content", 5),
    ("opensource", "Open Source Contributions", 5),
)

# (bucket, label, limit) for the flattened web presence view, after profiles and news
_NOTABLE_PRESENCE: tuple[tuple[str, str, int], ...] = (
    ("publications", "publication", 3),
    ("speaking", "speaking", 3),
    ("awards", "award", 2),
    ("press", "press", 3),
    ("patents", "patent", 2),
    ("videos", "video", 2),
    ("opensource", "opensource", 3),
)


def _quoted(value: str) -> str:
    return f'"{value}"'


def build_search_queries(name: str, context: SearchContext | None = None) -> list[str]:
    normalized = " ".join((name or "").split())
    if not normalized:
        return []
    ctx = context or SearchContext()
    quoted = _quoted(normalized)

    queries = [quoted]
    extra = " ".join(part for part in (ctx.company, ctx.title, ctx.location) if part and part.strip())
    queries.append(f"{quoted} {extra}".strip())

    parts = normalized.split()
    if len(parts) >= 2:
        queries.append(_quoted(f"{parts[0]} {parts[-1]}"))
    if ctx.company and ctx.company.strip():
        queries.append(f"{quoted} {_quoted(ctx.company.strip())}")
    if ctx.title and ctx.title.strip():
        queries.append(f"{quoted} {ctx.title.strip()}")
    queries.append(f"{quoted} site:linkedin.com")
    queries.append(f"{quoted} site:twitter.com OR site:x.com")

    unique: list[str] = []
    for query in queries:
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH or query in unique:
            continue
        unique.append(query)
    return unique


def build_news_query(name: str) -> str:
    return _quoted(" ".join((name or "").split()))


def _configured_weights() -> dict[str, int]:
    configured = get_search_value("visibility.weights", {}) or {}
    weights = dict(DEFAULT_WEIGHTS)
    for bucket, value in configured.items():
        if bucket in weights:
            weights[bucket] = int(value)
    return weights


def _configured_thresholds() -> dict[str, dict[str, int]]:
    configured = get_search_value("visibility.thresholds", {}) or {}
    thresholds = {tier: dict(values) for tier, values in DEFAULT_THRESHOLDS.items()}
    for tier, values in configured.items():
        if tier in thresholds and isinstance(values, dict):
            thresholds[tier].update({key: int(value) for key, value in values.items()})
    return thresholds


def weighted_category_score(results: DeepSearchResults, weights: dict[str, int] | None = None) -> int:
    active = weights or DEFAULT_WEIGHTS
    return sum(len(bucket) * active.get(name, 0) for name, bucket in results.buckets().items())


def distinct_platforms(results: DeepSearchResults) -> int:
    return len({result.platform for result in results.all_results()})


def visibility_tier(
    results: DeepSearchResults,
    weights: dict[str, int] | None = None,
    thresholds: dict[str, dict[str, int]] | None = None,
) -> str:
    limits = thresholds or DEFAULT_THRESHOLDS
    score = weighted_category_score(results, weights)
    platforms = distinct_platforms(results)
    total = sum(len(bucket) for bucket in results.buckets().values())

    high, medium, low = limits["high"], limits["medium"], limits["low"]
    if score >= high["score"] or platforms >= high["platforms"]:
        return "high"
    if score >= medium["score"] or platforms >= medium["platforms"]:
        return "medium"
    if score >= low["score"] or platforms >= low["platforms"] or total >= low["results"]:
        return "low"
    return "minimal"


def select_linkedin_candidates(results: DeepSearchResults) -> list[CatalogedSearchResult]:
    return [
        result
        for result in results.profiles
        if result.platform == "linkedin" and "/in/" in result.url.lower()
    ]


def summarize_for_analysis(results: DeepSearchResults, *, snippet_chars: int | None = None) -> str:
    limit = snippet_chars or int(get_search_value("summary.snippet_chars", 200))
    lines = [
        "## Web Presence Deep Search Results",
        f"Total results found: {results.total_results}",
        f"Searches performed: {results.searches_performed}",
        f"Overall visibility: {results.summary.overall_visibility.upper()}",
        "",
    ]

    if results.profiles:
        lines.append(f"### Professional Profiles ({len(results.profiles)})")
        for item in results.profiles[:10]:
            lines.append(f"- [{item.platform}] {item.title}")
            lines.append(f"  URL: {item.url}")
            lines.append(f"  {item.snippet[:limit]}...")
        lines.append("")

    if results.news:
        lines.append(f"### News Coverage ({len(results.news)})")
        for item in results.news[:10]:
            lines.append(f"- {item.title}")
            lines.append(f"  Source: {item.source or item.platform} | Date: {item.date or 'Unknown'}")
            lines.append(f"  {item.snippet[:limit]}...")
        lines.append("")

    for bucket_name, heading, top in _SUMMARY_SECTIONS:
        bucket = getattr(results, bucket_name)
        if not bucket:
            continue
        lines.append(f"### {heading} ({len(bucket)})")
        for item in bucket[:top]:
            lines.append(f"- {item.title}")
            lines.append(f"  {item.snippet[:limit]}...")
        lines.append("")

    return "\n".join(lines)


def build_web_presence(results: DeepSearchResults) -> list[WebPresenceResult]:
    presence = [
        WebPresenceResult(platform=item.platform, url=item.url, title=item.title, description=item.snippet)
        for item in results.profiles
    ]
    for item in results.news[:5]:
        presence.append(
            WebPresenceResult(platform=f"news:{item.platform}", url=item.url, title=item.title, description=item.snippet)
        )
    for bucket_name, label, top in _NOTABLE_PRESENCE:
        for item in getattr(results, bucket_name)[:top]:
            presence.append(
                WebPresenceResult(
                    platform=f"{label}:{item.platform}",
                    url=item.url,
                    title=item.title,
                    description=item.snippet,
                )
            )
    return presence


def assemble_results(
    outcomes: Iterable[ExecutionOutcome],
    *,
    weights: dict[str, int] | None = None,
    thresholds: dict[str, dict[str, int]] | None = None,
) -> DeepSearchResults:
    """Merge settled query outcomes (in the order given) into one result set."""
    buckets: dict[str, list[CatalogedSearchResult]] = {name: [] for name in BUCKET_NAMES}
    seen_urls: set[str] = set()
    performed = 0
    failed = 0

    for outcome in outcomes:
        if not outcome.ok:
            failed += 1
            continue
        performed += 1
        for result in outcome.results:
            if result.url in seen_urls:
                continue
            seen_urls.add(result.url)
            buckets[BUCKET_FOR_CATEGORY[result.category]].append(result)

    # sorted() is stable, so ties keep discovery order
    for name, bucket in buckets.items():
        buckets[name] = sorted(bucket, key=lambda item: item.relevance_score, reverse=True)

    results = DeepSearchResults(
        **buckets,
        total_results=sum(len(bucket) for bucket in buckets.values()),
        searches_performed=performed,
        searches_failed=failed,
    )
    results.summary = SearchSummary(
        has_linkedin=any(item.platform == "linkedin" for item in results.profiles),
        has_github=any(item.platform == "github" for item in results.profiles),
        has_twitter=any(item.platform == "twitter" for item in results.profiles),
        category_counts={name: len(bucket) for name, bucket in buckets.items()},
        distinct_platforms=distinct_platforms(results),
        overall_visibility=visibility_tier(results, weights, thresholds),
    )
    return results


class DeepSearchOrchestrator:
    def __init__(
        self,
        executor: SearchExecutor,
        *,
        max_workers: int | None = None,
        results_per_query: int | None = None,
        news_max_results: int | None = None,
        weights: dict[str, int] | None = None,
        thresholds: dict[str, dict[str, int]] | None = None,
    ):
        self._executor = executor
        self._max_workers = max_workers or settings.search_max_workers
        self._results_per_query = results_per_query or settings.search_results_per_query
        self._news_max_results = news_max_results or settings.search_news_max_results
        self._weights = weights if weights is not None else _configured_weights()
        self._thresholds = thresholds if thresholds is not None else _configured_thresholds()

    def search(self, name: str, context: SearchContext | None = None) -> DeepSearchResults:
        normalized = " ".join((name or "").split())
        if not normalized:
            return assemble_results([], weights=self._weights, thresholds=self._thresholds)

        web_queries = build_search_queries(normalized, context)
        calls: list[tuple[str, str, int]] = [
            (query, DISCOVERED, self._results_per_query) for query in web_queries
        ]
        calls.append((build_news_query(normalized), NEWS, self._news_max_results))

        started = time.perf_counter()
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(calls))) as pool:
            futures = [
                pool.submit(self._executor.execute, query, category, normalized, limit)
                for query, category, limit in calls
            ]
            # collect in submission order, not completion order
            outcomes = [future.result() for future in futures]

        results = assemble_results(outcomes, weights=self._weights, thresholds=self._thresholds)
        logger.info(
            json.dumps(
                {
                    "event": "deep_search_done",
                    "rules_version": RULES_VERSION,
                    "queries": len(calls),
                    "searches_performed": results.searches_performed,
                    "searches_failed": results.searches_failed,
                    "total_results": results.total_results,
                    "visibility": results.summary.overall_visibility,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                }
            )
        )
        return results


def default_orchestrator() -> DeepSearchOrchestrator:
    return DeepSearchOrchestrator(SearchExecutor(SerpApiClient()))


def deep_search(
    name: str,
    context: SearchContext | None = None,
    *,
    orchestrator: DeepSearchOrchestrator | None = None,
) -> DeepSearchResults:
    return (orchestrator or default_orchestrator()).search(name, context)
