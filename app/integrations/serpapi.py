from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from app.core.config import settings
from app.schemas.search import SearchHit

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search"


class SearchProviderError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, code: str = "search_failed"):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class WebSearchClient(Protocol):
    def search_web(self, query: str, num: int = 20) -> list[SearchHit]: ...

    def search_news(self, query: str) -> list[SearchHit]: ...


def _hit_from_payload(item: Any, *, source_key: str) -> SearchHit | None:
    if not isinstance(item, dict):
        return None
    link = str(item.get("link") or "").strip()
    if not link:
        return None
    source = item.get(source_key) or item.get("source")
    if isinstance(source, dict):
        source = source.get("name")
    return SearchHit(
        title=str(item.get("title") or ""),
        link=link,
        snippet=str(item.get("snippet") or ""),
        date=str(item["date"]) if item.get("date") else None,
        source=str(source) if source else None,
    )


class SerpApiClient:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = (api_key if api_key is not None else settings.serpapi_api_key or "").strip()
        self._timeout_s = timeout_s or settings.http_timeout_s
        self._transport = transport

    def _request(self, params: dict[str, str]) -> dict[str, Any]:
        if not self._api_key:
            raise SearchProviderError("SERPAPI_API_KEY is not configured", code="not_configured")

        query_params = {"api_key": self._api_key, "gl": "us", "hl": "en", **params}
        with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
            response = client.get(SERPAPI_URL, params=query_params)

        if response.status_code >= 400:
            raise SearchProviderError(
                f"SerpAPI request failed: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchProviderError("SerpAPI returned a non-JSON payload", code="malformed") from exc
        if not isinstance(data, dict):
            raise SearchProviderError("SerpAPI returned an unexpected payload", code="malformed")
        if data.get("error"):
            raise SearchProviderError(f"SerpAPI error: {data['error']}", status_code=response.status_code)
        return data

    def search_web(self, query: str, num: int = 20) -> list[SearchHit]:
        logger.info("serpapi_search query=%r num=%s", query, num)
        data = self._request({"q": query, "engine": "google", "num": str(num)})
        hits = [
            hit
            for hit in (_hit_from_payload(item, source_key="displayed_link") for item in data.get("organic_results") or [])
            if hit is not None
        ]
        logger.info("serpapi_search_done query=%r results=%s", query, len(hits))
        return hits

    def search_news(self, query: str) -> list[SearchHit]:
        logger.info("serpapi_news query=%r", query)
        data = self._request({"q": query, "engine": "google_news"})
        hits = [
            hit
            for hit in (_hit_from_payload(item, source_key="source") for item in data.get("news_results") or [])
            if hit is not None
        ]
        logger.info("serpapi_news_done query=%r results=%s", query, len(hits))
        return hits
