from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import settings
from app.schemas.analysis import JobSearchResponse, JobSearchResult
from app.schemas.market import SalaryData

logger = logging.getLogger(__name__)

ADZUNA_API_URL = "https://api.adzuna.com/v1/api"
RESULTS_PER_PAGE = 15
COUNTRY_FALLBACK = "USA"
SALARY_SAMPLE_SIZE = 50
MIN_SALARY_POSTINGS = 5
SALARY_STATE_FALLBACK = "California"

# Adzuna matches US zip codes far more reliably than free-text city names.
LOCATION_TO_ZIPCODE: dict[str, str] = {
    "stanford": "94305",
    "palo alto": "94301",
    "menlo park": "94025",
    "mountain view": "94043",
    "sunnyvale": "94086",
    "cupertino": "95014",
    "santa clara": "95050",
    "san jose": "95112",
    "oakland": "94612",
    "berkeley": "94704",
    "san francisco": "94102",
    "sf": "94102",
    "new york": "10001",
    "nyc": "10001",
    "brooklyn": "11201",
    "manhattan": "10001",
    "jersey city": "07302",
    "los angeles": "90001",
    "santa monica": "90401",
    "pasadena": "91101",
    "seattle": "98101",
    "bellevue": "98004",
    "redmond": "98052",
    "boston": "02101",
    "cambridge": "02139",
    "washington dc": "20001",
    "dc": "20001",
    "arlington": "22201",
    "chicago": "60601",
    "denver": "80202",
    "boulder": "80301",
    "austin": "78701",
    "atlanta": "30301",
    "miami": "33101",
    "dallas": "75201",
    "houston": "77001",
    "phoenix": "85001",
    "philadelphia": "19101",
    "san diego": "92101",
    "portland": "97201",
    "minneapolis": "55401",
    "nashville": "37201",
    "salt lake city": "84101",
    "raleigh": "27601",
}

STATE_NAMES: dict[str, str] = {
    "ca": "California",
    "california": "California",
    "ny": "New York",
    "new york": "New York",
    "tx": "Texas",
    "texas": "Texas",
    "wa": "Washington",
    "washington": "Washington",
    "ma": "Massachusetts",
    "massachusetts": "Massachusetts",
    "il": "Illinois",
    "illinois": "Illinois",
    "co": "Colorado",
    "colorado": "Colorado",
    "fl": "Florida",
    "florida": "Florida",
    "ga": "Georgia",
    "georgia": "Georgia",
    "nc": "North Carolina",
    "north carolina": "North Carolina",
    "pa": "Pennsylvania",
    "pennsylvania": "Pennsylvania",
    "az": "Arizona",
    "arizona": "Arizona",
    "or": "Oregon",
    "oregon": "Oregon",
}

_ZIPCODE = re.compile(r"\b(\d{5})\b")


@dataclass(frozen=True)
class NormalizedLocation:
    zipcode: str | None = None
    city: str | None = None
    state: str | None = None


@dataclass(frozen=True)
class LocationStrategy:
    where: str
    distance: int | None = None


def normalize_location(location: str) -> NormalizedLocation:
    normalized = " ".join(location.lower().split())
    zip_match = _ZIPCODE.search(normalized)
    if zip_match:
        return NormalizedLocation(zipcode=zip_match.group(1))

    city = normalized
    state = None
    if "," in normalized:
        parts = [part.strip() for part in normalized.split(",")]
        city = parts[0]
        if len(parts) > 1 and parts[1]:
            state = STATE_NAMES.get(parts[1], parts[1])
    else:
        for key, full_name in STATE_NAMES.items():
            if normalized.endswith(f" {key}"):
                city = normalized[: -len(key) - 1].strip()
                state = full_name
                break

    return NormalizedLocation(zipcode=LOCATION_TO_ZIPCODE.get(city), city=city or None, state=state)


def location_strategies(location: str) -> list[LocationStrategy]:
    """Most specific first: zip radius, city radius, state, whole country."""
    resolved = normalize_location(location)
    strategies: list[LocationStrategy] = []
    if resolved.zipcode:
        strategies.append(LocationStrategy(resolved.zipcode, 50))
    if resolved.city:
        strategies.append(LocationStrategy(resolved.city, 30))
    if resolved.state:
        strategies.append(LocationStrategy(resolved.state))
    strategies.append(LocationStrategy(COUNTRY_FALLBACK))
    return strategies


def _job_from_payload(item: dict[str, Any]) -> JobSearchResult:
    company = item.get("company") if isinstance(item.get("company"), dict) else {}
    location = item.get("location") if isinstance(item.get("location"), dict) else {}
    category = item.get("category") if isinstance(item.get("category"), dict) else {}
    return JobSearchResult(
        id=str(item.get("id") or ""),
        title=str(item.get("title") or ""),
        company=str(company.get("display_name") or ""),
        location=str(location.get("display_name") or ""),
        description=str(item.get("description") or ""),
        url=str(item.get("redirect_url") or ""),
        salary_min=item.get("salary_min"),
        salary_max=item.get("salary_max"),
        created_at=item.get("created"),
        category=category.get("label"),
    )


class AdzunaClient:
    def __init__(
        self,
        app_id: str | None = None,
        app_key: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._app_id = app_id if app_id is not None else settings.adzuna_app_id
        self._app_key = app_key if app_key is not None else settings.adzuna_app_key
        self._timeout_s = timeout_s or settings.http_timeout_s
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._app_id and self._app_key)

    def search_jobs(self, title: str, location: str, page: int = 1) -> JobSearchResponse:
        if not self.configured:
            logger.warning("adzuna_not_configured returning empty job results")
            return JobSearchResponse(page=page)

        with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
            for strategy in location_strategies(location):
                params: dict[str, str] = {
                    "app_id": str(self._app_id),
                    "app_key": str(self._app_key),
                    "what": title,
                    "where": strategy.where,
                    "results_per_page": str(RESULTS_PER_PAGE),
                }
                if strategy.distance:
                    params["distance"] = str(strategy.distance)
                try:
                    response = client.get(f"{ADZUNA_API_URL}/jobs/us/search/{page}", params=params)
                    response.raise_for_status()
                    data = response.json()
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning("adzuna_search_failed where=%r: %s", strategy.where, exc)
                    continue

                if not isinstance(data, dict):
                    data = {}
                items = [item for item in data.get("results") or [] if isinstance(item, dict)]
                if items:
                    logger.info("adzuna_search_done where=%r jobs=%s", strategy.where, len(items))
                    return JobSearchResponse(
                        jobs=[_job_from_payload(item) for item in items],
                        total_count=int(data.get("count") or len(items)),
                        page=page,
                    )
                logger.info("adzuna_search_empty where=%r", strategy.where)

        return JobSearchResponse(page=page)

    def get_salary_data(self, title: str, location: str) -> SalaryData:
        """Salary band for a title: live postings, then monthly history, then a title heuristic."""
        if not self.configured:
            logger.warning("adzuna_not_configured using heuristic salary for title=%r", title)
            return fallback_salary_data(title)

        resolved = normalize_location(location)
        auth = {"app_id": str(self._app_id), "app_key": str(self._app_key)}
        with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
            try:
                response = client.get(
                    f"{ADZUNA_API_URL}/jobs/us/search/1",
                    params={
                        **auth,
                        "what": title,
                        "where": resolved.zipcode or resolved.state or SALARY_STATE_FALLBACK,
                        "results_per_page": str(SALARY_SAMPLE_SIZE),
                    },
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("adzuna_salary_failed title=%r: %s", title, exc)
                return fallback_salary_data(title)

            items = data.get("results") if isinstance(data, dict) else None
            band = salary_from_postings([item for item in items or [] if isinstance(item, dict)])
            if band is not None:
                return band

            try:
                response = client.get(f"{ADZUNA_API_URL}/jobs/us/history", params={**auth, "what": title})
                response.raise_for_status()
                history = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("adzuna_salary_history_failed title=%r: %s", title, exc)
                return fallback_salary_data(title)

        months = history.get("month") if isinstance(history, dict) else None
        band = salary_from_history(months if isinstance(months, dict) else {})
        return band if band is not None else fallback_salary_data(title)


def _salary_value(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return None
    return float(value)


def salary_from_postings(items: list[dict[str, Any]]) -> SalaryData | None:
    """10th/50th/90th percentile over every advertised min and max; None below five postings."""
    salaries: list[float] = []
    with_salary = 0
    for item in items:
        bounds = [_salary_value(item.get("salary_min")), _salary_value(item.get("salary_max"))]
        bounds = [value for value in bounds if value is not None]
        if bounds:
            with_salary += 1
            salaries.extend(bounds)
    if with_salary < MIN_SALARY_POSTINGS:
        return None

    salaries.sort()
    count = len(salaries)
    return SalaryData(
        min=round(salaries[int(count * 0.1)]),
        max=round(salaries[int(count * 0.9)]),
        median=round(salaries[int(count * 0.5)]),
        sample_size=with_salary,
    )


def salary_from_history(months: dict[str, Any]) -> SalaryData | None:
    values = [value for value in (_salary_value(raw) for raw in months.values()) if value is not None]
    if not values:
        return None
    average = sum(values) / len(values)
    return SalaryData(
        min=round(average * 0.8),
        max=round(average * 1.2),
        median=round(average),
        sample_size=len(values),
    )


# checked in order; "senior engineer" is priced as senior
_BASE_SALARY_BY_TITLE: tuple[tuple[tuple[str, ...], int], ...] = (
    (("senior", "lead", "principal"), 150000),
    (("manager", "director"), 140000),
    (("vp", "head of"), 200000),
    (("engineer", "developer"), 120000),
    (("analyst",), 85000),
    (("intern", "junior"), 60000),
)
DEFAULT_BASE_SALARY = 75000


def fallback_salary_data(title: str) -> SalaryData:
    lowered = title.lower()
    base = DEFAULT_BASE_SALARY
    for keywords, amount in _BASE_SALARY_BY_TITLE:
        if any(keyword in lowered for keyword in keywords):
            base = amount
            break
    return SalaryData(min=round(base * 0.8), max=round(base * 1.3), median=base, sample_size=0)
