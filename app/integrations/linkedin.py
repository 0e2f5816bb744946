from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from app.core.config import settings
from app.schemas.resume import Education, LinkedInPost, LinkedInProfile, WorkExperience

logger = logging.getLogger(__name__)

RAPIDAPI_HOST = "fresh-linkedin-profile-data.p.rapidapi.com"
RAPIDAPI_BASE_URL = f"https://{RAPIDAPI_HOST}"
PROXYCURL_API_URL = "https://nubela.co/proxycurl/api/v2"
MAX_POSTS = 10


class ProfileFetchError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, code: str = "profile_fetch_failed"):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class LinkedInProfileFetcher(Protocol):
    def fetch_profile(self, url: str) -> LinkedInProfile: ...


class LinkedInEmailLookup(Protocol):
    def lookup_by_email(self, email: str) -> str | None: ...


def _year(value: Any) -> str | None:
    if value in (None, ""):
        return None
    return str(value)


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def profile_from_payload(url: str, data: dict[str, Any], posts: list[LinkedInPost] | None = None) -> LinkedInProfile:
    full_name = (
        data.get("full_name")
        or f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
        or None
    )
    location = ", ".join(str(part) for part in (data.get("city"), data.get("country")) if part) or None

    experience: list[WorkExperience] = []
    for item in data.get("experiences") or []:
        if not isinstance(item, dict):
            continue
        is_current = bool(item.get("is_current"))
        experience.append(
            WorkExperience(
                company=str(item.get("company") or "Unknown"),
                title=str(item.get("title") or "Unknown"),
                location=item.get("location"),
                description=item.get("description"),
                start_date=_year(item.get("start_year")),
                end_date=None if is_current else _year(item.get("end_year")),
                current=is_current,
            )
        )

    education: list[Education] = []
    for item in data.get("educations") or []:
        if not isinstance(item, dict):
            continue
        education.append(
            Education(
                institution=str(item.get("school") or "Unknown"),
                degree=item.get("degree"),
                field=item.get("field_of_study"),
                start_date=_year(item.get("start_year")),
                end_date=_year(item.get("end_year")),
            )
        )

    skills = [str(skill) for skill in data.get("skills") or [] if skill]

    return LinkedInProfile(
        url=url,
        full_name=full_name,
        headline=data.get("headline"),
        summary=data.get("about"),
        location=location,
        industry=data.get("company_industry"),
        connections=_int_or_none(data.get("connection_count")),
        experience=experience,
        education=education,
        skills=skills,
        profile_picture=data.get("profile_image_url"),
        recent_posts=posts or [],
    )


def _post_from_payload(item: dict[str, Any]) -> LinkedInPost:
    video = item.get("video") if isinstance(item.get("video"), dict) else {}
    return LinkedInPost(
        text=str(item.get("text") or ""),
        post_url=str(item.get("post_url") or ""),
        posted_at=str(item.get("posted") or ""),
        time_ago=str(item.get("time") or ""),
        num_reactions=_int_or_none(item.get("num_reactions")) or 0,
        num_comments=_int_or_none(item.get("num_comments")) or 0,
        num_reposts=_int_or_none(item.get("num_reposts")) or 0,
        images=[
            str(image.get("url"))
            for image in item.get("images") or []
            if isinstance(image, dict) and image.get("url")
        ],
        video_url=video.get("stream_url"),
    )


class LinkedInDataClient:
    """RapidAPI "Fresh LinkedIn Profile Data" client (profile + recent posts)."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = (api_key if api_key is not None else settings.rapidapi_key or "").strip()
        self._timeout_s = timeout_s or settings.http_timeout_s
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {"x-rapidapi-host": RAPIDAPI_HOST, "x-rapidapi-key": self._api_key}

    def fetch_profile(self, url: str) -> LinkedInProfile:
        if not self._api_key:
            raise ProfileFetchError("RAPIDAPI_KEY is not configured", code="not_configured")

        logger.info("linkedin_fetch url=%s", url)
        with httpx.Client(timeout=self._timeout_s, headers=self._headers(), transport=self._transport) as client:
            try:
                response = client.get(
                    f"{RAPIDAPI_BASE_URL}/enrich-lead",
                    params={"linkedin_url": url, "include_skills": "true"},
                )
            except httpx.HTTPError as exc:
                raise ProfileFetchError(f"LinkedIn profile request failed: {exc}") from exc

            if response.status_code >= 400:
                raise ProfileFetchError(
                    f"LinkedIn profile request failed: {response.status_code}",
                    status_code=response.status_code,
                )
            try:
                payload = response.json()
            except ValueError as exc:
                raise ProfileFetchError("LinkedIn profile payload is not JSON", code="malformed") from exc

            data = payload.get("data", payload) if isinstance(payload, dict) else None
            if not isinstance(data, dict):
                raise ProfileFetchError("LinkedIn profile payload has an unexpected shape", code="malformed")

            posts = self._fetch_posts(client, url)

        profile = profile_from_payload(url, data, posts)
        logger.info(
            "linkedin_fetch_done url=%s name=%r headline=%r connections=%s",
            url,
            profile.full_name,
            profile.headline,
            profile.connections,
        )
        return profile

    def _fetch_posts(self, client: httpx.Client, url: str) -> list[LinkedInPost]:
        try:
            response = client.get(
                f"{RAPIDAPI_BASE_URL}/get-profile-posts",
                params={"linkedin_url": url, "type": "posts"},
            )
            if response.status_code >= 400:
                logger.warning("linkedin_posts_failed url=%s status=%s", url, response.status_code)
                return []
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("linkedin_posts_failed url=%s: %s", url, exc)
            return []

        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        return [_post_from_payload(item) for item in items[:MAX_POSTS] if isinstance(item, dict)]


class ProxycurlClient:
    """Resolve a LinkedIn profile URL from a work email."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = (api_key if api_key is not None else settings.proxycurl_api_key or "").strip()
        self._timeout_s = timeout_s or settings.http_timeout_s
        self._transport = transport

    def lookup_by_email(self, email: str) -> str | None:
        if not self._api_key:
            raise ProfileFetchError("PROXYCURL_API_KEY is not configured", code="not_configured")

        try:
            with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
                response = client.get(
                    f"{PROXYCURL_API_URL}/linkedin/profile/resolve/email",
                    params={"email": email, "lookup_depth": "deep"},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            raise ProfileFetchError(f"Proxycurl lookup failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise ProfileFetchError(
                f"Proxycurl lookup failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ProfileFetchError("Proxycurl payload is not JSON", code="malformed") from exc
        url = data.get("linkedin_profile_url") if isinstance(data, dict) else None
        return str(url) if url else None


class NullEmailLookup:
    def lookup_by_email(self, email: str) -> str | None:
        logger.info("linkedin_email_lookup_unavailable")
        return None


def default_email_lookup() -> LinkedInEmailLookup:
    if settings.proxycurl_api_key:
        return ProxycurlClient()
    return NullEmailLookup()
