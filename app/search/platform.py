from __future__ import annotations

from urllib.parse import urlparse

FALLBACK_PLATFORM = "web"

# hostnames whose generic label would be misleading
_KNOWN_HOSTS: dict[str, str] = {
    "x.com": "twitter",
    "mobile.twitter.com": "twitter",
    "youtu.be": "youtube",
    "m.youtube.com": "youtube",
    "scholar.google.com": "scholar",
    "patents.google.com": "patents",
    "podcasts.apple.com": "applepodcasts",
    "open.spotify.com": "spotify",
    "lnkd.in": "linkedin",
}

_SECOND_LEVEL_SUFFIXES = {"co", "com", "org", "net", "ac", "gov", "edu"}


def identify_platform(url: str) -> str:
    """Return a short platform label for a URL, e.g. 'linkedin' or 'bbc'."""
    try:
        hostname = (urlparse((url or "").strip()).hostname or "").lower()
    except ValueError:
        return FALLBACK_PLATFORM

    if hostname.startswith("www."):
        hostname = hostname[4:]
    hostname = hostname.strip(".")
    if not hostname:
        return FALLBACK_PLATFORM

    known = _KNOWN_HOSTS.get(hostname)
    if known:
        return known

    parts = [part for part in hostname.split(".") if part]
    if not parts:
        return FALLBACK_PLATFORM
    if len(parts) == 1:
        return parts[0]
    if len(parts) >= 3 and parts[-2] in _SECOND_LEVEL_SUFFIXES:
        return parts[-3]
    return parts[-2]
