"""Ordered rule table that assigns each search hit exactly one category.

Rules are evaluated top to bottom and the first matching rule wins, so a
hit that looks like both a profile and a conference talk is a profile.
Reordering ``CATEGORY_RULES`` changes classification outcomes; bump
``RULES_VERSION`` whenever the table changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from app.schemas.search import SearchHit

RULES_VERSION = "2024.3"
FALLBACK_CATEGORY = "mention"


@dataclass(frozen=True)
class HitText:
    url: str
    combined: str

    @classmethod
    def from_hit(cls, hit: SearchHit) -> "HitText":
        url = (hit.link or "").lower()
        title = (hit.title or "").lower()
        snippet = (hit.snippet or "").lower()
        return cls(url=url, combined=f"{url} {title} {snippet}")


@dataclass(frozen=True)
class CategoryRule:
    category: str
    predicate: Callable[[HitText], bool]


def _url_has(*markers: str) -> Callable[[HitText], bool]:
    return lambda text: any(marker in text.url for marker in markers)


def _text_has(*markers: str) -> Callable[[HitText], bool]:
    return lambda text: any(marker in text.combined for marker in markers)


def _any_of(*predicates: Callable[[HitText], bool]) -> Callable[[HitText], bool]:
    return lambda text: any(predicate(text) for predicate in predicates)


def _apple_listen(text: HitText) -> bool:
    return "apple.com" in text.url and "listen" in text.combined


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        "profile",
        _any_of(
            _url_has("/in/", "/profile", "/user", "/people/", "/author/", "/writer/", "/contributor/", "/@"),
            _text_has("profile", "about me"),
        ),
    ),
    CategoryRule(
        "news",
        _any_of(
            _url_has("/news/", "/article/", "/story/"),
            _text_has("reported", "announced", "according to", "news"),
        ),
    ),
    CategoryRule(
        "publication",
        _any_of(
            _text_has("paper", "research", "published", "journal", "study", "abstract"),
            _url_has("scholar", "arxiv", "doi.org"),
        ),
    ),
    CategoryRule(
        "speaking",
        _text_has("speaker", "keynote", "conference", "summit", "presentation", "webinar", "talk", "panel"),
    ),
    CategoryRule("patent", _text_has("patent", "inventor")),
    CategoryRule("award", _text_has("award", "honored", "recognized", "winner", "top ", "best ")),
    CategoryRule(
        "podcast",
        _any_of(_text_has("podcast", "episode"), _url_has("spotify"), _apple_listen),
    ),
    CategoryRule(
        "video",
        _any_of(_url_has("youtube", "youtu.be", "vimeo"), _text_has("video", "watch")),
    ),
    CategoryRule(
        "opensource",
        _any_of(
            _url_has("github", "gitlab"),
            _text_has("repository", "open source", "contributor", "commit"),
        ),
    ),
    CategoryRule("press", _text_has("appointed", "joined", "hired", "promoted", "ceo", "founder")),
)


def categorize_result(hit: SearchHit, rules: tuple[CategoryRule, ...] = CATEGORY_RULES) -> str:
    text = HitText.from_hit(hit)
    for rule in rules:
        if rule.predicate(text):
            return rule.category
    return FALLBACK_CATEGORY
