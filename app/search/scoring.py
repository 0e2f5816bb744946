from __future__ import annotations

from datetime import date

from app.schemas.search import SearchHit

_BASE_SCORE = 50
_FULL_NAME_IN_TITLE_BONUS = 30
_NAME_PART_IN_TITLE_BONUS = 10
_NAME_IN_SNIPPET_BONUS = 15
_CURRENT_YEAR_BONUS = 10
_PRIOR_YEAR_BONUS = 5


def _clamp_score(value: int) -> int:
    return max(0, min(100, value))


def _recency_bonus(date_text: str | None, current_year: int) -> int:
    if not date_text:
        return 0
    lowered = date_text.lower()
    if str(current_year) in lowered or str(current_year + 1) in lowered:
        return _CURRENT_YEAR_BONUS
    if str(current_year - 1) in lowered:
        return _PRIOR_YEAR_BONUS
    return 0


def calculate_relevance(hit: SearchHit, name: str, *, current_year: int | None = None) -> int:
    """Score a search hit against the person being searched for.

    Base 50; +30 when the full name is in the title, otherwise +10 per name
    part (longer than two characters) found in the title; +15 when the full
    name is in the snippet; +10/+5 for dates in the current/prior year.
    Clamped to 0..100.
    """
    year = current_year if current_year is not None else date.today().year
    score = _BASE_SCORE

    title_lower = (hit.title or "").lower()
    snippet_lower = (hit.snippet or "").lower()
    name_lower = (name or "").strip().lower()

    if name_lower:
        if name_lower in title_lower:
            score += _FULL_NAME_IN_TITLE_BONUS
        else:
            matched_parts = [
                part for part in name_lower.split() if len(part) > 2 and part in title_lower
            ]
            score += len(matched_parts) * _NAME_PART_IN_TITLE_BONUS

        if name_lower in snippet_lower:
            score += _NAME_IN_SNIPPET_BONUS

    score += _recency_bonus(hit.date, year)
    return _clamp_score(score)
