"""Decide which scraped classes satisfy a PreferenceSet."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .models import CandidateClass, PreferenceSet


def matches_preferences(candidate: CandidateClass, prefs: PreferenceSet) -> bool:
    """True when every non-empty preference dimension has an entry contained in the field."""
    return (
        _dimension_matches(candidate.name, prefs.classes)
        and _dimension_matches(candidate.time, prefs.times)
        and _dimension_matches(candidate.location, prefs.locations)
    )


def filter_candidates(
    candidates: Iterable[CandidateClass], prefs: PreferenceSet
) -> List[CandidateClass]:
    """Bookable candidates that match ``prefs``, in scrape order."""
    return [
        candidate
        for candidate in candidates
        if candidate.bookable and matches_preferences(candidate, prefs)
    ]


def select_candidate(
    candidates: Iterable[CandidateClass], prefs: PreferenceSet
) -> Optional[CandidateClass]:
    """
    Pick the class to book.

    The first qualifying candidate in scrape order wins. There is deliberately
    no scoring or closest-match ranking.
    """
    for candidate in candidates:
        if candidate.bookable and matches_preferences(candidate, prefs):
            return candidate
    return None


def _dimension_matches(value: Optional[str], wanted: tuple[str, ...]) -> bool:
    needles = [entry.strip().casefold() for entry in wanted if entry.strip()]
    if not needles:
        return True
    haystack = (value or "").casefold()
    return any(needle in haystack for needle in needles)
