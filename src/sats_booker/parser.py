"""Turn a free-text email subject into a BookingRequest."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .locations import (
    DEFAULT_LOCATION,
    KNOWN_LOCATIONS,
    find_location,
    split_leading_location,
    split_trailing_location,
)
from .models import ANY_CLASS, BookingRequest

EXPECTED_FORMAT = 'Expected format: "BOOK Pilates 16:00" or "SATS Yoga 18:00 Oslo City"'

_PREFIX = re.compile(r"^(?:(?:re|fwd?):|(?:book|sats)\b)[\s:]*", re.IGNORECASE)
_COLON_TIME = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})(?!\d)")
_COMPACT_TIME = re.compile(r"(?<!\d)(\d{2})(\d{2})(?!\d)")


def strip_prefixes(subject: str) -> str:
    """Remove reply/forward markers and the BOOK/SATS keywords."""
    text = subject.strip()
    while True:
        stripped = _PREFIX.sub("", text, count=1).strip()
        if stripped == text:
            return text
        text = stripped


def parse_booking_request(
    subject: Optional[str],
    *,
    default_location: str = DEFAULT_LOCATION,
    locations: Iterable[str] = KNOWN_LOCATIONS,
) -> Optional[BookingRequest]:
    """
    Parse subjects such as ``"Pilates 16:00"``, ``"Yoga 1800 Oslo City"`` or
    ``"Storo 1400 Pilates"``.

    Returns ``None`` when no valid time is present. The location falls back to
    ``default_location``; the class falls back to ``"Any"``.
    """
    if not subject:
        return None

    text = strip_prefixes(subject)
    match = _COLON_TIME.search(text) or _COMPACT_TIME.search(text)
    if not match:
        return None

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    time = f"{hours:02d}:{minutes:02d}"

    before = " ".join(text[: match.start()].split())
    after = " ".join(text[match.end():].split())

    known = tuple(locations)
    if default_location and find_location(default_location, known) is None:
        known = known + (default_location,)

    class_name, location = _resolve(before, after, known)
    return BookingRequest(
        class_name=class_name or ANY_CLASS,
        time=time,
        location=location or default_location,
    )


def _resolve(before: str, after: str, locations: tuple[str, ...]) -> tuple[str, Optional[str]]:
    if before and after:
        location = find_location(after, locations)
        if location:
            return before, location
        location = find_location(before, locations)
        if location:
            return after, location
        return f"{before} {after}", None

    if before or not after:
        return _class_or_location(before, locations)

    words = after.split()
    if len(words) == 1:
        return _class_or_location(after, locations)

    location = find_location(after, locations)
    if location:
        return ANY_CLASS, location
    for split in (split_leading_location, split_trailing_location):
        found = split(words, locations)
        if found:
            location, rest = found
            return " ".join(rest), location
    return after, None


def _class_or_location(text: str, locations: tuple[str, ...]) -> tuple[str, Optional[str]]:
    location = find_location(text, locations)
    if location:
        return ANY_CLASS, location
    return text, None
