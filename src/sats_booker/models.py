"""Shared data models used across the SATS booker."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

ANY_CLASS = "Any"

_TIME_PATTERN = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class BookingRequest:
    """A single class the user asked for, parsed from text or configuration."""

    class_name: str
    time: str
    location: str

    def __post_init__(self) -> None:
        if not _TIME_PATTERN.match(self.time):
            raise ValueError(f"time must be HH:MM, got {self.time!r}")

    @property
    def is_any_class(self) -> bool:
        return self.class_name.strip().lower() == ANY_CLASS.lower()

    def as_subject(self) -> str:
        """Render the request the way a user would type it in a subject line."""
        return f"{self.class_name} {self.time} {self.location}"


@dataclass(frozen=True)
class PreferenceSet:
    """
    Filter criteria for scraped classes.

    Each tuple is OR-ed internally and the three dimensions are AND-ed. An empty
    tuple matches everything.
    """

    classes: tuple[str, ...] = ()
    times: tuple[str, ...] = ()
    locations: tuple[str, ...] = ()

    @classmethod
    def from_values(
        cls,
        classes: Iterable[str] = (),
        times: Iterable[str] = (),
        locations: Iterable[str] = (),
    ) -> "PreferenceSet":
        return cls(
            classes=_clean(classes),
            times=_clean(times),
            locations=_clean(locations),
        )

    @classmethod
    def from_request(cls, request: BookingRequest) -> "PreferenceSet":
        """Single-element preferences for an explicit request; "Any" class is a wildcard."""
        classes = () if request.is_any_class else (request.class_name,)
        return cls.from_values(classes, (request.time,), (request.location,))

    @property
    def is_wildcard(self) -> bool:
        return not (self.classes or self.times or self.locations)

    def describe(self) -> dict[str, str]:
        return {
            "classes": ", ".join(self.classes) or ANY_CLASS,
            "times": ", ".join(self.times) or ANY_CLASS,
            "locations": ", ".join(self.locations) or ANY_CLASS,
        }


@dataclass
class CandidateClass:
    """A class scraped from the booking portal."""

    name: str
    time: str
    location: str
    bookable: bool = True
    date: Optional[str] = None
    class_id: Optional[str] = None


@dataclass
class BookingResult:
    """Outcome of one booking attempt, reported to the notifiers."""

    name: str
    time: str
    location: str
    booked: bool

    @classmethod
    def from_candidate(cls, candidate: CandidateClass, booked: bool) -> "BookingResult":
        return cls(
            name=candidate.name,
            time=candidate.time,
            location=candidate.location,
            booked=booked,
        )


def _clean(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(value.strip() for value in values if value and value.strip())
