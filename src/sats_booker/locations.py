"""Known SATS facility names used to tell locations apart from class names."""

from __future__ import annotations

from typing import Iterable, Optional

DEFAULT_LOCATION = "Colosseum"

KNOWN_LOCATIONS: tuple[str, ...] = (
    "Akersgate",
    "Asker",
    "Bekkestua",
    "Bekkestua stasjon",
    "Billingstad",
    "Bislett",
    "Bjørvika",
    "CC Vest",
    "Carl Berner",
    "Colosseum",
    "Fagerborg",
    "Fornebu",
    "Hasle",
    "Hellerud",
    "Hoff",
    "Ila",
    "Jessheim",
    "Kalbakken",
    "Kampen",
    "Karlsrud",
    "Kolbotn",
    "Lambertseter",
    "Lillestrøm",
    "Linderud",
    "Metro",
    "Njård",
    "Nydalen",
    "Oslo City",
    "Ringnes Park",
    "Ryen",
    "Røa",
    "Sagene",
    "Sandvika Panorama",
    "Schous plass",
    "Sjølyst",
    "Skedsmokorset",
    "Slemmestad",
    "Solli",
    "Storo",
    "Triaden",
    "Ullevaal",
    "Vinderen",
    "Yoga Aker Brygge",
    "Yoga Majorstuen",
)


def find_location(text: str, locations: Iterable[str] = KNOWN_LOCATIONS) -> Optional[str]:
    """Return the canonical location name if ``text`` is exactly one (ignoring case)."""
    needle = " ".join(text.split()).casefold()
    if not needle:
        return None
    for location in locations:
        if location.casefold() == needle:
            return location
    return None


def split_leading_location(
    words: list[str], locations: Iterable[str] = KNOWN_LOCATIONS
) -> Optional[tuple[str, list[str]]]:
    """Find a location made of the first word(s); longest name wins."""
    locations = tuple(locations)
    for size in range(len(words) - 1, 0, -1):
        match = find_location(" ".join(words[:size]), locations)
        if match:
            return match, words[size:]
    return None


def split_trailing_location(
    words: list[str], locations: Iterable[str] = KNOWN_LOCATIONS
) -> Optional[tuple[str, list[str]]]:
    """Find a location made of the last word(s); longest name wins."""
    locations = tuple(locations)
    for size in range(len(words) - 1, 0, -1):
        match = find_location(" ".join(words[-size:]), locations)
        if match:
            return match, words[:-size]
    return None
