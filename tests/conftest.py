from __future__ import annotations

import asyncio
from datetime import date
from typing import List, Optional

import pytest

from sats_booker.config import Settings
from sats_booker.models import CandidateClass


def make_settings(**overrides) -> Settings:
    values = {
        "SATS_EMAIL": "member@example.com",
        "SATS_PASSWORD": "hunter2",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


class FakeBrowser:
    """Stands in for SatsBrowser; records calls and concurrent sessions."""

    def __init__(
        self,
        candidates: List[CandidateClass],
        *,
        book_result: bool = True,
        login_error: Optional[Exception] = None,
        tracker: Optional[dict] = None,
    ):
        self.candidates = candidates
        self.book_result = book_result
        self.login_error = login_error
        self.tracker = tracker if tracker is not None else {"active": 0, "peak": 0}
        self.booked: List[CandidateClass] = []
        self.scraped_dates: List[date] = []

    async def __aenter__(self) -> "FakeBrowser":
        self.tracker["active"] += 1
        self.tracker["peak"] = max(self.tracker["peak"], self.tracker["active"])
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.tracker["active"] -= 1

    async def login(self) -> None:
        if self.login_error:
            raise self.login_error

    async def scrape_candidates(self, target: date) -> List[CandidateClass]:
        self.scraped_dates.append(target)
        await asyncio.sleep(0.01)
        return list(self.candidates)

    async def book(self, candidate: CandidateClass) -> bool:
        self.booked.append(candidate)
        return self.book_result


class RecordingNotifier:
    def __init__(self, error: Optional[Exception] = None):
        self.reports = []
        self.error = error

    async def send(self, report) -> None:
        self.reports.append(report)
        if self.error:
            raise self.error
