import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from structlog.testing import capture_logs

from sats_booker import scheduler as scheduler_module
from sats_booker.models import PreferenceSet
from sats_booker.scheduler import DailyScheduler

from conftest import make_settings

OSLO = ZoneInfo("Europe/Oslo")


class RecordingService:
    def __init__(self, failures: int = 0):
        self.runs = []
        self.failures = failures

    async def run(self, prefs):
        self.runs.append(prefs)
        if len(self.runs) <= self.failures:
            raise RuntimeError("browser exploded")
        return []


class StopLoop(Exception):
    pass


def test_trigger_now_runs_configured_preferences():
    settings = make_settings(PREFERRED_CLASSES="Yoga,Pilates", PREFERRED_LOCATIONS="Storo")
    service = RecordingService()

    asyncio.run(DailyScheduler(settings, service).trigger_now())

    assert service.runs == [PreferenceSet(classes=("Yoga", "Pilates"), locations=("Storo",))]


def test_run_forever_fires_once_per_slot_and_survives_failures(monkeypatch):
    clock = iter(
        [
            datetime(2024, 5, 1, 8, 0, tzinfo=OSLO),
            # Woke a little before the slot it slept towards.
            datetime(2024, 5, 1, 9, 59, 59, tzinfo=OSLO),
            datetime(2024, 5, 2, 10, 0, 1, tzinfo=OSLO),
        ]
    )
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 3:
            raise StopLoop

    monkeypatch.setattr(scheduler_module, "now_in_timezone", lambda zone: next(clock))
    monkeypatch.setattr(scheduler_module.asyncio, "sleep", fake_sleep)

    service = RecordingService(failures=1)
    with capture_logs() as logs:
        with pytest.raises(StopLoop):
            asyncio.run(DailyScheduler(make_settings(), service).run_forever())

    assert len(service.runs) == 2
    assert sleeps[0] == 2 * 3600
    assert sleeps[1] == 24 * 3600 + 1
    next_runs = [entry["at"] for entry in logs if entry["event"] == "scheduler.next_run"]
    assert next_runs == [
        "2024-05-01T10:00:00+02:00",
        "2024-05-02T10:00:00+02:00",
        "2024-05-03T10:00:00+02:00",
    ]
    assert any(entry["event"] == "scheduler.run_failed" for entry in logs)
