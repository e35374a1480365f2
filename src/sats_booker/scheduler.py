"""Daily scheduled trigger."""

from __future__ import annotations

import asyncio
from typing import List

import structlog

from .booker import BookingService
from .config import Settings
from .date_window import next_run_at, now_in_timezone, seconds_until
from .models import BookingResult

LOGGER = structlog.get_logger(__name__)


class DailyScheduler:
    """Runs the configured preferences once a day at ``BOOKING_TIME``."""

    def __init__(self, settings: Settings, service: BookingService):
        self._settings = settings
        self._service = service

    async def trigger_now(self) -> List[BookingResult]:
        LOGGER.info("scheduler.trigger", mode="manual")
        return await self._service.run(self._settings.preferences())

    async def run_forever(self) -> None:
        LOGGER.info(
            "scheduler.start",
            booking_time=self._settings.booking_time,
            timezone=self._settings.timezone,
        )
        due = None
        while True:
            now = now_in_timezone(self._settings.zone)
            # Strictly after the previous slot.
            due = next_run_at(max(now, due) if due else now, self._settings.booking_time)
            LOGGER.info("scheduler.next_run", at=due.isoformat())
            await asyncio.sleep(seconds_until(now, due))

            LOGGER.info("scheduler.trigger", mode="scheduled")
            try:
                await self._service.run(self._settings.preferences())
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("scheduler.run_failed", error=str(exc))
