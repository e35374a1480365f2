"""One booking run: log in, scrape, pick the first matching class, book, report."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Callable, List, Optional, Sequence

import structlog

from .browser import SatsBrowser
from .config import Settings
from .date_window import now_in_timezone, target_date
from .matching import filter_candidates, select_candidate
from .models import BookingRequest, BookingResult, PreferenceSet
from .notifier import EmailNotifier, Notifier, build_report
from .telegram import TelegramNotifier

LOGGER = structlog.get_logger(__name__)

BrowserFactory = Callable[[Settings], SatsBrowser]


class BookingService:
    """
    Runs bookings for both the scheduler and the inbox listener.

    Only one run drives the browser at a time; a trigger that arrives while a
    run is in progress waits for it to finish.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        browser_factory: BrowserFactory = SatsBrowser,
        notifiers: Optional[Sequence[Notifier]] = None,
    ):
        self._settings = settings
        self._browser_factory = browser_factory
        self._notifiers: Sequence[Notifier] = (
            notifiers
            if notifiers is not None
            else (EmailNotifier(settings), TelegramNotifier(settings))
        )
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run_request(self, request: BookingRequest, *, today: Optional[date] = None) -> List[BookingResult]:
        LOGGER.info(
            "booking.request",
            class_name=request.class_name,
            time=request.time,
            location=request.location,
        )
        return await self.run(PreferenceSet.from_request(request), today=today)

    async def run(self, prefs: PreferenceSet, *, today: Optional[date] = None) -> List[BookingResult]:
        """Book the first bookable class matching ``prefs``; never raises on browser errors."""
        if self.is_running:
            LOGGER.info("booking.waiting", reason="another run is in progress")

        async with self._lock:
            today = today or now_in_timezone(self._settings.zone).date()
            target = target_date(today, days_in_advance=self._settings.days_in_advance)
            LOGGER.info("booking.start", target_date=target.isoformat(), **prefs.describe())

            results: List[BookingResult] = []
            try:
                async with self._browser_factory(self._settings) as browser:
                    await browser.login()
                    candidates = await browser.scrape_candidates(target)
                    LOGGER.info(
                        "booking.candidates",
                        scraped=len(candidates),
                        matching=len(filter_candidates(candidates, prefs)),
                    )
                    chosen = select_candidate(candidates, prefs)
                    if chosen is None:
                        LOGGER.warning("booking.no_match", target_date=target.isoformat())
                    else:
                        booked = await browser.book(chosen)
                        results.append(BookingResult.from_candidate(chosen, booked))
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("booking.run_failed", error=str(exc))
                if not results:
                    return results

            LOGGER.info(
                "booking.complete",
                attempted=len(results),
                booked=sum(1 for result in results if result.booked),
            )
            await self._notify(results, prefs)
            return results

    async def _notify(self, results: List[BookingResult], prefs: PreferenceSet) -> None:
        report = build_report(results, prefs, now_in_timezone(self._settings.zone))
        for notifier in self._notifiers:
            try:
                await notifier.send(report)
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception(
                    "booking.notify_failed",
                    notifier=type(notifier).__name__,
                    error=str(exc),
                )
