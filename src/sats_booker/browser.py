"""Playwright automation for the SATS member portal."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

import structlog
from playwright.async_api import Browser, Error as PlaywrightError, Page, async_playwright

from .config import Settings
from .models import CandidateClass

LOGGER = structlog.get_logger(__name__)

EMAIL_SELECTOR = 'input[type="email"]'
PASSWORD_SELECTOR = 'input[type="password"]'
SUBMIT_SELECTOR = 'button[type="submit"]'
SCHEDULE_SELECTOR = ".class-schedule"
CLASS_ITEM_SELECTOR = ".class-item"

_SCRAPE_SCRIPT = """(nodes) => nodes.map((node) => {
    const text = (selector) => (node.querySelector(selector)?.textContent || '').trim();
    return {
        name: text('.class-name'),
        time: text('.class-time'),
        location: text('.class-location'),
        date: node.dataset.date || text('.class-date'),
        classId: node.dataset.classId || null,
        fullyBooked: node.classList.contains('fully-booked'),
    };
})"""


class SatsBrowser:
    """Helper that manages a logged-in Playwright session."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "SatsBrowser":
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._settings.headless,
            args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        context = await self._browser.new_context(viewport={"width": 1280, "height": 720})
        self._page = await context.new_page()
        self._page.set_default_timeout(self._settings.timeout_seconds * 1000)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._page:
            await self._page.context.close()
        if self._browser:
            await self._browser.close()
            LOGGER.info("browser.closed")
        if self._playwright:
            await self._playwright.stop()

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Playwright page has not been initialised")
        return self._page

    async def login(self) -> None:
        """Log into the SATS member portal."""
        page = self.page
        login_url = self._settings.url("login")
        LOGGER.info("login.start", url=login_url, account=self._settings.sats_email)

        try:
            await page.goto(login_url, wait_until="domcontentloaded")
            await page.wait_for_selector(EMAIL_SELECTOR)
            await page.fill(EMAIL_SELECTOR, self._settings.sats_email)
            await page.fill(PASSWORD_SELECTOR, self._settings.sats_password.get_secret_value())
            await page.click(SUBMIT_SELECTOR)
            await page.wait_for_load_state("networkidle")
        except PlaywrightError as exc:
            LOGGER.error("login.failed", error=str(exc))
            raise RuntimeError(f"Login failed: {exc}") from exc

        if "/login" in page.url.lower():
            LOGGER.error("login.failed", current_url=page.url)
            raise RuntimeError("Login failed - still on login page after submission")

        LOGGER.info("login.complete", redirected_to=page.url)

    async def scrape_candidates(self, target: date) -> List[CandidateClass]:
        """Collect every class listed for ``target``, bookable or not."""
        page = self.page
        url = self._settings.class_schedule_url(target)
        LOGGER.info("schedule.load.start", url=url, date_iso=target.isoformat())

        await page.goto(url, wait_until="domcontentloaded")
        await page.wait_for_selector(SCHEDULE_SELECTOR)
        raw_items = await page.locator(CLASS_ITEM_SELECTOR).evaluate_all(_SCRAPE_SCRIPT)

        candidates = [
            candidate
            for candidate in (to_candidate(item) for item in raw_items)
            if candidate.name and is_on_date(candidate.date, target)
        ]
        LOGGER.info(
            "schedule.load.success",
            date_iso=target.isoformat(),
            scraped=len(raw_items),
            candidates=len(candidates),
        )
        return candidates

    async def book(self, candidate: CandidateClass) -> bool:
        """Open the class, confirm the booking and wait for the success banner."""
        page = self.page
        LOGGER.info("booking.attempt", name=candidate.name, time=candidate.time, location=candidate.location)

        if candidate.class_id:
            target = page.locator(f'[data-class-id="{candidate.class_id}"]')
        else:
            target = (
                page.locator(CLASS_ITEM_SELECTOR)
                .filter(has_text=candidate.name)
                .filter(has_text=candidate.time)
            )

        try:
            await target.first.click()
            await page.wait_for_selector(".booking-modal")
            await page.click(".confirm-booking-btn")
            await page.wait_for_selector(".booking-success", timeout=5000)
        except PlaywrightError as exc:
            LOGGER.error("booking.failed", name=candidate.name, time=candidate.time, error=str(exc))
            return False

        LOGGER.info("booking.success", name=candidate.name, time=candidate.time)
        return True


def to_candidate(item: dict[str, Any]) -> CandidateClass:
    """Build a CandidateClass from one scraped ``.class-item`` record."""
    return CandidateClass(
        name=_clean_text(item.get("name")),
        time=_clean_text(item.get("time")),
        location=_clean_text(item.get("location")),
        bookable=not bool(item.get("fullyBooked")),
        date=_clean_text(item.get("date")) or None,
        class_id=(str(item["classId"]) if item.get("classId") else None),
    )


def is_on_date(label: Optional[str], target: date) -> bool:
    """
    Whether a scraped date label refers to ``target``.

    Items without a label are kept; the timetable URL already selects the day.
    """
    if not label:
        return True
    text = label.lower()
    return target.isoformat() in text or f"{target:%d.%m}" in text


def _clean_text(value: Any) -> str:
    return " ".join(str(value or "").split())
