"""Telegram messaging helper."""

from __future__ import annotations

import httpx
import structlog

from .config import Settings
from .notifier import Report

LOGGER = structlog.get_logger(__name__)


def format_message(report: Report) -> str:
    """Telegram gets the plain-text body under the subject line."""
    return f"{report.subject}\n\n{report.text}".strip()


class TelegramNotifier:
    """Posts booking reports to a Telegram chat."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._settings.telegram_api_endpoint and self._settings.telegram_chat_id)

    async def send(self, report: Report) -> None:
        """Send the composed message to Telegram."""
        if not self.enabled:
            LOGGER.debug("telegram.send.skipped")
            return

        payload = {
            "chat_id": self._settings.telegram_chat_id,
            "text": format_message(report),
            "disable_web_page_preview": True,
        }
        url = f"{self._settings.telegram_api_endpoint}/sendMessage"
        LOGGER.info("telegram.send.start", chat_id=self._settings.telegram_chat_id)

        async with httpx.AsyncClient(timeout=15.0, transport=self._transport) as client:
            response = await client.post(url, json=payload)
        if response.is_success:
            LOGGER.info("telegram.send.success")
            return
        LOGGER.error("telegram.send.failed", status_code=response.status_code, body=response.text)
        raise RuntimeError(f"Telegram send failed with {response.status_code}: {response.text}")
