"""Inbound email trigger: poll IMAP for booking requests in subject lines."""

from __future__ import annotations

import asyncio
import email
import imaplib
from dataclasses import dataclass
from email import policy
from typing import Callable, List, Optional

import structlog

from .booker import BookingService
from .config import Settings
from .parser import EXPECTED_FORMAT, parse_booking_request

LOGGER = structlog.get_logger(__name__)

HEADER_QUERY = "(BODY.PEEK[HEADER.FIELDS (SUBJECT FROM)])"


@dataclass
class InboundMessage:
    """Headers of one unread message."""

    uid: str
    sender: str
    subject: str


def decode_headers(uid: str, raw: bytes) -> InboundMessage:
    """Decode RFC 2047 encoded subject and sender headers."""
    message = email.message_from_bytes(raw, policy=policy.default)
    return InboundMessage(
        uid=uid,
        sender=str(message.get("From", "") or ""),
        subject=str(message.get("Subject", "") or ""),
    )


class InboxListener:
    """Polls the inbox and hands parsed requests to the booking service."""

    def __init__(
        self,
        settings: Settings,
        service: BookingService,
        *,
        imap_factory: Callable[[str, int], imaplib.IMAP4] = imaplib.IMAP4_SSL,
    ):
        if not settings.imap_configured:
            raise ValueError("EMAIL_USER and EMAIL_PASS are required for the inbox listener")
        self._settings = settings
        self._service = service
        self._imap_factory = imap_factory
        self._skipped: set[str] = set()
        self._handled: set[str] = set()

    async def run_forever(self) -> None:
        LOGGER.info(
            "inbox.start",
            mailbox=self._settings.email_user,
            interval_seconds=self._settings.poll_interval_seconds,
        )
        while True:
            try:
                await self.check_once()
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("inbox.poll.failed", error=str(exc))
            await asyncio.sleep(self._settings.poll_interval_seconds)

    async def check_once(self) -> int:
        """Process unread messages once; returns how many triggered a booking."""
        messages = await asyncio.to_thread(self._fetch_unseen)
        pending = [message for message in messages if message.uid not in self._skipped | self._handled]
        if not pending:
            LOGGER.debug("inbox.poll.empty")
            return 0

        LOGGER.info("inbox.poll.found", count=len(pending))
        triggered = 0
        for message in pending:
            if await self._process(message):
                triggered += 1
        return triggered

    async def _process(self, message: InboundMessage) -> bool:
        LOGGER.info("inbox.message", sender=message.sender, subject=message.subject)
        request = parse_booking_request(
            message.subject,
            default_location=self._settings.default_location,
        )
        if request is None:
            LOGGER.warning("inbox.unparseable", subject=message.subject, hint=EXPECTED_FORMAT)
            self._skipped.add(message.uid)
            return False

        await self._service.run_request(request)
        self._handled.add(message.uid)
        try:
            await asyncio.to_thread(self._mark_seen, message.uid)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("inbox.mark_seen.failed", uid=message.uid, error=str(exc))
        LOGGER.info("inbox.message.done", sender=message.sender, uid=message.uid)
        return True

    def _connect(self) -> imaplib.IMAP4:
        connection = self._imap_factory(self._settings.imap_host, self._settings.imap_port)
        connection.login(self._settings.email_user, self._settings.email_pass.get_secret_value())
        connection.select("INBOX")
        return connection

    def _fetch_unseen(self) -> List[InboundMessage]:
        connection = self._connect()
        try:
            status, data = connection.uid("SEARCH", None, "UNSEEN")
            if status != "OK":
                raise RuntimeError(f"IMAP search failed: {status}")
            uids = [uid.decode() for uid in (data[0] or b"").split()]
            messages: List[InboundMessage] = []
            for uid in uids:
                raw = self._fetch_headers(connection, uid)
                if raw is not None:
                    messages.append(decode_headers(uid, raw))
            return messages
        finally:
            connection.logout()

    @staticmethod
    def _fetch_headers(connection: imaplib.IMAP4, uid: str) -> Optional[bytes]:
        status, data = connection.uid("FETCH", uid, HEADER_QUERY)
        if status != "OK":
            LOGGER.warning("inbox.fetch.failed", uid=uid, status=status)
            return None
        for part in data:
            if isinstance(part, tuple) and len(part) > 1:
                return part[1]
        return None

    def _mark_seen(self, uid: str) -> None:
        connection = self._connect()
        try:
            status, _ = connection.uid("STORE", uid, "+FLAGS", "(\\Seen)")
            if status != "OK":
                LOGGER.error("inbox.mark_seen.failed", uid=uid, status=status)
        finally:
            connection.logout()
