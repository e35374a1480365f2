"""Booking report formatting and email delivery."""

from __future__ import annotations

import asyncio
import html
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import List, Protocol, Sequence

import structlog

from .config import Settings
from .models import BookingResult, PreferenceSet

LOGGER = structlog.get_logger(__name__)

FOOTER = "This is an automated message from your SATS Class Booker"


@dataclass
class Report:
    """Rendered outcome of a booking run."""

    subject: str
    text: str
    html: str


class Notifier(Protocol):
    async def send(self, report: Report) -> None: ...


def build_report(results: Sequence[BookingResult], prefs: PreferenceSet, now: datetime) -> Report:
    """Render a run's results; an empty list becomes a "no classes found" report."""
    stamp = now.strftime("%d.%m.%Y %H:%M")
    if not results:
        return _no_classes_report(prefs, stamp)

    booked = [result for result in results if result.booked]
    failed = [result for result in results if not result.booked]

    text_lines: List[str] = ["SATS Class Booking Results", f"Booking completed at: {stamp}", ""]
    html_parts: List[str] = [
        "<h2>SATS Class Booking Results</h2>",
        f"<p><strong>Booking completed at:</strong> {stamp}</p>",
    ]
    for heading, group in (("Successfully booked", booked), ("Failed to book", failed)):
        if not group:
            continue
        text_lines.append(f"{heading}:")
        text_lines.extend(f"- {format_result(result)}" for result in group)
        text_lines.append("")
        html_parts.append(f"<h3>{heading}:</h3>")
        html_parts.append("<ul>")
        html_parts.extend(
            f"<li><strong>{html.escape(result.name)}</strong> at {html.escape(result.time)}"
            f" - {html.escape(result.location)}</li>"
            for result in group
        )
        html_parts.append("</ul>")

    text_lines.append(FOOTER)
    html_parts.append(f"<hr><p><em>{FOOTER}</em></p>")
    return Report(
        subject=f"SATS Booking Success - {len(booked)} class(es) booked!",
        text="\n".join(text_lines),
        html="\n".join(html_parts),
    )


def format_result(result: BookingResult) -> str:
    return f"{result.name} at {result.time} - {result.location}"


def _no_classes_report(prefs: PreferenceSet, stamp: str) -> Report:
    described = prefs.describe()
    text_lines = [
        "SATS Class Booking Results",
        f"Booking attempted at: {stamp}",
        "",
        "No matching classes found for your preferences:",
        f"- Classes: {described['classes']}",
        f"- Times: {described['times']}",
        f"- Locations: {described['locations']}",
        "",
        "Check that classes exist at those times and locations and that the names match.",
        "",
        FOOTER,
    ]
    html_body = "\n".join(
        [
            "<h2>SATS Class Booking Results</h2>",
            f"<p><strong>Booking attempted at:</strong> {stamp}</p>",
            "<h3>No matching classes found</h3>",
            "<ul>",
            f"<li><strong>Classes:</strong> {html.escape(described['classes'])}</li>",
            f"<li><strong>Times:</strong> {html.escape(described['times'])}</li>",
            f"<li><strong>Locations:</strong> {html.escape(described['locations'])}</li>",
            "</ul>",
            f"<hr><p><em>{FOOTER}</em></p>",
        ]
    )
    return Report(
        subject="SATS Booking - No Classes Found",
        text="\n".join(text_lines),
        html=html_body,
    )


class EmailNotifier:
    """Sends reports over SMTP when notifications are enabled and configured."""

    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return self._settings.enable_notifications and self._settings.smtp_configured

    def build_message(self, report: Report) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = report.subject
        message["From"] = self._settings.email_user or self._settings.sats_email
        message["To"] = self._settings.notification_recipient
        message.set_content(report.text)
        message.add_alternative(report.html, subtype="html")
        return message

    async def send(self, report: Report) -> None:
        if not self.enabled:
            LOGGER.info("email.send.skipped", reason="notifications disabled or SMTP not configured")
            return
        message = self.build_message(report)
        LOGGER.info("email.send.start", to=message["To"], subject=report.subject)
        await asyncio.to_thread(self._deliver, message)
        LOGGER.info("email.send.success", to=message["To"])

    def _deliver(self, message: EmailMessage) -> None:
        settings = self._settings
        with smtplib.SMTP(settings.email_host, settings.email_port, timeout=30) as server:
            server.starttls()
            server.login(settings.email_user, settings.email_pass.get_secret_value())
            server.send_message(message)
