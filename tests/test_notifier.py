import asyncio
from datetime import datetime

import pytest

from sats_booker.models import BookingResult, PreferenceSet
from sats_booker.notifier import EmailNotifier, build_report

from conftest import make_settings

NOW = datetime(2024, 5, 1, 10, 0)


def test_success_report_lists_booked_and_failed():
    results = [
        BookingResult("Yoga", "18:00", "Storo", True),
        BookingResult("Pilates", "19:00", "Ryen", False),
    ]
    report = build_report(results, PreferenceSet(), NOW)

    assert report.subject == "SATS Booking Success - 1 class(es) booked!"
    assert "Successfully booked:\n- Yoga at 18:00 - Storo" in report.text
    assert "Failed to book:\n- Pilates at 19:00 - Ryen" in report.text
    assert "01.05.2024 10:00" in report.text
    assert "<strong>Yoga</strong> at 18:00 - Storo" in report.html


def test_empty_results_report_no_classes_found():
    report = build_report([], PreferenceSet(classes=("Yoga",), times=("18:00",)), NOW)

    assert report.subject == "SATS Booking - No Classes Found"
    assert "- Classes: Yoga" in report.text
    assert "- Times: 18:00" in report.text
    assert "- Locations: Any" in report.text


def test_html_is_escaped():
    report = build_report([BookingResult("<b>Yoga</b>", "18:00", "Storo", True)], PreferenceSet(), NOW)
    assert "&lt;b&gt;Yoga&lt;/b&gt;" in report.html


def test_email_notifier_skips_when_disabled():
    notifier = EmailNotifier(make_settings(EMAIL_HOST="smtp.example.com", EMAIL_USER="bot@example.com", EMAIL_PASS="pw"))
    assert not notifier.enabled
    asyncio.run(notifier.send(build_report([], PreferenceSet(), NOW)))


@pytest.fixture
def enabled_settings():
    return make_settings(
        ENABLE_NOTIFICATIONS="true",
        EMAIL_HOST="smtp.example.com",
        EMAIL_USER="bot@example.com",
        EMAIL_PASS="pw",
        EMAIL_TO="me@example.com",
    )


def test_email_message_headers(enabled_settings):
    notifier = EmailNotifier(enabled_settings)
    assert notifier.enabled
    message = notifier.build_message(build_report([], PreferenceSet(), NOW))

    assert message["Subject"] == "SATS Booking - No Classes Found"
    assert message["From"] == "bot@example.com"
    assert message["To"] == "me@example.com"
    assert message.is_multipart()


def test_email_send_uses_smtp(monkeypatch, enabled_settings):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout):
            sent.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            sent.append(("starttls",))

        def login(self, user, password):
            sent.append(("login", user, password))

        def send_message(self, message):
            sent.append(("send", message["Subject"]))

    monkeypatch.setattr("sats_booker.notifier.smtplib.SMTP", FakeSMTP)
    asyncio.run(EmailNotifier(enabled_settings).send(build_report([], PreferenceSet(), NOW)))

    assert sent == [
        ("connect", "smtp.example.com", 587),
        ("starttls",),
        ("login", "bot@example.com", "pw"),
        ("send", "SATS Booking - No Classes Found"),
    ]
