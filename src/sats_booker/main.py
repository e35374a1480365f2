"""Entry point for the SATS booker."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import structlog

from .booker import BookingService
from .config import Settings
from .inbox import InboxListener
from .locations import DEFAULT_LOCATION
from .parser import EXPECTED_FORMAT, parse_booking_request
from .scheduler import DailyScheduler


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


async def run(settings: Settings, args: argparse.Namespace) -> None:
    """Start the trigger(s) selected on the command line."""
    service = BookingService(settings)
    scheduler = DailyScheduler(settings, service)

    if args.now:
        await scheduler.trigger_now()
        return

    if args.email:
        listener = InboxListener(settings, service)
        if args.once:
            await listener.check_once()
        else:
            await listener.run_forever()
        return

    if args.serve:
        listener = InboxListener(settings, service)
        await asyncio.gather(scheduler.run_forever(), listener.run_forever())
        return

    await scheduler.run_forever()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Book SATS group classes automatically.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--now", action="store_true", help="Run one booking immediately with configured preferences.")
    mode.add_argument("--email", action="store_true", help="Listen for booking requests by email.")
    mode.add_argument("--serve", action="store_true", help="Run the daily schedule and the email listener together.")
    mode.add_argument("--parse", metavar="SUBJECT", help="Show how an email subject would be interpreted.")
    parser.add_argument("--once", action="store_true", help="With --email, check the inbox a single time.")
    parser.add_argument(
        "--default-location",
        default=DEFAULT_LOCATION,
        help="Location used by --parse when the subject names none.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def preview(subject: str, default_location: str) -> int:
    """Print the BookingRequest parsed from ``subject``."""
    request = parse_booking_request(subject, default_location=default_location)
    if request is None:
        LOGGER.warning("parse.unparseable", subject=subject, hint=EXPECTED_FORMAT)
        return 1
    print(f"class={request.class_name} time={request.time} location={request.location}")
    return 0


def cli(argv: Optional[list[str]] = None) -> None:
    """Console script entrypoint."""
    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.INFO)

    if args.parse is not None:
        raise SystemExit(preview(args.parse, args.default_location))

    try:
        settings = Settings()
    except Exception as exc:  # pragma: no cover - startup validation
        LOGGER.exception("settings.error", error=str(exc))
        raise SystemExit(2) from exc

    LOGGER.info("booker.starting", account=settings.sats_email, **settings.preferences().describe())

    try:
        asyncio.run(run(settings, args))
    except KeyboardInterrupt:
        LOGGER.info("booker.stopped")
    except Exception as exc:  # pragma: no cover - top level
        LOGGER.exception("booker.failed", error=str(exc))
        raise SystemExit(1) from exc


if __name__ == "__main__":  # pragma: no cover
    cli()
