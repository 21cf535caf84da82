"""Utility script to run a single notification dispatch cycle."""

from __future__ import annotations

import argparse

import anyio

from apinotice.config import get_settings
from apinotice.infrastructure.database import SessionLocal, initialize_database
from apinotice.infrastructure.email import ConsoleMailer, build_mailer
from apinotice.infrastructure.scheduler import NotificationDispatchLoop
from apinotice.logging_config import configure_logging


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the manual dispatch."""

    parser = argparse.ArgumentParser(
        description="Deliver every notice that is currently due, then exit.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the messages instead of sending them through SendGrid.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this run.",
    )
    return parser.parse_args()


def main() -> None:
    """Run one bounded cycle with the configured options."""

    args = parse_args()
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)
    initialize_database()

    mailer = ConsoleMailer() if args.dry_run else build_mailer(settings)
    loop = NotificationDispatchLoop.from_settings(
        settings, session_factory=SessionLocal, mailer=mailer
    )
    report = anyio.run(loop.run_cycle)
    if report is None:
        raise SystemExit("Dispatch cycle did not complete; see the log for details.")

    print(
        "Dispatch cycle finished:\n"
        f"  Due: {report.due}\n"
        f"  Sent: {report.sent}\n"
        f"  Retried: {report.retried}\n"
        f"  Canceled: {report.canceled}\n"
        f"  Skipped: {report.skipped}\n"
        f"  Write failures: {report.write_failures}"
    )


if __name__ == "__main__":
    main()
