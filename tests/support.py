"""Test doubles shared by several test modules."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from apinotice.domain.ports import DeliveryResult

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning aware UTC instants."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


class RecordingMailer:
    """Mailer double that records every message and replays scripted outcomes."""

    def __init__(self, *outcomes: DeliveryResult | Exception) -> None:
        self.outcomes = list(outcomes)
        self.sent: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def send(self, recipient: str, subject: str, html_body: str) -> DeliveryResult:
        with self._lock:
            self.sent.append((recipient, subject, html_body))
            outcome = self.outcomes.pop(0) if self.outcomes else DeliveryResult.ok()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FailingMailer:
    """Mailer double whose every delivery fails with the same reason."""

    def __init__(self, reason: str = "smtp timeout") -> None:
        self.reason = reason
        self.calls = 0

    def send(self, recipient: str, subject: str, html_body: str) -> DeliveryResult:
        self.calls += 1
        return DeliveryResult.failed(self.reason)
