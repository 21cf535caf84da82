"""Background loop that periodically dispatches due notices."""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

from anyio import fail_after
from sqlalchemy.orm import Session

from apinotice.application.use_cases.notifications import (
    DispatchOptions,
    DispatchReport,
    dispatch_due_notifications,
)
from apinotice.config import Settings
from apinotice.domain.ports import Mailer
from apinotice.infrastructure.repositories import NotificationRepository
from apinotice.utils import utc_now

logger = logging.getLogger(__name__)


class _SerializedStore:
    """Run every store call while holding ``lock``.

    A call abandoned by a timed out cycle keeps the lock until its thread
    returns, so the session is only closed once nothing else touches it.
    """

    def __init__(self, store: Any, lock: threading.Lock) -> None:
        self._store = store
        self._lock = lock

    def __getattr__(self, name: str) -> Any:
        attribute = getattr(self._store, name)
        if not callable(attribute):
            return attribute

        @functools.wraps(attribute)
        def call(*args: Any, **kwargs: Any) -> Any:
            with self._lock:
                return attribute(*args, **kwargs)

        return call


def _close_when_idle(session: Session, lock: threading.Lock) -> None:
    with lock:
        session.close()


class NotificationDispatchLoop:
    """Run one bounded dispatch cycle per tick until stopped.

    Cycles never overlap: the next one starts only after the previous one
    returned or hit ``cycle_timeout``. The first cycle runs right after
    :meth:`start`. Only one loop may be active per database; two dispatchers
    would select and send the same notices.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        mailer: Mailer,
        options: DispatchOptions,
        interval: float,
        cycle_timeout: float,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._mailer = mailer
        self._options = options
        self._interval = interval
        self._cycle_timeout = cycle_timeout
        self._clock = clock
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        session_factory: Callable[[], Session],
        mailer: Mailer,
    ) -> "NotificationDispatchLoop":
        return cls(
            session_factory=session_factory,
            mailer=mailer,
            options=DispatchOptions.from_settings(settings),
            interval=settings.notify_poll_interval_seconds,
            cycle_timeout=settings.notify_cycle_timeout_seconds,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""

        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="notification-dispatch-loop")

    async def stop(self) -> None:
        """Ask the loop to finish and wait for the current cycle to end."""

        self._stop.set()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

    async def run_cycle(self) -> DispatchReport | None:
        """Execute one cycle; errors and timeouts are logged, never raised."""

        try:
            with fail_after(self._cycle_timeout):
                return await self._dispatch()
        except TimeoutError:
            logger.warning(
                "Dispatch cycle exceeded %.1fs; unfinished notices wait for the next tick",
                self._cycle_timeout,
            )
        except Exception:
            logger.exception("Dispatch cycle failed")
        return None

    async def _dispatch(self) -> DispatchReport:
        session = self._session_factory()
        lock = threading.Lock()
        try:
            report = await dispatch_due_notifications(
                _SerializedStore(NotificationRepository(session), lock),
                self._mailer,
                self._options,
                clock=self._clock,
            )
        except BaseException:
            if lock.acquire(blocking=False):
                try:
                    session.close()
                finally:
                    lock.release()
            else:
                # A store call is still running in an abandoned worker thread.
                asyncio.get_running_loop().run_in_executor(
                    None, _close_when_idle, session, lock
                )
            raise
        _close_when_idle(session, lock)
        return report

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        logger.info("Notification dispatcher started (interval=%ss)", self._interval)
        while not self._stop.is_set():
            started = loop.time()
            await self.run_cycle()
            remaining = max(0.0, self._interval - (loop.time() - started))
            await self._wait_for_next_tick(remaining)
        logger.info("Notification dispatcher stopped")

    async def _wait_for_next_tick(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return


__all__ = ["NotificationDispatchLoop"]
