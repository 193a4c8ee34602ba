"""Deferred units of work that report back to a screen as messages.

A ``Task`` wraps a blocking call. The host (the Textual dashboard, or a test)
runs it off the UI loop and feeds the single message it returns back into the
owning ``ScreenMachine``. Tasks never touch screen state themselves.

Two building blocks live here:

- ``launch`` wraps a blocking fetch so that running it yields exactly one
  success-or-failure message. Exceptions are reported, never re-raised.
- ``ProgressMultiplexer`` runs an operation that reports progress through a
  callback, exposing the terminal result and the progress stream as two
  independent tasks that share a single-slot ``ProgressChannel``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from .exceptions import RemoteFetchError, TigGhError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Intermediate status of a long-running fetch, e.g. 3 of 10 repositories."""
    processed: int
    total: int
    current: str = ""

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(1.0, max(0.0, self.processed / self.total))

    def __str__(self) -> str:
        return f"{self.processed}/{self.total}"


ProgressCallback = Callable[[ProgressSnapshot], None]


class Task:
    """A deferred blocking call that returns exactly one message (or None)."""

    def __init__(self, fn: Callable[[], Any], name: str = "task") -> None:
        self._fn = fn
        self.name = name

    def __call__(self) -> Any:
        return self._fn()

    def __repr__(self) -> str:
        return f"Task({self.name!r})"


def as_fetch_error(exc: Exception) -> TigGhError:
    """Normalise an arbitrary exception into the tig-gh error family."""
    if isinstance(exc, TigGhError):
        return exc
    message = str(exc) or type(exc).__name__
    return RemoteFetchError(message)


def launch(
    operation: Callable[[], Any],
    on_success: Callable[[Any], Any],
    on_failure: Callable[[TigGhError], Any],
    name: str = "fetch",
) -> Task:
    """Wrap a blocking operation into a Task.

    Running the task calls ``operation`` once and returns either
    ``on_success(value)`` or ``on_failure(error)``, never both.

    Args:
        operation: Zero-argument blocking call; returns a value or raises
        on_success: Builds the success message from the returned value
        on_failure: Builds the failure message from the captured error
        name: Label used in logs

    Returns:
        Task ready to be run on a worker thread
    """

    def run() -> Any:
        try:
            value = operation()
        except Exception as exc:
            error = as_fetch_error(exc)
            logger.warning("%s failed: %s", name, error)
            return on_failure(error)
        return on_success(value)

    return Task(run, name=name)


class ProgressChannel:
    """Single-slot mailbox for progress snapshots.

    ``publish`` never waits for the reader: a newer snapshot replaces an
    unread one. After ``close`` the last pending snapshot is still handed out
    before ``receive`` starts returning None.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending: ProgressSnapshot | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def publish(self, snapshot: ProgressSnapshot) -> None:
        with self._cond:
            if self._closed:
                return
            self._pending = snapshot
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def receive(self, timeout: float | None = None) -> ProgressSnapshot | None:
        """Block until a snapshot is pending or the channel is closed.

        Returns None once the channel is closed and drained, or when
        ``timeout`` elapses with nothing to deliver.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._pending is not None or self._closed, timeout)
            snapshot, self._pending = self._pending, None
            return snapshot


class ProgressMultiplexer:
    """Run a progress-reporting operation once; expose result and progress separately.

    Usage::

        mux = ProgressMultiplexer(lambda progress: scan(repos, progress))
        tasks = [
            mux.result_task(on_success, on_failure),
            mux.listen_task(on_snapshot, on_closed),
        ]

    The consumer re-issues ``listen_task`` after each snapshot until it sees
    the closed message; the result task delivers exactly one terminal message.
    """

    def __init__(self, operation: Callable[[ProgressCallback], Any]) -> None:
        self._operation = operation
        self.channel = ProgressChannel()
        self._result_issued = False

    def result_task(
        self,
        on_success: Callable[[Any], Any],
        on_failure: Callable[[TigGhError], Any],
        name: str = "progress-fetch",
    ) -> Task:
        if self._result_issued:
            raise RuntimeError("result task already issued for this operation")
        self._result_issued = True

        def run_operation() -> Any:
            try:
                return self._operation(self.channel.publish)
            finally:
                self.channel.close()

        return launch(run_operation, on_success, on_failure, name=name)

    def listen_task(
        self,
        on_snapshot: Callable[[ProgressSnapshot], Any],
        on_closed: Callable[[], Any],
    ) -> Task:
        def listen() -> Any:
            snapshot = self.channel.receive()
            if snapshot is None:
                return on_closed()
            return on_snapshot(snapshot)

        return Task(listen, name="progress-listen")
