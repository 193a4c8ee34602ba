"""Per-screen state machine.

A ``ScreenMachine`` owns one screen's fetch state, its optional dependent
pipeline and its list cursor. Everything that changes it arrives through
``update(msg)``, which returns the tasks the host should run next. The host
renders from ``machine.state`` and never looks at in-flight tasks.

States::

    Idle ──Activate/Refresh──▶ Loading ──FetchSucceeded──▶ Loaded
                                  │                          │
                                  └──FetchFailed──▶ Failed ◀─┘ (via Refresh → Loading)

Every primary fetch gets a new generation number. Messages tagged with an
older generation are dropped, which is how a refresh supersedes work that is
still running in the background.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from .exceptions import TigGhError
from .messages import (
    Activate,
    EntryFailed,
    EntryResolved,
    FetchFailed,
    FetchSucceeded,
    NavAction,
    Navigate,
    ProgressClosed,
    ProgressReported,
    Refresh,
    Resize,
    ScreenMessage,
)
from .pipeline import PipelineEntry, StagedPipeline
from .tasks import ProgressMultiplexer, ProgressSnapshot, Task, launch
from .viewport import visible_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    progress: ProgressSnapshot | None = None


@dataclass(frozen=True)
class Loaded:
    payload: Any


@dataclass(frozen=True)
class Failed:
    error: TigGhError


ScreenState = Union[Idle, Loading, Loaded, Failed]


class ScreenMachine:
    """Fetch lifecycle, dependent pipeline and cursor for one screen.

    Args:
        fetch: Blocking primary fetch. Takes no arguments, or a progress
            callback when ``progress`` is True.
        progress: Run the fetch through a ProgressMultiplexer
        transform: Applied to the fetched value on the worker thread
            (e.g. diff parsing, sorting)
        dependent: Per-item fetch; when set, a StagedPipeline runs over the
            loaded list
        entry_factory: Builds pipeline entries from list items
        key: Item identity used to keep the cursor on the same row across
            reloads
        rows: Initial number of visible rows
        name: Label used in logs and task names
    """

    def __init__(
        self,
        fetch: Callable[..., Any],
        *,
        progress: bool = False,
        transform: Callable[[Any], Any] | None = None,
        dependent: Callable[[Any], Any] | None = None,
        entry_factory: Callable[[Any], PipelineEntry] = PipelineEntry,
        key: Callable[[Any], Any] | None = None,
        rows: int = 20,
        name: str = "screen",
    ) -> None:
        self._fetch = fetch
        self._uses_progress = progress
        self._transform = transform
        self._dependent = dependent
        self._entry_factory = entry_factory
        self._key = key
        self.name = name

        self.state: ScreenState = Idle()
        self.generation = 0
        self.pipeline: StagedPipeline | None = None
        self.progress: ProgressSnapshot | None = None
        self.cursor = 0
        self.rows = max(rows, 1)
        self._multiplexer: ProgressMultiplexer | None = None
        self._selected_key: Any = None

    # ------------------------------------------------------------------
    # Read-only views used by renderers
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def payload(self) -> Any:
        if isinstance(self.state, Loaded):
            return self.state.payload
        return None

    @property
    def rows_data(self) -> list[Any]:
        """Navigable rows: pipeline entries when a pipeline runs, else the payload list."""
        if self.pipeline is not None:
            return self.pipeline.entries
        payload = self.payload
        if isinstance(payload, (list, tuple)):
            return list(payload)
        return []

    @property
    def selected(self) -> Any:
        rows = self.rows_data
        if 0 <= self.cursor < len(rows):
            return rows[self.cursor]
        return None

    def visible_range(self) -> tuple[int, int]:
        return visible_range(len(self.rows_data), self.cursor, self.rows)

    # ------------------------------------------------------------------
    # Message dispatch
    # ------------------------------------------------------------------

    def update(self, msg: ScreenMessage) -> list[Task]:
        """Apply one message and return the tasks to launch."""
        match msg:
            case Activate():
                if isinstance(self.state, Idle):
                    return self._start_fetch()
                return []
            case Refresh():
                if self.is_loading:
                    return []
                return self._start_fetch()
            case FetchSucceeded(generation=generation, value=value):
                if not self._is_current(generation) or not self.is_loading:
                    return []
                return self._on_loaded(value)
            case FetchFailed(generation=generation, error=error):
                if not self._is_current(generation) or not self.is_loading:
                    return []
                self._on_failed(error)
                return []
            case ProgressReported(generation=generation, snapshot=snapshot):
                # only meaningful while a multiplexed fetch is in flight
                if not self._is_current(generation) or self._multiplexer is None:
                    return []
                self.progress = snapshot
                self.state = Loading(progress=snapshot)
                return [self._listen(generation)]
            case ProgressClosed():
                return []
            case EntryResolved() | EntryFailed():
                if self.pipeline is None or not self._is_current(msg.generation):
                    return []
                return self.pipeline.record(msg)
            case Navigate(action=action):
                self._navigate(action)
                return []
            case Resize(rows=rows):
                self.rows = max(rows, 1)
                return []
            case _:
                raise TypeError(f"unhandled screen message: {msg!r}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        if generation != self.generation:
            logger.debug("%s: dropping message from generation %s (current %s)",
                         self.name, generation, self.generation)
            return False
        return True

    def _start_fetch(self) -> list[Task]:
        selected = self.selected
        if selected is not None and self._key is not None:
            item = selected.item if isinstance(selected, PipelineEntry) else selected
            self._selected_key = self._key(item)

        self.generation += 1
        generation = self.generation
        self.pipeline = None
        self.progress = None
        self.state = Loading()

        on_success = lambda value: FetchSucceeded(generation, value)  # noqa: E731
        on_failure = lambda error: FetchFailed(generation, error)  # noqa: E731

        if not self._uses_progress:
            self._multiplexer = None
            return [launch(self._run_fetch, on_success, on_failure, name=f"{self.name}-fetch")]

        self._multiplexer = ProgressMultiplexer(self._run_progress_fetch)
        return [
            self._multiplexer.result_task(on_success, on_failure, name=f"{self.name}-fetch"),
            self._listen(generation),
        ]

    def _listen(self, generation: int) -> Task:
        return self._multiplexer.listen_task(
            lambda snapshot: ProgressReported(generation, snapshot),
            lambda: ProgressClosed(generation),
        )

    def _run_fetch(self) -> Any:
        value = self._fetch()
        return self._transform(value) if self._transform else value

    def _run_progress_fetch(self, report: Callable[[ProgressSnapshot], None]) -> Any:
        value = self._fetch(report)
        return self._transform(value) if self._transform else value

    def _on_loaded(self, value: Any) -> list[Task]:
        self.state = Loaded(value)
        self.progress = None
        self._multiplexer = None
        tasks: list[Task] = []
        if self._dependent is not None and isinstance(value, (list, tuple)):
            self.pipeline = StagedPipeline(
                value, self._dependent, self.generation, entry_factory=self._entry_factory
            )
            tasks = self.pipeline.start()
        self._restore_cursor()
        return tasks

    def _on_failed(self, error: TigGhError) -> None:
        logger.warning("%s: fetch failed: %s", self.name, error)
        self.state = Failed(error)
        self.pipeline = None
        self.progress = None
        self._multiplexer = None
        self.cursor = 0

    def _restore_cursor(self) -> None:
        rows = self.rows_data
        if not rows:
            self.cursor = 0
            return
        if self._key is not None and self._selected_key is not None:
            for index, row in enumerate(rows):
                item = row.item if isinstance(row, PipelineEntry) else row
                if self._key(item) == self._selected_key:
                    self.cursor = index
                    return
        self.cursor = min(self.cursor, len(rows) - 1)

    def _navigate(self, action: NavAction) -> None:
        total = len(self.rows_data)
        if total == 0:
            self.cursor = 0
            return
        page = max(self.rows - 1, 1)
        if action == "up":
            self.cursor -= 1
        elif action == "down":
            self.cursor += 1
        elif action == "top":
            self.cursor = 0
        elif action == "bottom":
            self.cursor = total - 1
        elif action == "page_up":
            self.cursor -= page
        elif action == "page_down":
            self.cursor += page
        self.cursor = min(max(self.cursor, 0), total - 1)
