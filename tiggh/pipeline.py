"""Sequential dependent fetches over the rows of a loaded list.

After a primary list loads, some screens need one more request per row (the
review queue loads each pull request's reviews). ``StagedPipeline`` issues
those requests strictly one at a time, in row order, and records each outcome
on its ``PipelineEntry``. A failed row never stops the rows after it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable

from .exceptions import PipelineEntryError
from .messages import EntryFailed, EntryResolved
from .tasks import Task, launch

logger = logging.getLogger(__name__)


class EntryStatus(Enum):
    PENDING = "pending"
    LOADED = "loaded"
    FAILED = "failed"


class PipelineEntry:
    """A primary item plus the outcome of its dependent fetch.

    Subclasses override ``_derive`` to compute values from the detail once it
    arrives. An entry is resolved exactly once.
    """

    def __init__(self, item: Any) -> None:
        self.item = item
        self.detail: Any = None
        self.error: PipelineEntryError | None = None
        self.status = EntryStatus.PENDING

    @property
    def resolved(self) -> bool:
        return self.status is not EntryStatus.PENDING

    def resolve(self, detail: Any) -> None:
        if self.resolved:
            raise RuntimeError("pipeline entry already resolved")
        self.detail = detail
        self.status = EntryStatus.LOADED
        self._derive(detail)

    def fail(self, error: PipelineEntryError) -> None:
        if self.resolved:
            raise RuntimeError("pipeline entry already resolved")
        self.error = error
        self.status = EntryStatus.FAILED

    def _derive(self, detail: Any) -> None:
        pass


class StagedPipeline:
    """One dependent fetch per entry, issued in order, one in flight at a time.

    ``cursor`` is the index of the entry whose fetch is outstanding, which is
    also the number of entries resolved so far. The pipeline is complete when
    it reaches ``len(entries)``.
    """

    def __init__(
        self,
        items: Iterable[Any],
        fetch_one: Callable[[Any], Any],
        generation: int,
        entry_factory: Callable[[Any], PipelineEntry] = PipelineEntry,
    ) -> None:
        self.entries: list[PipelineEntry] = [entry_factory(item) for item in items]
        self.generation = generation
        self.cursor = 0
        self._fetch_one = fetch_one
        self._started = False

    @property
    def complete(self) -> bool:
        return self.cursor >= len(self.entries)

    def start(self) -> list[Task]:
        """Issue the fetch for entry 0. Empty pipelines issue nothing."""
        if self._started:
            return []
        self._started = True
        return self._issue_current()

    def record(self, msg: EntryResolved | EntryFailed) -> list[Task]:
        """Apply a dependent-fetch result and issue the next fetch.

        Results from another generation, or for an index other than the one in
        flight, are dropped.
        """
        if msg.generation != self.generation or msg.index != self.cursor or self.complete:
            logger.debug(
                "dropping dependent result gen=%s index=%s (pipeline gen=%s cursor=%s)",
                msg.generation, msg.index, self.generation, self.cursor,
            )
            return []

        entry = self.entries[msg.index]
        if isinstance(msg, EntryResolved):
            entry.resolve(msg.value)
        else:
            entry.fail(PipelineEntryError(msg.index, msg.error))
        self.cursor += 1
        return self._issue_current()

    def _issue_current(self) -> list[Task]:
        if self.complete:
            return []
        index = self.cursor
        item = self.entries[index].item
        generation = self.generation
        return [
            launch(
                lambda: self._fetch_one(item),
                on_success=lambda value: EntryResolved(generation, index, value),
                on_failure=lambda error: EntryFailed(generation, index, error),
                name=f"dependent-fetch[{index}]",
            )
        ]
