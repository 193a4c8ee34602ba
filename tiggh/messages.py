"""Messages delivered to a ScreenMachine.

The set is closed: ``ScreenMachine.update`` matches on every class listed in
``ScreenMessage`` and rejects anything else. Messages produced by background
tasks carry the generation of the fetch that issued them so that results of a
superseded fetch can be dropped.
"""

from dataclasses import dataclass
from typing import Any, Literal, Union

from .exceptions import TigGhError
from .tasks import ProgressSnapshot

NavAction = Literal["up", "down", "top", "bottom", "page_up", "page_down"]


@dataclass(frozen=True)
class Activate:
    """Screen shown for the first time; starts the primary fetch if idle."""


@dataclass(frozen=True)
class Refresh:
    """User asked for a reload."""


@dataclass(frozen=True)
class Navigate:
    action: NavAction


@dataclass(frozen=True)
class Resize:
    rows: int


@dataclass(frozen=True)
class FetchSucceeded:
    generation: int
    value: Any


@dataclass(frozen=True)
class FetchFailed:
    generation: int
    error: TigGhError


@dataclass(frozen=True)
class ProgressReported:
    generation: int
    snapshot: ProgressSnapshot


@dataclass(frozen=True)
class ProgressClosed:
    generation: int


@dataclass(frozen=True)
class EntryResolved:
    generation: int
    index: int
    value: Any


@dataclass(frozen=True)
class EntryFailed:
    generation: int
    index: int
    error: TigGhError


ScreenMessage = Union[
    Activate,
    Refresh,
    Navigate,
    Resize,
    FetchSucceeded,
    FetchFailed,
    ProgressReported,
    ProgressClosed,
    EntryResolved,
    EntryFailed,
]
