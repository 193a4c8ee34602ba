"""Base class for dashboard tabs driven by a ScreenMachine."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual import events, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Static

from ...github import GitHubClient
from ...messages import Activate, Navigate, Refresh, Resize, ScreenMessage
from ...screen import Failed, Idle, Loaded, Loading, ScreenMachine
from ...tasks import Task


class ScreenTab(Widget, can_focus=True):
    """A tab whose content is one ScreenMachine.

    Subclasses provide ``create_machine`` and ``render_row``. Keys become
    machine messages, returned tasks run in thread workers, and each task's
    message is fed back on the UI thread.
    """

    BINDINGS = [
        Binding("j,down", "navigate('down')", "Down", show=False),
        Binding("k,up", "navigate('up')", "Up", show=False),
        Binding("g,home", "navigate('top')", "Top", show=False),
        Binding("G,end", "navigate('bottom')", "Bottom", show=False),
        Binding("ctrl+d,pagedown", "navigate('page_down')", "Page down", show=False),
        Binding("ctrl+u,pageup", "navigate('page_up')", "Page up", show=False),
        Binding("enter", "select", "Open", show=True),
    ]

    DEFAULT_CSS = """
    ScreenTab {
        height: 100%;
    }
    ScreenTab .section-header {
        text-style: bold;
        background: $boost;
        height: 1;
    }
    ScreenTab .screen-body {
        height: 1fr;
    }
    """

    title = "Items"
    empty_text = "Nothing to show."

    def __init__(self, client: GitHubClient, owner: str, repo: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.client = client
        self.owner = owner
        self.repo = repo
        self.machine = self.create_machine()

    def create_machine(self) -> ScreenMachine:
        raise NotImplementedError

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(self.title, classes="section-header")
            yield Static("", classes="screen-body")

    def on_mount(self) -> None:
        self.update_view()

    def on_resize(self, event: events.Resize) -> None:
        # one line for the section header
        self.feed(Resize(max(event.size.height - 1, 1)))

    # ------------------------------------------------------------------
    # Message loop
    # ------------------------------------------------------------------

    def activate(self) -> None:
        self.feed(Activate())

    def refresh_screen(self) -> None:
        self.feed(Refresh())

    def feed(self, msg: ScreenMessage) -> None:
        """Apply a message to the machine, launch its tasks, redraw."""
        for task in self.machine.update(msg):
            self._run_task(task)
        self.update_view()

    @work(thread=True)
    def _run_task(self, task: Task) -> None:
        msg = task()
        if msg is not None:
            self.app.call_from_thread(self.feed, msg)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_navigate(self, action: str) -> None:
        self.feed(Navigate(action))  # type: ignore[arg-type]

    def action_select(self) -> None:
        selected = self.machine.selected
        if selected is not None:
            self.open_item(selected)

    def open_item(self, row: Any) -> None:
        """Override to react to Enter on a row."""

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def header_text(self) -> str:
        rows = self.machine.rows_data
        if isinstance(self.machine.state, Loaded):
            return f" {self.title} ({len(rows)})  {self.owner}/{self.repo} "
        return f" {self.title}  {self.owner}/{self.repo} "

    def render_row(self, row: Any, width: int) -> Text:
        return Text(str(row))

    def render_body(self) -> Text:
        state = self.machine.state
        if isinstance(state, Idle):
            return Text("")
        if isinstance(state, Loading):
            return self.render_loading(state)
        if isinstance(state, Failed):
            text = Text(f"Error: {state.error}\n\n", style="bold red")
            text.append("Press r to retry", style="dim")
            return text

        rows = self.machine.rows_data
        if not rows:
            return Text(self.empty_text, style="dim")
        start, end = self.machine.visible_range()
        width = max(self.size.width - 2, 20)
        body = Text()
        for index in range(start, end):
            line = self.render_row(rows[index], width)
            if index == self.machine.cursor:
                line = Text("▶ ") + line
                line.stylize("reverse")
            else:
                line = Text("  ") + line
            body.append(line)
            if index < end - 1:
                body.append("\n")
        return body

    def render_loading(self, state: Loading) -> Text:
        return Text(f"Loading {self.title.lower()}...", style="italic")

    def update_view(self) -> None:
        try:
            header = self.query_one(".section-header", Static)
            body = self.query_one(".screen-body", Static)
        except NoMatches:
            # not composed yet
            return
        header.update(self.header_text())
        body.update(self.render_body())
