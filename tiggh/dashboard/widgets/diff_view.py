"""DiffModal: file-by-file unified diff viewer for a pull request or commit."""

from __future__ import annotations

from typing import Callable

from rich.text import Text
from textual import events, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from ...diff import DiffFile, DiffLine, DiffLineKind, DiffNavigator, parse_diff
from ...messages import Activate, Refresh, ScreenMessage
from ...screen import Failed, Loaded, ScreenMachine
from ...tasks import Task

_LINE_STYLES = {
    DiffLineKind.ADDED: ("+", "green"),
    DiffLineKind.DELETED: ("-", "red"),
    DiffLineKind.CONTEXT: (" ", ""),
}


def render_diff_line(line: DiffLine) -> Text:
    if line.kind is DiffLineKind.ADDED:
        number = f"+{line.new_number:<5}"
    elif line.kind is DiffLineKind.DELETED:
        number = f"-{line.old_number:<5}"
    else:
        number = f" {line.new_number:<5}"
    marker, style = _LINE_STYLES[line.kind]
    text = Text(number, style="dim")
    text.append(marker + line.text, style=style)
    return text


def render_file_header(navigator: DiffNavigator) -> Text:
    current: DiffFile | None = navigator.current_file
    if current is None:
        return Text("")
    text = Text(current.display_path, style="bold")
    text.append(f"  +{current.additions} -{current.deletions}", style="dim")
    text.append(f"  ({navigator.file_index + 1}/{len(navigator.files)} files)", style="dim")
    return text


class DiffModal(ModalScreen):
    """Modal diff viewer.

    The diff text is fetched and parsed off the UI thread. ``n``/``p`` switch
    files, ``j``/``k``/``g``/``G``/``ctrl+d``/``ctrl+u`` move within a file,
    ``r`` reloads and Escape closes.
    """

    BINDINGS = [
        Binding("escape,q", "dismiss", "Close", show=True),
        Binding("j,down", "move(1)", "Down", show=False),
        Binding("k,up", "move(-1)", "Up", show=False),
        Binding("g,home", "top", "Top", show=False),
        Binding("G,end", "bottom", "Bottom", show=False),
        Binding("ctrl+d,pagedown", "page_down", "Page down", show=False),
        Binding("ctrl+u,pageup", "page_up", "Page up", show=False),
        Binding("n", "next_file", "Next file", show=True),
        Binding("p", "previous_file", "Prev file", show=True),
        Binding("r", "reload", "Reload", show=True),
    ]

    DEFAULT_CSS = """
    DiffModal {
        align: center middle;
    }
    DiffModal #diff-dialog {
        width: 95%;
        height: 95%;
        border: round $accent;
        padding: 0 1;
        background: $surface;
    }
    DiffModal #diff-body {
        height: 1fr;
    }
    """

    def __init__(self, title: str, fetch: Callable[[], str], **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._title = title
        self.machine = ScreenMachine(fetch, transform=parse_diff, name="diff")
        self.navigator = DiffNavigator()

    def compose(self) -> ComposeResult:
        with Container(id="diff-dialog"):
            yield Label(Text(f"Diff: {self._title}  (Esc to close)"), classes="modal-title")
            yield Static("", id="diff-file")
            yield Static("", id="diff-body")

    def on_mount(self) -> None:
        self.feed(Activate())

    def on_resize(self, event: events.Resize) -> None:
        # title, file header and border
        self.navigator.rows = max(event.size.height - 6, 1)
        self.update_view()

    def feed(self, msg: ScreenMessage) -> None:
        for task in self.machine.update(msg):
            self._run_task(task)
        files = self.machine.payload
        if files is not None and files is not self.navigator.files:
            self.navigator.load(files)
        self.update_view()

    @work(thread=True)
    def _run_task(self, task: Task) -> None:
        msg = task()
        if msg is not None:
            self.app.call_from_thread(self.feed, msg)

    def update_view(self) -> None:
        try:
            header = self.query_one("#diff-file", Static)
            body = self.query_one("#diff-body", Static)
        except NoMatches:
            return

        state = self.machine.state
        if isinstance(state, Failed):
            header.update("")
            body.update(Text(f"Error: {state.error}\n\nPress r to retry", style="red"))
            return
        if not isinstance(state, Loaded):
            header.update("")
            body.update(Text("Loading diff...", style="italic"))
            return
        if not self.navigator.files:
            header.update("")
            body.update(Text("No changes.", style="dim"))
            return

        header.update(render_file_header(self.navigator))
        start, lines = self.navigator.visible_lines()
        text = Text()
        for offset, line in enumerate(lines):
            rendered = render_diff_line(line)
            if start + offset == self.navigator.cursor:
                rendered.stylize("reverse")
            text.append(rendered)
            text.append("\n")
        body.update(text)

    def action_move(self, delta: int) -> None:
        self.navigator.move(delta)
        self.update_view()

    def action_top(self) -> None:
        self.navigator.top()
        self.update_view()

    def action_bottom(self) -> None:
        self.navigator.bottom()
        self.update_view()

    def action_page_down(self) -> None:
        self.navigator.page_down()
        self.update_view()

    def action_page_up(self) -> None:
        self.navigator.page_up()
        self.update_view()

    def action_next_file(self) -> None:
        self.navigator.next_file()
        self.update_view()

    def action_previous_file(self) -> None:
        self.navigator.previous_file()
        self.update_view()

    def action_reload(self) -> None:
        self.feed(Refresh())
