from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import (
    Input,
    Label,
    LoadingIndicator,
    Log,
    ProgressBar,
    Static,
)

from .commands import Command, Quit
from .config import load_config
from .controller import (
    AppState,
    CloningView,
    ConfigView,
    ConfirmView,
    Controller,
    ExportingView,
    SummaryView,
)
from .directory import display_path
from .events import CredentialsSubmitted, Event, KeyPressed, QuitRequested, Resized
from .logging_setup import setup_logging
from .paths import config_path, ensure_dirs, resolve_paths
from .ui.file_browser import FileListItem, FileListView

log = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
REQUIREMENTS_HINT = "Audio requirements: mp3, m4a or wav · 10 s to 5 min · up to 20 MB"

TOKYO_NIGHT_THEME = Theme(
    name="tokyo-night",
    primary="#7aa2f7",
    secondary="#7dcfff",
    accent="#bb9af7",
    warning="#e0af68",
    error="#f7768e",
    success="#9ece6a",
    foreground="#c0caf5",
    background="#1a1b26",
    surface="#1f2335",
    panel="#24283b",
    boost="#2f334d",
    variables={
        "block-cursor-background": "#7aa2f7",
        "block-cursor-foreground": "#1a1b26",
        "input-selection-background": "#7aa2f7 30%",
    },
)

_PANE_BY_STATE = {
    AppState.CONFIG: "config_pane",
    AppState.BROWSER: "browser_pane",
    AppState.CONFIRM: "confirm_pane",
    AppState.CLONING: "run_pane",
    AppState.SUMMARY: "run_pane",
    AppState.EXPORTING: "export_pane",
}


class CloneTuiApp(App):
    BINDINGS = [
        Binding("ctrl+c", "request_quit", "Quit", priority=True, show=False),
        Binding("ctrl+q", "request_quit", "Quit", priority=True, show=False),
    ]

    AUTO_FOCUS = None

    CSS = """
    Screen {
        background: $background;
        color: $text;
    }

    #root {
        height: 100%;
    }

    #header {
        height: 1;
        padding: 0 1;
        color: $secondary;
        text-style: bold;
    }

    .pane {
        height: 1fr;
        margin: 0 1;
        padding: 1 1;
        background: $surface;
        border: round $primary;
    }

    #config_pane Input {
        margin: 0 0 1 0;
        border: round $boost;
        background: $panel;
    }

    #config_title, #confirm_title, #run_title, #export_title {
        height: 1;
        color: $primary;
        text-style: bold;
    }

    #file_list {
        width: 65%;
        height: 1fr;
        border: round $secondary;
    }

    #selection_side {
        width: 35%;
        height: 1fr;
        padding: 0 1;
        border: round $accent;
        overflow-y: auto;
    }

    ListView {
        background: transparent;
    }

    ListView > .list-item {
        padding: 0 1;
    }

    ListView > .list-item.-highlight {
        background: #3b4261;
        color: #e6e9ff;
        text-style: bold;
    }

    ListView > .list-item.-highlight Label {
        color: #e6e9ff;
    }

    #run_progress {
        height: 1;
        margin: 1 0;
    }

    ProgressBar {
        background: $panel;
        color: $primary;
    }

    #run_busy, #export_busy {
        height: 1;
    }

    #run_log {
        height: 1fr;
        border: round $boost;
        background: $panel;
    }

    #summary_text {
        height: auto;
        padding: 0 1;
        border: round $success;
    }

    .hint {
        color: $text-muted;
    }

    #error_line {
        height: 1;
        padding: 0 1;
        color: $error;
    }

    #status_bar {
        height: 1;
        padding: 0 1;
        content-align: left middle;
        color: $text-muted;
        background: $panel;
        text-style: italic;
    }

    .hidden {
        display: none;
    }
    """

    def __init__(self, controller: Controller) -> None:
        super().__init__()
        self.register_theme(TOKYO_NIGHT_THEME)
        self.theme = TOKYO_NIGHT_THEME.name
        self.controller = controller
        self._shown_state: AppState | None = None
        self._rendered_entries: tuple[object, ...] | None = None
        self._log_generation = -1
        self._log_rendered = 0

    def compose(self) -> ComposeResult:
        with Vertical(id="root"):
            yield Label("", id="header")
            with Vertical(id="config_pane", classes="pane hidden"):
                yield Label("Voice API credentials", id="config_title")
                yield Input(placeholder="API key", password=True, id="api_key_input")
                yield Input(placeholder="Group ID", id="group_id_input")
                yield Label("enter: next field / save · esc: cancel", classes="hint")
            with Horizontal(id="browser_pane", classes="pane hidden"):
                yield FileListView(id="file_list")
                with Vertical(id="selection_side"):
                    yield Label("Selected", id="selection_title")
                    yield Static("", id="selection_summary")
            with Vertical(id="confirm_pane", classes="pane hidden"):
                yield Label("Start cloning?", id="confirm_title")
                yield Static("", id="confirm_text")
                yield Label(REQUIREMENTS_HINT, classes="hint")
                yield Label("enter/y: start · esc/n: back", classes="hint")
            with Vertical(id="run_pane", classes="pane hidden"):
                yield Label("Cloning", id="run_title")
                yield ProgressBar(total=None, show_eta=False, id="run_progress")
                yield LoadingIndicator(id="run_busy")
                yield Static("", id="summary_text", classes="hidden")
                yield Log(id="run_log", auto_scroll=True)
            with Vertical(id="export_pane", classes="pane hidden"):
                yield Label("Exporting", id="export_title")
                yield LoadingIndicator(id="export_busy")
                yield Static("", id="export_text")
            yield Label("", id="error_line")
            yield Static("", id="status_bar")

    def on_mount(self) -> None:
        self.query_one("#run_log", Log).can_focus = False
        self.controller.dispatch(Resized(self.size.width, self.size.height))
        self._sync_view()
        self._run_commands(self.controller.startup())

    def on_resize(self, event: events.Resize) -> None:
        self._dispatch(Resized(event.size.width, event.size.height))

    def on_key(self, event: events.Key) -> None:
        if self.controller.state == AppState.CONFIG and event.key != "escape":
            return
        event.stop()
        self._dispatch(KeyPressed(_normalize_key(event)))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "api_key_input":
            self.query_one("#group_id_input", Input).focus()
            return
        if event.input.id != "group_id_input":
            return
        api_key = self.query_one("#api_key_input", Input).value
        self._dispatch(CredentialsSubmitted(api_key, event.value))

    def action_request_quit(self) -> None:
        self._dispatch(QuitRequested())

    def _dispatch(self, event: Event) -> None:
        commands = self.controller.dispatch(event)
        self._sync_view()
        self._run_commands(commands)

    def _run_commands(self, commands: list[Command]) -> None:
        for command in commands:
            if isinstance(command, Quit):
                self.exit()
                return
            self._start_worker(command)

    def _start_worker(self, command: Command) -> None:
        def worker() -> None:
            try:
                event = command.execute()
            except Exception as exc:
                log.exception("command %r failed", command)
                event = command.failure(str(exc) or exc.__class__.__name__)
            if not self.is_running:
                log.debug("app closed; dropping %r", event)
                return
            self.call_from_thread(self._dispatch, event)

        threading.Thread(target=worker, daemon=True).start()

    # Rendering

    def _sync_view(self) -> None:
        controller = self.controller
        state = controller.state
        if state != self._shown_state:
            self._show_pane(state)
        self.query_one("#header", Label).update(f"clonetui · {display_path(controller.current_dir)}")
        view = controller.view
        if isinstance(view, ConfirmView):
            self._sync_confirm(view)
        elif isinstance(view, (CloningView, SummaryView)):
            self._sync_run(view)
        elif isinstance(view, ExportingView):
            self.query_one("#export_text", Static).update(
                f"Writing {view.record_count} record(s) to {controller.paths.export_dir}"
            )
        self._sync_browser()
        self._sync_log()
        self.query_one("#error_line", Label).update(controller.error_message)
        self.query_one("#status_bar", Static).update(controller.status_message)

    def _show_pane(self, state: AppState) -> None:
        visible = _PANE_BY_STATE[state]
        for pane_id in set(_PANE_BY_STATE.values()):
            self.query_one(f"#{pane_id}").set_class(pane_id != visible, "hidden")
        if state == AppState.CONFIG and isinstance(self.controller.view, ConfigView):
            api_input = self.query_one("#api_key_input", Input)
            api_input.value = self.controller.view.api_key
            self.query_one("#group_id_input", Input).value = self.controller.view.group_id
            api_input.focus()
        elif self._shown_state == AppState.CONFIG:
            self.set_focus(None)
        self._shown_state = state

    def _sync_browser(self) -> None:
        controller = self.controller
        list_view = self.query_one("#file_list", FileListView)
        if self._rendered_entries is not controller.entries:
            self._rendered_entries = controller.entries
            list_view.clear()
            list_view.extend(
                FileListItem(entry, entry.path in controller.selection)
                for entry in controller.entries
            )
        else:
            for item in list_view.query(FileListItem):
                item.set_selected(item.entry.path in controller.selection)
        if controller.entries:
            list_view.index = controller.cursor
        selected = controller.selection.ordered_paths()
        lines = [f"{len(selected)} file(s) selected", ""]
        lines.extend(path.name for path in selected)
        self.query_one("#selection_summary", Static).update("\n".join(lines))

    def _sync_confirm(self, view: ConfirmView) -> None:
        lines = [f"{len(view.paths)} file(s) will be uploaded and cloned:", ""]
        lines.extend(f"  {display_path(path)}" for path in view.paths)
        self.query_one("#confirm_text", Static).update("\n".join(lines))

    def _sync_run(self, view: CloningView | SummaryView) -> None:
        run = view.run
        counters = run.counters
        progress = self.query_one("#run_progress", ProgressBar)
        progress.update(total=run.total, progress=counters.completed)
        title = self.query_one("#run_title", Label)
        summary = self.query_one("#summary_text", Static)
        busy = self.query_one("#run_busy", LoadingIndicator)
        if isinstance(view, CloningView):
            current = run.in_flight.name if run.in_flight else ""
            title.update(f"Cloning {counters.completed + 1}/{run.total} · {current}")
            summary.add_class("hidden")
            busy.remove_class("hidden")
            return
        title.update("Clone finished")
        busy.set_class(not view.export_pending, "hidden")
        summary.remove_class("hidden")
        summary.update(_summary_text(view))

    def _sync_log(self) -> None:
        buffer = self.controller.log
        widget = self.query_one("#run_log", Log)
        if buffer.generation != self._log_generation:
            widget.clear()
            self._log_generation = buffer.generation
            self._log_rendered = 0
        pending = buffer.since(self._log_rendered)
        if pending:
            widget.write_lines(pending)
            self._log_rendered += len(pending)


def _summary_text(view: SummaryView) -> str:
    counters = view.run.counters
    lines = [
        f"Succeeded: {counters.succeeded}",
        f"Failed:    {counters.failed}",
    ]
    if view.export_pending:
        lines.append("Export:    writing CSV...")
    elif view.export_path is not None:
        lines.append(f"Export:    {display_path(view.export_path)}")
    else:
        lines.append(f"Export:    failed ({view.export_error})")
    failures = [record for record in view.run.records if not record.succeeded]
    if failures:
        lines.append("")
        lines.extend(f"✗ {record.file_path.name}: {record.error_reason}" for record in failures)
    lines.append("")
    lines.append("q/esc/enter: back to files")
    return "\n".join(lines)


def _normalize_key(event: events.Key) -> str:
    if event.key in {"space", " "}:
        return "space"
    character = event.character
    if character and len(character) == 1 and character.isprintable():
        return character
    return event.key


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clonetui",
        description="Browse audio files and clone voices from them in batches.",
        epilog=f"Credentials are stored in {config_path()}",
    )
    parser.add_argument("start_dir", nargs="?", help="Directory to open (default: current directory)")
    parser.add_argument("--export-dir", help="Directory for result CSV files")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Application log level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    export_dir = Path(args.export_dir) if args.export_dir else None
    try:
        paths = resolve_paths(export_dir)
        ensure_dirs(paths)
    except (OSError, RuntimeError) as exc:
        print(f"clonetui: cannot prepare application directories: {exc}", file=sys.stderr)
        return 1
    config, error = load_config(paths.config_file)
    if error:
        print(f"clonetui: {error}", file=sys.stderr)
        return 1
    try:
        setup_logging(paths.log_file, args.log_level)
    except OSError as exc:
        print(f"clonetui: cannot open log file {paths.log_file}: {exc}", file=sys.stderr)
        return 1
    start_dir = Path(args.start_dir).expanduser() if args.start_dir else Path.cwd()
    log.info("starting in %s (exports: %s)", start_dir, paths.export_dir)
    controller = Controller(config, paths, start_dir)
    CloneTuiApp(controller).run()
    log.info("exiting")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
