from __future__ import annotations

from rich.text import Text
from textual.widgets import Label, ListItem, ListView

from ..directory import DirectoryEntry, FileEntryKind
from ..selection import is_audio_file

_DIR_TEXT_STYLE = "#7dcfff"
_DIR_ICON_STYLE = "#7dcfff"
_FILE_TEXT_STYLE = "#c0caf5"
_FILE_ICON_STYLE = "#a9b1d6"
_MUTED_STYLE = "#565f89"
_AUDIO_STYLE = "#9ece6a"
_SELECTED_STYLE = "bold #e0af68"
_HIDDEN_STYLE = "dim"

_FOLDER_ICON = ""
_FILE_ICON = ""
_AUDIO_ICON = ""

_MARK_SELECTED = "[x]"
_MARK_UNSELECTED = "[ ]"
_MARK_BLANK = "   "


class FileListView(ListView):
    """Display-only list; the cursor is driven by the controller."""

    can_focus = False


class FileListItem(ListItem):
    def __init__(self, entry: DirectoryEntry, selected: bool = False) -> None:
        self.entry = entry
        self._selected = selected
        self._label = Label(format_entry_label(entry, selected))
        super().__init__(self._label, classes="file-item")

    def set_selected(self, selected: bool) -> None:
        if self._selected == selected:
            return
        self._selected = selected
        self._label.update(format_entry_label(self.entry, selected))


def format_entry_label(entry: DirectoryEntry, selected: bool) -> Text:
    label = Text()
    mark_style = _SELECTED_STYLE if selected else _MUTED_STYLE
    label.append(selection_mark(entry, selected), style=mark_style)
    label.append(" ")
    label.append(entry_icon(entry), style=entry_icon_style(entry))
    label.append(" ")
    name = entry.name + ("/" if entry.kind == FileEntryKind.DIR else "")
    label.append(name, style=entry_text_style(entry))
    if entry.kind != FileEntryKind.UP and entry.name.startswith("."):
        label.stylize(_HIDDEN_STYLE)
    return label


def selection_mark(entry: DirectoryEntry, selected: bool) -> str:
    if entry.is_dir or not is_audio_file(entry.path):
        return _MARK_BLANK
    return _MARK_SELECTED if selected else _MARK_UNSELECTED


def entry_icon(entry: DirectoryEntry) -> str:
    if entry.is_dir:
        return _FOLDER_ICON
    if is_audio_file(entry.path):
        return _AUDIO_ICON
    return _FILE_ICON


def entry_icon_style(entry: DirectoryEntry) -> str:
    if entry.is_dir:
        return _DIR_ICON_STYLE
    if is_audio_file(entry.path):
        return _AUDIO_STYLE
    return _FILE_ICON_STYLE


def entry_text_style(entry: DirectoryEntry) -> str:
    if entry.is_dir:
        return _DIR_TEXT_STYLE
    if is_audio_file(entry.path):
        return _FILE_TEXT_STYLE
    return _MUTED_STYLE
