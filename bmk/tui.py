"""curses front end and the asyncio event loop of the interactive browser."""
import asyncio
import curses
import logging
import os
from typing import List, Optional, Protocol, Set, Tuple

from bmk.app import (
    FORM_FIELDS,
    Adding,
    BookmarkApp,
    ConfirmingDelete,
    Editing,
    Event,
    Key,
    LaunchFinished,
    LaunchRequest,
    Mode,
    Searching,
    TagFilterPicking,
)
from bmk.bookmarks_store import YamlBookmarkStore
from bmk.errors import LaunchError
from bmk.launcher import BrowserLauncher

logger = logging.getLogger(__name__)

POLL_MS = 100  # key read timeout, bounds how late launch results are shown

HELP = {
    Mode.BROWSE: "j/k Move  Enter Open  / Search  t Tags  c Clear tag  a Add  e Edit  d Delete  q Quit",
    Mode.SEARCHING: "Type to filter  Backspace Erase  Enter Confirm  Esc Cancel",
    Mode.TAG_FILTER_PICKING: "j/k Move  Enter Select  Esc Cancel",
    Mode.ADDING: "Tab Next field  Shift-Tab Previous  Enter on Tags Save  Esc Cancel",
    Mode.EDITING: "Tab Next field  Shift-Tab Previous  Enter on Tags Save  Esc Cancel",
    Mode.CONFIRMING_DELETE: "y/Enter Confirm  n/Esc Cancel",
    Mode.QUITTING: "",
}

_CHAR_KEYS = {
    "\n": Key.ENTER,
    "\r": Key.ENTER,
    "\x1b": Key.ESC,
    "\t": Key.TAB,
    "\x7f": Key.BACKSPACE,
    "\x08": Key.BACKSPACE,
}

_CODE_KEYS = {
    curses.KEY_ENTER: Key.ENTER,
    curses.KEY_UP: Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    curses.KEY_BACKSPACE: Key.BACKSPACE,
    curses.KEY_BTAB: Key.BACKTAB,
}


def decode_key(ch) -> Optional[Event]:
    """Translate a ``get_wch`` result into an app event, or None to ignore."""
    if isinstance(ch, str):
        if ch in _CHAR_KEYS:
            return _CHAR_KEYS[ch]
        return ch if ch.isprintable() else None
    return _CODE_KEYS.get(ch)


def ensure_visible(selected: int, offset: int, rows: int) -> int:
    if selected < offset:
        return selected
    if selected >= offset + rows:
        return selected - rows + 1
    return offset


class Screen(Protocol):
    def read_key(self) -> Optional[Event]:
        ...

    def render(self, app: BookmarkApp) -> None:
        ...


class CursesScreen:
    """Draws a BookmarkApp on a curses window."""

    def __init__(self, stdscr):
        self.stdscr = stdscr
        self.offset = 0
        curses.curs_set(0)
        stdscr.keypad(True)
        stdscr.timeout(POLL_MS)
        try:
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_MAGENTA, -1)
            curses.init_pair(2, curses.COLOR_CYAN, -1)
            curses.init_pair(3, curses.COLOR_RED, -1)
            self.accent = curses.color_pair(1) | curses.A_BOLD
            self.tag_attr = curses.color_pair(2)
            self.error_attr = curses.color_pair(3) | curses.A_BOLD
        except curses.error:
            self.accent = curses.A_BOLD
            self.tag_attr = curses.A_NORMAL
            self.error_attr = curses.A_BOLD

    def read_key(self) -> Optional[Event]:
        try:
            ch = self.stdscr.get_wch()
        except curses.error:
            return None
        return decode_key(ch)

    def _put(self, y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
        h, w = self.stdscr.getmaxyx()
        if y < 0 or y >= h or x >= w:
            return
        try:
            self.stdscr.addnstr(y, x, text, max(0, w - x - 1), attr)
        except curses.error:
            pass

    def _box(self, top: int, left: int, height: int, width: int, title: str) -> None:
        try:
            win = self.stdscr.derwin(height, width, top, left)
        except curses.error:
            # terminal too small for the modal
            return
        win.erase()
        win.border()
        self._put(top, left + 2, f" {title} ", self.accent)

    def render(self, app: BookmarkApp) -> None:
        self.stdscr.erase()
        h, w = self.stdscr.getmaxyx()
        title = " Bookmarks "
        if app.active_tag:
            title = f" Bookmarks [tag: {app.active_tag}] "
        self._put(0, 0, title, self.accent)

        body_rows = max(1, (h - 4) // 2)
        if not app.view:
            empty = "No bookmarks. Press 'a' to add one." if not app.bookmarks else "No matches."
            self._put(2, 2, empty)
        else:
            selected = app.selection.index or 0
            self.offset = ensure_visible(selected, self.offset, body_rows)
            for row, entry in enumerate(app.view[self.offset:self.offset + body_rows]):
                bm = entry.bookmark
                y = 1 + row * 2
                marker = "> " if self.offset + row == app.selection.index else "  "
                attr = curses.A_REVERSE if marker == "> " else curses.A_BOLD
                line = marker + bm.name
                if bm.desc:
                    line += f" - {bm.desc}"
                self._put(y, 0, line, attr)
                if bm.tags:
                    self._put(y, len(line) + 1, "[" + ", ".join(bm.tags) + "]", self.tag_attr)
                self._put(y + 1, 4, bm.url, curses.A_DIM)

        if isinstance(app.state, Searching):
            self._put(h - 3, 0, f" / {app.state.buffer}_", self.accent)
        elif app.query:
            self._put(h - 3, 0, f" Filter: {app.query}")
        else:
            self._put(h - 3, 0, " Type / to search")
        self._put(h - 2, 0, " " + app.status, self.error_attr if app.status_is_error else curses.A_NORMAL)
        self._put(h - 1, 0, HELP[app.mode])

        state = app.state
        if isinstance(state, (Adding, Editing)):
            self._render_form(state, "Edit Bookmark" if isinstance(state, Editing) else "Add Bookmark", h, w)
        elif isinstance(state, TagFilterPicking):
            self._render_tags(state, h, w)
        elif isinstance(state, ConfirmingDelete):
            self._render_confirm(state, h, w)
        self.stdscr.refresh()

    def _centered(self, height: int, width: int, h: int, w: int) -> Tuple[int, int, int, int]:
        height = min(height, h)
        width = min(width, w)
        return max(0, (h - height) // 2), max(0, (w - width) // 2), height, width

    def _render_form(self, state, title: str, h: int, w: int) -> None:
        top, left, height, width = self._centered(len(FORM_FIELDS) * 2 + 2, max(40, w * 3 // 5), h, w)
        self._box(top, left, height, width, title)
        form = state.form
        for i, form_field in enumerate(FORM_FIELDS):
            y = top + 1 + i * 2
            active = form.focus is form_field
            self._put(y, left + 2, form_field.value, self.accent if active else curses.A_DIM)
            value = form.value(form_field) + ("_" if active else "")
            self._put(y + 1, left + 4, value[-(width - 6):])

    def _render_tags(self, state: TagFilterPicking, h: int, w: int) -> None:
        labels: List[str] = ["(all tags)" if t is None else t for t in state.options]
        width = max(20, max(len(label) for label in labels) + 6)
        top, left, height, width = self._centered(len(labels) + 2, width, h, w)
        self._box(top, left, height, width, "Filter by tag")
        visible = height - 2
        first = ensure_visible(state.cursor, 0, visible)
        for row, label in enumerate(labels[first:first + visible]):
            attr = curses.A_REVERSE if first + row == state.cursor else curses.A_NORMAL
            self._put(top + 1 + row, left + 2, label, attr)

    def _render_confirm(self, state: ConfirmingDelete, h: int, w: int) -> None:
        text = f"Delete '{state.name}'? (y/n)"
        top, left, height, width = self._centered(3, len(text) + 6, h, w)
        self._box(top, left, height, width, "Confirm")
        self._put(top + 1, left + 3, text, self.error_attr)


async def run_app(screen: Screen, app: BookmarkApp, launcher: BrowserLauncher) -> None:
    """Feed keys and launch results to ``app`` until it quits.

    Launches run as background tasks; their outcome comes back through a
    queue that is drained before every render.
    """
    results: asyncio.Queue = asyncio.Queue()
    tasks: Set[asyncio.Task] = set()

    async def launch(request: LaunchRequest) -> None:
        try:
            await launcher.open(request.url)
        except LaunchError as e:
            await results.put(LaunchFinished(request.name, request.url, str(e)))
        except Exception as e:
            logger.exception("Launch of %s failed unexpectedly", request.url)
            await results.put(LaunchFinished(request.name, request.url, str(e) or type(e).__name__))
        else:
            await results.put(LaunchFinished(request.name, request.url))

    while app.mode is not Mode.QUITTING:
        while not results.empty():
            app.handle(results.get_nowait())
        if app.mode is Mode.QUITTING:
            break

        screen.render(app)
        key = await asyncio.to_thread(screen.read_key)
        if key is None:
            continue
        for request in app.handle(key):
            task = asyncio.create_task(launch(request))
            tasks.add(task)
            task.add_done_callback(tasks.discard)

    if tasks:
        await asyncio.wait(tasks, timeout=launcher.timeout)


def run_tui(store: YamlBookmarkStore, launcher: BrowserLauncher, quit_on_launch: bool = False) -> None:
    """Interactive entry point. Store load errors propagate before curses starts."""
    app = BookmarkApp(store, store.load(), quit_on_launch=quit_on_launch)
    os.environ.setdefault("ESCDELAY", "25")

    def _main(stdscr) -> None:
        asyncio.run(run_app(CursesScreen(stdscr), app, launcher))

    curses.wrapper(_main)
    logger.info("Interactive session ended")
