"""Interactive bookmark browser: modes, events and the transition logic.

The app owns the in-memory bookmark list. Every key press is handled to
completion by ``BookmarkApp.handle``, which mutates the current state and
returns side effects (browser launches) for the caller to dispatch. Store
writes happen synchronously inside ``handle`` so the file never lags
behind what is displayed.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Protocol, Sequence, Union

from bmk.bookmarks import (
    Bookmark,
    add_bookmark,
    get_all_tags,
    make_bookmark,
    parse_tags,
    remove_bookmark,
    update_bookmark,
)
from bmk.errors import BookmarkError, ValidationError
from bmk.search import FuzzySearchEngine, SearchEngine, ViewEntry
from bmk.selection import Selection

logger = logging.getLogger(__name__)


class Mode(Enum):
    BROWSE = "browse"
    SEARCHING = "searching"
    TAG_FILTER_PICKING = "tag_filter_picking"
    ADDING = "adding"
    EDITING = "editing"
    CONFIRMING_DELETE = "confirming_delete"
    QUITTING = "quitting"


class Key(str, Enum):
    """Non-character keys. Typed characters arrive as 1-char strings."""
    ENTER = "enter"
    ESC = "esc"
    UP = "up"
    DOWN = "down"
    BACKSPACE = "backspace"
    TAB = "tab"
    BACKTAB = "backtab"


def is_text(event) -> bool:
    return (
        isinstance(event, str)
        and not isinstance(event, Key)
        and len(event) == 1
        and event.isprintable()
    )


class BookmarkStore(Protocol):
    def load(self) -> List[Bookmark]:
        ...

    def save(self, bookmarks: Sequence[Bookmark]) -> None:
        ...


# ----------------------------------------------------------------------
# Events and effects
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class LaunchRequest:
    """Effect: open ``url`` in the browser."""
    name: str
    url: str


@dataclass(frozen=True)
class LaunchFinished:
    """Event: a launch completed. ``error`` is None on success."""
    name: str
    url: str
    error: Optional[str] = None


Event = Union[str, Key, LaunchFinished]


# ----------------------------------------------------------------------
# Mode payloads
# ----------------------------------------------------------------------

class FormField(Enum):
    NAME = "Name"
    URL = "URL"
    DESC = "Description"
    TAGS = "Tags (comma-separated)"


FORM_FIELDS = list(FormField)


@dataclass
class BookmarkForm:
    name: str = ""
    url: str = ""
    desc: str = ""
    tags: str = ""
    focus: FormField = FormField.NAME

    _attrs: ClassVar[dict] = {
        FormField.NAME: "name",
        FormField.URL: "url",
        FormField.DESC: "desc",
        FormField.TAGS: "tags",
    }

    @classmethod
    def from_bookmark(cls, bookmark: Bookmark) -> "BookmarkForm":
        return cls(
            name=bookmark.name,
            url=bookmark.url,
            desc=bookmark.desc,
            tags=", ".join(bookmark.tags),
        )

    def value(self, form_field: FormField) -> str:
        return getattr(self, self._attrs[form_field])

    def _set(self, text: str) -> None:
        setattr(self, self._attrs[self.focus], text)

    def type_char(self, ch: str) -> None:
        self._set(self.value(self.focus) + ch)

    def backspace(self) -> None:
        self._set(self.value(self.focus)[:-1])

    def next_field(self) -> None:
        idx = FORM_FIELDS.index(self.focus)
        self.focus = FORM_FIELDS[min(idx + 1, len(FORM_FIELDS) - 1)]

    def prev_field(self) -> None:
        idx = FORM_FIELDS.index(self.focus)
        self.focus = FORM_FIELDS[max(idx - 1, 0)]

    def to_bookmark(self) -> Bookmark:
        """Raises ValidationError and focuses the offending field."""
        try:
            return make_bookmark(self.name, self.url, self.desc, parse_tags(self.tags))
        except ValidationError:
            self.focus = FormField.NAME if not self.name.strip() else FormField.URL
            raise


@dataclass
class Browse:
    mode: ClassVar[Mode] = Mode.BROWSE


@dataclass
class Searching:
    buffer: str
    mode: ClassVar[Mode] = Mode.SEARCHING


@dataclass
class TagFilterPicking:
    # None stands for "all tags"
    options: List[Optional[str]]
    cursor: int = 0
    mode: ClassVar[Mode] = Mode.TAG_FILTER_PICKING


@dataclass
class Adding:
    form: BookmarkForm = field(default_factory=BookmarkForm)
    mode: ClassVar[Mode] = Mode.ADDING


@dataclass
class Editing:
    form: BookmarkForm
    original_name: str
    mode: ClassVar[Mode] = Mode.EDITING


@dataclass
class ConfirmingDelete:
    name: str
    mode: ClassVar[Mode] = Mode.CONFIRMING_DELETE


@dataclass
class Quitting:
    mode: ClassVar[Mode] = Mode.QUITTING


State = Union[Browse, Searching, TagFilterPicking, Adding, Editing, ConfirmingDelete, Quitting]


# ----------------------------------------------------------------------
# App
# ----------------------------------------------------------------------

class BookmarkApp:
    """Modal controller over the bookmark list.

    Args:
        store: Persists the list after every mutation
        bookmarks: Initial list; loaded from ``store`` if None
        engine: Filter/rank engine
        quit_on_launch: Quit after a successful launch from Browse
    """

    def __init__(
        self,
        store: BookmarkStore,
        bookmarks: Optional[Sequence[Bookmark]] = None,
        engine: Optional[SearchEngine] = None,
        quit_on_launch: bool = False,
    ):
        self.store = store
        self.bookmarks = tuple(store.load() if bookmarks is None else bookmarks)
        self.engine = engine or FuzzySearchEngine()
        self.quit_on_launch = quit_on_launch
        self.state: State = Browse()
        self.query = ""
        self.active_tag: Optional[str] = None
        self.selection = Selection()
        self.view: List[ViewEntry] = []
        self.status = ""
        self.status_is_error = False
        self.refresh()

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def live_query(self) -> str:
        """Query currently applied to the view, including an uncommitted search."""
        if isinstance(self.state, Searching):
            return self.state.buffer
        return self.query

    @property
    def selected(self) -> Optional[Bookmark]:
        if self.selection.index is None:
            return None
        return self.view[self.selection.index].bookmark

    def refresh(self, prefer: Optional[str] = None) -> None:
        """Recompute the view and re-clamp the selection."""
        self.view = self.engine.compute_view(self.bookmarks, self.live_query, self.active_tag)
        self.selection.reset(self.view, prefer)

    def _enter(self, state: State) -> None:
        if state.mode is not self.state.mode:
            logger.debug("Mode %s -> %s", self.state.mode.value, state.mode.value)
        self.state = state

    def _info(self, message: str) -> None:
        self.status = message
        self.status_is_error = False

    def _error(self, message: str) -> None:
        self.status = message
        self.status_is_error = True

    def _commit(self, bookmarks: Sequence[Bookmark]) -> None:
        """Persist then adopt a new list. Nothing changes if saving fails."""
        self.store.save(list(bookmarks))
        self.bookmarks = tuple(bookmarks)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, event: Event) -> List[LaunchRequest]:
        """Process one event to completion and return effects to run."""
        if isinstance(event, LaunchFinished):
            self._on_launch_finished(event)
            return []

        handler = {
            Mode.BROWSE: self._on_browse,
            Mode.SEARCHING: self._on_searching,
            Mode.TAG_FILTER_PICKING: self._on_tag_picking,
            Mode.ADDING: self._on_form,
            Mode.EDITING: self._on_form,
            Mode.CONFIRMING_DELETE: self._on_confirm_delete,
        }.get(self.mode)
        if handler is None:
            return []
        return handler(event) or []

    def _on_browse(self, key) -> Optional[List[LaunchRequest]]:
        self.status = ""
        self.status_is_error = False

        if key == "q":
            self._enter(Quitting())
        elif key in ("j", Key.DOWN):
            self.selection.move(1)
        elif key in ("k", Key.UP):
            self.selection.move(-1)
        elif key == Key.ENTER:
            bookmark = self.selected
            if bookmark is not None:
                self._info(f"Opening '{bookmark.name}' ({bookmark.url})")
                return [LaunchRequest(bookmark.name, bookmark.url)]
        elif key == "/":
            self._enter(Searching(buffer=self.query))
        elif key == "t":
            self._start_tag_picking()
        elif key == "c":
            if self.active_tag is not None:
                self.active_tag = None
                self.refresh()
        elif key == "a":
            self._enter(Adding())
        elif key == "e":
            bookmark = self.selected
            if bookmark is not None:
                self._enter(Editing(BookmarkForm.from_bookmark(bookmark), bookmark.name))
        elif key == "d":
            bookmark = self.selected
            if bookmark is not None:
                self._enter(ConfirmingDelete(bookmark.name))
        return None

    def _on_searching(self, key) -> None:
        state = self.state
        if key == Key.ESC:
            self._enter(Browse())
            self.refresh()
        elif key == Key.ENTER:
            self.query = state.buffer
            self._enter(Browse())
            self.refresh()
        elif key == Key.BACKSPACE:
            state.buffer = state.buffer[:-1]
            self.refresh()
        elif is_text(key):
            state.buffer += key
            self.refresh()

    def _start_tag_picking(self) -> None:
        tags = get_all_tags(self.bookmarks)
        if not tags:
            self._info("No tags to filter by.")
            return
        options: List[Optional[str]] = [None] + tags
        cursor = 0
        if self.active_tag is not None:
            lowered = [t.lower() if t else None for t in options]
            if self.active_tag.lower() in lowered:
                cursor = lowered.index(self.active_tag.lower())
        self._enter(TagFilterPicking(options, cursor))

    def _on_tag_picking(self, key) -> None:
        state = self.state
        if key == Key.ESC:
            self._enter(Browse())
        elif key in ("j", Key.DOWN):
            state.cursor = (state.cursor + 1) % len(state.options)
        elif key in ("k", Key.UP):
            state.cursor = (state.cursor - 1) % len(state.options)
        elif key == Key.ENTER:
            self.active_tag = state.options[state.cursor]
            self._enter(Browse())
            self.refresh()

    def _on_form(self, key) -> None:
        form = self.state.form
        if key == Key.ESC:
            self._info("")
            self._enter(Browse())
        elif key == Key.TAB:
            form.next_field()
        elif key == Key.BACKTAB:
            form.prev_field()
        elif key == Key.ENTER:
            if form.focus is FormField.TAGS:
                self._submit_form()
            else:
                form.next_field()
        elif key == Key.BACKSPACE:
            form.backspace()
        elif is_text(key):
            form.type_char(key)

    def _submit_form(self) -> None:
        state = self.state
        try:
            bookmark = state.form.to_bookmark()
            if isinstance(state, Editing):
                updated = update_bookmark(self.bookmarks, state.original_name, bookmark)
            else:
                updated = add_bookmark(self.bookmarks, bookmark)
            self._commit(updated)
        except BookmarkError as e:
            logger.info("Form submit rejected: %s", e)
            self._error(str(e))
            return

        verb = "Updated" if isinstance(state, Editing) else "Added"
        self._enter(Browse())
        self.refresh(prefer=bookmark.name)
        self._info(f"{verb} '{bookmark.name}'.")

    def _on_confirm_delete(self, key) -> None:
        name = self.state.name
        if key in ("y", Key.ENTER):
            try:
                self._commit(remove_bookmark(self.bookmarks, name))
            except BookmarkError as e:
                logger.warning("Delete of '%s' failed: %s", name, e)
                self._error(str(e))
                return
            self._enter(Browse())
            self.refresh()
            self._info(f"Deleted '{name}'.")
        elif key in ("n", Key.ESC):
            self._enter(Browse())

    def _on_launch_finished(self, event: LaunchFinished) -> None:
        if event.error:
            self._error(f"Failed to open '{event.name}': {event.error}")
            return
        # Only Browse exits; other modes keep their input and just report.
        if self.quit_on_launch and self.mode is Mode.BROWSE:
            self._enter(Quitting())
            return
        self._info(f"Opened '{event.name}'.")
