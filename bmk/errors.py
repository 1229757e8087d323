"""Error types raised by the bookmark manager.

Startup failures (StoreIOError, ParseError) abort the process; everything
else is recoverable and shown to the user as a status message.
"""


class BookmarkError(Exception):
    """Base class for all bookmark manager errors."""


class StoreIOError(BookmarkError):
    """Bookmarks file could not be read or written."""


class ParseError(BookmarkError):
    """Bookmarks file exists but does not contain valid bookmark data."""


class DuplicateNameError(BookmarkError):
    """A bookmark with the same name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Bookmark '{name}' already exists.")
        self.name = name


class ValidationError(BookmarkError):
    """Submitted bookmark fields are invalid (e.g. empty name or URL)."""


class NotFoundError(BookmarkError):
    """No bookmark matched a name or query."""


class LaunchError(BookmarkError):
    """The browser could not be opened for a URL."""
