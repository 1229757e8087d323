"""Highlighted row of the filtered view."""
from typing import Optional, Sequence

from bmk.search import ViewEntry


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


class Selection:
    """Index into the current view, or None when the view is empty.

    The selected bookmark is tracked by name so it survives re-ranking.
    """

    def __init__(self) -> None:
        self.index: Optional[int] = None
        self._view: Sequence[ViewEntry] = ()

    @property
    def name(self) -> Optional[str]:
        if self.index is None:
            return None
        return self._view[self.index].bookmark.name

    def reset(self, view: Sequence[ViewEntry], prefer: Optional[str] = None) -> None:
        """Adopt a freshly computed view.

        Keeps ``prefer`` (default: the currently selected name) highlighted
        if it is still present, else falls back to the first row.
        """
        wanted = prefer if prefer is not None else self.name
        self._view = view
        if not view:
            self.index = None
            return
        self.index = 0
        if wanted is not None:
            for i, entry in enumerate(view):
                if entry.bookmark.name == wanted:
                    self.index = i
                    break

    def move(self, delta: int) -> None:
        """Move the highlight, clamping at the first and last rows."""
        if self.index is None:
            return
        self.index = clamp(self.index + delta, 0, len(self._view) - 1)
