"""Bookmark record and pure operations over bookmark lists."""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from bmk.errors import DuplicateNameError, NotFoundError, ValidationError


@dataclass(frozen=True)
class Bookmark:
    """A named URL with optional description and tags.

    Tags are kept sorted and de-duplicated so display order is stable.
    """
    name: str
    url: str
    desc: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def has_tag(self, tag: str) -> bool:
        """Case-insensitive exact tag membership."""
        wanted = tag.lower()
        return any(t.lower() == wanted for t in self.tags)


def normalize_tags(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Strip, drop empties, de-duplicate and sort tags."""
    if not tags:
        return ()
    cleaned = {str(t).strip() for t in tags}
    cleaned.discard("")
    return tuple(sorted(cleaned, key=lambda t: (t.lower(), t)))


def parse_tags(text: str) -> Tuple[str, ...]:
    """Parse a comma separated tag string as typed in a form or on the CLI."""
    return normalize_tags((text or "").split(","))


def make_bookmark(
    name: str,
    url: str,
    desc: Optional[str] = "",
    tags: Optional[Iterable[str]] = None,
) -> Bookmark:
    """Build a validated bookmark from raw user input.

    Raises:
        ValidationError: If name or url is empty after stripping
    """
    cleaned_name = (name or "").strip()
    cleaned_url = (url or "").strip()
    if not cleaned_name:
        raise ValidationError("Name is required.")
    if not cleaned_url:
        raise ValidationError("URL is required.")
    return Bookmark(
        name=cleaned_name,
        url=cleaned_url,
        desc=(desc or "").strip(),
        tags=normalize_tags(tags),
    )


def sort_by_name(bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
    return sorted(bookmarks, key=lambda b: (b.name.lower(), b.name))


def find_bookmark(bookmarks: Sequence[Bookmark], name: str) -> Optional[Bookmark]:
    for bookmark in bookmarks:
        if bookmark.name == name:
            return bookmark
    return None


def add_bookmark(bookmarks: Sequence[Bookmark], bookmark: Bookmark) -> List[Bookmark]:
    """Return a new list with ``bookmark`` appended.

    Raises:
        DuplicateNameError: If a bookmark with the same name exists
    """
    if find_bookmark(bookmarks, bookmark.name) is not None:
        raise DuplicateNameError(bookmark.name)
    return list(bookmarks) + [bookmark]


def update_bookmark(
    bookmarks: Sequence[Bookmark], name: str, bookmark: Bookmark
) -> List[Bookmark]:
    """Return a new list with the bookmark called ``name`` replaced.

    The replacement may carry a different name, as long as it does not
    collide with another bookmark.

    Raises:
        NotFoundError: If no bookmark is called ``name``
        DuplicateNameError: If the new name belongs to another bookmark
    """
    if find_bookmark(bookmarks, name) is None:
        raise NotFoundError(f"Bookmark '{name}' not found.")
    if bookmark.name != name and find_bookmark(bookmarks, bookmark.name) is not None:
        raise DuplicateNameError(bookmark.name)
    return [bookmark if b.name == name else b for b in bookmarks]


def remove_bookmark(bookmarks: Sequence[Bookmark], name: str) -> List[Bookmark]:
    """Return a new list without the bookmark called ``name``.

    Raises:
        NotFoundError: If no bookmark is called ``name``
    """
    if find_bookmark(bookmarks, name) is None:
        raise NotFoundError(f"Bookmark '{name}' not found.")
    return [b for b in bookmarks if b.name != name]


def get_all_tags(bookmarks: Iterable[Bookmark]) -> List[str]:
    """Distinct tags across all bookmarks, sorted case-insensitively.

    Tags differing only by case collapse to the first spelling seen.
    """
    seen = {}
    for bookmark in bookmarks:
        for tag in bookmark.tags:
            seen.setdefault(tag.lower(), tag)
    return sorted(seen.values(), key=lambda t: (t.lower(), t))
