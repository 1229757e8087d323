"""Search engine module for bookmarks."""
from typing import List, NamedTuple, Optional, Protocol, Sequence

from bmk.bookmarks import Bookmark, sort_by_name
from bmk.errors import NotFoundError
from bmk.fuzzy import fuzzy_match, searchable_text


class ViewEntry(NamedTuple):
    bookmark: Bookmark
    score: float


class SearchEngine(Protocol):
    """Protocol for search engines to allow extensibility."""

    def compute_view(
        self,
        bookmarks: Sequence[Bookmark],
        query: str = "",
        tag: Optional[str] = None,
    ) -> List[ViewEntry]:
        """Filter and rank bookmarks.

        Args:
            bookmarks: Full list of bookmarks
            query: Free-text query, may be empty
            tag: Only keep bookmarks carrying this tag (case-insensitive)

        Returns:
            Matching bookmarks with their scores, best first
        """
        ...


class FuzzySearchEngine:
    """Fuzzy subsequence search over name, url, description and tags."""

    def _sort_key(self, entry: ViewEntry):
        return (-entry.score, entry.bookmark.name.lower(), entry.bookmark.name)

    def compute_view(
        self,
        bookmarks: Sequence[Bookmark],
        query: str = "",
        tag: Optional[str] = None,
    ) -> List[ViewEntry]:
        """Filter by tag, fuzzy match the query and rank.

        With an empty query nothing is scored and the view is ordered by
        name. Otherwise survivors are ordered by score descending, ties
        broken by name.
        """
        candidates = list(bookmarks)
        if tag:
            candidates = [b for b in candidates if b.has_tag(tag)]

        if not query:
            return [ViewEntry(b, 0.0) for b in sort_by_name(candidates)]

        scored = []
        for bookmark in candidates:
            score = fuzzy_match(query, searchable_text(bookmark))
            if score is not None:
                scored.append(ViewEntry(bookmark, score))

        scored.sort(key=self._sort_key)
        return scored

    def resolve(self, query: str, bookmarks: Sequence[Bookmark]) -> Bookmark:
        """Best match for a direct launch, ignoring tags.

        Raises:
            NotFoundError: If nothing matches (or there are no bookmarks)
        """
        view = self.compute_view(bookmarks, query, None)
        if not view:
            raise NotFoundError(f"No bookmark matches '{query}'.")
        return view[0].bookmark


_default_engine = FuzzySearchEngine()


def compute_view(
    bookmarks: Sequence[Bookmark], query: str = "", tag: Optional[str] = None
) -> List[ViewEntry]:
    return _default_engine.compute_view(bookmarks, query, tag)


def resolve(query: str, bookmarks: Sequence[Bookmark]) -> Bookmark:
    return _default_engine.resolve(query, bookmarks)
