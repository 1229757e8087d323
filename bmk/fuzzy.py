"""Fuzzy subsequence matching with relevance scoring.

Every query character must appear in the haystack, in order, ignoring case.
Scores reward:
- consecutive matched characters (more per character the longer the run)
- matches at a word boundary (start of text or after a non-alphanumeric)
- shorter haystacks, as a tie-break
Gaps between matched characters cost a little.
"""
from typing import Optional

MATCH_SCORE = 16
RUN_BONUS = 8
BOUNDARY_BONUS = 24
GAP_PENALTY = 1
MAX_GAP_PENALTY = 10
LENGTH_PENALTY = 0.01

FIELD_SEPARATOR = " "


def _is_boundary(text: str, i: int) -> bool:
    return i == 0 or not text[i - 1].isalnum()


def _score_from(query: str, text: str, start: int) -> Optional[int]:
    """Greedily match ``query`` in ``text`` with the first char pinned at ``start``."""
    score = 0
    run = 0
    last = -1
    qi = 0
    for i in range(start, len(text)):
        if qi == len(query):
            break
        if text[i] != query[qi]:
            continue
        if last >= 0 and i == last + 1:
            run += 1
            score += RUN_BONUS * run
        else:
            if last >= 0:
                score -= min(i - last - 1, MAX_GAP_PENALTY) * GAP_PENALTY
            run = 0
        if _is_boundary(text, i):
            score += BOUNDARY_BONUS
        score += MATCH_SCORE
        last = i
        qi += 1
    if qi < len(query):
        return None
    return score


def fuzzy_match(query: str, haystack: str) -> Optional[float]:
    """Match ``query`` against ``haystack``.

    Returns:
        The relevance score (higher is better), or None if some query
        character cannot be matched in order. An empty query matches
        everything with a score of 0.
    """
    if not query:
        return 0.0

    q = query.lower()
    text = haystack.lower()
    best: Optional[int] = None
    first = q[0]
    for start, ch in enumerate(text):
        if ch != first:
            continue
        score = _score_from(q, text, start)
        if score is None:
            # Later starts only see a shorter suffix.
            break
        if best is None or score > best:
            best = score
    if best is None:
        return None
    return best - len(haystack) * LENGTH_PENALTY


def searchable_text(bookmark) -> str:
    """Concatenate the fields a query may match: name, url, desc and tags."""
    parts = [bookmark.name, bookmark.url]
    if bookmark.desc:
        parts.append(bookmark.desc)
    parts.extend(bookmark.tags)
    return FIELD_SEPARATOR.join(parts)
