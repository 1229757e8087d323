"""YAML bookmarks store with read and write capabilities."""
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from bmk.bookmarks import Bookmark, normalize_tags, sort_by_name
from bmk.errors import ParseError, StoreIOError

logger = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects a mapping with the same key twice.

    Plain ``safe_load`` keeps the last duplicate, which would silently
    drop a hand-edited bookmark.
    """

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def get_default_bookmarks_path() -> Path:
    """Get the default path of the bookmarks file.

    Returns:
        ~/.config/bmk/bookmarks.yaml
    """
    return Path.home() / ".config" / "bmk" / "bookmarks.yaml"


def load_bookmarks_file(bookmarks_path: Path) -> Dict[str, Any]:
    """Load the raw YAML mapping from disk.

    Args:
        bookmarks_path: Path to the bookmarks file

    Returns:
        Parsed mapping of name -> entry. Empty if the file does not exist.

    Raises:
        StoreIOError: If the file exists but cannot be read
        ParseError: If the file is not valid YAML or not a mapping
    """
    if not bookmarks_path.exists():
        return {}

    try:
        with open(bookmarks_path, "r", encoding="utf-8") as f:
            data = yaml.load(f, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML from '{bookmarks_path}': {e}") from e
    except OSError as e:
        raise StoreIOError(f"Failed to open bookmarks file at '{bookmarks_path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"Expected a mapping of bookmarks in '{bookmarks_path}'")
    return data


def extract_bookmark(name: Any, entry: Any, bookmarks_path: Path) -> Bookmark:
    """Convert one YAML entry into a Bookmark.

    Raises:
        ParseError: If the entry is not a mapping or has no url
    """
    key = str(name).strip() if name is not None else ""
    if not key:
        raise ParseError(f"Bookmark with empty name in '{bookmarks_path}'")
    if not isinstance(entry, dict):
        raise ParseError(f"Bookmark '{key}' in '{bookmarks_path}' is not a mapping")

    url = entry.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ParseError(f"Bookmark '{key}' in '{bookmarks_path}' has no url")

    desc = entry.get("desc")
    tags = entry.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, list):
        raise ParseError(f"Bookmark '{key}' in '{bookmarks_path}' has malformed tags")

    return Bookmark(
        name=key,
        url=url.strip(),
        desc="" if desc is None else str(desc).strip(),
        tags=normalize_tags(tags),
    )


def read_bookmarks(bookmarks_path: Path) -> List[Bookmark]:
    """Read all bookmarks from the YAML file.

    Args:
        bookmarks_path: Path to the bookmarks file

    Returns:
        Bookmarks sorted by name

    Raises:
        StoreIOError: If the file cannot be read
        ParseError: If the file or any entry is malformed
    """
    data = load_bookmarks_file(bookmarks_path)
    bookmarks = [extract_bookmark(name, entry, bookmarks_path) for name, entry in data.items()]
    logger.info("Loaded %d bookmarks from %s", len(bookmarks), bookmarks_path)
    return sort_by_name(bookmarks)


# ============================================================================
# Write Operations
# ============================================================================

def backup_bookmarks(bookmarks_path: Path) -> Path:
    """Create a backup of the bookmarks file.

    Args:
        bookmarks_path: Path to bookmarks file

    Returns:
        Path to the backup file
    """
    backup_path = bookmarks_path.with_suffix(bookmarks_path.suffix + ".bak")
    shutil.copy2(bookmarks_path, backup_path)
    logger.debug("Backed up %s to %s", bookmarks_path, backup_path)
    return backup_path


def serialize_bookmarks(bookmarks: Sequence[Bookmark]) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for bookmark in sort_by_name(bookmarks):
        data[bookmark.name] = {
            "url": bookmark.url,
            "desc": bookmark.desc,
            "tags": list(bookmark.tags),
        }
    return data


def write_bookmarks(bookmarks: Sequence[Bookmark], bookmarks_path: Path) -> None:
    """Write bookmarks to the YAML file, backing up the previous version.

    The new content goes to a temporary file that replaces the target in
    one rename, so a crash never leaves a half-written file behind.

    Raises:
        StoreIOError: If the file cannot be written
    """
    text = yaml.safe_dump(
        serialize_bookmarks(bookmarks),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    # Written beside the target so the rename stays on one filesystem.
    tmp_path = bookmarks_path.with_name(bookmarks_path.name + ".tmp")
    try:
        bookmarks_path.parent.mkdir(parents=True, exist_ok=True)
        if bookmarks_path.exists():
            backup_bookmarks(bookmarks_path)
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, bookmarks_path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise StoreIOError(f"Failed to write bookmarks to '{bookmarks_path}': {e}") from e
    logger.info("Saved %d bookmarks to %s", len(bookmarks), bookmarks_path)


class YamlBookmarkStore:
    """Bookmark store backed by a single YAML file. Last write wins."""

    def __init__(self, bookmarks_path: Optional[Path] = None):
        self.path = bookmarks_path or get_default_bookmarks_path()

    def load(self) -> List[Bookmark]:
        return read_bookmarks(self.path)

    def save(self, bookmarks: Sequence[Bookmark]) -> None:
        write_bookmarks(bookmarks, self.path)
