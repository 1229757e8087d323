"""Command line interface: direct launch, listing, add/delete, or the TUI."""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from bmk.bookmarks import add_bookmark, make_bookmark, parse_tags, remove_bookmark
from bmk.bookmarks_store import YamlBookmarkStore
from bmk.config import Config
from bmk.errors import (
    BookmarkError,
    DuplicateNameError,
    LaunchError,
    NotFoundError,
    ValidationError,
)
from bmk.launcher import BrowserLauncher
from bmk.search import compute_view, resolve


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bmk",
        description="Terminal bookmark manager. Without arguments opens the interactive browser; "
        "with a QUERY opens the best fuzzy match directly.",
    )
    parser.add_argument("query", nargs="*", help="Fuzzy query; open the best match and exit.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-l", "--list", action="store_true", help="List bookmarks and exit.")
    mode.add_argument(
        "-a",
        "--add",
        nargs=2,
        metavar=("NAME", "URL"),
        help="Add a bookmark and exit.",
    )
    mode.add_argument("--delete", metavar="NAME", help="Delete a bookmark by name and exit.")
    parser.add_argument("-t", "--tag", help="Only list bookmarks with this tag (with --list).")
    parser.add_argument("-d", "--desc", default="", help="Description (with --add).")
    parser.add_argument("--tags", default="", help="Comma-separated tags (with --add).")
    parser.add_argument("-f", "--file", type=Path, help="Bookmarks file to use.")
    return parser


def handle_direct_launch(store: YamlBookmarkStore, launcher: BrowserLauncher, query: str) -> int:
    try:
        bookmark = resolve(query, store.load())
    except NotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Opening '{bookmark.name}'  ({bookmark.url})")
    try:
        launcher.open_sync(bookmark.url)
    except LaunchError as e:
        print(f"Error: failed to open '{bookmark.name}': {e}", file=sys.stderr)
        return 1
    return 0


def handle_list(store: YamlBookmarkStore, tag: Optional[str]) -> int:
    def clean(value: str) -> str:
        return (value or "").replace("\n", " ").replace("\t", " ").strip()

    for entry in compute_view(store.load(), "", tag):
        bm = entry.bookmark
        line = f"{clean(bm.name)}\t{clean(bm.url)}\t{clean(bm.desc)}\t{', '.join(bm.tags)}"
        print(line.rstrip())
    return 0


def handle_add(store: YamlBookmarkStore, name: str, url: str, desc: str, tags: str) -> int:
    try:
        bookmark = make_bookmark(name, url, desc, parse_tags(tags))
        store.save(add_bookmark(store.load(), bookmark))
    except (ValidationError, DuplicateNameError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print(f"Bookmark '{bookmark.name}' added.")
    return 0


def handle_delete(store: YamlBookmarkStore, name: str) -> int:
    try:
        store.save(remove_bookmark(store.load(), name))
    except NotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Bookmark '{name}' deleted.")
    return 0


def run(argv: Optional[List[str]] = None, config: Optional[Config] = None) -> int:
    """Parse arguments and dispatch. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config or Config.from_env()

    store = YamlBookmarkStore(args.file or config.bookmarks_path)
    launcher = BrowserLauncher(timeout=config.launch_timeout)

    if args.query and (args.list or args.add or args.delete):
        parser.error("a QUERY cannot be combined with --list, --add or --delete")

    try:
        if args.list:
            return handle_list(store, args.tag)
        if args.add:
            return handle_add(store, args.add[0], args.add[1], args.desc, args.tags)
        if args.delete:
            return handle_delete(store, args.delete)
        if args.query:
            return handle_direct_launch(store, launcher, " ".join(args.query))

        from bmk.tui import run_tui

        run_tui(store, launcher, quit_on_launch=config.quit_on_launch)
        return 0
    except BookmarkError as e:
        # store unreadable, malformed, or not writable
        print(f"Error: {e}", file=sys.stderr)
        return 1
