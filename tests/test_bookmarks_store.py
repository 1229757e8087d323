"""Tests for bookmarks_store module."""
import pytest
import yaml

from bmk.bookmarks import Bookmark
from bmk.bookmarks_store import (
    YamlBookmarkStore,
    backup_bookmarks,
    get_default_bookmarks_path,
    load_bookmarks_file,
    read_bookmarks,
    write_bookmarks,
)
from bmk.errors import ParseError, StoreIOError


class TestReadBookmarks:
    def test_reads_all_bookmarks(self, sample_bookmarks_path):
        bookmarks = read_bookmarks(sample_bookmarks_path)
        assert len(bookmarks) == 4

    def test_sorted_by_name(self, sample_bookmarks_path):
        names = [b.name for b in read_bookmarks(sample_bookmarks_path)]
        assert names == ["docs", "gh", "pydocs", "so"]

    def test_bookmark_fields(self, sample_bookmarks_path):
        gh = next(b for b in read_bookmarks(sample_bookmarks_path) if b.name == "gh")
        assert gh == Bookmark("gh", "https://github.com", "The place for code", ("dev",))

    def test_optional_fields(self, sample_bookmarks_path):
        so = next(b for b in read_bookmarks(sample_bookmarks_path) if b.name == "so")
        assert so.desc == ""
        assert so.tags == ()

    def test_missing_file_is_empty(self, tmp_path):
        assert read_bookmarks(tmp_path / "nonexistent.yaml") == []

    def test_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "bookmarks.yaml"
        path.write_text("")
        assert read_bookmarks(path) == []

    def test_malformed_yaml_raises(self, tmp_path):
        bad_file = tmp_path / "bookmarks.yaml"
        bad_file.write_text("gh: [unclosed\n")
        with pytest.raises(ParseError):
            read_bookmarks(bad_file)

    def test_top_level_list_raises(self, tmp_path):
        bad_file = tmp_path / "bookmarks.yaml"
        bad_file.write_text("- a\n- b\n")
        with pytest.raises(ParseError):
            read_bookmarks(bad_file)

    def test_entry_without_url_raises(self, tmp_path):
        bad_file = tmp_path / "bookmarks.yaml"
        bad_file.write_text("gh:\n  desc: no url here\nok:\n  url: https://ok\n")
        with pytest.raises(ParseError, match="gh"):
            read_bookmarks(bad_file)

    def test_entry_not_mapping_raises(self, tmp_path):
        bad_file = tmp_path / "bookmarks.yaml"
        bad_file.write_text("gh: https://github.com\n")
        with pytest.raises(ParseError):
            read_bookmarks(bad_file)

    def test_duplicate_name_raises(self, tmp_path):
        bad_file = tmp_path / "bookmarks.yaml"
        bad_file.write_text(
            "gh:\n  url: https://github.com\n"
            "so:\n  url: https://stackoverflow.com\n"
            "gh:\n  url: https://gitlab.com\n"
        )
        with pytest.raises(ParseError, match="duplicate key 'gh'"):
            read_bookmarks(bad_file)

    def test_repeated_field_names_across_entries_allowed(self, sample_bookmarks_path):
        assert len(read_bookmarks(sample_bookmarks_path)) == 4

    def test_unreadable_path_raises_io_error(self, tmp_path):
        # A directory exists but cannot be opened as a file
        directory = tmp_path / "bookmarks.yaml"
        directory.mkdir()
        with pytest.raises(StoreIOError):
            load_bookmarks_file(directory)


class TestWriteBookmarks:
    def test_round_trip(self, tmp_path, sample_bookmarks):
        path = tmp_path / "out.yaml"
        write_bookmarks(sample_bookmarks, path)
        assert read_bookmarks(path) == sorted(sample_bookmarks, key=lambda b: b.name)

    def test_format_is_name_mapping(self, tmp_path, two_bookmarks):
        path = tmp_path / "out.yaml"
        write_bookmarks(two_bookmarks, path)
        data = yaml.safe_load(path.read_text())
        assert list(data) == ["docs", "gh"]
        assert data["gh"] == {"url": "https://github.com", "desc": "", "tags": ["dev"]}

    def test_creates_parent_directory(self, tmp_path, two_bookmarks):
        path = tmp_path / "nested" / "dir" / "bookmarks.yaml"
        write_bookmarks(two_bookmarks, path)
        assert path.exists()

    def test_creates_backup_before_write(self, sample_bookmarks_path, two_bookmarks):
        original = sample_bookmarks_path.read_text()
        write_bookmarks(two_bookmarks, sample_bookmarks_path)
        bak = sample_bookmarks_path.with_suffix(".yaml.bak")
        assert bak.exists()
        assert bak.read_text() == original

    def test_no_backup_for_new_file(self, tmp_path, two_bookmarks):
        path = tmp_path / "bookmarks.yaml"
        write_bookmarks(two_bookmarks, path)
        assert not path.with_suffix(".yaml.bak").exists()

    def test_unwritable_raises_io_error(self, tmp_path, two_bookmarks):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(StoreIOError):
            write_bookmarks(two_bookmarks, blocker / "bookmarks.yaml")

    def test_no_temporary_file_left(self, sample_bookmarks_path, two_bookmarks):
        write_bookmarks(two_bookmarks, sample_bookmarks_path)
        assert sorted(p.name for p in sample_bookmarks_path.parent.iterdir()) == [
            "bookmarks.yaml",
            "bookmarks.yaml.bak",
        ]

    def test_failed_replace_keeps_original(self, sample_bookmarks_path, two_bookmarks, monkeypatch):
        original = sample_bookmarks_path.read_text()

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("bmk.bookmarks_store.os.replace", failing_replace)
        with pytest.raises(StoreIOError, match="disk full"):
            write_bookmarks(two_bookmarks, sample_bookmarks_path)
        assert sample_bookmarks_path.read_text() == original
        assert not sample_bookmarks_path.with_name("bookmarks.yaml.tmp").exists()


class TestBackup:
    def test_backup_copies_file(self, sample_bookmarks_path):
        bak = backup_bookmarks(sample_bookmarks_path)
        assert bak.read_text() == sample_bookmarks_path.read_text()


class TestStore:
    def test_default_path(self):
        assert get_default_bookmarks_path().parts[-3:] == (".config", "bmk", "bookmarks.yaml")

    def test_load_and_save(self, tmp_path, two_bookmarks):
        store = YamlBookmarkStore(tmp_path / "bookmarks.yaml")
        assert store.load() == []
        store.save(two_bookmarks)
        assert [b.name for b in store.load()] == ["docs", "gh"]
