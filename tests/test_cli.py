"""Tests for the command line entry points."""
from unittest.mock import patch

import pytest

from bmk.bookmarks_store import read_bookmarks
from bmk.cli import run
from bmk.config import Config
from bmk.errors import LaunchError


@pytest.fixture
def config(sample_bookmarks_path):
    return Config(bookmarks_path=sample_bookmarks_path)


class TestDirectLaunch:
    def test_opens_best_match(self, config, capsys):
        with patch("bmk.cli.BrowserLauncher.open_sync") as open_sync:
            code = run(["gh"], config=config)
        assert code == 0
        open_sync.assert_called_once_with("https://github.com")
        assert "gh" in capsys.readouterr().out

    def test_multi_word_query(self, config):
        with patch("bmk.cli.BrowserLauncher.open_sync") as open_sync:
            assert run(["official", "python"], config=config) == 0
        open_sync.assert_called_once_with("https://docs.python.org")

    def test_not_found(self, config, capsys):
        with patch("bmk.cli.BrowserLauncher.open_sync") as open_sync:
            code = run(["xyznonexistent"], config=config)
        assert code == 1
        open_sync.assert_not_called()
        assert "No bookmark matches" in capsys.readouterr().err

    def test_launch_error(self, config, capsys):
        with patch("bmk.cli.BrowserLauncher.open_sync", side_effect=LaunchError("no browser")):
            code = run(["gh"], config=config)
        assert code == 1
        assert "no browser" in capsys.readouterr().err

    def test_parse_error_at_startup(self, tmp_path, capsys):
        bad = tmp_path / "bookmarks.yaml"
        bad.write_text("- not a mapping\n")
        code = run(["gh"], config=Config(bookmarks_path=bad))
        assert code == 1
        assert "Error" in capsys.readouterr().err


class TestList:
    def test_lists_sorted(self, config, capsys):
        assert run(["--list"], config=config) == 0
        lines = capsys.readouterr().out.splitlines()
        assert [line.split("\t")[0] for line in lines] == ["docs", "gh", "pydocs", "so"]

    def test_list_by_tag(self, config, capsys):
        assert run(["--list", "--tag", "RUST"], config=config) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("docs\thttps://doc.rust-lang.org")


class TestAddDelete:
    def test_add(self, config, sample_bookmarks_path):
        code = run(["--add", "tmp", "https://tmp.com", "-d", "temp", "--tags", "x,y"], config=config)
        assert code == 0
        added = next(b for b in read_bookmarks(sample_bookmarks_path) if b.name == "tmp")
        assert added.desc == "temp"
        assert added.tags == ("x", "y")

    def test_add_duplicate(self, config, sample_bookmarks_path, capsys):
        before = sample_bookmarks_path.read_text()
        assert run(["--add", "gh", "https://other.com"], config=config) == 2
        assert sample_bookmarks_path.read_text() == before
        assert "already exists" in capsys.readouterr().err

    def test_add_creates_file(self, tmp_path):
        path = tmp_path / "new" / "bookmarks.yaml"
        assert run(["--add", "gh", "https://github.com"], config=Config(bookmarks_path=path)) == 0
        assert "url: https://github.com" in path.read_text()

    def test_delete(self, config, sample_bookmarks_path):
        assert run(["--delete", "so"], config=config) == 0
        assert "so" not in [b.name for b in read_bookmarks(sample_bookmarks_path)]

    def test_delete_missing(self, config, capsys):
        assert run(["--delete", "nope"], config=config) == 1
        assert "not found" in capsys.readouterr().err

    def test_file_flag_overrides_config(self, tmp_path, config):
        other = tmp_path / "other.yaml"
        assert run(["--file", str(other), "--add", "a", "https://a"], config=config) == 0
        assert [b.name for b in read_bookmarks(other)] == ["a"]


class TestInteractive:
    def test_no_arguments_starts_tui(self, config):
        with patch("bmk.tui.run_tui") as run_tui:
            assert run([], config=config) == 0
        run_tui.assert_called_once()

    def test_query_with_mode_flag_rejected(self, config):
        with pytest.raises(SystemExit):
            run(["gh", "--list"], config=config)
