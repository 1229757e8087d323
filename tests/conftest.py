"""Shared fixtures for tests."""
import pytest

from bmk.bookmarks import Bookmark


SAMPLE_YAML = """\
gh:
  url: https://github.com
  desc: The place for code
  tags:
  - dev
docs:
  url: https://doc.rust-lang.org
  desc: ''
  tags:
  - dev
  - rust
pydocs:
  url: https://docs.python.org
  desc: Official Python documentation
  tags:
  - python
so:
  url: https://stackoverflow.com
"""


class FakeStore:
    """In-memory store recording every save."""

    def __init__(self, bookmarks=None, fail_save=None):
        self.bookmarks = list(bookmarks or [])
        self.saved = []
        self.fail_save = fail_save

    def load(self):
        return list(self.bookmarks)

    def save(self, bookmarks):
        if self.fail_save is not None:
            raise self.fail_save
        self.saved.append(list(bookmarks))
        self.bookmarks = list(bookmarks)


@pytest.fixture
def gh():
    return Bookmark("gh", "https://github.com", tags=("dev",))


@pytest.fixture
def docs():
    return Bookmark("docs", "https://doc.rust-lang.org", tags=("dev", "rust"))


@pytest.fixture
def two_bookmarks(gh, docs):
    """The two-bookmark list used by the scenario tests."""
    return [gh, docs]


@pytest.fixture
def sample_bookmarks(gh, docs):
    return [
        gh,
        docs,
        Bookmark("pydocs", "https://docs.python.org", "Official Python documentation", ("python",)),
        Bookmark("so", "https://stackoverflow.com"),
    ]


@pytest.fixture
def sample_bookmarks_path(tmp_path):
    """Create a temporary bookmarks file with sample data."""
    bookmarks_file = tmp_path / "bookmarks.yaml"
    bookmarks_file.write_text(SAMPLE_YAML)
    return bookmarks_file


@pytest.fixture
def fake_store(two_bookmarks):
    return FakeStore(two_bookmarks)
