"""
Shared pytest fixtures for tagsys tests.

Provides a sample taxonomy, an in-memory tag reader for search tests and
an isolated home directory so no test touches the real user config.
"""

import os
from pathlib import Path

import pytest

from tagsys.types import Forest, TagNode


class MockTagReader:
    """
    In-memory stand-in for FileTagger.read_tags.

    Maps file paths to tag sets; paths listed in `failing` raise OSError.
    """

    def __init__(self, tags: dict[str, set[str]] | None = None):
        self.tags: dict[str, set[str]] = dict(tags or {})
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def __call__(self, path: str) -> set[str]:
        self.calls.append(path)
        if path in self.failing:
            raise PermissionError(13, "Permission denied", path)
        return set(self.tags.get(path, set()))


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at a scratch directory and clear TAGSYS_* overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("TAGSYS_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("TAGSYS_ERROR_LOG", str(tmp_path / "errors.log"))
    return home


@pytest.fixture
def work_forest() -> Forest:
    """
    work(*) > urgent, later
    music > jazz > bebop
    """
    return Forest(roots=[
        TagNode("work", assignable=False, children=[
            TagNode("urgent"),
            TagNode("later"),
        ]),
        TagNode("music", children=[
            TagNode("jazz", children=[TagNode("bebop")]),
        ]),
    ])


@pytest.fixture
def mock_reader():
    return MockTagReader()


def _xattrs_work(directory: Path) -> bool:
    probe = directory / ".xattr-probe"
    probe.write_text("")
    try:
        os.setxattr(probe, "user.tagsys-probe", b"")
        os.removexattr(probe, "user.tagsys-probe")
        return True
    except (OSError, AttributeError):
        return False
    finally:
        probe.unlink()


@pytest.fixture
def xattr_dir(tmp_path) -> Path:
    """A directory on a filesystem with user xattrs; skips otherwise."""
    directory = tmp_path / "files"
    directory.mkdir()
    if not _xattrs_work(directory):
        pytest.skip("filesystem does not support user extended attributes")
    return directory


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "xattr: marks tests that need real extended attributes"
    )
