"""Shared fixtures for wptsync tests."""

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from wptsync.errors import FetchError


class FakeFetcher:
    """In-memory stand-in for RawContentClient."""

    raw_url = "https://raw.example.test/wpt"

    def __init__(self, contents: dict[str, bytes], failures: set[str] | None = None) -> None:
        self.contents = contents
        self.failures = failures or set()
        self.calls: list[tuple[str, str]] = []

    def fetch(self, commit, src, deadline):
        self.calls.append((commit, src))
        if src in self.failures or src not in self.contents:
            raise FetchError("unexpected status 404 Not Found", 404)
        return iter([self.contents[src]])


class RecordingApplier:
    """Patch applier that records calls instead of running git."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, str]] = []

    def apply(self, root, patch, deadline=None):
        self.calls.append((Path(root), patch))


@pytest.fixture
def output():
    """A console writing to a buffer, and the buffer."""
    buffer = io.StringIO()
    return Console(file=buffer, width=200), buffer


@pytest.fixture
def write_config(tmp_path):
    """Write a wpt.json into tmp_path and return its path."""

    def _write(data: dict, name: str = "wpt.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path

    return _write
