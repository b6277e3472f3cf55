"""Data models for the sync tool."""

from .config import FileEntry, WptConfig

__all__ = [
    "FileEntry",
    "WptConfig",
]
