"""Sync a pinned subset of web-platform-tests files into a project."""

__version__ = "0.1.0"
