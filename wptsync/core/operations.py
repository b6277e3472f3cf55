"""Config bootstrap and file discovery commands."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..errors import ConfigError, WptSyncError
from ..models.config import FileEntry, WptConfig
from .client import GitHubClient
from .deadline import METADATA_TIMEOUT, Deadline

DEFAULT_TARGET_DIR = "wpt"
ANY_JS_SUFFIX = ".any.js"


def destination_for(src: str) -> str:
    """Map a WPT path to its local path.

    Multi-global tests (foo.any.js) are stored as plain scripts (foo.js).
    """
    if src.endswith(ANY_JS_SUFFIX):
        return src[: -len(ANY_JS_SUFFIX)] + ".js"
    return src


def init_config(
    config_path: Path,
    client: GitHubClient | None = None,
    console: Console | None = None,
) -> WptConfig:
    """Create a config pinned to the latest WPT commit.

    Raises:
        ConfigError: If the config file already exists
        FetchError: If the latest commit cannot be fetched
    """
    console = console or Console()
    config_path = Path(config_path)

    if config_path.exists():
        raise ConfigError(f"config file {str(config_path)!r} already exists")

    client = client or GitHubClient()
    console.print("Fetching latest WPT commit...")

    try:
        commit = client.latest_commit(deadline=Deadline(METADATA_TIMEOUT))
    except WptSyncError as e:
        raise e.add_context("fetch latest commit")

    config = WptConfig(commit=commit, target_dir=DEFAULT_TARGET_DIR)
    config.save(config_path)

    console.print(f"[green]Created {escape(str(config_path))} with commit {commit}")
    return config


def add_files(
    config_path: Path,
    wpt_path: str,
    client: GitHubClient | None = None,
    console: Console | None = None,
) -> list[FileEntry]:
    """Add every .js file under a WPT path to the config.

    Sources already in the config are skipped. The config is only rewritten
    when something was added.

    Args:
        config_path: Config file to update
        wpt_path: File or directory within the WPT repository
        client: GitHub client (created if not provided)
        console: Console for progress output

    Returns:
        Newly added entries
    """
    console = console or Console()
    config_path = Path(config_path)

    config = WptConfig.load(config_path)
    wpt_path = wpt_path.strip("/")
    client = client or GitHubClient()

    console.print(f"Fetching file list from {escape(wpt_path)}...")

    try:
        sources = client.list_files(config.commit, wpt_path, deadline=Deadline(METADATA_TIMEOUT))
    except WptSyncError as e:
        raise e.add_context("list files")

    if not sources:
        console.print(f"[yellow]No .js files found in {escape(wpt_path)}")
        return []

    added: list[FileEntry] = []
    for src in sources:
        if config.has_source(src):
            continue

        entry = FileEntry(src=src, dst=destination_for(src))
        config.files.append(entry)
        added.append(entry)
        console.print(f" + {escape(src)}")

    if not added:
        console.print("No new files to add (all files already in config).")
        return []

    config.save(config_path)
    console.print(f"[green]Added {len(added)} files to {escape(str(config_path))}")
    return added
