"""Sync pipeline: download configured files and apply their patches."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from ..errors import WptSyncError
from ..models.config import FileEntry, WptConfig
from .client import RawContentClient
from .deadline import SYNC_TIMEOUT, Deadline
from .patcher import GitPatchApplier, PatchApplier
from .writer import write_atomic


class Fetcher(Protocol):
    """Anything that can stream a file at a commit."""

    raw_url: str

    def fetch(self, commit: str, src: str, deadline: Deadline) -> Iterable[bytes]: ...


class EntryState:
    """Stages a file entry moves through during a run."""

    PENDING = "pending"
    SKIPPED = "skipped"
    PLANNED = "planned"
    FETCHED = "fetched"
    WRITTEN = "written"
    PATCHED = "patched"
    UNPATCHED = "unpatched"
    DONE = "done"
    FAILED = "failed"


@dataclass
class EntryResult:
    """Outcome of processing one file entry."""

    entry: FileEntry
    dest: Path | None = None
    history: list[str] = field(default_factory=lambda: [EntryState.PENDING])

    @property
    def state(self) -> str:
        return self.history[-1]

    def advance(self, state: str) -> None:
        self.history.append(state)


@dataclass
class SyncOptions:
    """Per-run switches."""

    skip_patching: bool = False
    dry_run: bool = False
    timeout: float = SYNC_TIMEOUT  # Budget for the whole run, not per file


class SyncPipeline:
    """Processes file entries strictly in config order, stopping at the first error."""

    def __init__(
        self,
        config: WptConfig,
        root: Path,
        fetcher: Fetcher | None = None,
        applier: PatchApplier | None = None,
        console: Console | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Validated sync configuration
            root: Directory containing the config file
            fetcher: Remote fetcher (RawContentClient if not provided)
            applier: Patch applier (GitPatchApplier if not provided)
            console: Console for progress output
        """
        self.config = config
        self.root = Path(root)
        self._fetcher = fetcher
        self.applier = applier or GitPatchApplier()
        self.console = console or Console()

    @property
    def fetcher(self) -> Fetcher:
        """Get or create the raw content client."""
        if self._fetcher is None:
            self._fetcher = RawContentClient()
        return self._fetcher

    def run(self, options: SyncOptions | None = None) -> list[EntryResult]:
        """Run the sync.

        Args:
            options: Run options (defaults if not provided)

        Returns:
            One result per entry processed, in config order

        Raises:
            WptSyncError: The first error encountered, with file context
        """
        options = options or SyncOptions()
        deadline = Deadline(options.timeout)
        results: list[EntryResult] = []

        for entry in self.config.files:
            result = EntryResult(entry=entry)
            results.append(result)

            if not entry.is_enabled:
                self.console.print(f" - skipping {escape(entry.src)} (disabled)", style="dim")
                result.advance(EntryState.SKIPPED)
                continue

            self._process(entry, result, options, deadline)

        return results

    def _process(
        self,
        entry: FileEntry,
        result: EntryResult,
        options: SyncOptions,
        deadline: Deadline,
    ) -> None:
        """Run one entry through plan, fetch, write and patch."""
        src = entry.normalized_src

        try:
            dest = self.config.destination(self.root, entry)
        except WptSyncError as e:
            result.advance(EntryState.FAILED)
            raise e.add_context(f"entry {src}")

        result.dest = dest
        result.advance(EntryState.PLANNED)
        self.console.print(f" - {escape(src)} -> {escape(str(dest))}")

        if options.dry_run:
            return

        try:
            chunks = self.fetcher.fetch(self.config.commit, src, deadline)
            result.advance(EntryState.FETCHED)
            try:
                write_atomic(dest, chunks)
            finally:
                # The writer may fail before reading the body
                close = getattr(chunks, "close", None)
                if close is not None:
                    close()
            result.advance(EntryState.WRITTEN)
        except WptSyncError as e:
            result.advance(EntryState.FAILED)
            raise e.add_context(f"download {src}")

        if options.skip_patching or not entry.patch:
            result.advance(EntryState.UNPATCHED)
        else:
            try:
                self.applier.apply(self.root, entry.patch, deadline)
            except WptSyncError as e:
                result.advance(EntryState.FAILED)
                raise e.add_context(f"apply patch {entry.patch}")
            result.advance(EntryState.PATCHED)

        result.advance(EntryState.DONE)


def run_sync(
    config_path: Path,
    options: SyncOptions | None = None,
    fetcher: Fetcher | None = None,
    applier: PatchApplier | None = None,
    console: Console | None = None,
) -> list[EntryResult]:
    """Load a config file and sync its files.

    The config file's directory is the working root: target_dir and patch
    paths are resolved against it, and git apply runs there.

    Raises:
        WptSyncError: On the first config, fetch, write or patch error
    """
    console = console or Console()
    config_path = Path(config_path)
    root = config_path.absolute().parent

    config = WptConfig.load(config_path)
    config.validate()

    if not config.files:
        console.print("No files configured to sync.")
        return []

    pipeline = SyncPipeline(config, root, fetcher=fetcher, applier=applier, console=console)

    console.print(
        f"Syncing {len(config.files)} WPT files from {escape(pipeline.fetcher.raw_url)} "
        f"at commit {escape(config.commit)}"
    )
    if options and options.dry_run:
        console.print("[yellow](DRY RUN - no files will be written)")

    return pipeline.run(options)
