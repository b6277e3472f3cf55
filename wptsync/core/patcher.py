"""Patch application for synced files."""

import logging
import subprocess
from pathlib import Path

from ..errors import PatchError, PatchFailure, SyncTimeoutError
from .deadline import Deadline

logger = logging.getLogger(__name__)

# Header of the apply_patch format, which git apply cannot read
APPLY_PATCH_SENTINEL = "*** Begin Patch"


def resolve_patch(root: Path, patch: str) -> Path:
    """Resolve a configured patch path and check that it exists.

    Raises:
        PatchError: If the patch file does not exist
    """
    patch_path = Path(patch)
    if not patch_path.is_absolute():
        patch_path = Path(root) / patch_path

    if not patch_path.is_file():
        raise PatchError(f"patch file {patch_path} not found", PatchFailure.NOT_FOUND)
    return patch_path


def check_patch_format(patch_path: Path) -> None:
    """Reject patches written in the apply_patch format.

    Only the first non-blank line is inspected.

    Raises:
        PatchError: If the patch is in the wrong format or unreadable
    """
    try:
        with open(patch_path, encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                if line.startswith(APPLY_PATCH_SENTINEL):
                    raise PatchError(
                        f"patch {patch_path} looks like apply_patch format; regenerate it "
                        f"with `git diff > {patch_path}` so git apply can read it",
                        PatchFailure.WRONG_FORMAT,
                    )
                break
    except OSError as e:
        raise PatchError(f"read patch {patch_path}: {e}", PatchFailure.NOT_FOUND) from e


class PatchApplier:
    """Applies a unified diff against a working tree.

    Subclasses implement _apply; the shared checks run first.
    """

    def apply(self, root: Path, patch: str, deadline: Deadline | None = None) -> None:
        """Apply a patch file relative to root.

        Args:
            root: Working tree root (the config file's directory)
            patch: Patch path, absolute or relative to root
            deadline: Optional run budget

        Raises:
            PatchError: If the patch is missing, malformed or fails to apply
        """
        patch_path = resolve_patch(root, patch)
        check_patch_format(patch_path)
        self._apply(Path(root), patch_path, deadline)

    def _apply(self, root: Path, patch_path: Path, deadline: Deadline | None) -> None:
        raise NotImplementedError


class GitPatchApplier(PatchApplier):
    """Runs `git apply`, letting its output through to the terminal."""

    def __init__(self, git: str = "git") -> None:
        self.git = git

    def build_command(self, patch_path: Path) -> list[str]:
        return [self.git, "apply", "--allow-empty", "--whitespace=nowarn", str(patch_path)]

    def _apply(self, root: Path, patch_path: Path, deadline: Deadline | None) -> None:
        cmd = self.build_command(patch_path)
        timeout = deadline.check("git apply") if deadline else None
        logger.debug("Running %s in %s", " ".join(cmd), root)

        try:
            result = subprocess.run(cmd, cwd=root, check=False, timeout=timeout)
        except FileNotFoundError as e:
            raise PatchError(f"{self.git} executable not found", PatchFailure.APPLY_FAILED) from e
        except subprocess.TimeoutExpired as e:
            raise SyncTimeoutError(f"git apply exceeded the {deadline.seconds:g}s time budget") from e

        if result.returncode != 0:
            raise PatchError(
                f"git apply failed: exit status {result.returncode}",
                PatchFailure.APPLY_FAILED,
            )
