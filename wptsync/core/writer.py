"""Atomic file writes for downloaded content."""

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ..errors import WriteError

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".wpt-download-"


def write_atomic(dest: Path, chunks: Iterable[bytes]) -> None:
    """Write chunks to dest so readers never see a partial file.

    The temp file lives in dest's directory so the final rename stays on
    one filesystem. Errors raised by the chunk iterator propagate unchanged
    after the temp file is removed.

    Args:
        dest: Destination file path
        chunks: File content

    Raises:
        WriteError: On filesystem errors
    """
    dest = Path(dest)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteError(f"create destination directory: {e}") from e

    try:
        fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=TEMP_PREFIX)
    except OSError as e:
        raise WriteError(f"create temp file: {e}") from e

    tmp_path = Path(tmp_name)
    logger.debug("Writing %s via %s", dest, tmp_path.name)

    stage = "write temp file"
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            for chunk in chunks:
                tmp_file.write(chunk)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())

        stage = "move file into place"
        os.replace(tmp_path, dest)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise WriteError(f"{stage}: {e}") from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
