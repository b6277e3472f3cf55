"""Exceptions raised by the WPT sync tool."""


class WptSyncError(Exception):
    """Base class for all sync errors.

    Context (which file, which stage) is prepended as the error propagates,
    without changing the exception type.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.context: list[str] = []

    def add_context(self, context: str) -> "WptSyncError":
        """Prepend context to the message and return self for re-raising."""
        self.context.insert(0, context)
        return self

    def __str__(self) -> str:
        return ": ".join([*self.context, self.message])


class ConfigError(WptSyncError):
    """Missing, malformed or invalid configuration."""
    pass


class FetchError(WptSyncError):
    """Network failure or non-success response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SyncTimeoutError(FetchError):
    """The run's wall-clock budget was exhausted."""
    pass


class WriteError(WptSyncError):
    """Filesystem failure while writing a downloaded file."""
    pass


class PatchFailure:
    """Reasons a patch could not be applied."""

    NOT_FOUND = "not_found"
    WRONG_FORMAT = "wrong_format"
    APPLY_FAILED = "apply_failed"


class PatchError(WptSyncError):
    """Patch file missing, in the wrong format, or rejected by git apply."""

    def __init__(self, message: str, kind: str = PatchFailure.APPLY_FAILED) -> None:
        super().__init__(message)
        self.kind = kind
