"""Wall-clock budget shared by every blocking call in a run."""

import time

from ..errors import SyncTimeoutError

SYNC_TIMEOUT = 120.0  # Whole sync run
METADATA_TIMEOUT = 30.0  # init/add API calls


class Deadline:
    """A fixed point in time after which blocking calls must not start."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        """Seconds left before the deadline (never negative)."""
        return max(0.0, self.expires_at - time.monotonic())

    def check(self, action: str = "operation") -> float:
        """Return the remaining budget, raising if it is used up.

        Raises:
            SyncTimeoutError: If the deadline has passed
        """
        remaining = self.remaining()
        if remaining <= 0:
            raise SyncTimeoutError(f"{action} exceeded the {self.seconds:g}s time budget")
        return remaining
