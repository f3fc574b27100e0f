"""
Error hierarchy for the hive client.

Core components raise these and let them propagate; the CLI layer is the
only place that catches them, logs, and returns to the menu.
"""
from typing import Optional


class HiveError(Exception):
    """Base class for all hive errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
            cause: Original exception, if any
        """
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class RemoteUnavailable(HiveError):
    """Transport, auth, rate-limit or API status failure from the remote service."""


class RunFailed(HiveError):
    """A run reached a terminal status other than completed."""

    def __init__(self, run_id: str, status: str):
        super().__init__(f"Assistant run {run_id} ended with status '{status}'")
        self.run_id = run_id
        self.status = status


class PollTimeout(HiveError):
    """A poll loop exhausted its attempt budget without a terminal status."""

    def __init__(self, what: str, attempts: int):
        super().__init__(f"Gave up waiting for {what} after {attempts} attempts")
        self.what = what
        self.attempts = attempts


class PollCancelled(HiveError):
    """A poll loop was cancelled while waiting."""


class BatchIngestionFailed(HiveError):
    """A vector store file batch ended as failed or cancelled."""

    def __init__(self, batch_id: str, status: str):
        super().__init__(f"File batch {batch_id} ended with status '{status}'")
        self.batch_id = batch_id
        self.status = status


class PersistenceError(HiveError):
    """Reading or writing local state failed."""


class ConcurrentModification(PersistenceError):
    """The state document changed on disk since it was loaded."""


class NotFound(HiveError):
    """A local record does not exist."""


class DuplicateName(HiveError):
    """A record with the same display name already exists."""


class LocalFileError(HiveError):
    """A local file could not be read for upload."""
