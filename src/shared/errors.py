"""
Shared errors for the workspace core.

User-visible errors must be clear and actionable. Every failure inside the
store boundary is converted to one of the WorkspaceError kinds below.
"""
from typing import Optional


class AppErrors:
    """Centralized actionable error messages."""

    CAPACITY_EXCEEDED = (
        "Local storage is full. Export a backup from Settings, then remove "
        "large images from notes and try again."
    )

    STORAGE_WRITE_FAILED = (
        "Changes could not be saved locally. Check the data folder permissions and retry."
    )

    CORRUPT_DATA = (
        "Saved data could not be read and was reset to the initial workspace."
    )

    REMOTE_UNAVAILABLE = (
        "Sync server is not reachable. Working offline; changes stay on this machine."
    )

    IMPORT_INVALID = (
        "Invalid file format. The backup must contain users and teams."
    )

    UNKNOWN_USER = (
        "User not found. Reload the workspace and try again."
    )

    DUPLICATE_USER_ID = (
        "A user with this id already exists. Leave the id empty to generate one."
    )


class WorkspaceError(Exception):
    """Base class for all workspace core failures."""

    user_message = AppErrors.STORAGE_WRITE_FAILED


class CorruptPersistedData(WorkspaceError):
    """Persisted document could not be deserialized."""

    user_message = AppErrors.CORRUPT_DATA


class CapacityExceeded(WorkspaceError):
    """Durable medium rejected a write because of its size limit."""

    user_message = AppErrors.CAPACITY_EXCEEDED

    def __init__(self, message: str, size_bytes: Optional[int] = None,
                 quota_bytes: Optional[int] = None):
        super().__init__(message)
        self.size_bytes = size_bytes
        self.quota_bytes = quota_bytes


class StorageWriteFailed(WorkspaceError):
    """Durable medium rejected a write for a reason other than capacity."""

    user_message = AppErrors.STORAGE_WRITE_FAILED


class NetworkUnavailable(WorkspaceError):
    """Remote persistence service could not be reached."""

    user_message = AppErrors.REMOTE_UNAVAILABLE


class RemoteServiceError(WorkspaceError):
    """Remote persistence service answered with an error or an unusable body."""

    user_message = AppErrors.REMOTE_UNAVAILABLE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ImportValidationFailure(WorkspaceError):
    """Externally supplied document failed the structural check."""

    user_message = AppErrors.IMPORT_INVALID

    def __init__(self, message: str, problems: Optional[list[str]] = None):
        super().__init__(message)
        self.problems = problems or []


def format_storage_error(error: Exception) -> str:
    """Format a local storage error as an actionable message."""
    if isinstance(error, CapacityExceeded):
        if error.size_bytes and error.quota_bytes:
            return (
                f"{AppErrors.CAPACITY_EXCEEDED} "
                f"(document {error.size_bytes // 1024} KB, limit {error.quota_bytes // 1024} KB)"
            )
        return AppErrors.CAPACITY_EXCEEDED

    if isinstance(error, ImportValidationFailure):
        if error.problems:
            return f"{AppErrors.IMPORT_INVALID} ({'; '.join(error.problems)})"
        return AppErrors.IMPORT_INVALID

    if isinstance(error, WorkspaceError):
        return error.user_message

    return f"Storage error: {error}"


def format_remote_error(error: Exception) -> str:
    """Format a sync error as an actionable message."""
    if isinstance(error, NetworkUnavailable):
        return AppErrors.REMOTE_UNAVAILABLE

    if isinstance(error, RemoteServiceError):
        status = error.status_code if error.status_code is not None else "N/A"
        return f"Sync server error (status={status}): {error}"

    return f"Sync error: {error}"
