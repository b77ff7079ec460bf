"""Error types shared by the tracker services."""


class TrackerError(Exception):
    """Base class for tracker errors."""


class ConfigurationError(TrackerError):
    """Missing credentials or malformed administrative input."""


class SourceFetchError(TrackerError):
    """Retrieving one account's profile page failed."""

    def __init__(self, display_name: str, message: str, status_code: int | None = None):
        self.display_name = display_name
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{self.display_name}: {base} (status {self.status_code})"
        return f"{self.display_name}: {base}"


class StorageError(TrackerError):
    """A read or write against the snapshot database failed."""


class ConflictError(StorageError):
    """An account with the same display name already exists."""
