"""Exception hierarchy for the frost monitor."""


class FrostwatchError(Exception):
    """Base class for all frostwatch errors."""


class ConfigError(FrostwatchError):
    """Raised when configuration is invalid or incomplete."""


class ProviderError(FrostwatchError):
    """Raised when the forecast provider cannot be reached or returns garbage."""

    def __init__(self, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status


class EmptySeriesError(FrostwatchError):
    """Raised when a forecast has no usable points."""


class PersistenceError(FrostwatchError):
    """Raised when the store is unavailable or rejects a write."""
