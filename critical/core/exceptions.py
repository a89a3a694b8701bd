"""Exception hierarchy for the build pipeline."""


class CriticalError(Exception):
    """Base class for all critical-packages errors."""


class TransportError(CriticalError):
    """A request to the registry API failed or returned an unusable body."""

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP {status}: {url}"
        else:
            message = f"Request failed: {url}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class SchemaError(CriticalError):
    """Schema creation was attempted against a store that already has tables."""


class TransactionError(CriticalError):
    """A write transaction failed and was rolled back."""
