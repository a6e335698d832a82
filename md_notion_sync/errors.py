"""Error types raised by the sync system."""


class SyncError(Exception):
    """Base class for sync failures raised by this package."""


class ConfigError(SyncError, ValueError):
    """Required configuration is missing or malformed."""


class SubscriptionError(SyncError):
    """The pre-flight subscription check explicitly rejected this repository."""

    def __init__(self, repository: str, status_code: int):
        self.repository = repository
        self.status_code = status_code
        super().__init__(
            f"Subscription check for {repository} failed with HTTP {status_code}"
        )
