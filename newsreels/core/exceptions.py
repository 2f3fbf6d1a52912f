"""
Exception hierarchy for newsreels.

Per-item failures travel as Result values; these exceptions mark the
conditions that abort a stage run, stop a retry loop early, or classify an
external failure.
"""

from typing import Optional


class NewsReelsError(Exception):
    """Base exception for all newsreels errors."""
    pass


class ConfigurationError(NewsReelsError):
    """Configuration or wiring error."""
    pass


class ExternalServiceError(NewsReelsError):
    """Transient failure of an external dependency (timeout, 5xx, bad response)."""
    pass


class PermanentError(NewsReelsError):
    """Failure that retrying cannot fix. RetryPolicy gives up immediately."""
    pass


class RetryExhaustedError(NewsReelsError):
    """All attempts of a retried operation failed."""

    def __init__(self, operation: str, attempts: int, last_error: Optional[BaseException]):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} failed after {attempts} attempt(s): {last_error}"
        )


class StoreError(NewsReelsError):
    """Item store error."""
    pass


class StoreUnavailableError(StoreError):
    """Backing store unreachable or unreadable. Fatal for the current stage run."""
    pass


class ItemNotFoundError(StoreError):
    """No item with the given id."""
    pass


class StageGateError(StoreError):
    """A stage flag was about to be set without its required inputs or outputs."""
    pass


class PublishRejectedError(NewsReelsError):
    """The social platform definitely did not accept the post."""
    pass


class PipelineError(NewsReelsError):
    """Error in pipeline orchestration."""
    pass
