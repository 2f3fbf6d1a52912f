"""Core utilities: results, retry, caching, rate limiting, DI."""

from .result import Result
from .retry import RetryPolicy
from .cache import ResultCache
from .rate_limiter import RateLimiter, RateLimiterRegistry
from .container import Container
from .exceptions import (
    NewsReelsError,
    ConfigurationError,
    ExternalServiceError,
    PermanentError,
    RetryExhaustedError,
    StoreError,
    StoreUnavailableError,
    ItemNotFoundError,
    StageGateError,
    PublishRejectedError,
    PipelineError,
)

__all__ = [
    # Result pattern
    "Result",
    # Resilience
    "RetryPolicy",
    "ResultCache",
    "RateLimiter",
    "RateLimiterRegistry",
    # Dependency injection
    "Container",
    # Exceptions
    "NewsReelsError",
    "ConfigurationError",
    "ExternalServiceError",
    "PermanentError",
    "RetryExhaustedError",
    "StoreError",
    "StoreUnavailableError",
    "ItemNotFoundError",
    "StageGateError",
    "PublishRejectedError",
    "PipelineError",
]
