"""
Common plumbing for external-API services: typed errors, an in-process TTL
cache and retry with exponential backoff.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple, TypeVar

import httpx
from loguru import logger


T = TypeVar("T")


class ServiceError(Exception):
    """Base error raised by services. Routes map ``status_code`` onto the response."""

    status_code = 500

    def __init__(self, message: str, service: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.service = service
        self.operation = operation


class NotFoundError(ServiceError):
    status_code = 404


class InvalidRequestError(ServiceError):
    status_code = 400


class ConflictError(ServiceError):
    status_code = 409


class ConfigurationError(ServiceError):
    status_code = 503


class ExternalAPIError(ServiceError):
    """Upstream API failure. ``retryable`` marks transient failures (429, 5xx)."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, retryable: bool = False, **kwargs):
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status
        self.retryable = retryable


class QuotaExceededError(ExternalAPIError):
    status_code = 429


def is_retryable(error: Exception) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    return isinstance(error, ExternalAPIError) and error.retryable


class BaseService:
    """Base class for services talking to external APIs."""

    def __init__(self, name: str, cache_ttl: float = 5 * 60, retry_base_delay: float = 1.0):
        self.name = name
        self.cache_ttl = cache_ttl
        self.retry_base_delay = retry_base_delay
        self._cache: Dict[str, Tuple[float, Any]] = {}

    # Cache

    def get_cached(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if time.monotonic() - stored_at >= self.cache_ttl:
            del self._cache[key]
            return None
        logger.debug(f"[{self.name}] cache hit: {key}")
        return value

    def set_cache(self, key: str, value: Any):
        self._cache[key] = (time.monotonic(), value)

    # Errors

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int = 3,
        base_delay: Optional[float] = None,
    ) -> T:
        """
        Run ``operation`` up to ``max_retries`` times.

        Only transient failures (network errors, upstream 429/5xx) are retried;
        the delay doubles after each attempt.
        """
        base_delay = self.retry_base_delay if base_delay is None else base_delay

        for attempt in range(max_retries):
            try:
                return await operation()
            except Exception as e:
                if not is_retryable(e) or attempt == max_retries - 1:
                    raise
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"[{self.name}] attempt {attempt + 1}/{max_retries} failed: {e}; retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise RuntimeError("max_retries must be positive")

    def handle_error(self, error: Exception, operation: str):
        """Log and re-raise ``error`` tagged with the service and operation."""
        logger.error(f"[{self.name}] {operation} failed: {error}")
        if isinstance(error, ServiceError):
            error.service = error.service or self.name
            error.operation = error.operation or operation
            raise error
        raise ServiceError(
            f"[{self.name}] {operation} failed: {error}",
            service=self.name,
            operation=operation,
        ) from error

    @staticmethod
    def validate_params(params: Dict[str, Any], required: Iterable[str]):
        missing = [key for key in required if not params.get(key)]
        if missing:
            raise InvalidRequestError(f"Missing required parameters: {', '.join(missing)}")
