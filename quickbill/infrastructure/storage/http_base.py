"""
Base class for REST-backed bill stores with retry support.

Transport failures are retried with exponential backoff before being
reported as BackendUnavailableError.
"""

from abc import ABC
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from quickbill.config import get_logger, get_settings
from quickbill.core.entities.bill import BillRecord
from quickbill.core.exceptions import BackendUnavailableError, DataError
from quickbill.core.interfaces.storage import IBillStore

logger = get_logger(__name__)


class BaseHttpBillStore(IBillStore, ABC):
    """
    Shared HTTP plumbing for the document and key-value backends.

    Provides:
    - A lazily created httpx.AsyncClient (or an injected one, for tests)
    - Retries with exponential backoff on transport errors
    - Mapping of HTTP failures to storage exceptions
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.http.timeout
        self.max_retries = max_retries if max_retries is not None else settings.http.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.http.retry_delay
        self.retry_multiplier = settings.http.retry_multiplier
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator with current settings."""
        return retry(
            stop=stop_after_attempt(max(1, self.max_retries)),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * (self.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "storage_retry",
            backend=self.name,
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send a request with retries and map failures.

        Raises:
            BackendUnavailableError: transport failure after retries,
                auth rejection, or any non-2xx status
        """
        client = self._get_client()
        send = self._get_retry_decorator()(client.request)

        try:
            response = await send(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error("storage_request_failed", backend=self.name, operation=operation, error=str(e))
            raise BackendUnavailableError(self.name, f"{operation}: {e}") from e

        if response.status_code in (401, 403):
            raise BackendUnavailableError(self.name, f"{operation}: HTTP {response.status_code} (auth rejected)")

        if response.status_code >= 400:
            error_text = response.text[:200]
            raise BackendUnavailableError(
                self.name, f"{operation}: HTTP {response.status_code}: {error_text}"
            )

        return response

    def _decode_json(self, response: httpx.Response, key: str | None = None) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DataError(self.name, f"invalid JSON body: {e}", key=key) from e

    def _parse_record(self, payload: Any, key: str | None = None) -> BillRecord:
        """Validate a stored payload into a BillRecord."""
        if not isinstance(payload, dict):
            raise DataError(self.name, f"expected an object, got {type(payload).__name__}", key=key)
        try:
            return BillRecord.from_payload(payload)
        except PydanticValidationError as e:
            raise DataError(self.name, str(e), key=key) from e

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
