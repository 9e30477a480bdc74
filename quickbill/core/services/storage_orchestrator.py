"""
Storage orchestrator: one bill store contract over a remote backend with
an offline fallback.

State machine:

    UNINITIALIZED --initialize()--> CONNECTED   (backend initialized)
    UNINITIALIZED --initialize()--> OFFLINE     (no backend, not configured,
                                                 or unreachable)
    CONNECTED --backend unavailable--> OFFLINE
    OFFLINE / CONNECTED --initialize()--> retried

Only explicit initialize() calls reconnect; there is no background retry.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from quickbill.config import get_logger
from quickbill.core.entities.bill import (
    FIRST_SEQUENCE_NUMBER,
    BillRecord,
    format_sequence_number,
    normalize_sequence_number,
    sequence_value,
)
from quickbill.core.exceptions import (
    BackendUnavailableError,
    ConfigurationError,
    StorageError,
)
from quickbill.core.interfaces.storage import IBillStore

logger = get_logger(__name__)

T = TypeVar("T")

STATUS_CONNECTED = "connected"
STATUS_LOCAL = "using local storage"


class ConnectionState(str, Enum):
    """Which store the orchestrator routes to."""

    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    OFFLINE = "offline"


class BillStorageOrchestrator:
    """
    Uniform async bill storage for the application layer.

    Reads never raise: on failure they fall back to the offline store or
    resolve to an empty list / "0001". Writes raise StorageError so the
    caller can tell the user the action did not take effect.
    """

    def __init__(self, backend: IBillStore | None, offline_store: IBillStore) -> None:
        self._backend = backend
        self._offline = offline_store
        self._state = ConnectionState.UNINITIALIZED
        self._last_error: StorageError | None = None
        # Highest numeric sNo stored or seen this session
        self._high_water = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def status_label(self) -> str:
        return STATUS_CONNECTED if self.connected else STATUS_LOCAL

    @property
    def backend_name(self) -> str | None:
        return self._backend.name if self._backend is not None else None

    @property
    def active_store_name(self) -> str:
        return self._active().name

    @property
    def last_error(self) -> StorageError | None:
        return self._last_error

    def clear_error(self) -> None:
        self._last_error = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> ConnectionState:
        """Prepare the offline store and try to connect the backend."""
        try:
            await self._offline.initialize()
        except StorageError as e:
            self._record_error("initialize", e)

        if self._backend is None:
            self._state = ConnectionState.OFFLINE
            logger.info("storage_offline", reason="no_backend")
            return self._state

        try:
            await self._backend.initialize()
        except ConfigurationError as e:
            self._state = ConnectionState.OFFLINE
            logger.info(
                "storage_offline",
                reason="not_configured",
                backend=self._backend.name,
                missing=e.details.get("missing"),
            )
        except StorageError as e:
            self._go_offline("initialize", e)
        else:
            self._state = ConnectionState.CONNECTED
            self._last_error = None
            logger.info("storage_connected", backend=self._backend.name)

        return self._state

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.close()
        await self._offline.close()

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def save_record(self, record: BillRecord) -> BillRecord:
        saved = await self._write("save_record", lambda store: store.save_record(record))
        self._observe([saved.s_no])
        return saved

    async def delete_record(self, s_no: str) -> None:
        s_no = normalize_sequence_number(s_no)
        await self._write("delete_record", lambda store: store.delete_record(s_no))

    async def fetch_all(self) -> list[BillRecord]:
        records = await self._read("fetch_all", lambda store: store.fetch_all(), [])
        self._observe(r.s_no for r in records)
        return records

    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        return await self._read(
            "fetch_by_customer",
            lambda store: store.fetch_by_customer(customer_name),
            [],
        )

    async def next_sequence_number(self) -> str:
        """
        Next bill number, never below anything stored or seen this session.

        While connected the offline store is consulted too, so numbers
        issued before and after a backend switch do not collide.
        """
        candidates = [
            await self._read(
                "next_sequence_number",
                lambda store: store.next_sequence_number(),
                FIRST_SEQUENCE_NUMBER,
            )
        ]
        if self.connected:
            try:
                candidates.append(await self._offline.next_sequence_number())
            except StorageError as e:
                logger.warning("offline_sequence_unavailable", error=str(e))
        candidates.append(format_sequence_number(self._high_water + 1))
        return max(candidates, key=sequence_value)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _active(self) -> IBillStore:
        if self._state is ConnectionState.CONNECTED and self._backend is not None:
            return self._backend
        return self._offline

    async def _read(
        self,
        operation: str,
        call: Callable[[IBillStore], Awaitable[T]],
        default: T,
    ) -> T:
        store = self._active()
        try:
            return await call(store)
        except BackendUnavailableError as e:
            if store is self._offline:
                self._record_error(operation, e)
                return default
            self._go_offline(operation, e)
        except StorageError as e:
            self._record_error(operation, e)
            return default

        # Backend just dropped: answer this call from the offline store
        try:
            return await call(self._offline)
        except StorageError as e:
            self._record_error(operation, e)
            return default

    async def _write(
        self,
        operation: str,
        call: Callable[[IBillStore], Awaitable[T]],
    ) -> T:
        store = self._active()
        try:
            return await call(store)
        except BackendUnavailableError as e:
            if store is self._offline:
                self._record_error(operation, e)
            else:
                self._go_offline(operation, e)
            raise
        except StorageError as e:
            self._record_error(operation, e)
            raise

    def _go_offline(self, operation: str, error: StorageError) -> None:
        self._state = ConnectionState.OFFLINE
        self._last_error = error
        logger.warning(
            "storage_offline_fallback",
            operation=operation,
            backend=self.backend_name,
            error=error.message,
        )

    def _record_error(self, operation: str, error: StorageError) -> None:
        self._last_error = error
        logger.error(
            "storage_operation_failed",
            operation=operation,
            store=self.active_store_name,
            error_code=error.code,
            error=error.message,
        )

    def _observe(self, s_nos) -> None:
        for s_no in s_nos:
            value = sequence_value(s_no)
            if value > self._high_water:
                self._high_water = value
