"""
Document-store backend over the Firebase Realtime Database REST API.

Bills live as documents at <bills_path>/<sNo>. The tree has no server-side
sort on our keys, so listing and customer lookups sort and filter
client-side.
"""

from typing import Any

import httpx

from quickbill.config import get_logger, get_settings
from quickbill.core.entities.bill import (
    RESERVED_KEY_CHARS_RE,
    BillRecord,
    matches_customer,
    next_sequence_number,
    sort_newest_first,
)
from quickbill.core.exceptions import ConfigurationError, ValidationError
from quickbill.infrastructure.storage.http_base import BaseHttpBillStore

logger = get_logger(__name__)


class FirebaseBillStore(BaseHttpBillStore):
    """Firebase Realtime Database bill storage."""

    name = "firebase"

    def __init__(
        self,
        database_url: str | None = None,
        auth_token: str | None = None,
        bills_path: str | None = None,
        client: httpx.AsyncClient | None = None,
        **http_options: Any,
    ) -> None:
        super().__init__(client=client, **http_options)
        settings = get_settings()
        self.database_url = (database_url or settings.firebase.database_url or "").rstrip("/")
        self.auth_token = auth_token or settings.firebase.auth_token
        self.bills_path = (bills_path or settings.firebase.bills_path).strip("/")

    def _url(self, path: str) -> str:
        return f"{self.database_url}/{path}.json"

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self.auth_token:
            params["auth"] = self.auth_token
        return params

    def _bill_path(self, s_no: str) -> str:
        if not s_no or RESERVED_KEY_CHARS_RE.search(s_no):
            raise ValidationError("sNo", "contains characters not allowed in document keys", s_no)
        return f"{self.bills_path}/{s_no}"

    async def initialize(self) -> None:
        """Probe the database with a cheap read."""
        if not self.database_url:
            raise ConfigurationError(self.name, ["FIREBASE_DATABASE_URL"])

        await self._request(
            "GET",
            self._url("test-connection"),
            operation="initialize",
            params=self._params(),
        )
        logger.info("firebase_store_initialized", database_url=self.database_url)

    async def save_record(self, record: BillRecord) -> BillRecord:
        path = self._bill_path(record.s_no)
        await self._request(
            "PUT",
            self._url(path),
            operation="save_record",
            params=self._params(),
            json=record.to_payload(),
        )
        logger.info("bill_saved", backend=self.name, s_no=record.s_no, items=len(record.items))
        return record.model_copy(deep=True)

    async def fetch_all(self) -> list[BillRecord]:
        response = await self._request(
            "GET",
            self._url(self.bills_path),
            operation="fetch_all",
            params=self._params(),
        )
        node = self._decode_json(response, key=self.bills_path)

        if node is None:
            return []
        # Integer-like keys come back as a sparse array
        if isinstance(node, list):
            entries = [(str(i), v) for i, v in enumerate(node) if v is not None]
        elif isinstance(node, dict):
            entries = list(node.items())
        else:
            entries = [(self.bills_path, node)]

        records = [self._parse_record(value, key=key) for key, value in entries]
        logger.debug("bills_fetched", backend=self.name, count=len(records))
        return sort_newest_first(records)

    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        return [r for r in await self.fetch_all() if matches_customer(r, customer_name)]

    async def delete_record(self, s_no: str) -> None:
        path = self._bill_path(s_no)
        await self._request(
            "DELETE",
            self._url(path),
            operation="delete_record",
            params=self._params(),
        )
        logger.info("bill_deleted", backend=self.name, s_no=s_no)

    async def next_sequence_number(self) -> str:
        """Max+1 over the bill keys, read with a shallow listing."""
        response = await self._request(
            "GET",
            self._url(self.bills_path),
            operation="next_sequence_number",
            params=self._params(shallow="true"),
        )
        keys = self._decode_json(response, key=self.bills_path)
        if isinstance(keys, dict):
            return next_sequence_number(keys.keys())
        if isinstance(keys, list):
            return next_sequence_number(str(i) for i, v in enumerate(keys) if v is not None)
        return next_sequence_number([])
