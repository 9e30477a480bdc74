"""
Key-value backend over a Redis-compatible REST API (Upstash / Vercel KV).

Layout:
    bill:<sNo>   JSON-encoded bill record
    all-bills    set of every stored sNo

Writes touch both keys in one multi-exec batch so the index never points
at a record that was not written.
"""

import json
from typing import Any

import httpx

from quickbill.config import get_logger, get_settings
from quickbill.core.entities.bill import (
    BillRecord,
    matches_customer,
    next_sequence_number,
    sort_newest_first,
)
from quickbill.core.exceptions import ConfigurationError, DataError
from quickbill.infrastructure.storage.http_base import BaseHttpBillStore

logger = get_logger(__name__)


class RedisRestBillStore(BaseHttpBillStore):
    """Bill storage on a Redis REST endpoint."""

    name = "kv"

    def __init__(
        self,
        rest_api_url: str | None = None,
        rest_api_token: str | None = None,
        key_prefix: str | None = None,
        index_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        **http_options: Any,
    ) -> None:
        super().__init__(client=client, **http_options)
        settings = get_settings()
        self.rest_api_url = (rest_api_url or settings.kv.rest_api_url or "").rstrip("/")
        self.rest_api_token = rest_api_token or settings.kv.rest_api_token
        self.key_prefix = key_prefix or settings.kv.key_prefix
        self.index_key = index_key or settings.kv.index_key

    def _record_key(self, s_no: str) -> str:
        return f"{self.key_prefix}{s_no}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.rest_api_token}"}

    def _unwrap(self, body: Any, operation: str) -> Any:
        """Extract "result" from a REST reply, surfacing "error" replies."""
        if not isinstance(body, dict):
            raise DataError(self.name, f"{operation}: unexpected reply {body!r:.100}")
        if "error" in body:
            raise DataError(self.name, f"{operation}: {body['error']}")
        return body.get("result")

    async def _command(self, *args: str, operation: str) -> Any:
        response = await self._request(
            "POST",
            self.rest_api_url,
            operation=operation,
            headers=self._headers(),
            json=list(args),
        )
        return self._unwrap(self._decode_json(response), operation)

    async def _transaction(self, commands: list[list[str]], operation: str) -> list[Any]:
        response = await self._request(
            "POST",
            f"{self.rest_api_url}/multi-exec",
            operation=operation,
            headers=self._headers(),
            json=commands,
        )
        body = self._decode_json(response)
        if isinstance(body, dict):
            # Whole transaction rejected
            self._unwrap(body, operation)
            return []
        if not isinstance(body, list):
            raise DataError(self.name, f"{operation}: unexpected reply {body!r:.100}")
        return [self._unwrap(reply, operation) for reply in body]

    async def initialize(self) -> None:
        missing = []
        if not self.rest_api_url:
            missing.append("KV_REST_API_URL")
        if not self.rest_api_token:
            missing.append("KV_REST_API_TOKEN")
        if missing:
            raise ConfigurationError(self.name, missing)

        await self._command("PING", operation="initialize")
        logger.info("kv_store_initialized", url=self.rest_api_url)

    async def save_record(self, record: BillRecord) -> BillRecord:
        await self._transaction(
            [
                ["SET", self._record_key(record.s_no), json.dumps(record.to_payload())],
                ["SADD", self.index_key, record.s_no],
            ],
            operation="save_record",
        )
        logger.info("bill_saved", backend=self.name, s_no=record.s_no, items=len(record.items))
        return record.model_copy(deep=True)

    async def _indexed_s_nos(self, operation: str) -> list[str]:
        members = await self._command("SMEMBERS", self.index_key, operation=operation)
        if members is None:
            return []
        if not isinstance(members, list):
            raise DataError(self.name, f"{operation}: index is not a set", key=self.index_key)
        return [str(m) for m in members]

    async def fetch_all(self) -> list[BillRecord]:
        s_nos = await self._indexed_s_nos("fetch_all")
        if not s_nos:
            return []

        keys = [self._record_key(s_no) for s_no in s_nos]
        values = await self._command("MGET", *keys, operation="fetch_all")
        if not isinstance(values, list):
            raise DataError(self.name, "fetch_all: MGET reply is not a list")

        records = []
        for key, raw in zip(keys, values):
            if raw is None:
                logger.warning("kv_index_dangling", backend=self.name, key=key)
                continue
            records.append(self._parse_record(self._load_value(raw, key), key=key))
        return sort_newest_first(records)

    def _load_value(self, raw: Any, key: str) -> Any:
        if isinstance(raw, dict):
            return raw
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise DataError(self.name, f"invalid JSON value: {e}", key=key) from e

    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        return [r for r in await self.fetch_all() if matches_customer(r, customer_name)]

    async def delete_record(self, s_no: str) -> None:
        await self._transaction(
            [
                ["DEL", self._record_key(s_no)],
                ["SREM", self.index_key, s_no],
            ],
            operation="delete_record",
        )
        logger.info("bill_deleted", backend=self.name, s_no=s_no)

    async def next_sequence_number(self) -> str:
        """Max+1 over the indexed sNo values, recomputed on every call."""
        return next_sequence_number(await self._indexed_s_nos("next_sequence_number"))
