"""Tests for BillController."""

import asyncio
import datetime as dt

import httpx
import pytest

from quickbill.application import BillController, Notice, previous_balance
from quickbill.core.exceptions import (
    BackendUnavailableError,
    BillNotFoundError,
    DataError,
    ValidationError,
)
from quickbill.core.services import BillStorageOrchestrator
from quickbill.infrastructure.storage.firebase_store import FirebaseBillStore
from quickbill.infrastructure.storage.sqlite.offline_store import SQLiteOfflineStore


@pytest.fixture
async def offline_store(tmp_path):
    store = SQLiteOfflineStore(db_path=tmp_path / "offline.db")
    yield store
    await store.close()


@pytest.fixture
async def orchestrator(fake_backend, offline_store):
    orchestrator = BillStorageOrchestrator(backend=fake_backend, offline_store=offline_store)
    await orchestrator.initialize()
    return orchestrator


@pytest.fixture
async def controller(orchestrator):
    controller = BillController(orchestrator)
    await controller.start()
    return controller


class TestStart:
    """Tests for start() and new_bill()."""

    @pytest.mark.asyncio
    async def test_start_opens_first_draft(self, controller: BillController):
        assert controller.connected is True
        assert controller.status == "connected"
        assert controller.draft.s_no == "0001"
        assert controller.draft.date == dt.date.today()
        assert len(controller.draft.items) == 1
        assert controller.bills == []
        assert controller.notice is None

    @pytest.mark.asyncio
    async def test_start_loads_saved_bills(self, fake_backend, offline_store, make_record):
        fake_backend.records["0004"] = make_record(s_no="0004")
        controller = BillController(BillStorageOrchestrator(fake_backend, offline_store))

        await controller.start()

        assert [r.s_no for r in controller.bills] == ["0004"]
        assert controller.draft.s_no == "0005"

    @pytest.mark.asyncio
    async def test_start_offline(self, offline_store):
        controller = BillController(BillStorageOrchestrator(None, offline_store))

        await controller.start()

        assert controller.connected is False
        assert controller.status == "using local storage"

    @pytest.mark.asyncio
    async def test_new_bill_announces(self, controller: BillController):
        controller.set_field("customer_name", "Alice")

        await controller.new_bill()

        assert controller.draft.customer_name == ""
        assert controller.notice == Notice("info", "New bill created.")


class TestEditing:
    """Tests for field and item editing."""

    @pytest.mark.asyncio
    async def test_totals_follow_draft(self, controller: BillController):
        item = controller.draft.items[0]
        controller.update_item(item.id, "quantity", "2")
        controller.update_item(item.id, "rate", "10")
        controller.set_field("luggage", "3")
        controller.set_field("old_balance", 10)
        controller.set_field("paid_amount", 5)

        totals = controller.totals

        assert totals.sub_total == 20
        assert totals.total == 23
        assert totals.balance_due == 28

    @pytest.mark.asyncio
    async def test_numeric_input_coerced(self, controller: BillController):
        controller.set_field("luggage", "abc")
        assert controller.draft.luggage == 0.0

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, controller: BillController):
        with pytest.raises(ValidationError):
            controller.set_field("items", [])

    @pytest.mark.asyncio
    async def test_bad_date_rejected(self, controller: BillController):
        with pytest.raises(ValidationError) as exc_info:
            controller.set_field("date", "not a date")
        assert exc_info.value.details["field"] == "date"

    @pytest.mark.asyncio
    async def test_add_and_remove_items(self, controller: BillController):
        added = controller.add_item()
        assert len(controller.draft.items) == 2

        controller.remove_item(added.id)

        assert added.id not in [i.id for i in controller.draft.items]
        assert len(controller.draft.items) == 1

    @pytest.mark.asyncio
    async def test_update_unknown_item(self, controller: BillController):
        with pytest.raises(ValidationError):
            controller.update_item("missing", "name", "Rose")

    @pytest.mark.asyncio
    async def test_update_unknown_item_field(self, controller: BillController):
        item = controller.draft.items[0]
        with pytest.raises(ValidationError):
            controller.update_item(item.id, "amount", 5)


class TestPreviousBalance:
    """Tests for the old-balance auto-fill."""

    @pytest.mark.asyncio
    async def test_previous_balance_helper(self, orchestrator, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record

        assert await previous_balance(orchestrator, "alice") == 33
        assert await previous_balance(orchestrator, "Bob") is None

    @pytest.mark.asyncio
    async def test_latest_dated_bill_wins(self, orchestrator, fake_backend, make_record):
        fake_backend.records["0001"] = make_record(s_no="0001", on=dt.date(2024, 1, 1))
        fake_backend.records["0002"] = make_record(
            s_no="0002", on=dt.date(2024, 3, 1), paid_amount=5
        )

        assert await previous_balance(orchestrator, "Alice") == 15

    @pytest.mark.asyncio
    async def test_auto_fills_old_balance(self, controller, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record

        await controller.change_customer("Alice")

        assert controller.draft.customer_name == "Alice"
        assert controller.draft.old_balance == 33

    @pytest.mark.asyncio
    async def test_unknown_customer_keeps_zero(self, controller, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record

        await controller.change_customer("Bob")

        assert controller.draft.old_balance == 0

    @pytest.mark.asyncio
    async def test_skipped_when_old_balance_set(self, controller, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record
        controller.set_field("old_balance", 7)

        await controller.change_customer("Alice")

        assert controller.draft.old_balance == 7

    @pytest.mark.asyncio
    async def test_skipped_for_blank_name(self, controller, fake_backend, make_record):
        fake_backend.records["0001"] = make_record(customer_name="")

        await controller.change_customer("   ")

        assert controller.draft.old_balance == 0

    @pytest.mark.asyncio
    async def test_lookup_failure_keeps_zero(self, controller, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record
        fake_backend.fail_with = DataError("fake", "corrupt")

        await controller.change_customer("Alice")

        assert controller.draft.old_balance == 0


class TestStaleLookup:
    """An in-flight lookup must not overwrite newer edits."""

    @pytest.fixture
    def gated_backend(self, fake_store_cls, sample_record):
        class GatedStore(fake_store_cls):
            def __init__(self):
                super().__init__()
                self.entered = asyncio.Event()
                self.gate = asyncio.Event()

            async def fetch_by_customer(self, customer_name):
                self.entered.set()
                await self.gate.wait()
                return await super().fetch_by_customer(customer_name)

        store = GatedStore()
        store.records["0001"] = sample_record
        return store

    @pytest.fixture
    async def gated_controller(self, gated_backend, offline_store):
        controller = BillController(BillStorageOrchestrator(gated_backend, offline_store))
        await controller.start()
        return controller

    async def _begin_lookup(self, controller, backend, name="Alice"):
        task = asyncio.create_task(controller.change_customer(name))
        await backend.entered.wait()
        return task

    @pytest.mark.asyncio
    async def test_old_balance_edit_wins(self, gated_controller, gated_backend):
        task = await self._begin_lookup(gated_controller, gated_backend)

        gated_controller.set_field("old_balance", 5)
        gated_backend.gate.set()
        await task

        assert gated_controller.draft.old_balance == 5

    @pytest.mark.asyncio
    async def test_customer_change_discards(self, gated_controller, gated_backend):
        task = await self._begin_lookup(gated_controller, gated_backend)

        gated_controller.set_field("customer_name", "Bob")
        gated_backend.gate.set()
        await task

        assert gated_controller.draft.customer_name == "Bob"
        assert gated_controller.draft.old_balance == 0

    @pytest.mark.asyncio
    async def test_new_draft_discards(self, gated_controller, gated_backend):
        task = await self._begin_lookup(gated_controller, gated_backend)

        await gated_controller.new_bill()
        gated_backend.gate.set()
        await task

        assert gated_controller.draft.old_balance == 0

    @pytest.mark.asyncio
    async def test_unchanged_draft_applies(self, gated_controller, gated_backend):
        task = await self._begin_lookup(gated_controller, gated_backend)

        gated_backend.gate.set()
        await task

        assert gated_controller.draft.old_balance == 33


class TestPersistence:
    """Tests for save(), load() and delete()."""

    @pytest.mark.asyncio
    async def test_save_refreshes_and_notifies(self, controller, fake_backend):
        controller.set_field("customer_name", "Alice")

        assert await controller.save() is True

        assert "0001" in fake_backend.records
        assert [r.s_no for r in controller.bills] == ["0001"]
        assert controller.notice == Notice("info", "Bill 0001 saved!")

    @pytest.mark.asyncio
    async def test_save_failure(self, controller, fake_backend):
        fake_backend.fail_with = DataError("fake", "rejected")

        assert await controller.save() is False

        assert controller.notice == Notice("error", "Error saving bill.")
        assert controller.bills == []

    @pytest.mark.asyncio
    async def test_save_while_backend_drops(self, controller, fake_backend):
        fake_backend.fail_with = BackendUnavailableError("fake", "down")

        assert await controller.save() is False
        assert controller.connected is False

        # Retried save lands in the offline store
        assert await controller.save() is True
        assert [r.s_no for r in controller.bills] == ["0001"]

    @pytest.mark.asyncio
    async def test_load(self, controller, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record
        await controller.refresh()

        loaded = controller.load("0001")
        loaded.customer_name = "Edited"

        assert controller.notice == Notice("info", "Bill 0001 loaded.")
        assert controller.bills[0].customer_name == "Alice"

    @pytest.mark.asyncio
    async def test_load_missing(self, controller):
        with pytest.raises(BillNotFoundError):
            controller.load("0099")

    @pytest.mark.asyncio
    async def test_delete(self, controller, fake_backend, sample_record):
        fake_backend.records["0001"] = sample_record
        await controller.refresh()

        assert await controller.delete("0001") is True

        assert controller.bills == []
        assert controller.notice == Notice("info", "Bill 0001 deleted.")

    @pytest.mark.asyncio
    async def test_delete_failure(self, controller, fake_backend):
        fake_backend.fail_with = DataError("fake", "rejected")

        assert await controller.delete("0001") is False
        assert controller.notice == Notice("error", "Error deleting bill.")

    @pytest.mark.asyncio
    async def test_save_rejected_by_backend(self, controller, fake_backend):
        fake_backend.fail_with = ValidationError("sNo", "not allowed here", "0001")

        assert await controller.save() is False

        assert controller.notice == Notice("error", "Error saving bill.")
        assert controller.connected is True

    @pytest.mark.asyncio
    async def test_delete_rejected_by_backend(self, controller, fake_backend):
        fake_backend.fail_with = ValidationError("sNo", "not allowed here", "0001")

        assert await controller.delete("0001") is False
        assert controller.notice == Notice("error", "Error deleting bill.")

    @pytest.mark.asyncio
    async def test_reserved_characters_rejected_on_edit(self, controller):
        with pytest.raises(ValidationError) as exc_info:
            controller.set_field("s_no", "A.1")

        assert exc_info.value.details["field"] == "s_no"
        assert controller.draft.s_no == "0001"

    @pytest.mark.asyncio
    async def test_firebase_key_error_becomes_notice(self, offline_store):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=None))
        )
        backend = FirebaseBillStore(
            database_url="https://quickbill-test.firebaseio.com",
            client=client,
            max_retries=1,
            retry_delay=0,
        )
        controller = BillController(BillStorageOrchestrator(backend, offline_store))
        try:
            await controller.start()
            assert controller.connected is True

            assert await controller.delete("A.1") is False
            assert controller.notice == Notice("error", "Error deleting bill.")
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_dismiss_notice(self, controller):
        await controller.new_bill()

        controller.dismiss_notice()

        assert controller.notice is None
