"""Tests for the management CLI."""

import argparse
from pathlib import Path

import pytest

import manage
from quickbill.infrastructure.storage.sqlite.offline_store import SQLiteOfflineStore


def _args(**kwargs) -> argparse.Namespace:
    defaults = {"backend": "offline", "customer": None, "s_no": None, "output": None}
    return argparse.Namespace(**{**defaults, **kwargs})


@pytest.fixture
async def saved_offline(sample_record):
    """Store the sample bill in the default offline database."""
    store = SQLiteOfflineStore()
    await store.save_record(sample_record)
    await store.close()
    return sample_record


class TestCheck:
    """Tests for the check command."""

    @pytest.mark.asyncio
    async def test_offline_reports_local_storage(self, capsys):
        assert await manage._check(_args()) == 1

        out = capsys.readouterr().out
        assert "Backend: none" in out
        assert "using local storage" in out

    @pytest.mark.asyncio
    async def test_relational_connects(self, tmp_path: Path, monkeypatch, capsys):
        from quickbill.config import reset_settings

        monkeypatch.setenv("RELATIONAL_DB_PATH", str(tmp_path / "bills.db"))
        reset_settings()

        assert await manage._check(_args(backend="relational")) == 0
        assert "Status:  connected" in capsys.readouterr().out


class TestReadCommands:
    """Tests for next-number, list and pdf."""

    @pytest.mark.asyncio
    async def test_next_number(self, saved_offline, capsys):
        await manage._next_number(_args())

        assert capsys.readouterr().out.strip() == "0002"

    @pytest.mark.asyncio
    async def test_list(self, saved_offline, capsys):
        await manage._list(_args())

        out = capsys.readouterr().out
        assert "1 bill(s)" in out
        assert "0001" in out
        assert "33.00" in out

    @pytest.mark.asyncio
    async def test_list_unknown_customer(self, saved_offline, capsys):
        await manage._list(_args(customer="Bob"))

        assert "0 bill(s)" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_pdf_written(self, saved_offline, tmp_path: Path):
        output = tmp_path / "out.pdf"

        assert await manage._pdf(_args(s_no="1", output=str(output))) == 0
        assert output.read_bytes()[:5] == b"%PDF-"

    @pytest.mark.asyncio
    async def test_pdf_missing_bill(self, saved_offline, capsys):
        assert await manage._pdf(_args(s_no="0042")) == 1
        assert "not found" in capsys.readouterr().out
