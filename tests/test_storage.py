"""Tests for the JSON document store."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from billfold.errors import StorageError
from billfold.storage import JsonStore


@pytest.fixture
def store(tmp_path: Path) -> JsonStore:
    store = JsonStore(tmp_path)
    store.ensure_layout()
    return store


def test_ensure_layout_creates_directories(tmp_path: Path) -> None:
    JsonStore(tmp_path / "data").ensure_layout()
    assert (tmp_path / "data" / "entities").is_dir()
    assert (tmp_path / "data" / "months").is_dir()


@pytest.mark.asyncio
async def test_missing_document_reads_as_none(store: JsonStore) -> None:
    assert await store.read("entities/bills.json") is None
    assert not await store.exists("entities/bills.json")


@pytest.mark.asyncio
async def test_write_then_read(store: JsonStore, tmp_path: Path) -> None:
    await store.write("months/2025-01.json", {"month": "2025-01"})
    assert await store.read("months/2025-01.json") == {"month": "2025-01"}
    assert json.loads((tmp_path / "months" / "2025-01.json").read_text()) == {"month": "2025-01"}
    assert not [p for p in (tmp_path / "months").iterdir() if p.suffix == ".tmp"]


@pytest.mark.asyncio
async def test_concurrent_writes_leave_valid_json(store: JsonStore) -> None:
    await asyncio.gather(*(store.write("entities/bills.json", [{"n": n}]) for n in range(20)))
    data = await store.read("entities/bills.json")
    assert isinstance(data, list)
    assert len(data) == 1


@pytest.mark.asyncio
async def test_corrupt_json_raises(store: JsonStore, tmp_path: Path) -> None:
    (tmp_path / "entities" / "bills.json").write_text("{oops")
    with pytest.raises(StorageError, match="Corrupt JSON"):
        await store.read("entities/bills.json")


@pytest.mark.asyncio
async def test_paths_cannot_escape_base(store: JsonStore) -> None:
    with pytest.raises(StorageError, match="escapes"):
        await store.read("../outside.json")


@pytest.mark.asyncio
async def test_delete(store: JsonStore) -> None:
    await store.write("months/2025-02.json", {})
    assert await store.delete("months/2025-02.json") is True
    assert await store.delete("months/2025-02.json") is False


@pytest.mark.asyncio
async def test_list_names_sorted_without_suffix(store: JsonStore, tmp_path: Path) -> None:
    for month in ("2025-03", "2024-12", "2025-01"):
        await store.write(f"months/{month}.json", {})
    (tmp_path / "months" / "notes.txt").write_text("x")
    assert await store.list_names("months") == ["2024-12", "2025-01", "2025-03"]
    assert await store.list_names("nowhere") == []
