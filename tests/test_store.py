"""Tests for the key-value store module."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from energy_today.store import (
    FileStore,
    KeyLocks,
    KeyValueStore,
    MemoryStore,
    get_json,
    is_fresh,
    key_for,
    locks_for,
    read_data,
    read_envelope,
    set_json,
    write_envelope,
)


class TestKeyFor:
    """Test key construction."""

    def test_joins_segments(self) -> None:
        assert key_for("observations", "default", "habit") == "observations:default:habit"

    @pytest.mark.parametrize("segment", ["", "..", ".", "a/b", "a:b", "white space"])
    def test_rejects_bad_segments(self, segment: str) -> None:
        with pytest.raises(ValueError):
            key_for("profile", segment)


class TestMemoryStore:
    """Test the dict-backed store."""

    @pytest.mark.asyncio
    async def test_get_set_remove(self) -> None:
        store = MemoryStore()
        assert await store.get("a") is None
        await store.set("a", "1")
        assert await store.get("a") == "1"
        await store.remove("a")
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self) -> None:
        await MemoryStore().remove("missing")

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(MemoryStore(), KeyValueStore)
        assert isinstance(FileStore(tmp_path), KeyValueStore)

    def test_initial_copied(self) -> None:
        initial = {"a": "1"}
        store = MemoryStore(initial)
        store.data["b"] = "2"
        assert initial == {"a": "1"}


class TestFileStore:
    """Test the one-file-per-key store."""

    def test_path_for_nested_key(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        assert store.path_for("observations:default:habit") == (
            tmp_path / "observations" / "default" / "habit.json"
        )

    @pytest.mark.parametrize("key", ["a:..:b", "", "a::b", "../x"])
    def test_path_for_rejects_bad_keys(self, tmp_path: Path, key: str) -> None:
        with pytest.raises(ValueError):
            FileStore(tmp_path).path_for(key)

    def test_symlink_escape_rejected(self, tmp_path: Path) -> None:
        base = tmp_path / "base"
        outside = tmp_path / "outside"
        base.mkdir()
        outside.mkdir()
        (base / "link").symlink_to(outside, target_is_directory=True)
        with pytest.raises(ValueError, match="escapes"):
            FileStore(base).path_for("link:secret")

    @pytest.mark.asyncio
    async def test_roundtrip_creates_parent_dirs(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.set("accuracy:default", '{"x": 1}')
        assert (tmp_path / "accuracy" / "default.json").read_text() == '{"x": 1}'
        assert await store.get("accuracy:default") == '{"x": 1}'

    @pytest.mark.asyncio
    async def test_get_missing(self, tmp_path: Path) -> None:
        assert await FileStore(tmp_path).get("nothing:here") is None

    @pytest.mark.asyncio
    async def test_overwrite_leaves_no_temp_file(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.set("profile:default", "old")
        await store.set("profile:default", "new")
        assert await store.get("profile:default") == "new"
        assert [p.name for p in (tmp_path / "profile").iterdir()] == ["default.json"]

    @pytest.mark.asyncio
    async def test_remove(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        await store.set("profile:default", "x")
        await store.remove("profile:default")
        await store.remove("profile:default")
        assert not (tmp_path / "profile" / "default.json").exists()


class TestEnvelopes:
    """Test writing and reading metadata envelopes."""

    @pytest.mark.asyncio
    async def test_envelope_format(self, tmp_path: Path) -> None:
        store = FileStore(tmp_path)
        valid = datetime(2026, 3, 1, tzinfo=UTC)
        await write_envelope(store, "weather:default", {"t": 20}, "open-meteo", valid_until=valid)

        data = json.loads((tmp_path / "weather" / "default.json").read_text())
        assert data["meta"]["source"] == "open-meteo"
        assert "fetched_at" in data["meta"]
        assert data["meta"]["valid_until"] == valid.isoformat()
        assert data["data"] == {"t": 20}

    @pytest.mark.asyncio
    async def test_extra_params_and_no_expiry(self, memory_store: MemoryStore) -> None:
        envelope = await write_envelope(
            memory_store, "insights:default", [], "test", location={"lat": 45.5}
        )
        assert envelope["meta"]["location"] == {"lat": 45.5}
        assert "valid_until" not in envelope["meta"]
        assert await read_envelope(memory_store, "insights:default") == envelope

    @pytest.mark.asyncio
    async def test_read_data(self, memory_store: MemoryStore) -> None:
        await write_envelope(memory_store, "k", {"key": "value"}, "test")
        assert await read_data(memory_store, "k") == {"key": "value"}
        assert await read_data(memory_store, "missing") is None

    @pytest.mark.asyncio
    async def test_json_helpers(self, memory_store: MemoryStore) -> None:
        await set_json(memory_store, "k", [1, 2])
        assert await get_json(memory_store, "k") == [1, 2]
        assert await get_json(memory_store, "missing") is None


class TestIsFresh:
    """Test freshness checking."""

    @pytest.mark.asyncio
    async def test_missing_not_fresh(self, memory_store: MemoryStore) -> None:
        assert await is_fresh(memory_store, "missing") is False

    @pytest.mark.asyncio
    async def test_expired_not_fresh(self, memory_store: MemoryStore) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        await write_envelope(memory_store, "k", {}, "test", valid_until=past)
        assert await is_fresh(memory_store, "k") is False

    @pytest.mark.asyncio
    async def test_future_is_fresh(self, memory_store: MemoryStore) -> None:
        future = datetime.now(UTC) + timedelta(hours=6)
        await write_envelope(memory_store, "k", {}, "test", valid_until=future)
        assert await is_fresh(memory_store, "k") is True

    @pytest.mark.asyncio
    async def test_no_valid_until_not_fresh(self, memory_store: MemoryStore) -> None:
        await write_envelope(memory_store, "k", {}, "test")
        assert await is_fresh(memory_store, "k") is False


class TestKeyLocks:
    """Test per-key locks."""

    @pytest.mark.asyncio
    async def test_same_key_same_lock(self) -> None:
        locks = KeyLocks()
        assert locks.lock("a") is locks.lock("a")
        assert locks.lock("a") is not locks.lock("b")

    def test_separate_locks_per_event_loop(self) -> None:
        locks = KeyLocks()

        async def grab() -> asyncio.Lock:
            return locks.lock("a")

        assert asyncio.run(grab()) is not asyncio.run(grab())

    @pytest.mark.asyncio
    async def test_serializes_read_modify_write(self, memory_store: MemoryStore) -> None:
        locks = KeyLocks()
        await memory_store.set("n", "0")

        async def bump() -> None:
            async with locks.lock("n"):
                value = int(await memory_store.get("n") or "0")
                await asyncio.sleep(0)
                await memory_store.set("n", str(value + 1))

        await asyncio.gather(*(bump() for _ in range(20)))
        assert await memory_store.get("n") == "20"


class TestLocksFor:
    """Test the lock registry shared by everything writing to one store."""

    def test_same_store_same_locks(self) -> None:
        store = MemoryStore()
        assert locks_for(store) is locks_for(store)
        assert locks_for(store) is not locks_for(MemoryStore())

    def test_file_stores_share_locks_by_directory(self, tmp_path: Path) -> None:
        assert locks_for(FileStore(tmp_path)) is locks_for(FileStore(tmp_path))
        assert locks_for(FileStore(tmp_path)) is not locks_for(FileStore(tmp_path / "other"))
