"""Append-only record logs on top of a ``KeyValueStore``.

A log is a JSON list of pydantic records stored under one key, oldest first.
Appends are read-modify-write under the key's lock (shared by every log on
the same store, see ``store.locks_for``) and trim the list to the
newest ``max_records``. Records are only ever replaced whole, by id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from energy_today.errors import ValidationError
from energy_today.schemas import parse_model
from energy_today.store import get_json, locks_for, set_json

if TYPE_CHECKING:
    from collections.abc import Callable

    from energy_today.store import KeyLocks, KeyValueStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


class AppendOnlyLog(Generic[R]):
    """Bounded, ordered log of ``model`` records under ``key``."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        model: type[R],
        *,
        max_records: int,
        locks: KeyLocks | None = None,
    ) -> None:
        if max_records < 1:
            msg = f"max_records must be >= 1, got {max_records}"
            raise ValueError(msg)
        self.store = store
        self.key = key
        self.model = model
        self.max_records = max_records
        self.locks = locks or locks_for(store)

    async def _load(self) -> list[R]:
        raw = await get_json(self.store, self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            msg = f"Log {self.key} is not a list"
            raise ValidationError(msg)
        return [parse_model(self.model, item) for item in raw]

    async def _save(self, records: list[R]) -> None:
        payload: list[dict[str, Any]] = [r.model_dump(mode="json") for r in records]
        await set_json(self.store, self.key, payload)

    async def read(self, limit: int | None = None) -> list[R]:
        """Records oldest first; with ``limit``, only the newest ``limit``."""
        records = await self._load()
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    async def append(self, record: R) -> R:
        async with self.locks.lock(self.key):
            records = await self._load()
            records.append(record)
            dropped = len(records) - self.max_records
            if dropped > 0:
                logger.debug("Trimming %d old records from %s", dropped, self.key)
                records = records[dropped:]
            await self._save(records)
        return record

    async def replace(self, record_id: str, update: Callable[[R], R]) -> R | None:
        """Replace the record with ``record_id`` by ``update(record)``.

        Returns the new record, or None if no record has that id.
        """
        async with self.locks.lock(self.key):
            records = await self._load()
            for i, record in enumerate(records):
                if getattr(record, "id", None) == record_id:
                    records[i] = update(record)
                    await self._save(records)
                    return records[i]
        return None

    async def clear(self) -> None:
        async with self.locks.lock(self.key):
            await self.store.remove(self.key)

    async def count(self) -> int:
        return len(await self._load())
