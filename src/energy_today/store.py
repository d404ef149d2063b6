"""Key-value persistence with metadata envelopes.

Everything the app persists goes through the ``KeyValueStore`` protocol:
string keys, string values, three async operations. Two backends ship:

  - ``MemoryStore``: a dict, for tests and throwaway sessions
  - ``FileStore``: one file per key under a base directory

Keys are ``:``-separated segments (``observations:default:habit``). The
file backend maps each segment to a directory level, so that key lives at
``{base}/observations/default/habit.json``.

Structured values are JSON. Derived outputs (reports, cached API payloads)
are wrapped in a metadata envelope with ``valid_until`` so flows can skip
work that is still fresh::

    {"meta": {"source": ..., "fetched_at": ..., "valid_until": ...}, "data": ...}

I/O errors are never caught here; they propagate to the caller unchanged.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
import weakref
from collections import defaultdict
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003
from typing import Any, Protocol, runtime_checkable

KEY_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    """Async string key-value store."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


def key_for(*parts: str) -> str:
    """Join key segments with ``:`` after checking each one."""
    for part in parts:
        if not KEY_SEGMENT_RE.match(part) or part in {".", ".."}:
            msg = f"Invalid key segment: {part!r}"
            raise ValueError(msg)
    return ":".join(parts)


class MemoryStore:
    """In-process store backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileStore:
    """One JSON file per key under ``base_dir``.

    Writes go to a temporary sibling and are moved into place with
    ``os.replace`` so a reader never sees a half-written value. Blocking
    file I/O runs in a worker thread.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir

    def path_for(self, key: str) -> Path:
        """File path that holds ``key``."""
        segments = key.split(":")
        for segment in segments:
            if not KEY_SEGMENT_RE.match(segment) or segment in {".", ".."}:
                msg = f"Invalid key: {key!r}"
                raise ValueError(msg)
        relative = Path(*segments[:-1], f"{segments[-1]}.json")
        return self._resolve(relative)

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full

    async def get(self, key: str) -> str | None:
        full = self.path_for(key)
        return await asyncio.to_thread(self._read, full)

    async def set(self, key: str, value: str) -> None:
        full = self.path_for(key)
        await asyncio.to_thread(self._write, full, value)

    async def remove(self, key: str) -> None:
        full = self.path_for(key)
        await asyncio.to_thread(full.unlink, missing_ok=True)

    @staticmethod
    def _read(full: Path) -> str | None:
        if not full.exists():
            return None
        return full.read_text(encoding="utf-8")

    @staticmethod
    def _write(full: Path, value: str) -> None:
        full.parent.mkdir(parents=True, exist_ok=True)
        tmp = full.with_suffix(full.suffix + ".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, full)


class KeyLocks:
    """One ``asyncio.Lock`` per key and event loop.

    Read-modify-write sequences on the same key (log appends) hold the lock
    for the whole sequence; different keys never block each other. Locks are
    kept per running loop since an ``asyncio.Lock`` cannot be shared across
    loops.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, defaultdict[str, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

    def lock(self, key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        per_loop = self._locks.get(loop)
        if per_loop is None:
            per_loop = self._locks[loop] = defaultdict(asyncio.Lock)
        return per_loop[key]


# Lock registries shared by every service on the same store. File stores are
# matched by directory so two FileStore objects over one base share locks.
_store_locks: weakref.WeakKeyDictionary[Any, KeyLocks] = weakref.WeakKeyDictionary()
_directory_locks: dict[Path, KeyLocks] = {}


def locks_for(store: KeyValueStore) -> KeyLocks:
    """The ``KeyLocks`` every writer to ``store`` must use."""
    if isinstance(store, FileStore):
        return _directory_locks.setdefault(store.base.resolve(), KeyLocks())
    locks = _store_locks.get(store)
    if locks is None:
        locks = _store_locks[store] = KeyLocks()
    return locks


# =============================================================================
# JSON helpers
# =============================================================================


async def get_json(store: KeyValueStore, key: str) -> Any | None:
    """Read and decode a JSON value, or None if the key is absent."""
    raw = await store.get(key)
    if raw is None:
        return None
    return json.loads(raw)


async def set_json(store: KeyValueStore, key: str, value: Any) -> None:
    await store.set(key, json.dumps(value, indent=2))


async def write_envelope(
    store: KeyValueStore,
    key: str,
    data: Any,
    source: str,
    valid_until: datetime | None = None,
    **params: Any,
) -> dict[str, Any]:
    """Write data wrapped in a metadata envelope.

    Args:
        store: Target store.
        key: Store key (e.g. ``weather:default``).
        data: Payload to store under the ``data`` key.
        source: Data source identifier (e.g. ``"open-meteo.com"``).
        valid_until: Expiry timestamp. None means derived/no-cache.
        **params: Extra metadata fields (location, query params, etc.).

    Returns:
        The envelope that was written.
    """
    meta: dict[str, Any] = {
        "source": source,
        "fetched_at": datetime.now(UTC).isoformat(),
    }
    if valid_until is not None:
        meta["valid_until"] = valid_until.isoformat()
    if params:
        meta.update(params)

    envelope = {"meta": meta, "data": data}
    await set_json(store, key, envelope)
    return envelope


async def read_envelope(store: KeyValueStore, key: str) -> dict[str, Any] | None:
    """Read the full envelope (meta + data)."""
    result: dict[str, Any] | None = await get_json(store, key)
    return result


async def read_data(store: KeyValueStore, key: str) -> Any | None:
    """Read the ``data`` field of an envelope, or None if the key is absent."""
    envelope = await read_envelope(store, key)
    if envelope is None:
        return None
    return envelope.get("data", envelope)


async def is_fresh(store: KeyValueStore, key: str) -> bool:
    """Check if an envelope exists and hasn't expired.

    Returns False if the key is missing, has no ``valid_until``, or the
    expiry time has passed.
    """
    envelope = await read_envelope(store, key)
    if envelope is None:
        return False

    valid_until = envelope.get("meta", {}).get("valid_until")
    if valid_until is None:
        return False

    expiry = datetime.fromisoformat(valid_until)
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=UTC)
    return datetime.now(UTC) < expiry
