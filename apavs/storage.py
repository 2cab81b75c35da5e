"""Persistent, ordered key-value storage with prefix scans and sequences."""

from __future__ import annotations

import shutil
import sqlite3
import struct
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Union

Key = Union[bytes, bytearray, str]

_DB_FILE = "kv.sqlite3"
_SEQ_FORMAT = ">Q"


def _as_bytes(value: Key) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _prefix_end(prefix: bytes) -> bytes | None:
    """Return the smallest key greater than every key starting with ``prefix``."""
    stripped = prefix.rstrip(b"\xff")
    if not stripped:
        return None
    return stripped[:-1] + bytes([stripped[-1] + 1])


@dataclass(frozen=True)
class StorageConfig:
    """Where the storage keeps its data."""

    path: str


@dataclass(frozen=True)
class KeyValueItem:
    """A single stored entry."""

    key: bytes
    value: bytes


class KeyNotFoundError(KeyError):
    """Raised when a key that must exist is absent."""


class Sequence:
    """A monotonically increasing counter persisted under a key.

    Numbers are leased from storage in blocks of ``bandwidth`` so that most
    calls to :meth:`next` do not touch the disk.
    """

    def __init__(self, storage: Storage, key: bytes, bandwidth: int) -> None:
        if bandwidth <= 0:
            raise ValueError("bandwidth must be greater than zero")
        self._storage = storage
        self._key = key
        self._bandwidth = bandwidth
        self._lock = threading.Lock()
        self._next = 0
        self._leased = 0
        self._update_lease()

    def _update_lease(self) -> None:
        with self._storage._transaction() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (self._key,)).fetchone()
            start = struct.unpack(_SEQ_FORMAT, row[0])[0] if row else 0
            lease = start + self._bandwidth
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (self._key, struct.pack(_SEQ_FORMAT, lease)),
            )
        self._next = start
        self._leased = lease

    def next(self) -> int:
        """Return the next number of the sequence."""
        with self._lock:
            if self._next >= self._leased:
                self._update_lease()
            value = self._next
            self._next += 1
            return value

    def release(self) -> None:
        """Give back the unused part of the current lease."""
        with self._lock:
            self._storage.set(self._key, struct.pack(_SEQ_FORMAT, self._next))
            self._leased = self._next


class Storage:
    """Key-value store kept in a directory, with keys ordered bytewise."""

    def __init__(self, config: StorageConfig) -> None:
        self.config = config
        directory = Path(config.path)
        directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            str(directory / _DB_FILE), isolation_level=None, check_same_thread=False
        )
        self._sequences: list[Sequence] = []
        self._closed = False
        self.setup()

    def __enter__(self) -> Storage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            self._conn.execute("COMMIT")

    def _scan(self, prefix: Key) -> list[tuple[bytes, bytes]]:
        start = _as_bytes(prefix)
        end = _prefix_end(start)
        with self._lock:
            if end is None:
                rows = self._conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? ORDER BY key", (start,)
                ).fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                    (start, end),
                ).fetchall()
        return [(bytes(k), bytes(v)) for k, v in rows if bytes(k).startswith(start)]

    def setup(self) -> None:
        """Configure durable writes and create the table if it is missing."""
        with self._lock:
            self._conn.execute("PRAGMA synchronous=FULL")
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS kv "
                "(key BLOB PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID"
            )

    def close(self) -> None:
        """Release every sequence handed out and close the database."""
        if self._closed:
            return
        for sequence in self._sequences:
            sequence.release()
        self._sequences.clear()
        with self._lock:
            self._conn.close()
            self._closed = True

    def get_sequence(self, prefix: Key, inflight_items: int) -> Sequence:
        """Return a sequence stored under ``prefix`` leasing ``inflight_items`` at a time."""
        sequence = Sequence(self, _as_bytes(prefix), inflight_items)
        self._sequences.append(sequence)
        return sequence

    def exist(self, key: Key) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM kv WHERE key = ?", (_as_bytes(key),)
            ).fetchone()
        return row is not None

    def get_key(self, key: Key) -> bytes:
        """Return the value of ``key``; raise KeyNotFoundError if it is absent."""
        raw = _as_bytes(key)
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (raw,)).fetchone()
        if row is None:
            raise KeyNotFoundError(raw)
        return bytes(row[0])

    def get_by_prefix(self, prefix: Key) -> list[KeyValueItem]:
        """Return every entry whose key starts with ``prefix``, in key order."""
        return [KeyValueItem(k, v) for k, v in self._scan(prefix)]

    def get_key_has_prefix(self, prefix: Key) -> list[bytes]:
        """Return every key starting with ``prefix``, in key order."""
        return [k for k, _ in self._scan(prefix)]

    def first_kv_has_prefix(self, prefix: Key) -> tuple[bytes | None, bytes | None]:
        """Return the smallest entry with ``prefix``, or ``(None, None)``."""
        items = self._scan(prefix)
        if not items:
            return None, None
        return items[0]

    def list_keys(self, prefix: str) -> list[str]:
        """Return keys as text; ``*`` alone or as a suffix acts as a wildcard."""
        if prefix == "*":
            prefix = ""
        elif prefix.endswith("*"):
            prefix = prefix[:-1]
        return [k.decode("utf-8", errors="replace") for k, _ in self._scan(prefix)]

    def batch_write(self, updates: Mapping[Key, bytes]) -> None:
        """Write all ``updates`` in one transaction."""
        with self._transaction() as conn:
            conn.executemany(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                [(_as_bytes(k), bytes(v)) for k, v in updates.items()],
            )

    def move(self, src: Key, dest: Key) -> None:
        """Move the value stored at ``src`` to ``dest``."""
        source = _as_bytes(src)
        with self._transaction() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (source,)).fetchone()
            if row is None:
                raise KeyNotFoundError(source)
            conn.execute("DELETE FROM kv WHERE key = ?", (source,))
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (_as_bytes(dest), bytes(row[0])),
            )

    def set(self, key: Key, value: bytes) -> None:
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (_as_bytes(key), bytes(value)),
            )

    def delete(self, key: Key) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (_as_bytes(key),))

    def vacuum(self) -> None:
        """Reclaim space left by deleted and overwritten entries."""
        with self._lock:
            self._conn.execute("VACUUM")

    def db_path(self) -> str:
        return self.config.path


def new_with_path(path: str) -> Storage:
    """Open storage kept in the directory ``path``."""
    return Storage(StorageConfig(path=str(path)))


def destroy(storage: Storage) -> None:
    """Close ``storage`` and delete its entire data directory."""
    storage.close()
    directory = Path(storage.config.path)
    if directory.exists():
        shutil.rmtree(directory)