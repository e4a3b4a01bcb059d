"""
Embedded disk key-value database for Hydrated Storage.

Each box is a single SQLite file inside the engine's home directory. All
entries are loaded into memory when the box opens so reads never touch the
disk; writes go to SQLite first and update the in-memory copy once they have
been committed.

Blocking SQLite calls run on the event loop's default executor. A per-box
thread lock serializes access to the shared connection from executor threads.

Usage:
    engine = BoxEngine()
    engine.init(storage_dir)
    box = await engine.open_box("hydrated_box")
    await box.put("counter", {"value": 1})
    box.get("counter")
"""

import asyncio
import json
import logging
import os
import sqlite3
import threading
from functools import partial
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from hydrated_storage.errors import (
    BackendOpenError,
    BoxClosedError,
    CipherError,
    StorageValueError,
)
from hydrated_storage.storage.cipher import HydratedCipher

logger = logging.getLogger(__name__)

BOX_FILE_SUFFIX = ".box.sqlite"

# meta.key_crc holds "" for plaintext boxes and str(cipher.key_crc()) otherwise
_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS entries (key TEXT PRIMARY KEY, value BLOB NOT NULL)",
    "CREATE TABLE IF NOT EXISTS meta (name TEXT PRIMARY KEY, value TEXT NOT NULL)",
)


def encode_value(value: Any) -> bytes:
    """
    Serialize a value to UTF-8 JSON.

    Raises:
        StorageValueError: value is not JSON-serializable
    """
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise StorageValueError(f"value is not JSON-serializable: {e}") from e


def decode_value(data: bytes) -> Any:
    return json.loads(data.decode("utf-8"))


class Box:
    """
    A named, opened handle to one SQLite-backed key-value area.

    Boxes are created by BoxEngine.open_box(); do not construct them directly.
    """

    def __init__(
        self,
        name: str,
        path: Path,
        connection: sqlite3.Connection,
        entries: Dict[str, Any],
        cipher: Optional[HydratedCipher] = None,
    ):
        self.name = name
        self.path = path
        self._conn = connection
        self._entries = entries
        self._cipher = cipher
        self._db_lock = threading.Lock()
        self._open = True

    @classmethod
    def open_sync(cls, name: str, path: Path, cipher: Optional[HydratedCipher] = None) -> "Box":
        """
        Open or create the box file and load all entries.

        Runs blocking I/O; BoxEngine.open_box() calls it on an executor thread.

        Raises:
            BackendOpenError: the file cannot be opened or holds corrupt data
            CipherError: the cipher does not match the box
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(path), check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            raise BackendOpenError(f"cannot open box '{name}' at {path}: {e}") from e

        try:
            with conn:
                for statement in _SCHEMA:
                    conn.execute(statement)
                cls._check_cipher(conn, name, cipher)
                rows = conn.execute("SELECT key, value FROM entries").fetchall()
            entries = cls._load_entries(name, rows, cipher)
        except sqlite3.Error as e:
            conn.close()
            raise BackendOpenError(f"cannot read box '{name}' at {path}: {e}") from e
        except BackendOpenError:
            conn.close()
            raise

        logger.debug(f"Opened box '{name}' with {len(entries)} entries: {path}")
        return cls(name, path, conn, entries, cipher)

    @staticmethod
    def _check_cipher(conn: sqlite3.Connection, name: str, cipher: Optional[HydratedCipher]) -> None:
        try:
            expected = "" if cipher is None else str(cipher.key_crc())
        except Exception as e:
            raise CipherError(f"cipher setup failed for box '{name}': {e}") from e

        row = conn.execute("SELECT value FROM meta WHERE name = 'key_crc'").fetchone()
        if row is None:
            conn.execute("INSERT INTO meta (name, value) VALUES ('key_crc', ?)", (expected,))
            return

        stored = row[0]
        if stored == expected:
            return
        if not stored:
            raise CipherError(f"box '{name}' is not encrypted but a cipher was supplied")
        if cipher is None:
            raise CipherError(f"box '{name}' is encrypted and no cipher was supplied")
        raise CipherError(f"wrong encryption key for box '{name}'")

    @staticmethod
    def _load_entries(name: str, rows: Iterable, cipher: Optional[HydratedCipher]) -> Dict[str, Any]:
        entries = {}
        for key, blob in rows:
            data = bytes(blob)
            if cipher is not None:
                try:
                    data = cipher.decrypt(data)
                except Exception as e:
                    raise CipherError(f"cannot decrypt entry '{key}' in box '{name}': {e}") from e
            try:
                entries[key] = decode_value(data)
            except (UnicodeDecodeError, ValueError) as e:
                raise BackendOpenError(f"corrupt entry '{key}' in box '{name}': {e}") from e
        return entries

    @property
    def is_open(self) -> bool:
        return self._open

    def _ensure_open(self) -> None:
        if not self._open:
            raise BoxClosedError(f"box '{self.name}' is closed")

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default. Never touches the disk."""
        self._ensure_open()
        return self._entries.get(key, default)

    def contains_key(self, key: str) -> bool:
        self._ensure_open()
        return key in self._entries

    def keys(self):
        self._ensure_open()
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)

    async def put(self, key: str, value: Any) -> None:
        """
        Store value under key.

        Raises:
            StorageValueError: value is not JSON-serializable
            BoxClosedError: the box has been closed
        """
        self._ensure_open()
        data = encode_value(value)
        blob = self._cipher.encrypt(data) if self._cipher is not None else data

        await self._run(self._put_sync, key, blob)
        self._entries[key] = decode_value(data)

    async def delete(self, key: str) -> None:
        self._ensure_open()
        await self._run(self._delete_sync, key)
        self._entries.pop(key, None)

    async def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            int: Number of entries removed
        """
        self._ensure_open()
        count = await self._run(self._clear_sync)
        self._entries.clear()
        return count

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        with self._db_lock:
            self._conn.close()
        logger.debug(f"Closed box '{self.name}'")

    async def _run(self, func, *args):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    def _put_sync(self, key: str, blob: bytes) -> None:
        with self._db_lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO entries (key, value) VALUES (?, ?)",
                (key, sqlite3.Binary(blob)),
            )

    def _delete_sync(self, key: str) -> None:
        with self._db_lock, self._conn:
            self._conn.execute("DELETE FROM entries WHERE key = ?", (key,))

    def _clear_sync(self) -> int:
        with self._db_lock, self._conn:
            cursor = self._conn.execute("DELETE FROM entries")
            return cursor.rowcount


class BoxEngine:
    """
    Opens boxes rooted at one directory.

    A fresh engine is created for every storage build so that boxes opened
    elsewhere in the process are never shared by accident.
    """

    def __init__(self):
        self._home: Optional[Path] = None
        self._boxes: Dict[str, Box] = {}

    @property
    def home(self) -> Optional[Path]:
        return self._home

    def init(self, path: Union[str, "os.PathLike[str]"]) -> None:
        """
        Root the engine at a directory. The directory is created on first open.

        Args:
            path: Directory that will hold box files
        """
        self._home = Path(path)

    def box_path(self, name: str) -> Path:
        if self._home is None:
            raise BackendOpenError("BoxEngine.init() must be called before opening boxes")
        return self._home / f"{name.lower()}{BOX_FILE_SUFFIX}"

    async def open_box(self, name: str, encryption_cipher: Optional[HydratedCipher] = None) -> Box:
        """
        Open (or create) a named box.

        Opening a name that is already open on this engine returns the same box.

        Args:
            name: Box name, case-insensitive
            encryption_cipher: Optional cipher for encryption at rest

        Returns:
            Box: The open box

        Raises:
            BackendOpenError: the box cannot be opened
            CipherError: the cipher does not match the box
        """
        name = name.lower()
        existing = self._boxes.get(name)
        if existing is not None and existing.is_open:
            return existing

        path = self.box_path(name)
        loop = asyncio.get_event_loop()
        box = await loop.run_in_executor(
            None, partial(Box.open_sync, name, path, encryption_cipher)
        )
        self._boxes[name] = box
        return box
