"""Key-value document storage backends.

Each key holds one serialized document (a string), read and written whole.
This is the client-local storage model the derived indexes are kept in:
a key is never partially updated.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

import psycopg

from .config import Config

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageUnavailable(Exception):
    """The backend could not be read from or written to."""


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store; contents vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonDirectoryStore:
    """One ``<key>.json`` file per key under a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so readers see either the old or the new
    document, never a torn one.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageUnavailable(f"Failed to read {path}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageUnavailable(f"Failed to write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Failed to remove {path}: {exc}") from exc


class PostgresKeyValueStore:
    """Documents in a single PostgreSQL table, one row per key.

    Each call opens its own connection and commits on exit.
    """

    TABLE = "fittrack_documents"

    def __init__(self, conninfo: str) -> None:
        self.conninfo = conninfo

    def ensure_schema(self) -> None:
        try:
            with psycopg.connect(self.conninfo) as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self.TABLE} (
                        key TEXT PRIMARY KEY,
                        data TEXT NOT NULL,
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                    )
                    """
                )
        except psycopg.Error as exc:
            raise StorageUnavailable(f"Failed to create {self.TABLE}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        try:
            with psycopg.connect(self.conninfo) as conn:
                row = conn.execute(
                    f"SELECT data FROM {self.TABLE} WHERE key = %s",
                    (key,),
                ).fetchone()
        except psycopg.Error as exc:
            raise StorageUnavailable(f"Failed to read {key!r}: {exc}") from exc
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        try:
            with psycopg.connect(self.conninfo) as conn:
                conn.execute(
                    f"""
                    INSERT INTO {self.TABLE} (key, data, updated_at)
                    VALUES (%s, %s, NOW())
                    ON CONFLICT (key) DO UPDATE SET
                        data = EXCLUDED.data,
                        updated_at = NOW()
                    """,
                    (key, value),
                )
        except psycopg.Error as exc:
            raise StorageUnavailable(f"Failed to write {key!r}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            with psycopg.connect(self.conninfo) as conn:
                conn.execute(f"DELETE FROM {self.TABLE} WHERE key = %s", (key,))
        except psycopg.Error as exc:
            raise StorageUnavailable(f"Failed to remove {key!r}: {exc}") from exc


def build_key_value_store(config: Config) -> KeyValueStore:
    """Instantiate the backend selected by ``config.storage_backend``."""
    if config.storage_backend == "memory":
        return MemoryKeyValueStore()
    if config.storage_backend == "postgres":
        if not config.database_url:
            raise RuntimeError("DATABASE_URL must be set")
        store = PostgresKeyValueStore(config.database_url)
        store.ensure_schema()
        return store
    if config.storage_backend == "json":
        logger.debug("Using JSON document directory %s", config.data_dir)
        return JsonDirectoryStore(config.data_dir)
    raise RuntimeError(f"Unknown storage backend: {config.storage_backend!r}")
