# -*- coding: utf-8 -*-
"""Records — flat string-keyed storage backends.

The record store only ever needs ``get``/``set``/``delete`` on string keys and
string values, which is all the browser's local storage offered as well.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol

from ..app_db import db_conn, init_app_db


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class MemoryBackend:
    """Process-local dict; used by tests and ephemeral demos."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def _safe_key(value: str) -> str:
    cleaned = re.sub(r"[^\w.\-@]+", "_", value.strip())
    if cleaned in {"", ".", ".."}:
        cleaned = "unknown"
    return cleaned[:200]


class JsonFileBackend:
    """One ``<key>.json`` file per key under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, key: str) -> Path:
        return self.root / f"{_safe_key(key)}.json"

    def get(self, key: str) -> Optional[str]:
        fp = self._path(key)
        if not fp.exists():
            return None
        return fp.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        fp = self._path(key)
        tmp = fp.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, fp)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class SqliteBackend:
    """Rows of the ``kv`` table in the app database."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        init_app_db(db_path)

    def get(self, key: str) -> Optional[str]:
        with db_conn(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, _utc_now()),
            )

    def delete(self, key: str) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))


def backend_from_settings(cfg) -> KeyValueBackend:
    kind = cfg.store_backend
    if kind == "memory":
        return MemoryBackend()
    if kind == "file":
        return JsonFileBackend(cfg.data_root / "records")
    if kind == "sqlite":
        return SqliteBackend(cfg.db_path)
    raise ValueError(f"Unknown CARDIA_STORE_BACKEND: {kind!r} (expected sqlite, file or memory)")
