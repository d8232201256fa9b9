# -*- coding: utf-8 -*-
"""Local record store and its storage backends."""

from .backends import JsonFileBackend, KeyValueBackend, MemoryBackend, SqliteBackend, backend_from_settings
from .storage import LocalRecordStore

__all__ = [
    "JsonFileBackend",
    "KeyValueBackend",
    "LocalRecordStore",
    "MemoryBackend",
    "SqliteBackend",
    "backend_from_settings",
]
