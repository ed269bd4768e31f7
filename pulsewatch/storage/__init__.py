"""Persistence layer for monitor records.

Components:
- MonitorStore: load/save contract consumed by the engine
- JsonFileStore / RedisStore / RestStore: Backends
- FallbackStore: Primary store with local-file fallback
- StoreWriter: Coalescing fire-and-forget writer
"""

from pulsewatch.storage.base import MonitorStore, StoreError
from pulsewatch.storage.fallback import FallbackStore, build_store
from pulsewatch.storage.file_store import JsonFileStore
from pulsewatch.storage.writer import StoreWriter

__all__ = [
    "FallbackStore",
    "JsonFileStore",
    "MonitorStore",
    "StoreError",
    "StoreWriter",
    "build_store",
]
