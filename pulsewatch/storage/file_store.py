"""Local JSON file store.

Writes the record list as a JSON array. Writes go to a temporary sibling
file first and are then renamed over the target, so a crash mid-write
never leaves a truncated file behind.
"""

import asyncio
import json
import logging
import os
from pathlib import Path

from pulsewatch.monitors.schemas import MonitorRecord
from pulsewatch.storage.base import MonitorStore, StoreError, records_from_mapping

logger = logging.getLogger(__name__)


class JsonFileStore(MonitorStore):
    """Stores monitor records in a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return "file"

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> list[MonitorRecord]:
        return await asyncio.to_thread(self._read)

    async def save(self, records: list[MonitorRecord]) -> bool:
        try:
            await asyncio.to_thread(self._write, records)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save monitors to %s: %s", self._path, e)
            return False
        logger.debug("Saved %d monitors to %s", len(records), self._path)
        return True

    def _read(self) -> list[MonitorRecord]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {self._path}: {e}") from e
        return records_from_mapping(data)

    def _write(self, records: list[MonitorRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
