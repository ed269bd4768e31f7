"""Primary/secondary store composition.

Loads from the primary and falls back to the secondary when the primary
cannot be read; saves to the primary and falls back to the secondary when
the primary write fails.
"""

import logging

from pulsewatch.config.settings import Settings
from pulsewatch.monitors.schemas import MonitorRecord
from pulsewatch.storage.base import MonitorStore, StoreError
from pulsewatch.storage.file_store import JsonFileStore

logger = logging.getLogger(__name__)


class FallbackStore(MonitorStore):
    """Wraps a primary store with a secondary one used on failure."""

    def __init__(self, primary: MonitorStore, secondary: MonitorStore) -> None:
        self._primary = primary
        self._secondary = secondary

    @property
    def name(self) -> str:
        return f"{self._primary.name}+{self._secondary.name}"

    @property
    def primary(self) -> MonitorStore:
        return self._primary

    @property
    def secondary(self) -> MonitorStore:
        return self._secondary

    async def load(self) -> list[MonitorRecord]:
        try:
            records = await self._primary.load()
        except StoreError as e:
            logger.warning(
                "Primary store %s unreadable, falling back to %s: %s",
                self._primary.name, self._secondary.name, e,
            )
            return await self._secondary.load()

        logger.info("Loaded %d monitors from %s", len(records), self._primary.name)
        return records

    async def save(self, records: list[MonitorRecord]) -> bool:
        if await self._primary.save(records):
            return True

        logger.warning(
            "Primary store %s write failed, saving to %s",
            self._primary.name, self._secondary.name,
        )
        return await self._secondary.save(records)

    async def close(self) -> None:
        await self._primary.close()
        await self._secondary.close()


def build_store(settings: Settings) -> MonitorStore:
    """Create the configured store; remote backends fall back to the JSON file."""
    local = JsonFileStore(settings.data_file)

    if settings.store_backend == "redis":
        from pulsewatch.storage.redis_store import RedisStore

        primary: MonitorStore = RedisStore(
            redis_url=str(settings.redis_url),
            key=settings.redis_key,
        )
    elif settings.store_backend == "rest":
        if not settings.rest_store_configured:
            raise ValueError("STORE_BACKEND=rest requires REST_STORE_URL")

        from pulsewatch.storage.rest_store import RestStore

        primary = RestStore(
            base_url=settings.rest_store_url,
            path=settings.rest_store_path,
            timeout=settings.store_timeout_seconds,
        )
    else:
        return local

    return FallbackStore(primary, local)
