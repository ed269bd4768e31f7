"""Redis store keeping all monitor records in one JSON document."""

import json
import logging
from typing import Any

import redis.asyncio as redis

from pulsewatch.monitors.schemas import MonitorRecord
from pulsewatch.storage.base import (
    MonitorStore,
    StoreError,
    records_from_mapping,
    records_to_mapping,
)

logger = logging.getLogger(__name__)


class RedisStore(MonitorStore):
    """Stores an id → record JSON object under a single Redis key.

    Args:
        redis_url: Connection URL, used when no client is given.
        key: Redis key holding the document.
        client: Optional pre-built ``redis.asyncio`` client.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        key: str = "pulsewatch:monitors",
        client: Any | None = None,
    ) -> None:
        if client is None and redis_url is None:
            raise ValueError("RedisStore needs a redis_url or a client")
        self._key = key
        self._owns_client = client is None
        self._redis = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    @property
    def name(self) -> str:
        return "redis"

    async def load(self) -> list[MonitorRecord]:
        try:
            raw = await self._redis.get(self._key)
        except redis.RedisError as e:
            raise StoreError(f"Redis GET {self._key} failed: {e}") from e
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt document at {self._key}: {e}") from e
        return records_from_mapping(data)

    async def save(self, records: list[MonitorRecord]) -> bool:
        payload = json.dumps(records_to_mapping(records))
        try:
            await self._redis.set(self._key, payload)
        except redis.RedisError as e:
            logger.error("Redis SET %s failed: %s", self._key, e)
            return False
        return True

    async def close(self) -> None:
        if self._owns_client:
            await self._redis.aclose()
