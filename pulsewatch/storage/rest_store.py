"""REST document store (Firebase Realtime Database style).

Reads and writes one JSON object of id → record at ``{base_url}{path}.json``
with GET and PUT.
"""

import logging

import httpx

from pulsewatch.monitors.schemas import MonitorRecord
from pulsewatch.storage.base import (
    MonitorStore,
    StoreError,
    records_from_mapping,
    records_to_mapping,
)

logger = logging.getLogger(__name__)


class RestStore(MonitorStore):
    """Stores records in a remote JSON document over HTTP.

    Creates a new ``httpx.AsyncClient`` per call.
    """

    def __init__(
        self,
        base_url: str,
        path: str = "/monitors",
        timeout: float = 10.0,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/{path.strip('/')}.json"
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "rest"

    @property
    def url(self) -> str:
        return self._url

    async def load(self) -> list[MonitorRecord]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(self._url)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise StoreError(f"GET {self._url} failed: {e}") from e
        return records_from_mapping(data)

    async def save(self, records: list[MonitorRecord]) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.put(self._url, json=records_to_mapping(records))
                if resp.is_success:
                    return True
                logger.error("PUT %s returned %d", self._url, resp.status_code)
                return False
        except httpx.HTTPError as e:
            logger.error("PUT %s failed: %s", self._url, e)
            return False
