"""Snapshot transport: one endpoint serving every oracle's attestation."""
from __future__ import annotations

import asyncio
import logging
import ssl

import aiohttp
import certifi

from ..errors import TransportError

logger = logging.getLogger(__name__)


class SnapshotTransport:
    """Serve attestations from a periodically refreshed ``{address: raw}`` map.

    ``fetch`` ignores its endpoint argument; the URL is fixed at construction.
    """

    def __init__(self, url: str, timeout: int = 30) -> None:
        self.url = url
        self.timeout = timeout
        self._snapshot: dict[str, str] = {}

    async def refresh(self) -> int:
        """Download a new snapshot and return the number of oracles in it."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as session:
                async with session.get(self.url) as response:
                    if response.status != 200:
                        raise TransportError(
                            f"HTTP {response.status} from {self.url}"
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(f"failed to refresh {self.url}: {e}") from e

        if not isinstance(data, dict):
            raise TransportError(f"unexpected snapshot format from {self.url}")

        self._snapshot = {str(k): str(v) for k, v in data.items()}
        return len(self._snapshot)

    async def run(self, interval: float = 1.0) -> None:
        """Refresh every ``interval`` seconds until cancelled."""
        logger.info("Polling %s every %.1fs", self.url, interval)
        while True:
            await asyncio.sleep(interval)
            try:
                count = await self.refresh()
                logger.debug("Snapshot refreshed with %d oracles", count)
            except TransportError as e:
                logger.warning("Snapshot refresh failed: %s", e)

    async def fetch(self, endpoint: str, oracle_address: str) -> str:
        try:
            return self._snapshot[oracle_address]
        except KeyError:
            raise TransportError(
                f"no attestation for oracle {oracle_address} yet"
            ) from None
