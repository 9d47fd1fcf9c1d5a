"""IOTA NFT attestation transport.

Each oracle publishes its latest signed prices as the first feature of an
NFT output; the oracle address is the NFT id.
"""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import DEFAULT_PRICE_ENDPOINT
from ..errors import TransportError

logger = logging.getLogger(__name__)

OUTPUTS_PATH = "/api/indexer/v1/outputs/nft/"
CORE_PATH = "/api/core/v2/outputs/"


class IotaNftTransport:
    """Fetch raw oracle attestations from an IOTA node."""

    def __init__(self, timeout: int = 30) -> None:
        self.timeout = timeout

    async def fetch(self, endpoint: str, oracle_address: str) -> str:
        """Return the raw feature data published by ``oracle_address``.

        Raises:
            TransportError: on HTTP, network or response-shape failures.
        """
        base_url = endpoint or DEFAULT_PRICE_ENDPOINT

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as session:
                output_id = await self._get_output_id(session, base_url, oracle_address)
                return await self._get_feature(session, base_url, output_id)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(
                "Fetching oracle %s from %s failed: %s", oracle_address, base_url, e
            )
            raise TransportError(
                f"failed to fetch oracle {oracle_address} from {base_url}: {e}"
            ) from e

    @staticmethod
    async def _get_json(session: aiohttp.ClientSession, url: str) -> dict[str, Any]:
        async with session.get(url) as response:
            if response.status != 200:
                raise TransportError(f"HTTP {response.status} from {url}")
            data = await response.json()
            if not isinstance(data, dict):
                raise TransportError(f"unexpected response from {url}")
            return data

    async def _get_output_id(
        self, session: aiohttp.ClientSession, base_url: str, address: str
    ) -> str:
        data = await self._get_json(session, base_url + OUTPUTS_PATH + address)
        items = data.get("items")
        if not isinstance(items, list) or not items:
            raise TransportError(f"no outputs found for NFT {address}")
        if not isinstance(items[0], str):
            raise TransportError(f"unexpected output id for NFT {address}: {items[0]!r}")
        return items[0]

    async def _get_feature(
        self, session: aiohttp.ClientSession, base_url: str, output_id: str
    ) -> str:
        data = await self._get_json(session, base_url + CORE_PATH + output_id)
        output = data.get("output")
        if not isinstance(output, dict):
            raise TransportError(f"no output body for {output_id}")
        features = output.get("features")
        if not isinstance(features, list) or not features:
            raise TransportError(f"no features found for output {output_id}")
        feature = features[0]
        if not isinstance(feature, dict) or not isinstance(feature.get("data"), str):
            raise TransportError(f"malformed feature in output {output_id}")
        return feature["data"]
