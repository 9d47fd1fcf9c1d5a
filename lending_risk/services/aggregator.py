"""Multi-oracle price aggregation: collect, verify, take a quorum, pack."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Iterable, Sequence

from ..config import AppConfig, OracleSpec
from ..errors import DecodeError, QuorumError, TransportError
from ..interfaces.codec import Codec
from ..interfaces.transport import AttestationTransport
from ..models import AggregatedPrices, PriceAttestation
from ..oracles.attestation import parse_attestation, verify_attestation
from ..oracles.payload import pack_payload

logger = logging.getLogger(__name__)


def median_price(quorum: Sequence[PriceAttestation], asset: str) -> int:
    """Median of one asset's price; the floor average of the middle pair if even."""
    prices = sorted(a.prices[asset] for a in quorum)
    mid = len(prices) // 2
    if len(prices) % 2 == 1:
        return prices[mid]
    return (prices[mid - 1] + prices[mid]) // 2


def _as_transport_error(oracle: OracleSpec, error: Exception) -> TransportError:
    """Count any failure of one oracle's fetch as a transport failure."""
    if isinstance(error, TransportError):
        return error
    wrapped = TransportError(f"oracle {oracle.id}: {error!r}")
    wrapped.__cause__ = error
    return wrapped


class PriceAggregator:
    """Combine independently signed oracle attestations into one price set."""

    def __init__(
        self,
        config: AppConfig,
        transport: AttestationTransport,
        codec: Codec,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.transport = transport
        self.codec = codec
        self._clock = clock

    async def aggregate(
        self,
        oracles: Iterable[OracleSpec] | None = None,
        endpoints: Iterable[str] | None = None,
        timeout: float | None = None,
    ) -> AggregatedPrices:
        """Fetch, verify and reduce attestations to per-asset medians.

        Every oracle is queried on every endpoint; per oracle the first
        endpoint to answer wins. All fetches settle before the quorum is
        evaluated.

        Raises:
            QuorumError: fewer than ``minimal_oracles`` attestations passed
                verification. ``last_error`` is the failure of the last
                failing oracle in configuration order, so it does not depend
                on which fetch settled last.
            TransportError: ``timeout`` seconds elapsed before all fetches
                settled.
            ProofConstructionError: the codec failed to prove an attestation.
        """
        feed = self.config.price_feed
        oracles = tuple(oracles) if oracles is not None else feed.oracles
        endpoints = tuple(endpoints) if endpoints is not None else feed.endpoints

        try:
            results = await asyncio.wait_for(
                self._collect(oracles, endpoints), timeout
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"price collection timed out after {timeout}s"
            ) from e

        assets = list(self.config.asset_ids)
        now = self._clock()
        accepted: list[PriceAttestation] = []
        last_error: TransportError | None = None

        for oracle, result in zip(oracles, results):
            if isinstance(result, Exception):
                last_error = _as_transport_error(oracle, result)
                continue
            if isinstance(result, BaseException):
                raise result
            rejection = verify_attestation(result, assets, now, feed.ttl_seconds)
            if rejection is not None:
                logger.debug("Oracle %d rejected: %s", oracle.id, rejection.value)
                continue
            accepted.append(result)

        required = feed.minimal_oracles
        if len(accepted) < required:
            raise QuorumError(len(accepted), required, last_error) from last_error

        # newest first; ties keep collection order
        accepted.sort(key=lambda a: a.timestamp, reverse=True)
        quorum = accepted[:required]

        medians = {asset: median_price(quorum, asset) for asset in assets}
        payload = pack_payload(self.codec, medians, quorum)

        logger.info(
            "Aggregated %d prices from oracles %s",
            len(medians), [a.oracle_id for a in quorum],
        )
        return AggregatedPrices(
            prices=medians,
            min_timestamp=min(a.timestamp for a in quorum),
            payload=payload,
            oracle_ids=tuple(a.oracle_id for a in quorum),
        )

    async def _collect(
        self, oracles: Sequence[OracleSpec], endpoints: Sequence[str]
    ) -> list[PriceAttestation | BaseException]:
        return await asyncio.gather(
            *(self._fetch_oracle(oracle, endpoints) for oracle in oracles),
            return_exceptions=True,
        )

    async def _fetch_oracle(
        self, oracle: OracleSpec, endpoints: Sequence[str]
    ) -> PriceAttestation:
        """Race ``oracle`` across ``endpoints``; the first success cancels the rest."""
        if not endpoints:
            raise TransportError(f"no endpoints configured for oracle {oracle.id}")

        tasks = [
            asyncio.ensure_future(self._fetch_one(oracle, endpoint))
            for endpoint in endpoints
        ]
        last_error: TransportError | None = None
        try:
            for next_done in asyncio.as_completed(tasks):
                try:
                    attestation = await next_done
                except TransportError as e:
                    last_error = e
                    continue
                return replace(attestation, oracle_id=oracle.id)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        raise last_error or TransportError(f"oracle {oracle.id} returned nothing")

    async def _fetch_one(self, oracle: OracleSpec, endpoint: str) -> PriceAttestation:
        try:
            raw = await self.transport.fetch(endpoint, oracle.address)
        except TransportError:
            raise
        except Exception as e:
            logger.warning(
                "Oracle %d failed via %s: %r",
                oracle.id, endpoint or "default endpoint", e,
            )
            raise TransportError(f"oracle {oracle.id}: {e!r}") from e
        try:
            return parse_attestation(raw, self.codec)
        except DecodeError as e:
            logger.warning(
                "Oracle %d sent an unreadable attestation via %s: %s",
                oracle.id, endpoint or "default endpoint", e,
            )
            raise TransportError(f"oracle {oracle.id}: {e}") from e
