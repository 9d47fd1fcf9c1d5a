"""Oracle attestation parsing and verification: pure, no I/O."""
from __future__ import annotations

import enum
import json
from typing import Any, Iterable

from ..errors import DecodeError
from ..interfaces.codec import Codec
from ..models import PriceAttestation

DEFAULT_TTL_SECONDS = 120
PRICE_KEY_BITS = 256
PRICE_VALUE_MAX_LEN = 16


class Rejection(str, enum.Enum):
    """Why an attestation was left out of the quorum."""

    STALE = "stale"
    INCOMPLETE = "incomplete"
    NON_POSITIVE_PRICE = "non_positive_price"


def _unhex(payload: dict[str, Any], field: str) -> bytes:
    try:
        return bytes.fromhex(payload[field])
    except KeyError as e:
        raise DecodeError(f"attestation has no '{field}'") from e
    except (TypeError, ValueError) as e:
        raise DecodeError(f"attestation '{field}' is not hex: {e}") from e


def parse_attestation(raw: str, codec: Codec) -> PriceAttestation:
    """Parse an oracle's published feature data.

    ``raw`` is ``0x`` followed by the hex encoding of a JSON document with
    ``packedPrices`` (hex-serialized cell whose first reference is the price
    dictionary), ``signature``, ``publicKey`` and ``timestamp``.

    Raises:
        DecodeError: on any malformed layer.
    """
    if len(raw) % 2 == 1:
        raise DecodeError("invalid price data")
    try:
        payload = json.loads(bytes.fromhex(raw[2:]).decode("utf-8"))
    except ValueError as e:
        raise DecodeError(f"failed to unescape attestation: {e}") from e
    if not isinstance(payload, dict):
        raise DecodeError("attestation is not a JSON object")

    packed = _unhex(payload, "packedPrices")
    signature = _unhex(payload, "signature")
    public_key = _unhex(payload, "publicKey")
    try:
        timestamp = int(payload["timestamp"])
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"attestation has no valid timestamp: {e}") from e

    try:
        prices_cell = codec.from_boc(packed).begin_parse().load_ref()
        prices_dict = prices_cell.as_dict(PRICE_KEY_BITS)
        prices = {
            str(key): value.load_var_uint(PRICE_VALUE_MAX_LEN)
            for key, value in prices_dict.items()
        }
    except Exception as e:
        raise DecodeError(f"failed to decode packed prices: {e}") from e

    return PriceAttestation(
        prices=prices,
        prices_dict=prices_dict,
        signature=signature,
        public_key=public_key,
        timestamp=timestamp,
    )


def verify_attestation(
    attestation: PriceAttestation,
    assets: Iterable[str],
    now: float,
    ttl: int = DEFAULT_TTL_SECONDS,
) -> Rejection | None:
    """Return why ``attestation`` must be excluded, or ``None`` if it is usable."""
    if now - attestation.timestamp > ttl:
        return Rejection.STALE

    assets = list(assets)
    if len(attestation.prices) < len(assets):
        return Rejection.INCOMPLETE

    for asset in assets:
        price = attestation.prices.get(asset)
        if price is None:
            return Rejection.INCOMPLETE
        if price <= 0:
            return Rejection.NON_POSITIVE_PRICE

    return None
