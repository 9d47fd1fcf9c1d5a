"""Attestation transport protocol: network source of raw oracle data."""
from typing import Protocol


class AttestationTransport(Protocol):
    """Abstract interface for fetching one oracle's raw attestation.

    Implementations raise ``TransportError`` on any failure.
    """

    async def fetch(self, endpoint: str, oracle_address: str) -> str: ...
