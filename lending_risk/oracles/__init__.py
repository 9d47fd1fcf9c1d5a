"""Oracle attestations: parsing, verification, transports and packing."""
from .attestation import Rejection, parse_attestation, verify_attestation
from .iota import IotaNftTransport
from .payload import pack_payload
from .snapshot import SnapshotTransport

__all__ = [
    "IotaNftTransport",
    "Rejection",
    "SnapshotTransport",
    "pack_payload",
    "parse_attestation",
    "verify_attestation",
]
