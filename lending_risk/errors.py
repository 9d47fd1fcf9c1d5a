"""Exception hierarchy for decoding, price collection and proof packing."""
from __future__ import annotations


class LendingRiskError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(LendingRiskError):
    """A snapshot entry or attestation is missing or malformed."""


class TransportError(LendingRiskError):
    """Fetching an attestation for an oracle failed."""


class QuorumError(LendingRiskError):
    """Fewer attestations passed verification than the quorum requires.

    ``last_error`` is the transport failure of the last failing oracle in
    configuration order, or ``None`` when every oracle answered but too few
    attestations were usable.
    """

    def __init__(
        self,
        accepted: int,
        required: int,
        last_error: Exception | None = None,
    ) -> None:
        message = f"prices are outdated: {accepted} of {required} required oracles accepted"
        if last_error is not None:
            message = f"{message} (last error: {last_error})"
        super().__init__(message)
        self.accepted = accepted
        self.required = required
        self.last_error = last_error


class ProofConstructionError(LendingRiskError):
    """The codec could not build an inclusion proof for an attestation."""
