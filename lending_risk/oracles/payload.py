"""Packing of aggregated prices and per-oracle proofs into one cell."""
from __future__ import annotations

from typing import Mapping, Sequence

from ..errors import ProofConstructionError
from ..interfaces.codec import Cell, Codec
from ..models import PriceAttestation


def pack_medians(codec: Codec, medians: Mapping[str, int]) -> Cell:
    """Chain ``{asset_id:256, price:coins, next?}`` cells, last asset at the head."""
    chain: Cell | None = None
    for asset, price in medians.items():
        chain = (
            codec.begin_cell()
            .store_uint(int(asset), 256)
            .store_coins(price)
            .store_maybe_ref(chain)
            .end_cell()
        )
    if chain is None:
        raise ValueError("no median prices to pack")
    return chain


def prove_attestation(codec: Codec, attestation: PriceAttestation) -> Cell:
    """Inclusion proof of ``{timestamp:32, prices_dict?}`` as the oracle signed it."""
    try:
        signed = (
            codec.begin_cell()
            .store_uint(attestation.timestamp, 32)
            .store_maybe_ref(attestation.prices_dict.as_cell())
            .end_cell()
        )
        return codec.create_proof(signed)
    except Exception as e:
        raise ProofConstructionError(
            f"failed to prove attestation of oracle {attestation.oracle_id}: {e}"
        ) from e


def pack_oracles(codec: Codec, quorum: Sequence[PriceAttestation]) -> Cell:
    """Chain ``{oracle_id:32, ^proof, signature, next?}`` cells.

    Cells are prepended in descending oracle id order, so the head holds the
    lowest id.
    """
    for attestation in quorum:
        if attestation.oracle_id is None:
            raise ProofConstructionError(
                f"attestation signed at {attestation.timestamp} has no oracle id"
            )

    chain: Cell | None = None
    for attestation in sorted(quorum, key=lambda a: a.oracle_id, reverse=True):
        proof = prove_attestation(codec, attestation)
        chain = (
            codec.begin_cell()
            .store_uint(attestation.oracle_id, 32)
            .store_ref(proof)
            .store_bytes(attestation.signature)
            .store_maybe_ref(chain)
            .end_cell()
        )
    if chain is None:
        raise ValueError("no attestations to pack")
    return chain


def pack_payload(
    codec: Codec,
    medians: Mapping[str, int],
    quorum: Sequence[PriceAttestation],
) -> Cell:
    """Outer container referencing the median chain and the oracle chain."""
    return (
        codec.begin_cell()
        .store_ref(pack_medians(codec, medians))
        .store_ref(pack_oracles(codec, quorum))
        .end_cell()
    )
