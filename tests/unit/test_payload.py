"""Unit tests for packing median prices and oracle proofs."""
from __future__ import annotations

from dataclasses import replace

import pytest

from lending_risk.errors import ProofConstructionError
from lending_risk.models import PriceAttestation
from lending_risk.oracles.payload import pack_medians, pack_oracles, pack_payload
from tests.fakes import NOW, FakeCodec, prices_dictionary


def _signed(codec: FakeCodec, oracle_id: int, timestamp: int = NOW) -> PriceAttestation:
    return PriceAttestation(
        prices={"1": 100},
        prices_dict=prices_dictionary(codec, {1: 100}),
        signature=bytes([oracle_id]) * 64,
        timestamp=timestamp,
        oracle_id=oracle_id,
    )


class TestPackMedians:
    def test_last_asset_at_head(self, codec: FakeCodec) -> None:
        head = pack_medians(codec, {"1": 100, "2": 200})

        assert head.tokens == (("uint", 256, 2), ("coins", 0, 200), ("maybe", 1, True))
        (tail,) = head.refs
        assert tail.tokens == (("uint", 256, 1), ("coins", 0, 100), ("maybe", 1, False))
        assert tail.refs == ()

    def test_empty_rejected(self, codec: FakeCodec) -> None:
        with pytest.raises(ValueError):
            pack_medians(codec, {})


class TestPackOracles:
    def test_lowest_id_at_head(self, codec: FakeCodec) -> None:
        quorum = [_signed(codec, 2), _signed(codec, 0), _signed(codec, 1)]
        cell = pack_oracles(codec, quorum)

        ids = []
        while cell is not None:
            ids.append(cell.tokens[0][2])
            cell = cell.refs[1] if len(cell.refs) > 1 else None
        assert ids == [0, 1, 2]

    def test_cell_layout(self, codec: FakeCodec) -> None:
        att = _signed(codec, 7, timestamp=NOW + 3)
        cell = pack_oracles(codec, [att])

        assert cell.tokens == (
            ("uint", 32, 7),
            ("bytes", 512, att.signature),
            ("maybe", 1, False),
        )
        signed = (
            codec.begin_cell()
            .store_uint(NOW + 3, 32)
            .store_maybe_ref(att.prices_dict.as_cell())
            .end_cell()
        )
        assert cell.refs == (codec.create_proof(signed),)

    def test_proof_failure(self, codec: FakeCodec) -> None:
        codec.fail_proofs = True
        with pytest.raises(ProofConstructionError, match="oracle 3"):
            pack_oracles(codec, [_signed(codec, 3)])

    def test_missing_oracle_id_rejected(self, codec: FakeCodec) -> None:
        unassigned = replace(_signed(codec, 0), oracle_id=None)
        with pytest.raises(ProofConstructionError, match="no oracle id"):
            pack_oracles(codec, [_signed(codec, 1), unassigned])


class TestPackPayload:
    def test_references_both_chains(self, codec: FakeCodec) -> None:
        quorum = [_signed(codec, 0), _signed(codec, 1)]
        payload = pack_payload(codec, {"1": 100}, quorum)

        assert payload.tokens == ()
        assert payload.refs == (
            pack_medians(codec, {"1": 100}),
            pack_oracles(codec, quorum),
        )
