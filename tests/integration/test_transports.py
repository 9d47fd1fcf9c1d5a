"""Integration tests for the HTTP attestation transports with mocked aiohttp."""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from lending_risk.config import DEFAULT_PRICE_ENDPOINT
from lending_risk.errors import TransportError
from lending_risk.oracles import IotaNftTransport, SnapshotTransport

NODE = "https://node.example.com"
ADDRESS = "0xnft"


def _mock_response(status: int = 200, data: Any = None) -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.json = AsyncMock(return_value=data)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def _mock_session(**get_kwargs: Any) -> AsyncMock:
    session = AsyncMock()
    session.get = MagicMock(**get_kwargs)
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    return session


class TestIotaNftTransport:
    @pytest.mark.asyncio
    async def test_reads_first_feature_of_first_output(self) -> None:
        session = _mock_session(
            side_effect=[
                _mock_response(data={"items": ["0xout1", "0xout2"]}),
                _mock_response(
                    data={"output": {"features": [{"data": "0xfeed"}, {"data": "0x00"}]}}
                ),
            ]
        )

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                raw = await IotaNftTransport().fetch(NODE, ADDRESS)

        assert raw == "0xfeed"
        urls = [c.args[0] for c in session.get.call_args_list]
        assert urls == [
            f"{NODE}/api/indexer/v1/outputs/nft/{ADDRESS}",
            f"{NODE}/api/core/v2/outputs/0xout1",
        ]

    @pytest.mark.asyncio
    async def test_empty_endpoint_uses_default(self) -> None:
        session = _mock_session(
            side_effect=[
                _mock_response(data={"items": ["0xout"]}),
                _mock_response(data={"output": {"features": [{"data": "0xfeed"}]}}),
            ]
        )

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                await IotaNftTransport().fetch("", ADDRESS)

        assert session.get.call_args_list[0].args[0].startswith(DEFAULT_PRICE_ENDPOINT)

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        session = _mock_session(return_value=_mock_response(status=404))

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                with pytest.raises(TransportError, match="HTTP 404"):
                    await IotaNftTransport().fetch(NODE, ADDRESS)

    @pytest.mark.asyncio
    async def test_no_outputs(self) -> None:
        session = _mock_session(return_value=_mock_response(data={"items": []}))

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                with pytest.raises(TransportError, match="no outputs"):
                    await IotaNftTransport().fetch(NODE, ADDRESS)

    @pytest.mark.asyncio
    async def test_no_features(self) -> None:
        session = _mock_session(
            side_effect=[
                _mock_response(data={"items": ["0xout"]}),
                _mock_response(data={"output": {"features": []}}),
            ]
        )

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                with pytest.raises(TransportError, match="no features"):
                    await IotaNftTransport().fetch(NODE, ADDRESS)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "items, output",
        [
            ({"items": ["0xout"]}, {"output": None}),
            ({"items": ["0xout"]}, {"output": {"features": ["0xfeed"]}}),
            ({"items": ["0xout"]}, {"output": {"features": [{"data": 7}]}}),
            ({"items": [{"id": "0xout"}]}, {}),
            ({"items": "0xout"}, {}),
        ],
        ids=[
            "null-output",
            "feature-not-object",
            "data-not-string",
            "item-not-string",
            "items-not-list",
        ],
    )
    async def test_malformed_node_response(
        self, items: dict[str, Any], output: dict[str, Any]
    ) -> None:
        session = _mock_session(
            side_effect=[_mock_response(data=items), _mock_response(data=output)]
        )

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                with pytest.raises(TransportError):
                    await IotaNftTransport().fetch(NODE, ADDRESS)

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        session = _mock_session(side_effect=aiohttp.ClientConnectionError("refused"))

        with patch("lending_risk.oracles.iota.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.iota.aiohttp.TCPConnector"):
                with pytest.raises(TransportError, match="refused"):
                    await IotaNftTransport().fetch(NODE, ADDRESS)


class TestSnapshotTransport:
    @pytest.mark.asyncio
    async def test_serves_from_refreshed_snapshot(self) -> None:
        transport = SnapshotTransport(NODE)
        session = _mock_session(
            return_value=_mock_response(data={"0xa": "0x01", "0xb": "0x02"})
        )

        with patch("lending_risk.oracles.snapshot.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.snapshot.aiohttp.TCPConnector"):
                count = await transport.refresh()

        assert count == 2
        assert await transport.fetch("ignored", "0xb") == "0x02"
        session.get.assert_called_once_with(NODE)

    @pytest.mark.asyncio
    async def test_unknown_oracle_before_refresh(self) -> None:
        with pytest.raises(TransportError, match="0xa"):
            await SnapshotTransport(NODE).fetch("", "0xa")

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_snapshot(self) -> None:
        transport = SnapshotTransport(NODE)
        good = _mock_session(return_value=_mock_response(data={"0xa": "0x01"}))
        bad = _mock_session(return_value=_mock_response(status=500))

        with patch("lending_risk.oracles.snapshot.aiohttp.TCPConnector"):
            with patch("lending_risk.oracles.snapshot.aiohttp.ClientSession", return_value=good):
                await transport.refresh()
            with patch("lending_risk.oracles.snapshot.aiohttp.ClientSession", return_value=bad):
                with pytest.raises(TransportError, match="HTTP 500"):
                    await transport.refresh()

        assert await transport.fetch("", "0xa") == "0x01"

    @pytest.mark.asyncio
    async def test_non_object_snapshot(self) -> None:
        session = _mock_session(return_value=_mock_response(data=["0x01"]))

        with patch("lending_risk.oracles.snapshot.aiohttp.ClientSession", return_value=session):
            with patch("lending_risk.oracles.snapshot.aiohttp.TCPConnector"):
                with pytest.raises(TransportError, match="unexpected snapshot"):
                    await SnapshotTransport(NODE).refresh()

    @pytest.mark.asyncio
    async def test_run_survives_failed_refresh(self) -> None:
        transport = SnapshotTransport(NODE)
        transport.refresh = AsyncMock(  # type: ignore[method-assign]
            side_effect=[TransportError("down"), 2, asyncio.CancelledError()]
        )

        with patch("lending_risk.oracles.snapshot.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(asyncio.CancelledError):
                await transport.run(interval=0.01)

        assert transport.refresh.await_count == 3
