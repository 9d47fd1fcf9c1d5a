"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from lending_risk.assets import AssetStateStore
from lending_risk.config import (
    AppConfig,
    AssetSpec,
    OracleSpec,
    PriceFeedConfig,
)
from lending_risk.health import HealthEngine
from lending_risk.models import AssetConfig
from tests.fakes import (
    NOW,
    FakeCodec,
    config_dictionary,
    data_dictionary,
    make_asset_config,
    make_asset_data,
)

# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ton() -> AssetSpec:
    return AssetSpec("TON", 9)


@pytest.fixture()
def usdt() -> AssetSpec:
    return AssetSpec("USDT", 6)


@pytest.fixture()
def sample_oracles() -> tuple[OracleSpec, ...]:
    return tuple(OracleSpec(i, f"0xoracle{i}") for i in range(4))


@pytest.fixture()
def sample_app_config(
    ton: AssetSpec, usdt: AssetSpec, sample_oracles: tuple[OracleSpec, ...]
) -> AppConfig:
    return AppConfig(
        master_address="EQ-master",
        master_version=6,
        price_feed=PriceFeedConfig(
            endpoints=("https://node-a.example.com",),
            oracles=sample_oracles,
            minimal_oracles=3,
            ttl_seconds=120,
        ),
        assets=(ton, usdt),
    )


# ---------------------------------------------------------------------------
# Asset state fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ton_config() -> AssetConfig:
    return make_asset_config()


@pytest.fixture()
def usdt_config() -> AssetConfig:
    return make_asset_config(
        decimals=6,
        collateral_factor=8000,
        liquidation_threshold=8500,
        liquidation_bonus=10700,
        dust=1_000,
        liquidation_reserve_factor=500,
    )


@pytest.fixture()
def codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture()
def asset_store(
    sample_app_config: AppConfig,
    codec: FakeCodec,
    ton: AssetSpec,
    usdt: AssetSpec,
    ton_config: AssetConfig,
    usdt_config: AssetConfig,
) -> AssetStateStore:
    store = AssetStateStore.from_config(sample_app_config, clock=lambda: NOW)
    store.decode(
        data=data_dictionary(
            codec,
            {
                ton.id: make_asset_data(),
                usdt.id: make_asset_data(total_supply=10**12, total_borrow=9 * 10**11),
            },
        ),
        config=config_dictionary(codec, {ton.id: ton_config, usdt.id: usdt_config}),
    )
    return store


@pytest.fixture()
def sample_prices(ton: AssetSpec, usdt: AssetSpec) -> dict[str, int]:
    # $5 per TON, $1 per USDT, in 1e9 price units
    return {ton.key: 5 * 10**9, usdt.key: 10**9}


@pytest.fixture()
def engine() -> HealthEngine:
    return HealthEngine()


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    master:
      address: "EQ-master"
      version: 6
    params:
      collateral_worth_threshold: 50000000000
    price_feed:
      endpoints: ["https://node-a.example.com", "https://node-b.example.com"]
      minimal_oracles: 2
      ttl_seconds: 60
      oracles:
        - id: 0
          address: "0xaaa"
        - id: 1
          address: "0xbbb"
        - id: 2
          address: "0xccc"
    assets:
      - name: TON
        decimals: 9
      - name: USDT
        decimals: 6
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
