"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PRICE_ENDPOINT = "https://api.stardust-mainnet.iotaledger.net"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MasterParams:
    """Fixed-point scales shared by the lending master contract."""

    factor_scale: int = 10**12
    asset_coefficient_scale: int = 10_000
    asset_price_scale: int = 10**9
    asset_reserve_factor_scale: int = 10_000
    asset_liquidation_reserve_factor_scale: int = 10_000
    asset_origination_fee_scale: int = 10**9
    asset_liquidation_threshold_scale: int = 10_000
    asset_liquidation_bonus_scale: int = 10_000
    asset_s_rate_scale: int = 10**12
    asset_b_rate_scale: int = 10**12
    # $100 expressed in price units
    collateral_worth_threshold: int = 100 * 10**9


def asset_id(name: str) -> int:
    """Derive the 256-bit asset identifier from the asset's ticker."""
    return int.from_bytes(hashlib.sha256(name.encode()).digest(), "big")


@dataclass(frozen=True)
class AssetSpec:
    name: str = ""
    decimals: int = 9

    @property
    def id(self) -> int:
        return asset_id(self.name)

    @property
    def key(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class OracleSpec:
    id: int = 0
    address: str = ""


@dataclass(frozen=True)
class PriceFeedConfig:
    endpoints: tuple[str, ...] = (DEFAULT_PRICE_ENDPOINT,)
    oracles: tuple[OracleSpec, ...] = ()
    minimal_oracles: int = 3
    ttl_seconds: int = 120
    request_timeout: int = 30


@dataclass(frozen=True)
class AppConfig:
    master_address: str = ""
    master_version: int = 0
    master_params: MasterParams = field(default_factory=MasterParams)
    price_feed: PriceFeedConfig = field(default_factory=PriceFeedConfig)
    assets: tuple[AssetSpec, ...] = ()

    @property
    def asset_ids(self) -> dict[str, int]:
        """Map of decimal-string asset key to 256-bit asset id."""
        return {a.key: a.id for a in self.assets}

    def asset_by_name(self, name: str) -> AssetSpec:
        for a in self.assets:
            if a.name == name:
                return a
        raise KeyError(f"Unknown asset '{name}'")


# ---------------------------------------------------------------------------
# Deployment presets
# ---------------------------------------------------------------------------

MASTER_MAINNET = "EQC8rUZqR_pWV1BylWUlPNBzyiTYVoBEmQkMIQDZXICfnuRr"
MASTER_TESTNET = "EQDLsg3w-iBj26Gww7neYoJAxiT2t77Zo8ro56b0yuHsPp3C"
MASTER_LP = "EQBIlZX2URWkXCSg3QF2MJZU-wC5XkBoLww-hdWk2G37Jc6N"

_ORACLES = (
    OracleSpec(0, "0xd3a8c0b9fd44fd25a49289c631e3ac45689281f2f8cf0744400b4c65bed38e5d"),
    OracleSpec(1, "0x2c21cabdaa89739de16bde7bc44e86401fac334a3c7e55305fe5e7563043e191"),
    OracleSpec(2, "0x2eb258ce7b5d02466ab8a178ad8b0ba6ffa7b58ef21de3dc3b6dd359a1e16af0"),
    OracleSpec(3, "0xf9a0769954b4430bca95149fb3d876deb7799d8f74852e0ad4ccc5778ce68b52"),
)


def mainnet_config() -> AppConfig:
    return AppConfig(
        master_address=MASTER_MAINNET,
        master_version=6,
        price_feed=PriceFeedConfig(oracles=_ORACLES, minimal_oracles=3),
        assets=(
            AssetSpec("TON", 9),
            AssetSpec("USDT", 6),
            AssetSpec("jUSDT", 6),
            AssetSpec("jUSDC", 6),
            AssetSpec("stTON", 9),
            AssetSpec("tsTON", 9),
        ),
    )


def testnet_config() -> AppConfig:
    return AppConfig(
        master_address=MASTER_TESTNET,
        master_version=1,
        price_feed=PriceFeedConfig(oracles=_ORACLES, minimal_oracles=3),
        assets=(
            AssetSpec("TON", 9),
            AssetSpec("jUSDT", 6),
            AssetSpec("jUSDC", 6),
            AssetSpec("stTON", 9),
        ),
    )


def lp_config() -> AppConfig:
    return AppConfig(
        master_address=MASTER_LP,
        master_version=3,
        price_feed=PriceFeedConfig(oracles=_ORACLES, minimal_oracles=3),
        assets=(
            AssetSpec("TON", 9),
            AssetSpec("USDT", 6),
            AssetSpec("TON_STORM", 9),
            AssetSpec("USDT_STORM", 9),
            AssetSpec("TONUSDT_DEDUST", 9),
        ),
    )


_PRESETS = {
    "mainnet": mainnet_config,
    "testnet": testnet_config,
    "lp": lp_config,
}

# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_master_params(raw: dict[str, Any]) -> MasterParams:
    defaults = MasterParams()
    return MasterParams(
        **{
            name: int(raw.get(name, getattr(defaults, name)))
            for name in MasterParams.__dataclass_fields__
        }
    )


def _build_oracles(raw: list[dict[str, Any]]) -> tuple[OracleSpec, ...]:
    return tuple(
        OracleSpec(id=int(o.get("id", 0)), address=str(o.get("address", "")))
        for o in raw
    )


def _build_price_feed(raw: dict[str, Any], base: PriceFeedConfig) -> PriceFeedConfig:
    return PriceFeedConfig(
        endpoints=tuple(raw.get("endpoints", base.endpoints)),
        oracles=_build_oracles(raw["oracles"]) if "oracles" in raw else base.oracles,
        minimal_oracles=int(raw.get("minimal_oracles", base.minimal_oracles)),
        ttl_seconds=int(raw.get("ttl_seconds", base.ttl_seconds)),
        request_timeout=int(raw.get("request_timeout", base.request_timeout)),
    )


def _build_assets(raw: list[dict[str, Any]]) -> tuple[AssetSpec, ...]:
    return tuple(
        AssetSpec(name=str(a.get("name", "")), decimals=int(a.get("decimals", 9)))
        for a in raw
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate configuration from YAML + .env.

    A ``preset`` key (``mainnet``, ``testnet`` or ``lp``) seeds every value;
    the remaining sections override it.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    preset_name = raw.get("preset")
    if preset_name:
        if preset_name not in _PRESETS:
            raise ValueError(f"Unknown preset '{preset_name}'")
        base = _PRESETS[preset_name]()
    else:
        base = AppConfig()

    master = raw.get("master", {})
    cfg = AppConfig(
        master_address=str(master.get("address", base.master_address)),
        master_version=int(master.get("version", base.master_version)),
        master_params=_build_master_params(raw.get("params", {})),
        price_feed=_build_price_feed(raw.get("price_feed", {}), base.price_feed),
        assets=_build_assets(raw["assets"]) if "assets" in raw else base.assets,
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.assets:
        raise ValueError("At least one asset must be configured")

    names = [a.name for a in cfg.assets]
    if len(set(names)) != len(names):
        raise ValueError("Asset names must be unique")
    for a in cfg.assets:
        if not a.name:
            raise ValueError("Asset has no name")
        if not 0 <= a.decimals < 256:
            raise ValueError(f"Asset '{a.name}' has invalid decimals {a.decimals}")

    feed = cfg.price_feed
    if feed.minimal_oracles < 1:
        raise ValueError("minimal_oracles must be at least 1")
    if len(feed.oracles) < feed.minimal_oracles:
        raise ValueError(
            f"{len(feed.oracles)} oracles configured, "
            f"fewer than minimal_oracles={feed.minimal_oracles}"
        )
    ids = [o.id for o in feed.oracles]
    if len(set(ids)) != len(ids):
        raise ValueError("Oracle ids must be unique")
    for o in feed.oracles:
        if not o.address:
            raise ValueError(f"Oracle {o.id} has no address")
    if not feed.endpoints:
        raise ValueError("At least one price endpoint must be configured")
