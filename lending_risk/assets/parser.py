"""Pure decoding functions for asset snapshot entries: no I/O."""
from __future__ import annotations

from ..interfaces.codec import CellDictionary, CellSlice
from ..models import AssetConfig, AssetData

# (field, bit width) in on-chain order. The first two live in the entry
# itself, the rest in its first reference.
CONFIG_HEAD_FIELDS: tuple[tuple[str, int], ...] = (
    ("oracle", 256),
    ("decimals", 8),
)
CONFIG_REF_FIELDS: tuple[tuple[str, int], ...] = (
    ("collateral_factor", 16),
    ("liquidation_threshold", 16),
    ("liquidation_bonus", 16),
    ("base_borrow_rate", 64),
    ("borrow_rate_slope_low", 64),
    ("borrow_rate_slope_high", 64),
    ("supply_rate_slope_low", 64),
    ("supply_rate_slope_high", 64),
    ("target_utilization", 64),
    ("origination_fee", 64),
    ("dust", 64),
    ("max_total_supply", 64),
    ("reserve_factor", 16),
    ("liquidation_reserve_factor", 16),
    ("min_principal_for_rewards", 64),
    ("base_tracking_supply_speed", 64),
    ("base_tracking_borrow_speed", 64),
)
DATA_FIELDS: tuple[tuple[str, int], ...] = (
    ("s_rate", 64),
    ("b_rate", 64),
    ("total_supply", 64),
    ("total_borrow", 64),
    ("last_accrual", 32),
    ("balance", 64),
    ("tracking_supply_index", 64),
    ("tracking_borrow_index", 64),
    ("awaited_supply", 64),
)


def _load_fields(
    slice_: CellSlice, fields: tuple[tuple[str, int], ...]
) -> dict[str, int]:
    return {name: slice_.load_uint(bits) for name, bits in fields}


def parse_asset_config(entry: CellSlice) -> AssetConfig:
    """Decode one entry of the master's asset config dictionary."""
    values = _load_fields(entry, CONFIG_HEAD_FIELDS)
    values.update(_load_fields(entry.load_ref().begin_parse(), CONFIG_REF_FIELDS))
    return AssetConfig(**values)


def parse_asset_data(entry: CellSlice) -> AssetData:
    """Decode one entry of the master's asset data dictionary."""
    return AssetData(**_load_fields(entry, DATA_FIELDS))


def lookup_entry(dictionary: CellDictionary, asset_id: int) -> CellSlice:
    """Return the entry for ``asset_id`` or raise ``KeyError``."""
    entry = dictionary.lookup(asset_id)
    if entry is None:
        raise KeyError(asset_id)
    return entry
