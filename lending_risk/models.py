"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .interfaces.codec import Cell, CellDictionary


@dataclass(frozen=True)
class AssetConfig:
    """Quasi-static risk parameters of a single asset."""

    oracle: int
    decimals: int
    collateral_factor: int
    liquidation_threshold: int
    liquidation_bonus: int
    base_borrow_rate: int
    borrow_rate_slope_low: int
    borrow_rate_slope_high: int
    supply_rate_slope_low: int
    supply_rate_slope_high: int
    target_utilization: int
    origination_fee: int
    dust: int
    max_total_supply: int
    reserve_factor: int
    liquidation_reserve_factor: int
    min_principal_for_rewards: int
    base_tracking_supply_speed: int
    base_tracking_borrow_speed: int

    @property
    def scale(self) -> int:
        """Native units per whole token (``10 ** decimals``)."""
        return 10**self.decimals


@dataclass(frozen=True)
class AssetData:
    """Mutable accrual state of a single asset, as of ``last_accrual``."""

    s_rate: int
    b_rate: int
    total_supply: int
    total_borrow: int
    last_accrual: int
    balance: int = 0
    tracking_supply_index: int = 0
    tracking_borrow_index: int = 0
    awaited_supply: int = 0


@dataclass(frozen=True)
class AccrualProjection:
    """Asset state projected to a later timestamp plus the rates applied."""

    data: AssetData
    supply_interest: int
    borrow_interest: int


@dataclass(frozen=True)
class PriceAttestation:
    """One oracle's signed price snapshot."""

    prices: dict[str, int]
    prices_dict: CellDictionary
    signature: bytes
    timestamp: int
    public_key: bytes = b""
    oracle_id: int | None = None


@dataclass(frozen=True)
class AggregatedPrices:
    """Median prices over a verified quorum and the payload proving them."""

    prices: dict[str, int]
    min_timestamp: int
    payload: Cell
    oracle_ids: tuple[int, ...] = ()

    def get(self, asset: str) -> int | None:
        return self.prices.get(asset)


@dataclass(frozen=True)
class HealthSnapshot:
    """Aggregate solvency figures of a position, in price units."""

    total_supply: int = 0
    total_debt: int = 0
    total_limit: int = 0
    greatest_collateral_asset: int | None = None
    greatest_collateral_value: int = 0
    greatest_loan_asset: int | None = None
    greatest_loan_value: int = 0

    def is_liquidatable(self) -> bool:
        return self.total_limit < self.total_debt

    def is_bad_debt(self, liquidation_bonus: int, liquidation_bonus_scale: int) -> bool:
        """True when seizing all collateral plus bonus cannot cover the debt."""
        return (
            self.total_supply * liquidation_bonus_scale
            < self.total_debt * liquidation_bonus
        )

    def health_factor(self) -> float:
        """Solvency in ``[0, 1]``: 1 means no debt, 0 means at or past the limit.

        The debt/limit ratio is formed exactly before converting to float.
        """
        if self.total_limit <= 0:
            return 1.0
        ratio = float(Fraction(self.total_debt, self.total_limit))
        return min(max(0.0, 1.0 - ratio), 1.0)


@dataclass(frozen=True)
class LiquidationData:
    """Outcome of a liquidation check, with amounts when liquidatable."""

    health: HealthSnapshot
    liquidatable: bool = False
    loan_asset: int | None = None
    collateral_asset: int | None = None
    liquidation_amount: int | None = None
    collateral_amount: int | None = None

    @property
    def health_factor(self) -> float:
        return self.health.health_factor()

