"""Utilization-based interest accrual (kinked curve).

Rates and utilization are scaled by ``FACTOR_SCALE``; reserve factor is in
basis points of ``RESERVE_FACTOR_SCALE``.
"""
from __future__ import annotations

from dataclasses import replace

from ..fixedpoint import mul_div
from ..models import AccrualProjection, AssetConfig, AssetData

FACTOR_SCALE = 10**12
RESERVE_FACTOR_SCALE = 10_000


class InterestAccrualModel:
    """Projects supply/borrow indices forward for one asset."""

    def __init__(self, config: AssetConfig) -> None:
        self.config = config

    @staticmethod
    def utilization(data: AssetData) -> int:
        """Borrowed over supplied, both normalized by their current index."""
        total_supply = mul_div(data.s_rate, data.total_supply, FACTOR_SCALE)
        total_borrow = mul_div(data.b_rate, data.total_borrow, FACTOR_SCALE)
        if total_supply == 0:
            return 0
        return mul_div(total_borrow, FACTOR_SCALE, total_supply)

    def borrow_rate(self, utilization: int) -> int:
        c = self.config
        if utilization <= c.target_utilization:
            return c.base_borrow_rate + mul_div(
                c.borrow_rate_slope_low, utilization, FACTOR_SCALE
            )
        return (
            c.base_borrow_rate
            + mul_div(c.borrow_rate_slope_low, c.target_utilization, FACTOR_SCALE)
            + mul_div(
                c.borrow_rate_slope_high,
                utilization - c.target_utilization,
                FACTOR_SCALE,
            )
        )

    def supply_rate(self, borrow_rate: int, utilization: int) -> int:
        """Borrow interest passed to suppliers after the reserve cut."""
        return mul_div(
            mul_div(borrow_rate, utilization, FACTOR_SCALE),
            RESERVE_FACTOR_SCALE - self.config.reserve_factor,
            RESERVE_FACTOR_SCALE,
        )

    def project(self, data: AssetData, target_timestamp: int) -> AccrualProjection:
        """Return ``data`` accrued up to ``target_timestamp``.

        Only the indices and ``last_accrual`` move; totals are untouched. A
        target at or before the last accrual returns ``data`` itself.
        """
        elapsed = target_timestamp - data.last_accrual
        if elapsed <= 0:
            return AccrualProjection(data=data, supply_interest=0, borrow_interest=0)

        utilization = self.utilization(data)
        borrow_interest = self.borrow_rate(utilization)
        supply_interest = self.supply_rate(borrow_interest, utilization)

        projected = replace(
            data,
            s_rate=data.s_rate
            + mul_div(data.s_rate, supply_interest * elapsed, FACTOR_SCALE),
            b_rate=data.b_rate
            + mul_div(data.b_rate, borrow_interest * elapsed, FACTOR_SCALE),
            last_accrual=target_timestamp,
        )
        return AccrualProjection(
            data=projected,
            supply_interest=supply_interest,
            borrow_interest=borrow_interest,
        )
