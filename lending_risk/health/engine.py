"""Solvency metrics, borrow capacity and liquidation amounts of a position."""
from __future__ import annotations

import logging
from typing import Iterator

from ..config import MasterParams
from ..fixedpoint import div, mul_div
from ..interfaces.position import AssetSource, PriceSource, UserBalancer
from ..models import AssetConfig, AssetData, HealthSnapshot, LiquidationData
from .calculator import UnitCalculator

logger = logging.getLogger(__name__)


class HealthEngine:
    """Evaluates positions against decoded asset state and a price set.

    All figures are exact integers in price units; only the health factor
    is a float.
    """

    def __init__(self, params: MasterParams | None = None) -> None:
        self.params = params or MasterParams()

    def _calculator(self, assets: AssetSource, prices: PriceSource) -> UnitCalculator:
        return UnitCalculator(assets, prices, self.params)

    @staticmethod
    def _held(
        position: UserBalancer, assets: AssetSource
    ) -> Iterator[tuple[str, int, AssetConfig, AssetData]]:
        """Yield ``(key, id, config, data)`` for every asset with a principal."""
        for key, asset_id in assets.assets().items():
            if position.principal(key) == 0:
                continue
            config = assets.config(key)
            data = assets.data(key)
            if config is None or data is None:
                raise ValueError(f"asset {key} has not been decoded")
            yield key, asset_id, config, data

    def evaluate_health(
        self, position: UserBalancer, assets: AssetSource, prices: PriceSource
    ) -> HealthSnapshot:
        calc = self._calculator(assets, prices)
        p = self.params

        total_supply = total_debt = total_limit = 0
        greatest_collateral_asset: int | None = None
        greatest_collateral_value = 0
        greatest_loan_asset: int | None = None
        greatest_loan_value = 0

        for key, asset_id, config, data in self._held(position, assets):
            balance = position.balance(key, data)
            if balance > 0:
                worth = calc.value_from_balance(key, balance)
                total_supply += worth
                total_limit += mul_div(
                    worth, config.liquidation_threshold,
                    p.asset_liquidation_threshold_scale,
                )
                if worth > greatest_collateral_value:
                    greatest_collateral_value = worth
                    greatest_collateral_asset = asset_id
            elif balance < 0:
                worth = calc.value_from_balance(key, -balance)
                total_debt += worth
                if worth > greatest_loan_value:
                    greatest_loan_value = worth
                    greatest_loan_asset = asset_id

        return HealthSnapshot(
            total_supply=total_supply,
            total_debt=total_debt,
            total_limit=total_limit,
            greatest_collateral_asset=greatest_collateral_asset,
            greatest_collateral_value=greatest_collateral_value,
            greatest_loan_asset=greatest_loan_asset,
            greatest_loan_value=greatest_loan_value,
        )

    def available_to_borrow(
        self, position: UserBalancer, assets: AssetSource, prices: PriceSource
    ) -> int:
        """Collateral value weighted by collateral factor, minus debt value.

        Negative when the position already exceeds its borrow limit.
        """
        calc = self._calculator(assets, prices)
        limit = debt = 0
        for key, _, config, data in self._held(position, assets):
            balance = position.balance(key, data)
            if balance > 0:
                limit += mul_div(
                    calc.value_from_balance(key, balance),
                    config.collateral_factor,
                    self.params.asset_coefficient_scale,
                )
            elif balance < 0:
                debt += calc.value_from_balance(key, -balance)
        return limit - debt

    def max_withdraw_amount(
        self,
        position: UserBalancer,
        assets: AssetSource,
        prices: PriceSource,
        asset: str,
    ) -> int:
        """Largest amount of ``asset`` that can leave the position.

        Without a (dust-filtered) supply balance this is the remaining borrow
        capacity in ``asset`` units.
        """
        config = assets.config(asset)
        data = assets.data(asset)
        if config is None or data is None:
            raise ValueError(f"asset {asset} has not been decoded")
        calc = self._calculator(assets, prices)
        p = self.params

        balance = position.balance(asset, data, apply_dust=True, config=config)
        if balance <= 0:
            return mul_div(
                self.available_to_borrow(position, assets, prices),
                config.scale,
                calc.price(asset),
            )

        if position.has_no_debt() or config.collateral_factor == 0:
            return balance

        available = self.available_to_borrow(position, assets, prices)
        releasable = calc.balance_from_value(
            asset,
            mul_div(available, p.asset_coefficient_scale, config.collateral_factor),
        )
        # half the dust threshold in balance units
        margin = div(mul_div(data.s_rate, config.dust, p.factor_scale), 2)
        return min(balance, max(0, releasable - margin))

    def aggregated_balances(
        self, position: UserBalancer, assets: AssetSource, prices: PriceSource
    ) -> tuple[int, int]:
        """Return ``(total_supply, total_debt)`` in price units."""
        health = self.evaluate_health(position, assets, prices)
        return health.total_supply, health.total_debt

    def predict_health_factor(
        self,
        position: UserBalancer,
        assets: AssetSource,
        prices: PriceSource,
        asset: str | None = None,
        amount: int | None = None,
    ) -> float:
        """Health factor after adding ``amount`` of principal to ``asset``."""
        if asset is not None and amount:
            position = position.with_changed_principal(asset, amount)
        return self.evaluate_health(position, assets, prices).health_factor()

    def calculate_liquidation_data(
        self, position: UserBalancer, assets: AssetSource, prices: PriceSource
    ) -> LiquidationData:
        """Amounts a liquidator repays and seizes, if the position is liquidatable.

        The largest debt is repaid against the largest collateral. Outside
        bad debt at most half the collateral (but no less than the collateral
        worth threshold) may be seized in one liquidation.
        """
        health = self.evaluate_health(position, assets, prices)
        if not health.is_liquidatable():
            return LiquidationData(health=health)

        if health.greatest_collateral_asset is None or health.greatest_loan_asset is None:
            raise ValueError("liquidatable position has no collateral to seize")

        calc = self._calculator(assets, prices)
        p = self.params
        loan_key = str(health.greatest_loan_asset)
        collateral_key = str(health.greatest_collateral_asset)
        loan_config = calc.asset_config(loan_key)
        collateral_config = calc.asset_config(collateral_key)
        bonus = collateral_config.liquidation_bonus

        allowed = health.greatest_collateral_value
        if not health.is_bad_debt(bonus, p.asset_liquidation_bonus_scale):
            allowed = min(allowed, max(div(allowed, 2), p.collateral_worth_threshold))

        liquidation_value = min(
            health.greatest_loan_value,
            mul_div(allowed, p.asset_liquidation_bonus_scale, bonus),
        )
        collateral_value = mul_div(
            liquidation_value, bonus, p.asset_liquidation_bonus_scale
        )
        collateral_amount = calc.balance_from_value(collateral_key, collateral_value)

        reserve_scale = p.asset_liquidation_reserve_factor_scale
        liquidation_value = mul_div(
            liquidation_value,
            reserve_scale,
            reserve_scale - loan_config.liquidation_reserve_factor,
        )
        liquidation_amount = calc.balance_from_value(loan_key, liquidation_value)

        logger.debug(
            "Liquidation: repay %d of %s, seize %d of %s",
            liquidation_amount, loan_key, collateral_amount, collateral_key,
        )
        return LiquidationData(
            health=health,
            liquidatable=True,
            loan_asset=health.greatest_loan_asset,
            collateral_asset=health.greatest_collateral_asset,
            liquidation_amount=liquidation_amount,
            collateral_amount=collateral_amount,
        )
