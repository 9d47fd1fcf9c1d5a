"""Conversions between principal, balance and value units."""
from __future__ import annotations

from ..config import MasterParams
from ..fixedpoint import mul_div
from ..interfaces.position import AssetSource, PriceSource
from ..models import AssetConfig, AssetData


class UnitCalculator:
    """Principal <-> balance <-> value for assets of one store and price set.

    Principal is the index-independent amount a position records; balance is
    principal times the supply (positive) or borrow (negative) index; value is
    balance in price units.
    """

    def __init__(
        self,
        assets: AssetSource,
        prices: PriceSource,
        params: MasterParams | None = None,
    ) -> None:
        self.assets = assets
        self.prices = prices
        self.params = params or MasterParams()

    def asset_data(self, asset: str) -> AssetData:
        data = self.assets.data(asset)
        if data is None:
            raise ValueError(f"asset {asset} has no decoded data")
        return data

    def asset_config(self, asset: str) -> AssetConfig:
        config = self.assets.config(asset)
        if config is None:
            raise ValueError(f"asset {asset} has no decoded config")
        return config

    def price(self, asset: str) -> int:
        price = self.prices.get(asset)
        if price is None:
            raise ValueError(f"no price for asset {asset}")
        return price

    @staticmethod
    def _require(amount: int | None, what: str) -> int:
        if amount is None:
            raise ValueError(f"{what} must not be None")
        return amount

    def balance_from_principal(self, asset: str, principal: int | None) -> int:
        principal = self._require(principal, "principal")
        if principal == 0:
            return 0
        data = self.asset_data(asset)
        rate = data.s_rate if principal > 0 else data.b_rate
        return mul_div(principal, rate, self.params.factor_scale)

    def principal_from_balance(self, asset: str, balance: int | None) -> int:
        balance = self._require(balance, "balance")
        if balance == 0:
            return 0
        data = self.asset_data(asset)
        rate = data.s_rate if balance > 0 else data.b_rate
        return mul_div(balance, self.params.factor_scale, rate)

    def value_from_balance(self, asset: str, balance: int | None) -> int:
        balance = self._require(balance, "balance")
        if balance == 0:
            return 0
        return mul_div(balance, self.price(asset), self.asset_config(asset).scale)

    def balance_from_value(self, asset: str, value: int | None) -> int:
        value = self._require(value, "value")
        if value == 0:
            return 0
        return mul_div(value, self.asset_config(asset).scale, self.price(asset))

    def value_from_principal(self, asset: str, principal: int | None) -> int:
        return self.value_from_balance(
            asset, self.balance_from_principal(asset, principal)
        )

    def principal_from_value(self, asset: str, value: int | None) -> int:
        return self.principal_from_balance(
            asset, self.balance_from_value(asset, value)
        )
