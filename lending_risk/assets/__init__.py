"""Asset configuration/state decoding and interest accrual."""
from .accrual import InterestAccrualModel
from .store import AssetStateStore

__all__ = ["AssetStateStore", "InterestAccrualModel"]
