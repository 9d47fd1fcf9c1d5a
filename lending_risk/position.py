"""Borrower position held by a user lending contract."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from .errors import DecodeError
from .fixedpoint import mul_div
from .models import AssetConfig, AssetData

if TYPE_CHECKING:
    from .interfaces.codec import Cell, CellDictionary

FACTOR_SCALE = 10**12
PRINCIPAL_KEY_BITS = 256
PRINCIPAL_BITS = 64


@dataclass(frozen=True)
class UserPosition:
    """Signed principal per asset; positive is supply, negative is debt."""

    principals: dict[str, int] = field(default_factory=dict)
    address: str | None = None
    owner_address: str | None = None
    master_address: str | None = None
    code_version: int = 0
    user_state: int = 0
    rewards: CellDictionary | None = None
    backup_cell_1: Cell | None = None
    backup_cell_2: Cell | None = None

    def principal(self, asset: str) -> int:
        return self.principals.get(asset, 0)

    def balance(
        self,
        asset: str,
        data: AssetData,
        apply_dust: bool = False,
        config: AssetConfig | None = None,
    ) -> int:
        """Principal times the index matching its sign.

        With ``apply_dust`` a supply principal below the asset's dust
        threshold counts as zero.
        """
        principal = self.principal(asset)
        if principal == 0:
            return 0
        if principal > 0:
            if apply_dust and config is not None and principal < config.dust:
                return 0
            return mul_div(principal, data.s_rate, FACTOR_SCALE)
        return mul_div(principal, data.b_rate, FACTOR_SCALE)

    def with_changed_principal(self, asset: str, delta: int) -> UserPosition:
        """Copy of this position with ``delta`` added to one principal.

        Rewards and backup cells are not carried over.
        """
        principals = dict(self.principals)
        principals[asset] = self.principal(asset) + delta
        return replace(
            self,
            principals=principals,
            rewards=None,
            backup_cell_1=None,
            backup_cell_2=None,
        )

    def has_no_debt(self) -> bool:
        return all(p >= 0 for p in self.principals.values())

    @classmethod
    def from_account_cell(cls, cell: Cell, address: str | None = None) -> UserPosition:
        """Decode the data cell of a user lending contract.

        Raises:
            DecodeError: the cell does not match the account layout.
        """
        try:
            s = cell.begin_parse()
            values: dict[str, Any] = {
                "code_version": s.load_coins(),
                "master_address": s.load_address(),
                "owner_address": s.load_address(),
            }
            principals = {
                str(key): value.load_int(PRINCIPAL_BITS)
                for key, value in s.load_dict(PRINCIPAL_KEY_BITS).items()
            }
            values["user_state"] = s.load_int(64)
            values["rewards"] = s.load_dict(PRINCIPAL_KEY_BITS)
            values["backup_cell_1"] = s.load_maybe_ref()
            values["backup_cell_2"] = s.load_maybe_ref()
        except Exception as e:
            raise DecodeError(f"failed to decode user account data: {e}") from e

        return cls(principals=principals, address=address, **values)
