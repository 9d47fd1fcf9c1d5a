"""Position protocols: what the health engine reads from its inputs."""
from __future__ import annotations

from typing import Protocol

from ..models import AssetConfig, AssetData


class UserBalancer(Protocol):
    """A borrower position expressed as signed principals per asset."""

    def principal(self, asset: str) -> int: ...

    def balance(
        self,
        asset: str,
        data: AssetData,
        apply_dust: bool = False,
        config: AssetConfig | None = None,
    ) -> int: ...

    def with_changed_principal(self, asset: str, delta: int) -> UserBalancer: ...

    def has_no_debt(self) -> bool: ...


class AssetSource(Protocol):
    """Read access to decoded per-asset configuration and state."""

    def assets(self) -> dict[str, int]: ...

    def config(self, asset: str) -> AssetConfig | None: ...

    def data(self, asset: str) -> AssetData | None: ...


class PriceSource(Protocol):
    """Per-asset price lookup; a plain ``dict`` satisfies it."""

    def get(self, asset: str) -> int | None: ...
