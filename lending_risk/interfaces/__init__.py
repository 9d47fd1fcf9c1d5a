"""Protocol interfaces for the lending risk core."""
from .codec import Cell, CellBuilder, CellDictionary, CellSlice, Codec
from .position import AssetSource, PriceSource, UserBalancer
from .transport import AttestationTransport

__all__ = [
    "AssetSource",
    "AttestationTransport",
    "Cell",
    "CellBuilder",
    "CellDictionary",
    "CellSlice",
    "Codec",
    "PriceSource",
    "UserBalancer",
]
