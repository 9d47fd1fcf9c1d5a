"""Codec protocols: the chain's nested binary cell format.

Integers are arbitrary-precision Python ints. Readers raise on underflow or
malformed input; callers translate those failures into ``DecodeError``.
"""
from __future__ import annotations

from typing import Iterator, Protocol


class Cell(Protocol):
    """An immutable encoded structure with up to four child references."""

    def begin_parse(self) -> CellSlice: ...

    def as_dict(self, key_bits: int) -> CellDictionary: ...

    def hash(self) -> bytes: ...


class CellSlice(Protocol):
    """Sequential reader over a cell's bits and references."""

    def load_uint(self, bits: int) -> int: ...

    def load_int(self, bits: int) -> int: ...

    def load_var_uint(self, max_len: int) -> int: ...

    def load_coins(self) -> int: ...

    def load_address(self) -> str: ...

    def load_ref(self) -> Cell: ...

    def load_maybe_ref(self) -> Cell | None: ...

    def load_dict(self, key_bits: int) -> CellDictionary: ...


class CellDictionary(Protocol):
    """Ordered mapping of fixed-width unsigned keys to value slices."""

    def lookup(self, key: int) -> CellSlice | None: ...

    def items(self) -> Iterator[tuple[int, CellSlice]]: ...

    def as_cell(self) -> Cell | None: ...


class CellBuilder(Protocol):
    """Fluent writer producing a new cell."""

    def store_uint(self, value: int, bits: int) -> CellBuilder: ...

    def store_coins(self, value: int) -> CellBuilder: ...

    def store_bytes(self, data: bytes) -> CellBuilder: ...

    def store_ref(self, cell: Cell) -> CellBuilder: ...

    def store_maybe_ref(self, cell: Cell | None) -> CellBuilder: ...

    def end_cell(self) -> Cell: ...


class Codec(Protocol):
    """Entry points of a cell codec implementation."""

    def begin_cell(self) -> CellBuilder: ...

    def from_boc(self, data: bytes) -> Cell: ...

    def create_proof(self, cell: Cell) -> Cell:
        """Build a recursive inclusion proof covering the whole of ``cell``."""
        ...
