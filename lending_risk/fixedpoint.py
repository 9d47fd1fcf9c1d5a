"""Integer fixed-point helpers.

Every monetary quantity is a Python ``int``. Division truncates toward zero,
which differs from ``//`` for negative operands.
"""
from __future__ import annotations


def div(x: int, y: int) -> int:
    """Divide truncating toward zero."""
    if y == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    q = abs(x) // abs(y)
    return q if (x >= 0) == (y > 0) else -q


def mul_div(x: int, y: int, z: int) -> int:
    """Return ``x * y / z`` truncated toward zero."""
    return div(x * y, z)
