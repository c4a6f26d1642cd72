# src/rates_core/numerics/comparison.py

from __future__ import annotations

import sys

EPSILON = sys.float_info.epsilon


def close(x: float, y: float, n: int = 42) -> bool:
    """
    Floating-point equality within n machine epsilons, relative to both
    operands. Exact zeros are compared on the squared tolerance.
    """
    if x == y:
        return True

    diff = abs(x - y)
    tolerance = n * EPSILON

    if x * y == 0.0:
        return diff < tolerance * tolerance

    return diff <= tolerance * abs(x) and diff <= tolerance * abs(y)


def close_enough(x: float, y: float, n: int = 42) -> bool:
    """Like close(), but relative to either operand."""
    if x == y:
        return True

    diff = abs(x - y)
    tolerance = n * EPSILON

    if x * y == 0.0:
        return diff < tolerance * tolerance

    return diff <= tolerance * abs(x) or diff <= tolerance * abs(y)
