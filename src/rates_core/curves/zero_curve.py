from __future__ import annotations

import math
from typing import Iterable, Tuple

from ..errors import PreconditionError
from .types import ZeroCurve, CurvePoint


def make_zero_curve_from_pairs(pairs: Iterable[Tuple[float, float]]) -> ZeroCurve:
    """
    Convenience helper so callers don't need to import ZeroCurve directly.
    """
    return ZeroCurve.from_pairs(pairs)


def make_zero_curve_from_discounts(pairs: Iterable[Tuple[float, float]]) -> ZeroCurve:
    """
    Build a ZeroCurve from (t, DF(t)) pairs.

    A DF at t=0 carries no rate information and is skipped; the first
    positive tenor then sets the short end by flat extrapolation.
    """
    points = []
    for t, df in pairs:
        t = float(t)
        df = float(df)
        if df <= 0.0:
            raise PreconditionError(f"non-positive discount factor {df} at t={t}")
        if t == 0.0:
            continue
        points.append(CurvePoint(tenor_years=t, zero_rate=-math.log(df) / t))
    return ZeroCurve(points=points)


__all__ = [
    "ZeroCurve",
    "CurvePoint",
    "make_zero_curve_from_pairs",
    "make_zero_curve_from_discounts",
]
