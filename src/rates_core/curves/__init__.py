"""
Yield curves consumed by the short-rate models.
"""

from .types import CurvePoint, FlatForward, YieldCurve, ZeroCurve
from .zero_curve import make_zero_curve_from_discounts, make_zero_curve_from_pairs
from .handle import YieldCurveHandle

__all__ = [
    "CurvePoint",
    "FlatForward",
    "YieldCurve",
    "ZeroCurve",
    "YieldCurveHandle",
    "make_zero_curve_from_pairs",
    "make_zero_curve_from_discounts",
]
