# src/rates_core/curves/types.py

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ..errors import PreconditionError

# step used for instantaneous forwards f(t) ~ F(t - dt/2, t + dt/2)
FORWARD_DT = 1.0e-4


class YieldCurve(ABC):
    """
    Minimal yield term structure: discount factors in year fractions.

    Forward rates are continuously compounded and implied from discounts.
    Subclasses only need discount(); no arbitrage checks are made.
    """

    @abstractmethod
    def discount(self, t: float) -> float:
        ...

    def forward_rate(self, t1: float, t2: float) -> float:
        """
        Continuously compounded forward between t1 and t2.

        t2 == t1 returns the instantaneous forward at t1.
        """
        t1 = float(t1)
        t2 = float(t2)
        if t2 < t1:
            raise PreconditionError(f"t2 ({t2}) < t1 ({t1})")
        if t2 == t1:
            return self.instantaneous_forward(t1)
        return math.log(self.discount(t1) / self.discount(t2)) / (t2 - t1)

    def instantaneous_forward(self, t: float) -> float:
        t1 = max(float(t) - 0.5 * FORWARD_DT, 0.0)
        t2 = t1 + FORWARD_DT
        return math.log(self.discount(t1) / self.discount(t2)) / FORWARD_DT

    def zero_rate(self, t: float) -> float:
        t = float(t)
        if t == 0.0:
            return self.instantaneous_forward(0.0)
        return -math.log(self.discount(t)) / t


class FlatForward(YieldCurve):
    """Flat continuously compounded curve: DF(t) = exp(-rate * t)."""

    def __init__(self, rate: float):
        self.rate = float(rate)

    def discount(self, t: float) -> float:
        if t < 0.0:
            raise PreconditionError(f"negative time ({t}) given")
        return math.exp(-self.rate * float(t))

    def instantaneous_forward(self, t: float) -> float:
        return self.rate

    def __repr__(self) -> str:
        return f"FlatForward(rate={self.rate})"


@dataclass
class CurvePoint:
    """
    A single point on a zero curve.

    tenor_years: time to maturity in years (e.g. 1.0, 5.0, 10.0)
    zero_rate:   continuously compounded zero rate (decimal, e.g. 0.0225 = 2.25%)
    """
    tenor_years: float
    zero_rate: float


@dataclass
class ZeroCurve(YieldCurve):
    """
    Zero curve built from (tenor_years, zero_rate) points.

    Provides:
    - zero_rate(t): linear interpolation in time, flat beyond the ends
    - discount(t): exp(-r(t) * t)
    - forward_rate(t1, t2): implied continuously compounded forward
    """

    points: List[CurvePoint]

    def __post_init__(self) -> None:
        if not self.points:
            raise PreconditionError("ZeroCurve requires at least one point")
        self.points.sort(key=lambda p: p.tenor_years)
        if self.points[0].tenor_years < 0.0:
            raise PreconditionError("ZeroCurve tenors must be non-negative")
        for left, right in zip(self.points, self.points[1:]):
            if left.tenor_years == right.tenor_years:
                raise PreconditionError(
                    f"duplicate tenor {left.tenor_years} in ZeroCurve"
                )

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "ZeroCurve":
        pts = [CurvePoint(float(t), float(r)) for t, r in pairs]
        return cls(points=pts)

    def zero_rate(self, t: float) -> float:
        t = float(t)
        pts = self.points

        if t <= pts[0].tenor_years:
            return pts[0].zero_rate
        if t >= pts[-1].tenor_years:
            return pts[-1].zero_rate

        for left, right in zip(pts, pts[1:]):
            if left.tenor_years <= t <= right.tenor_years:
                w = (t - left.tenor_years) / (right.tenor_years - left.tenor_years)
                return left.zero_rate + w * (right.zero_rate - left.zero_rate)

        return pts[-1].zero_rate

    def discount(self, t: float) -> float:
        if t < 0.0:
            raise PreconditionError(f"negative time ({t}) given")
        return math.exp(-self.zero_rate(t) * float(t))
