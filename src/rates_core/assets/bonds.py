# src/rates_core/assets/bonds.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import PreconditionError
from ..numerics.comparison import close_enough
from .discretized import DiscretizedAsset

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Core cashflow representation
# -------------------------------------------------------------------


@dataclass
class BondCashflowSchedule:
    """
    Container for a level-coupon bond's cashflow schedule.

    t_yrs         : payment times in years
    amounts       : cashflow amounts at those times
    face_value    : principal repaid at maturity
    coupon_rate   : annual coupon rate (decimal)
    freq_per_year : number of coupon payments per year
    maturity_years: final maturity in years
    """
    t_yrs: List[float]
    amounts: List[float]
    face_value: float
    coupon_rate: float
    freq_per_year: int
    maturity_years: float

    def __post_init__(self) -> None:
        if len(self.t_yrs) != len(self.amounts):
            raise PreconditionError(
                f"{len(self.t_yrs)} payment times but {len(self.amounts)} amounts"
            )
        if not self.t_yrs:
            raise PreconditionError("empty cashflow schedule")
        if any(b <= a for a, b in zip(self.t_yrs, self.t_yrs[1:])):
            raise PreconditionError("payment times must be strictly increasing")
        if self.t_yrs[0] <= 0.0:
            raise PreconditionError("payment times must be positive")

    @classmethod
    def from_arrays(
        cls,
        t_yrs: Sequence[float],
        amounts: Sequence[float],
        face_value: float,
        coupon_rate: float,
        freq_per_year: int,
        maturity_years: float,
    ) -> "BondCashflowSchedule":
        return cls(
            [float(t) for t in t_yrs],
            [float(a) for a in amounts],
            float(face_value),
            float(coupon_rate),
            int(freq_per_year),
            float(maturity_years),
        )

    @property
    def last_payment_time(self) -> float:
        return self.t_yrs[-1]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({"t_yrs": self.t_yrs, "amount": self.amounts})


# -------------------------------------------------------------------
# Schedule builder
# -------------------------------------------------------------------


def build_level_coupon_schedule(
    maturity_years: float,
    coupon_rate: float,
    freq_per_year: int = 2,
    face_value: float = 100.0,
) -> BondCashflowSchedule:
    """
    Build a level-coupon bond schedule.

    Args:
        maturity_years: final maturity in years.
        coupon_rate:    annual coupon rate (decimal, e.g. 0.04).
        freq_per_year:  number of coupon payments per year (2 = semi-annual).
        face_value:     principal repaid at maturity (default 100.0).

    Returns:
        BondCashflowSchedule with t_yrs, amounts, and face_value.
    """
    if freq_per_year <= 0:
        raise PreconditionError(f"freq_per_year must be positive, got {freq_per_year}")

    face = float(face_value)
    dt = 1.0 / float(freq_per_year)
    coupon = face * float(coupon_rate) / float(freq_per_year)

    n_periods = int(round(maturity_years * freq_per_year))
    if n_periods <= 0:
        raise PreconditionError("maturity_years * freq_per_year must be > 0")

    t_yrs: list[float] = []
    amounts: list[float] = []

    for k in range(1, n_periods + 1):
        t_yrs.append(k * dt)
        cf = coupon
        if k == n_periods:
            cf += face  # principal at maturity
        amounts.append(cf)

    return BondCashflowSchedule(
        t_yrs=t_yrs,
        amounts=amounts,
        face_value=face,
        coupon_rate=float(coupon_rate),
        freq_per_year=int(freq_per_year),
        maturity_years=float(maturity_years),
    )


# -------------------------------------------------------------------
# Callable bond on a short-rate lattice
# -------------------------------------------------------------------


class DiscretizedCallableBond(DiscretizedAsset):
    """
    Level-coupon bond with an issuer (Bermudan) call.

    Early-exercise rule (issuer advantage, investor worst case):
    at a call time the investor holds min(continuation, call_price),
    applied before the coupon paid at that time is added.

    Initialize on the lattice at the last payment time.
    """

    def __init__(
        self,
        schedule: BondCashflowSchedule,
        call_times: Optional[Sequence[float]] = None,
        call_price: float = 100.0,
    ):
        super().__init__()
        self.schedule = schedule
        self.call_times = sorted(float(t) for t in (call_times or []) if t > 0.0)
        self.call_price = float(call_price)
        self._payments: list[tuple[float, float]] = []
        self._calls: list[float] = []

    def mandatory_times(self) -> List[float]:
        return list(self.schedule.t_yrs) + list(self.call_times)

    def reset(self, size: int) -> None:
        self._payments = [
            (t, amount)
            for t, amount in zip(self.schedule.t_yrs, self.schedule.amounts)
            if self._on_grid(t)
        ]
        self._calls = [t for t in self.call_times if self._on_grid(t)]
        self.values = np.zeros(size)
        self.adjust_values()

    def _on_grid(self, t: float) -> bool:
        grid = self.method.time_grid
        if t > grid.last and not close_enough(t, grid.last):
            logger.warning(
                "Event at t=%.6f is beyond the lattice horizon t=%.6f and is ignored.",
                t,
                grid.last,
            )
            return False
        t_near = grid.closest_time(t)
        if not close_enough(t_near, t):
            logger.warning(
                "Event at t=%.6f is not a lattice node (nearest t=%.6f) and is ignored. "
                "Build the time grid from the bond's mandatory times.",
                t,
                t_near,
            )
            return False
        return True

    def pre_adjust_values_impl(self) -> None:
        for t in self._calls:
            if self.is_on_time(t):
                self.values = np.minimum(self.values, self.call_price)

    def post_adjust_values_impl(self) -> None:
        for t, amount in self._payments:
            if self.is_on_time(t):
                self.values = self.values + amount
