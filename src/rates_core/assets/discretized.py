# src/rates_core/assets/discretized.py

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import numpy as np

from ..errors import PreconditionError
from ..numerics.comparison import close, close_enough
from ..numerics.enums import ExerciseType


class DiscretizedAsset(ABC):
    """
    Asset whose values live on the nodes of one lattice level at a time.

    The lattice moves the asset backwards (rollback) and calls
    adjust_values() at each time it crosses; subclasses hook in exercise
    decisions and cash flows through pre/post adjustments. Each
    adjustment runs at most once for a given time.
    """

    def __init__(self) -> None:
        self.time: float = 0.0
        self.values: np.ndarray = np.zeros(0)
        self.method = None
        self._latest_pre_adjustment = math.inf
        self._latest_post_adjustment = math.inf

    # ---------- lattice delegation ----------

    def initialize(self, method, t: float) -> None:
        self.method = method
        method.initialize(self, t)

    def rollback(self, to: float) -> None:
        self._require_method().rollback(self, to)

    def partial_rollback(self, to: float) -> None:
        self._require_method().partial_rollback(self, to)

    def present_value(self) -> float:
        return self._require_method().present_value(self)

    def _require_method(self):
        if self.method is None:
            raise PreconditionError("asset not initialized on a lattice")
        return self.method

    # ---------- adjustments ----------

    def pre_adjust_values(self) -> None:
        if not close(self.time, self._latest_pre_adjustment):
            self.pre_adjust_values_impl()
            self._latest_pre_adjustment = self.time

    def post_adjust_values(self) -> None:
        if not close(self.time, self._latest_post_adjustment):
            self.post_adjust_values_impl()
            self._latest_post_adjustment = self.time

    def adjust_values(self) -> None:
        self.pre_adjust_values()
        self.post_adjust_values()

    def pre_adjust_values_impl(self) -> None:
        pass

    def post_adjust_values_impl(self) -> None:
        pass

    def is_on_time(self, t: float) -> bool:
        """True if the asset currently sits on the grid node for t."""
        grid = self._require_method().time_grid
        return close_enough(grid[grid.index(t)], self.time)

    # ---------- to be provided ----------

    @abstractmethod
    def reset(self, size: int) -> None:
        ...

    @abstractmethod
    def mandatory_times(self) -> List[float]:
        ...


class DiscretizedDiscountBond(DiscretizedAsset):
    """Zero-coupon bond paying 1 at the time it is initialized."""

    def reset(self, size: int) -> None:
        self.values = np.ones(size)

    def mandatory_times(self) -> List[float]:
        return []


def _check_exercise_times(exercise_type: ExerciseType, exercise_times: Sequence[float]) -> List[float]:
    times = [float(t) for t in exercise_times]
    if not times:
        raise PreconditionError("no exercise times given")
    if exercise_type == ExerciseType.AMERICAN and len(times) != 2:
        raise PreconditionError(
            "american exercise needs exactly two times (earliest, latest)"
        )
    if exercise_type == ExerciseType.EUROPEAN and len(times) != 1:
        raise PreconditionError("european exercise needs exactly one time")
    if any(b < a for a, b in zip(times, times[1:])):
        raise PreconditionError("exercise times must be sorted")
    return times


class DiscretizedOption(DiscretizedAsset):
    """
    Option to receive the underlying asset.

    For American exercise, exercise_times = [earliest, latest] and the
    option can be exercised at any grid time between them. For Bermudan
    and European exercise the listed times must be grid nodes.
    """

    def __init__(
        self,
        underlying: DiscretizedAsset,
        exercise_type: ExerciseType,
        exercise_times: Sequence[float],
    ):
        super().__init__()
        self.underlying = underlying
        self.exercise_type = exercise_type
        self.exercise_times = _check_exercise_times(exercise_type, exercise_times)

    def reset(self, size: int) -> None:
        if self.method is not self.underlying.method:
            raise PreconditionError(
                "option and underlying were initialized on different lattices"
            )
        self.values = np.zeros(size)
        self.adjust_values()

    def mandatory_times(self) -> List[float]:
        times = list(self.underlying.mandatory_times())
        times.extend(t for t in self.exercise_times if t >= 0.0)
        return times

    def post_adjust_values_impl(self) -> None:
        # bring the underlying to the option's time before exercising
        self.underlying.partial_rollback(self.time)
        self.underlying.pre_adjust_values()

        if self.exercise_type == ExerciseType.AMERICAN:
            if self.exercise_times[0] <= self.time <= self.exercise_times[1]:
                self.apply_exercise_condition()
        else:
            for t in self.exercise_times:
                if t >= 0.0 and self.is_on_time(t):
                    self.apply_exercise_condition()

        self.underlying.post_adjust_values()

    def apply_exercise_condition(self) -> None:
        self.values = np.maximum(self.underlying.values, self.values)


class DiscretizedDiscountBondOption(DiscretizedOption):
    """
    Call or put struck at `strike` on a zero-coupon bond maturing at
    `bond_maturity`, expiring at `maturity`.

    initialize() places the bond on the lattice at its maturity before
    the option itself, so both share the same method.
    """

    def __init__(
        self,
        option_type,
        strike: float,
        maturity: float,
        bond_maturity: float,
        exercise_type: ExerciseType = ExerciseType.EUROPEAN,
        exercise_times: Optional[Sequence[float]] = None,
    ):
        if not strike > 0.0:
            raise PreconditionError(f"strike ({strike}) must be positive")
        if bond_maturity < maturity:
            raise PreconditionError(
                f"bond maturity ({bond_maturity}) before option maturity ({maturity})"
            )
        if exercise_times is None:
            if exercise_type == ExerciseType.AMERICAN:
                exercise_times = [0.0, maturity]
            elif exercise_type == ExerciseType.EUROPEAN:
                exercise_times = [maturity]
            else:
                raise PreconditionError("bermudan exercise needs explicit exercise times")

        super().__init__(DiscretizedDiscountBond(), exercise_type, exercise_times)
        self.option_type = option_type
        self.strike = float(strike)
        self.maturity = float(maturity)
        self.bond_maturity = float(bond_maturity)

    def initialize(self, method, t: Optional[float] = None) -> None:
        self.underlying.initialize(method, self.bond_maturity)
        super().initialize(method, self.maturity if t is None else t)

    def mandatory_times(self) -> List[float]:
        return [self.bond_maturity] + super().mandatory_times()

    def apply_exercise_condition(self) -> None:
        w = self.option_type.value
        payoff = np.maximum(w * (self.underlying.values - self.strike), 0.0)
        self.values = np.maximum(payoff, self.values)
