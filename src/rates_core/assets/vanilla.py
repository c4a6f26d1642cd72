# src/rates_core/assets/vanilla.py

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from ..errors import PreconditionError
from ..numerics.enums import ExerciseType, OptionType
from .discretized import DiscretizedAsset, _check_exercise_times


class DiscretizedVanillaOption(DiscretizedAsset):
    """
    Plain call/put on the lattice state variable, e.g. the spot on a
    BlackScholesLattice. Payoffs are read from lattice.grid(t).
    """

    def __init__(
        self,
        option_type: OptionType,
        strike: float,
        exercise_type: ExerciseType,
        exercise_times: Sequence[float],
    ):
        super().__init__()
        if strike < 0.0:
            raise PreconditionError(f"strike ({strike}) must be non-negative")
        self.option_type = option_type
        self.strike = float(strike)
        self.exercise_type = exercise_type
        self.exercise_times = _check_exercise_times(exercise_type, exercise_times)

    @classmethod
    def for_maturity(
        cls,
        option_type: OptionType,
        strike: float,
        maturity: float,
        exercise_type: ExerciseType = ExerciseType.EUROPEAN,
        exercise_times: Optional[Sequence[float]] = None,
    ) -> "DiscretizedVanillaOption":
        if exercise_times is None:
            if exercise_type == ExerciseType.AMERICAN:
                exercise_times = [0.0, maturity]
            elif exercise_type == ExerciseType.EUROPEAN:
                exercise_times = [maturity]
            else:
                raise PreconditionError("bermudan exercise needs explicit exercise times")
        return cls(option_type, strike, exercise_type, exercise_times)

    def reset(self, size: int) -> None:
        self.values = np.zeros(size)
        self.adjust_values()

    def mandatory_times(self) -> List[float]:
        return [t for t in self.exercise_times if t >= 0.0]

    def post_adjust_values_impl(self) -> None:
        if self.exercise_type == ExerciseType.AMERICAN:
            if self.exercise_times[0] <= self.time <= self.exercise_times[1]:
                self._apply_payoff()
        else:
            for t in self.exercise_times:
                if t >= 0.0 and self.is_on_time(t):
                    self._apply_payoff()

    def _apply_payoff(self) -> None:
        spots = self.method.grid(self.time)
        w = self.option_type.value
        payoff = np.maximum(w * (spots - self.strike), 0.0)
        self.values = np.maximum(self.values, payoff)
