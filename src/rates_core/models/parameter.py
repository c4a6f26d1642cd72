# src/rates_core/models/parameter.py

from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import numpy as np

from ..errors import PreconditionError
from ..numerics.comparison import close_enough


# -------------------------------------------------------------------
# Constraints
# -------------------------------------------------------------------


class Constraint(ABC):
    """Admissible region for a parameter vector."""

    @abstractmethod
    def test(self, params: np.ndarray) -> bool:
        ...


class NoConstraint(Constraint):
    def test(self, params: np.ndarray) -> bool:
        return True


class PositiveConstraint(Constraint):
    def test(self, params: np.ndarray) -> bool:
        return bool(np.all(np.asarray(params, dtype=float) > 0.0))


class BoundaryConstraint(Constraint):
    def __init__(self, low: float, high: float):
        if low > high:
            raise PreconditionError(f"invalid boundaries: low ({low}) > high ({high})")
        self.low = float(low)
        self.high = float(high)

    def test(self, params: np.ndarray) -> bool:
        p = np.asarray(params, dtype=float)
        return bool(np.all((p >= self.low) & (p <= self.high)))


class CompositeConstraint(Constraint):
    def __init__(self, *constraints: Constraint):
        self.constraints = constraints

    def test(self, params: np.ndarray) -> bool:
        return all(c.test(params) for c in self.constraints)


# -------------------------------------------------------------------
# Parameters
# -------------------------------------------------------------------


class Parameter(ABC):
    """
    Model parameter: a vector of free values plus a rule that turns them
    into a (possibly time-dependent) value.

    Calibration moves `params`; `value(t)` is what the model reads.
    """

    def __init__(self, size: int = 0, constraint: Optional[Constraint] = None):
        self.params = np.zeros(size)
        self.constraint = constraint or NoConstraint()

    @property
    def size(self) -> int:
        return len(self.params)

    @abstractmethod
    def value(self, t: float) -> float:
        ...

    def __call__(self, t: float) -> float:
        return self.value(t)

    def set_param(self, i: int, x: float) -> None:
        self.params[i] = x

    def test_params(self, params: np.ndarray) -> bool:
        return self.constraint.test(params)


class ConstantParameter(Parameter):
    def __init__(self, value: float, constraint: Optional[Constraint] = None):
        super().__init__(1, constraint)
        self.params[0] = float(value)
        if not self.test_params(self.params):
            raise PreconditionError(f"{value}: invalid value")

    def value(self, t: float) -> float:
        return float(self.params[0])


class NullParameter(Parameter):
    """Parameter fixed at zero with nothing to calibrate."""

    def __init__(self):
        super().__init__(0, NoConstraint())

    def value(self, t: float) -> float:
        return 0.0


class PiecewiseConstantParameter(Parameter):
    """
    Step function with breaks at `times`: params[i] applies on
    [times[i-1], times[i]), the last value beyond times[-1].
    """

    def __init__(self, times: Sequence[float], constraint: Optional[Constraint] = None):
        self.times = [float(t) for t in times]
        super().__init__(len(self.times) + 1, constraint)

    def value(self, t: float) -> float:
        return float(self.params[bisect.bisect_right(self.times, t)])


# -------------------------------------------------------------------
# Term-structure fitting parameters
# -------------------------------------------------------------------


class FittingImpl(ABC):
    """Rule producing the drift-fitting value at time t."""

    @abstractmethod
    def value(self, t: float) -> float:
        ...


class NumericalFittingImpl(FittingImpl):
    """
    Values set level by level while a tree is being fitted.

    set_value(t, x) stores a point; change(x) overwrites the most
    recently set value (used inside root searches); value(t) only answers
    for times that were set. Times are kept sorted so value(t) is a
    binary search.
    """

    def __init__(self, term_structure=None):
        self.term_structure = term_structure
        self._times: List[float] = []
        self._values: List[float] = []
        self._last: Optional[int] = None

    def set_value(self, t: float, x: float) -> None:
        t = float(t)
        idx = bisect.bisect_right(self._times, t)
        self._times.insert(idx, t)
        self._values.insert(idx, float(x))
        self._last = idx

    def change(self, x: float) -> None:
        if self._last is None:
            raise PreconditionError("fitting parameter not set")
        self._values[self._last] = float(x)

    def reset(self) -> None:
        self._times.clear()
        self._values.clear()
        self._last = None

    def value(self, t: float) -> float:
        idx = bisect.bisect_left(self._times, t)
        for i in (idx - 1, idx):
            if 0 <= i < len(self._times) and close_enough(self._times[i], t):
                return self._values[i]
        raise PreconditionError("fitting parameter not set")

    @property
    def times(self) -> List[float]:
        return list(self._times)

    @property
    def values(self) -> List[float]:
        return list(self._values)


class TermStructureFittingParameter(Parameter):
    """
    Deterministic drift term chosen so the model reprices the curve held
    by `term_structure`. Defaults to a NumericalFittingImpl.
    """

    def __init__(self, term_structure, impl: Optional[FittingImpl] = None):
        super().__init__(0, NoConstraint())
        self.term_structure = term_structure
        self.impl = impl if impl is not None else NumericalFittingImpl(term_structure)

    def value(self, t: float) -> float:
        return self.impl.value(t)
