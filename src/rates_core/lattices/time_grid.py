# src/rates_core/lattices/time_grid.py

from __future__ import annotations

import bisect
from typing import Iterable, List, Sequence

import numpy as np

from ..errors import PreconditionError
from ..numerics.comparison import close, close_enough


class TimeGrid:
    """
    Ordered, immutable set of times 0 = t_0 < t_1 < ... < t_n.

    The grid always starts at 0. Mandatory times (payment, exercise and
    maturity dates) are guaranteed to be grid nodes, so that index(t)
    succeeds for each of them.
    """

    def __init__(self, times: Iterable[float], mandatory_times: Iterable[float] = None):
        pts = sorted(float(t) for t in times)
        if not pts:
            raise PreconditionError("empty time sequence")
        if pts[0] < 0.0:
            raise PreconditionError("negative times not allowed")

        unique: List[float] = []
        for t in pts:
            if not unique or not close_enough(unique[-1], t):
                unique.append(t)

        if unique[0] != 0.0:
            unique.insert(0, 0.0)
        if len(unique) < 2:
            raise PreconditionError("a time grid needs at least one step")

        self._times = tuple(unique)
        self._dt = tuple(b - a for a, b in zip(unique, unique[1:]))

        if mandatory_times is None:
            self._mandatory = tuple(t for t in unique if t > 0.0)
        else:
            self._mandatory = tuple(sorted(float(t) for t in mandatory_times))

    # ------------------------------------------------------------------
    # constructors
    # ------------------------------------------------------------------

    @classmethod
    def uniform(cls, end: float, steps: int) -> "TimeGrid":
        """
        Regularly spaced grid [0, dt, 2*dt, ..., end] with dt = end / steps.
        """
        if not end > 0.0:
            raise PreconditionError("negative times not allowed")
        if steps <= 0:
            raise PreconditionError(f"steps ({steps}) must be positive")
        dt = end / steps
        times = [dt * i for i in range(steps)] + [float(end)]
        return cls(times, mandatory_times=[end])

    @classmethod
    def from_mandatory_times(cls, mandatory: Sequence[float], steps: int = 0) -> "TimeGrid":
        """
        Grid containing every mandatory time, with regularly spaced inner
        points between consecutive mandatory times.

        steps > 0 sets the target spacing to last / steps; each interval
        gets the nearest integer number of sub-steps, and at least one.
        steps == 0 uses the smallest gap between mandatory times.
        """
        pts = sorted(float(t) for t in mandatory)
        if not pts:
            raise PreconditionError("empty time sequence")
        if pts[0] < 0.0:
            raise PreconditionError("negative times not allowed")
        if steps < 0:
            raise PreconditionError(f"steps ({steps}) must be non-negative")

        unique: List[float] = []
        for t in pts:
            if not unique or not close_enough(unique[-1], t):
                unique.append(t)

        last = unique[-1]
        if not last > 0.0:
            raise PreconditionError("at least one positive mandatory time required")

        if steps == 0:
            gaps = [b - a for a, b in zip([0.0] + unique, unique)]
            dt_max = min(g for g in gaps if g > 0.0)
        else:
            dt_max = last / steps

        times = [0.0]
        period_begin = 0.0
        for period_end in unique:
            if period_end == 0.0:
                continue
            n_steps = int((period_end - period_begin) / dt_max + 0.5)
            n_steps = n_steps if n_steps != 0 else 1
            dt = (period_end - period_begin) / n_steps
            for n in range(1, n_steps):
                times.append(period_begin + n * dt)
            times.append(period_end)
            period_begin = period_end

        return cls(times, mandatory_times=unique)

    # ------------------------------------------------------------------
    # grid interface
    # ------------------------------------------------------------------

    def __getitem__(self, i: int) -> float:
        return self._times[i]

    def __len__(self) -> int:
        return len(self._times)

    def __iter__(self):
        return iter(self._times)

    def size(self) -> int:
        return len(self._times)

    def dt(self, i: int) -> float:
        return self._dt[i]

    @property
    def times(self) -> np.ndarray:
        return np.array(self._times, dtype=float)

    @property
    def mandatory_times(self) -> tuple:
        return self._mandatory

    @property
    def first(self) -> float:
        return self._times[0]

    @property
    def last(self) -> float:
        return self._times[-1]

    def closest_index(self, t: float) -> int:
        times = self._times
        result = bisect.bisect_left(times, t)

        if result == 0:
            return 0
        if result == len(times):
            return len(times) - 1

        dt1 = times[result] - t
        dt2 = t - times[result - 1]
        return result if dt1 < dt2 else result - 1

    def closest_time(self, t: float) -> float:
        return self._times[self.closest_index(t)]

    def index(self, t: float) -> int:
        """
        Index i such that grid[i] == t (within floating closeness).

        Raises PreconditionError naming the neighbouring nodes if t is not
        a grid node.
        """
        i = self.closest_index(t)
        if close(t, self._times[i]):
            return i

        if t < self._times[0]:
            raise PreconditionError(
                "using inadequate time grid: all nodes are later than the "
                f"required time t = {t} (earliest node is t1 = {self._times[0]})"
            )
        if t > self._times[-1]:
            raise PreconditionError(
                "using inadequate time grid: all nodes are earlier than the "
                f"required time t = {t} (latest node is t1 = {self._times[-1]})"
            )

        if t > self._times[i]:
            j, k = i, i + 1
        else:
            j, k = i - 1, i
        raise PreconditionError(
            "using inadequate time grid: the nodes closest to the required "
            f"time t = {t} are t1 = {self._times[j]} and t2 = {self._times[k]}"
        )

    def __repr__(self) -> str:
        return f"TimeGrid(size={len(self._times)}, last={self._times[-1]})"
