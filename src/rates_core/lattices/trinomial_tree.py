# src/rates_core/lattices/trinomial_tree.py

from __future__ import annotations

import logging
import math
from typing import List, Optional

from ..config.loader import AppConfig
from ..errors import NumericalError
from ..processes.base import StochasticProcess1D
from .time_grid import TimeGrid

logger = logging.getLogger(__name__)

_SQRT3 = math.sqrt(3.0)


class Branching:
    """
    Branching scheme for one step of a trinomial tree.

    For each source node j we keep the offset k_j of the central
    descendant and the three branch probabilities (down, middle, up).
    The reachable range at the next step is [min(k) - 1, max(k) + 1].
    """

    def __init__(self) -> None:
        self.k: List[int] = []
        self.probs: List[List[float]] = [[], [], []]
        self.k_min = 2 ** 31
        self.k_max = -(2 ** 31)

    def add(self, k: int, p1: float, p2: float, p3: float) -> None:
        self.k.append(k)
        self.probs[0].append(p1)
        self.probs[1].append(p2)
        self.probs[2].append(p3)
        self.k_min = min(self.k_min, k)
        self.k_max = max(self.k_max, k)

    @property
    def j_min(self) -> int:
        return self.k_min - 1

    @property
    def j_max(self) -> int:
        return self.k_max + 1

    def size(self) -> int:
        return self.j_max - self.j_min + 1

    def descendant(self, index: int, branch: int) -> int:
        return self.k[index] - self.j_min - 1 + branch

    def probability(self, index: int, branch: int) -> float:
        return self.probs[branch][index]


class TrinomialTree:
    """
    Recombining trinomial tree approximating a 1-D diffusion on a
    (possibly non-uniform) time grid.

    At step i the spacing is dx_{i+1} = sqrt(3 v^2) with v^2 the process
    variance over dt_i; each node branches around the grid line closest
    to its conditional expectation, with probabilities matching the first
    two moments. With is_positive the central line is pushed up until the
    down branch stays strictly positive.
    """

    branches = 3

    def __init__(
        self,
        process: StochasticProcess1D,
        time_grid: TimeGrid,
        is_positive: bool = False,
    ):
        self.process = process
        self.time_grid = time_grid
        self.is_positive = is_positive
        self.x0 = process.x0()
        self.columns = time_grid.size()

        self._dx: List[float] = [0.0]
        self._branchings: List[Branching] = []

        j_min = 0
        j_max = 0
        for i in range(time_grid.size() - 1):
            t = time_grid[i]
            dt = time_grid.dt(i)

            v2 = process.variance(t, 0.0, dt)
            v = math.sqrt(v2)
            self._dx.append(v * _SQRT3)

            branching = Branching()
            for j in range(j_min, j_max + 1):
                x = self.x0 + j * self._dx[i]
                m = process.expectation(t, x, dt)
                temp = int(math.floor((m - self.x0) / self._dx[i + 1] + 0.5))

                if is_positive:
                    while self.x0 + (temp - 1) * self._dx[i + 1] <= 0.0:
                        temp += 1

                e = m - (self.x0 + temp * self._dx[i + 1])
                e2 = e * e
                e3 = e * _SQRT3

                p1 = (1.0 + e2 / v2 - e3 / v) / 6.0
                p2 = (2.0 - e2 / v2) / 3.0
                p3 = (1.0 + e2 / v2 + e3 / v) / 6.0

                branching.add(temp, p1, p2, p3)

            self._branchings.append(branching)
            j_min = branching.j_min
            j_max = branching.j_max

        logger.debug(
            "Trinomial tree built: %d steps, %d nodes at the last step",
            len(self._branchings),
            self.size(len(self._branchings)),
        )

    def dx(self, i: int) -> float:
        return self._dx[i]

    def size(self, i: int) -> int:
        return 1 if i == 0 else self._branchings[i - 1].size()

    def underlying(self, i: int, index: int) -> float:
        if i == 0:
            return self.x0
        return self.x0 + (self._branchings[i - 1].j_min + index) * self._dx[i]

    def descendant(self, i: int, index: int, branch: int) -> int:
        return self._branchings[i].descendant(index, branch)

    def probability(self, i: int, index: int, branch: int) -> float:
        return self._branchings[i].probability(index, branch)

    def branching(self, i: int) -> Branching:
        return self._branchings[i]


def check_probabilities(
    tree,
    tolerance: Optional[float] = None,
    app_cfg: Optional[AppConfig] = None,
) -> None:
    """
    Verify that every node of `tree` (binomial or trinomial) has
    non-negative branch probabilities summing to one.

    Without an explicit `tolerance` the tree section of `app_cfg` (built-in
    defaults when None) supplies it.

    Raises NumericalError at the first offending node.
    """
    if tolerance is None:
        tolerance = (app_cfg or AppConfig.default()).tree.probability_tolerance
    for i in range(tree.columns - 1):
        for j in range(tree.size(i)):
            probs = [tree.probability(i, j, b) for b in range(tree.branches)]
            if min(probs) < -tolerance:
                raise NumericalError(
                    f"negative probability at node ({i}, {j}): {probs}"
                )
            total = sum(probs)
            if abs(total - 1.0) > tolerance:
                raise NumericalError(
                    f"probabilities at node ({i}, {j}) sum to {total}"
                )
