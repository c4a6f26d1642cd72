# src/rates_core/lattices/tree_lattice.py

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..errors import PreconditionError
from ..numerics.comparison import close
from .time_grid import TimeGrid

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Generic lattice: backward induction + Arrow-Debreu state prices
# -------------------------------------------------------------------


class TreeLattice(ABC):
    """
    Lattice numerical method over a TimeGrid.

    Subclasses describe the lattice nodes (size, discount, descendant,
    probability, underlying). This base class runs the backward induction
    of discretized assets and the forward induction of state prices.

    State prices are cached: level 0 is [1.0] and levels are appended on
    demand up to a high-water mark, never recomputed. Subclasses whose
    discount factors are fitted level by level rely on this: level i+1 is
    only built once the discount at level i is final.
    """

    def __init__(self, time_grid: TimeGrid, branches: int):
        self.time_grid = time_grid
        self.branches = int(branches)
        self._state_prices: List[np.ndarray] = [np.array([1.0])]
        self._state_prices_limit = 0

    # ---------- node description (implemented by concrete lattices) ----------

    @abstractmethod
    def size(self, i: int) -> int:
        ...

    @abstractmethod
    def discount(self, i: int, index: int) -> float:
        ...

    @abstractmethod
    def descendant(self, i: int, index: int, branch: int) -> int:
        ...

    @abstractmethod
    def probability(self, i: int, index: int, branch: int) -> float:
        ...

    @abstractmethod
    def grid(self, t: float) -> np.ndarray:
        ...

    # ---------- state prices ----------

    @property
    def state_prices_limit(self) -> int:
        return self._state_prices_limit

    def state_prices(self, i: int) -> np.ndarray:
        """
        Arrow-Debreu prices of the nodes at level i: the value today of
        1 paid at node (i, j) and nothing elsewhere.
        """
        if i > self._state_prices_limit:
            self._compute_state_prices(i)
        return self._state_prices[i]

    def _compute_state_prices(self, until: int) -> None:
        for i in range(self._state_prices_limit, until):
            current = self._state_prices[i]
            nxt = np.zeros(self.size(i + 1))
            for j in range(self.size(i)):
                disc = self.discount(i, j)
                sp = current[j]
                for b in range(self.branches):
                    nxt[self.descendant(i, j, b)] += sp * disc * self.probability(i, j, b)
            self._state_prices.append(nxt)

        logger.debug(
            "State prices extended from level %d to level %d",
            self._state_prices_limit,
            until,
        )
        self._state_prices_limit = until

    # ---------- asset induction ----------

    def initialize(self, asset, t: float) -> None:
        i = self.time_grid.index(t)
        asset.time = t
        asset.reset(self.size(i))

    def rollback(self, asset, to: float) -> None:
        self.partial_rollback(asset, to)
        asset.adjust_values()

    def partial_rollback(self, asset, to: float) -> None:
        """
        Roll the asset back to `to` without applying the adjustments at
        the final time. Intermediate times are adjusted as they are
        crossed.
        """
        start = asset.time

        if close(start, to):
            return

        if start < to:
            raise PreconditionError(
                f"cannot roll the asset back to {to} (it is already at t = {start})"
            )

        i_from = self.time_grid.index(start)
        i_to = self.time_grid.index(to)

        for i in range(i_from - 1, i_to - 1, -1):
            new_values = self.stepback(i, asset.values)
            asset.time = self.time_grid[i]
            asset.values = new_values
            # the final adjustment is left to the caller
            if i != i_to:
                asset.adjust_values()

    def stepback(self, i: int, values: np.ndarray) -> np.ndarray:
        """Discounted expectation of the level-(i+1) values at level i."""
        new_values = np.empty(self.size(i))
        for j in range(self.size(i)):
            value = 0.0
            for b in range(self.branches):
                value += self.probability(i, j, b) * values[self.descendant(i, j, b)]
            new_values[j] = value * self.discount(i, j)
        return new_values

    def present_value(self, asset) -> float:
        i = self.time_grid.index(asset.time)
        return float(np.dot(asset.values, self.state_prices(i)))


# -------------------------------------------------------------------
# One-dimensional lattices
# -------------------------------------------------------------------


class TreeLattice1D(TreeLattice):
    """Lattice whose nodes carry a single state variable."""

    @abstractmethod
    def underlying(self, i: int, index: int) -> float:
        ...

    def grid(self, t: float) -> np.ndarray:
        i = self.time_grid.index(t)
        return np.array([self.underlying(i, j) for j in range(self.size(i))])


# -------------------------------------------------------------------
# Two-dimensional lattice from two correlated trinomial trees
# -------------------------------------------------------------------


_CORRELATION_MATRIX_NEGATIVE = (
    (-1.0, -4.0, 5.0),
    (-4.0, 8.0, -4.0),
    (5.0, -4.0, -1.0),
)

_CORRELATION_MATRIX_POSITIVE = (
    (5.0, -4.0, -1.0),
    (-4.0, 8.0, -4.0),
    (-1.0, -4.0, 5.0),
)


class TreeLattice2D(TreeLattice):
    """
    Product of two trinomial trees with correlated branching.

    Node index = index1 + index2 * size1(i); branch = branch1 + 3 * branch2.
    The joint probability is the independent product corrected by
    |rho| * M[branch1][branch2] / 36, with M picked by the sign of rho.
    Concrete subclasses supply discount(i, index).
    """

    def __init__(self, tree1, tree2, correlation: float):
        if tree1.columns != tree2.columns:
            raise PreconditionError(
                f"trees have different number of steps ({tree1.columns} vs {tree2.columns})"
            )
        if not -1.0 <= correlation <= 1.0:
            raise PreconditionError(f"correlation ({correlation}) outside [-1, 1]")
        super().__init__(tree1.time_grid, 9)
        self.tree1 = tree1
        self.tree2 = tree2
        self.rho = abs(correlation)
        if correlation < 0.0:
            self._m = _CORRELATION_MATRIX_NEGATIVE
        else:
            self._m = _CORRELATION_MATRIX_POSITIVE

    def size(self, i: int) -> int:
        return self.tree1.size(i) * self.tree2.size(i)

    def descendant(self, i: int, index: int, branch: int) -> int:
        modulo = self.tree1.size(i)

        index1 = index % modulo
        index2 = index // modulo
        branch1 = branch % 3
        branch2 = branch // 3

        modulo = self.tree1.size(i + 1)
        return (
            self.tree1.descendant(i, index1, branch1)
            + self.tree2.descendant(i, index2, branch2) * modulo
        )

    def probability(self, i: int, index: int, branch: int) -> float:
        modulo = self.tree1.size(i)

        index1 = index % modulo
        index2 = index // modulo
        branch1 = branch % 3
        branch2 = branch // 3

        prob1 = self.tree1.probability(i, index1, branch1)
        prob2 = self.tree2.probability(i, index2, branch2)
        return prob1 * prob2 + self.rho * self._m[branch1][branch2] / 36.0

    def grid(self, t: float) -> np.ndarray:
        raise NotImplementedError("grid() is not defined for two-dimensional lattices")
