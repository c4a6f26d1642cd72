# src/rates_core/models/onefactor.py

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..config.loader import SolverConfig
from ..lattices.time_grid import TimeGrid
from ..lattices.tree_lattice import TreeLattice1D
from ..lattices.trinomial_tree import TrinomialTree
from ..numerics.solvers import Brent1D
from ..processes.base import StochasticProcess1D
from .model import ShortRateModel
from .parameter import NumericalFittingImpl

logger = logging.getLogger(__name__)


class ShortRateDynamics(ABC):
    """
    Maps the state variable x of a 1-D process to the short rate r and
    back. The process is what the trinomial tree discretizes.
    """

    def __init__(self, process: StochasticProcess1D):
        self.process = process

    @abstractmethod
    def variable(self, t: float, r: float) -> float:
        ...

    @abstractmethod
    def short_rate(self, t: float, x: float) -> float:
        ...


# -------------------------------------------------------------------
# Short-rate lattice
# -------------------------------------------------------------------


class ShortRateTree(TreeLattice1D):
    """
    Lattice over a trinomial tree of the state variable, discounting each
    node at exp(-r(t_i, x_ij) dt_i).
    """

    def __init__(self, tree: TrinomialTree, dynamics: ShortRateDynamics, time_grid: TimeGrid):
        super().__init__(time_grid, tree.branches)
        self.tree = tree
        self.dynamics = dynamics

    def size(self, i: int) -> int:
        return self.tree.size(i)

    def underlying(self, i: int, index: int) -> float:
        return self.tree.underlying(i, index)

    def descendant(self, i: int, index: int, branch: int) -> int:
        return self.tree.descendant(i, index, branch)

    def probability(self, i: int, index: int, branch: int) -> float:
        return self.tree.probability(i, index, branch)

    def discount(self, i: int, index: int) -> float:
        x = self.tree.underlying(i, index)
        r = self.dynamics.short_rate(self.time_grid[i], x)
        return math.exp(-r * self.time_grid.dt(i))

    @classmethod
    def fitted(
        cls,
        tree: TrinomialTree,
        dynamics: ShortRateDynamics,
        theta: NumericalFittingImpl,
        time_grid: TimeGrid,
        term_structure,
        solver: Optional[SolverConfig] = None,
    ) -> "ShortRateTree":
        """
        Build the lattice and fit the drift parameter `theta` level by
        level so that the lattice reprices every discount bond
        P(0, t_{i+1}) of `term_structure`.

        At level i, theta(t_i) solves

            P(0, t_{i+1}) - sum_j Q(i, j) * discount(i, j) = 0

        with a bracketed Brent search; the root at one level is the
        starting guess at the next.
        """
        solver = solver or SolverConfig()
        lattice = cls(tree, dynamics, time_grid)
        brent = Brent1D(max_evaluations=solver.max_evaluations)

        theta.reset()
        value = solver.initial_guess
        for i in range(time_grid.size() - 1):
            discount_bond = term_structure.discount(time_grid[i + 1])
            theta.set_value(time_grid[i], 0.0)
            objective = _level_fit(lattice, theta, i, discount_bond)
            value = brent.solve(
                objective,
                solver.accuracy,
                value,
                solver.lower_bound,
                solver.upper_bound,
            )
            theta.change(value)
            logger.debug("Fitted level %d (t=%.6f): theta=%.10f", i, time_grid[i], value)

        return lattice


def _level_fit(
    lattice: ShortRateTree,
    theta: NumericalFittingImpl,
    i: int,
    discount_bond: float,
) -> Callable[[float], float]:
    prices = lattice.state_prices(i)
    size = lattice.size(i)

    def objective(x: float) -> float:
        theta.change(x)
        value = discount_bond
        for j in range(size):
            value -= prices[j] * lattice.discount(i, j)
        return value

    return objective


# -------------------------------------------------------------------
# Models
# -------------------------------------------------------------------


class OneFactorModel(ShortRateModel):
    """Short-rate model driven by a single state variable."""

    @abstractmethod
    def dynamics(self) -> ShortRateDynamics:
        ...

    def tree(self, grid: TimeGrid):
        dynamics = self.dynamics()
        trinomial = TrinomialTree(dynamics.process, grid)
        return ShortRateTree(trinomial, dynamics, grid)


class OneFactorAffineModel(OneFactorModel):
    """
    One-factor model with affine zero-coupon bond prices

        P(t, T, r) = A(t, T) * exp(-B(t, T) * r)
    """

    @abstractmethod
    def A(self, t: float, T: float) -> float:
        ...

    @abstractmethod
    def B(self, t: float, T: float) -> float:
        ...

    @abstractmethod
    def discount_bond_option(self, option_type, strike: float, maturity: float, bond_maturity: float) -> float:
        ...

    def discount_bond(self, now: float, maturity: float, rate: float) -> float:
        return self.A(now, maturity) * math.exp(-self.B(now, maturity) * rate)

    def discount(self, t: float) -> float:
        dynamics = self.dynamics()
        x0 = dynamics.process.x0()
        r0 = dynamics.short_rate(0.0, x0)
        return self.discount_bond(0.0, t, r0)
