# src/rates_core/models/twofactor.py

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from ..errors import PreconditionError
from ..lattices.time_grid import TimeGrid
from ..lattices.tree_lattice import TreeLattice2D
from ..lattices.trinomial_tree import TrinomialTree
from ..processes.base import StochasticProcess1D
from .model import ShortRateModel


class TwoFactorDynamics(ABC):
    """Short rate as a function of two correlated state variables x and y."""

    def __init__(
        self,
        process_x: StochasticProcess1D,
        process_y: StochasticProcess1D,
        correlation: float,
    ):
        if not -1.0 <= correlation <= 1.0:
            raise PreconditionError(f"correlation ({correlation}) outside [-1, 1]")
        self.process_x = process_x
        self.process_y = process_y
        self.correlation = float(correlation)

    @abstractmethod
    def short_rate(self, t: float, x: float, y: float) -> float:
        ...


class ShortRateTree2D(TreeLattice2D):
    """Two-factor lattice discounting at exp(-r(t_i, x, y) dt_i)."""

    def __init__(self, tree1: TrinomialTree, tree2: TrinomialTree, dynamics: TwoFactorDynamics):
        super().__init__(tree1, tree2, dynamics.correlation)
        self.dynamics = dynamics

    def discount(self, i: int, index: int) -> float:
        modulo = self.tree1.size(i)
        index1 = index % modulo
        index2 = index // modulo

        x = self.tree1.underlying(i, index1)
        y = self.tree2.underlying(i, index2)

        r = self.dynamics.short_rate(self.time_grid[i], x, y)
        return math.exp(-r * self.time_grid.dt(i))


class TwoFactorModel(ShortRateModel):
    """Short-rate model driven by two correlated state variables."""

    @abstractmethod
    def dynamics(self) -> TwoFactorDynamics:
        ...

    def tree(self, grid: TimeGrid) -> ShortRateTree2D:
        dynamics = self.dynamics()
        tree1 = TrinomialTree(dynamics.process_x, grid)
        tree2 = TrinomialTree(dynamics.process_y, grid)
        return ShortRateTree2D(tree1, tree2, dynamics)
