# src/rates_core/lattices/bsm_lattice.py

from __future__ import annotations

import math

from .binomial_tree import BinomialTree
from .time_grid import TimeGrid
from .tree_lattice import TreeLattice1D


class BlackScholesLattice(TreeLattice1D):
    """
    Binomial tree of the underlying spot with a constant risk-free
    discount exp(-r dt) at every node.
    """

    def __init__(self, tree: BinomialTree, risk_free_rate: float, end: float, steps: int):
        super().__init__(TimeGrid.uniform(end, steps), 2)
        self.tree = tree
        self.risk_free_rate = float(risk_free_rate)
        self.dt = end / steps
        self._discount = math.exp(-self.risk_free_rate * self.dt)

    def size(self, i: int) -> int:
        return self.tree.size(i)

    def discount(self, i: int, index: int) -> float:
        return self._discount

    def descendant(self, i: int, index: int, branch: int) -> int:
        return self.tree.descendant(i, index, branch)

    def probability(self, i: int, index: int, branch: int) -> float:
        return self.tree.probability(i, index, branch)

    def underlying(self, i: int, index: int) -> float:
        return self.tree.underlying(i, index)
