# src/rates_core/models/blackkarasinski.py

from __future__ import annotations

import math
from typing import Optional

from ..config.loader import SolverConfig
from ..errors import PreconditionError
from ..lattices.time_grid import TimeGrid
from ..lattices.trinomial_tree import TrinomialTree
from ..processes.ornstein_uhlenbeck import OrnsteinUhlenbeckProcess
from .model import TermStructureConsistentModel
from .onefactor import OneFactorModel, ShortRateDynamics, ShortRateTree
from .parameter import ConstantParameter, Parameter, PositiveConstraint, TermStructureFittingParameter


class BlackKarasinskiDynamics(ShortRateDynamics):
    """ln r(t) = x(t) + theta(t) with x an Ornstein-Uhlenbeck process from 0."""

    def __init__(self, fitting: Parameter, a: float, sigma: float):
        super().__init__(OrnsteinUhlenbeckProcess(a, sigma))
        self.fitting = fitting

    def variable(self, t: float, r: float) -> float:
        return math.log(r) - self.fitting(t)

    def short_rate(self, t: float, x: float) -> float:
        return math.exp(x + self.fitting(t))


class BlackKarasinski(OneFactorModel, TermStructureConsistentModel):
    """
    Black-Karasinski lognormal short-rate model:

        d ln r = (theta(t) - a ln r) dt + sigma dW

    theta(t) has no closed form; tree() fits it numerically level by
    level. Arguments, in order: a, sigma.
    """

    def __init__(
        self,
        term_structure,
        a: float = 0.1,
        sigma: float = 0.1,
        solver: Optional[SolverConfig] = None,
    ):
        super().__init__(2, solver)
        self.arguments[0] = ConstantParameter(a, PositiveConstraint())
        self.arguments[1] = ConstantParameter(sigma, PositiveConstraint())
        self._init_term_structure(term_structure)

    @property
    def a(self) -> float:
        return self.arguments[0](0.0)

    @property
    def sigma(self) -> float:
        return self.arguments[1](0.0)

    def dynamics(self) -> ShortRateDynamics:
        raise PreconditionError("no defined process for Black-Karasinski")

    def discount(self, t: float) -> float:
        return self.term_structure.discount(t)

    def tree(self, grid: TimeGrid) -> ShortRateTree:
        phi = TermStructureFittingParameter(self.term_structure)
        numeric_dynamics = BlackKarasinskiDynamics(phi, self.a, self.sigma)
        trinomial = TrinomialTree(numeric_dynamics.process, grid)
        return ShortRateTree.fitted(
            trinomial, numeric_dynamics, phi.impl, grid, self.term_structure, self.solver
        )
