# src/rates_core/models/hullwhite.py

from __future__ import annotations

import logging
import math
from typing import Optional

from ..config.loader import SolverConfig
from ..errors import PreconditionError
from ..lattices.time_grid import TimeGrid
from ..lattices.trinomial_tree import TrinomialTree
from ..numerics.black import black_formula
from ..numerics.comparison import EPSILON
from ..processes.ornstein_uhlenbeck import OrnsteinUhlenbeckProcess
from .model import TermStructureConsistentModel
from .onefactor import ShortRateDynamics, ShortRateTree
from .parameter import (
    ConstantParameter,
    FittingImpl,
    NullParameter,
    Parameter,
    PositiveConstraint,
    TermStructureFittingParameter,
)
from .vasicek import Vasicek

logger = logging.getLogger(__name__)

_SMALL_SPEED = math.sqrt(EPSILON)


class HullWhiteFittingImpl(FittingImpl):
    """
    Analytic drift term

        phi(t) = f(0, t) + 0.5 * (sigma * (1 - exp(-a t)) / a)^2
    """

    def __init__(self, term_structure, a: float, sigma: float):
        self.term_structure = term_structure
        self.a = a
        self.sigma = sigma

    def value(self, t: float) -> float:
        forward_rate = self.term_structure.instantaneous_forward(t)
        if self.a < _SMALL_SPEED:
            temp = self.sigma * t
        else:
            temp = self.sigma * (1.0 - math.exp(-self.a * t)) / self.a
        return forward_rate + 0.5 * temp * temp


class HullWhiteDynamics(ShortRateDynamics):
    """r(t) = x(t) + phi(t) with x an Ornstein-Uhlenbeck process from 0."""

    def __init__(self, fitting: Parameter, a: float, sigma: float):
        super().__init__(OrnsteinUhlenbeckProcess(a, sigma))
        self.fitting = fitting

    def variable(self, t: float, r: float) -> float:
        return r - self.fitting(t)

    def short_rate(self, t: float, x: float) -> float:
        return x + self.fitting(t)


class HullWhite(Vasicek, TermStructureConsistentModel):
    """
    Hull-White extended Vasicek model, exactly fitted to the initial
    curve held by `term_structure`:

        dr = (theta(t) - a r) dt + sigma dW

    Arguments, in order: a, (b: null), sigma, (lambda: null).
    """

    def __init__(
        self,
        term_structure,
        a: float = 0.1,
        sigma: float = 0.01,
        solver: Optional[SolverConfig] = None,
    ):
        Vasicek.__init__(self, 0.0, a, 0.0, sigma, 0.0, solver)
        self.arguments[1] = NullParameter()
        self.arguments[3] = NullParameter()
        self._init_term_structure(term_structure)
        self.phi: Optional[TermStructureFittingParameter] = None
        self.generate_arguments()

    def generate_arguments(self) -> None:
        # r0 follows the curve when the handle is relinked
        self.r0 = self.term_structure.instantaneous_forward(0.0)
        self.phi = TermStructureFittingParameter(
            self.term_structure,
            HullWhiteFittingImpl(self.term_structure, self.a, self.sigma),
        )

    def dynamics(self) -> ShortRateDynamics:
        return HullWhiteDynamics(self.phi, self.a, self.sigma)

    # ---------- lattice ----------

    def tree(self, grid: TimeGrid, numerical: bool = False) -> ShortRateTree:
        """
        Trinomial short-rate lattice fitted to the curve.

        The default fit is closed form per level,

            theta_i = ln( sum_j Q(i, j) exp(-x_ij dt_i) / P(0, t_{i+1}) ) / dt_i

        numerical=True runs the generic Brent fit instead.
        """
        phi = TermStructureFittingParameter(self.term_structure)
        numeric_dynamics = HullWhiteDynamics(phi, self.a, self.sigma)
        trinomial = TrinomialTree(numeric_dynamics.process, grid)

        if numerical:
            return ShortRateTree.fitted(
                trinomial, numeric_dynamics, phi.impl, grid, self.term_structure, self.solver
            )

        numeric_tree = ShortRateTree(trinomial, numeric_dynamics, grid)
        impl = phi.impl
        impl.reset()
        for i in range(grid.size() - 1):
            discount_bond = self.term_structure.discount(grid[i + 1])
            state_prices = numeric_tree.state_prices(i)
            size = numeric_tree.size(i)
            dt = grid.dt(i)
            dx = trinomial.dx(i)
            x = trinomial.underlying(i, 0)
            value = 0.0
            for j in range(size):
                value += state_prices[j] * math.exp(-x * dt)
                x += dx
            value = math.log(value / discount_bond) / dt
            impl.set_value(grid[i], value)

        logger.debug("Hull-White tree fitted on %d levels", grid.size() - 1)
        return numeric_tree

    # ---------- closed forms ----------

    def discount(self, t: float) -> float:
        return self.term_structure.discount(t)

    def A(self, t: float, T: float) -> float:
        discount1 = self.term_structure.discount(t)
        discount2 = self.term_structure.discount(T)
        forward = self.term_structure.instantaneous_forward(t)
        temp = self.sigma * self.B(t, T)
        value = self.B(t, T) * forward - 0.25 * temp * temp * self.B(0.0, 2.0 * t)
        return math.exp(value) * discount2 / discount1

    def discount_bond_option(self, option_type, strike: float, maturity: float, bond_maturity: float) -> float:
        if not strike > 0.0:
            raise PreconditionError("strike must be positive")
        a = self.a
        sigma = self.sigma
        if a < _SMALL_SPEED:
            v = sigma * self.B(maturity, bond_maturity) * math.sqrt(maturity)
        else:
            v = (
                sigma
                * self.B(maturity, bond_maturity)
                * math.sqrt(0.5 * (1.0 - math.exp(-2.0 * a * maturity)) / a)
            )
        f = self.term_structure.discount(bond_maturity)
        k = self.term_structure.discount(maturity) * strike
        return black_formula(option_type, k, f, v)

    @staticmethod
    def convexity_bias(futures_price: float, t: float, T: float, sigma: float, a: float) -> float:
        """
        Futures convexity bias, i.e. the difference between futures
        implied rate and forward rate, under Hull-White.
        """
        if futures_price < 0.0:
            raise PreconditionError(f"negative futures price ({futures_price}) not allowed")
        if t < 0.0:
            raise PreconditionError(f"negative t ({t}) not allowed")
        if T < t:
            raise PreconditionError(f"T ({T}) must not be less than t ({t})")
        if sigma < 0.0:
            raise PreconditionError(f"negative sigma ({sigma}) not allowed")
        if a < 0.0:
            raise PreconditionError(f"negative a ({a}) not allowed")

        delta_t = T - t
        half_sigma_square = sigma * sigma / 2.0
        if a < _SMALL_SPEED:
            temp_delta_t = delta_t
            temp_t = t
            rate_adjustment = half_sigma_square * 2.0 * t * temp_delta_t * temp_delta_t
        else:
            temp_delta_t = (1.0 - math.exp(-a * delta_t)) / a
            temp_t = (1.0 - math.exp(-a * t)) / a
            rate_adjustment = (
                half_sigma_square * (1.0 - math.exp(-2.0 * a * t)) / a
                * temp_delta_t * temp_delta_t
            )

        # mark-to-market adjustment
        mtm_adjustment = half_sigma_square * temp_delta_t * temp_t * temp_t

        z = rate_adjustment + mtm_adjustment
        future_rate = (100.0 - futures_price) / 100.0
        return (1.0 - math.exp(-z)) * (future_rate + 1.0 / (T - t))
