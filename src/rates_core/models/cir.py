# src/rates_core/models/cir.py

from __future__ import annotations

import math
from typing import Optional

from scipy.stats import ncx2

from ..config.loader import SolverConfig
from ..errors import PreconditionError
from ..lattices.time_grid import TimeGrid
from ..lattices.trinomial_tree import TrinomialTree
from ..numerics.comparison import EPSILON
from ..numerics.enums import OptionType
from ..processes.square_root import SquareRootHelperProcess
from .onefactor import OneFactorAffineModel, ShortRateDynamics, ShortRateTree
from .parameter import ConstantParameter, Constraint, CompositeConstraint, PositiveConstraint


class CIRDynamics(ShortRateDynamics):
    """r = y^2 where y = sqrt(r) follows the square-root helper process."""

    def __init__(self, theta: float, k: float, sigma: float, x0: float):
        super().__init__(SquareRootHelperProcess(theta, k, sigma, math.sqrt(x0)))

    def variable(self, t: float, r: float) -> float:
        return math.sqrt(r)

    def short_rate(self, t: float, y: float) -> float:
        return y * y


class FellerConstraint(Constraint):
    """sigma^2 < 2 k theta, evaluated against the model's current k and theta."""

    def __init__(self, model: "CoxIngersollRoss"):
        self.model = model

    def test(self, params) -> bool:
        sigma = float(params[0])
        return sigma * sigma < 2.0 * self.model.k * self.model.theta


class CoxIngersollRoss(OneFactorAffineModel):
    """
    Cox-Ingersoll-Ross model: dr = k (theta - r) dt + sigma sqrt(r) dW.

    Arguments, in order: theta, k, sigma, r0. The tree is built on
    y = sqrt(r) with nodes kept strictly positive.
    """

    def __init__(
        self,
        r0: float = 0.05,
        theta: float = 0.1,
        k: float = 0.1,
        sigma: float = 0.1,
        with_feller_constraint: bool = False,
        solver: Optional[SolverConfig] = None,
    ):
        super().__init__(4, solver)
        self.arguments[0] = ConstantParameter(theta, PositiveConstraint())
        self.arguments[1] = ConstantParameter(k, PositiveConstraint())
        if with_feller_constraint:
            sigma_constraint = CompositeConstraint(PositiveConstraint(), FellerConstraint(self))
        else:
            sigma_constraint = PositiveConstraint()
        self.arguments[2] = ConstantParameter(sigma, sigma_constraint)
        self.arguments[3] = ConstantParameter(r0, PositiveConstraint())

    @property
    def theta(self) -> float:
        return self.arguments[0](0.0)

    @property
    def k(self) -> float:
        return self.arguments[1](0.0)

    @property
    def sigma(self) -> float:
        return self.arguments[2](0.0)

    @property
    def x0(self) -> float:
        return self.arguments[3](0.0)

    def dynamics(self) -> ShortRateDynamics:
        return CIRDynamics(self.theta, self.k, self.sigma, self.x0)

    def tree(self, grid: TimeGrid) -> ShortRateTree:
        dynamics = self.dynamics()
        trinomial = TrinomialTree(dynamics.process, grid, is_positive=True)
        return ShortRateTree(trinomial, dynamics, grid)

    def _h(self) -> float:
        return math.sqrt(self.k * self.k + 2.0 * self.sigma * self.sigma)

    def A(self, t: float, T: float) -> float:
        sigma2 = self.sigma * self.sigma
        h = self._h()
        numerator = 2.0 * h * math.exp(0.5 * (self.k + h) * (T - t))
        denominator = 2.0 * h + (self.k + h) * (math.exp((T - t) * h) - 1.0)
        value = math.log(numerator / denominator) * 2.0 * self.k * self.theta / sigma2
        return math.exp(value)

    def B(self, t: float, T: float) -> float:
        h = self._h()
        temp = math.exp((T - t) * h) - 1.0
        numerator = 2.0 * temp
        denominator = 2.0 * h + (self.k + h) * temp
        return numerator / denominator

    def discount_bond_option(self, option_type, strike: float, maturity: float, bond_maturity: float) -> float:
        """
        Closed-form option on a zero-coupon bond with non-central
        chi-square distributions.
        """
        if not strike > 0.0:
            raise PreconditionError("strike must be positive")

        r0 = self.x0
        discount_t = self.discount_bond(0.0, maturity, r0)
        discount_s = self.discount_bond(0.0, bond_maturity, r0)

        if maturity < EPSILON:
            if option_type == OptionType.CALL:
                return max(discount_s - strike, 0.0)
            return max(strike - discount_s, 0.0)

        sigma2 = self.sigma * self.sigma
        h = self._h()
        b = self.B(maturity, bond_maturity)

        rho = 2.0 * h / (sigma2 * (math.exp(h * maturity) - 1.0))
        psi = (self.k + h) / sigma2

        df = 4.0 * self.k * self.theta / sigma2
        ncps = 2.0 * rho * rho * r0 * math.exp(h * maturity) / (rho + psi + b)
        ncpt = 2.0 * rho * rho * r0 * math.exp(h * maturity) / (rho + psi)

        z = math.log(self.A(maturity, bond_maturity) / strike) / b
        call = (
            discount_s * float(ncx2.cdf(2.0 * z * (rho + psi + b), df, ncps))
            - strike * discount_t * float(ncx2.cdf(2.0 * z * (rho + psi), df, ncpt))
        )

        if option_type == OptionType.CALL:
            return call
        return call - discount_s + strike * discount_t
