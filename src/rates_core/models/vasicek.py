# src/rates_core/models/vasicek.py

from __future__ import annotations

import math
from typing import Optional

from ..config.loader import SolverConfig
from ..errors import PreconditionError
from ..numerics.black import black_formula
from ..numerics.comparison import EPSILON
from ..processes.ornstein_uhlenbeck import OrnsteinUhlenbeckProcess
from .onefactor import OneFactorAffineModel, ShortRateDynamics
from .parameter import ConstantParameter, NoConstraint, PositiveConstraint

_SMALL_SPEED = math.sqrt(EPSILON)


class VasicekDynamics(ShortRateDynamics):
    """r = x + b with x an Ornstein-Uhlenbeck process reverting to 0."""

    def __init__(self, a: float, sigma: float, b: float, r0: float):
        super().__init__(OrnsteinUhlenbeckProcess(a, sigma, r0 - b))
        self.b = b

    def variable(self, t: float, r: float) -> float:
        return r - self.b

    def short_rate(self, t: float, x: float) -> float:
        return x + self.b


class Vasicek(OneFactorAffineModel):
    """
    Vasicek model: dr = a (b - r) dt + sigma dW, with market price of
    risk `lambda_`. Arguments, in order: a, b, sigma, lambda.
    """

    def __init__(
        self,
        r0: float = 0.05,
        a: float = 0.1,
        b: float = 0.05,
        sigma: float = 0.01,
        lambda_: float = 0.0,
        solver: Optional[SolverConfig] = None,
    ):
        super().__init__(4, solver)
        self.r0 = float(r0)
        self.arguments[0] = ConstantParameter(a, PositiveConstraint())
        self.arguments[1] = ConstantParameter(b, NoConstraint())
        self.arguments[2] = ConstantParameter(sigma, PositiveConstraint())
        self.arguments[3] = ConstantParameter(lambda_, NoConstraint())

    # ---------- parameters ----------

    @property
    def a(self) -> float:
        return self.arguments[0](0.0)

    @property
    def b(self) -> float:
        return self.arguments[1](0.0)

    @property
    def sigma(self) -> float:
        return self.arguments[2](0.0)

    @property
    def lambda_(self) -> float:
        return self.arguments[3](0.0)

    # ---------- model ----------

    def dynamics(self) -> ShortRateDynamics:
        return VasicekDynamics(self.a, self.sigma, self.b, self.r0)

    def B(self, t: float, T: float) -> float:
        a = self.a
        tau = T - t
        if a < _SMALL_SPEED:
            return tau
        return (1.0 - math.exp(-a * tau)) / a

    def A(self, t: float, T: float) -> float:
        a = self.a
        sigma = self.sigma
        tau = T - t
        if a < _SMALL_SPEED:
            # Brownian limit of the expression below
            return math.exp(
                sigma * sigma * tau ** 3 / 6.0 - 0.5 * self.lambda_ * sigma * tau * tau
            )
        sigma2 = sigma * sigma
        bt = self.B(t, T)
        return math.exp(
            (self.b + self.lambda_ * sigma / a - 0.5 * sigma2 / (a * a)) * (bt - tau)
            - 0.25 * sigma2 * bt * bt / a
        )

    def discount_bond_option(self, option_type, strike: float, maturity: float, bond_maturity: float) -> float:
        if not strike > 0.0:
            raise PreconditionError("strike must be positive")
        a = self.a
        sigma = self.sigma
        if abs(maturity) < EPSILON:
            v = 0.0
        elif a < _SMALL_SPEED:
            v = sigma * self.B(maturity, bond_maturity) * math.sqrt(maturity)
        else:
            v = (
                sigma
                * self.B(maturity, bond_maturity)
                * math.sqrt(0.5 * (1.0 - math.exp(-2.0 * a * maturity)) / a)
            )
        f = self.discount_bond(0.0, bond_maturity, self.r0)
        k = self.discount_bond(0.0, maturity, self.r0) * strike
        return black_formula(option_type, k, f, v)
