# src/rates_core/models/g2.py

from __future__ import annotations

import math
from typing import Optional

from ..config.loader import SolverConfig
from ..errors import PreconditionError
from ..numerics.black import black_formula
from ..processes.ornstein_uhlenbeck import OrnsteinUhlenbeckProcess
from .model import TermStructureConsistentModel
from .parameter import (
    BoundaryConstraint,
    ConstantParameter,
    FittingImpl,
    Parameter,
    PositiveConstraint,
    TermStructureFittingParameter,
)
from .twofactor import TwoFactorDynamics, TwoFactorModel


class G2FittingImpl(FittingImpl):
    """
    Deterministic shift reproducing the initial curve:

        phi(t) = f(0, t) + 0.5 (sigma (1 - e^{-a t}) / a)^2
                         + 0.5 (eta (1 - e^{-b t}) / b)^2
                         + rho (sigma (1 - e^{-a t}) / a) (eta (1 - e^{-b t}) / b)
    """

    def __init__(self, term_structure, a, sigma, b, eta, rho):
        self.term_structure = term_structure
        self.a = a
        self.sigma = sigma
        self.b = b
        self.eta = eta
        self.rho = rho

    def value(self, t: float) -> float:
        forward = self.term_structure.instantaneous_forward(t)
        temp1 = self.sigma * (1.0 - math.exp(-self.a * t)) / self.a
        temp2 = self.eta * (1.0 - math.exp(-self.b * t)) / self.b
        return 0.5 * temp1 * temp1 + 0.5 * temp2 * temp2 + self.rho * temp1 * temp2 + forward


class G2Dynamics(TwoFactorDynamics):
    """r(t) = phi(t) + x(t) + y(t), x and y Ornstein-Uhlenbeck from 0."""

    def __init__(self, fitting: Parameter, a, sigma, b, eta, rho):
        super().__init__(
            OrnsteinUhlenbeckProcess(a, sigma),
            OrnsteinUhlenbeckProcess(b, eta),
            rho,
        )
        self.fitting = fitting

    def short_rate(self, t: float, x: float, y: float) -> float:
        return self.fitting(t) + x + y


class G2(TwoFactorModel, TermStructureConsistentModel):
    """
    Two-additive-factor Gaussian model G2++.

    Arguments, in order: a, sigma, b, eta, rho.
    """

    def __init__(
        self,
        term_structure,
        a: float = 0.1,
        sigma: float = 0.01,
        b: float = 0.1,
        eta: float = 0.01,
        rho: float = -0.75,
        solver: Optional[SolverConfig] = None,
    ):
        super().__init__(5, solver)
        self.arguments[0] = ConstantParameter(a, PositiveConstraint())
        self.arguments[1] = ConstantParameter(sigma, PositiveConstraint())
        self.arguments[2] = ConstantParameter(b, PositiveConstraint())
        self.arguments[3] = ConstantParameter(eta, PositiveConstraint())
        self.arguments[4] = ConstantParameter(rho, BoundaryConstraint(-1.0, 1.0))
        self._init_term_structure(term_structure)
        self.phi: Optional[TermStructureFittingParameter] = None
        self.generate_arguments()

    @property
    def a(self) -> float:
        return self.arguments[0](0.0)

    @property
    def sigma(self) -> float:
        return self.arguments[1](0.0)

    @property
    def b(self) -> float:
        return self.arguments[2](0.0)

    @property
    def eta(self) -> float:
        return self.arguments[3](0.0)

    @property
    def rho(self) -> float:
        return self.arguments[4](0.0)

    def generate_arguments(self) -> None:
        self.phi = TermStructureFittingParameter(
            self.term_structure,
            G2FittingImpl(self.term_structure, self.a, self.sigma, self.b, self.eta, self.rho),
        )

    def dynamics(self) -> G2Dynamics:
        return G2Dynamics(self.phi, self.a, self.sigma, self.b, self.eta, self.rho)

    # ---------- closed forms ----------

    def discount(self, t: float) -> float:
        return self.term_structure.discount(t)

    def sigma_p(self, t: float, s: float) -> float:
        """Volatility of ln P(t, s) seen from today."""
        a, b, sigma, eta, rho = self.a, self.b, self.sigma, self.eta, self.rho
        temp = 1.0 - math.exp(-(a + b) * t)
        temp1 = 1.0 - math.exp(-a * (s - t))
        temp2 = 1.0 - math.exp(-b * (s - t))
        a3 = a * a * a
        b3 = b * b * b
        sigma2 = sigma * sigma
        eta2 = eta * eta
        value = (
            0.5 * sigma2 * temp1 * temp1 * (1.0 - math.exp(-2.0 * a * t)) / a3
            + 0.5 * eta2 * temp2 * temp2 * (1.0 - math.exp(-2.0 * b * t)) / b3
            + 2.0 * rho * sigma * eta / (a * b * (a + b)) * temp1 * temp2 * temp
        )
        return math.sqrt(value)

    def discount_bond_option(self, option_type, strike: float, maturity: float, bond_maturity: float) -> float:
        if not strike > 0.0:
            raise PreconditionError("strike must be positive")
        v = self.sigma_p(maturity, bond_maturity)
        f = self.term_structure.discount(bond_maturity)
        k = self.term_structure.discount(maturity) * strike
        return black_formula(option_type, k, f, v)

    def V(self, t: float) -> float:
        a, b, sigma, eta, rho = self.a, self.b, self.sigma, self.eta, self.rho
        expat = math.exp(-a * t)
        expbt = math.exp(-b * t)
        cx = sigma / a
        cy = eta / b
        valuex = cx * cx * (t + (2.0 * expat - 0.5 * expat * expat - 1.5) / a)
        valuey = cy * cy * (t + (2.0 * expbt - 0.5 * expbt * expbt - 1.5) / b)
        value = 2.0 * rho * cx * cy * (
            t + (expat - 1.0) / a + (expbt - 1.0) / b - (expat * expbt - 1.0) / (a + b)
        )
        return valuex + valuey + value

    def A(self, t: float, T: float) -> float:
        return (
            self.term_structure.discount(T)
            / self.term_structure.discount(t)
            * math.exp(0.5 * (self.V(T - t) - self.V(T) + self.V(t)))
        )

    @staticmethod
    def B(x: float, t: float) -> float:
        return (1.0 - math.exp(-x * t)) / x

    def discount_bond(self, t: float, T: float, x: float, y: float) -> float:
        return self.A(t, T) * math.exp(-self.B(self.a, T - t) * x - self.B(self.b, T - t) * y)
