# src/rates_core/processes/black_scholes.py

from __future__ import annotations

from ..errors import PreconditionError
from .base import StochasticProcess1D


class BlackScholesProcess(StochasticProcess1D):
    """
    Constant-parameter Black-Scholes-Merton process in log-space.

    Follows the binomial-tree convention: x0() is the spot level while
    drift, diffusion and the moments describe d(ln S):

        drift    = r - q - sigma^2 / 2
        variance = sigma^2 dt
    """

    def __init__(
        self,
        x0: float,
        risk_free_rate: float,
        dividend_yield: float,
        volatility: float,
    ):
        if x0 <= 0.0:
            raise PreconditionError(f"spot ({x0}) must be positive")
        if volatility < 0.0:
            raise PreconditionError(f"negative volatility ({volatility}) given")
        self._x0 = float(x0)
        self.risk_free_rate = float(risk_free_rate)
        self.dividend_yield = float(dividend_yield)
        self.volatility = float(volatility)

    def x0(self) -> float:
        return self._x0

    def drift(self, t: float, x: float) -> float:
        return self.risk_free_rate - self.dividend_yield - 0.5 * self.volatility ** 2

    def diffusion(self, t: float, x: float) -> float:
        return self.volatility
