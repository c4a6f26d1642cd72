# src/rates_core/processes/ornstein_uhlenbeck.py

from __future__ import annotations

import math

from ..errors import PreconditionError
from ..numerics.comparison import EPSILON
from .base import StochasticProcess1D

_SMALL_SPEED = math.sqrt(EPSILON)


class OrnsteinUhlenbeckProcess(StochasticProcess1D):
    """
    dx = a (level - x) dt + sigma dW

    Conditional mean and variance are exact. For a speed below sqrt(eps)
    the variance degenerates to the Brownian sigma^2 dt.
    """

    def __init__(self, speed: float, volatility: float, x0: float = 0.0, level: float = 0.0):
        if volatility < 0.0:
            raise PreconditionError(f"negative volatility ({volatility}) given")
        self.speed = float(speed)
        self.volatility = float(volatility)
        self._x0 = float(x0)
        self.level = float(level)

    def x0(self) -> float:
        return self._x0

    def drift(self, t: float, x: float) -> float:
        return self.speed * (self.level - x)

    def diffusion(self, t: float, x: float) -> float:
        return self.volatility

    def expectation(self, t0: float, x0: float, dt: float) -> float:
        return self.level + (x0 - self.level) * math.exp(-self.speed * dt)

    def variance(self, t0: float, x0: float, dt: float) -> float:
        if self.speed < _SMALL_SPEED:
            return self.volatility * self.volatility * dt
        return (
            0.5 * self.volatility * self.volatility / self.speed
            * (1.0 - math.exp(-2.0 * self.speed * dt))
        )

    def __repr__(self) -> str:
        return (
            f"OrnsteinUhlenbeckProcess(speed={self.speed}, volatility={self.volatility}, "
            f"x0={self._x0}, level={self.level})"
        )
