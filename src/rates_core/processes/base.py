# src/rates_core/processes/base.py

from __future__ import annotations

import math
from abc import ABC, abstractmethod


class StochasticProcess1D(ABC):
    """
    One-dimensional diffusion dx = mu(t, x) dt + sigma(t, x) dW.

    Subclasses provide x0, drift and diffusion. The conditional moments
    default to an Euler step; processes with exact moments override
    expectation() and variance().
    """

    @abstractmethod
    def x0(self) -> float:
        ...

    @abstractmethod
    def drift(self, t: float, x: float) -> float:
        ...

    @abstractmethod
    def diffusion(self, t: float, x: float) -> float:
        ...

    def expectation(self, t0: float, x0: float, dt: float) -> float:
        return self.apply(x0, self.drift(t0, x0) * dt)

    def std_deviation(self, t0: float, x0: float, dt: float) -> float:
        return math.sqrt(self.variance(t0, x0, dt))

    def variance(self, t0: float, x0: float, dt: float) -> float:
        sigma = self.diffusion(t0, x0)
        return sigma * sigma * dt

    def evolve(self, t0: float, x0: float, dt: float, dw: float) -> float:
        return self.apply(self.expectation(t0, x0, dt), self.std_deviation(t0, x0, dt) * dw)

    def apply(self, x0: float, dx: float) -> float:
        return x0 + dx
