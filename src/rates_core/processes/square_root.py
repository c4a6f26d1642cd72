# src/rates_core/processes/square_root.py

from __future__ import annotations

from .base import StochasticProcess1D


class SquareRootHelperProcess(StochasticProcess1D):
    """
    Dynamics of y = sqrt(r) when r follows a CIR square-root diffusion:

        dy = [(k theta / 2 - sigma^2 / 8) / y - k y / 2] dt + sigma / 2 dW

    Moments use the Euler defaults.
    """

    def __init__(self, theta: float, k: float, sigma: float, y0: float):
        self.theta = float(theta)
        self.k = float(k)
        self.sigma = float(sigma)
        self._y0 = float(y0)

    def x0(self) -> float:
        return self._y0

    def drift(self, t: float, y: float) -> float:
        return (0.5 * self.theta * self.k - 0.125 * self.sigma * self.sigma) / y - 0.5 * self.k * y

    def diffusion(self, t: float, y: float) -> float:
        return 0.5 * self.sigma
