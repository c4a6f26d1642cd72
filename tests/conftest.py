from __future__ import annotations

from pathlib import Path

import pytest

from rates_core.curves import FlatForward, YieldCurveHandle, make_zero_curve_from_pairs
from rates_core.lattices import TimeGrid
from rates_core.processes import BlackScholesProcess, StochasticProcess1D


class ConstantDiffusion(StochasticProcess1D):
    """dx = mu dt + sigma dW with constant coefficients (Euler moments)."""

    def __init__(self, x0: float, mu: float, sigma: float):
        self._x0 = x0
        self.mu = mu
        self.sigma = sigma

    def x0(self) -> float:
        return self._x0

    def drift(self, t: float, x: float) -> float:
        return self.mu

    def diffusion(self, t: float, x: float) -> float:
        return self.sigma


@pytest.fixture(scope="session")
def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@pytest.fixture
def flat_curve() -> FlatForward:
    return FlatForward(0.04)


@pytest.fixture
def flat_handle(flat_curve) -> YieldCurveHandle:
    return YieldCurveHandle(flat_curve)


@pytest.fixture
def sloped_handle() -> YieldCurveHandle:
    # upward sloping zero curve, continuously compounded
    curve = make_zero_curve_from_pairs(
        [(0.5, 0.030), (2.0, 0.035), (5.0, 0.040), (10.0, 0.045)]
    )
    return YieldCurveHandle(curve)


@pytest.fixture
def grid_5y() -> TimeGrid:
    return TimeGrid.uniform(5.0, 50)


@pytest.fixture
def bs_process() -> BlackScholesProcess:
    return BlackScholesProcess(100.0, 0.05, 0.0, 0.20)


@pytest.fixture
def zero_drift_process() -> ConstantDiffusion:
    return ConstantDiffusion(100.0, 0.0, 0.20)
