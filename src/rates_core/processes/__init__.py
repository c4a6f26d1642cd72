"""
One-dimensional stochastic processes driving trees and short-rate models.
"""

from .base import StochasticProcess1D
from .ornstein_uhlenbeck import OrnsteinUhlenbeckProcess
from .black_scholes import BlackScholesProcess
from .square_root import SquareRootHelperProcess

__all__ = [
    "StochasticProcess1D",
    "OrnsteinUhlenbeckProcess",
    "BlackScholesProcess",
    "SquareRootHelperProcess",
]
