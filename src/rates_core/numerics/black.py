# src/rates_core/numerics/black.py

from __future__ import annotations

import math

from scipy.stats import norm

from ..errors import PreconditionError
from .enums import OptionType


def cumulative_normal(x: float) -> float:
    return float(norm.cdf(x))


def black_formula(
    option_type: OptionType,
    strike: float,
    forward: float,
    std_dev: float,
    discount: float = 1.0,
) -> float:
    """
    Black (1976) price of a call/put on a forward.

    Parameters
    ----------
    option_type : OptionType
        CALL or PUT.
    strike : float
        Strike, must be >= 0.
    forward : float
        Forward value of the underlying, must be > 0.
    std_dev : float
        Total standard deviation (sigma * sqrt(T)), must be >= 0.
    discount : float
        Discount factor applied to the undiscounted price.
    """
    if strike < 0.0:
        raise PreconditionError(f"strike ({strike}) must be non-negative")
    if forward <= 0.0:
        raise PreconditionError(f"forward ({forward}) must be positive")
    if std_dev < 0.0:
        raise PreconditionError(f"stdDev ({std_dev}) must be non-negative")
    if discount <= 0.0:
        raise PreconditionError(f"discount ({discount}) must be positive")

    w = option_type.value

    if std_dev == 0.0 or strike == 0.0:
        return max((forward - strike) * w, 0.0) * discount

    d1 = math.log(forward / strike) / std_dev + 0.5 * std_dev
    d2 = d1 - std_dev
    nd1 = cumulative_normal(w * d1)
    nd2 = cumulative_normal(w * d2)
    result = discount * w * (forward * nd1 - strike * nd2)

    # tiny negative values can appear for deep OTM options
    return max(result, 0.0)
