# src/rates_core/numerics/solvers.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from scipy.optimize import brentq

from ..errors import NumericalError, PreconditionError

logger = logging.getLogger(__name__)


class _BudgetExceeded(Exception):
    pass


@dataclass
class Brent1D:
    """
    Bracketed Brent root finder with an evaluation budget.

    Thin wrapper around scipy.optimize.brentq: the bracket [lower, upper]
    must contain a sign change, and the objective may be called at most
    max_evaluations times. Both failures surface as NumericalError.
    """

    max_evaluations: int = 1000

    def __post_init__(self) -> None:
        if self.max_evaluations <= 0:
            raise PreconditionError("max_evaluations must be positive")

    def solve(
        self,
        f: Callable[[float], float],
        accuracy: float,
        guess: float,
        lower: float,
        upper: float,
    ) -> float:
        if accuracy <= 0.0:
            raise PreconditionError(f"accuracy ({accuracy}) must be positive")
        if lower >= upper:
            raise PreconditionError(
                f"invalid range: xMin ({lower}) >= xMax ({upper})"
            )
        if not (lower <= guess <= upper):
            raise PreconditionError(
                f"guess ({guess}) outside the range [{lower}, {upper}]"
            )

        evaluations = 0

        def counted(x: float) -> float:
            nonlocal evaluations
            evaluations += 1
            if evaluations > self.max_evaluations:
                raise _BudgetExceeded()
            return f(x)

        f_lo = counted(lower)
        if f_lo == 0.0:
            return lower
        f_hi = counted(upper)
        if f_hi == 0.0:
            return upper

        if f_lo * f_hi > 0.0:
            raise NumericalError(
                f"root not bracketed: f[{lower},{upper}] -> [{f_lo:.6e},{f_hi:.6e}]"
            )

        try:
            root = brentq(
                counted,
                lower,
                upper,
                xtol=accuracy,
                maxiter=self.max_evaluations,
            )
        except _BudgetExceeded as exc:
            raise NumericalError(
                f"maximum number of function evaluations ({self.max_evaluations}) exceeded"
            ) from exc
        except (ValueError, RuntimeError) as exc:
            raise NumericalError(f"Brent solver failed: {exc}") from exc

        logger.debug("Brent converged to %.10f after %d evaluations", root, evaluations)
        return float(root)


def solve_brent(
    f: Callable[[float], float],
    accuracy: float,
    guess: float,
    lower: float,
    upper: float,
    max_evaluations: int = 1000,
) -> float:
    return Brent1D(max_evaluations=max_evaluations).solve(f, accuracy, guess, lower, upper)
