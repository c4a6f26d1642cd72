# src/rates_core/models/model.py

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

import numpy as np
from scipy.optimize import minimize

from ..config.loader import SolverConfig
from ..curves.handle import YieldCurveHandle
from ..errors import PreconditionError
from .parameter import Constraint, NullParameter, Parameter

logger = logging.getLogger(__name__)

# cost returned for parameter vectors outside the admissible region
_PENALTY = 1.0e10


class _ArgumentsConstraint(Constraint):
    """Applies each argument's constraint to its slice of the flat vector."""

    def __init__(self, arguments: Sequence[Parameter]):
        self.arguments = arguments

    def test(self, params: np.ndarray) -> bool:
        k = 0
        for arg in self.arguments:
            n = arg.size
            if not arg.test_params(np.asarray(params[k:k + n], dtype=float)):
                return False
            k += n
        return True


class CalibratedModel:
    """
    Model whose parameters can be fitted to market instruments.

    `arguments` is a list of Parameter objects; params() flattens their
    free values into one vector in argument order.
    """

    def __init__(self, n_arguments: int):
        self.arguments: List[Parameter] = [NullParameter() for _ in range(n_arguments)]
        self._observers: List[Callable[[], None]] = []
        self.last_calibration = None

    # ---------- parameters ----------

    @property
    def constraint(self) -> Constraint:
        return _ArgumentsConstraint(self.arguments)

    def params(self) -> np.ndarray:
        if not self.arguments:
            return np.zeros(0)
        return np.concatenate([np.asarray(a.params, dtype=float) for a in self.arguments])

    def set_params(self, params: Sequence[float]) -> None:
        params = np.asarray(params, dtype=float)
        expected = sum(a.size for a in self.arguments)
        if params.size != expected:
            raise PreconditionError(
                f"parameter vector has size {params.size}, {expected} expected"
            )
        k = 0
        for arg in self.arguments:
            for i in range(arg.size):
                arg.set_param(i, params[k])
                k += 1
        self.update()

    # ---------- observers ----------

    def register_observer(self, callback: Callable[[], None]) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def notify_observers(self) -> None:
        for callback in list(self._observers):
            callback()

    def update(self) -> None:
        self.generate_arguments()
        self.notify_observers()

    def generate_arguments(self) -> None:
        pass

    # ---------- calibration ----------

    def value(self, params: Sequence[float], helpers: Sequence) -> float:
        """Root of the summed squared calibration errors at `params`."""
        self.set_params(params)
        total = 0.0
        for helper in helpers:
            helper.model = self
            err = helper.calibration_error()
            total += err * err
        return math.sqrt(total)

    def calibrate(
        self,
        helpers: Sequence,
        method: str = "Nelder-Mead",
        weights: Optional[Sequence[float]] = None,
        max_iterations: int = 2000,
        tolerance: float = 1e-10,
    ):
        """
        Fit the parameters by minimising sqrt(sum w_i err_i^2) over the
        helpers with scipy.optimize.minimize.

        Vectors violating the argument constraints are given a large
        penalty cost. The optimiser result is kept in `last_calibration`.
        """
        if not helpers:
            raise PreconditionError("no calibration helpers given")
        if weights is None:
            weights = [1.0] * len(helpers)
        if len(weights) != len(helpers):
            raise PreconditionError(
                f"{len(weights)} weights given for {len(helpers)} helpers"
            )

        for helper in helpers:
            helper.model = self

        constraint = self.constraint
        start = self.params()

        def cost(x: np.ndarray) -> float:
            if not constraint.test(x):
                return _PENALTY
            self.set_params(x)
            total = 0.0
            for w, helper in zip(weights, helpers):
                err = helper.calibration_error()
                total += w * err * err
            return math.sqrt(total)

        result = minimize(
            cost,
            start,
            method=method,
            tol=tolerance,
            options={"maxiter": max_iterations},
        )

        if constraint.test(result.x):
            self.set_params(result.x)
        else:
            self.set_params(start)

        self.last_calibration = result
        logger.debug(
            "Calibration (%s) finished: success=%s, cost=%.3e, params=%s",
            method,
            result.success,
            result.fun,
            np.array2string(self.params(), precision=6),
        )
        return result


class ShortRateModel(CalibratedModel, ABC):
    """
    Calibrated model describing the short rate; builds a lattice on a
    time grid for numerical pricing.
    """

    def __init__(self, n_arguments: int, solver: Optional[SolverConfig] = None):
        super().__init__(n_arguments)
        self.solver = solver or SolverConfig()

    @abstractmethod
    def tree(self, grid):
        ...


class TermStructureConsistentModel:
    """
    Mixin for models fitted exactly to an initial yield curve.

    The model registers with the handle; relinking the handle calls
    update(), which regenerates the fitting parameter.
    """

    def _init_term_structure(self, term_structure: YieldCurveHandle) -> None:
        if not isinstance(term_structure, YieldCurveHandle):
            term_structure = YieldCurveHandle(term_structure)
        self._term_structure = term_structure
        term_structure.register_observer(self.update)

    @property
    def term_structure(self) -> YieldCurveHandle:
        return self._term_structure
