# src/rates_core/lattices/binomial_tree.py

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..errors import NumericalError, PreconditionError
from ..processes.base import StochasticProcess1D


# ---------------------------------------------------------------------------
# Base classes
# ---------------------------------------------------------------------------


class BinomialTree(ABC):
    """
    Recombining binomial tree over [0, end] with `steps` equal steps.

    Node (i, index) has index in [0, i]; its two descendants at step i+1
    are index (down, branch 0) and index + 1 (up, branch 1).
    """

    branches = 2

    def __init__(self, process: StochasticProcess1D, end: float, steps: int):
        if steps <= 0:
            raise PreconditionError(f"steps ({steps}) must be positive")
        if not end > 0.0:
            raise PreconditionError(f"end time ({end}) must be positive")

        self.process = process
        self.steps = int(steps)
        self.columns = self.steps + 1
        self.end = float(end)
        self.x0 = process.x0()
        self.dt = self.end / self.steps
        self.drift_per_step = process.drift(0.0, self.x0) * self.dt

        if not process.variance(0.0, self.x0, self.dt) > 0.0:
            raise PreconditionError("process variance must be positive")

    def size(self, i: int) -> int:
        return i + 1

    def descendant(self, i: int, index: int, branch: int) -> int:
        return index + branch

    @abstractmethod
    def underlying(self, i: int, index: int) -> float:
        ...

    @abstractmethod
    def probability(self, i: int, index: int, branch: int) -> float:
        ...

    def _check_up_probability(self, pu: float) -> None:
        if not (0.0 <= pu <= 1.0):
            raise NumericalError("negative probability")


class EqualProbabilitiesBinomialTree(BinomialTree):
    """Both branches carry probability 1/2; subclasses set the up step."""

    up: float = 0.0

    def underlying(self, i: int, index: int) -> float:
        j = 2 * index - i
        # centred on the forward value
        return self.x0 * math.exp(i * self.drift_per_step + j * self.up)

    def probability(self, i: int, index: int, branch: int) -> float:
        return 0.5


class EqualJumpsBinomialTree(BinomialTree):
    """Up and down log-jumps have the same size dx; subclasses set dx, pu."""

    dx: float = 0.0
    pu: float = 0.5
    pd: float = 0.5

    def underlying(self, i: int, index: int) -> float:
        j = 2 * index - i
        # centred on x0
        return self.x0 * math.exp(j * self.dx)

    def probability(self, i: int, index: int, branch: int) -> float:
        return self.pu if branch == 1 else self.pd


# ---------------------------------------------------------------------------
# Concrete trees
# ---------------------------------------------------------------------------


class JarrowRudd(EqualProbabilitiesBinomialTree):
    """Jarrow-Rudd multiplicative equal-probabilities tree."""

    def __init__(self, process, end, steps, strike=None):
        super().__init__(process, end, steps)
        # drift removed
        self.up = process.std_deviation(0.0, self.x0, self.dt)


class AdditiveEQPBinomialTree(EqualProbabilitiesBinomialTree):
    """Additive equal-probabilities tree matching the first two moments."""

    def __init__(self, process, end, steps, strike=None):
        super().__init__(process, end, steps)
        variance = process.variance(0.0, self.x0, self.dt)
        self.up = -0.5 * self.drift_per_step + 0.5 * math.sqrt(
            4.0 * variance - 3.0 * self.drift_per_step * self.drift_per_step
        )


class CoxRossRubinstein(EqualJumpsBinomialTree):
    """Cox-Ross-Rubinstein multiplicative equal-jumps tree."""

    def __init__(self, process, end, steps, strike=None):
        super().__init__(process, end, steps)
        self.dx = process.std_deviation(0.0, self.x0, self.dt)
        self.pu = 0.5 + 0.5 * self.drift_per_step / self.dx
        self.pd = 1.0 - self.pu
        self._check_up_probability(self.pu)


class Trigeorgis(EqualJumpsBinomialTree):
    """Trigeorgis additive equal-jumps tree."""

    def __init__(self, process, end, steps, strike=None):
        super().__init__(process, end, steps)
        variance = process.variance(0.0, self.x0, self.dt)
        self.dx = math.sqrt(variance + self.drift_per_step * self.drift_per_step)
        self.pu = 0.5 + 0.5 * self.drift_per_step / self.dx
        self.pd = 1.0 - self.pu
        self._check_up_probability(self.pu)


class _UpDownBinomialTree(BinomialTree):
    """Multiplicative tree with distinct up/down factors."""

    up: float = 1.0
    down: float = 1.0
    pu: float = 0.5
    pd: float = 0.5

    def underlying(self, i: int, index: int) -> float:
        return self.x0 * self.down ** (i - index) * self.up ** index

    def probability(self, i: int, index: int, branch: int) -> float:
        return self.pu if branch == 1 else self.pd


class Tian(_UpDownBinomialTree):
    """Tian tree: third-moment matching, multiplicative."""

    def __init__(self, process, end, steps, strike=None):
        super().__init__(process, end, steps)

        q = math.exp(process.variance(0.0, self.x0, self.dt))
        r = math.exp(self.drift_per_step) * math.sqrt(q)
        root = math.sqrt(q * q + 2.0 * q - 3.0)

        self.up = 0.5 * r * q * (q + 1.0 + root)
        self.down = 0.5 * r * q * (q + 1.0 - root)

        self.pu = (r - self.down) / (self.up - self.down)
        self.pd = 1.0 - self.pu
        self._check_up_probability(self.pu)


def _odd(steps: int) -> int:
    return steps if steps % 2 != 0 else steps + 1


def peizer_pratt_method2_inversion(z: float, n: int) -> float:
    """
    Peizer-Pratt method 2 inversion of the binomial distribution, used to
    place the Leisen-Reimer tree's central node on the strike.
    """
    if n % 2 != 1:
        raise PreconditionError(
            f"n must be an odd number: {n} not allowed"
        )
    result = z / (n + 1.0 / 3.0 + 0.1 / (n + 1.0))
    result *= result
    result = math.exp(-result * (n + 1.0 / 6.0))
    sign = 1.0 if z > 0 else -1.0
    return 0.5 + sign * math.sqrt(0.25 * (1.0 - result))


class _StrikeCentredTree(_UpDownBinomialTree):
    """Shared set-up for the strike-dependent odd-step trees."""

    min_steps = 1

    def __init__(self, process, end, steps, strike):
        if strike is None or not strike > 0.0:
            raise PreconditionError("strike must be positive")
        if steps <= 0:
            raise PreconditionError(f"steps ({steps}) must be positive")
        odd_steps = _odd(int(steps))
        if odd_steps < self.min_steps:
            raise PreconditionError(
                f"{type(self).__name__} needs at least {self.min_steps} steps, got {steps}"
            )
        super().__init__(process, end, odd_steps)

        variance = process.variance(0.0, self.x0, self.end)
        ermqdt = math.exp(self.drift_per_step + 0.5 * variance / odd_steps)
        d2 = (math.log(self.x0 / strike) + self.drift_per_step * odd_steps) / math.sqrt(variance)

        self.pu = self._up_probability(d2, odd_steps)
        self.pd = 1.0 - self.pu
        pdash = self._up_probability(d2 + math.sqrt(variance), odd_steps)
        self.up = ermqdt * pdash / self.pu
        self.down = (ermqdt - self.pu * self.up) / (1.0 - self.pu)

    @abstractmethod
    def _up_probability(self, d: float, odd_steps: int) -> float:
        ...


class LeisenReimer(_StrikeCentredTree):
    """Leisen & Reimer tree; steps are forced to an odd number."""

    def _up_probability(self, d: float, odd_steps: int) -> float:
        return peizer_pratt_method2_inversion(d, odd_steps)


class Joshi4(_StrikeCentredTree):
    """Joshi's fourth-order odd-step tree."""

    min_steps = 3

    def _up_probability(self, d: float, odd_steps: int) -> float:
        return self.compute_up_probability((odd_steps - 1.0) / 2.0, d)

    @staticmethod
    def compute_up_probability(k: float, dj: float) -> float:
        alpha = dj / math.sqrt(8.0)
        alpha2 = alpha * alpha
        alpha3 = alpha * alpha2
        alpha5 = alpha3 * alpha2
        alpha7 = alpha5 * alpha2
        beta = -0.375 * alpha - alpha3
        gamma = (5.0 / 6.0) * alpha5 + (13.0 / 12.0) * alpha3 + (25.0 / 128.0) * alpha
        delta = -0.1025 * alpha - 0.9285 * alpha3 - 1.43 * alpha5 - 0.5 * alpha7

        rootk = math.sqrt(k)
        p = 0.5
        p += alpha / rootk
        p += beta / (k * rootk)
        p += gamma / (k * k * rootk)
        p += delta / (k * k * k * rootk)
        return p


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class BinomialTreeType(Enum):
    JARROW_RUDD = "jarrow_rudd"
    COX_ROSS_RUBINSTEIN = "cox_ross_rubinstein"
    ADDITIVE_EQP = "additive_eqp"
    TRIGEORGIS = "trigeorgis"
    TIAN = "tian"
    LEISEN_REIMER = "leisen_reimer"
    JOSHI4 = "joshi4"


_TREE_CLASSES = {
    BinomialTreeType.JARROW_RUDD: JarrowRudd,
    BinomialTreeType.COX_ROSS_RUBINSTEIN: CoxRossRubinstein,
    BinomialTreeType.ADDITIVE_EQP: AdditiveEQPBinomialTree,
    BinomialTreeType.TRIGEORGIS: Trigeorgis,
    BinomialTreeType.TIAN: Tian,
    BinomialTreeType.LEISEN_REIMER: LeisenReimer,
    BinomialTreeType.JOSHI4: Joshi4,
}


def binomial_tree(
    kind: BinomialTreeType,
    process: StochasticProcess1D,
    end: float,
    steps: int,
    strike: Optional[float] = None,
) -> BinomialTree:
    """
    Build the binomial tree variant named by `kind`.

    `strike` is only used (and then required) by the Leisen-Reimer and
    Joshi4 trees.
    """
    if isinstance(kind, str):
        kind = BinomialTreeType(kind)
    try:
        cls = _TREE_CLASSES[kind]
    except KeyError as exc:
        raise PreconditionError(f"unknown binomial tree type {kind!r}") from exc
    return cls(process, end, steps, strike)
