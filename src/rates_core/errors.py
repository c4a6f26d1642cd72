# src/rates_core/errors.py

from __future__ import annotations


class RatesCoreError(Exception):
    """Base class for every error raised by rates_core."""


class PreconditionError(RatesCoreError, ValueError):
    """
    Bad input at the point of the call: negative strike, non-positive
    steps, unsorted times, mismatched dimensions, rollback to a later time.

    These indicate a programming error in the caller and should not be
    retried.
    """


class NumericalError(RatesCoreError, ArithmeticError):
    """
    Numerical infeasibility: a branch probability outside [0, 1], or a root
    solve that cannot bracket / converge within its evaluation budget.

    Callers may retry with different model parameters or a finer grid.
    """
