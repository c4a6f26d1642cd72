"""
Small numerical toolbox shared by the lattices and the short-rate models.
"""

from .comparison import close, close_enough
from .enums import ExerciseType, OptionType
from .black import black_formula, cumulative_normal
from .solvers import Brent1D, solve_brent

__all__ = [
    "close",
    "close_enough",
    "ExerciseType",
    "OptionType",
    "black_formula",
    "cumulative_normal",
    "Brent1D",
    "solve_brent",
]
