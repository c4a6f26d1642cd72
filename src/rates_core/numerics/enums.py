# src/rates_core/numerics/enums.py

from __future__ import annotations

from enum import Enum


class OptionType(Enum):
    """Option side; the value doubles as the payoff sign."""
    CALL = 1
    PUT = -1


class ExerciseType(Enum):
    EUROPEAN = "european"
    BERMUDAN = "bermudan"
    AMERICAN = "american"
