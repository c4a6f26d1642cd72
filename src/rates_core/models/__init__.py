"""
Short-rate models, their parameters and calibration.
"""

from .parameter import (
    BoundaryConstraint,
    CompositeConstraint,
    ConstantParameter,
    Constraint,
    FittingImpl,
    NoConstraint,
    NullParameter,
    NumericalFittingImpl,
    Parameter,
    PiecewiseConstantParameter,
    PositiveConstraint,
    TermStructureFittingParameter,
)
from .model import CalibratedModel, ShortRateModel, TermStructureConsistentModel
from .calibration import BondOptionHelper, CalibrationErrorType, CalibrationHelper, DiscountBondHelper
from .onefactor import OneFactorAffineModel, OneFactorModel, ShortRateDynamics, ShortRateTree
from .vasicek import Vasicek
from .hullwhite import HullWhite
from .blackkarasinski import BlackKarasinski
from .cir import CoxIngersollRoss
from .twofactor import ShortRateTree2D, TwoFactorDynamics, TwoFactorModel
from .g2 import G2
from .factory import model_from_config

__all__ = [
    "BoundaryConstraint",
    "CompositeConstraint",
    "ConstantParameter",
    "Constraint",
    "FittingImpl",
    "NoConstraint",
    "NullParameter",
    "NumericalFittingImpl",
    "Parameter",
    "PiecewiseConstantParameter",
    "PositiveConstraint",
    "TermStructureFittingParameter",
    "CalibratedModel",
    "ShortRateModel",
    "TermStructureConsistentModel",
    "BondOptionHelper",
    "CalibrationErrorType",
    "CalibrationHelper",
    "DiscountBondHelper",
    "OneFactorAffineModel",
    "OneFactorModel",
    "ShortRateDynamics",
    "ShortRateTree",
    "Vasicek",
    "HullWhite",
    "BlackKarasinski",
    "CoxIngersollRoss",
    "ShortRateTree2D",
    "TwoFactorDynamics",
    "TwoFactorModel",
    "G2",
    "model_from_config",
]
