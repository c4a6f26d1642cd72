# src/rates_core/models/calibration.py

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from ..errors import PreconditionError
from ..numerics.enums import OptionType


class CalibrationErrorType(Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


class CalibrationHelper(ABC):
    """
    Market instrument used to calibrate a model.

    `model` is set by CalibratedModel.calibrate(); calibration_error()
    compares the model value against `market_value`.
    """

    def __init__(
        self,
        market_value: float,
        error_type: CalibrationErrorType = CalibrationErrorType.RELATIVE,
    ):
        if error_type == CalibrationErrorType.RELATIVE and market_value == 0.0:
            raise PreconditionError("relative error needs a non-zero market value")
        self.market_value = float(market_value)
        self.error_type = error_type
        self.model = None

    @abstractmethod
    def model_value(self, model) -> float:
        ...

    def calibration_error(self) -> float:
        if self.model is None:
            raise PreconditionError("no model attached to the calibration helper")
        diff = self.model_value(self.model) - self.market_value
        if self.error_type == CalibrationErrorType.RELATIVE:
            return diff / self.market_value
        return diff


class DiscountBondHelper(CalibrationHelper):
    """Zero-coupon bond price P(0, maturity)."""

    def __init__(self, maturity: float, market_discount: float, **kwargs):
        if maturity <= 0.0:
            raise PreconditionError(f"maturity ({maturity}) must be positive")
        super().__init__(market_discount, **kwargs)
        self.maturity = float(maturity)

    def model_value(self, model) -> float:
        return model.discount(self.maturity)


class BondOptionHelper(CalibrationHelper):
    """European option on a zero-coupon bond, priced in closed form."""

    def __init__(
        self,
        option_type: OptionType,
        strike: float,
        maturity: float,
        bond_maturity: float,
        market_price: float,
        **kwargs,
    ):
        if bond_maturity < maturity:
            raise PreconditionError(
                f"bond maturity ({bond_maturity}) before option maturity ({maturity})"
            )
        super().__init__(market_price, **kwargs)
        self.option_type = option_type
        self.strike = float(strike)
        self.maturity = float(maturity)
        self.bond_maturity = float(bond_maturity)

    def model_value(self, model) -> float:
        return model.discount_bond_option(
            self.option_type, self.strike, self.maturity, self.bond_maturity
        )
