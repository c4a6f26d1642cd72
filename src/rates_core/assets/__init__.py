from .discretized import (
    DiscretizedAsset,
    DiscretizedDiscountBond,
    DiscretizedDiscountBondOption,
    DiscretizedOption,
)
from .vanilla import DiscretizedVanillaOption
from .bonds import BondCashflowSchedule, DiscretizedCallableBond, build_level_coupon_schedule

__all__ = [
    "DiscretizedAsset",
    "DiscretizedDiscountBond",
    "DiscretizedOption",
    "DiscretizedDiscountBondOption",
    "DiscretizedVanillaOption",
    "BondCashflowSchedule",
    "build_level_coupon_schedule",
    "DiscretizedCallableBond",
]
