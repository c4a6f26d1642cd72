# src/rates_core/pricing/tree_engines.py

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..assets.bonds import BondCashflowSchedule, DiscretizedCallableBond
from ..assets.discretized import DiscretizedDiscountBond, DiscretizedDiscountBondOption
from ..assets.vanilla import DiscretizedVanillaOption
from ..config.loader import AppConfig
from ..errors import PreconditionError
from ..lattices.binomial_tree import BinomialTreeType, binomial_tree
from ..lattices.bsm_lattice import BlackScholesLattice
from ..lattices.time_grid import TimeGrid
from ..numerics.enums import ExerciseType, OptionType
from ..processes.black_scholes import BlackScholesProcess

logger = logging.getLogger(__name__)


def _time_steps(time_steps: Optional[int], app_cfg: Optional[AppConfig]) -> int:
    if time_steps is None:
        return (app_cfg or AppConfig.default()).tree.time_steps
    return int(time_steps)


# -------------------------------------------------------------------
# Zero-coupon instruments on a short-rate lattice
# -------------------------------------------------------------------


def tree_discount_bond(
    model,
    maturity: float,
    time_steps: Optional[int] = None,
    app_cfg: Optional[AppConfig] = None,
) -> float:
    """Price of the zero-coupon bond P(0, maturity) rolled back on model.tree()."""
    time_steps = _time_steps(time_steps, app_cfg)
    grid = TimeGrid.uniform(maturity, time_steps)
    lattice = model.tree(grid)

    bond = DiscretizedDiscountBond()
    bond.initialize(lattice, maturity)
    bond.rollback(0.0)
    return bond.present_value()


def tree_discount_bond_option(
    model,
    option_type: OptionType,
    strike: float,
    maturity: float,
    bond_maturity: float,
    time_steps: Optional[int] = None,
    exercise_type: ExerciseType = ExerciseType.EUROPEAN,
    exercise_times: Optional[Sequence[float]] = None,
    app_cfg: Optional[AppConfig] = None,
) -> float:
    """
    Option on a zero-coupon bond priced by backward induction on the
    model's lattice.

    The grid holds every exercise time plus the bond maturity, with
    about `time_steps` steps overall.
    """
    time_steps = _time_steps(time_steps, app_cfg)
    option = DiscretizedDiscountBondOption(
        option_type,
        strike,
        maturity,
        bond_maturity,
        exercise_type=exercise_type,
        exercise_times=exercise_times,
    )
    grid = TimeGrid.from_mandatory_times(option.mandatory_times(), time_steps)
    lattice = model.tree(grid)

    option.initialize(lattice)
    option.rollback(0.0)
    return option.present_value()


# -------------------------------------------------------------------
# Callable bond pricing on a short-rate lattice
# -------------------------------------------------------------------


def price_callable_bond_on_tree(
    model,
    schedule: BondCashflowSchedule,
    call_times: Optional[Sequence[float]] = None,
    call_price: float = 100.0,
    time_steps: Optional[int] = None,
    app_cfg: Optional[AppConfig] = None,
) -> float:
    """
    Price a level-coupon bond with an **issuer** Bermudan call on the
    model's short-rate lattice (investor is short the option).

    With no call times this is the straight bond.
    """
    time_steps = _time_steps(time_steps, app_cfg)
    bond = DiscretizedCallableBond(schedule, call_times, call_price)
    grid = TimeGrid.from_mandatory_times(bond.mandatory_times(), time_steps)
    lattice = model.tree(grid)

    bond.initialize(lattice, schedule.last_payment_time)
    bond.rollback(0.0)
    price = bond.present_value()

    logger.debug(
        "Callable bond: %d cashflows, %d call dates, price=%.6f",
        len(schedule.t_yrs),
        len(bond.call_times),
        price,
    )
    return float(price)


# -------------------------------------------------------------------
# Vanilla options on a binomial Black-Scholes lattice
# -------------------------------------------------------------------


def binomial_vanilla_option(
    kind: BinomialTreeType,
    process: BlackScholesProcess,
    option_type: OptionType,
    strike: float,
    maturity: float,
    time_steps: Optional[int] = None,
    exercise_type: ExerciseType = ExerciseType.EUROPEAN,
    app_cfg: Optional[AppConfig] = None,
) -> float:
    """
    Vanilla option on the spot of `process`, rolled back on a binomial
    tree of the requested construction.
    """
    time_steps = _time_steps(time_steps, app_cfg)
    if time_steps < 2:
        raise PreconditionError(f"at least 2 time steps required, {time_steps} provided")

    tree = binomial_tree(kind, process, maturity, time_steps, strike)
    lattice = BlackScholesLattice(tree, process.risk_free_rate, maturity, tree.steps)

    option = DiscretizedVanillaOption.for_maturity(option_type, strike, maturity, exercise_type)
    option.initialize(lattice, maturity)
    option.rollback(0.0)
    return option.present_value()
