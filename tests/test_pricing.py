# tests/test_pricing.py
"""
End-to-end lattice pricing:

- coupon bonds (straight and issuer-callable) on a Hull-White lattice,
- European / American / Bermudan zero-coupon bond options,
- vanilla equity options on the binomial Black-Scholes lattices.
"""
from __future__ import annotations

import math

import pytest

from rates_core.assets import BondCashflowSchedule, DiscretizedCallableBond, build_level_coupon_schedule
from rates_core.errors import PreconditionError
from rates_core.lattices import BinomialTreeType, TimeGrid
from rates_core.models import HullWhite
from rates_core.numerics import ExerciseType, OptionType, black_formula
from rates_core.pricing import (
    binomial_vanilla_option,
    price_callable_bond_on_tree,
    tree_discount_bond_option,
)
from rates_core.processes import BlackScholesProcess


def _straight_pv(schedule: BondCashflowSchedule, curve) -> float:
    return sum(cf * curve.discount(t) for t, cf in zip(schedule.t_yrs, schedule.amounts))


def _black_scholes(option_type, spot, strike, r, vol, t):
    forward = spot * math.exp(r * t)
    return black_formula(option_type, strike, forward, vol * math.sqrt(t), math.exp(-r * t))


# -------------------------------------------------------------------
# Coupon bonds
# -------------------------------------------------------------------


def test_level_coupon_schedule():
    schedule = build_level_coupon_schedule(2.0, 0.05, freq_per_year=2, face_value=100.0)

    assert schedule.t_yrs == pytest.approx([0.5, 1.0, 1.5, 2.0])
    assert schedule.amounts == pytest.approx([2.5, 2.5, 2.5, 102.5])
    assert schedule.last_payment_time == pytest.approx(2.0)

    df = schedule.to_dataframe()
    assert list(df.columns) == ["t_yrs", "amount"]
    assert df["amount"].sum() == pytest.approx(110.0)

    with pytest.raises(PreconditionError):
        build_level_coupon_schedule(0.1, 0.05, freq_per_year=2)
    with pytest.raises(PreconditionError, match="strictly increasing"):
        BondCashflowSchedule.from_arrays([1.0, 0.5], [1.0, 101.0], 100.0, 0.02, 2, 1.0)


def test_straight_bond_matches_discounted_cashflows(sloped_handle):
    model = HullWhite(sloped_handle, a=0.1, sigma=0.01)
    schedule = build_level_coupon_schedule(5.0, 0.04)

    price = price_callable_bond_on_tree(model, schedule, time_steps=100)

    assert price == pytest.approx(_straight_pv(schedule, sloped_handle), abs=1e-7)


def test_issuer_call_lowers_price(flat_handle):
    model = HullWhite(flat_handle, a=0.05, sigma=0.012)
    schedule = build_level_coupon_schedule(10.0, 0.05)
    call_times = [t for t in schedule.t_yrs if t >= 3.0 and t < 10.0]

    straight = price_callable_bond_on_tree(model, schedule, time_steps=120)
    callable_price = price_callable_bond_on_tree(model, schedule, call_times, 100.0, time_steps=120)

    assert callable_price < straight
    # a call price nobody would pay is never exercised
    never = price_callable_bond_on_tree(model, schedule, call_times, 1.0e6, time_steps=120)
    assert never == pytest.approx(straight, rel=1e-12)


def test_off_grid_events_are_ignored(flat_handle, caplog):
    model = HullWhite(flat_handle, a=0.1, sigma=0.01)
    schedule = build_level_coupon_schedule(2.0, 0.04)
    lattice = model.tree(TimeGrid.uniform(2.0, 8))

    bond = DiscretizedCallableBond(schedule, call_times=[1.1])
    with caplog.at_level("WARNING"):
        bond.initialize(lattice, 2.0)
    bond.rollback(0.0)

    assert "not a lattice node" in caplog.text
    assert bond.present_value() == pytest.approx(_straight_pv(schedule, flat_handle), abs=1e-7)


# -------------------------------------------------------------------
# Zero-coupon bond options
# -------------------------------------------------------------------


def test_bond_option_exercise_styles(flat_handle):
    model = HullWhite(flat_handle, a=0.1, sigma=0.01)
    strike = 0.93

    european = tree_discount_bond_option(model, OptionType.PUT, strike, 1.0, 3.0, 100)
    american = tree_discount_bond_option(
        model, OptionType.PUT, strike, 1.0, 3.0, 100, exercise_type=ExerciseType.AMERICAN
    )
    bermudan = tree_discount_bond_option(
        model,
        OptionType.PUT,
        strike,
        1.0,
        3.0,
        100,
        exercise_type=ExerciseType.BERMUDAN,
        exercise_times=[0.25, 0.5, 0.75, 1.0],
    )

    assert european > 0.0
    # exercise grids differ slightly between styles
    assert american >= european - 5e-4
    assert european - 5e-4 <= bermudan <= american + 5e-4

    with pytest.raises(PreconditionError, match="bermudan exercise needs explicit"):
        tree_discount_bond_option(
            model, OptionType.PUT, strike, 1.0, 3.0, 100, exercise_type=ExerciseType.BERMUDAN
        )


def test_bond_option_rejects_bad_maturities(flat_handle):
    model = HullWhite(flat_handle)
    with pytest.raises(PreconditionError, match="before option maturity"):
        tree_discount_bond_option(model, OptionType.CALL, 0.9, 3.0, 2.0, 50)


# -------------------------------------------------------------------
# Binomial vanilla options
# -------------------------------------------------------------------


@pytest.mark.parametrize("kind", list(BinomialTreeType))
def test_binomial_european_call_converges_to_black_scholes(kind, bs_process):
    expected = _black_scholes(OptionType.CALL, 100.0, 100.0, 0.05, 0.20, 1.0)
    price = binomial_vanilla_option(kind, bs_process, OptionType.CALL, 100.0, 1.0, 201)
    assert price == pytest.approx(expected, abs=0.1), f"{kind.value}: {price} vs {expected}"


@pytest.mark.parametrize("kind", [BinomialTreeType.LEISEN_REIMER, BinomialTreeType.JOSHI4])
def test_strike_centred_trees_are_accurate(kind, bs_process):
    for option_type in (OptionType.CALL, OptionType.PUT):
        expected = _black_scholes(option_type, 100.0, 110.0, 0.05, 0.20, 1.0)
        price = binomial_vanilla_option(kind, bs_process, option_type, 110.0, 1.0, 101)
        assert price == pytest.approx(expected, rel=1e-3)


def test_american_options_on_crr(bs_process):
    kind = BinomialTreeType.COX_ROSS_RUBINSTEIN

    european_put = binomial_vanilla_option(kind, bs_process, OptionType.PUT, 100.0, 1.0, 200)
    american_put = binomial_vanilla_option(
        kind, bs_process, OptionType.PUT, 100.0, 1.0, 200, ExerciseType.AMERICAN
    )
    assert american_put > european_put

    # no dividends: early exercise of a call is never optimal
    european_call = binomial_vanilla_option(kind, bs_process, OptionType.CALL, 100.0, 1.0, 200)
    american_call = binomial_vanilla_option(
        kind, bs_process, OptionType.CALL, 100.0, 1.0, 200, ExerciseType.AMERICAN
    )
    assert american_call == pytest.approx(european_call, rel=1e-12)


def test_binomial_needs_two_steps(bs_process):
    with pytest.raises(PreconditionError, match="at least 2 time steps"):
        binomial_vanilla_option(
            BinomialTreeType.JARROW_RUDD, bs_process, OptionType.CALL, 100.0, 1.0, 1
        )


def test_dividend_yield_lowers_call():
    plain = BlackScholesProcess(100.0, 0.05, 0.0, 0.2)
    paying = BlackScholesProcess(100.0, 0.05, 0.03, 0.2)
    kind = BinomialTreeType.TIAN
    assert binomial_vanilla_option(kind, paying, OptionType.CALL, 100.0, 1.0, 100) < binomial_vanilla_option(
        kind, plain, OptionType.CALL, 100.0, 1.0, 100
    )
