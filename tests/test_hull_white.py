# tests/test_hull_white.py
"""
Hull-White: exact refit of the input curve on the trinomial lattice,
closed-form vs Brent-fitted lattices, closed-form bond options and the
behaviour on curve relinking.
"""
from __future__ import annotations

import math

import pytest

from rates_core.curves import FlatForward
from rates_core.errors import PreconditionError
from rates_core.lattices import TimeGrid
from rates_core.models import HullWhite
from rates_core.numerics import OptionType, black_formula
from rates_core.pricing import tree_discount_bond, tree_discount_bond_option


@pytest.mark.parametrize("handle_name", ["flat_handle", "sloped_handle"])
def test_tree_reprices_every_discount_bond(handle_name, request, grid_5y):
    handle = request.getfixturevalue(handle_name)
    model = HullWhite(handle, a=0.1, sigma=0.01)
    lattice = model.tree(grid_5y)

    for i in range(grid_5y.size() - 1):
        prices = lattice.state_prices(i)
        value = sum(prices[j] * lattice.discount(i, j) for j in range(lattice.size(i)))
        assert value == pytest.approx(handle.discount(grid_5y[i + 1]), abs=1e-7), (
            f"level {i}: lattice {value} vs curve {handle.discount(grid_5y[i + 1])}"
        )


def test_closed_form_and_numerical_fit_agree(sloped_handle):
    model = HullWhite(sloped_handle, a=0.1, sigma=0.01)
    grid = TimeGrid.uniform(3.0, 30)

    closed = model.tree(grid)
    numerical = model.tree(grid, numerical=True)

    for i in range(1, grid.size()):
        assert closed.state_prices(i).sum() == pytest.approx(
            numerical.state_prices(i).sum(), abs=1e-6
        )

    assert tree_discount_bond(model, 3.0, 30) == pytest.approx(sloped_handle.discount(3.0), abs=1e-6)


def test_discount_bond_option_uses_hull_white_volatility(flat_handle):
    a, sigma = 0.1, 0.01
    model = HullWhite(flat_handle, a=a, sigma=sigma)

    maturity, bond_maturity, strike = 1.0, 3.0, 0.92
    b = (1.0 - math.exp(-a * (bond_maturity - maturity))) / a
    v = sigma * b * math.sqrt(0.5 * (1.0 - math.exp(-2.0 * a * maturity)) / a)
    expected = black_formula(
        OptionType.PUT,
        flat_handle.discount(maturity) * strike,
        flat_handle.discount(bond_maturity),
        v,
    )

    assert model.discount_bond_option(OptionType.PUT, strike, maturity, bond_maturity) == pytest.approx(
        expected, rel=1e-14
    )


def test_tree_option_close_to_closed_form(flat_handle):
    model = HullWhite(flat_handle, a=0.1, sigma=0.01)
    strike = flat_handle.discount(3.0) / flat_handle.discount(1.0)

    closed = model.discount_bond_option(OptionType.CALL, strike, 1.0, 3.0)
    tree = tree_discount_bond_option(model, OptionType.CALL, strike, 1.0, 3.0, 150)

    assert closed > 0.0
    assert tree == pytest.approx(closed, rel=0.03)


def test_affine_coefficients_reprice_the_curve(sloped_handle):
    model = HullWhite(sloped_handle, a=0.1, sigma=0.01)
    # P(0, T) = A(0, T) exp(-B(0, T) r0)
    for t in (0.5, 2.0, 7.0):
        assert model.discount_bond(0.0, t, model.r0) == pytest.approx(sloped_handle.discount(t), rel=1e-6)


def test_relinking_refreshes_r0_and_fitting(flat_handle):
    model = HullWhite(flat_handle, a=0.1, sigma=0.01)
    assert model.r0 == pytest.approx(0.04)
    phi_before = model.phi(1.0)

    flat_handle.link_to(FlatForward(0.06))

    assert model.r0 == pytest.approx(0.06)
    assert model.phi(1.0) == pytest.approx(phi_before + 0.02)


def test_set_params_updates_volatility(flat_handle):
    model = HullWhite(flat_handle, a=0.1, sigma=0.01)
    assert list(model.params()) == pytest.approx([0.1, 0.01])

    model.set_params([0.2, 0.015])
    assert model.a == pytest.approx(0.2)
    assert model.sigma == pytest.approx(0.015)

    with pytest.raises(PreconditionError, match="parameter vector has size"):
        model.set_params([0.2, 0.015, 0.0])


def test_convexity_bias():
    bias = HullWhite.convexity_bias(96.0, 1.0, 1.25, 0.01, 0.1)
    wider = HullWhite.convexity_bias(96.0, 1.0, 1.25, 0.02, 0.1)
    assert 0.0 < bias < wider

    with pytest.raises(PreconditionError, match="negative futures price"):
        HullWhite.convexity_bias(-1.0, 1.0, 1.25, 0.01, 0.1)
    with pytest.raises(PreconditionError, match="must not be less than"):
        HullWhite.convexity_bias(96.0, 2.0, 1.25, 0.01, 0.1)
