# tests/test_tree_lattice.py
"""
Lattice engine: state-price mass conservation, rollback/present value
of discretized assets, and the rollback preconditions.
"""
from __future__ import annotations

import numpy as np
import pytest

from rates_core.assets import DiscretizedDiscountBond
from rates_core.errors import PreconditionError
from rates_core.lattices import TimeGrid, TreeLattice2D, TrinomialTree
from rates_core.models import Vasicek
from rates_core.processes import OrnsteinUhlenbeckProcess


@pytest.fixture
def vasicek_lattice(grid_5y):
    return Vasicek(r0=0.05, a=0.1, b=0.05, sigma=0.01).tree(grid_5y)


def test_root_state_price_is_one(vasicek_lattice):
    assert list(vasicek_lattice.state_prices(0)) == [1.0]
    assert vasicek_lattice.state_prices_limit == 0


def test_state_price_mass_conservation(vasicek_lattice):
    lattice = vasicek_lattice
    for i in range(lattice.time_grid.size() - 1):
        prices = lattice.state_prices(i)
        discounted = sum(prices[j] * lattice.discount(i, j) for j in range(lattice.size(i)))
        assert discounted == pytest.approx(lattice.state_prices(i + 1).sum(), rel=1e-12)


def test_state_prices_are_cached(vasicek_lattice):
    first = vasicek_lattice.state_prices(20)
    assert vasicek_lattice.state_prices_limit == 20
    again = vasicek_lattice.state_prices(20)
    assert again is first
    # lower levels never move the high-water mark back
    vasicek_lattice.state_prices(5)
    assert vasicek_lattice.state_prices_limit == 20


def test_rollback_matches_state_prices(vasicek_lattice):
    bond = DiscretizedDiscountBond()
    bond.initialize(vasicek_lattice, 5.0)
    assert bond.values.shape == (vasicek_lattice.size(50),)

    # present value at maturity = sum of the state prices at that level
    pv_at_maturity = bond.present_value()

    bond.rollback(2.0)
    pv_midway = bond.present_value()

    bond.rollback(0.0)
    assert bond.values.shape == (1,)
    assert bond.present_value() == pytest.approx(pv_at_maturity, rel=1e-12)
    assert pv_midway == pytest.approx(pv_at_maturity, rel=1e-12)


def test_rollback_to_later_time_raises(vasicek_lattice):
    bond = DiscretizedDiscountBond()
    bond.initialize(vasicek_lattice, 3.0)
    bond.rollback(1.0)

    with pytest.raises(PreconditionError, match="cannot roll the asset back to"):
        bond.rollback(2.0)


def test_partial_rollback_to_same_time_is_noop(vasicek_lattice):
    bond = DiscretizedDiscountBond()
    bond.initialize(vasicek_lattice, 3.0)
    before = bond.values.copy()
    bond.partial_rollback(3.0)
    np.testing.assert_array_equal(bond.values, before)


def test_initialize_off_grid_raises(vasicek_lattice):
    bond = DiscretizedDiscountBond()
    with pytest.raises(PreconditionError, match="inadequate time grid"):
        bond.initialize(vasicek_lattice, 1.05)


def test_grid_returns_level_values(vasicek_lattice):
    values = vasicek_lattice.grid(1.0)
    i = vasicek_lattice.time_grid.index(1.0)
    assert len(values) == vasicek_lattice.size(i)
    assert np.all(np.diff(values) > 0.0)


# -------------------------------------------------------------------
# Two-dimensional lattice
# -------------------------------------------------------------------


class _ConstantRateLattice2D(TreeLattice2D):
    def __init__(self, tree1, tree2, correlation, rate):
        super().__init__(tree1, tree2, correlation)
        self.rate = rate

    def discount(self, i, index):
        return float(np.exp(-self.rate * self.time_grid.dt(i)))


@pytest.mark.parametrize("rho", [-0.75, 0.0, 0.5])
def test_2d_probabilities_sum_to_one(rho):
    grid = TimeGrid.uniform(1.0, 10)
    tree1 = TrinomialTree(OrnsteinUhlenbeckProcess(0.1, 0.01), grid)
    tree2 = TrinomialTree(OrnsteinUhlenbeckProcess(0.3, 0.02), grid)
    lattice = _ConstantRateLattice2D(tree1, tree2, rho, 0.03)

    assert lattice.branches == 9
    for i in range(grid.size() - 1):
        assert lattice.size(i) == tree1.size(i) * tree2.size(i)
        for index in range(lattice.size(i)):
            total = sum(lattice.probability(i, index, b) for b in range(9))
            assert total == pytest.approx(1.0, abs=1e-12)


def test_2d_descendant_is_row_major():
    grid = TimeGrid.uniform(1.0, 4)
    tree1 = TrinomialTree(OrnsteinUhlenbeckProcess(0.1, 0.01), grid)
    tree2 = TrinomialTree(OrnsteinUhlenbeckProcess(0.3, 0.02), grid)
    lattice = _ConstantRateLattice2D(tree1, tree2, 0.2, 0.03)

    i, index1, index2 = 2, 1, 3
    index = index1 + index2 * tree1.size(i)
    for branch in range(9):
        b1, b2 = branch % 3, branch // 3
        expected = tree1.descendant(i, index1, b1) + tree2.descendant(i, index2, b2) * tree1.size(i + 1)
        assert lattice.descendant(i, index, branch) == expected


def test_2d_state_prices_discount_deterministically():
    grid = TimeGrid.uniform(1.0, 10)
    tree1 = TrinomialTree(OrnsteinUhlenbeckProcess(0.1, 0.01), grid)
    tree2 = TrinomialTree(OrnsteinUhlenbeckProcess(0.3, 0.02), grid)
    lattice = _ConstantRateLattice2D(tree1, tree2, -0.5, 0.03)

    assert lattice.state_prices(10).sum() == pytest.approx(np.exp(-0.03), rel=1e-12)
    with pytest.raises(NotImplementedError):
        lattice.grid(0.5)
