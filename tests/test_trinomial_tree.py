# tests/test_trinomial_tree.py
"""
Trinomial tree construction on Ornstein-Uhlenbeck and square-root
processes: normalised probabilities, positive spacing, non-decreasing
level sizes and the one-node-per-side growth of the branching.
"""
from __future__ import annotations

import pytest

from rates_core.errors import NumericalError
from rates_core.lattices import TimeGrid, TrinomialTree, check_probabilities
from rates_core.processes import OrnsteinUhlenbeckProcess, SquareRootHelperProcess


@pytest.fixture
def ou_tree(grid_5y) -> TrinomialTree:
    return TrinomialTree(OrnsteinUhlenbeckProcess(0.1, 0.01), grid_5y)


def test_probabilities_are_normalised(ou_tree):
    check_probabilities(ou_tree, tolerance=1e-10)


def test_spacing_positive_and_sizes_non_decreasing(ou_tree):
    n = ou_tree.time_grid.size()

    assert ou_tree.size(0) == 1
    assert ou_tree.dx(0) == 0.0
    for i in range(1, n):
        assert ou_tree.dx(i) > 0.0, f"dx({i}) = {ou_tree.dx(i)}"
    for i in range(n - 1):
        assert ou_tree.size(i + 1) >= ou_tree.size(i)


def test_branching_grows_one_node_per_side(ou_tree):
    for i in range(ou_tree.time_grid.size() - 1):
        branching = ou_tree.branching(i)
        assert ou_tree.size(i + 1) == branching.k_max - branching.k_min + 3
        for j in range(ou_tree.size(i)):
            descendants = [ou_tree.descendant(i, j, b) for b in range(3)]
            assert descendants[1] == descendants[0] + 1
            assert descendants[2] == descendants[1] + 1
            assert 0 <= descendants[0] and descendants[2] < ou_tree.size(i + 1)


def test_underlying_is_centred_on_x0(ou_tree):
    i = 10
    size = ou_tree.size(i)
    mid = ou_tree.underlying(i, size // 2)
    assert mid == pytest.approx(0.0, abs=1e-12)
    assert ou_tree.underlying(i, 1) - ou_tree.underlying(i, 0) == pytest.approx(ou_tree.dx(i))


def test_positive_tree_keeps_nodes_above_zero():
    grid = TimeGrid.uniform(5.0, 50)
    process = SquareRootHelperProcess(0.1, 0.1, 0.1, 0.05 ** 0.5)
    tree = TrinomialTree(process, grid, is_positive=True)

    for i in range(1, grid.size()):
        assert tree.underlying(i, 0) > 0.0, f"non-positive node at level {i}"


def test_check_probabilities_reports_bad_node():
    class BrokenTree:
        columns = 2
        branches = 3

        def size(self, i):
            return 1

        def probability(self, i, index, branch):
            return (0.5, 0.6, -0.1)[branch]

    with pytest.raises(NumericalError, match="negative probability"):
        check_probabilities(BrokenTree())
