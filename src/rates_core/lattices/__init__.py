"""
Trees, lattices and the time grid they live on.
"""

from .time_grid import TimeGrid
from .binomial_tree import (
    BinomialTree,
    BinomialTreeType,
    EqualJumpsBinomialTree,
    EqualProbabilitiesBinomialTree,
    JarrowRudd,
    CoxRossRubinstein,
    AdditiveEQPBinomialTree,
    Trigeorgis,
    Tian,
    LeisenReimer,
    Joshi4,
    binomial_tree,
    peizer_pratt_method2_inversion,
)
from .trinomial_tree import Branching, TrinomialTree, check_probabilities
from .tree_lattice import TreeLattice, TreeLattice1D, TreeLattice2D
from .bsm_lattice import BlackScholesLattice
from .export import export_lattice_diagnostics, lattice_to_frame, state_price_discount_curve

__all__ = [
    "TimeGrid",
    "BinomialTree",
    "BinomialTreeType",
    "EqualJumpsBinomialTree",
    "EqualProbabilitiesBinomialTree",
    "JarrowRudd",
    "CoxRossRubinstein",
    "AdditiveEQPBinomialTree",
    "Trigeorgis",
    "Tian",
    "LeisenReimer",
    "Joshi4",
    "binomial_tree",
    "peizer_pratt_method2_inversion",
    "Branching",
    "TrinomialTree",
    "check_probabilities",
    "TreeLattice",
    "TreeLattice1D",
    "TreeLattice2D",
    "BlackScholesLattice",
    "lattice_to_frame",
    "export_lattice_diagnostics",
    "state_price_discount_curve",
]
