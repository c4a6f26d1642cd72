"""
Pricing helpers running discretized assets on lattices.
"""

from .tree_engines import (
    binomial_vanilla_option,
    price_callable_bond_on_tree,
    tree_discount_bond,
    tree_discount_bond_option,
)

__all__ = [
    "binomial_vanilla_option",
    "price_callable_bond_on_tree",
    "tree_discount_bond",
    "tree_discount_bond_option",
]
