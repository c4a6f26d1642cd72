# src/rates_core/lattices/export.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .tree_lattice import TreeLattice, TreeLattice1D

logger = logging.getLogger(__name__)


def lattice_to_frame(lattice: TreeLattice, max_step: Optional[int] = None) -> pd.DataFrame:
    """
    Flatten a lattice into one row per node.

    Parameters
    ----------
    lattice : TreeLattice
        Any lattice; two-dimensional lattices get NaN in the `x` column.
    max_step : int, optional
        Last level to include (default: the last level of the time grid).

    Returns
    -------
    DataFrame
        Columns:
            step        : level index i
            t_yrs       : grid time t_i
            j           : node index within the level
            x           : state variable at the node
            state_price : Arrow-Debreu price of the node
            discount    : one-step discount factor (NaN on the last level)
    """
    grid = lattice.time_grid
    last = grid.size() - 1
    if max_step is None:
        max_step = last
    if max_step < 0 or max_step > last:
        raise ValueError(f"max_step must be in [0, {last}], got {max_step}.")

    records: list[dict] = []
    for i in range(max_step + 1):
        prices = lattice.state_prices(i)
        for j in range(lattice.size(i)):
            if isinstance(lattice, TreeLattice1D):
                x = lattice.underlying(i, j)
            else:
                x = np.nan
            disc = lattice.discount(i, j) if i < last else np.nan
            records.append(
                {
                    "step": i,
                    "t_yrs": grid[i],
                    "j": j,
                    "x": x,
                    "state_price": float(prices[j]),
                    "discount": disc,
                }
            )

    df = pd.DataFrame.from_records(
        records, columns=["step", "t_yrs", "j", "x", "state_price", "discount"]
    )
    df.sort_values(["step", "j"], inplace=True)
    df.reset_index(drop=True, inplace=True)
    return df


def state_price_discount_curve(nodes_df: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate node state prices into the lattice-implied discount curve:

        P(0, t_i) = sum_j state_price(i, j)
    """
    if "state_price" not in nodes_df.columns:
        raise ValueError("nodes_df must contain 'state_price' column.")
    if "t_yrs" not in nodes_df.columns:
        raise ValueError("nodes_df must contain 't_yrs' column.")

    df = nodes_df.groupby("t_yrs", as_index=False)["state_price"].sum()
    df.rename(columns={"state_price": "df"}, inplace=True)
    df.sort_values("t_yrs", inplace=True)
    df.reset_index(drop=True, inplace=True)
    return df


def export_lattice_diagnostics(
    lattice: TreeLattice,
    outdir: Path,
    name: str,
    max_step: Optional[int] = None,
) -> Dict[str, Path]:
    """
    Write the lattice nodes for inspection.

    Outputs into `outdir`:

      - <name>_nodes.parquet
      - <name>.xlsx
          * NODES sheet : step, t_yrs, j, x, state_price, discount
          * CURVE sheet : t_yrs, df (sum of state prices per level)
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    nodes_df = lattice_to_frame(lattice, max_step=max_step)
    curve_df = state_price_discount_curve(nodes_df)

    safe_name = name.replace(" ", "_")
    nodes_parquet = outdir / f"{safe_name}_nodes.parquet"
    xlsx_path = outdir / f"{safe_name}.xlsx"

    nodes_df.to_parquet(nodes_parquet)

    with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
        nodes_df.to_excel(writer, sheet_name="NODES", index=False)
        curve_df.to_excel(writer, sheet_name="CURVE", index=False)

    logger.info(
        "Exported lattice diagnostics for %s (%d nodes) to %s and %s",
        name,
        len(nodes_df),
        nodes_parquet,
        xlsx_path,
    )
    return {"nodes": nodes_parquet, "xlsx": xlsx_path}
