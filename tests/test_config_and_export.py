# tests/test_config_and_export.py

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from rates_core.config import AppConfig, SolverConfig, TreeConfig, load_config
from rates_core.errors import NumericalError, PreconditionError
from rates_core.lattices import (
    TimeGrid,
    TrinomialTree,
    check_probabilities,
    export_lattice_diagnostics,
    lattice_to_frame,
    state_price_discount_curve,
)
from rates_core.models import G2, HullWhite, ShortRateTree2D, model_from_config
from rates_core.pricing import tree_discount_bond


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------


def test_repo_example_config_matches_defaults(repo_root: Path):
    cfg_path = repo_root / "config" / "example_config.yaml"
    app_cfg = AppConfig.from_yaml(cfg_path)
    defaults = AppConfig.default()

    assert app_cfg.solver_config() == defaults.solver_config()
    assert app_cfg.tree.time_steps == 100
    for name in ("hull_white", "black_karasinski", "vasicek", "cir", "g2"):
        assert app_cfg.model_parameters(name) == defaults.model_parameters(name), name
    assert app_cfg.output.root == (repo_root / "output").resolve()


def test_partial_yaml_falls_back_to_defaults(tmp_path: Path):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    cfg_path = cfg_dir / "app_config.yaml"
    cfg_path.write_text(
        "solver:\n"
        "  accuracy: 1.0e-9\n"
        "models:\n"
        "  hull_white:\n"
        "    sigma: 0.015\n"
        "output:\n"
        "  root: out/diagnostics\n",
        encoding="utf-8",
    )

    app_cfg = load_config(cfg_path)

    assert app_cfg.solver.accuracy == pytest.approx(1e-9)
    assert app_cfg.solver.max_evaluations == 1000
    assert app_cfg.model_parameters("hull_white") == {"a": 0.1, "sigma": 0.015}
    assert app_cfg.model_parameters("cir")["theta"] == pytest.approx(0.1)
    # relative paths resolve against the parent of the config directory
    assert app_cfg.output.root == (tmp_path / "out" / "diagnostics").resolve()

    lattice_dir = app_cfg.lattice_output_dir("hw")
    assert lattice_dir.is_dir()
    assert lattice_dir == app_cfg.output.root / "lattices" / "hw"


def test_empty_yaml_gives_defaults(tmp_path: Path):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    cfg_path = cfg_dir / "empty.yaml"
    cfg_path.write_text("", encoding="utf-8")

    app_cfg = AppConfig.from_yaml(cfg_path)
    assert app_cfg.solver == SolverConfig()
    assert load_config().tree.probability_tolerance == pytest.approx(1e-10)


def test_invalid_solver_settings_rejected():
    with pytest.raises(PreconditionError, match="lower_bound"):
        SolverConfig(lower_bound=1.0, upper_bound=-1.0)
    with pytest.raises(PreconditionError, match="initial_guess"):
        SolverConfig(initial_guess=100.0)
    with pytest.raises(PreconditionError, match="max_evaluations"):
        SolverConfig(max_evaluations=0)
    with pytest.raises(PreconditionError, match="time_steps"):
        TreeConfig(time_steps=0)
    with pytest.raises(PreconditionError, match="probability_tolerance"):
        TreeConfig(probability_tolerance=0.0)
    with pytest.raises(KeyError, match="No defaults"):
        AppConfig.default().model_parameters("ho_lee")


def test_solver_settings_reach_the_fit(tmp_path: Path, sloped_handle):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    cfg_path = cfg_dir / "app_config.yaml"
    cfg_path.write_text(
        "solver:\n  accuracy: 1.0e-10\n  initial_guess: -3.0\n",
        encoding="utf-8",
    )
    app_cfg = load_config(cfg_path)

    model = model_from_config("black_karasinski", app_cfg, term_structure=sloped_handle)
    assert model.solver.accuracy == pytest.approx(1e-10)

    grid = TimeGrid.uniform(2.0, 20)
    lattice = model.tree(grid)
    assert lattice.state_prices(20).sum() == pytest.approx(sloped_handle.discount(2.0), abs=1e-9)


# ----------------------------------------------------------------------
# Lattice diagnostics export
# ----------------------------------------------------------------------


@pytest.fixture
def hw_lattice(flat_handle):
    return HullWhite(flat_handle, a=0.1, sigma=0.01).tree(TimeGrid.uniform(2.0, 8))


def test_lattice_to_frame_columns_and_curve(hw_lattice, flat_handle):
    nodes = lattice_to_frame(hw_lattice)

    assert list(nodes.columns) == ["step", "t_yrs", "j", "x", "state_price", "discount"]
    assert len(nodes) == sum(hw_lattice.size(i) for i in range(9))
    assert nodes.loc[nodes["step"] == 8, "discount"].isna().all()
    assert nodes.loc[nodes["step"] < 8, "discount"].between(0.0, 1.0).all()

    curve = state_price_discount_curve(nodes)
    assert list(curve.columns) == ["t_yrs", "df"]
    expected = [flat_handle.discount(t) for t in curve["t_yrs"]]
    np.testing.assert_allclose(curve["df"].to_numpy(), expected, rtol=1e-10)


def test_lattice_to_frame_max_step(hw_lattice):
    nodes = lattice_to_frame(hw_lattice, max_step=3)
    assert nodes["step"].max() == 3
    assert nodes["discount"].notna().all()

    with pytest.raises(ValueError, match="max_step"):
        lattice_to_frame(hw_lattice, max_step=9)


def test_state_price_curve_requires_columns():
    with pytest.raises(ValueError, match="state_price"):
        state_price_discount_curve(pd.DataFrame({"t_yrs": [0.0]}))


def test_two_factor_frame_has_no_state_variable(flat_handle):
    model = G2(flat_handle)
    lattice = model.tree(TimeGrid.uniform(1.0, 4))
    assert isinstance(lattice, ShortRateTree2D)

    nodes = lattice_to_frame(lattice)
    assert nodes["x"].isna().all()
    assert nodes.loc[nodes["step"] == 0, "state_price"].tolist() == [1.0]


def test_export_lattice_diagnostics_writes_parquet_and_xlsx(tmp_path: Path, hw_lattice):
    paths = export_lattice_diagnostics(hw_lattice, tmp_path / "diag", "hw flat")

    assert paths["nodes"].name == "hw_flat_nodes.parquet"
    assert paths["xlsx"].name == "hw_flat.xlsx"

    nodes = pd.read_parquet(paths["nodes"])
    sheet = pd.read_excel(paths["xlsx"], sheet_name="NODES")
    curve = pd.read_excel(paths["xlsx"], sheet_name="CURVE")

    assert len(nodes) == len(sheet)
    np.testing.assert_allclose(sheet["state_price"].to_numpy(), nodes["state_price"].to_numpy())
    assert len(curve) == 9
    assert curve["df"].iloc[0] == pytest.approx(1.0)


def test_trinomial_tree_uses_configured_tolerance(flat_handle):
    app_cfg = AppConfig.default()
    model = HullWhite(flat_handle)
    grid = TimeGrid.uniform(1.0, app_cfg.tree.time_steps)
    tree = TrinomialTree(model.dynamics().process, grid)
    check_probabilities(tree, tolerance=app_cfg.tree.probability_tolerance)


def test_tree_settings_reach_the_pricing_helpers(tmp_path: Path, flat_handle):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    cfg_path = cfg_dir / "app_config.yaml"
    cfg_path.write_text(
        "tree:\n  time_steps: 12\n  probability_tolerance: 1.0e-3\n",
        encoding="utf-8",
    )
    app_cfg = load_config(cfg_path)

    seen = []

    class RecordingHullWhite(HullWhite):
        def tree(self, grid, **kwargs):
            seen.append(len(grid) - 1)
            return super().tree(grid, **kwargs)

    model = RecordingHullWhite(flat_handle)
    price = tree_discount_bond(model, 3.0, app_cfg=app_cfg)
    tree_discount_bond(model, 3.0)

    assert seen == [12, 100]
    assert price == pytest.approx(flat_handle.discount(3.0), abs=1e-7)


def test_probability_check_reads_configured_tolerance():
    class SlightlyOffTree:
        columns = 2
        branches = 2

        def size(self, i):
            return 1

        def probability(self, i, j, b):
            return 0.5 + 1e-6 * b

    with pytest.raises(NumericalError, match="sum to"):
        check_probabilities(SlightlyOffTree())

    loose = AppConfig(tree=TreeConfig(probability_tolerance=1e-5))
    check_probabilities(SlightlyOffTree(), app_cfg=loose)
