# src/rates_core/config/loader.py

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import PreconditionError


# ---------- Solver ----------

@dataclass
class SolverConfig:
    """
    Settings for the level-by-level Brent fit of tree drift parameters.

    The bracket [lower_bound, upper_bound] is searched for every level;
    the root found at one level is the starting guess for the next.
    """
    max_evaluations: int = 1000
    accuracy: float = 1e-7
    lower_bound: float = -50.0
    upper_bound: float = 50.0
    initial_guess: float = 1.0

    def __post_init__(self) -> None:
        if self.max_evaluations <= 0:
            raise PreconditionError(f"max_evaluations must be > 0, got {self.max_evaluations}.")
        if self.accuracy <= 0.0:
            raise PreconditionError(f"accuracy must be > 0, got {self.accuracy}.")
        if self.lower_bound >= self.upper_bound:
            raise PreconditionError(
                f"lower_bound ({self.lower_bound}) must be below upper_bound ({self.upper_bound})."
            )
        if not self.lower_bound <= self.initial_guess <= self.upper_bound:
            raise PreconditionError(
                f"initial_guess ({self.initial_guess}) outside "
                f"[{self.lower_bound}, {self.upper_bound}]."
            )


# ---------- Trees ----------

@dataclass
class TreeConfig:
    """
    Step count used by the tree pricing helpers when none is given, and
    the tolerance of the lattice probability checks.
    """
    time_steps: int = 100
    probability_tolerance: float = 1e-10

    def __post_init__(self) -> None:
        if self.time_steps <= 0:
            raise PreconditionError(f"time_steps must be > 0, got {self.time_steps}.")
        if not self.probability_tolerance > 0.0:
            raise PreconditionError(
                f"probability_tolerance must be > 0, got {self.probability_tolerance}."
            )


# ---------- Model defaults ----------

def _default_models() -> Dict[str, Dict[str, float]]:
    return {
        "hull_white": {"a": 0.1, "sigma": 0.01},
        "black_karasinski": {"a": 0.1, "sigma": 0.1},
        "vasicek": {"r0": 0.05, "a": 0.1, "b": 0.05, "sigma": 0.01, "lambda": 0.0},
        "cir": {"r0": 0.05, "theta": 0.1, "k": 0.1, "sigma": 0.1},
        "g2": {"a": 0.1, "sigma": 0.01, "b": 0.1, "eta": 0.01, "rho": -0.75},
    }


@dataclass
class ModelDefaults:
    """
    Default parameters per short-rate model, keyed by model name
    (hull_white, black_karasinski, vasicek, cir, g2).
    """
    params: Dict[str, Dict[str, float]] = field(default_factory=_default_models)

    def for_model(self, name: str) -> Dict[str, float]:
        key = name.lower()
        if key not in self.params:
            raise KeyError(
                f"No defaults for model '{name}'. Known models: {sorted(self.params)}"
            )
        return dict(self.params[key])


# ---------- Output ----------

@dataclass
class OutputConfig:
    root: Path = Path("output")


@dataclass
class AppConfig:
    """
    Top-level configuration object for rates_core.

    - solver: Brent settings for numerical tree fitting
    - tree: default time steps and probability checks
    - models: default model parameters
    - output: where diagnostic exports go
    """
    solver: SolverConfig = field(default_factory=SolverConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    models: ModelDefaults = field(default_factory=ModelDefaults)
    output: OutputConfig = field(default_factory=OutputConfig)

    # ---------- path helpers ----------

    @property
    def output_root(self) -> Path:
        """Base output directory for diagnostics; created on first use."""
        out = self.output.root
        out.mkdir(parents=True, exist_ok=True)
        return out

    def lattice_output_dir(self, name: str) -> Path:
        out = self.output_root / "lattices" / name
        out.mkdir(parents=True, exist_ok=True)
        return out

    def solver_config(self) -> SolverConfig:
        return self.solver

    def model_parameters(self, name: str) -> Dict[str, float]:
        return self.models.for_model(name)

    # ---------- constructors ----------

    @classmethod
    def default(cls) -> "AppConfig":
        return cls()

    @classmethod
    def from_yaml(cls, cfg_path: Path) -> "AppConfig":
        """
        Load configuration from a YAML file.

        Paths in the YAML are interpreted as relative to the repo root.
        We assume this file lives in: <repo root>/config/example_config.yaml
        Missing sections fall back to the built-in defaults.
        """
        cfg_path = Path(cfg_path)
        text = cfg_path.read_text(encoding="utf-8")
        data: Dict[str, Any] = yaml.safe_load(text) or {}

        # repo root ~ parent of the "config" directory
        repo_root = cfg_path.parent.parent

        def resolve_path(p: str) -> Path:
            path = Path(p)
            if not path.is_absolute():
                path = repo_root / path
            return path.resolve()

        # ----- Solver -----
        solver_data: Dict[str, Any] = data.get("solver", {}) or {}
        defaults = SolverConfig()
        solver_cfg = SolverConfig(
            max_evaluations=int(solver_data.get("max_evaluations", defaults.max_evaluations)),
            accuracy=float(solver_data.get("accuracy", defaults.accuracy)),
            lower_bound=float(solver_data.get("lower_bound", defaults.lower_bound)),
            upper_bound=float(solver_data.get("upper_bound", defaults.upper_bound)),
            initial_guess=float(solver_data.get("initial_guess", defaults.initial_guess)),
        )

        # ----- Tree -----
        tree_data: Dict[str, Any] = data.get("tree", {}) or {}
        tree_cfg = TreeConfig(
            time_steps=int(tree_data.get("time_steps", TreeConfig.time_steps)),
            probability_tolerance=float(
                tree_data.get("probability_tolerance", TreeConfig.probability_tolerance)
            ),
        )

        # ----- Models (merged over defaults, per model) -----
        models_data: Dict[str, Any] = data.get("models", {}) or {}
        params = _default_models()
        for name, overrides in models_data.items():
            merged = params.get(name.lower(), {})
            merged.update({k: float(v) for k, v in (overrides or {}).items()})
            params[name.lower()] = merged

        # ----- Output -----
        output_data: Dict[str, Any] = data.get("output", {}) or {}
        output_cfg = OutputConfig(root=resolve_path(output_data.get("root", "output")))

        return cls(
            solver=solver_cfg,
            tree=tree_cfg,
            models=ModelDefaults(params=params),
            output=output_cfg,
        )


def load_config(cfg_path: Optional[Path] = None) -> AppConfig:
    """Load `cfg_path`, or the built-in defaults when no path is given."""
    if cfg_path is None:
        return AppConfig.default()
    return AppConfig.from_yaml(Path(cfg_path))
