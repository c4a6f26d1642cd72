# src/rates_core/models/factory.py

from __future__ import annotations

from typing import Optional

from ..config.loader import AppConfig
from ..errors import PreconditionError
from .blackkarasinski import BlackKarasinski
from .cir import CoxIngersollRoss
from .g2 import G2
from .hullwhite import HullWhite
from .vasicek import Vasicek

_CURVE_MODELS = ("hull_white", "black_karasinski", "g2")
MODEL_NAMES = _CURVE_MODELS + ("vasicek", "cir")


def model_from_config(name: str, app_cfg: Optional[AppConfig] = None, term_structure=None):
    """
    Build a short-rate model with the default parameters and solver
    settings of `app_cfg` (built-in defaults when None).

    hull_white, black_karasinski and g2 need a `term_structure`.
    """
    app_cfg = app_cfg or AppConfig.default()
    key = name.lower()
    if key not in MODEL_NAMES:
        raise PreconditionError(
            f"unknown short-rate model '{name}'. Known models: {sorted(MODEL_NAMES)}"
        )
    params = app_cfg.model_parameters(key)
    solver = app_cfg.solver_config()

    if key in _CURVE_MODELS and term_structure is None:
        raise PreconditionError(f"model '{name}' needs a term structure")

    if key == "hull_white":
        return HullWhite(term_structure, a=params["a"], sigma=params["sigma"], solver=solver)
    if key == "black_karasinski":
        return BlackKarasinski(term_structure, a=params["a"], sigma=params["sigma"], solver=solver)
    if key == "g2":
        return G2(
            term_structure,
            a=params["a"],
            sigma=params["sigma"],
            b=params["b"],
            eta=params["eta"],
            rho=params["rho"],
            solver=solver,
        )
    if key == "vasicek":
        return Vasicek(
            r0=params["r0"],
            a=params["a"],
            b=params["b"],
            sigma=params["sigma"],
            lambda_=params.get("lambda", 0.0),
            solver=solver,
        )
    return CoxIngersollRoss(
        r0=params["r0"],
        theta=params["theta"],
        k=params["k"],
        sigma=params["sigma"],
        solver=solver,
    )
