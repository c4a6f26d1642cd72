"""
Configuration loading for rates_core.
"""

from .loader import AppConfig, ModelDefaults, OutputConfig, SolverConfig, TreeConfig, load_config

__all__ = ["AppConfig", "ModelDefaults", "OutputConfig", "SolverConfig", "TreeConfig", "load_config"]
