"""Configuration for prassign."""
from .settings import PrAssignConfig, get_config, init_config

__all__ = [
    "PrAssignConfig",
    "get_config",
    "init_config",
]
