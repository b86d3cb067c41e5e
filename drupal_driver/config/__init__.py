"""Driver configuration loaded from YAML files and the environment."""

from .settings import DriverSettings, load_settings

__all__ = [
    "DriverSettings",
    "load_settings",
]
