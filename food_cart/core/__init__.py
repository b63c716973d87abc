"""
Core module initialization.
Exports configuration and logging utilities.
"""

from food_cart.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
    MergePolicy,
    StorageBackend,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "MergePolicy",
    "StorageBackend",
]
