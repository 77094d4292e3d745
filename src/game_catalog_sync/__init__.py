"""
Game Catalog Sync.

Remote game catalog synchronization with validation, conditional
HTTP caching, and a remote -> cached -> bundled fallback chain.
"""

from game_catalog_sync.config import Settings, get_settings
from game_catalog_sync.logger import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
