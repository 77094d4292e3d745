"""
Utility modules for catalog sync.
"""

from game_catalog_sync.sync.utils.inflight import InFlightRegistry

__all__ = [
    "InFlightRegistry",
]
