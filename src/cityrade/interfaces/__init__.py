"""Protocol-based interfaces for Cityrade collaborators.

This module exports the protocols the domain core expects from the outside:
the black-box terrain source used to lay out a world map and the capability
handlers plugged into the capability registry.
"""

from cityrade.interfaces.capability import CapabilityHandler
from cityrade.interfaces.terrain import TerrainSource

__all__ = [
    "CapabilityHandler",
    "TerrainSource",
]
