"""Tiled terrain, settlement and prop generation."""

from .config import find_config, list_configs, load_config
from .exceptions import ConfigurationError, GroundSampleMiss, TilegenError
from .types import TileIndex, WorldPoint

__all__ = [
    # Types
    "TileIndex",
    "WorldPoint",
    # Config
    "find_config",
    "list_configs",
    "load_config",
    # Exceptions
    "TilegenError",
    "ConfigurationError",
    "GroundSampleMiss",
]
