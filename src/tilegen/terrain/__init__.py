"""Procedural tiled terrain generation package.

This package implements noise-based level generation: height, heat and
moisture fields classified into terrain types and biomes, village placement
and biome prop scattering.
"""

from .config import GenerationConfig, validate_config
from .generator import (
    GenerationResult,
    VertexClassification,
    classify_vertex,
    generate_level,
    generate_world,
)
from .ground import HeightmapGroundSampler
from .objects import PlacedObject, spawn_objects
from .settlements import PlacementShortfall, SettlementLayout, place_settlements
from .tiles import LevelData, TileData
from .validation import ValidationResult, validate_layout

__all__ = [
    "GenerationConfig",
    "GenerationResult",
    "HeightmapGroundSampler",
    "LevelData",
    "PlacedObject",
    "PlacementShortfall",
    "SettlementLayout",
    "TileData",
    "ValidationResult",
    "VertexClassification",
    "classify_vertex",
    "generate_level",
    "generate_world",
    "place_settlements",
    "spawn_objects",
    "validate_config",
    "validate_layout",
]
