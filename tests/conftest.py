"""Shared test fixtures for level generation tests."""

import numpy as np
import pytest
import structlog

from tilegen.terrain.config import (
    GenerationConfig,
    LayoutConfig,
    NoiseConfig,
    VillageConfig,
)
from tilegen.terrain.generator import generate_level
from tilegen.terrain.grid import TileGrid
from tilegen.terrain.tiles import LevelData


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def small_grid() -> TileGrid:
    """2x3 tiles of 4x4 vertices, 10 world units per tile."""
    return TileGrid(depth_tiles=2, width_tiles=3, verts_per_axis=4, tile_world_size=10.0)


@pytest.fixture
def small_config() -> GenerationConfig:
    """2x2 tiles, 4 vertices per axis, one village of radius 2, seed 42."""
    return GenerationConfig(
        seed=42,
        layout=LayoutConfig(width_tiles=2, depth_tiles=2, verts_per_axis=4),
        noise=NoiseConfig(level_scale=10.0),
        villages=VillageConfig(count=1, radius_tiles=2.0),
    )


@pytest.fixture
def medium_config() -> GenerationConfig:
    """4x4 tiles of 8x8 vertices with two villages."""
    return GenerationConfig(
        seed=7,
        layout=LayoutConfig(width_tiles=4, depth_tiles=4, verts_per_axis=8),
        noise=NoiseConfig(level_scale=15.0),
        villages=VillageConfig(count=2, radius_tiles=3.0),
    )


@pytest.fixture
def small_level(small_config: GenerationConfig) -> LevelData:
    """Level generated from small_config."""
    return generate_level(small_config)


@pytest.fixture
def medium_level(medium_config: GenerationConfig) -> LevelData:
    """Level generated from medium_config."""
    return generate_level(medium_config)


@pytest.fixture
def flat_ground():
    """Factory for ground samplers returning a constant elevation."""

    def make(height: float):
        def sample(x: float, z: float) -> float:
            return height

        return sample

    return make
