"""Tests for biome prop placement."""

import numpy as np
import pytest

from tilegen.terrain.classification import flatten_biomes
from tilegen.terrain.config import (
    BiomeObjectSettings,
    GenerationConfig,
    LayoutConfig,
    NoiseConfig,
    ObjectPlacementConfig,
    TerrainConfig,
)
from tilegen.terrain.generator import generate_level
from tilegen.terrain.objects import bias_field, spawn_objects
from tilegen.terrain.tiles import LevelData


@pytest.fixture
def land_level() -> LevelData:
    """4x4 tiles of 8x8 vertices with water disabled, so every vertex has a biome."""
    config = GenerationConfig(
        seed=21,
        layout=LayoutConfig(width_tiles=4, depth_tiles=4, verts_per_axis=8),
        noise=NoiseConfig(level_scale=15.0),
        terrain=TerrainConfig(allow_water=False),
    )
    return generate_level(config)


@pytest.fixture
def dense_config() -> ObjectPlacementConfig:
    """Every default biome spawns props at full density."""
    return ObjectPlacementConfig(
        biome_settings=[
            BiomeObjectSettings(
                biome_name=biome.name,
                prefabs=[f"{biome.name}_a", f"{biome.name}_b"],
                density=1.0,
            )
            for biome in flatten_biomes(TerrainConfig().biomes)
        ]
    )


def _no_exclusion(level: LevelData) -> np.ndarray:
    return np.zeros(level.grid.shape, dtype=bool)


class TestBiasField:
    """Tests for the clumping noise."""

    def test_shape_and_range(self) -> None:
        """Bias covers the grid with values in [0, 1]."""
        bias = bias_field(10, 14, seed=0.0, scale=5.0)
        assert bias.shape == (10, 14)
        assert bias.min() >= 0.0
        assert bias.max() <= 1.0

    def test_seed_changes_pattern(self) -> None:
        """Different seeds give different clumping."""
        assert not np.allclose(bias_field(8, 8, 0.0, 3.0), bias_field(8, 8, 57.3, 3.0))


class TestSpawnObjects:
    """Tests for spawn_objects."""

    def test_spawns_on_land(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """Props spawn with their biome's prefabs."""
        placed = spawn_objects(land_level, _no_exclusion(land_level), None, dense_config, rng)
        assert placed
        for obj in placed:
            biome = land_level.biome_at(obj.row, obj.col)
            assert biome is not None
            assert obj.biome == biome.name
            assert obj.prefab_id in (f"{biome.name}_a", f"{biome.name}_b")
            assert 0.0 <= obj.yaw_degrees < 360.0

    def test_no_prop_on_excluded_vertex(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """Excluded vertices never receive props."""
        mask = _no_exclusion(land_level)
        mask[:, : land_level.grid.cols // 2] = True
        placed = spawn_objects(land_level, mask, None, dense_config, rng)
        assert placed
        assert not any(mask[obj.row, obj.col] for obj in placed)

    def test_fully_excluded(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """A full exclusion mask places nothing."""
        mask = np.ones(land_level.grid.shape, dtype=bool)
        assert spawn_objects(land_level, mask, None, dense_config, rng) == []

    def test_road_mask_blocks(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """Road vertices are excluded too."""
        road = _no_exclusion(land_level)
        road[5:9, :] = True
        free = _no_exclusion(land_level)
        placed = spawn_objects(land_level, free, None, dense_config, rng, road_mask=road)
        assert not any(road[obj.row, obj.col] for obj in placed)

    def test_missing_settings_skipped(
        self,
        land_level: LevelData,
        rng: np.random.Generator,
    ) -> None:
        """Biomes without settings or prefabs are silently skipped."""
        config = ObjectPlacementConfig(
            biome_settings=[BiomeObjectSettings(biome_name="forest", prefabs=[], density=1.0)]
        )
        assert spawn_objects(land_level, _no_exclusion(land_level), None, config, rng) == []

    def test_zero_global_density(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """Global density scales every probability."""
        config = dense_config.model_copy(update={"global_density": 0.0})
        assert spawn_objects(land_level, _no_exclusion(land_level), None, config, rng) == []

    def test_callback_receives_every_prop(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """The placement callback sees each prop once, in order."""
        calls = []
        placed = spawn_objects(
            land_level,
            _no_exclusion(land_level),
            lambda position, biome, prefab, yaw: calls.append((position, biome.name, prefab, yaw)),
            dense_config,
            rng,
        )
        assert calls == [(o.position, o.biome, o.prefab_id, o.yaw_degrees) for o in placed]

    def test_position_on_mesh(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """Props sit at their vertex's world position and mesh height."""
        mesh = land_level.stitch("mesh_heights")
        placed = spawn_objects(land_level, _no_exclusion(land_level), None, dense_config, rng)
        for obj in placed[:20]:
            expected = land_level.grid.vertex_world_position(obj.row, obj.col)
            assert obj.position.x == pytest.approx(expected.x)
            assert obj.position.z == pytest.approx(expected.z)
            assert obj.position.y == pytest.approx(float(mesh[obj.row, obj.col]))

    def test_deterministic(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
    ) -> None:
        """The same seed gives the same props."""
        free = _no_exclusion(land_level)
        a = spawn_objects(land_level, free, None, dense_config, np.random.default_rng(2))
        b = spawn_objects(land_level, free, None, dense_config, np.random.default_rng(2))
        assert a == b

    def test_mask_shape_mismatch_raises(
        self,
        land_level: LevelData,
        dense_config: ObjectPlacementConfig,
        rng: np.random.Generator,
    ) -> None:
        """Masks must cover the level."""
        with pytest.raises(ValueError):
            spawn_objects(land_level, np.zeros((2, 2), dtype=bool), None, dense_config, rng)
