"""Main level generation orchestration."""

from typing import NamedTuple

import numpy as np
import structlog
from numpy.typing import NDArray

from .classification import NO_BIOME
from .config import Biome, GenerationConfig, TerrainType, validate_config
from .ground import GroundSampler, HeightmapGroundSampler
from .grid import TileGrid
from .masks import build_road_mask
from .objects import PlacedObject, PlacementCallback, spawn_objects
from .octaves import OctaveSet
from .settlements import SettlementLayout, place_settlements
from .tiles import LevelData, MeshSink, TileGenerator

logger = structlog.get_logger()


class VertexClassification(NamedTuple):
    """Terrain types and biome of a single vertex."""

    height_type: TerrainType
    heat_type: TerrainType
    moisture_type: TerrainType
    biome: Biome | None


class GenerationResult:
    """Result of a full generation pass."""

    def __init__(
        self,
        config: GenerationConfig,
        level: LevelData,
        settlements: SettlementLayout,
        objects: list[PlacedObject],
        road_mask: NDArray[np.bool_] | None = None,
    ):
        self.config = config
        self.level = level
        self.settlements = settlements
        self.objects = objects
        self.road_mask = road_mask

    @property
    def exclusion_mask(self) -> NDArray[np.bool_]:
        """Vertices where props may not spawn: settlements plus roads."""
        if self.road_mask is None:
            return self.settlements.exclusion_mask
        return self.settlements.exclusion_mask | self.road_mask


def generate_level(
    config: GenerationConfig,
    rng: np.random.Generator | None = None,
    mesh_sink: MeshSink | None = None,
) -> LevelData:
    """Generate and classify every tile of a level.

    Args:
        config: Generation configuration.
        rng: Random number generator; seeded from ``config.seed`` if omitted.
        mesh_sink: Optional receiver of each tile's displaced mesh heights.

    Returns:
        LevelData holding every tile.

    Raises:
        ConfigurationError: If the configuration is invalid. Raised before
            any tile is generated.
    """
    validate_config(config)
    if rng is None:
        rng = np.random.default_rng(config.seed)

    grid = TileGrid.from_layout(config.layout)
    octaves = OctaveSet.build(
        height=config.noise.height_octaves,
        heat=config.noise.heat_octaves,
        moisture=config.noise.moisture_octaves,
        rng=rng,
    )

    terrain = config.terrain
    level = LevelData(
        grid,
        height_types=terrain.height_types,
        heat_types=terrain.heat_types,
        moisture_types=terrain.moisture_types,
        biome_table=terrain.biomes,
    )
    generator = TileGenerator(grid, octaves, terrain, config.noise.level_scale)

    logger.info(
        "generating_level",
        seed=config.seed,
        tiles=f"{grid.depth_tiles}x{grid.width_tiles}",
        verts_per_axis=grid.verts_per_axis,
    )

    for tile in grid.tiles():
        level.add_tile(generator.generate(tile.row, tile.col, mesh_sink))

    logger.info("level_generated", vertices=grid.rows * grid.cols)
    return level


def classify_vertex(level: LevelData, row: int, col: int) -> VertexClassification:
    """Look up the classification of a global vertex.

    Raises:
        IndexError: If the vertex is outside the level.
    """
    tile, coord = level.locate(row, col)
    r, c = coord.local_row, coord.local_col
    return VertexClassification(
        height_type=level.height_types[int(tile.height_types[r, c])],
        heat_type=level.heat_types[int(tile.heat_types[r, c])],
        moisture_type=level.moisture_types[int(tile.moisture_types[r, c])],
        biome=level.biome_at(row, col),
    )


def generate_world(
    config: GenerationConfig,
    sample_ground_height: GroundSampler | None = None,
    placement_callback: PlacementCallback | None = None,
    mesh_sink: MeshSink | None = None,
) -> GenerationResult:
    """Run a full pass: terrain, settlements, roads and props.

    One random generator seeded from ``config.seed`` drives every stage, so
    the same configuration always produces the same world.

    Args:
        config: Generation configuration.
        sample_ground_height: Ground elevation sampler; defaults to a
            heightmap lookup over the generated level.
        placement_callback: Called for every spawned prop.
        mesh_sink: Optional receiver of each tile's displaced mesh heights.

    Returns:
        GenerationResult with the level, settlements and props.
    """
    rng = np.random.default_rng(config.seed)

    level = generate_level(config, rng, mesh_sink)

    sampler = sample_ground_height or HeightmapGroundSampler(level)
    settlements = place_settlements(level, config.villages, sampler, rng)

    road_mask = None
    if config.roads.paths:
        road_mask = build_road_mask(level.grid, config.roads.paths, config.roads.half_width)
        logger.info(
            "roads_rasterised",
            paths=len(config.roads.paths),
            vertices=int(road_mask.sum()),
        )

    objects = spawn_objects(
        level,
        settlements.exclusion_mask,
        placement_callback,
        config.objects,
        rng,
        road_mask=road_mask,
        level_scale=config.noise.level_scale,
    )

    _log_terrain_stats(level)

    return GenerationResult(
        config=config,
        level=level,
        settlements=settlements,
        objects=objects,
        road_mask=road_mask,
    )


def terrain_stats(level: LevelData) -> dict[str, dict[str, int]]:
    """Count vertices per height type and per biome.

    Returns:
        Dict with "height_types" and "biomes" name -> count maps. Water
        vertices are counted under biome "none".
    """
    height_types = level.stitch("height_types")
    biomes = level.stitch("biomes")

    height_counts: dict[str, int] = {}
    for i, terrain_type in enumerate(level.height_types):
        count = int(np.sum(height_types == i))
        height_counts[terrain_type.name] = height_counts.get(terrain_type.name, 0) + count

    biome_counts: dict[str, int] = {"none": int(np.sum(biomes == NO_BIOME))}
    for i, biome in enumerate(level.biome_list):
        count = int(np.sum(biomes == i))
        biome_counts[biome.name] = biome_counts.get(biome.name, 0) + count

    return {"height_types": height_counts, "biomes": biome_counts}


def _log_terrain_stats(level: LevelData) -> None:
    """Log terrain generation statistics."""
    stats = terrain_stats(level)
    total = level.grid.rows * level.grid.cols

    logger.info("terrain_stats", vertices=total, height_types=stats["height_types"])
    logger.info(
        "biome_stats",
        biomes={name: count for name, count in stats["biomes"].items() if count > 0},
    )
