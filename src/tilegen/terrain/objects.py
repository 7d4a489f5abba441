"""Object placement: biome props scattered with noise-driven clumping."""

from dataclasses import dataclass
from typing import Callable

import numpy as np
import structlog
from numpy.typing import NDArray

from ..types import WorldPoint
from .classification import NO_BIOME
from .config import Biome, BiomeObjectSettings, ObjectPlacementConfig
from .noise import noise_grid
from .octaves import Octave
from .tiles import LevelData

logger = structlog.get_logger()

# Receives (position, biome, prefab_id, yaw_degrees) for every spawned prop
PlacementCallback = Callable[[WorldPoint, Biome, str, float], None]


@dataclass(frozen=True)
class PlacedObject:
    """A placed prop with its world position and source vertex."""

    position: WorldPoint
    prefab_id: str
    yaw_degrees: float
    biome: str
    row: int
    col: int
    scale: float = 1.0


def bias_field(
    rows: int,
    cols: int,
    seed: float,
    scale: float,
) -> NDArray[np.float32]:
    """Single-octave clumping noise sampled at ``(col / scale, row / scale)``."""
    return noise_grid(rows, cols, [Octave(seed=seed, frequency=1.0, amplitude=1.0)], scale)


def spawn_objects(
    level: LevelData,
    exclusion_mask: NDArray[np.bool_],
    placement_callback: PlacementCallback | None,
    config: ObjectPlacementConfig,
    rng: np.random.Generator,
    road_mask: NDArray[np.bool_] | None = None,
    level_scale: float = 20.0,
) -> list[PlacedObject]:
    """Scatter biome props over every free land vertex.

    Each vertex outside the exclusion (and road) mask that has a biome with
    configured prefabs spawns a prop with probability
    ``density * global_density * bias``. Biomes without settings or with no
    prefabs are skipped.

    Args:
        level: Generated level.
        exclusion_mask: Global boolean grid; True blocks placement.
        placement_callback: Called for every spawned prop, may be None.
        config: Object placement configuration.
        rng: Random number generator.
        road_mask: Optional global boolean grid of road vertices.
        level_scale: Scale of the clumping noise.

    Returns:
        List of placed objects in row-major vertex order.
    """
    grid = level.grid
    if exclusion_mask.shape != grid.shape:
        raise ValueError(
            f"Exclusion mask shape {exclusion_mask.shape} does not match level {grid.shape}"
        )

    blocked = exclusion_mask.copy()
    if road_mask is not None:
        blocked |= road_mask

    biomes = level.stitch("biomes")
    mesh_heights = level.stitch("mesh_heights")
    bias = bias_field(grid.rows, grid.cols, config.bias_seed, level_scale)

    settings: dict[int, BiomeObjectSettings | None] = {
        i: config.settings_for(biome.name) for i, biome in enumerate(level.biome_list)
    }

    placed: list[PlacedObject] = []
    skipped = 0

    for row in range(grid.rows):
        for col in range(grid.cols):
            biome_index = int(biomes[row, col])
            if blocked[row, col] or biome_index == NO_BIOME:
                continue

            biome_settings = settings[biome_index]
            if biome_settings is None or not biome_settings.prefabs:
                skipped += 1
                continue

            p = biome_settings.density * config.global_density * float(bias[row, col])
            if rng.random() >= p:
                continue

            prefab = biome_settings.prefabs[int(rng.integers(len(biome_settings.prefabs)))]
            yaw = float(rng.uniform(0.0, 360.0))
            position = grid.vertex_world_position(row, col).with_height(
                grid.origin.y + float(mesh_heights[row, col])
            )
            biome = level.biome_list[biome_index]

            if placement_callback is not None:
                placement_callback(position, biome, prefab, yaw)

            placed.append(
                PlacedObject(
                    position=position,
                    prefab_id=prefab,
                    yaw_degrees=yaw,
                    biome=biome.name,
                    row=row,
                    col=col,
                    scale=config.object_scale,
                )
            )

    logger.info(
        "objects_spawned",
        count=len(placed),
        excluded=int(blocked.sum()),
        unconfigured=skipped,
    )
    return placed
