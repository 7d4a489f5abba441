"""Ground height sampling for placing settlements on generated terrain."""

from typing import Callable

import numpy as np
import structlog
from scipy.ndimage import map_coordinates

from ..exceptions import GroundSampleMiss
from .tiles import LevelData

logger = structlog.get_logger()

# Returns the ground elevation at world (x, z), or None where there is no surface
GroundSampler = Callable[[float, float], float | None]


class HeightmapGroundSampler:
    """Samples world elevation from a level's stitched mesh heights.

    Heights are bilinearly interpolated between vertices and offset by the
    level origin's Y. Positions outside the level's vertex span have no
    surface.
    """

    def __init__(self, level: LevelData):
        self.grid = level.grid
        self.heights = level.stitch("mesh_heights").astype(np.float64)

    def __call__(self, x: float, z: float) -> float | None:
        if not self.grid.contains_world(x, z):
            return None

        spacing = self.grid.vertex_spacing
        row = (z - self.grid.origin.z) / spacing
        col = (x - self.grid.origin.x) / spacing
        value = map_coordinates(self.heights, [[row], [col]], order=1, mode="nearest")
        return self.grid.origin.y + float(value[0])


def ground_height(
    sampler: GroundSampler,
    x: float,
    z: float,
    miss_height: float = 0.0,
) -> float:
    """Sample ground height, substituting ``miss_height`` where there is no surface."""
    try:
        value = sampler(x, z)
    except GroundSampleMiss:
        value = None

    if value is None:
        logger.debug("ground_sample_miss", x=x, z=z, fallback=miss_height)
        return miss_height
    return float(value)
