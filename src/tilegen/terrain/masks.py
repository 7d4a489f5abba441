"""Level-wide boolean masks suppressing prop placement."""

from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from ..types import WorldPoint
from .grid import TileGrid


def disc_mask(
    grid: TileGrid,
    center: WorldPoint,
    radius: float,
) -> NDArray[np.bool_]:
    """Vertices whose XZ distance to ``center`` is at most ``radius``.

    Returns:
        Boolean array of the level's global shape.
    """
    xs, zs = grid.level_world_coords()
    dx = xs[None, :] - center.x
    dz = zs[:, None] - center.z
    return dx * dx + dz * dz <= radius * radius


def build_exclusion_mask(
    grid: TileGrid,
    discs: Iterable[tuple[WorldPoint, float]],
    grace: float = 0.0,
) -> NDArray[np.bool_]:
    """Union of settlement discs, each widened by a grace margin.

    Args:
        grid: Level grid.
        discs: (center, radius) pairs.
        grace: World distance added to every radius.

    Returns:
        Boolean array, True where props must not spawn.
    """
    mask = np.zeros(grid.shape, dtype=bool)
    for center, radius in discs:
        mask |= disc_mask(grid, center, radius + grace)
    return mask


def build_road_mask(
    grid: TileGrid,
    paths: Sequence[Sequence[tuple[float, float]]],
    half_width: float,
) -> NDArray[np.bool_]:
    """Rasterise road polylines onto the vertex grid.

    A vertex is on a road when its distance to any path segment is at most
    ``half_width``. A single-point path marks a disc.

    Args:
        grid: Level grid.
        paths: Polylines of world (x, z) points.
        half_width: Half the road width in world units.

    Returns:
        Boolean array of the level's global shape.
    """
    xs, zs = grid.level_world_coords()
    px = np.broadcast_to(xs[None, :], grid.shape)
    pz = np.broadcast_to(zs[:, None], grid.shape)
    limit = half_width * half_width

    mask = np.zeros(grid.shape, dtype=bool)
    for path in paths:
        if len(path) == 0:
            continue
        points = list(path) if len(path) > 1 else [path[0], path[0]]
        for (ax, az), (bx, bz) in zip(points[:-1], points[1:]):
            mask |= _segment_distance_sq(px, pz, ax, az, bx, bz) <= limit
    return mask


def _segment_distance_sq(
    px: NDArray[np.float64],
    pz: NDArray[np.float64],
    ax: float,
    az: float,
    bx: float,
    bz: float,
) -> NDArray[np.float64]:
    """Squared distance from each point to segment AB."""
    dx = bx - ax
    dz = bz - az
    length_sq = dx * dx + dz * dz

    if length_sq == 0:
        t = np.zeros_like(px)
    else:
        t = np.clip(((px - ax) * dx + (pz - az) * dz) / length_sq, 0.0, 1.0)

    cx = ax + t * dx - px
    cz = az + t * dz - pz
    return cx * cx + cz * cz
