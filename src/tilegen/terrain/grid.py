"""Tile grid: mapping between level vertices, tiles and world positions.

A level is ``depth_tiles x width_tiles`` square tiles, each with
``verts_per_axis`` vertices per edge. Global vertex ``(row, col)`` sits at
world ``(origin.x + col * spacing, origin.z + row * spacing)``.

Inside a tile, vertex data is stored in mesh order, which runs opposite to
the world axes: global offset ``k`` within a tile is local index
``verts_per_axis - k - 1``. Every per-tile grid in this package uses that
local indexing.
"""

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ConfigurationError
from ..types import TileIndex, WorldPoint
from .config import LayoutConfig

# Tolerance when snapping world positions back onto tile boundaries
_BOUNDARY_EPSILON = 1e-9


@dataclass(frozen=True)
class TileCoordinate:
    """A vertex addressed by its tile and its (mirrored) index in that tile."""

    tile_row: int
    tile_col: int
    local_row: int
    local_col: int


class TileGrid:
    """Coordinate map for a level of square tiles."""

    def __init__(
        self,
        depth_tiles: int,
        width_tiles: int,
        verts_per_axis: int,
        tile_world_size: float = 10.0,
        origin: WorldPoint | None = None,
    ):
        if depth_tiles < 1 or width_tiles < 1:
            raise ConfigurationError(
                f"Level needs at least one tile, got {depth_tiles}x{width_tiles}"
            )
        if verts_per_axis < 1:
            raise ConfigurationError(f"Tiles need vertices, got {verts_per_axis}")
        if tile_world_size <= 0:
            raise ConfigurationError(f"Tile size must be positive, got {tile_world_size}")

        self.depth_tiles = depth_tiles
        self.width_tiles = width_tiles
        self.verts_per_axis = verts_per_axis
        self.tile_world_size = tile_world_size
        self.origin = origin if origin is not None else WorldPoint(x=0.0, z=0.0)

    @classmethod
    def from_layout(cls, layout: LayoutConfig) -> "TileGrid":
        """Build a grid from layout configuration."""
        ox, oy, oz = layout.origin
        return cls(
            depth_tiles=layout.depth_tiles,
            width_tiles=layout.width_tiles,
            verts_per_axis=layout.verts_per_axis,
            tile_world_size=layout.tile_world_size,
            origin=WorldPoint(x=ox, y=oy, z=oz),
        )

    @property
    def vertex_spacing(self) -> float:
        """World distance between neighbouring vertices."""
        return self.tile_world_size / self.verts_per_axis

    @property
    def rows(self) -> int:
        """Vertex rows across the whole level."""
        return self.depth_tiles * self.verts_per_axis

    @property
    def cols(self) -> int:
        """Vertex columns across the whole level."""
        return self.width_tiles * self.verts_per_axis

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    def to_tile_coordinate(self, row: int, col: int) -> TileCoordinate:
        """Convert a global vertex index to its tile and local index.

        Raises:
            IndexError: If the vertex is outside the level.
        """
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(f"Vertex ({row}, {col}) outside level {self.shape}")

        v = self.verts_per_axis
        return TileCoordinate(
            tile_row=row // v,
            tile_col=col // v,
            local_row=v - (row % v) - 1,
            local_col=v - (col % v) - 1,
        )

    def to_global(self, coord: TileCoordinate) -> tuple[int, int]:
        """Convert a tile coordinate back to its global vertex index."""
        v = self.verts_per_axis
        return (
            coord.tile_row * v + (v - coord.local_row - 1),
            coord.tile_col * v + (v - coord.local_col - 1),
        )

    def to_world_position(self, coord: TileCoordinate) -> WorldPoint:
        """World position of a vertex given by tile coordinate.

        ``origin + tile_index * tile_world_size + offset * vertex_spacing``,
        where offset is the vertex's un-mirrored position inside the tile.
        """
        v = self.verts_per_axis
        offset_row = v - coord.local_row - 1
        offset_col = v - coord.local_col - 1
        return WorldPoint(
            x=self.origin.x
            + coord.tile_col * self.tile_world_size
            + offset_col * self.vertex_spacing,
            y=self.origin.y,
            z=self.origin.z
            + coord.tile_row * self.tile_world_size
            + offset_row * self.vertex_spacing,
        )

    def vertex_world_position(self, row: int, col: int) -> WorldPoint:
        """World position of a global vertex."""
        return self.to_world_position(self.to_tile_coordinate(row, col))

    def tile_at_world(self, x: float, z: float) -> tuple[int, int]:
        """Tile (row, col) containing a world position.

        Raises:
            IndexError: If the position is outside the level.
        """
        tile_row = math.floor((z - self.origin.z) / self.tile_world_size + _BOUNDARY_EPSILON)
        tile_col = math.floor((x - self.origin.x) / self.tile_world_size + _BOUNDARY_EPSILON)
        if not (0 <= tile_row < self.depth_tiles and 0 <= tile_col < self.width_tiles):
            raise IndexError(f"World position ({x}, {z}) outside level")
        return tile_row, tile_col

    def tile_origin(self, tile_row: int, tile_col: int) -> WorldPoint:
        """World position of a tile's corner (its lowest x and z)."""
        return WorldPoint(
            x=self.origin.x + tile_col * self.tile_world_size,
            y=self.origin.y,
            z=self.origin.z + tile_row * self.tile_world_size,
        )

    def neighbours(self, tile_row: int, tile_col: int) -> list[TileIndex]:
        """Tiles sharing an edge with the given tile."""
        result = []
        for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            r, c = tile_row + dr, tile_col + dc
            if 0 <= r < self.depth_tiles and 0 <= c < self.width_tiles:
                result.append(TileIndex(row=r, col=c))
        return result

    def tiles(self) -> list[TileIndex]:
        """All tiles in row-major order."""
        return [
            TileIndex(row=r, col=c)
            for r in range(self.depth_tiles)
            for c in range(self.width_tiles)
        ]

    def tile_global_indices(
        self, tile_row: int, tile_col: int
    ) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """Global row/col index for each local row/col of a tile.

        Returns:
            Tuple of (rows, cols) 1D arrays of length verts_per_axis, where
            ``rows[local_row]`` is the global row of that local row.
        """
        v = self.verts_per_axis
        mirrored = v - 1 - np.arange(v, dtype=np.int64)
        return tile_row * v + mirrored, tile_col * v + mirrored

    def tile_world_coords(
        self, tile_row: int, tile_col: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """World X per local column and world Z per local row of a tile.

        Returns:
            Tuple of (xs, zs) 1D arrays, ready to broadcast as
            ``xs[None, :]`` and ``zs[:, None]``.
        """
        rows, cols = self.tile_global_indices(tile_row, tile_col)
        xs = self.origin.x + cols * self.vertex_spacing
        zs = self.origin.z + rows * self.vertex_spacing
        return xs, zs

    def level_world_coords(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """World X per global column and world Z per global row."""
        xs = self.origin.x + np.arange(self.cols, dtype=np.float64) * self.vertex_spacing
        zs = self.origin.z + np.arange(self.rows, dtype=np.float64) * self.vertex_spacing
        return xs, zs

    def contains_world(self, x: float, z: float) -> bool:
        """Whether a world position lies within the level's vertex span."""
        max_x = self.origin.x + (self.cols - 1) * self.vertex_spacing
        max_z = self.origin.z + (self.rows - 1) * self.vertex_spacing
        return self.origin.x <= x <= max_x and self.origin.z <= z <= max_z
