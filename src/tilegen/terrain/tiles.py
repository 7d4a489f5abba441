"""Per-tile field synthesis: height, heat and moisture grids and their classification."""

from dataclasses import dataclass, fields
from typing import Callable

import numpy as np
import structlog
from numpy.typing import NDArray

from ..types import WorldPoint
from .classification import (
    NO_BIOME,
    classify_bands,
    classify_biome_grid,
    classify_grid,
    flatten_biomes,
)
from .config import Biome, TerrainConfig, TerrainType
from .grid import TileCoordinate, TileGrid
from .noise import sample_noise
from .octaves import OctaveSet

logger = structlog.get_logger()

# Receives (tile_row, tile_col, mesh_heights) for mesh displacement
MeshSink = Callable[[int, int, NDArray[np.float32]], None]


@dataclass(frozen=True)
class TileData:
    """Generated grids for one tile, indexed by local (mirrored) vertex index.

    All arrays are read-only once constructed.
    """

    tile_row: int
    tile_col: int
    origin: WorldPoint

    height: NDArray[np.float32]
    heat: NDArray[np.float32]
    moisture: NDArray[np.float32]
    display_height: NDArray[np.float32]

    height_types: NDArray[np.int16]
    heat_types: NDArray[np.int16]
    moisture_types: NDArray[np.int16]
    biomes: NDArray[np.int16]
    bands: NDArray[np.uint8]

    mesh_heights: NDArray[np.float32]

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, np.ndarray):
                value.flags.writeable = False


class LevelData:
    """All tiles of one generated level plus the tables used to classify them."""

    def __init__(
        self,
        grid: TileGrid,
        height_types: list[TerrainType],
        heat_types: list[TerrainType],
        moisture_types: list[TerrainType],
        biome_table: list[list[Biome]],
    ):
        self.grid = grid
        self.height_types = height_types
        self.heat_types = heat_types
        self.moisture_types = moisture_types
        self.biome_table = biome_table
        self.biome_list = flatten_biomes(biome_table)

        self.tiles: list[list[TileData | None]] = [
            [None] * grid.width_tiles for _ in range(grid.depth_tiles)
        ]

    def add_tile(self, tile: TileData) -> None:
        """Store a generated tile at its tile index."""
        self.tiles[tile.tile_row][tile.tile_col] = tile

    def tile(self, tile_row: int, tile_col: int) -> TileData:
        """Get a generated tile.

        Raises:
            KeyError: If the tile has not been generated.
        """
        tile = self.tiles[tile_row][tile_col]
        if tile is None:
            raise KeyError(f"Tile [{tile_row}, {tile_col}] not generated")
        return tile

    def is_complete(self) -> bool:
        """Whether every tile has been generated."""
        return all(tile is not None for row in self.tiles for tile in row)

    def locate(self, row: int, col: int) -> tuple[TileData, TileCoordinate]:
        """Tile and tile coordinate holding a global vertex."""
        coord = self.grid.to_tile_coordinate(row, col)
        return self.tile(coord.tile_row, coord.tile_col), coord

    def biome_at(self, row: int, col: int) -> Biome | None:
        """Biome at a global vertex, or None on water."""
        tile, coord = self.locate(row, col)
        value = int(tile.biomes[coord.local_row, coord.local_col])
        return None if value == NO_BIOME else self.biome_list[value]

    def stitch(self, name: str) -> NDArray:
        """Assemble one per-tile grid into a level-wide grid.

        The result is indexed by global (row, col), i.e. un-mirrored.

        Args:
            name: TileData field, e.g. "height" or "biomes".
        """
        v = self.grid.verts_per_axis
        first = getattr(self.tile(0, 0), name)
        result = np.empty(self.grid.shape, dtype=first.dtype)

        for tile_row in range(self.grid.depth_tiles):
            for tile_col in range(self.grid.width_tiles):
                block = getattr(self.tile(tile_row, tile_col), name)
                result[
                    tile_row * v : (tile_row + 1) * v,
                    tile_col * v : (tile_col + 1) * v,
                ] = block[::-1, ::-1]

        return result


def latitude_gradient(global_rows: NDArray[np.int64], total_rows: int) -> NDArray[np.float32]:
    """Uniform heat gradient: distance of each row from the level's center row.

    Args:
        global_rows: Global row index per local row.
        total_rows: Vertex rows across the whole level.

    Returns:
        1D array in [0, 1], 0 at the center row and 1 at the outermost rows.
    """
    center = (total_rows - 1) / 2.0
    if center <= 0:
        return np.zeros(len(global_rows), dtype=np.float32)
    return (np.abs(global_rows - center) / center).astype(np.float32)


class TileGenerator:
    """Synthesizes and classifies the grids of individual tiles."""

    def __init__(
        self,
        grid: TileGrid,
        octaves: OctaveSet,
        terrain: TerrainConfig,
        level_scale: float,
    ):
        self.grid = grid
        self.octaves = octaves
        self.terrain = terrain
        self.level_scale = level_scale

    def generate(
        self,
        tile_row: int,
        tile_col: int,
        mesh_sink: MeshSink | None = None,
    ) -> TileData:
        """Generate all grids for one tile.

        Args:
            tile_row: Tile row within the level.
            tile_col: Tile column within the level.
            mesh_sink: Optional receiver of the displaced mesh heights.

        Returns:
            TileData for the tile.
        """
        terrain = self.terrain
        xs, zs = self.grid.tile_world_coords(tile_row, tile_col)
        global_rows, _ = self.grid.tile_global_indices(tile_row, tile_col)
        x_grid = xs[None, :]
        z_grid = zs[:, None]

        height = sample_noise(x_grid, z_grid, self.octaves.height, self.level_scale)

        gradient = latitude_gradient(global_rows, self.grid.rows)[:, None]
        heat_noise = sample_noise(x_grid, z_grid, self.octaves.heat, self.level_scale)
        heat = (gradient * heat_noise + terrain.heat_curve(height) * height).astype(np.float32)

        moisture_noise = sample_noise(x_grid, z_grid, self.octaves.moisture, self.level_scale)
        moisture = (moisture_noise - terrain.moisture_curve(height) * height).astype(np.float32)

        # Only the classified copy is clamped; raw height drives the mesh
        if terrain.allow_water:
            display_height = height
        else:
            display_height = np.maximum(height, np.float32(terrain.water_threshold))

        height_types = classify_grid(display_height, terrain.height_types, terrain.allow_water)
        heat_types = classify_grid(heat, terrain.heat_types, terrain.allow_water)
        moisture_types = classify_grid(moisture, terrain.moisture_types, terrain.allow_water)
        biomes = classify_biome_grid(
            height_types,
            heat_types,
            moisture_types,
            terrain.height_types,
            terrain.heat_types,
            terrain.moisture_types,
            terrain.biomes,
        )
        bands = classify_bands(display_height, terrain.bands)

        mesh_heights = (terrain.height_curve(height) * terrain.height_multiplier).astype(
            np.float32
        )
        if mesh_sink is not None:
            mesh_sink(tile_row, tile_col, mesh_heights)

        logger.debug(
            "tile_generated",
            tile_row=tile_row,
            tile_col=tile_col,
            height_min=float(height.min()),
            height_max=float(height.max()),
        )

        return TileData(
            tile_row=tile_row,
            tile_col=tile_col,
            origin=self.grid.tile_origin(tile_row, tile_col),
            height=height,
            heat=heat,
            moisture=moisture,
            display_height=display_height,
            height_types=height_types,
            heat_types=heat_types,
            moisture_types=moisture_types,
            biomes=biomes,
            bands=bands,
            mesh_heights=mesh_heights,
        )
