"""Terrain type, biome and height band classification."""

from enum import IntEnum
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ConfigurationError
from .config import Biome, TerrainBandConfig, TerrainType

WATER = "water"

# Biome grid value for vertices without a biome (water)
NO_BIOME = -1


class TerrainBand(IntEnum):
    """Height bands of the combined terrain view."""

    WATER = 0
    SAND = 1
    BIOME = 2
    MOUNTAIN = 3
    PEAK = 4


def is_water(terrain_type: TerrainType) -> bool:
    """Whether a terrain type is the special water type."""
    return terrain_type.name.lower() == WATER


def classify(
    value: float,
    types: Sequence[TerrainType],
    allow_water: bool = True,
) -> TerrainType:
    """Pick the terrain type for a single channel value.

    Types are scanned in order; the first whose threshold is strictly
    greater than the value wins. Water types are skipped when water is
    disallowed. If nothing matches, the last eligible type is returned.

    Raises:
        ConfigurationError: If the type table is empty.
    """
    return types[classify_index(value, types, allow_water)]


def classify_index(
    value: float,
    types: Sequence[TerrainType],
    allow_water: bool = True,
) -> int:
    """Position in ``types`` of the type chosen by :func:`classify`."""
    if not types:
        raise ConfigurationError("Terrain type table is empty")

    for i, terrain_type in enumerate(types):
        if not allow_water and is_water(terrain_type):
            continue
        if value < terrain_type.threshold:
            return i
    return _fallback_index(types, allow_water)


def _fallback_index(types: Sequence[TerrainType], allow_water: bool) -> int:
    """Last type satisfying the water rule, or the last type if none does."""
    for i in range(len(types) - 1, -1, -1):
        if allow_water or not is_water(types[i]):
            return i
    return len(types) - 1


def classify_grid(
    values: NDArray[np.float32],
    types: Sequence[TerrainType],
    allow_water: bool = True,
) -> NDArray[np.int16]:
    """Classify every cell of a value grid.

    Args:
        values: 2D array of channel values.
        types: Ordered terrain type table.
        allow_water: Whether water types may be chosen.

    Returns:
        int16 array of positions into ``types``, same shape as values.

    Raises:
        ConfigurationError: If the type table is empty.
    """
    if not types:
        raise ConfigurationError("Terrain type table is empty")

    values = np.asarray(values, dtype=np.float64)
    result = np.full(values.shape, _fallback_index(types, allow_water), dtype=np.int16)
    matched = np.zeros(values.shape, dtype=bool)

    for i, terrain_type in enumerate(types):
        if not allow_water and is_water(terrain_type):
            continue
        hit = ~matched & (values < terrain_type.threshold)
        result[hit] = i
        matched |= hit

    return result


def lookup_biome(
    biome_table: Sequence[Sequence[Biome]],
    moisture_index: int,
    heat_index: int,
) -> Biome:
    """Index the biome table by moisture row and heat column.

    Raises:
        ConfigurationError: If either index is outside the table.
    """
    if not 0 <= moisture_index < len(biome_table):
        raise ConfigurationError(
            f"Moisture index {moisture_index} outside biome table "
            f"with {len(biome_table)} rows"
        )
    row = biome_table[moisture_index]
    if not 0 <= heat_index < len(row):
        raise ConfigurationError(
            f"Heat index {heat_index} outside biome table row {moisture_index} "
            f"with {len(row)} columns"
        )
    return row[heat_index]


def classify_biome(
    height_type: TerrainType,
    heat_type: TerrainType,
    moisture_type: TerrainType,
    biome_table: Sequence[Sequence[Biome]],
) -> Biome | None:
    """Compose heat and moisture types into a biome.

    Returns:
        None where the height type is water, otherwise
        ``biome_table[moisture_type.index][heat_type.index]``.
    """
    if is_water(height_type):
        return None
    return lookup_biome(biome_table, moisture_type.index, heat_type.index)


def flatten_biomes(biome_table: Sequence[Sequence[Biome]]) -> list[Biome]:
    """Row-major list of the biome table, as indexed by biome grids."""
    return [biome for row in biome_table for biome in row]


def classify_biome_grid(
    height_idx: NDArray[np.int16],
    heat_idx: NDArray[np.int16],
    moisture_idx: NDArray[np.int16],
    height_types: Sequence[TerrainType],
    heat_types: Sequence[TerrainType],
    moisture_types: Sequence[TerrainType],
    biome_table: Sequence[Sequence[Biome]],
) -> NDArray[np.int16]:
    """Vectorized :func:`classify_biome` over classified grids.

    Returns:
        int16 array of positions into :func:`flatten_biomes`, with
        ``NO_BIOME`` on water.

    Raises:
        ConfigurationError: If the table is empty or a land vertex indexes
            outside it, while land vertices exist.
    """
    water_lut = np.array([is_water(t) for t in height_types], dtype=bool)
    row_lut = np.array([t.index for t in moisture_types], dtype=np.int64)
    col_lut = np.array([t.index for t in heat_types], dtype=np.int64)

    land = ~water_lut[height_idx]
    rows = row_lut[moisture_idx]
    cols = col_lut[heat_idx]

    if not biome_table:
        if np.any(land):
            raise ConfigurationError("Biome table is empty")
        return np.full(height_idx.shape, NO_BIOME, dtype=np.int16)

    row_lengths = np.array([len(row) for row in biome_table], dtype=np.int64)
    offsets = np.concatenate(([0], np.cumsum(row_lengths)[:-1])).astype(np.int64)

    row_ok = (rows >= 0) & (rows < len(biome_table))
    safe_rows = np.where(row_ok, rows, 0)
    in_range = row_ok & (cols >= 0) & (cols < row_lengths[safe_rows])

    bad = land & ~in_range
    if np.any(bad):
        r, c = np.argwhere(bad)[0]
        # Raises with the offending indices
        lookup_biome(biome_table, int(rows[r, c]), int(cols[r, c]))

    result = np.full(height_idx.shape, NO_BIOME, dtype=np.int16)
    result[land] = (offsets[safe_rows] + cols)[land]
    return result


def classify_bands(
    display_height: NDArray[np.float32],
    bands: TerrainBandConfig,
) -> NDArray[np.uint8]:
    """Assign each vertex a height band for the combined terrain view.

    Args:
        display_height: Height grid as used for display (clamped when water
            is disallowed).
        bands: Band thresholds.

    Returns:
        uint8 array of TerrainBand values.
    """
    display_height = np.asarray(display_height, dtype=np.float64)
    result = np.full(display_height.shape, TerrainBand.PEAK, dtype=np.uint8)
    result[display_height < bands.peak] = TerrainBand.MOUNTAIN
    result[display_height < bands.mountain] = TerrainBand.BIOME
    result[display_height < bands.sand] = TerrainBand.SAND
    result[display_height < bands.water] = TerrainBand.WATER
    return result
