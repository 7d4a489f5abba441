"""Level generation configuration models."""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pydantic import BaseModel, Field, field_validator

from ..exceptions import ConfigurationError

Color = tuple[int, int, int]


class CurveConfig(BaseModel):
    """Piecewise-linear response curve defined by (input, output) keyframes.

    Inputs outside the keyframe range clamp to the first/last output.
    """

    keys: list[tuple[float, float]] = Field(
        default_factory=lambda: [(0.0, 0.0), (1.0, 1.0)],
        description="Keyframes as (input, output) pairs",
    )

    @field_validator("keys")
    @classmethod
    def _sorted_keys(cls, keys: list[tuple[float, float]]) -> list[tuple[float, float]]:
        if not keys:
            raise ValueError("curve needs at least one keyframe")
        return sorted(keys)

    def __call__(self, values: ArrayLike) -> NDArray[np.float32]:
        xs = [k[0] for k in self.keys]
        ys = [k[1] for k in self.keys]
        return np.interp(values, xs, ys).astype(np.float32)


class TerrainType(BaseModel, frozen=True):
    """A named threshold bucket for one noise channel."""

    name: str
    threshold: float = Field(description="Values strictly below this fall in this type")
    color: Color = (255, 255, 255)
    index: int = Field(default=0, description="Row/column used for biome lookup")


class Biome(BaseModel, frozen=True):
    """A biome selected by combining heat and moisture types."""

    name: str
    color: Color = (255, 255, 255)
    index: int = 0


class TerrainBandConfig(BaseModel):
    """Height bands used for the combined terrain view."""

    water: float = Field(default=0.30, description="Below this is water")
    sand: float = Field(default=0.35, description="Below this is sand")
    mountain: float = Field(default=0.70, description="Below this shows the biome")
    peak: float = Field(default=0.80, description="Below this is mountain face")


class LayoutConfig(BaseModel):
    """Tile layout of the level."""

    width_tiles: int = Field(default=10, description="Level width in tiles")
    depth_tiles: int = Field(default=10, description="Level depth in tiles")
    verts_per_axis: int = Field(default=11, description="Vertices along one tile edge")
    tile_world_size: float = Field(default=10.0, description="Tile edge in world units")
    origin: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0), description="World position of the level corner"
    )


class NoiseConfig(BaseModel):
    """Octave counts and sampling scale for the three channels."""

    level_scale: float = Field(default=20.0, description="World units per noise unit")
    height_octaves: int = Field(default=3, description="Octaves in the height channel")
    heat_octaves: int = Field(default=3, description="Octaves in the heat channel")
    moisture_octaves: int = Field(default=3, description="Octaves in the moisture channel")


def _default_height_types() -> list[TerrainType]:
    return [
        TerrainType(name="water", threshold=0.30, color=(40, 90, 200), index=0),
        TerrainType(name="sand", threshold=0.35, color=(194, 178, 128), index=1),
        TerrainType(name="grass", threshold=0.70, color=(80, 160, 60), index=2),
        TerrainType(name="mountain", threshold=0.80, color=(115, 115, 115), index=3),
        TerrainType(name="snow", threshold=1.00, color=(255, 255, 255), index=4),
    ]


def _default_heat_types() -> list[TerrainType]:
    return [
        TerrainType(name="cold", threshold=0.33, color=(120, 180, 255), index=0),
        TerrainType(name="temperate", threshold=0.66, color=(250, 220, 90), index=1),
        TerrainType(name="hot", threshold=1.00, color=(230, 80, 40), index=2),
    ]


def _default_moisture_types() -> list[TerrainType]:
    return [
        TerrainType(name="dry", threshold=0.33, color=(210, 180, 120), index=0),
        TerrainType(name="damp", threshold=0.66, color=(120, 200, 120), index=1),
        TerrainType(name="wet", threshold=1.00, color=(40, 100, 200), index=2),
    ]


def _default_biomes() -> list[list[Biome]]:
    names = [
        ["tundra", "grassland", "desert"],
        ["taiga", "forest", "savanna"],
        ["bog", "swamp", "rainforest"],
    ]
    colors = [
        [(200, 210, 220), (160, 200, 90), (235, 210, 140)],
        [(60, 110, 80), (40, 140, 50), (180, 180, 80)],
        [(90, 110, 100), (70, 100, 60), (20, 110, 40)],
    ]
    return [
        [
            Biome(name=name, color=colors[row][col], index=row * 3 + col)
            for col, name in enumerate(row_names)
        ]
        for row, row_names in enumerate(names)
    ]


class TerrainConfig(BaseModel):
    """Classification tables, response curves and elevation settings."""

    allow_water: bool = Field(default=True, description="Whether water may appear")
    water_threshold: float = Field(
        default=0.30, description="Classification floor for height when water is off"
    )
    height_multiplier: float = Field(default=12.0, description="Mesh height scale")

    height_curve: CurveConfig = Field(
        default_factory=lambda: CurveConfig(keys=[(0.0, 0.0), (0.3, 0.0), (1.0, 1.0)])
    )
    heat_curve: CurveConfig = Field(
        default_factory=lambda: CurveConfig(keys=[(0.0, 0.0), (1.0, 0.3)])
    )
    moisture_curve: CurveConfig = Field(
        default_factory=lambda: CurveConfig(keys=[(0.0, 0.0), (1.0, 0.4)])
    )

    height_types: list[TerrainType] = Field(default_factory=_default_height_types)
    heat_types: list[TerrainType] = Field(default_factory=_default_heat_types)
    moisture_types: list[TerrainType] = Field(default_factory=_default_moisture_types)
    biomes: list[list[Biome]] = Field(
        default_factory=_default_biomes,
        description="Rows indexed by moisture type, columns by heat type",
    )
    bands: TerrainBandConfig = Field(default_factory=TerrainBandConfig)


class HouseFootprint(BaseModel, frozen=True):
    """A house prefab and its bounding radius on the ground plane."""

    prefab: str
    radius: float = Field(default=1.0, description="Bounding radius in world units")


class HouseColorSet(BaseModel):
    """House prefabs sharing one roof color."""

    name: str
    houses: list[HouseFootprint] = Field(default_factory=list)


def _default_color_sets() -> list[HouseColorSet]:
    return [
        HouseColorSet(
            name=color,
            houses=[
                HouseFootprint(prefab=f"house_small_{color}", radius=0.4),
                HouseFootprint(prefab=f"house_large_{color}", radius=0.6),
            ],
        )
        for color in ("red", "blue", "green")
    ]


class VillageConfig(BaseModel):
    """Settlement placement parameters."""

    count: int = Field(default=3, description="Number of villages to place")
    radius_tiles: float = Field(default=4.0, description="Village radius in vertex spacings")
    radius_multiplier_range: tuple[float, float] = Field(
        default=(0.8, 1.2), description="Random radius factor range"
    )
    grace_tiles: float = Field(
        default=1.0, description="Extra prop-free margin in vertex spacings"
    )
    furniture_density: float = Field(
        default=0.3, description="Probability of furniture on a free village vertex"
    )
    max_house_attempts: int = Field(default=500, description="House attempts per village")
    max_global_attempts: int = Field(default=1000, description="Village center attempts")
    dry_elevation: float = Field(
        default=0.3, description="World elevation a village site must exceed"
    )
    house_scale: float = Field(default=2.5, description="Render scale for houses/furniture")
    exclusion_multiplier: float = Field(
        default=3.5, description="House radius multiplier for furniture avoidance"
    )
    house_clearance: float = Field(
        default=0.1, description="Extra clearance added to the exclusion radius"
    )
    ground_miss_height: float = Field(
        default=0.0, description="Elevation used when no ground is found"
    )
    color_sets: list[HouseColorSet] = Field(default_factory=_default_color_sets)
    furniture_prefabs: list[str] = Field(
        default_factory=lambda: ["barrel", "crate", "bench", "well"]
    )


class BiomeObjectSettings(BaseModel):
    """Prop prefabs and density for one biome."""

    biome_name: str = Field(description="Must match a biome name exactly")
    prefabs: list[str] = Field(default_factory=list)
    density: float = Field(default=0.1, description="Fraction of eligible vertices")


def _default_biome_objects() -> list[BiomeObjectSettings]:
    return [
        BiomeObjectSettings(biome_name="forest", prefabs=["oak", "birch"], density=0.4),
        BiomeObjectSettings(biome_name="taiga", prefabs=["pine", "spruce"], density=0.35),
        BiomeObjectSettings(biome_name="rainforest", prefabs=["palm", "fern"], density=0.5),
        BiomeObjectSettings(biome_name="swamp", prefabs=["willow", "reed"], density=0.25),
        BiomeObjectSettings(biome_name="grassland", prefabs=["bush", "flower"], density=0.1),
        BiomeObjectSettings(biome_name="savanna", prefabs=["acacia"], density=0.08),
        BiomeObjectSettings(biome_name="desert", prefabs=["cactus", "rock"], density=0.05),
        BiomeObjectSettings(biome_name="tundra", prefabs=["rock"], density=0.03),
    ]


class ObjectPlacementConfig(BaseModel):
    """Biome prop placement parameters."""

    global_density: float = Field(default=1.0, description="Multiplier on all densities")
    bias_seed: float = Field(default=0.0, description="Seed of the clumping noise")
    object_scale: float = Field(default=1.0, description="Render scale for all props")
    biome_settings: list[BiomeObjectSettings] = Field(default_factory=_default_biome_objects)

    def settings_for(self, biome_name: str) -> BiomeObjectSettings | None:
        """Return the first settings entry for a biome, if any."""
        for settings in self.biome_settings:
            if settings.biome_name == biome_name:
                return settings
        return None


class RoadConfig(BaseModel):
    """Road polylines in world X/Z, suppressing props along them."""

    paths: list[list[tuple[float, float]]] = Field(default_factory=list)
    half_width: float = Field(default=1.0, description="Half road width in world units")


class GenerationConfig(BaseModel):
    """Complete level generation configuration."""

    seed: int = Field(default=42, description="Random seed for reproducibility")

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    terrain: TerrainConfig = Field(default_factory=TerrainConfig)
    villages: VillageConfig = Field(default_factory=VillageConfig)
    objects: ObjectPlacementConfig = Field(default_factory=ObjectPlacementConfig)
    roads: RoadConfig = Field(default_factory=RoadConfig)


def validate_config(config: GenerationConfig) -> None:
    """Check a configuration can produce a level.

    Runs before any tile is built so a bad configuration aborts the whole
    pass.

    Raises:
        ConfigurationError: On the first problem found.
    """
    layout = config.layout
    if layout.width_tiles < 1 or layout.depth_tiles < 1:
        raise ConfigurationError(
            f"Level needs at least one tile, got {layout.depth_tiles}x{layout.width_tiles}"
        )
    if layout.verts_per_axis < 1:
        raise ConfigurationError(f"Tiles need vertices, got {layout.verts_per_axis}")
    if layout.tile_world_size <= 0:
        raise ConfigurationError(f"Tile size must be positive, got {layout.tile_world_size}")

    noise = config.noise
    if noise.level_scale <= 0:
        raise ConfigurationError(f"Noise scale must be positive, got {noise.level_scale}")
    for channel in ("height", "heat", "moisture"):
        count = getattr(noise, f"{channel}_octaves")
        if count < 1:
            raise ConfigurationError(f"{channel} channel needs at least one octave, got {count}")

    terrain = config.terrain
    for channel in ("height", "heat", "moisture"):
        if not getattr(terrain, f"{channel}_types"):
            raise ConfigurationError(f"{channel} terrain type table is empty")

    rows_needed = max(t.index for t in terrain.moisture_types) + 1
    cols_needed = max(t.index for t in terrain.heat_types) + 1
    if len(terrain.biomes) < rows_needed:
        raise ConfigurationError(
            f"Biome table has {len(terrain.biomes)} rows, moisture types need {rows_needed}"
        )
    for i, row in enumerate(terrain.biomes[:rows_needed]):
        if len(row) < cols_needed:
            raise ConfigurationError(
                f"Biome table row {i} has {len(row)} columns, heat types need {cols_needed}"
            )
    if any(t.index < 0 for t in terrain.heat_types + terrain.moisture_types):
        raise ConfigurationError("Heat and moisture type indices must be non-negative")

    villages = config.villages
    if villages.count > 0:
        if not villages.color_sets:
            raise ConfigurationError("Villages requested but no house color sets configured")
        for color_set in villages.color_sets:
            if not color_set.houses:
                raise ConfigurationError(f"House color set '{color_set.name}' has no houses")
    low, high = villages.radius_multiplier_range
    if low > high:
        raise ConfigurationError(f"Invalid village radius multiplier range ({low}, {high})")
