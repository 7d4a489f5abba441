"""Settlement placement: village sites, house packing and furniture scatter.

Villages are discs on dry ground. Houses are packed inside each disc by
rejection sampling with area-uniform candidate points; furniture is then
scattered on free vertices of the disc. Every vertex within a village radius
(plus a grace margin) is excluded from biome prop placement.
"""

import math
from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray

from ..exceptions import ConfigurationError
from ..types import WorldPoint
from .config import HouseColorSet, HouseFootprint, VillageConfig
from .ground import GroundSampler, ground_height
from .grid import TileGrid
from .masks import build_exclusion_mask, disc_mask
from .tiles import LevelData

logger = structlog.get_logger()

# Perimeter points checked around a village center, in addition to the center
DRY_PERIMETER_POINTS = 8


@dataclass(frozen=True)
class PlacedHouse:
    """A house placed inside a village."""

    position: WorldPoint
    prefab: str
    radius: float
    exclusion_radius: float
    yaw_degrees: float
    scale: float

    def overlaps(self, position: WorldPoint, radius: float) -> bool:
        """Whether a footprint at ``position`` would intersect this house."""
        return self.position.distance_xz(position) < self.radius + radius


@dataclass(frozen=True)
class PlacedFurniture:
    """A furniture prop placed on a free village vertex."""

    position: WorldPoint
    prefab: str
    yaw_degrees: float
    scale: float
    row: int
    col: int


@dataclass
class Village:
    """A settlement disc and the houses packed into it."""

    origin: WorldPoint
    radius: float
    color_set: HouseColorSet
    houses: list[PlacedHouse] = field(default_factory=list)
    furniture: list[PlacedFurniture] = field(default_factory=list)


@dataclass(frozen=True)
class PlacementShortfall:
    """Fewer villages or houses were placed than requested.

    This is a diagnostic, not an error: generation continues with what
    could be placed.
    """

    kind: str
    requested: int
    placed: int
    village_index: int | None = None

    def __str__(self) -> str:
        where = f" in village {self.village_index}" if self.village_index is not None else ""
        return f"placed {self.placed}/{self.requested} {self.kind}{where}"


@dataclass
class SettlementLayout:
    """Result of settlement placement."""

    villages: list[Village]
    village_mask: NDArray[np.bool_]
    exclusion_mask: NDArray[np.bool_]
    shortfalls: list[PlacementShortfall] = field(default_factory=list)

    @property
    def houses(self) -> list[PlacedHouse]:
        return [house for village in self.villages for house in village.houses]

    @property
    def furniture(self) -> list[PlacedFurniture]:
        return [item for village in self.villages for item in village.furniture]


def is_dry_circle(
    sampler: GroundSampler,
    center: WorldPoint,
    radius: float,
    dry_elevation: float,
    miss_height: float = 0.0,
) -> bool:
    """Check the center and evenly spaced perimeter points are above water.

    Every sampled ground height must be strictly greater than
    ``dry_elevation``; a missed sample counts as ``miss_height``.
    """
    points = [(center.x, center.z)]
    for k in range(DRY_PERIMETER_POINTS):
        angle = 2.0 * math.pi * k / DRY_PERIMETER_POINTS
        points.append(
            (center.x + radius * math.cos(angle), center.z + radius * math.sin(angle))
        )

    for x, z in points:
        if ground_height(sampler, x, z, miss_height) <= dry_elevation:
            return False
    return True


def sample_house_offset(radius: float, rng: np.random.Generator) -> tuple[float, float, float]:
    """Draw an area-uniform point inside a disc.

    Args:
        radius: Disc radius.
        rng: Random number generator.

    Returns:
        Tuple of (dx, dz, distance) relative to the disc center.
    """
    distance = radius * math.sqrt(rng.random())
    angle = 2.0 * math.pi * rng.random()
    return distance * math.cos(angle), distance * math.sin(angle), distance


def choose_village_sites(
    grid: TileGrid,
    sampler: GroundSampler,
    config: VillageConfig,
    rng: np.random.Generator,
) -> tuple[list[tuple[WorldPoint, float]], int]:
    """Find dry village centers and radii.

    Candidate centers are tile corners; each candidate gets a random radius
    around ``radius_tiles`` vertex spacings.

    Returns:
        Tuple of ((center, radius) sites, attempts used).
    """
    low, high = config.radius_multiplier_range
    sites: list[tuple[WorldPoint, float]] = []
    attempts = 0

    while len(sites) < config.count and attempts < config.max_global_attempts:
        attempts += 1
        tile_row = int(rng.integers(grid.depth_tiles))
        tile_col = int(rng.integers(grid.width_tiles))
        corner = grid.tile_origin(tile_row, tile_col)
        radius = config.radius_tiles * rng.uniform(low, high) * grid.vertex_spacing

        if is_dry_circle(sampler, corner, radius, config.dry_elevation, config.ground_miss_height):
            center = corner.with_height(
                ground_height(sampler, corner.x, corner.z, config.ground_miss_height)
            )
            sites.append((center, radius))
            logger.debug(
                "village_site_found",
                x=center.x,
                z=center.z,
                radius=radius,
                attempt=attempts,
            )

    return sites, attempts


def pack_houses(
    village: Village,
    placed: list[PlacedHouse],
    sampler: GroundSampler,
    config: VillageConfig,
    rng: np.random.Generator,
) -> None:
    """Rejection-sample houses into a village.

    A candidate is rejected when its footprint reaches past the village
    radius or intersects any house in ``placed``. Accepted houses are added
    to both the village and ``placed``.
    """
    footprints: list[HouseFootprint] = village.color_set.houses

    for _ in range(config.max_house_attempts):
        dx, dz, distance = sample_house_offset(village.radius, rng)
        footprint = footprints[int(rng.integers(len(footprints)))]

        if distance + footprint.radius > village.radius:
            continue

        candidate = village.origin.offset_xz(dx, dz)
        if any(house.overlaps(candidate, footprint.radius) for house in placed):
            continue

        y = ground_height(sampler, candidate.x, candidate.z, config.ground_miss_height)
        house = PlacedHouse(
            position=candidate.with_height(y),
            prefab=footprint.prefab,
            radius=footprint.radius,
            exclusion_radius=footprint.radius * config.exclusion_multiplier,
            yaw_degrees=float(rng.uniform(0.0, 360.0)),
            scale=config.house_scale,
        )
        village.houses.append(house)
        placed.append(house)


def scatter_furniture(
    village: Village,
    grid: TileGrid,
    sampler: GroundSampler,
    config: VillageConfig,
    rng: np.random.Generator,
) -> NDArray[np.bool_]:
    """Mark the village's vertices and scatter furniture on the free ones.

    Returns:
        Boolean mask of vertices within the village radius.
    """
    mask = disc_mask(grid, village.origin, village.radius)
    if not config.furniture_prefabs:
        return mask

    for row, col in np.argwhere(mask):
        position = grid.vertex_world_position(int(row), int(col))
        blocked = any(
            house.position.distance_xz(position) < house.exclusion_radius + config.house_clearance
            for house in village.houses
        )
        if blocked or rng.random() >= config.furniture_density:
            continue

        prefab = config.furniture_prefabs[int(rng.integers(len(config.furniture_prefabs)))]
        y = ground_height(sampler, position.x, position.z, config.ground_miss_height)
        village.furniture.append(
            PlacedFurniture(
                position=position.with_height(y),
                prefab=prefab,
                yaw_degrees=float(rng.uniform(0.0, 360.0)),
                scale=config.house_scale,
                row=int(row),
                col=int(col),
            )
        )

    return mask


def place_settlements(
    level: LevelData,
    config: VillageConfig,
    sample_ground_height: GroundSampler,
    rng: np.random.Generator,
) -> SettlementLayout:
    """Place villages, their houses and furniture on a generated level.

    Args:
        level: Generated level.
        config: Village placement configuration.
        sample_ground_height: Ground elevation at world (x, z); None (or
            raising GroundSampleMiss) means no surface.
        rng: Random number generator.

    Returns:
        SettlementLayout with villages, masks and any placement shortfalls.

    Raises:
        ConfigurationError: If villages are requested without house color sets.
    """
    grid = level.grid
    color_sets = config.color_sets
    if config.count > 0:
        if not color_sets:
            raise ConfigurationError("Villages requested but no house color sets configured")
        empty = [cs.name for cs in color_sets if not cs.houses]
        if empty:
            raise ConfigurationError(f"House color sets without houses: {empty}")

    logger.info("placing_settlements", requested=config.count)

    sites, attempts = choose_village_sites(grid, sample_ground_height, config, rng)
    shortfalls: list[PlacementShortfall] = []
    if len(sites) < config.count:
        shortfall = PlacementShortfall(
            kind="villages", requested=config.count, placed=len(sites)
        )
        logger.warning("village_shortfall", detail=str(shortfall), attempts=attempts)
        shortfalls.append(shortfall)

    start = int(rng.integers(len(color_sets))) if color_sets else 0
    villages = [
        Village(origin=center, radius=radius, color_set=color_sets[(start + i) % len(color_sets)])
        for i, (center, radius) in enumerate(sites)
    ]

    placed: list[PlacedHouse] = []
    village_mask = np.zeros(grid.shape, dtype=bool)

    for i, village in enumerate(villages):
        pack_houses(village, placed, sample_ground_height, config, rng)
        if not village.houses:
            shortfall = PlacementShortfall(
                kind="houses", requested=1, placed=0, village_index=i
            )
            logger.warning("house_shortfall", detail=str(shortfall))
            shortfalls.append(shortfall)

        village_mask |= scatter_furniture(village, grid, sample_ground_height, config, rng)

        logger.debug(
            "village_placed",
            index=i,
            color_set=village.color_set.name,
            houses=len(village.houses),
            furniture=len(village.furniture),
        )

    grace = config.grace_tiles * grid.vertex_spacing
    exclusion_mask = build_exclusion_mask(
        grid, [(v.origin, v.radius) for v in villages], grace
    )

    logger.info(
        "settlements_placed",
        villages=len(villages),
        houses=len(placed),
        furniture=sum(len(v.furniture) for v in villages),
    )

    return SettlementLayout(
        villages=villages,
        village_mask=village_mask,
        exclusion_mask=exclusion_mask,
        shortfalls=shortfalls,
    )
