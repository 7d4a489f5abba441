"""Post-generation validation of settlement and prop layouts."""

import itertools

import numpy as np
import structlog
from numpy.typing import NDArray

from .classification import NO_BIOME
from .generator import GenerationResult
from .objects import PlacedObject
from .settlements import SettlementLayout

logger = structlog.get_logger()

# Slack for floating point comparisons of world distances
_TOLERANCE = 1e-6


class ValidationResult:
    """Result of layout validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_layout(result: GenerationResult) -> ValidationResult:
    """Validate a generated world against its placement constraints.

    Args:
        result: Output of a generation pass.

    Returns:
        ValidationResult with any errors/warnings.
    """
    validation = ValidationResult()
    settlements = result.settlements
    house_clearance = result.config.villages.house_clearance

    # Check 1: No prop on an excluded vertex
    _check_excluded_props(result.objects, result.exclusion_mask, validation)

    # Check 2: No prop without a biome
    _check_prop_biomes(result.objects, result.level.stitch("biomes"), validation)

    # Check 3: Houses inside their village
    _check_houses_contained(settlements, validation)

    # Check 4: Houses do not overlap
    _check_houses_disjoint(settlements, validation)

    # Check 5: Furniture keeps clear of houses
    _check_furniture_clearance(settlements, house_clearance, validation)

    # Shortfalls are expected on hostile terrain
    for shortfall in settlements.shortfalls:
        validation.add_warning(f"Placement shortfall: {shortfall}")

    if validation.passed:
        logger.info("layout_validation_passed", warnings=len(validation.warnings))
    else:
        logger.warning("layout_validation_failed", errors=validation.errors)

    for warning in validation.warnings:
        logger.warning("layout_validation_warning", detail=warning)

    return validation


def _check_excluded_props(
    objects: list[PlacedObject],
    exclusion_mask: NDArray[np.bool_],
    result: ValidationResult,
) -> None:
    """Check no prop sits on an excluded vertex."""
    excluded = sum(1 for obj in objects if exclusion_mask[obj.row, obj.col])
    if excluded > 0:
        result.add_error(f"{excluded} props on excluded vertices")


def _check_prop_biomes(
    objects: list[PlacedObject],
    biomes: NDArray[np.int16],
    result: ValidationResult,
) -> None:
    """Check every prop sits on a vertex with a biome."""
    on_water = sum(1 for obj in objects if biomes[obj.row, obj.col] == NO_BIOME)
    if on_water > 0:
        result.add_error(f"{on_water} props on vertices without a biome")


def _check_houses_contained(
    settlements: SettlementLayout,
    result: ValidationResult,
) -> None:
    """Check every house footprint lies within its village radius."""
    for i, village in enumerate(settlements.villages):
        for house in village.houses:
            reach = village.origin.distance_xz(house.position) + house.radius
            if reach > village.radius + _TOLERANCE:
                result.add_error(
                    f"House {house.prefab} at {house.position} extends past village {i}"
                )


def _check_houses_disjoint(
    settlements: SettlementLayout,
    result: ValidationResult,
) -> None:
    """Check no two house footprints intersect."""
    overlaps = 0
    for a, b in itertools.combinations(settlements.houses, 2):
        if a.position.distance_xz(b.position) + _TOLERANCE < a.radius + b.radius:
            overlaps += 1

    if overlaps > 0:
        result.add_error(f"{overlaps} overlapping house pairs")


def _check_furniture_clearance(
    settlements: SettlementLayout,
    house_clearance: float,
    result: ValidationResult,
) -> None:
    """Check furniture stays outside every house's exclusion radius."""
    crowded = 0
    for village in settlements.villages:
        for item in village.furniture:
            if any(
                house.position.distance_xz(item.position)
                < house.exclusion_radius + house_clearance - _TOLERANCE
                for house in village.houses
            ):
                crowded += 1

    if crowded > 0:
        result.add_warning(f"{crowded} furniture props inside house exclusion zones")
