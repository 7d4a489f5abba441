"""Core value types shared by the generation pipeline."""

import math

from pydantic import BaseModel


class WorldPoint(BaseModel, frozen=True):
    """Immutable 3D world position. Y is up; X/Z span the ground plane."""

    x: float
    y: float = 0.0
    z: float

    def distance_xz(self, other: "WorldPoint") -> float:
        """Distance to another point projected onto the ground plane."""
        return math.hypot(self.x - other.x, self.z - other.z)

    def with_height(self, y: float) -> "WorldPoint":
        """Return a copy of this point at a different height."""
        return WorldPoint(x=self.x, y=y, z=self.z)

    def offset_xz(self, dx: float, dz: float) -> "WorldPoint":
        """Return a copy shifted along the ground plane."""
        return WorldPoint(x=self.x + dx, y=self.y, z=self.z + dz)

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"


class TileIndex(BaseModel, frozen=True):
    """Position of a tile within the level, in tiles."""

    row: int
    col: int

    def __str__(self) -> str:
        return f"[{self.row}, {self.col}]"
