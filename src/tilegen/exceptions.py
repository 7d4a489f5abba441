"""Custom exceptions for level generation."""


class TilegenError(Exception):
    """Base exception for level generation errors."""

    pass


class ConfigurationError(TilegenError):
    """Raised when generation parameters cannot produce a valid level.

    Aborts the whole generation pass before any tile is built.
    """

    pass


class GroundSampleMiss(TilegenError):
    """Raised by a ground sampler when no surface exists at a position."""

    def __init__(self, x: float, z: float):
        super().__init__(f"No ground surface at ({x:.3f}, {z:.3f})")
        self.x = x
        self.z = z
