"""Tests for ground height sampling."""

import pytest
from structlog.testing import capture_logs

from tilegen.exceptions import GroundSampleMiss
from tilegen.terrain.ground import HeightmapGroundSampler, ground_height
from tilegen.terrain.tiles import LevelData


class TestHeightmapGroundSampler:
    """Tests for the default heightmap sampler."""

    def test_exact_at_vertices(self, small_level: LevelData) -> None:
        """At a vertex the sample equals that vertex's mesh height."""
        sampler = HeightmapGroundSampler(small_level)
        mesh = small_level.stitch("mesh_heights")
        grid = small_level.grid
        for row, col in [(0, 0), (3, 5), (7, 7)]:
            position = grid.vertex_world_position(row, col)
            assert sampler(position.x, position.z) == pytest.approx(float(mesh[row, col]), abs=1e-5)

    def test_bilinear_between_vertices(self, small_level: LevelData) -> None:
        """Midway between two vertices the sample is their mean."""
        sampler = HeightmapGroundSampler(small_level)
        mesh = small_level.stitch("mesh_heights")
        a = small_level.grid.vertex_world_position(2, 2)
        b = small_level.grid.vertex_world_position(2, 3)
        expected = (float(mesh[2, 2]) + float(mesh[2, 3])) / 2
        assert sampler((a.x + b.x) / 2, a.z) == pytest.approx(expected, abs=1e-5)

    def test_outside_level_is_none(self, small_level: LevelData) -> None:
        """Positions outside the level have no surface."""
        sampler = HeightmapGroundSampler(small_level)
        assert sampler(-1.0, 0.0) is None
        assert sampler(0.0, 1000.0) is None


class TestGroundHeight:
    """Tests for miss handling."""

    def test_passes_value_through(self) -> None:
        """A found surface is returned as is."""
        assert ground_height(lambda x, z: 3.5, 0.0, 0.0) == 3.5

    def test_none_uses_miss_height(self) -> None:
        """None falls back to the miss height and logs."""
        with capture_logs() as logs:
            assert ground_height(lambda x, z: None, 1.0, 2.0, miss_height=-4.0) == -4.0
        assert logs[0]["event"] == "ground_sample_miss"
        assert logs[0]["x"] == 1.0

    def test_raised_miss_uses_miss_height(self) -> None:
        """A raised GroundSampleMiss falls back to the miss height."""

        def sampler(x: float, z: float) -> float:
            raise GroundSampleMiss(x, z)

        assert ground_height(sampler, 1.0, 2.0) == 0.0

    def test_other_errors_propagate(self) -> None:
        """Unrelated sampler errors are not swallowed."""

        def sampler(x: float, z: float) -> float:
            raise RuntimeError("broken")

        with pytest.raises(RuntimeError):
            ground_height(sampler, 0.0, 0.0)
