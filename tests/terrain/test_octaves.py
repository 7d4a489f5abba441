"""Tests for octave set construction and reseeding."""

import numpy as np
import pytest

from tilegen.terrain.octaves import SEED_RANGE, OctaveSet, build_octaves, reseed


class TestBuildOctaves:
    """Tests for build_octaves."""

    def test_frequencies_double(self) -> None:
        """Frequencies are powers of two."""
        octaves = build_octaves(4, np.random.default_rng(0))
        assert [o.frequency for o in octaves] == [1.0, 2.0, 4.0, 8.0]

    def test_amplitudes_halve(self) -> None:
        """Amplitude is the reciprocal of frequency."""
        octaves = build_octaves(4, np.random.default_rng(0))
        assert [o.amplitude for o in octaves] == [1.0, 0.5, 0.25, 0.125]

    def test_seeds_in_range(self) -> None:
        """Seeds are drawn from [0, SEED_RANGE)."""
        octaves = build_octaves(20, np.random.default_rng(0))
        assert all(0.0 <= o.seed < SEED_RANGE for o in octaves)

    def test_seeds_independent(self) -> None:
        """Each octave gets its own seed."""
        octaves = build_octaves(5, np.random.default_rng(0))
        assert len({o.seed for o in octaves}) == 5

    def test_deterministic(self) -> None:
        """Same generator state gives the same octaves."""
        assert build_octaves(3, np.random.default_rng(9)) == build_octaves(
            3, np.random.default_rng(9)
        )

    def test_zero_count(self) -> None:
        """Zero octaves gives an empty list."""
        assert build_octaves(0, np.random.default_rng(0)) == []


class TestReseed:
    """Tests for reseeding octaves."""

    def test_structure_preserved(self) -> None:
        """Frequency and amplitude survive a reseed."""
        rng = np.random.default_rng(3)
        octaves = build_octaves(3, rng)
        reseeded = reseed(octaves, rng)
        assert [(o.frequency, o.amplitude) for o in reseeded] == [
            (o.frequency, o.amplitude) for o in octaves
        ]

    def test_seeds_change(self) -> None:
        """Every octave gets a new seed."""
        rng = np.random.default_rng(3)
        octaves = build_octaves(3, rng)
        reseeded = reseed(octaves, rng)
        assert all(a.seed != b.seed for a, b in zip(octaves, reseeded))

    def test_input_unchanged(self) -> None:
        """Reseeding returns new octaves without mutating the input."""
        rng = np.random.default_rng(3)
        octaves = build_octaves(2, rng)
        before = list(octaves)
        reseed(octaves, rng)
        assert octaves == before


class TestOctaveSet:
    """Tests for the three-channel octave set."""

    def test_build_counts(self) -> None:
        """Each channel gets its configured octave count."""
        octaves = OctaveSet.build(height=4, heat=2, moisture=3, rng=np.random.default_rng(1))
        assert len(octaves.height) == 4
        assert len(octaves.heat) == 2
        assert len(octaves.moisture) == 3

    def test_channels_seeded_independently(self) -> None:
        """Channels do not share seeds."""
        octaves = OctaveSet.build(height=2, heat=2, moisture=2, rng=np.random.default_rng(1))
        seeds = [o.seed for o in octaves.height + octaves.heat + octaves.moisture]
        assert len(set(seeds)) == 6

    def test_reseed_in_place(self) -> None:
        """reseed replaces every channel's seeds, keeping counts."""
        rng = np.random.default_rng(1)
        octaves = OctaveSet.build(height=3, heat=2, moisture=1, rng=rng)
        old_height = list(octaves.height)

        octaves.reseed(rng)

        assert len(octaves.height) == 3
        assert len(octaves.heat) == 2
        assert len(octaves.moisture) == 1
        assert octaves.height[0].seed != old_height[0].seed
        assert octaves.height[0].frequency == pytest.approx(old_height[0].frequency)
