"""Octave sets: per-channel (seed, frequency, amplitude) noise layers."""

from dataclasses import dataclass, replace

import numpy as np

# Seeds are drawn uniformly from [0, SEED_RANGE)
SEED_RANGE = 10000.0


@dataclass(frozen=True)
class Octave:
    """One layer of noise at a given frequency, amplitude and seed."""

    seed: float
    frequency: float
    amplitude: float


def build_octaves(count: int, rng: np.random.Generator) -> list[Octave]:
    """Build a fractal octave set.

    Frequencies double and amplitudes halve per octave (1, 2, 4, ... and
    1, 0.5, 0.25, ...), each with a fresh random seed.

    Args:
        count: Number of octaves.
        rng: Random number generator.

    Returns:
        List of octaves ordered from lowest to highest frequency.
    """
    octaves = []
    for i in range(count):
        frequency = 2.0**i
        octaves.append(
            Octave(
                seed=float(rng.random() * SEED_RANGE),
                frequency=frequency,
                amplitude=1.0 / frequency,
            )
        )
    return octaves


def reseed(octaves: list[Octave], rng: np.random.Generator) -> list[Octave]:
    """Draw a new independent seed for every octave.

    Frequency and amplitude are preserved, so only the phase of the
    resulting noise changes.
    """
    return [replace(octave, seed=float(rng.random() * SEED_RANGE)) for octave in octaves]


@dataclass
class OctaveSet:
    """Octaves for the height, heat and moisture channels."""

    height: list[Octave]
    heat: list[Octave]
    moisture: list[Octave]

    @classmethod
    def build(
        cls,
        height: int,
        heat: int,
        moisture: int,
        rng: np.random.Generator,
    ) -> "OctaveSet":
        """Build all three channels with the given octave counts."""
        return cls(
            height=build_octaves(height, rng),
            heat=build_octaves(heat, rng),
            moisture=build_octaves(moisture, rng),
        )

    def reseed(self, rng: np.random.Generator) -> None:
        """Reseed every channel in place, keeping its structure."""
        self.height = reseed(self.height, rng)
        self.heat = reseed(self.heat, rng)
        self.moisture = reseed(self.moisture, rng)

