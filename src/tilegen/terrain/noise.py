"""Noise generation functions for level generation.

Provides a stateless lattice value noise and its multi-octave sum. Every
function here is a pure function of its numeric inputs, so regenerating a
level with the same octave seeds reproduces it exactly.
"""

from typing import TYPE_CHECKING, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from .octaves import Octave

_MASK32 = np.uint64(0xFFFFFFFF)
_PRIME_X = np.uint64(374761393)
_PRIME_Z = np.uint64(668265263)
_PRIME_MIX = np.uint64(1274126177)
_SHIFT_A = np.uint64(13)
_SHIFT_B = np.uint64(16)


def _lattice_value(ix: NDArray[np.int64], iz: NDArray[np.int64]) -> NDArray[np.float64]:
    """Hash integer lattice coordinates to a value in [0, 1).

    Products are kept below 2**63 by masking to 32 bits between steps.
    """
    hx = (ix & 0xFFFFFFFF).astype(np.uint64)
    hz = (iz & 0xFFFFFFFF).astype(np.uint64)

    h = (hx * _PRIME_X + hz * _PRIME_Z) & _MASK32
    h = ((h ^ (h >> _SHIFT_A)) * _PRIME_MIX) & _MASK32
    h = h ^ (h >> _SHIFT_B)

    return h.astype(np.float64) / 4294967296.0


def value_noise(x: ArrayLike, z: ArrayLike) -> NDArray[np.float64]:
    """Evaluate 2D value noise at arbitrary coordinates.

    Random values sit on the integer lattice and are blended with a
    smoothstep fade, giving a continuous, C1-smooth field.

    Args:
        x: X coordinates (scalar or array).
        z: Z coordinates, broadcastable against x.

    Returns:
        Noise values in [0, 1) with the broadcast shape of x and z.
    """
    x = np.asarray(x, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)

    x0 = np.floor(x)
    z0 = np.floor(z)
    tx = smoothstep(0.0, 1.0, x - x0)
    tz = smoothstep(0.0, 1.0, z - z0)

    ix = x0.astype(np.int64)
    iz = z0.astype(np.int64)

    v00 = _lattice_value(ix, iz)
    v10 = _lattice_value(ix + 1, iz)
    v01 = _lattice_value(ix, iz + 1)
    v11 = _lattice_value(ix + 1, iz + 1)

    near = v00 + tx * (v10 - v00)
    far = v01 + tx * (v11 - v01)
    return near + tz * (far - near)


def check_octaves(octaves: Sequence["Octave"]) -> float:
    """Validate an octave set and return its amplitude sum.

    Raises:
        ConfigurationError: If the set is empty, an amplitude is negative,
            or the amplitudes sum to zero.
    """
    if len(octaves) == 0:
        raise ConfigurationError("Octave set is empty")

    norm = 0.0
    for i, octave in enumerate(octaves):
        if octave.amplitude < 0:
            raise ConfigurationError(
                f"Octave {i} has negative amplitude {octave.amplitude}"
            )
        norm += octave.amplitude

    if norm <= 0:
        raise ConfigurationError("Octave amplitudes sum to zero")
    return norm


def sample_noise(
    x: ArrayLike,
    z: ArrayLike,
    octaves: Sequence["Octave"],
    scale: float = 1.0,
) -> NDArray[np.float32]:
    """Sum octaves of value noise at world positions.

    Each octave is evaluated at ``(x / scale * frequency + seed,
    z / scale * frequency + seed)`` and weighted by its amplitude; the sum is
    divided by the total amplitude.

    Args:
        x: World X coordinates.
        z: World Z coordinates, broadcastable against x.
        octaves: Octaves to sum.
        scale: World units per noise unit.

    Returns:
        float32 array of noise values in [0, 1].

    Raises:
        ConfigurationError: If the octave set is invalid or scale <= 0.
    """
    norm = check_octaves(octaves)
    if scale <= 0:
        raise ConfigurationError(f"Noise scale must be positive, got {scale}")

    sx = np.asarray(x, dtype=np.float64) / scale
    sz = np.asarray(z, dtype=np.float64) / scale

    total = np.zeros(np.broadcast(sx, sz).shape, dtype=np.float64)
    for octave in octaves:
        total += octave.amplitude * value_noise(
            sx * octave.frequency + octave.seed,
            sz * octave.frequency + octave.seed,
        )

    return (total / norm).astype(np.float32)


def noise_grid(
    rows: int,
    cols: int,
    octaves: Sequence["Octave"],
    scale: float,
    offset_row: float = 0.0,
    offset_col: float = 0.0,
) -> NDArray[np.float32]:
    """Sample octave noise over a grid of vertex indices.

    Cell ``[r, c]`` is sampled at ``x = c + offset_col``, ``z = r + offset_row``.

    Returns:
        2D array of shape (rows, cols) in [0, 1].
    """
    zs = np.arange(rows, dtype=np.float64)[:, None] + offset_row
    xs = np.arange(cols, dtype=np.float64)[None, :] + offset_col
    return sample_noise(xs, zs, octaves, scale)


def smoothstep(edge0: float, edge1: float, x: NDArray[np.float32]) -> NDArray[np.float32]:
    """Smooth Hermite interpolation between 0 and 1.

    Args:
        edge0: Lower edge of transition.
        edge1: Upper edge of transition.
        x: Input values.

    Returns:
        Smoothly interpolated values in [0, 1].
    """
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)
