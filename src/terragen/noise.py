"""Noise functions for terrain generation.

Provides a vectorized 2D gradient noise primitive, fractal Brownian
motion (fBm) over it with seeded per-octave offsets, and coordinate
domain warping. All samplers accept scalars or numpy arrays and
broadcast like numpy ufuncs.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import NoiseConfig

# Ken Perlin's reference permutation, repeated to avoid index wrapping
_PERMUTATION = np.array([
    151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225,
    140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23, 190, 6, 148,
    247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32,
    57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68,
    175, 74, 165, 71, 134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111,
    229, 122, 60, 211, 133, 230, 220, 105, 92, 41, 55, 46, 245, 40, 244,
    102, 143, 54, 65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208,
    89, 18, 169, 200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198,
    173, 186, 3, 64, 52, 217, 226, 250, 124, 123, 5, 202, 38, 147, 118,
    126, 255, 82, 85, 212, 207, 206, 59, 227, 47, 16, 58, 17, 182, 189, 28,
    42, 223, 183, 170, 213, 119, 248, 152, 2, 44, 154, 163, 70, 221, 153,
    101, 155, 167, 43, 172, 9, 129, 22, 39, 253, 19, 98, 108, 110, 79, 113,
    224, 232, 178, 185, 112, 104, 218, 246, 97, 228, 251, 34, 242, 193,
    238, 210, 144, 12, 191, 179, 162, 241, 81, 51, 145, 235, 249, 14, 239,
    107, 49, 192, 214, 31, 181, 199, 106, 157, 184, 84, 204, 176, 115, 121,
    50, 45, 127, 4, 150, 254, 138, 236, 205, 93, 222, 114, 67, 29, 24, 72,
    243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
], dtype=np.int64)
_PERM = np.concatenate([_PERMUTATION, _PERMUTATION])

# Octave offsets are drawn as integers in [-OFFSET_RANGE, OFFSET_RANGE)
# and divided by OFFSET_DIVISOR before use.
OFFSET_RANGE = 100_000
OFFSET_DIVISOR = 10_000.0


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Perlin fade curve: 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _grad(
    hash_val: NDArray[np.int64],
    x: NDArray[np.float64],
    y: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Dot product with one of four diagonal gradients picked by hash."""
    h = hash_val & 3
    u = np.where(h & 1, -x, x)
    v = np.where(h & 2, -y, y)
    return u + v


def perlin(x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
    """Sample 2D gradient noise.

    The lattice is fixed (not seeded); callers decorrelate samples by
    offsetting coordinates.

    Args:
        x: Sample x coordinates.
        y: Sample y coordinates.

    Returns:
        Noise values in [0, 1], 0.5 on integer lattice points.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    x, y = np.broadcast_arrays(x, y)

    x0 = np.floor(x)
    y0 = np.floor(y)
    xf = x - x0
    yf = y - y0
    xi = x0.astype(np.int64) & 255
    yi = y0.astype(np.int64) & 255

    u = _fade(xf)
    v = _fade(yf)

    aa = _PERM[_PERM[xi] + yi]
    ab = _PERM[_PERM[xi] + yi + 1]
    ba = _PERM[_PERM[xi + 1] + yi]
    bb = _PERM[_PERM[xi + 1] + yi + 1]

    g_aa = _grad(aa, xf, yf)
    g_ba = _grad(ba, xf - 1.0, yf)
    g_ab = _grad(ab, xf, yf - 1.0)
    g_bb = _grad(bb, xf - 1.0, yf - 1.0)

    x1 = lerp(g_aa, g_ba, u)
    x2 = lerp(g_ab, g_bb, u)
    value = lerp(x1, x2, v)

    return np.clip((value + 1.0) * 0.5, 0.0, 1.0)


def octave_offsets(rng: np.random.Generator, octaves: int) -> NDArray[np.float64]:
    """Draw per-octave coordinate offsets.

    Args:
        rng: Generator for the octave-offset stream.
        octaves: Number of octaves.

    Returns:
        Array of shape (octaves, 2), drawn once per seed and reused for
        every later fBm call.
    """
    raw = rng.integers(-OFFSET_RANGE, OFFSET_RANGE, size=(octaves, 2))
    return raw.astype(np.float64) / OFFSET_DIVISOR


@dataclass(frozen=True)
class FractalNoise:
    """Fractal Brownian motion bound to one set of octave offsets."""

    offsets: NDArray[np.float64]
    base_frequency: float
    persistence: float
    lacunarity: float
    noise_scale: float

    @classmethod
    def from_config(
        cls, config: NoiseConfig, rng: np.random.Generator
    ) -> "FractalNoise":
        """Build a sampler, drawing its offsets from ``rng``."""
        return cls(
            offsets=octave_offsets(rng, config.octaves),
            base_frequency=config.base_frequency,
            persistence=config.persistence,
            lacunarity=config.lacunarity,
            noise_scale=config.noise_scale,
        )

    @property
    def octaves(self) -> int:
        return len(self.offsets)

    def __call__(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Sum the octaves at (x, y).

        Each octave samples at ``coord * noise_scale * frequency + offset``
        and the sum is divided by the total amplitude, so the result stays
        in [0, 1] for any octave count and persistence.

        Args:
            x: Sample x coordinates.
            y: Sample y coordinates.

        Returns:
            fBm values in [0, 1].
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        result = np.zeros(np.broadcast_shapes(x.shape, y.shape), dtype=np.float64)

        amplitude = 1.0
        frequency = self.base_frequency
        max_amplitude = 0.0

        for offset_x, offset_y in self.offsets:
            sample_x = x * self.noise_scale * frequency + offset_x
            sample_y = y * self.noise_scale * frequency + offset_y
            result += amplitude * perlin(sample_x, sample_y)

            max_amplitude += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity

        return result / max_amplitude


def domain_warp(
    x: ArrayLike,
    y: ArrayLike,
    frequency: float,
    amplitude: float,
    shift: tuple[float, float] = (0.0, 0.0),
    y_offset: float = 100.0,
    centered: bool = False,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Perturb sample coordinates by a noise field.

    The x and y displacements sample the same noise field at coordinates
    separated by ``y_offset`` so they stay decorrelated.

    Args:
        x: Input x coordinates.
        y: Input y coordinates.
        frequency: Warp noise frequency.
        amplitude: Maximum displacement.
        shift: Extra coordinate shift applied to both noise samples.
        y_offset: Coordinate separation between the x and y warp samples.
        centered: Displace by ``noise - 0.5`` (both directions) instead of
            ``noise`` (positive only).

    Returns:
        Warped (x, y) coordinates.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    bias = 0.5 if centered else 0.0

    warp_x = perlin(x * frequency + shift[0], y * frequency + shift[1]) - bias
    warp_y = (
        perlin(
            x * frequency + y_offset + shift[0],
            y * frequency + y_offset + shift[1],
        )
        - bias
    )

    return x + warp_x * amplitude, y + warp_y * amplitude


def lerp(a: ArrayLike, b: ArrayLike, t: ArrayLike) -> NDArray[np.float64]:
    """Linear interpolation from a to b (t is not clamped)."""
    a = np.asarray(a, dtype=np.float64)
    return a + np.asarray(t, dtype=np.float64) * (np.asarray(b, dtype=np.float64) - a)

