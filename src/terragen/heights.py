"""Elevation synthesis: warped fBm shaped into lowlands, hills and ridges."""

from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import ArrayLike, NDArray

from .exceptions import ConfigurationError
from .noise import FractalNoise, domain_warp, lerp
from .voronoi import VoronoiField

logger = structlog.get_logger()

WARP_FREQUENCY = 1.5
WARP_STRENGTH = 0.1
WARP_Y_OFFSET = 100.0

# Modulation fBm samples (x * scale + offset) on the unwarped coordinate
MODULATION_SCALE = 0.5
MODULATION_OFFSET = (5.2, 3.7)

HILLS_SCALE = 2.0
RIDGED_SCALE = 3.0

LOWLAND_LIMIT = 0.3
HILL_LIMIT = 0.6
RIDGE_BOOST = 1.2

# Rows sampled per block when filling a grid
ROW_BLOCK = 64


@dataclass(frozen=True)
class HeightSynthesizer:
    """Normalized elevation as a pure function of position.

    Args:
        fbm: Fractal noise sampler with the run's octave offsets.
        voronoi: Boundary field added as a structural perturbation.
        voronoi_weight: Scale of the Voronoi contribution.
    """

    fbm: FractalNoise
    voronoi: VoronoiField
    voronoi_weight: float = 0.1

    def __call__(self, nx: ArrayLike, ny: ArrayLike) -> NDArray[np.float64]:
        """Sample elevation at normalized grid coordinates.

        Args:
            nx: Column coordinates in [0, 1].
            ny: Row coordinates in [0, 1].

        Returns:
            Elevation in [0, 1].
        """
        nx = np.asarray(nx, dtype=np.float64)
        ny = np.asarray(ny, dtype=np.float64)

        warp_x, warp_y = domain_warp(
            nx, ny, WARP_FREQUENCY, WARP_STRENGTH, y_offset=WARP_Y_OFFSET
        )
        base_height = self.fbm(warp_x, warp_y)

        modulation = self.fbm(
            nx * MODULATION_SCALE + MODULATION_OFFSET[0],
            ny * MODULATION_SCALE + MODULATION_OFFSET[1],
        )
        base_height = base_height * lerp(0.5, 1.0, modulation)

        hills = np.abs(self.fbm(nx * HILLS_SCALE, ny * HILLS_SCALE))
        ridged = 1.0 - np.abs(self.fbm(nx * RIDGED_SCALE, ny * RIDGED_SCALE) * 2.0 - 1.0)

        combined = blend_bands(base_height, hills, ridged)
        combined = combined + self.voronoi(nx, ny) * self.voronoi_weight

        return np.clip(combined, 0.0, 1.0)


def blend_bands(
    base_height: NDArray[np.float64],
    hills: NDArray[np.float64],
    ridged: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Blend lowland, hill and ridge shapes by base elevation.

    Below 0.3 the base fades into hills, between 0.3 and 0.6 hills fade
    into ridges, and above 0.6 ridges are boosted up to 1.2x. The blend
    factor is the position of ``base_height`` within its band.

    Args:
        base_height: Modulated, warped fBm elevation.
        hills: Hill shape field.
        ridged: Ridge shape field.

    Returns:
        Blended elevation (not yet clamped).
    """
    lowland = lerp(base_height, hills, base_height / LOWLAND_LIMIT)
    hill = lerp(hills, ridged, (base_height - LOWLAND_LIMIT) / (HILL_LIMIT - LOWLAND_LIMIT))
    ridge = lerp(ridged, ridged * RIDGE_BOOST, (base_height - HILL_LIMIT) / (1.0 - HILL_LIMIT))

    return np.where(
        base_height < LOWLAND_LIMIT,
        lowland,
        np.where(base_height < HILL_LIMIT, hill, ridge),
    )


def generate_heightfield(
    synthesizer: HeightSynthesizer,
    resolution: int,
) -> NDArray[np.float32]:
    """Sample the synthesizer on the full (N+1) x (N+1) grid.

    Cell (row y, column x) samples normalized coordinate (x / N, y / N).
    Rows are independent; they are evaluated in blocks to bound memory.

    Args:
        synthesizer: Elevation sampler.
        resolution: Grid resolution N.

    Returns:
        Elevation array of shape (N+1, N+1), values in [0, 1].

    Raises:
        ConfigurationError: If resolution is not positive.
    """
    if resolution <= 0:
        raise ConfigurationError(f"Resolution must be positive, got {resolution}")

    size = resolution + 1
    coords = np.arange(size, dtype=np.float64) / resolution
    heights = np.empty((size, size), dtype=np.float32)

    for start in range(0, size, ROW_BLOCK):
        stop = min(start + ROW_BLOCK, size)
        ny, nx = np.meshgrid(coords[start:stop], coords, indexing="ij")
        heights[start:stop] = synthesizer(nx, ny)

    logger.debug(
        "heightfield_sampled",
        size=size,
        min=float(heights.min()),
        max=float(heights.max()),
        mean=float(heights.mean()),
    )
    return heights
