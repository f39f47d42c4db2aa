"""Texture blending: biome labels to per-biome splat weights."""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy import ndimage

from .config import Biome

logger = structlog.get_logger()

# Kernels wider than this radius are applied with FFT convolution
FFT_RADIUS_THRESHOLD = 8

FALLBACK_TILE_SIZE = 10.0


@dataclass(frozen=True)
class TerrainLayer:
    """Texture layer descriptor for one biome channel."""

    name: str
    texture: str | None
    color: tuple[float, float, float, float]
    tile_size: float = FALLBACK_TILE_SIZE
    metallic: float = 0.0
    smoothness: float = 0.0

    @property
    def is_fallback(self) -> bool:
        """True when the layer is a solid color standing in for a texture."""
        return self.texture is None


def build_layers(biomes: Sequence[Biome]) -> list[TerrainLayer]:
    """One layer per biome, in table order.

    Biomes without a texture get a solid-color layer of their fallback
    color instead of failing.
    """
    layers = []
    for biome in biomes:
        if biome.texture is None:
            logger.debug("fallback_layer", biome=biome.name, color=biome.fallback_color)
        layers.append(
            TerrainLayer(name=biome.name, texture=biome.texture, color=biome.fallback_color)
        )
    return layers


def blend_kernel(radius: int) -> NDArray[np.float64]:
    """Box kernel weighting each offset by 1 / (distance + 1).

    Args:
        radius: Half-width in cells; 0 gives a single-cell kernel.

    Returns:
        Array of shape (2r+1, 2r+1).
    """
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
    return 1.0 / (np.sqrt(dx * dx + dy * dy) + 1.0)


def resample_labels(
    biome_map: NDArray[np.int32],
    resolution: int,
) -> NDArray[np.int32]:
    """Nearest-neighbour resample of a square label grid.

    Output cell i reads source cell ``floor(i * size / resolution)``, so a
    resolution equal to the source size is the identity.
    """
    size = biome_map.shape[0]
    if resolution == size:
        return biome_map
    index = (np.arange(resolution) * size) // resolution
    return biome_map[np.ix_(index, index)]


def _accumulate(mask: NDArray[np.float64], kernel: NDArray[np.float64]) -> NDArray[np.float64]:
    """Kernel-weighted neighbour sum with edge cells repeated past the border."""
    radius = kernel.shape[0] // 2
    if radius > FFT_RADIUS_THRESHOLD:
        from scipy.signal import fftconvolve

        padded = np.pad(mask, radius, mode="edge")
        # FFT round-off can leave tiny negatives where the true sum is 0
        return np.clip(fftconvolve(padded, kernel, mode="valid"), 0.0, None)
    return ndimage.correlate(mask, kernel, mode="nearest")


def blend_splat(
    biome_map: NDArray[np.int32],
    biome_count: int,
    blur_radius: int = 12,
    resolution: int | None = None,
) -> NDArray[np.float32]:
    """Soften biome labels into normalized blend weights.

    Every cell accumulates ``1 / (offset distance + 1)`` for the label of
    each neighbour within the box of ``blur_radius``; neighbours past the
    grid edge are clamped to it. Accumulators are divided by their total,
    so each cell's weights are non-negative and sum to 1. A radius of 0
    yields hard one-hot weights.

    Args:
        biome_map: Biome index grid.
        biome_count: Number of biomes (channels).
        blur_radius: Kernel half-width in cells.
        resolution: Output resolution (None = biome map size).

    Returns:
        Weights of shape (resolution, resolution, biome_count).
    """
    labels = resample_labels(biome_map, resolution or biome_map.shape[0])
    kernel = blend_kernel(blur_radius)

    accum = np.zeros(labels.shape + (biome_count,), dtype=np.float64)
    for biome_index in np.unique(labels):
        mask = (labels == biome_index).astype(np.float64)
        accum[..., biome_index] = _accumulate(mask, kernel)

    total = accum.sum(axis=-1, keepdims=True)
    weights = (accum / total).astype(np.float32)

    logger.debug(
        "splat_blended",
        resolution=labels.shape[0],
        biomes=biome_count,
        blur_radius=blur_radius,
    )
    return weights
