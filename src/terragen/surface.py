"""Height and slope queries over the finished terrain surface.

The scatterer only needs to ask "how high" and "how steep" at a
normalized coordinate. Hosts that store the terrain elsewhere can supply
their own ``SurfaceQuery``; ``HeightfieldSurface`` answers from the
generated height grid.
"""

from typing import Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.ndimage import map_coordinates


class SurfaceQuery(Protocol):
    """Elevation queries at normalized (u, v) coordinates in [0, 1]."""

    def height(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Interpolated normalized elevation (fraction of the height scale)."""
        ...

    def steepness(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Interpolated slope angle in degrees."""
        ...


class HeightfieldSurface:
    """Surface backed by a normalized height grid.

    Args:
        heights: Normalized elevation grid of shape (N+1, N+1); row index
            follows v, column index follows u.
        elevation_scale: World height of normalized elevation 1.0.
        world_size: World extent of the grid side; defaults to N so one
            cell spans one world unit.
    """

    def __init__(
        self,
        heights: NDArray[np.float32],
        elevation_scale: float,
        world_size: float | None = None,
    ):
        self.heights = heights.astype(np.float64)
        self.elevation_scale = elevation_scale
        self.resolution = max(heights.shape[0] - 1, 1)
        self.world_size = world_size if world_size is not None else float(self.resolution)

        spacing = self.world_size / self.resolution
        grad_v, grad_u = np.gradient(self.heights * elevation_scale, spacing)
        self._steepness = np.degrees(np.arctan(np.hypot(grad_u, grad_v)))

    def _sample(self, grid: NDArray[np.float64], u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        u = np.clip(np.asarray(u, dtype=np.float64), 0.0, 1.0)
        v = np.clip(np.asarray(v, dtype=np.float64), 0.0, 1.0)
        u, v = np.broadcast_arrays(u, v)
        coords = np.array([v.ravel() * self.resolution, u.ravel() * self.resolution])
        sampled = map_coordinates(grid, coords, order=1, mode="nearest")
        return sampled.reshape(u.shape)

    def height(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Bilinear normalized elevation; coordinates clamped to [0, 1]."""
        return self._sample(self.heights, u, v)

    def world_height(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Bilinear elevation in world units."""
        return self.height(u, v) * self.elevation_scale

    def steepness(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Bilinear slope in degrees; coordinates clamped to [0, 1]."""
        return self._sample(self._steepness, u, v)
