"""Climate fields: temperature from elevation, humidity from warped noise."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import ClimateConfig
from .noise import domain_warp, lerp, perlin

# Humidity offsets and warp shifts are drawn from [0, NOISE_PERIOD), one
# full period of the noise lattice.
NOISE_PERIOD = 256.0
# Separation (in unscaled coordinates) between the x and y humidity warps
WARP_Y_SEPARATION = 42.0


@dataclass(frozen=True)
class ClimateModel:
    """Pure temperature and humidity functions for one seed."""

    base_temperature: float
    temperature_falloff: float
    humidity_frequency: float
    humidity_offset: tuple[float, float]
    warp_frequency: float
    warp_amplitude: float
    warp_shift: tuple[float, float]

    @classmethod
    def from_config(
        cls, config: ClimateConfig, rng: np.random.Generator
    ) -> "ClimateModel":
        """Build the model, drawing seed-derived offsets from ``rng``."""
        offset_x, offset_y, shift_x, shift_y = rng.uniform(0.0, NOISE_PERIOD, size=4)
        return cls(
            base_temperature=config.base_temperature,
            temperature_falloff=config.temperature_falloff,
            humidity_frequency=config.humidity_frequency,
            humidity_offset=(float(offset_x), float(offset_y)),
            warp_frequency=config.humidity_warp_frequency,
            warp_amplitude=config.humidity_warp_amplitude,
            warp_shift=(float(shift_x), float(shift_y)),
        )

    def temperature(self, elevation: ArrayLike) -> NDArray[np.float64]:
        """Linear lapse rate: drops ``falloff`` degrees per 200 world units.

        Not clamped; high terrain can go below zero.

        Args:
            elevation: Elevation in world units.
        """
        elevation = np.asarray(elevation, dtype=np.float64)
        return self.base_temperature - elevation / (200.0 / self.temperature_falloff)

    def warp(
        self, nx: ArrayLike, ny: ArrayLike
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Displace normalized coordinates by the humidity warp field."""
        return domain_warp(
            nx,
            ny,
            self.warp_frequency,
            self.warp_amplitude,
            shift=self.warp_shift,
            y_offset=WARP_Y_SEPARATION * self.warp_frequency,
            centered=True,
        )

    def humidity(
        self, x: ArrayLike, y: ArrayLike, height: ArrayLike
    ) -> NDArray[np.float64]:
        """Humidity at already-warped coordinates.

        Args:
            x: Warped x coordinates.
            y: Warped y coordinates.
            height: Normalized elevation; higher ground is drier.

        Returns:
            Humidity in [0, 1].
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        value = perlin(
            x * self.humidity_frequency + self.humidity_offset[0],
            y * self.humidity_frequency + self.humidity_offset[1],
        )
        value = value * lerp(1.0, 0.5, height)
        return np.clip(value, 0.0, 1.0)

    def sample_humidity(
        self, nx: ArrayLike, ny: ArrayLike, height: ArrayLike
    ) -> NDArray[np.float64]:
        """Humidity at raw normalized grid coordinates (warp applied)."""
        warp_x, warp_y = self.warp(nx, ny)
        return self.humidity(warp_x, warp_y, height)


def make_temperature(
    heights: NDArray[np.float32],
    model: ClimateModel,
    elevation_scale: float,
) -> NDArray[np.float32]:
    """Temperature grid.

    Args:
        heights: Normalized elevation grid.
        model: Climate model.
        elevation_scale: World height of normalized elevation 1.0.

    Returns:
        Temperature grid, same shape as heights.
    """
    elevation = heights.astype(np.float64) * elevation_scale
    return model.temperature(elevation).astype(np.float32)


def make_humidity(
    heights: NDArray[np.float32],
    model: ClimateModel,
) -> NDArray[np.float32]:
    """Humidity grid over the same normalized coordinates as ``heights``.

    Args:
        heights: Normalized elevation grid of shape (N+1, N+1).
        model: Climate model.

    Returns:
        Humidity grid in [0, 1].
    """
    size = heights.shape[0]
    resolution = max(size - 1, 1)
    coords = np.arange(size, dtype=np.float64) / resolution
    ny, nx = np.meshgrid(coords, coords, indexing="ij")
    return model.sample_humidity(nx, ny, heights.astype(np.float64)).astype(np.float32)
