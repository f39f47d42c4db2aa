"""Shared test fixtures for terrain generation tests."""

import numpy as np
import pytest

from terragen.config import (
    Biome,
    DetailPlacement,
    ScatterConfig,
    SplatConfig,
    TerrainConfig,
    TreePlacement,
)


class _FlatSurface:
    """Surface with constant height and steepness everywhere."""

    def __init__(self, height: float = 0.5, steepness: float = 0.0):
        self._height = height
        self._steepness = steepness

    def height(self, u, v) -> np.ndarray:
        shape = np.broadcast(np.asarray(u), np.asarray(v)).shape
        return np.full(shape, self._height)

    def steepness(self, u, v) -> np.ndarray:
        shape = np.broadcast(np.asarray(u), np.asarray(v)).shape
        return np.full(shape, self._steepness)


def _full_range_biome(name: str = "everywhere", **kwargs) -> Biome:
    """Biome covering every climate the generator can produce."""
    values = dict(
        name=name,
        min_height=0.0,
        max_height=1.0,
        min_temperature=-100.0,
        max_temperature=100.0,
        min_humidity=0.0,
        max_humidity=1.0,
    )
    values.update(kwargs)
    return Biome(**values)


@pytest.fixture
def make_biome():
    """Factory for biomes covering every climate; keyword arguments override."""
    return _full_range_biome


@pytest.fixture
def make_surface():
    """Factory for surfaces with constant height and steepness."""
    return _FlatSurface


@pytest.fixture
def flat_surface() -> _FlatSurface:
    """Level surface at half height."""
    return _FlatSurface()


@pytest.fixture
def tiny_config() -> TerrainConfig:
    """Resolution 4, seed 0, a single full-range biome without rules."""
    return TerrainConfig(resolution=4, seed=0, biomes=[_full_range_biome()])


@pytest.fixture
def small_config() -> TerrainConfig:
    """32x32 terrain with the default biome table."""
    return TerrainConfig(
        resolution=32,
        seed=1234,
        splat=SplatConfig(blur_radius=3),
    )


@pytest.fixture
def forest_config() -> TerrainConfig:
    """32x32 terrain where every cell grows trees and grass."""
    biome = _full_range_biome(
        name="forest",
        texture="forest_floor",
        trees=[TreePlacement(prefab="oak", density=1.0, min_scale=0.8, max_scale=1.2)],
        details=[DetailPlacement(texture="grass", density=1.0)],
    )
    return TerrainConfig(
        resolution=32,
        seed=99,
        splat=SplatConfig(blur_radius=2),
        scatter=ScatterConfig(max_slope=90.0, min_tree_distance=4.0),
        biomes=[biome],
    )
