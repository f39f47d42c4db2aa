"""Biome classification: nearest climate centroid with weighted axes."""

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import Biome
from .exceptions import ConfigurationError

HUMIDITY_WEIGHT = 4.0
TEMPERATURE_WEIGHT = 1.0
HEIGHT_WEIGHT = 0.5


def biome_centroids(biomes: Sequence[Biome]) -> NDArray[np.float64]:
    """Midpoints of each biome's ranges.

    Args:
        biomes: Biome table.

    Returns:
        Array of shape (len(biomes), 3): temperature, humidity, height.

    Raises:
        ConfigurationError: If the table is empty.
    """
    if not biomes:
        raise ConfigurationError("Biome table must contain at least one biome")
    return np.array(
        [[b.temperature_mid, b.humidity_mid, b.height_mid] for b in biomes],
        dtype=np.float64,
    )


def biome_scores(
    temperature: ArrayLike,
    humidity: ArrayLike,
    height: ArrayLike,
    centroids: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Score every biome at every sample; higher is closer.

    Returns:
        Array of shape ``broadcast(inputs).shape + (n_biomes,)``, each
        ``-(4|dH| + |dT| + 0.5|dE|)``.
    """
    temperature = np.asarray(temperature, dtype=np.float64)[..., np.newaxis]
    humidity = np.asarray(humidity, dtype=np.float64)[..., np.newaxis]
    height = np.asarray(height, dtype=np.float64)[..., np.newaxis]

    distance = (
        np.abs(humidity - centroids[:, 1]) * HUMIDITY_WEIGHT
        + np.abs(temperature - centroids[:, 0]) * TEMPERATURE_WEIGHT
        + np.abs(height - centroids[:, 2]) * HEIGHT_WEIGHT
    )
    return -distance


def classify(
    temperature: float,
    humidity: float,
    height: float,
    biomes: Sequence[Biome],
) -> int:
    """Index of the best-scoring biome for one climate sample."""
    scores = biome_scores(temperature, humidity, height, biome_centroids(biomes))
    return int(np.argmax(scores))


def classify_biomes(
    temperature: NDArray[np.float32],
    humidity: NDArray[np.float32],
    heights: NDArray[np.float32],
    biomes: Sequence[Biome],
) -> NDArray[np.int32]:
    """Label every cell with its biome index.

    Ties go to the earliest biome in the table (``argmax`` returns the
    first maximum).

    Args:
        temperature: Temperature grid.
        humidity: Humidity grid in [0, 1].
        heights: Normalized elevation grid.
        biomes: Biome table; its order defines the labels.

    Returns:
        Biome index grid, same shape as the inputs.

    Raises:
        ConfigurationError: If the table is empty.
    """
    centroids = biome_centroids(biomes)
    scores = biome_scores(temperature, humidity, heights, centroids)
    return np.argmax(scores, axis=-1).astype(np.int32)
