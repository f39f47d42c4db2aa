"""Tests for the generation pipeline."""

import numpy as np
import pytest

from terragen.config import SplatConfig, TerrainConfig
from terragen.exceptions import ConfigurationError, GenerationError
from terragen.generator import TerrainGenerator, generate_terrain, resolve_seed
from terragen.validation import validate_terrain


@pytest.fixture
def partitioned_config(make_biome):
    """Factory for two biomes separated only by height, split at ``split``."""

    def build(split: float, blur_radius: int) -> TerrainConfig:
        low = make_biome(name="low", min_height=split - 0.5, max_height=split)
        high = make_biome(name="high", min_height=split, max_height=split + 0.5)
        return TerrainConfig(
            resolution=48,
            seed=5,
            splat=SplatConfig(blur_radius=blur_radius),
            biomes=[low, high],
        )

    return build


class TestGenerateTerrain:
    """Tests for a full generation run."""

    def test_minimal_terrain(self, tiny_config) -> None:
        """Resolution 4 with one bare biome."""
        result = generate_terrain(tiny_config)

        assert result.heights.shape == (5, 5)
        assert result.heights.min() >= 0.0
        assert result.heights.max() <= 1.0
        np.testing.assert_array_equal(result.biome_map, np.zeros((5, 5), dtype=np.int32))
        assert result.splat_weights.shape == (5, 5, 1)
        np.testing.assert_array_equal(result.splat_weights, np.ones((5, 5, 1), dtype=np.float32))
        assert result.trees == []
        assert result.tree_prototypes == []
        assert result.details == []
        assert result.seed == 0

    def test_deterministic(self, small_config) -> None:
        """Same config and seed give identical output."""
        a = generate_terrain(small_config)
        b = generate_terrain(small_config)

        np.testing.assert_array_equal(a.heights, b.heights)
        np.testing.assert_array_equal(a.temperature, b.temperature)
        np.testing.assert_array_equal(a.humidity, b.humidity)
        np.testing.assert_array_equal(a.biome_map, b.biome_map)
        np.testing.assert_array_equal(a.splat_weights, b.splat_weights)
        assert a.trees == b.trees
        assert len(a.details) == len(b.details)
        for layer_a, layer_b in zip(a.details, b.details):
            np.testing.assert_array_equal(layer_a.presence, layer_b.presence)

    def test_different_seed_different_heights(self, small_config) -> None:
        """Changing the seed changes the terrain."""
        a = generate_terrain(small_config)
        b = generate_terrain(small_config.model_copy(update={"seed": 4321}))
        assert not np.array_equal(a.heights, b.heights)

    def test_grid_shapes_and_ranges(self, small_config) -> None:
        """Every grid matches the (N+1)^2 layout and stays in range."""
        result = generate_terrain(small_config)
        size = small_config.grid_size

        assert result.heights.shape == (size, size)
        assert result.temperature.shape == (size, size)
        assert result.humidity.shape == (size, size)
        assert result.biome_map.shape == (size, size)
        assert result.splat_weights.shape == (size, size, len(small_config.biomes))
        assert result.humidity.min() >= 0.0
        assert result.humidity.max() <= 1.0
        assert result.biome_map.min() >= 0
        assert result.biome_map.max() < len(small_config.biomes)
        np.testing.assert_allclose(result.splat_weights.sum(axis=-1), 1.0, atol=1e-5)
        for layer in result.details:
            assert layer.presence.shape == (size, size)

    def test_layers_follow_biomes(self, small_config) -> None:
        """One terrain layer per biome, all fallbacks without textures."""
        result = generate_terrain(small_config)
        assert [layer.name for layer in result.layers] == [b.name for b in small_config.biomes]
        assert all(layer.is_fallback for layer in result.layers)

    def test_trees_and_details(self, forest_config) -> None:
        """Biomes with rules receive trees and details."""
        result = generate_terrain(forest_config)

        assert result.tree_prototypes == ["oak"]
        assert len(result.trees) > 0
        (layer,) = result.details
        assert layer.prototype.texture == "grass"
        assert layer.presence.all()
        assert validate_terrain(result).passed

    def test_custom_resolutions(self, forest_config) -> None:
        """Splat and detail grids follow their configured resolutions."""
        config = TerrainConfig.model_validate(
            forest_config.model_dump()
            | {"splat": {"blur_radius": 1, "resolution": 16}, "scatter": {"detail_resolution": 20}}
        )
        result = generate_terrain(config)
        assert result.splat_weights.shape == (16, 16, 1)
        assert result.details[0].presence.shape == (20, 20)

    def test_custom_surface(self, forest_config) -> None:
        """The scatterer queries the supplied surface."""
        calls = []

        class SteepSurface:
            def height(self, u, v):
                calls.append("height")
                return np.zeros(np.broadcast(np.asarray(u), np.asarray(v)).shape)

            def steepness(self, u, v):
                calls.append("steepness")
                return np.full(np.broadcast(np.asarray(u), np.asarray(v)).shape, 89.0)

        config = forest_config.model_copy(
            update={"scatter": forest_config.scatter.model_copy(update={"max_slope": 30.0})}
        )
        result = generate_terrain(config, surface_factory=lambda heights, cfg: SteepSurface())

        assert "steepness" in calls
        assert result.trees == []
        assert result.details[0].presence.sum() == 0

    def test_empty_biome_table(self) -> None:
        """A table without biomes is a configuration error."""
        config = TerrainConfig.model_construct(biomes=[])
        with pytest.raises(ConfigurationError):
            generate_terrain(config)

    def test_random_seed_mode(self, small_config, monkeypatch) -> None:
        """Random-seed mode records the drawn seed and generates from it."""
        monkeypatch.setattr("terragen.generator.random_seed", lambda: 777)
        random_config = small_config.model_copy(update={"use_random_seed": True})

        result = generate_terrain(random_config)
        fixed = generate_terrain(small_config.model_copy(update={"seed": 777}))

        assert result.seed == 777
        np.testing.assert_array_equal(result.heights, fixed.heights)

    def test_resolve_seed(self, small_config) -> None:
        """Fixed-seed mode uses the configured seed."""
        assert resolve_seed(small_config) == 1234


class TestHeightPartition:
    """Two biomes split by height only."""

    @pytest.fixture
    def split(self, partitioned_config) -> float:
        """Height between the two middle distinct elevations, so both biomes appear."""
        heights = generate_terrain(partitioned_config(0.5, 0)).heights
        levels = np.unique(heights.astype(np.float64))
        middle = len(levels) // 2
        return float((levels[middle - 1] + levels[middle]) / 2)

    def test_labels_follow_height(self, split, partitioned_config) -> None:
        """Cells above the split are the high biome."""
        result = generate_terrain(partitioned_config(split, 0))
        expected = (result.heights.astype(np.float64) > split).astype(np.int32)
        np.testing.assert_array_equal(result.biome_map, expected)

    def test_hard_edge_without_blur(self, split, partitioned_config) -> None:
        """Radius 0 weights are one-hot labels."""
        result = generate_terrain(partitioned_config(split, 0))
        np.testing.assert_array_equal(
            result.splat_weights, np.eye(2, dtype=np.float32)[result.biome_map]
        )

    def test_smooth_edge_with_blur(self, split, partitioned_config) -> None:
        """A positive radius blends across the boundary."""
        result = generate_terrain(partitioned_config(split, 4))
        weights = result.splat_weights[..., 1]
        assert np.any((weights > 0.01) & (weights < 0.99))
        np.testing.assert_allclose(result.splat_weights.sum(axis=-1), 1.0, atol=1e-5)


class TestTerrainGenerator:
    """Tests for build-then-swap regeneration."""

    def test_starts_empty(self, tiny_config) -> None:
        """No result before the first run."""
        assert TerrainGenerator(tiny_config).result is None

    def test_regenerate(self, tiny_config) -> None:
        """A successful run becomes the current result."""
        generator = TerrainGenerator(tiny_config)
        result = generator.regenerate()
        assert generator.result is result

    def test_regenerate_with_new_config(self, tiny_config) -> None:
        """A new config replaces the old one on success."""
        generator = TerrainGenerator(tiny_config)
        generator.regenerate()
        new_config = tiny_config.model_copy(update={"seed": 8})
        result = generator.regenerate(new_config)
        assert generator.config is new_config
        assert result.seed == 8

    def test_failure_keeps_previous_result(self, tiny_config) -> None:
        """A failed run leaves the previous terrain and config in place."""
        generator = TerrainGenerator(tiny_config)
        previous = generator.regenerate()

        def broken_surface(heights, config):
            raise RuntimeError("surface unavailable")

        generator.surface_factory = broken_surface
        with pytest.raises(GenerationError, match="surface unavailable"):
            generator.regenerate(tiny_config.model_copy(update={"seed": 3}))

        assert generator.result is previous
        assert generator.config is tiny_config
