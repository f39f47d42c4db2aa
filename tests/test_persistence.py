"""Tests for saving and loading generated terrain."""

from pathlib import Path

import numpy as np
import pytest

from terragen.generator import generate_terrain
from terragen.persistence import FORMAT_VERSION, load_result, save_result


class TestPersistence:
    """Tests for the .npz result format."""

    def test_save_and_load(self, forest_config, tmp_path: Path) -> None:
        """A saved result loads back with the same grids and placements."""
        result = generate_terrain(forest_config)
        path = tmp_path / "terrain.npz"

        save_result(path, result)
        loaded, metadata = load_result(path)

        assert metadata["version"] == FORMAT_VERSION
        assert metadata["seed"] == result.seed
        assert loaded.config == result.config
        np.testing.assert_array_equal(loaded.heights, result.heights)
        np.testing.assert_array_equal(loaded.biome_map, result.biome_map)
        np.testing.assert_array_equal(loaded.splat_weights, result.splat_weights)
        assert loaded.tree_prototypes == result.tree_prototypes
        assert loaded.trees == result.trees
        assert [layer.prototype for layer in loaded.details] == [
            layer.prototype for layer in result.details
        ]
        np.testing.assert_array_equal(loaded.details[0].presence, result.details[0].presence)
        assert loaded.layers == result.layers

    def test_save_without_placements(self, tiny_config, tmp_path: Path) -> None:
        """Results without trees or details round-trip as empty lists."""
        path = tmp_path / "bare.npz"
        save_result(path, generate_terrain(tiny_config))
        loaded, _ = load_result(path)
        assert loaded.trees == []
        assert loaded.details == []

    def test_suffix_added(self, tiny_config, tmp_path: Path) -> None:
        """A path without .npz is saved under the .npz name it reports."""
        path = save_result(tmp_path / "out", generate_terrain(tiny_config))
        assert path == tmp_path / "out.npz"
        assert path.is_file()
        loaded, _ = load_result(path)
        assert loaded.seed == 0

    def test_missing_file(self, tmp_path: Path) -> None:
        """Loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_result(tmp_path / "absent.npz")

    def test_invalid_file(self, tmp_path: Path) -> None:
        """Archives without terrain arrays are rejected."""
        path = tmp_path / "other.npz"
        np.savez(path, unrelated=np.zeros(3))
        with pytest.raises(ValueError, match="missing"):
            load_result(path)
