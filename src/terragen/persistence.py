"""Result persistence: save and load generated terrain."""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
import structlog

from .config import TerrainConfig
from .generator import GenerationResult
from .scatter import DetailLayer, DetailPrototype, PlacedTree
from .splat import build_layers

logger = structlog.get_logger()

FORMAT_VERSION = 1


def _encode(data: object) -> np.ndarray:
    return np.frombuffer(json.dumps(data).encode("utf-8"), dtype=np.uint8)


def _decode(array: np.ndarray) -> object:
    return json.loads(array.tobytes().decode("utf-8"))


def save_result(path: Path, result: GenerationResult) -> Path:
    """Save a generation result to disk.

    Uses numpy's compressed .npz format; grids are stored as arrays and
    placements, prototypes, config and metadata as JSON blobs.

    Args:
        path: Output path; the suffix is replaced with .npz.
        result: Result to save.

    Returns:
        Path the result was written to.
    """
    path = Path(path).with_suffix(".npz")
    resolution = result.config.detail_resolution
    if result.details:
        presence = np.stack([layer.presence for layer in result.details])
    else:
        presence = np.zeros((0, resolution, resolution), dtype=np.uint8)

    metadata = {
        "version": FORMAT_VERSION,
        "seed": result.seed,
        "resolution": result.config.resolution,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    np.savez_compressed(
        path,
        heights=result.heights,
        temperature=result.temperature,
        humidity=result.humidity,
        biome_map=result.biome_map,
        splat_weights=result.splat_weights,
        detail_presence=presence,
        trees=_encode([asdict(tree) for tree in result.trees]),
        tree_prototypes=_encode(result.tree_prototypes),
        detail_prototypes=_encode([asdict(layer.prototype) for layer in result.details]),
        config=_encode(result.config.model_dump(mode="json")),
        metadata=_encode(metadata),
    )

    file_size = path.stat().st_size / (1024 * 1024)
    logger.info("result_saved", path=str(path), size_mb=round(file_size, 2))
    return path


def load_result(path: Path) -> tuple[GenerationResult, dict]:
    """Load a generation result from disk.

    Args:
        path: Path to .npz file.

    Returns:
        Tuple of (GenerationResult, metadata dict).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file format is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Terrain file not found: {path}")

    with np.load(path) as data:
        missing = {"heights", "biome_map", "splat_weights", "config"} - set(data.files)
        if missing:
            raise ValueError(f"Invalid terrain file: missing {sorted(missing)}")

        metadata = _decode(data["metadata"]) if "metadata" in data.files else {}
        if metadata.get("version", FORMAT_VERSION) != FORMAT_VERSION:
            raise ValueError(f"Unsupported terrain file version: {metadata['version']}")

        config = TerrainConfig.model_validate(_decode(data["config"]))
        prototypes = [DetailPrototype(**p) for p in _decode(data["detail_prototypes"])]
        details = [
            DetailLayer(prototype=prototype, presence=presence)
            for prototype, presence in zip(prototypes, data["detail_presence"])
        ]

        result = GenerationResult(
            config=config,
            seed=metadata.get("seed", config.seed),
            heights=data["heights"],
            temperature=data["temperature"],
            humidity=data["humidity"],
            biome_map=data["biome_map"],
            splat_weights=data["splat_weights"],
            layers=build_layers(config.biomes),
            tree_prototypes=list(_decode(data["tree_prototypes"])),
            trees=[PlacedTree(**tree) for tree in _decode(data["trees"])],
            details=details,
        )

    logger.info("result_loaded", path=str(path), resolution=config.resolution)
    return result, metadata
