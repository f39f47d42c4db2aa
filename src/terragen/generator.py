"""Main terrain generation orchestration."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import structlog
from numpy.typing import NDArray

from .biomes import classify_biomes
from .climate import ClimateModel, make_humidity, make_temperature
from .config import TerrainConfig
from .exceptions import ConfigurationError, GenerationError
from .heights import HeightSynthesizer, generate_heightfield
from .noise import FractalNoise
from .rng import Stream, make_rng, random_seed
from .scatter import DetailLayer, PlacedTree, place_details, place_trees
from .splat import TerrainLayer, blend_splat, build_layers
from .surface import HeightfieldSurface, SurfaceQuery
from .voronoi import VoronoiField

logger = structlog.get_logger()

SurfaceFactory = Callable[[NDArray[np.float32], TerrainConfig], SurfaceQuery]


@dataclass
class GenerationResult:
    """Everything one generation run produces."""

    config: TerrainConfig
    seed: int
    heights: NDArray[np.float32]
    temperature: NDArray[np.float32]
    humidity: NDArray[np.float32]
    biome_map: NDArray[np.int32]
    splat_weights: NDArray[np.float32]
    layers: list[TerrainLayer]
    tree_prototypes: list[str]
    trees: list[PlacedTree]
    details: list[DetailLayer]


def default_surface(heights: NDArray[np.float32], config: TerrainConfig) -> SurfaceQuery:
    """Surface answering from the generated heights at the config's scale."""
    return HeightfieldSurface(heights, config.elevation_scale)


def resolve_seed(config: TerrainConfig) -> int:
    """Seed for this run: a fresh one in random-seed mode, else the configured one."""
    if config.use_random_seed:
        return random_seed()
    return config.seed


def generate_terrain(
    config: TerrainConfig,
    surface_factory: SurfaceFactory = default_surface,
) -> GenerationResult:
    """Generate complete terrain from configuration.

    Stages run in a fixed order: Voronoi points, octave offsets,
    heightfield, climate, biome labels, splat weights, then trees and
    details against the surface built from the heightfield.

    Args:
        config: Terrain generation configuration.
        surface_factory: Builds the height/slope query surface the
            scatterer uses from the finished heightfield.

    Returns:
        GenerationResult with every grid and placement list.

    Raises:
        ConfigurationError: If the configuration cannot produce terrain.
    """
    if not config.biomes:
        raise ConfigurationError("Biome table must contain at least one biome")

    seed = resolve_seed(config)
    resolution = config.resolution
    log = logger.bind(seed=seed, resolution=resolution)
    log.info("generation_started", biomes=len(config.biomes))

    # Stage A: Voronoi points precede any height sampling
    voronoi = VoronoiField.from_rng(make_rng(seed, Stream.VORONOI), config.voronoi.point_count)

    # Stage B: Heightfield
    fbm = FractalNoise.from_config(config.noise, make_rng(seed, Stream.OCTAVE_OFFSETS))
    synthesizer = HeightSynthesizer(fbm, voronoi, config.voronoi.weight)
    heights = generate_heightfield(synthesizer, resolution)
    log.info("heightfield_generated", min=float(heights.min()), max=float(heights.max()))

    # Stage C: Climate
    climate = ClimateModel.from_config(config.climate, make_rng(seed, Stream.CLIMATE))
    temperature = make_temperature(heights, climate, config.elevation_scale)
    humidity = make_humidity(heights, climate)

    # Stage D: Biomes
    biome_map = classify_biomes(temperature, humidity, heights, config.biomes)
    _log_biome_stats(biome_map, config)

    # Stage E: Texture blending
    splat_weights = blend_splat(
        biome_map,
        len(config.biomes),
        blur_radius=config.splat.blur_radius,
        resolution=config.splat_resolution,
    )
    layers = build_layers(config.biomes)

    # Stage F: Object placement
    surface = surface_factory(heights, config)
    prototypes, trees = place_trees(
        biome_map,
        config.biomes,
        surface,
        make_rng(seed, Stream.TREES),
        attempts=resolution * config.scatter.attempts_per_cell,
        min_distance=config.scatter.min_tree_distance / resolution,
        max_slope=config.scatter.max_slope,
    )
    details = place_details(
        biome_map,
        config.biomes,
        surface,
        make_rng(seed, Stream.DETAILS),
        detail_resolution=config.detail_resolution,
        max_slope=config.scatter.max_slope,
    )

    if config.debug_output_dir:
        _dump_debug_images(
            Path(config.debug_output_dir),
            heights=heights,
            temperature=temperature,
            humidity=humidity,
            biome_map=biome_map,
        )

    log.info("generation_finished", trees=len(trees), detail_layers=len(details))

    return GenerationResult(
        config=config,
        seed=seed,
        heights=heights,
        temperature=temperature,
        humidity=humidity,
        biome_map=biome_map,
        splat_weights=splat_weights,
        layers=layers,
        tree_prototypes=prototypes,
        trees=trees,
        details=details,
    )


class TerrainGenerator:
    """Holds the current terrain and regenerates it all-or-nothing.

    A run builds a complete new ``GenerationResult``; ``result`` is only
    replaced once the run succeeds, so a failed regeneration leaves the
    previous terrain in place.

    Args:
        config: Initial configuration.
        surface_factory: Surface builder passed to ``generate_terrain``.
    """

    def __init__(
        self,
        config: TerrainConfig,
        surface_factory: SurfaceFactory = default_surface,
    ):
        self.config = config
        self.surface_factory = surface_factory
        self._result: GenerationResult | None = None

    @property
    def result(self) -> GenerationResult | None:
        """Most recent successful run, or None before the first one."""
        return self._result

    def regenerate(self, config: TerrainConfig | None = None) -> GenerationResult:
        """Run the pipeline and swap in its output.

        Args:
            config: Replacement configuration; kept only if the run succeeds.

        Returns:
            The new result.

        Raises:
            GenerationError: If the run fails; the previous result is kept.
        """
        if config is None:
            config = self.config
        try:
            result = generate_terrain(config, self.surface_factory)
        except Exception as exc:
            logger.error("generation_failed", error=str(exc))
            raise GenerationError(f"Terrain generation failed: {exc}") from exc

        self.config = config
        self._result = result
        return result


def _log_biome_stats(biome_map: NDArray[np.int32], config: TerrainConfig) -> None:
    """Log the share of cells each biome claims."""
    counts = np.bincount(biome_map.ravel(), minlength=len(config.biomes))
    total = biome_map.size
    for biome, count in zip(config.biomes, counts):
        logger.debug(
            "biome_coverage",
            biome=biome.name,
            cells=int(count),
            fraction=round(float(count) / total, 4),
        )


def _dump_debug_images(output_dir: Path, **arrays: NDArray) -> None:
    """Save arrays as images for debugging.

    Args:
        output_dir: Directory to save images.
        **arrays: Named arrays to save.
    """
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        logger.warning("debug_images_skipped", reason="matplotlib not available")
        return

    output_dir.mkdir(parents=True, exist_ok=True)

    for name, arr in arrays.items():
        fig, ax = plt.subplots(figsize=(10, 10))

        if np.issubdtype(arr.dtype, np.integer):
            ax.imshow(arr, cmap="tab10", interpolation="nearest")
        else:
            ax.imshow(arr, cmap="terrain")

        ax.set_title(name)
        ax.axis("off")

        fig.savefig(output_dir / f"{name}.png", dpi=150, bbox_inches="tight")
        plt.close(fig)

    logger.info("debug_images_saved", output_dir=str(output_dir))
