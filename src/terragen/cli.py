"""Command-line interface for terrain generation."""

import argparse
import sys
import time
from pathlib import Path

import structlog


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for terrain generation."""
    parser = argparse.ArgumentParser(
        description="Generate seeded terrain heights, biomes, splatmaps and placements"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path or name of a terrain TOML config (default: built-in defaults)",
    )
    parser.add_argument(
        "--resolution", type=int, default=None, help="Grid resolution N (overrides config)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides config)")
    parser.add_argument(
        "--random-seed", action="store_true", help="Draw a fresh seed for this run"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="terrain.npz",
        help="Output path (default: terrain.npz)",
    )
    parser.add_argument(
        "--debug-images",
        type=str,
        default=None,
        help="Directory to save debug images (optional)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args(argv)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if args.verbose else 20),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from pydantic import ValidationError

    from .config import TerrainConfig, find_config, load_config
    from .generator import generate_terrain
    from .persistence import save_result
    from .validation import validate_terrain

    try:
        config = load_config(find_config(args.config)) if args.config else TerrainConfig()
        overrides = {}
        if args.resolution is not None:
            overrides["resolution"] = args.resolution
        if args.seed is not None:
            overrides["seed"] = args.seed
        if args.random_seed:
            overrides["use_random_seed"] = True
        if args.debug_images is not None:
            overrides["debug_output_dir"] = args.debug_images
        if overrides:
            config = TerrainConfig.model_validate(config.model_dump() | overrides)
    except (FileNotFoundError, ValidationError) as exc:
        logger.error("config_invalid", error=str(exc))
        return 2

    output_path = Path(args.output)
    if output_path.suffix != ".npz":
        output_path = output_path.with_suffix(".npz")

    start_time = time.time()
    result = generate_terrain(config)
    logger.info("generation_complete", seconds=round(time.time() - start_time, 2), seed=result.seed)

    validation = validate_terrain(result)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_result(output_path, result)

    return 0 if validation.passed else 1


if __name__ == "__main__":
    sys.exit(main())
