"""Seeded procedural terrain generation.

Synthesizes an elevation field, climate-driven biome labels, blended
texture weights and scattered trees/details from one seed and a
parameter set.
"""

from .config import (
    Biome,
    DetailPlacement,
    TerrainConfig,
    TreePlacement,
    find_config,
    load_config,
)
from .exceptions import ConfigurationError, GenerationError, TerrainError
from .generator import GenerationResult, TerrainGenerator, generate_terrain
from .persistence import load_result, save_result
from .surface import HeightfieldSurface, SurfaceQuery
from .validation import ValidationResult, validate_terrain

__all__ = [
    # Config
    "Biome",
    "DetailPlacement",
    "TerrainConfig",
    "TreePlacement",
    "find_config",
    "load_config",
    # Generation
    "GenerationResult",
    "TerrainGenerator",
    "generate_terrain",
    "HeightfieldSurface",
    "SurfaceQuery",
    # Persistence
    "load_result",
    "save_result",
    # Validation
    "ValidationResult",
    "validate_terrain",
    # Exceptions
    "ConfigurationError",
    "GenerationError",
    "TerrainError",
]
