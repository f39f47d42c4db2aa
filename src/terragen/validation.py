"""Post-generation validation of terrain invariants."""

import numpy as np
import structlog
from scipy.spatial import cKDTree

from .generator import GenerationResult

logger = structlog.get_logger()

WEIGHT_TOLERANCE = 1e-5


class ValidationResult:
    """Result of terrain validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_terrain(result: GenerationResult) -> ValidationResult:
    """Validate a generated terrain against its invariants.

    Args:
        result: Generation output.

    Returns:
        ValidationResult with any errors/warnings.
    """
    validation = ValidationResult()

    _check_unit_range("heights", result.heights, validation)
    _check_unit_range("humidity", result.humidity, validation)
    _check_biome_labels(result, validation)
    _check_splat_weights(result, validation)
    _check_trees(result, validation)
    _check_details(result, validation)

    if validation.passed:
        logger.info("terrain_validation_passed", warnings=len(validation.warnings))
    else:
        logger.warning("terrain_validation_failed", errors=len(validation.errors))
        for error in validation.errors:
            logger.error("terrain_validation_error", detail=error)

    for warning in validation.warnings:
        logger.warning("terrain_validation_warning", detail=warning)

    return validation


def _check_unit_range(name: str, grid: np.ndarray, validation: ValidationResult) -> None:
    """Check every value lies in [0, 1]."""
    if not np.all(np.isfinite(grid)):
        validation.add_error(f"{name} contains non-finite values")
        return
    outside = int(np.sum((grid < 0.0) | (grid > 1.0)))
    if outside:
        validation.add_error(f"{name} has {outside} values outside [0, 1]")


def _check_biome_labels(result: GenerationResult, validation: ValidationResult) -> None:
    """Check labels index into the biome table and match the height grid."""
    if result.biome_map.shape != result.heights.shape:
        validation.add_error(
            f"Biome map shape {result.biome_map.shape} differs from heights {result.heights.shape}"
        )
    count = len(result.config.biomes)
    invalid = int(np.sum((result.biome_map < 0) | (result.biome_map >= count)))
    if invalid:
        validation.add_error(f"{invalid} biome labels outside [0, {count})")

    present = np.unique(result.biome_map)
    if len(present) < count:
        validation.add_warning(f"Only {len(present)} of {count} biomes appear in the map")


def _check_splat_weights(result: GenerationResult, validation: ValidationResult) -> None:
    """Check weights are non-negative and sum to 1 per cell."""
    weights = result.splat_weights
    if weights.shape[-1] != len(result.config.biomes):
        validation.add_error(
            f"Splat has {weights.shape[-1]} channels for {len(result.config.biomes)} biomes"
        )
    negative = int(np.sum(weights < 0))
    if negative:
        validation.add_error(f"{negative} negative splat weights")

    sums = weights.astype(np.float64).sum(axis=-1)
    off = int(np.sum(np.abs(sums - 1.0) > WEIGHT_TOLERANCE))
    if off:
        validation.add_error(f"{off} splat cells do not sum to 1")


def _check_trees(result: GenerationResult, validation: ValidationResult) -> None:
    """Check trees lie inside the terrain and respect minimum spacing."""
    if not result.trees:
        return

    positions = np.array([(tree.x, tree.y) for tree in result.trees])
    outside = int(np.sum((positions < 0.0) | (positions > 1.0)))
    if outside:
        validation.add_error(f"{outside} tree coordinates outside [0, 1]")

    bad_index = sum(
        1 for tree in result.trees if not 0 <= tree.prototype_index < len(result.tree_prototypes)
    )
    if bad_index:
        validation.add_error(f"{bad_index} trees reference unknown prototypes")

    min_distance = result.config.scatter.min_tree_distance / result.config.resolution
    if min_distance > 0 and len(positions) > 1:
        # Shrink slightly so pairs at exactly min_distance are not reported
        pairs = cKDTree(positions).query_pairs(min_distance * (1.0 - 1e-9))
        if pairs:
            validation.add_error(f"{len(pairs)} tree pairs closer than {min_distance:.5f}")


def _check_details(result: GenerationResult, validation: ValidationResult) -> None:
    """Check detail grids are binary."""
    for layer in result.details:
        values = np.unique(layer.presence)
        if not set(values.tolist()) <= {0, 1}:
            validation.add_error(f"Detail layer '{layer.prototype.texture}' is not binary")
