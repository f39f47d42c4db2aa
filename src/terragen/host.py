"""Hand-off of generated terrain to a host engine.

The host owns the terrain object, renderable instances and the
navigation mesh. This module only fixes the order in which generated
data is handed over and the stages of a navigation bake.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import numpy as np
import structlog
from numpy.typing import NDArray

from .generator import GenerationResult
from .scatter import DetailLayer, PlacedTree
from .splat import TerrainLayer

logger = structlog.get_logger()


class TerrainHost(Protocol):
    """Receives generated grids and placements."""

    def set_heights(self, heights: NDArray[np.float32]) -> None: ...

    def set_alphamaps(
        self, weights: NDArray[np.float32], layers: list[TerrainLayer]
    ) -> None: ...

    def set_trees(self, prototypes: list[str], trees: list[PlacedTree]) -> None: ...

    def set_details(self, layers: list[DetailLayer]) -> None: ...


class NavigationHost(Protocol):
    """Creates temporary obstacles and bakes the navigation mesh."""

    def spawn_obstacle(
        self,
        prefab: str,
        position: tuple[float, float, float],
        collider: "ObstacleCollider",
    ) -> Any: ...

    def bake_navigation(self) -> None: ...

    def destroy_obstacle(self, handle: Any) -> None: ...


@dataclass(frozen=True)
class ObstacleCollider:
    """Capsule given to tree obstacles that have no collider of their own."""

    radius: float = 0.5
    height: float = 4.0
    center_y: float = 2.0


class BakeStage(str, Enum):
    """Navigation bake stages, in execution order."""

    INSTANTIATE = "instantiate"
    BAKE = "bake"
    CLEANUP = "cleanup"


def publish(host: TerrainHost, result: GenerationResult) -> None:
    """Hand a finished result to the host: heights, textures, trees, details."""
    host.set_heights(result.heights)
    host.set_alphamaps(result.splat_weights, result.layers)
    host.set_trees(result.tree_prototypes, result.trees)
    host.set_details(result.details)
    logger.info(
        "terrain_published",
        seed=result.seed,
        trees=len(result.trees),
        detail_layers=len(result.details),
    )


def tree_world_position(
    tree: PlacedTree, world_size: float, elevation_scale: float
) -> tuple[float, float, float]:
    """Normalized tree position to world (x, up, z)."""
    return (tree.x * world_size, tree.height * elevation_scale, tree.y * world_size)


def navigation_bake(
    host: NavigationHost,
    result: GenerationResult,
    collider: ObstacleCollider = ObstacleCollider(),
) -> Iterator[BakeStage]:
    """Bake navigation around the placed trees, one stage per step.

    Yields after each completed stage so the host can spread the work
    over frames. Obstacles are always destroyed, also when the bake
    raises or the iterator is closed early.

    Args:
        host: Navigation host.
        result: Generated terrain whose trees become obstacles.
        collider: Collider for obstacles.

    Yields:
        The stage just completed.
    """
    world_size = float(result.config.resolution)
    handles = []
    try:
        for tree in result.trees:
            prefab = result.tree_prototypes[tree.prototype_index]
            position = tree_world_position(tree, world_size, result.config.elevation_scale)
            handles.append(host.spawn_obstacle(prefab, position, collider))
        yield BakeStage.INSTANTIATE

        host.bake_navigation()
        yield BakeStage.BAKE
    finally:
        for handle in handles:
            host.destroy_obstacle(handle)
        logger.debug("navigation_obstacles_removed", count=len(handles))
    yield BakeStage.CLEANUP


def run_navigation_bake(host: NavigationHost, result: GenerationResult) -> list[BakeStage]:
    """Drive ``navigation_bake`` to completion in one call."""
    return list(navigation_bake(host, result))
