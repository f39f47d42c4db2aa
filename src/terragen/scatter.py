"""Object placement: trees by rejection sampling, details by per-cell draws."""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from .config import Biome
from .surface import SurfaceQuery

logger = structlog.get_logger()

HEIGHT_JITTER = (0.95, 1.05)


@dataclass(frozen=True)
class PlacedTree:
    """A scattered tree in normalized terrain space."""

    x: float
    y: float
    height: float
    prototype_index: int
    width_scale: float
    height_scale: float


@dataclass(frozen=True)
class DetailPrototype:
    """A detail texture flattened out of its biome."""

    texture: str
    biome_index: int
    density: float
    min_width: float
    max_width: float
    min_height: float
    max_height: float


@dataclass
class DetailLayer:
    """Binary presence grid for one detail prototype."""

    prototype: DetailPrototype
    presence: NDArray[np.uint8]


def tree_prototypes(biomes: Sequence[Biome]) -> list[str]:
    """Deduplicated tree prefabs in first-seen table order.

    Rules without a prefab contribute nothing.
    """
    prefabs: list[str] = []
    for biome in biomes:
        for rule in biome.trees:
            if rule.prefab is not None and rule.prefab not in prefabs:
                prefabs.append(rule.prefab)
    return prefabs


def detail_prototypes(biomes: Sequence[Biome]) -> list[DetailPrototype]:
    """Detail rules of every biome, flattened in table order.

    Rules without a texture are skipped.
    """
    prototypes = []
    for biome_index, biome in enumerate(biomes):
        for rule in biome.details:
            if rule.texture is None:
                continue
            prototypes.append(
                DetailPrototype(
                    texture=rule.texture,
                    biome_index=biome_index,
                    density=rule.density,
                    min_width=rule.min_width,
                    max_width=rule.max_width,
                    min_height=rule.min_height,
                    max_height=rule.max_height,
                )
            )
    return prototypes


class SpacingIndex:
    """Nearest-neighbour check of candidates against accepted points.

    The KD-tree is rebuilt lazily, only when a point was added since the
    last query, so a run of rejected candidates reuses one tree.
    """

    def __init__(self, min_distance: float):
        self.min_distance = min_distance
        self._points: list[tuple[float, float]] = []
        self._tree: cKDTree | None = None

    def __len__(self) -> int:
        return len(self._points)

    def too_close(self, x: float, y: float) -> bool:
        if self.min_distance <= 0 or not self._points:
            return False
        if self._tree is None:
            self._tree = cKDTree(self._points)
        distance, _ = self._tree.query((x, y), k=1)
        return bool(distance < self.min_distance)

    def add(self, x: float, y: float) -> None:
        self._points.append((x, y))
        self._tree = None


def _label_at(biome_map: NDArray[np.int32], u: float, v: float) -> int:
    """Biome label nearest to (u, v), clamped to the grid."""
    n = biome_map.shape[0] - 1
    col = min(max(int(round(u * n)), 0), n)
    row = min(max(int(round(v * n)), 0), n)
    return int(biome_map[row, col])


def place_trees(
    biome_map: NDArray[np.int32],
    biomes: Sequence[Biome],
    surface: SurfaceQuery,
    rng: np.random.Generator,
    attempts: int,
    min_distance: float,
    max_slope: float = 30.0,
) -> tuple[list[str], list[PlacedTree]]:
    """Scatter trees by rejection sampling.

    Each attempt draws a uniform position and, if its biome has tree
    rules, picks one uniformly. The candidate is rejected when the rule's
    density draw fails, the slope exceeds ``max_slope`` or an accepted
    tree lies closer than ``min_distance``. Accepted trees get a scale
    in the rule's range and a 0.95-1.05 height jitter.

    Args:
        biome_map: Biome index grid.
        biomes: Biome table.
        surface: Height/slope queries.
        rng: Generator for the tree stream.
        attempts: Attempt budget.
        min_distance: Minimum spacing in normalized units.
        max_slope: Steepest accepted slope in degrees.

    Returns:
        Tuple of (prototype prefabs, placed trees).
    """
    prototypes = tree_prototypes(biomes)
    prototype_index = {prefab: i for i, prefab in enumerate(prototypes)}
    trees: list[PlacedTree] = []
    spacing = SpacingIndex(min_distance)

    for _ in range(attempts):
        u = float(rng.random())
        v = float(rng.random())

        rules = biomes[_label_at(biome_map, u, v)].trees
        if not rules:
            continue

        rule = rules[int(rng.integers(len(rules)))]
        if rule.prefab is None or rng.random() > rule.density:
            continue

        if float(surface.steepness(u, v)) > max_slope:
            continue

        if spacing.too_close(u, v):
            continue

        height = float(surface.height(u, v))
        base_scale = rule.min_scale + (rule.max_scale - rule.min_scale) * float(rng.random())
        jitter = HEIGHT_JITTER[0] + (HEIGHT_JITTER[1] - HEIGHT_JITTER[0]) * float(rng.random())

        trees.append(
            PlacedTree(
                x=u,
                y=v,
                height=height,
                prototype_index=prototype_index[rule.prefab],
                width_scale=base_scale,
                height_scale=base_scale * jitter,
            )
        )
        spacing.add(u, v)

    logger.info("trees_placed", attempts=attempts, placed=len(trees), prototypes=len(prototypes))
    return prototypes, trees


def place_details(
    biome_map: NDArray[np.int32],
    biomes: Sequence[Biome],
    surface: SurfaceQuery,
    rng: np.random.Generator,
    detail_resolution: int,
    max_slope: float = 30.0,
) -> list[DetailLayer]:
    """Paint a presence grid for every detail prototype.

    A detail cell is eligible when its slope is within ``max_slope`` and
    its biome owns the prototype; eligible cells are set with the rule's
    density. Draws are taken in row-major order over eligible cells.

    Args:
        biome_map: Biome index grid.
        biomes: Biome table.
        surface: Height/slope queries.
        rng: Generator for the detail stream.
        detail_resolution: Detail grid cells per side (>= 2).
        max_slope: Steepest painted slope in degrees.

    Returns:
        One layer per detail prototype, in prototype order.
    """
    prototypes = detail_prototypes(biomes)
    if not prototypes:
        return []

    coords = np.arange(detail_resolution, dtype=np.float64) / (detail_resolution - 1)
    v, u = np.meshgrid(coords, coords, indexing="ij")

    flat = surface.steepness(u, v) <= max_slope

    n = biome_map.shape[0] - 1
    rows = np.clip(np.rint(v * n).astype(np.int64), 0, n)
    cols = np.clip(np.rint(u * n).astype(np.int64), 0, n)
    labels = biome_map[rows, cols]

    layers = []
    for prototype in prototypes:
        eligible = flat & (labels == prototype.biome_index)
        presence = np.zeros((detail_resolution, detail_resolution), dtype=np.uint8)
        draws = rng.random(int(eligible.sum()))
        presence[eligible] = draws < prototype.density
        layers.append(DetailLayer(prototype=prototype, presence=presence))

    logger.info(
        "details_placed",
        resolution=detail_resolution,
        layers=len(layers),
        cells=int(sum(layer.presence.sum() for layer in layers)),
    )
    return layers
