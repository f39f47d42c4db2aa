"""Voronoi cell-boundary field.

A fixed set of seed points in the unit square; each query returns how
close the sample sits to the boundary between its two nearest points.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class VoronoiField:
    """Seeded point set with a nearest/second-nearest distance query."""

    points: NDArray[np.float64]

    @classmethod
    def from_rng(cls, rng: np.random.Generator, count: int) -> "VoronoiField":
        """Draw ``count`` points uniformly from [0, 1]^2.

        Points are drawn sequentially as (x, y) pairs, so the first k points
        of a larger set equal the k points of a smaller one.

        Args:
            rng: Generator for the Voronoi stream.
            count: Number of points.

        Returns:
            The field.
        """
        return cls(points=rng.random((count, 2)))

    def __len__(self) -> int:
        return len(self.points)

    def nearest_distances(
        self, x: ArrayLike, y: ArrayLike
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Squared distances to the nearest and second-nearest points.

        Missing neighbours (fewer than two points) report ``inf``.
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        shape = np.broadcast_shapes(x.shape, y.shape)

        if len(self.points) == 0:
            return np.full(shape, np.inf), np.full(shape, np.inf)

        dx = x[..., np.newaxis] - self.points[:, 0]
        dy = y[..., np.newaxis] - self.points[:, 1]
        dist = np.broadcast_to(dx * dx + dy * dy, shape + (len(self.points),))

        if len(self.points) == 1:
            return dist[..., 0].copy(), np.full(shape, np.inf)

        nearest_two = np.partition(dist, 1, axis=-1)
        return nearest_two[..., 0], nearest_two[..., 1]

    def __call__(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Boundary proximity in [0, 1].

        The ratio of the nearest to the second-nearest squared distance:
        0 exactly on a seed point, rising monotonically to 1 on the
        boundary equidistant from the two nearest points. With fewer than
        two points there are no boundaries and the field is 0.

        No ``clamp((second - first) * 5)`` edge scale is applied. That
        difference is 0 on the boundary and largest at the seeds, the
        reverse of the boundary signal described above.

        Args:
            x: Query x coordinates in [0, 1].
            y: Query y coordinates in [0, 1].

        Returns:
            Field values in [0, 1].
        """
        first, second = self.nearest_distances(x, y)
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = first / second
        # inf second distance gives 0; coincident points (0/0) give nan
        ratio = np.nan_to_num(ratio, nan=0.0, posinf=1.0)
        return np.clip(ratio, 0.0, 1.0)
