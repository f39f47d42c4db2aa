"""Seed-derived random streams.

Every stochastic step of the pipeline draws from its own named stream,
derived from the run seed with ``numpy.random.SeedSequence``. Streams are
independent of each other, so adding draws to one stage never shifts the
values another stage sees.
"""

from enum import IntEnum

import numpy as np

MAX_SEED = 2**31 - 1


class Stream(IntEnum):
    """Named random streams, one per stochastic pipeline step."""

    VORONOI = 0
    OCTAVE_OFFSETS = 1
    CLIMATE = 2
    TREES = 3
    DETAILS = 4


def make_rng(seed: int, stream: Stream) -> np.random.Generator:
    """Create the generator for one named stream of a seed.

    Args:
        seed: Run seed.
        stream: Which pipeline step the stream feeds.

    Returns:
        A fresh generator; two calls with the same arguments yield
        identical sequences.
    """
    return np.random.default_rng(np.random.SeedSequence([seed, int(stream)]))


def random_seed(rng: np.random.Generator | None = None) -> int:
    """Draw a new run seed in [0, MAX_SEED).

    Args:
        rng: Source generator. Defaults to one seeded from OS entropy.
    """
    if rng is None:
        rng = np.random.default_rng()
    return int(rng.integers(0, MAX_SEED))
