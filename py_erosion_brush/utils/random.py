"""
Random number generation utilities.

Every generator call receives its seed explicitly; there is no module level
random state. Python's ``random`` module is not used so brush results are
reproducible for a given seed regardless of what else the host does.
"""

from typing import Tuple

import numpy as np

# Moduli used to fold seeds into noise-space offsets
SEED_MODULUS_X = 77777
SEED_MODULUS_Z = 73333


def make_rng(seed: int) -> np.random.Generator:
    """
    Create an independent NumPy generator for a seed.

    Args:
        seed: Integer seed; negative values are folded to non-negative

    Returns:
        Fresh ``numpy.random.Generator``
    """
    return np.random.default_rng(abs(int(seed)))


def seed_offsets(seed: int, offset: Tuple[float, float] = (0.0, 0.0)) -> Tuple[int, int]:
    """
    Derive the two per-call noise offsets from a seed.

    The x and z offsets use different multipliers and moduli so the same seed
    does not produce diagonally repeating patterns, and the brush position
    is folded in so neighbouring strokes sample different noise.

    Args:
        seed: Generator seed
        offset: World offset of the stroke

    Returns:
        Tuple of (seed_x, seed_z)
    """
    seed_x = (int(offset[0]) + seed * 7) % SEED_MODULUS_X
    seed_z = (int(offset[1]) + seed * 3) % SEED_MODULUS_Z
    return seed_x, seed_z
