"""
Fractal noise uplift for the noise brush.

The fractal is built from OpenSimplex octaves that are combined with an
overlay blend rather than summed. Each octave pushes the running value
toward 1 when its sample is above 0.5 and toward 0 otherwise, which gives
sharper, terraced relief than plain fBm.

The signed result raises or lowers the height matrix and is mirrored into
two coverage deltas: positive changes go to the "cliff" (uplift) matrix and
negative changes to the "sediment" (subsidence) matrix.
"""

from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
import structlog
from opensimplex import OpenSimplex

from ..config import settings
from ..utils.random import seed_offsets
from .matrix import Matrix

logger = structlog.get_logger()

# Coverage deltas are scaled to stay comparable with the erosion brush
COVERAGE_FACTOR = 0.1

# Resolution the feature size is expressed against
REFERENCE_RESOLUTION = 4096.0


@lru_cache(maxsize=32)
def _simplex(seed: int) -> OpenSimplex:
    return OpenSimplex(seed=seed)


def octave_count(size: float, max_octaves: Optional[int] = None) -> int:
    """
    Number of octaves needed until the feature size drops below one cell.

    The first (largest) octave is always included.
    """
    if max_octaves is None:
        max_octaves = settings.max_noise_octaves
    count = 1
    current = float(size)
    for _ in range(max_octaves):
        current /= 2
        if current < 1:
            break
        count += 1
    return count


def fractal(
    xs: np.ndarray,
    zs: np.ndarray,
    size: float,
    detail: float = 0.5,
    seed: int = 0,
    step: float = 1.0,
    seed_x: int = 0,
    seed_z: int = 0,
    start_size: Optional[float] = None,
) -> np.ndarray:
    """
    Overlay-blended fractal noise over a grid of cell coordinates.

    Args:
        xs: 1D array of x coordinates
        zs: 1D array of z coordinates
        size: Feature size in cells; sets the number of octaves
        detail: Amplitude multiplier applied per octave
        seed: Seed for the underlying simplex noise
        step: Coordinate scale applied before sampling
        seed_x: Offset added to x coordinates
        seed_z: Offset added to z coordinates
        start_size: Feature size of the first octave (defaults to ``size``)

    Returns:
        ``[z, x]`` array of values in [0, 1]
    """
    size = max(float(size), 0.0)
    num_octaves = octave_count(size)
    simplex = _simplex(int(seed))

    xs = np.asarray(xs, dtype=np.float64)
    zs = np.asarray(zs, dtype=np.float64)
    result = np.full((zs.size, xs.size), 0.5)
    cur_size = size if start_size is None else max(float(start_size), 0.0)
    cur_amount = 1.0

    for i in range(num_octaves):
        # cur_size is never negative, so the divisor is at least 1
        scale = step / (cur_size + 1)
        px = (xs + seed_x + 1000 * (i + 1)) * scale
        pz = (zs + seed_z + 100 * i) * scale
        sample = (simplex.noise2array(px, pz) + 1.0) * 0.5
        sample = (sample - 0.5) * cur_amount + 0.5

        # Overlay blend
        result = np.where(
            sample > 0.5,
            1 - 2 * (1 - result) * (1 - sample),
            2 * sample * result,
        )

        cur_size *= 0.5
        cur_amount *= detail

    return np.clip(result, 0.0, 1.0)


def noise_iteration(
    heights: Matrix,
    cliff: Optional[Matrix],
    sediment: Optional[Matrix],
    size: float,
    intensity: float = 1.0,
    detail: float = 0.5,
    offset: Tuple[float, float] = (0.0, 0.0),
    seed: int = 12345,
    uplift: float = 0.5,
    max_height: float = 500.0,
) -> None:
    """
    Add fractal uplift to a height matrix in place.

    Args:
        heights: Height matrix, values normalized against ``max_height``
        cliff: Optional matrix receiving the positive part of the change
        sediment: Optional matrix receiving the negative part of the change
        size: Feature size
        intensity: Height change in world units for a fully saturated fractal
        detail: Per-octave amplitude falloff
        offset: World offset folded into the seed offsets
        seed: Noise seed
        uplift: Bias in [0, 1]; 1 only raises terrain, 0 only lowers it
        max_height: Vertical terrain scale used to normalize the change
    """
    rect = heights.rect
    if rect.is_empty:
        return

    # Keeps the visual feature size independent of the working resolution
    step = max(int(REFERENCE_RESOLUTION / rect.size.x), 1)
    seed_x, seed_z = seed_offsets(seed, offset)

    xs = np.arange(rect.offset.x, rect.offset.x + rect.size.x)
    zs = np.arange(rect.offset.z, rect.offset.z + rect.size.z)
    value = fractal(
        xs, zs, size,
        detail=detail,
        seed=seed,
        step=step,
        seed_x=seed_x,
        seed_z=seed_z,
        start_size=size * 10,
    )

    delta = (value - (1 - uplift)) * intensity
    heights.grid[...] += (delta / max(float(max_height), 1e-6)).astype(np.float32)

    if cliff is not None:
        cliff.grid[...] = np.maximum(delta, 0) * COVERAGE_FACTOR
    if sediment is not None:
        sediment.grid[...] = np.maximum(-delta, 0) * COVERAGE_FACTOR

    logger.debug("Noise iteration applied", cells=rect.count, octaves=octave_count(size), seed=seed)
