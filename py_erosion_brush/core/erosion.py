"""
Iterative hydraulic erosion for the erosion brush.

One call to ``erosion_iteration`` runs a single erosion pass:

1. Every cell compares itself with its four neighbours (edge cells see a
   flat border, so nothing leaves the grid). Cells with steep downhill drops
   lose material in proportion to their steepest drop; the loss is written
   to the cliff matrix.
2. The loosened material is routed downhill for a number of fluidity
   sub-iterations. Routing weights are the downhill drops, perturbed by a
   bounded random "ruffle" so channels do not form perfectly regular
   patterns. Material that reaches a pit or flat cell stays there.
3. A fraction ``sediment_amount * durability`` of the transported material is
   deposited where it ended up (raising the height and the sediment
   matrix). The rest is washed away, so a pass never adds mass.

The brush calls this several times per stroke (``erosion_iterations``) and
blurs the result afterwards.
"""

from typing import Tuple

import numpy as np
import structlog

from ..utils.random import make_rng
from .matrix import Matrix

logger = structlog.get_logger()

# Share of the steepest drop loosened at erosion_amount == 1
EROSION_RATE = 0.25
# Never loosen more than half the steepest drop; keeps slopes from inverting
MAX_EROSION_SHARE = 0.5


def _downhill_drops(height: np.ndarray) -> Tuple[np.ndarray, ...]:
    """Non-negative height drops towards the north, south, west and east neighbours."""
    padded = np.pad(height, 1, mode="edge")
    center = padded[1:-1, 1:-1]
    north = padded[:-2, 1:-1]
    south = padded[2:, 1:-1]
    west = padded[1:-1, :-2]
    east = padded[1:-1, 2:]
    return (
        np.maximum(center - north, 0.0),
        np.maximum(center - south, 0.0),
        np.maximum(center - west, 0.0),
        np.maximum(center - east, 0.0),
    )


def _route(load: np.ndarray, fractions: Tuple[np.ndarray, ...]) -> np.ndarray:
    """Move every cell's load to its neighbours according to outflow fractions."""
    frac_n, frac_s, frac_w, frac_e = fractions
    out_n = load * frac_n
    out_s = load * frac_s
    out_w = load * frac_w
    out_e = load * frac_e

    routed = load - (out_n + out_s + out_w + out_e)
    routed[:-1, :] += out_n[1:, :]
    routed[1:, :] += out_s[:-1, :]
    routed[:, :-1] += out_w[:, 1:]
    routed[:, 1:] += out_e[:, :-1]
    return np.maximum(routed, 0.0)


def erosion_iteration(
    heights: Matrix,
    cliff: Matrix,
    sediment: Matrix,
    erosion_durability: float = 0.9,
    erosion_amount: float = 1.0,
    sediment_amount: float = 0.8,
    erosion_fluidity_iterations: int = 3,
    ruffle: float = 0.1,
    seed: int = 0,
) -> None:
    """
    Run one erosion pass in place.

    Args:
        heights: Height matrix
        cliff: Matrix accumulating removed material
        sediment: Matrix accumulating redeposited material
        erosion_durability: Share in [0, 1] of the transported material that
            survives transport; lower values wash more material away
        erosion_amount: Erosion strength per pass
        sediment_amount: Share in [0, 1] of the surviving material that is
            deposited back onto the terrain
        erosion_fluidity_iterations: Number of downhill routing steps
        ruffle: Random perturbation in [0, 1] of the routing weights
        seed: Seed for the ruffle perturbation
    """
    if heights.rect.is_empty:
        return

    durability = float(np.clip(erosion_durability, 0.0, 1.0))
    redeposit = float(np.clip(sediment_amount, 0.0, 1.0)) * durability
    ruffle = float(np.clip(ruffle, 0.0, 1.0))
    amount = max(float(erosion_amount), 0.0)

    height = heights.grid.astype(np.float64)

    # Loosen material from steep cells
    drops = _downhill_drops(height)
    steepest = np.maximum.reduce(drops)
    eroded = np.minimum(steepest * EROSION_RATE * amount, steepest * MAX_EROSION_SHARE)
    height -= eroded

    # Routing weights from the eroded surface, with bounded jitter
    rng = make_rng(seed)
    drops = _downhill_drops(height)
    jitter = 1.0 + ruffle * rng.uniform(-1.0, 1.0, size=(4,) + height.shape)
    weights = [drop * jitter[i] for i, drop in enumerate(drops)]
    total = np.sum(weights, axis=0)
    fractions = tuple(
        np.divide(w, total, out=np.zeros_like(w), where=total > 0) for w in weights
    )

    load = eroded
    for _ in range(max(int(erosion_fluidity_iterations), 0)):
        load = _route(load, fractions)

    deposited = load * redeposit
    height += deposited

    heights.grid[...] = height
    cliff.grid[...] += eroded.astype(np.float32)
    sediment.grid[...] += deposited.astype(np.float32)

    logger.debug(
        "Erosion pass applied",
        eroded=float(eroded.sum()),
        deposited=float(deposited.sum()),
    )
