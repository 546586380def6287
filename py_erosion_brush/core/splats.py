"""Coverage (splat) layer helpers."""

import numpy as np


def normalize_layers(layers: np.ndarray, pinned_layer: int) -> None:
    """
    Renormalize a ``[z, x, layer]`` coverage array in place around one layer.

    The pinned layer is clamped to [0, 1] and keeps its value; all other
    layers are rescaled so each cell sums to 1. When the other layers are
    all zero the remaining weight is shared evenly between them, and a
    single-layer array is filled with 1.

    Args:
        layers: Coverage array, modified in place
        pinned_layer: Index of the layer that was just painted

    Raises:
        ValueError: If ``pinned_layer`` is not a valid layer index
    """
    num_layers = layers.shape[-1]
    if not 0 <= pinned_layer < num_layers:
        raise ValueError(f"Pinned layer {pinned_layer} out of range for {num_layers} layers")

    if num_layers == 1:
        layers[..., 0] = 1.0
        return

    pinned = np.clip(layers[..., pinned_layer], 0.0, 1.0)
    layers[..., pinned_layer] = pinned

    others = np.ones(num_layers, dtype=bool)
    others[pinned_layer] = False
    others_sum = layers[..., others].sum(axis=-1)
    target = 1.0 - pinned

    factor = np.divide(target, others_sum, out=np.zeros_like(target), where=others_sum > 0)
    rescaled = layers[..., others] * factor[..., np.newaxis]

    # Cells without any other coverage share the rest evenly
    empty = others_sum <= 0
    rescaled[empty] = (target[empty] / (num_layers - 1))[:, np.newaxis]

    layers[..., others] = rescaled
