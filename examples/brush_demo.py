#!/usr/bin/env python3
"""
Demo script painting noise and erosion strokes onto an in-memory terrain.

Pass ``--plot`` to show the result with matplotlib (``pip install .[viz]``).
"""

import sys

import numpy as np
from py_erosion_brush import (
    ArrayTerrain,
    BrushMode,
    ErosionBrush,
    Preset,
    SplatPreset,
    configure_logging,
)


def describe(label, terrain):
    """Print height and coverage statistics."""
    heights = terrain.heights * terrain.vertical_scale()
    print(f"\n{label}")
    print("-" * 30)
    print(f"  Height range: {heights.min():.1f}-{heights.max():.1f}")
    print(f"  Average height: {heights.mean():.1f}")
    if terrain.coverage is not None:
        shares = terrain.coverage.mean(axis=(0, 1))
        for i, share in enumerate(shares):
            print(f"  Layer {i}: {share * 100:.1f}%")


def main():
    """Demonstrate noise and erosion brushes."""
    configure_logging(level="WARNING", fmt="console")

    print("Py-Erosion-Brush Demo")
    print("=" * 40)

    terrain = ArrayTerrain.create(height_resolution=129, coverage_resolution=128, layers=3, size=1000.0)

    # Raise some hills with the noise brush
    hills = Preset(
        name="hills",
        brush_size=300.0,
        brush_falloff=0.4,
        noise_amount=120.0,
        noise_size=150.0,
        noise_uplift=0.9,
    )
    brush = ErosionBrush(terrain, hills)
    dabs = brush.paint_stroke([(0.2, 0.3), (0.5, 0.6), (0.8, 0.4)])
    brush.flush()
    print(f"\nPainted {dabs} noise dabs")
    describe("After noise stroke", terrain)

    # Wash them down with the erosion brush, painting cliffs and sediment
    erosion = Preset(
        name="wash",
        mode=BrushMode.EROSION,
        downscale=2,
        preserve_detail=True,
        erosion_iterations=5,
        foreground=SplatPreset(apply=True, channel=1),
        background=SplatPreset(apply=True, opacity=0.6, channel=2),
    )
    brush.preset = erosion
    brush.apply_to_terrain(iterations=2)
    describe("After erosion", terrain)

    eroded = terrain.heights.copy()
    brush.undo()
    print(f"\nUndo restored noise-only terrain: max change {np.abs(eroded - terrain.heights).max():.4f}")
    brush.apply_to_terrain(iterations=2)

    if "--plot" in sys.argv:
        import matplotlib.pyplot as plt

        fig, (ax_height, ax_cover) = plt.subplots(1, 2, figsize=(12, 6))
        ax_height.imshow(terrain.heights, cmap="terrain")
        ax_height.set_title("Heights")
        ax_cover.imshow(terrain.coverage)
        ax_cover.set_title("Coverage (RGB = layers 0-2)")
        plt.show()


if __name__ == "__main__":
    main()
