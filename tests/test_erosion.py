"""Tests for the hydraulic erosion pass."""

import pytest
import numpy as np
from py_erosion_brush.core.coords import CoordRect
from py_erosion_brush.core.erosion import erosion_iteration
from py_erosion_brush.core.matrix import Matrix


@pytest.fixture
def cone():
    """Create a cone shaped height field."""
    size = 24
    zs, xs = np.mgrid[0:size, 0:size]
    distance = np.hypot(xs - size / 2, zs - size / 2)
    heights = np.maximum(0.0, 1.0 - distance / 10.0) * 0.5
    return CoordRect.from_values(0, 0, size, size), heights


def _run(rect, heights, **params):
    height = Matrix.from_array(rect, heights)
    cliff = Matrix(rect)
    sediment = Matrix(rect)
    erosion_iteration(height, cliff, sediment, **params)
    return height, cliff, sediment


class TestErosionIteration:
    """Test one erosion pass."""

    def test_flat_terrain_is_stable(self):
        """Test that flat terrain does not erode."""
        rect = CoordRect.from_values(0, 0, 8, 8)
        height, cliff, sediment = _run(rect, np.full((8, 8), 0.3))

        np.testing.assert_allclose(height.grid, 0.3)
        assert np.all(cliff.grid == 0.0)
        assert np.all(sediment.grid == 0.0)

    def test_mass_lost_with_low_durability(self, cone):
        """Test that washed away material leaves the terrain."""
        rect, heights = cone

        height, cliff, _ = _run(rect, heights, erosion_durability=0.5, sediment_amount=0.8)

        assert cliff.grid.sum() > 0
        assert height.grid.sum() < heights.astype(np.float32).sum()

    def test_mass_kept_at_full_durability(self, cone):
        """Test that full durability and deposition conserve material."""
        rect, heights = cone

        height, _, _ = _run(rect, heights, erosion_durability=1.0, sediment_amount=1.0)

        np.testing.assert_allclose(
            height.grid.sum(dtype=np.float64), heights.astype(np.float32).sum(dtype=np.float64),
            rtol=1e-5,
        )

    def test_peak_is_lowered(self, cone):
        """Test that the steep top loses material."""
        rect, heights = cone

        height, cliff, _ = _run(rect, heights)

        assert height.grid[12, 12] < heights[12, 12]
        assert cliff.grid[12, 12] > 0

    def test_coverage_non_negative(self, cone):
        """Test that cliff and sediment only accumulate."""
        rect, heights = cone

        _, cliff, sediment = _run(rect, heights, ruffle=1.0, seed=3)

        assert cliff.grid.min() >= 0.0
        assert sediment.grid.min() >= 0.0
        assert sediment.grid.sum() > 0

    def test_extreme_parameters_stay_finite(self, cone):
        """Test that extreme settings never produce NaN or infinity."""
        rect, heights = cone

        height, cliff, sediment = _run(
            rect, heights * 1000.0,
            erosion_amount=100.0, erosion_fluidity_iterations=50, ruffle=1.0,
            erosion_durability=0.0, sediment_amount=0.0,
        )

        for matrix in (height, cliff, sediment):
            assert np.all(np.isfinite(matrix.grid))

    def test_deterministic(self, cone):
        """Test that the same seed gives the same result."""
        rect, heights = cone

        a = _run(rect, heights, seed=42)
        b = _run(rect, heights, seed=42)

        for first, second in zip(a, b):
            np.testing.assert_array_equal(first.grid, second.grid)

    def test_ruffle_perturbs_flow(self, cone):
        """Test that ruffle changes where sediment lands."""
        rect, heights = cone

        _, _, calm = _run(rect, heights, ruffle=0.0, seed=1)
        _, _, rough = _run(rect, heights, ruffle=1.0, seed=1)

        assert not np.array_equal(calm.grid, rough.grid)

    def test_empty_matrix(self):
        """Test that empty matrices are a no-op."""
        height, cliff, sediment = Matrix(), Matrix(), Matrix()

        erosion_iteration(height, cliff, sediment)

        assert height.count == 0
