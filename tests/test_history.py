"""Tests for the undo history."""

import pytest
import numpy as np
from py_erosion_brush.core.history import UndoHistory, UndoStep
from py_erosion_brush.core.terrain import ArrayTerrain


@pytest.fixture
def terrain():
    """Create a terrain with recognizable heights and two coverage layers."""
    terrain = ArrayTerrain.create(height_resolution=9, coverage_resolution=8, layers=2)
    terrain.heights[...] = np.arange(81, dtype=np.float32).reshape(9, 9) / 81.0
    return terrain


class TestUndoStep:
    """Test snapshots."""

    def test_snapshot_is_independent(self):
        """Test that later changes to the source do not leak into the snapshot."""
        source = np.ones((3, 3), dtype=np.float32)
        step = UndoStep.capture(source, None, (0, 0), (0, 0))
        source[...] = 5.0

        assert np.all(step.heights == 1.0)
        assert not step.heights.flags.writeable

    def test_offsets_are_clamped(self):
        """Test that negative offsets are clamped to the terrain origin."""
        step = UndoStep.capture(np.zeros((2, 2)), np.zeros((2, 2, 2)), (-3, 4), (1, -1))

        assert step.heights_offset == (0, 4)
        assert step.coverage_offset == (1, 0)


class TestUndoHistory:
    """Test stroke recording and undo."""

    def test_undo_restores_blocks(self, terrain):
        """Test that undo writes back heights and coverage."""
        history = UndoHistory(capacity=4)
        original_heights = terrain.heights.copy()
        original_coverage = terrain.coverage.copy()

        history.begin_stroke()
        history.record_step(
            terrain.read_heights(2, 3, 4, 4), terrain.read_coverage_layers(1, 1, 3, 3), (2, 3), (1, 1)
        )
        terrain.heights[3:7, 2:6] = 0.9
        terrain.coverage[1:4, 1:4] = [0.2, 0.8]

        assert history.undo_last_stroke(terrain) == 1
        np.testing.assert_array_equal(terrain.heights, original_heights)
        np.testing.assert_array_equal(terrain.coverage, original_coverage)
        assert not history.can_undo

    def test_steps_replay_in_reverse(self, terrain):
        """Test that overlapping steps of a stroke restore the state before the stroke."""
        history = UndoHistory()
        original = terrain.heights.copy()

        history.begin_stroke()
        history.record_step(terrain.read_heights(0, 0, 5, 5), None, (0, 0))
        terrain.heights[0:5, 0:5] += 0.1
        history.record_step(terrain.read_heights(2, 2, 5, 5), None, (2, 2))
        terrain.heights[2:7, 2:7] += 0.1

        assert history.undo_last_stroke(terrain) == 2
        np.testing.assert_array_equal(terrain.heights, original)

    def test_undo_only_last_stroke(self, terrain):
        """Test that one undo reverts exactly one stroke."""
        history = UndoHistory()

        history.begin_stroke()
        history.record_step(terrain.read_heights(0, 0, 3, 3), None, (0, 0))
        terrain.heights[0:3, 0:3] = 0.5
        after_first = terrain.heights.copy()

        history.begin_stroke()
        history.record_step(terrain.read_heights(0, 0, 3, 3), None, (0, 0))
        terrain.heights[0:3, 0:3] = 0.7

        history.undo_last_stroke(terrain)

        np.testing.assert_array_equal(terrain.heights, after_first)
        assert len(history) == 1

    def test_capacity_evicts_oldest(self, terrain):
        """Test that the history never exceeds its capacity."""
        history = UndoHistory(capacity=3)

        for i in range(5):
            history.begin_stroke()
            history.record_step(np.full((1, 1), i, dtype=np.float32), None, (0, 0))

        assert len(history) == 3
        assert [stroke[0].heights[0, 0] for stroke in history.strokes] == [2.0, 3.0, 4.0]

    def test_record_without_stroke(self):
        """Test that recording without an open stroke starts one."""
        history = UndoHistory()

        history.record_step(np.zeros((2, 2)), None, (0, 0))

        assert len(history) == 1
        assert len(history.strokes[0]) == 1

    def test_empty_undo(self, terrain):
        """Test that undoing with no strokes is a no-op."""
        history = UndoHistory()
        before = terrain.heights.copy()

        assert history.undo_last_stroke(terrain) == 0
        np.testing.assert_array_equal(terrain.heights, before)

    def test_clear(self):
        """Test discarding all strokes."""
        history = UndoHistory()
        history.record_step(np.zeros((2, 2)), None, (0, 0))

        history.clear()

        assert len(history) == 0
        assert not history.can_undo

    def test_default_capacity(self):
        """Test that the capacity defaults to the configured value."""
        from py_erosion_brush.config import settings

        assert UndoHistory().capacity == settings.undo_capacity

    def test_explicit_capacity_is_kept(self):
        """Test that small capacities are honoured and invalid ones rejected."""
        history = UndoHistory(capacity=1)
        history.begin_stroke()
        history.begin_stroke()

        assert history.capacity == 1
        assert len(history) == 1

        with pytest.raises(ValueError):
            UndoHistory(capacity=0)


class TestDoublePrecisionHost:
    """Test undo against storage that keeps float64 heights."""

    @pytest.fixture
    def float64_terrain(self):
        """Create a terrain whose height array is float64."""
        terrain = ArrayTerrain.create(height_resolution=17, coverage_resolution=16, layers=2)
        terrain.heights = np.random.default_rng(5).uniform(0.2, 0.8, (17, 17))
        return terrain

    def test_snapshot_keeps_dtype(self, float64_terrain):
        """Test that snapshots are not narrowed to single precision."""
        block = float64_terrain.read_heights(0, 0, 4, 4)

        step = UndoStep.capture(block, None, (0, 0), (0, 0))

        assert step.heights.dtype == np.float64
        np.testing.assert_array_equal(step.heights, block)

    def test_brush_undo_is_exact(self, float64_terrain):
        """Test that undoing a dab restores float64 heights bit for bit."""
        from py_erosion_brush.config import Preset
        from py_erosion_brush.core.brush import ErosionBrush, WorldRect

        before = float64_terrain.heights.copy()
        brush = ErosionBrush(float64_terrain, Preset(noise_amount=20.0, noise_size=40.0))

        assert brush.apply_brush(WorldRect(0.0, 0.0, 1.0, 1.0), use_falloff=False, new_stroke=True)
        assert not np.array_equal(float64_terrain.heights, before)

        assert brush.undo()
        assert float64_terrain.heights.dtype == np.float64
        np.testing.assert_array_equal(float64_terrain.heights, before)
