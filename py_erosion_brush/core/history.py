"""
Undo history for brush strokes.

Before every brush dab the brush records an ``UndoStep``: copies of the
height block and coverage block it is about to overwrite, together with
their absolute offsets. Steps are grouped into strokes (one stroke per user
gesture); undo restores a whole stroke by writing its snapshots back in
reverse order. Restoring is a plain overwrite of the snapshotted rects, so
edits made outside them are left alone.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

import numpy as np
import structlog

from ..config import settings
from .terrain import TerrainData

logger = structlog.get_logger()


def _frozen_copy(array: np.ndarray) -> np.ndarray:
    snapshot = np.array(array, copy=True)
    snapshot.setflags(write=False)
    return snapshot


@dataclass(frozen=True)
class UndoStep:
    """Snapshot of the terrain blocks touched by one brush dab, in the host's dtype."""

    heights: np.ndarray
    heights_offset: Tuple[int, int]
    coverage: Optional[np.ndarray] = None
    coverage_offset: Tuple[int, int] = (0, 0)

    @classmethod
    def capture(
        cls,
        heights: np.ndarray,
        coverage: Optional[np.ndarray],
        heights_offset: Tuple[int, int],
        coverage_offset: Tuple[int, int],
    ) -> "UndoStep":
        """
        Copy the given blocks into a new step.

        Offsets are clamped to be non-negative; blocks read at a terrain edge
        already start inside the terrain.
        """
        return cls(
            heights=_frozen_copy(heights),
            heights_offset=(max(int(heights_offset[0]), 0), max(int(heights_offset[1]), 0)),
            coverage=None if coverage is None else _frozen_copy(coverage),
            coverage_offset=(max(int(coverage_offset[0]), 0), max(int(coverage_offset[1]), 0)),
        )

    def perform(self, terrain: TerrainData) -> None:
        """Write the snapshots back to the terrain."""
        terrain.write_heights(self.heights_offset[0], self.heights_offset[1], self.heights.copy())
        if self.coverage is not None and self.coverage.size:
            terrain.write_coverage_layers(
                self.coverage_offset[0], self.coverage_offset[1], self.coverage.copy()
            )


class UndoHistory:
    """Bounded list of strokes, oldest evicted first."""

    def __init__(self, capacity: Optional[int] = None):
        """
        Initialize an empty history.

        Args:
            capacity: Maximum number of strokes kept, defaults to ``settings.undo_capacity``

        Raises:
            ValueError: If ``capacity`` is less than 1
        """
        if capacity is None:
            capacity = settings.undo_capacity
        if int(capacity) < 1:
            raise ValueError(f"Undo capacity must be at least 1, got {capacity}")
        self.capacity = int(capacity)
        self._strokes: Deque[List[UndoStep]] = deque()

    def __len__(self) -> int:
        return len(self._strokes)

    @property
    def can_undo(self) -> bool:
        return bool(self._strokes)

    @property
    def strokes(self) -> List[List[UndoStep]]:
        """Shallow copy of the recorded strokes, oldest first."""
        return [list(stroke) for stroke in self._strokes]

    def begin_stroke(self) -> None:
        """Start a new stroke, evicting the oldest one when full."""
        if len(self._strokes) >= self.capacity:
            self._strokes.popleft()
            logger.debug("Oldest undo stroke evicted", capacity=self.capacity)
        self._strokes.append([])
        logger.debug("Undo stroke started", strokes=len(self._strokes))

    def record_step(
        self,
        heights: np.ndarray,
        coverage: Optional[np.ndarray],
        heights_offset: Tuple[int, int],
        coverage_offset: Tuple[int, int] = (0, 0),
    ) -> UndoStep:
        """Append a snapshot to the current stroke, starting one if needed."""
        if not self._strokes:
            self.begin_stroke()
        step = UndoStep.capture(heights, coverage, heights_offset, coverage_offset)
        self._strokes[-1].append(step)
        return step

    def undo_last_stroke(self, terrain: TerrainData) -> int:
        """
        Revert the most recent stroke.

        Args:
            terrain: Terrain the snapshots are written to

        Returns:
            Number of steps replayed (0 when there is nothing to undo)
        """
        if not self._strokes:
            logger.info("Nothing to undo")
            return 0

        stroke = self._strokes.pop()
        for step in reversed(stroke):
            step.perform(terrain)

        logger.info("Undo performed", steps=len(stroke), remaining=len(self._strokes))
        return len(stroke)

    def clear(self) -> None:
        self._strokes.clear()
