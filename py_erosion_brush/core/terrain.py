"""
Terrain storage used by the brush.

The brush does not own terrain data. It reads and writes rectangular blocks
through the ``TerrainData`` protocol, which a host implements on top of its
own terrain object. ``ArrayTerrain`` is a NumPy-backed implementation for
hosts that keep terrain in memory, and for tests.

Array layout: heights are ``[z, x]`` arrays of floats in [0, 1] (normalized
against ``vertical_scale()``); coverage layers are ``[z, x, layer]`` arrays
whose layers sum to 1 in every cell.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

import numpy as np
import structlog

logger = structlog.get_logger()


@runtime_checkable
class TerrainData(Protocol):
    """Storage collaborator read and written by the brush."""

    def read_heights(self, offset_x: int, offset_z: int, width: int, depth: int) -> np.ndarray:
        """Return a ``[depth, width]`` block; the caller keeps it inside the bounds."""
        ...

    def write_heights(
        self, offset_x: int, offset_z: int, heights: np.ndarray, delay_lod: bool = False
    ) -> None:
        """Write a height block. ``delay_lod`` may postpone derived updates until ``flush``."""
        ...

    def flush(self) -> None:
        ...

    def read_coverage_layers(self, offset_x: int, offset_z: int, width: int, depth: int) -> np.ndarray:
        ...

    def write_coverage_layers(self, offset_x: int, offset_z: int, layers: np.ndarray) -> None:
        ...

    def layer_count(self) -> int:
        ...

    def height_resolution(self) -> int:
        """Number of height samples per side."""
        ...

    def coverage_resolution(self) -> int:
        """Number of coverage samples per side."""
        ...

    def vertical_scale(self) -> float:
        """World height corresponding to a normalized height of 1."""
        ...

    def world_size(self) -> float:
        """Horizontal extent of the terrain in world units."""
        ...


@dataclass
class ArrayTerrain:
    """In-memory terrain backed by NumPy arrays."""

    heights: np.ndarray
    coverage: Optional[np.ndarray] = None
    max_height: float = 600.0
    size: float = 1000.0
    lod_dirty: bool = field(default=False, init=False)

    def __post_init__(self):
        self.heights = np.asarray(self.heights, dtype=np.float32)
        if self.heights.ndim != 2 or self.heights.shape[0] != self.heights.shape[1]:
            raise ValueError(f"Heights must be a square 2D array, got shape {self.heights.shape}")
        if self.coverage is not None:
            self.coverage = np.asarray(self.coverage, dtype=np.float32)
            if self.coverage.ndim != 3 or self.coverage.shape[0] != self.coverage.shape[1]:
                raise ValueError(
                    f"Coverage must be a square [z, x, layer] array, got shape {self.coverage.shape}"
                )

    @classmethod
    def create(
        cls,
        height_resolution: int = 129,
        coverage_resolution: int = 128,
        layers: int = 2,
        max_height: float = 600.0,
        size: float = 1000.0,
        base_height: float = 0.0,
    ) -> "ArrayTerrain":
        """
        Create a flat terrain.

        Args:
            height_resolution: Height samples per side
            coverage_resolution: Coverage samples per side
            layers: Number of coverage layers; 0 disables coverage
            max_height: Vertical scale in world units
            size: Horizontal extent in world units
            base_height: Initial normalized height

        Returns:
            New terrain with the first coverage layer fully painted
        """
        heights = np.full((height_resolution, height_resolution), base_height, dtype=np.float32)
        coverage = None
        if layers > 0:
            coverage = np.zeros((coverage_resolution, coverage_resolution, layers), dtype=np.float32)
            coverage[..., 0] = 1.0
        return cls(heights=heights, coverage=coverage, max_height=max_height, size=size)

    def read_heights(self, offset_x: int, offset_z: int, width: int, depth: int) -> np.ndarray:
        return self.heights[offset_z:offset_z + depth, offset_x:offset_x + width].copy()

    def write_heights(
        self, offset_x: int, offset_z: int, heights: np.ndarray, delay_lod: bool = False
    ) -> None:
        """Write a height block, clamped to the normalized [0, 1] range."""
        depth, width = heights.shape
        self.heights[offset_z:offset_z + depth, offset_x:offset_x + width] = np.clip(heights, 0.0, 1.0)
        if delay_lod:
            self.lod_dirty = True

    def flush(self) -> None:
        if self.lod_dirty:
            logger.debug("Flushing delayed height updates")
        self.lod_dirty = False

    def read_coverage_layers(self, offset_x: int, offset_z: int, width: int, depth: int) -> np.ndarray:
        if self.coverage is None:
            return np.zeros((depth, width, 0), dtype=np.float32)
        return self.coverage[offset_z:offset_z + depth, offset_x:offset_x + width].copy()

    def write_coverage_layers(self, offset_x: int, offset_z: int, layers: np.ndarray) -> None:
        if self.coverage is None:
            return
        depth, width = layers.shape[:2]
        self.coverage[offset_z:offset_z + depth, offset_x:offset_x + width] = layers

    def layer_count(self) -> int:
        return 0 if self.coverage is None else self.coverage.shape[2]

    def height_resolution(self) -> int:
        return self.heights.shape[0]

    def coverage_resolution(self) -> int:
        return 0 if self.coverage is None else self.coverage.shape[0]

    def vertical_scale(self) -> float:
        return self.max_height

    def world_size(self) -> float:
        return self.size
