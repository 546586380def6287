"""
Rectangular scalar grids bound to an integer rect.

A ``Matrix`` stores single precision values for every cell of its bound
``CoordRect``. Cell ``(x, z)`` lives at flat index
``(x - offset.x) + (z - offset.z) * width``, which is the row-major layout of
a ``[z, x]`` NumPy array, so ``matrix.grid`` is a zero-copy 2D view.

Matrices are reusable scratch buffers: ``change_rect`` rebinds a matrix to a
new rect and only reallocates when the new rect needs more cells than the
current buffer holds.
"""

from typing import Optional, Tuple

import numpy as np
from scipy import ndimage

from .coords import CoordRect


class Matrix:
    """2D float32 buffer addressed by absolute cell coordinates."""

    def __init__(self, rect: Optional[CoordRect] = None):
        """
        Initialize a zero-filled matrix.

        Args:
            rect: Rect the matrix covers. Defaults to an empty rect.
        """
        if rect is None:
            rect = CoordRect.from_values(0, 0, 0, 0)
        self.rect = rect
        self._buffer = np.zeros(rect.count, dtype=np.float32)
        self.array = self._buffer[: rect.count]

    @classmethod
    def from_array(cls, rect: CoordRect, data: np.ndarray) -> "Matrix":
        """Create a matrix holding a copy of a ``[z, x]`` array."""
        data = np.asarray(data, dtype=np.float32)
        if data.shape != (rect.size.z, rect.size.x):
            raise ValueError(
                f"Array shape {data.shape} does not match rect size "
                f"({rect.size.z}, {rect.size.x})"
            )
        matrix = cls(rect)
        matrix.grid[...] = data
        return matrix

    @property
    def count(self) -> int:
        return self.rect.count

    @property
    def grid(self) -> np.ndarray:
        """Writable ``[z, x]`` view of the cells."""
        return self.array.reshape(self.rect.size.z, self.rect.size.x)

    def change_rect(self, rect: CoordRect) -> None:
        """
        Rebind the matrix to a new rect.

        Cell values are not preserved; callers fill or clear the matrix
        after rebinding.
        """
        if rect.count > self._buffer.size:
            self._buffer = np.zeros(rect.count, dtype=np.float32)
        self.rect = rect
        self.array = self._buffer[: rect.count]

    def _index(self, x: int, z: int) -> int:
        if not self.rect.contains(x, z):
            raise IndexError(f"Coordinate ({x}, {z}) is outside {self.rect}")
        return (x - self.rect.offset.x) + (z - self.rect.offset.z) * self.rect.size.x

    def get(self, x: int, z: int) -> float:
        return float(self.array[self._index(x, z)])

    def set(self, x: int, z: int, value: float) -> None:
        self.array[self._index(x, z)] = value

    def __getitem__(self, pos: Tuple[int, int]) -> float:
        return self.get(*pos)

    def __setitem__(self, pos: Tuple[int, int], value: float) -> None:
        self.set(pos[0], pos[1], value)

    def import_array(self, data: np.ndarray, data_rect: CoordRect) -> None:
        """Copy the part of a ``[z, x]`` array (covering ``data_rect``) that overlaps this matrix."""
        overlap = CoordRect.intersect(self.rect, data_rect)
        if overlap.is_empty:
            return
        self.grid[self.rect.slices(overlap)] = data[data_rect.slices(overlap)]

    def export_array(self, data: np.ndarray, data_rect: CoordRect) -> None:
        """Write the overlapping cells into a ``[z, x]`` array covering ``data_rect``."""
        overlap = CoordRect.intersect(self.rect, data_rect)
        if overlap.is_empty:
            return
        data[data_rect.slices(overlap)] = self.grid[self.rect.slices(overlap)]

    def resize(self, rect: CoordRect, out: Optional["Matrix"] = None) -> "Matrix":
        """
        Resample this matrix onto another rect with bilinear interpolation.

        Target cell ``t`` samples source position ``(t + 0.5) * ratio - 0.5``
        with ``ratio = source.size / target.size`` per axis; positions are
        clamped to the source bounds, so edges are extended rather than
        wrapped. Equal sizes copy values unchanged.

        Args:
            rect: Target rect
            out: Optional matrix to reuse for the result

        Returns:
            Matrix bound to ``rect``
        """
        src_size = self.rect.size
        src = self.grid.copy() if out is self else self.grid

        if out is None:
            out = Matrix(rect)
        else:
            out.change_rect(rect)

        if rect.is_empty:
            return out
        if src.size == 0:
            out.clear()
            return out

        if src_size == rect.size:
            out.grid[...] = src
            return out

        ratio_x = src_size.x / rect.size.x
        ratio_z = src_size.z / rect.size.z
        xs = np.clip((np.arange(rect.size.x) + 0.5) * ratio_x - 0.5, 0, src_size.x - 1)
        zs = np.clip((np.arange(rect.size.z) + 0.5) * ratio_z - 0.5, 0, src_size.z - 1)
        zz, xx = np.meshgrid(zs, xs, indexing="ij")

        out.grid[...] = ndimage.map_coordinates(
            src, [zz, xx], order=1, mode="nearest", output=np.float32
        )
        return out

    def blur(self, intensity: float = 0.666) -> None:
        """
        Smooth the matrix in place with separable 3-tap averaging.

        Each pass uses the kernel ``[s/3, 1 - 2s/3, s/3]`` along x and then
        z, with edge cells clamped. Intensities above 1 are split into
        ``ceil(intensity)`` passes of equal strength, so every pass keeps
        non-negative weights.
        """
        if intensity <= 0 or self.rect.is_empty:
            return

        passes = int(np.ceil(intensity))
        strength = intensity / passes
        side = strength / 3.0
        weights = np.array([side, 1.0 - 2.0 * side, side])

        grid = self.grid
        for _ in range(passes):
            smoothed = ndimage.correlate1d(grid, weights, axis=1, mode="nearest")
            smoothed = ndimage.correlate1d(smoothed, weights, axis=0, mode="nearest")
            grid[...] = smoothed

    def multiply(self, factor: float) -> None:
        self.array *= factor

    def add(self, other: "Matrix") -> None:
        """Add another matrix bound to the same rect."""
        self.array += other.array

    def clear(self) -> None:
        self.array.fill(0)

    def remove_borders(self, inner: CoordRect) -> None:
        """Zero every cell of this matrix that lies outside ``inner``."""
        keep = CoordRect.intersect(self.rect, inner)
        if keep.is_empty:
            self.clear()
            return
        if keep == self.rect:
            return
        z_slice, x_slice = self.rect.slices(keep)
        grid = self.grid
        grid[: z_slice.start, :] = 0
        grid[z_slice.stop :, :] = 0
        grid[:, : x_slice.start] = 0
        grid[:, x_slice.stop :] = 0

    def copy(self) -> "Matrix":
        """Deep copy with its own buffer."""
        matrix = Matrix(self.rect)
        matrix.array[...] = self.array
        return matrix

    def to_array(self) -> np.ndarray:
        """Copy of the cells as a ``[z, x]`` array."""
        return self.grid.copy()

    def __repr__(self) -> str:
        return f"Matrix(offset=({self.rect.offset.x}, {self.rect.offset.z}), size=({self.rect.size.x}, {self.rect.size.z}))"
