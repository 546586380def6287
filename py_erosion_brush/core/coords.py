"""Integer grid coordinates and rectangles.

Terrain heights and coverage layers are addressed by integer cell
coordinates ``(x, z)``. A ``CoordRect`` is an axis-aligned rectangle given by
an offset and a size; rectangles with zero area are valid and mean "empty".
"""

import math
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Coord:
    """Integer cell coordinate (or size) on a terrain grid."""

    x: int
    z: int

    def __add__(self, other: Union["Coord", int]) -> "Coord":
        if isinstance(other, int):
            return Coord(self.x + other, self.z + other)
        return Coord(self.x + other.x, self.z + other.z)

    def __sub__(self, other: Union["Coord", int]) -> "Coord":
        if isinstance(other, int):
            return Coord(self.x - other, self.z - other)
        return Coord(self.x - other.x, self.z - other.z)

    def __mul__(self, factor: int) -> "Coord":
        return Coord(self.x * factor, self.z * factor)

    def __floordiv__(self, factor: int) -> "Coord":
        return Coord(self.x // factor, self.z // factor)

    @staticmethod
    def distance(a: "Coord", b: "Coord") -> float:
        """Euclidean distance between two coordinates."""
        return math.hypot(a.x - b.x, a.z - b.z)

    @staticmethod
    def minimum(a: "Coord", b: "Coord") -> "Coord":
        return Coord(min(a.x, b.x), min(a.z, b.z))

    @staticmethod
    def maximum(a: "Coord", b: "Coord") -> "Coord":
        return Coord(max(a.x, b.x), max(a.z, b.z))


@dataclass(frozen=True)
class CoordRect:
    """Axis-aligned integer rectangle: ``offset`` plus ``size`` (width, depth)."""

    offset: Coord
    size: Coord

    def __post_init__(self):
        # Negative sizes collapse to empty rects
        if self.size.x < 0 or self.size.z < 0:
            object.__setattr__(
                self, "size", Coord(max(self.size.x, 0), max(self.size.z, 0))
            )

    @classmethod
    def from_values(cls, offset_x: int, offset_z: int, size_x: int, size_z: int) -> "CoordRect":
        return cls(Coord(int(offset_x), int(offset_z)), Coord(int(size_x), int(size_z)))

    @classmethod
    def from_floats(cls, x: float, z: float, size_x: float, size_z: float) -> "CoordRect":
        """
        Build a rect from fractional cell values.

        The offset is floored so that rects to the left of or above the
        origin stay aligned to the same grid; sizes are truncated.
        """
        return cls(Coord(math.floor(x), math.floor(z)), Coord(int(size_x), int(size_z)))

    @property
    def min(self) -> Coord:
        return self.offset

    @property
    def max(self) -> Coord:
        """Exclusive upper corner."""
        return self.offset + self.size

    @property
    def center(self) -> Coord:
        return self.offset + self.size // 2

    @property
    def count(self) -> int:
        return self.size.x * self.size.z

    @property
    def is_empty(self) -> bool:
        return self.size.x == 0 or self.size.z == 0

    def contains(self, x: int, z: int) -> bool:
        return (
            self.offset.x <= x < self.offset.x + self.size.x
            and self.offset.z <= z < self.offset.z + self.size.z
        )

    def __floordiv__(self, factor: int) -> "CoordRect":
        """Downscale both offset and size by an integer factor."""
        return CoordRect(self.offset // factor, self.size // factor)

    def __mul__(self, factor: int) -> "CoordRect":
        return CoordRect(self.offset * factor, self.size * factor)

    @staticmethod
    def intersect(a: "CoordRect", b: "CoordRect") -> "CoordRect":
        """
        Intersection of two rects.

        Disjoint rects give an empty rect whose offset is the clamped corner,
        so callers can still use it as an (empty) array origin.
        """
        lo = Coord.maximum(a.min, b.min)
        hi = Coord.minimum(a.max, b.max)
        return CoordRect(lo, hi - lo)

    def slices(self, inner: "CoordRect"):
        """
        Array slices ``(z_slice, x_slice)`` addressing ``inner`` within a
        ``[z, x]`` array that covers this rect.
        """
        x0 = inner.offset.x - self.offset.x
        z0 = inner.offset.z - self.offset.z
        return slice(z0, z0 + inner.size.z), slice(x0, x0 + inner.size.x)
