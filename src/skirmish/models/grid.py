"""Square grid coordinate system.

Battles are fought on a bounded rectangular board of integer cells.
Movement is four-directional (no diagonals), so the natural metric is the
Manhattan distance, which is also the range metric for attacks.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GridCoord:
    """Immutable grid coordinate.

    Attributes:
        x: Column, growing east.
        y: Row, growing south.
    """

    x: int
    y: int

    # -- Arithmetic ------------------------------------------------------

    def __add__(self, other: GridCoord) -> GridCoord:
        return GridCoord(self.x + other.x, self.y + other.y)

    def __sub__(self, other: GridCoord) -> GridCoord:
        return GridCoord(self.x - other.x, self.y - other.y)

    # -- Geometry --------------------------------------------------------

    def distance_to(self, other: GridCoord) -> int:
        """Manhattan distance (number of orthogonal steps)."""
        return abs(self.x - other.x) + abs(self.y - other.y)

    def neighbors(self) -> list[GridCoord]:
        """Return the 4 orthogonally adjacent coordinates."""
        return [GridCoord(self.x + dx, self.y + dy) for dx, dy in DIRECTIONS]

    def in_bounds(self, width: int, height: int) -> bool:
        return 0 <= self.x < width and 0 <= self.y < height

    # -- Serialization ---------------------------------------------------

    @classmethod
    def parse(cls, raw: object) -> GridCoord:
        """Build a coordinate from a config value.

        Accepts ``{"x": 1, "y": 2}``, ``[1, 2]`` or ``"1,2"``.

        Raises:
            ValueError: If the value cannot be read as a coordinate.
        """
        if isinstance(raw, GridCoord):
            return raw
        if isinstance(raw, dict):
            return cls(_axis(raw["x"]), _axis(raw["y"]))
        if isinstance(raw, str):
            x, y = raw.split(",")
            return cls(_axis(x), _axis(y))
        if isinstance(raw, (list, tuple)) and len(raw) == 2:
            return cls(_axis(raw[0]), _axis(raw[1]))
        raise ValueError(f"not a grid coordinate: {raw!r}")

    def __repr__(self) -> str:
        return f"Grid({self.x},{self.y})"


def _axis(value: object) -> int:
    """Whole-number coordinate component; fractional values are rejected."""
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"not a whole grid coordinate: {value!r}")
    return int(value)


# The 4 cardinal direction vectors
DIRECTIONS: list[tuple[int, int]] = [
    (1, 0),   # E
    (-1, 0),  # W
    (0, 1),   # S
    (0, -1),  # N
]
