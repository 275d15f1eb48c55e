"""Battle board model.

Holds the fixed grid dimensions and the per-cell cover classification.
High cover cells double as impassable obstacles; low cover cells can be
entered and protect whoever stands on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from skirmish.models.grid import GridCoord


class CoverType(Enum):
    """Cover classification of a board cell."""

    NONE = "none"
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class Board:
    """The battlefield as a rectangular grid.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        cover: Cells with cover; every cell not listed has ``CoverType.NONE``.
               Stored as a read-only copy.
    """

    width: int
    height: int
    cover: Mapping[GridCoord, CoverType] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cover", MappingProxyType(dict(self.cover)))

    # -- Queries ---------------------------------------------------------

    def in_bounds(self, coord: GridCoord) -> bool:
        return coord.in_bounds(self.width, self.height)

    def cover_at(self, coord: GridCoord) -> CoverType:
        """Cover classification of a cell (``NONE`` outside the board)."""
        return self.cover.get(coord, CoverType.NONE)

    def is_obstacle(self, coord: GridCoord) -> bool:
        """High cover cells are impassable."""
        return self.cover_at(coord) is CoverType.HIGH

    def obstacles(self) -> set[GridCoord]:
        return {c for c, kind in self.cover.items() if kind is CoverType.HIGH}
