"""Battle state model — data container for a running encounter.

The BattleState holds all mutable state of one battle: the unit roster in
squad order, the occupancy map, the active phase and the selection.
Business logic is in engine/turn_controller.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional

from skirmish.models.board import Board, CoverType
from skirmish.models.grid import GridCoord
from skirmish.models.unit import Team, Unit


class Phase(Enum):
    """Team currently allowed to act."""

    PLAYER = "player"
    ENEMY = "enemy"


class Outcome(Enum):
    """Final result of a battle, seen from the player side."""

    WON = "won"
    LOST = "lost"


@dataclass
class BattleState:
    """Mutable state container for an active battle.

    Attributes:
        board: Immutable board layout.
        units: All units in squad order (players first, then enemies);
               downed units stay in the list.
        occupancy: Cell -> id of the living unit standing on it.

        phase: Team currently acting.
        round: Number of the current round (one player + one enemy phase).
        selected_unit_id: Player unit receiving commands, if any.
        enemy_queue: Ids of enemies still to act in the running enemy phase.

        outcome: Set once one side has no living units.
        aborted: Set when the battle was torn down from outside.
    """

    board: Board
    units: list[Unit] = field(default_factory=list)
    occupancy: dict[GridCoord, str] = field(default_factory=dict)

    phase: Phase = Phase.PLAYER
    round: int = 1
    selected_unit_id: Optional[str] = None
    enemy_queue: list[str] = field(default_factory=list)

    outcome: Optional[Outcome] = None
    aborted: bool = False

    # -- Queries ---------------------------------------------------------

    @property
    def is_over(self) -> bool:
        return self.outcome is not None or self.aborted

    def get_unit(self, unit_id: Optional[str]) -> Optional[Unit]:
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    @property
    def selected_unit(self) -> Optional[Unit]:
        return self.get_unit(self.selected_unit_id)

    def team_units(self, team: Team, living_only: bool = True) -> Iterator[Unit]:
        """Units of a team in squad order."""
        for unit in self.units:
            if unit.team is team and (unit.is_alive or not living_only):
                yield unit

    def has_living(self, team: Team) -> bool:
        return any(True for _ in self.team_units(team))

    def occupant_at(self, coord: GridCoord) -> Optional[Unit]:
        return self.get_unit(self.occupancy.get(coord))

    def cover_at(self, coord: GridCoord) -> CoverType:
        return self.board.cover_at(coord)

    def is_blocked(self, coord: GridCoord, ignore_unit_id: Optional[str] = None) -> bool:
        """Out of bounds, an obstacle, or occupied by a unit other than the mover."""
        if not self.board.in_bounds(coord):
            return True
        if self.board.is_obstacle(coord):
            return True
        occupant = self.occupancy.get(coord)
        if occupant is None:
            return False
        return occupant != ignore_unit_id

    def blocking_predicate(
        self,
        ignore_unit_id: Optional[str] = None,
        passable: Optional[GridCoord] = None,
    ) -> Callable[[GridCoord], bool]:
        """Bind ``is_blocked`` for the search functions.

        Args:
            ignore_unit_id: Mover whose own cell does not block.
            passable: One extra cell treated as open (a path goal that is
                      occupied by the unit being approached).
        """
        def blocked(coord: GridCoord) -> bool:
            if passable is not None and coord == passable:
                return not self.board.in_bounds(coord)
            return self.is_blocked(coord, ignore_unit_id)
        return blocked

    # -- Occupancy -------------------------------------------------------

    def occupy(self, coord: GridCoord, unit_id: str) -> None:
        self.occupancy[coord] = unit_id

    def free(self, coord: GridCoord, unit_id: Optional[str] = None) -> None:
        """Free a cell (only if held by ``unit_id`` when given)."""
        if unit_id is None or self.occupancy.get(coord) == unit_id:
            self.occupancy.pop(coord, None)
