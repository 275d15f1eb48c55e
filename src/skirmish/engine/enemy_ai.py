"""Enemy decision logic — approach the nearest opponent, attack if in range.

The decision is a pure function of one unit and the battle state; it
returns an ``EnemyAction`` plan and changes nothing. Applying the plan and
pacing it for presentation are left to the turn controller and the caller.

=== Policy ==================================================================

1.  **Target** – the nearest living opposing unit by Manhattan distance.
    Ties go to the unit found first in squad order.

2.  **In range** – attack from where the unit stands.

3.  **Out of range** – A* toward the target's cell (the target's own cell
    counts as open so a path can end next to it). Walk at most
    ``move_range`` steps and never onto the target's cell, then attack if
    the target is now in range.

4.  **No path** – stall: no movement, no attack.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from skirmish.engine.grid_search import shortest_path
from skirmish.models.grid import GridCoord

if TYPE_CHECKING:
    from skirmish.models.battle import BattleState
    from skirmish.models.unit import Unit

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnemyAction:
    """Plan for one unit's turn.

    Attributes:
        unit_id: Acting unit.
        target_id: Chosen opponent (None when no opponent is alive).
        destination: Cell to move to, or None to stay put.
        steps: Tiles walked to reach ``destination``.
        attack: Whether the target is in range after the move.
    """

    unit_id: str
    target_id: Optional[str] = None
    destination: Optional[GridCoord] = None
    steps: int = 0
    attack: bool = False

    @property
    def stalled(self) -> bool:
        return self.destination is None and not self.attack


def find_nearest_opponent(unit: Unit, state: BattleState) -> Optional[Unit]:
    """Nearest living unit of the other team, first in squad order on ties."""
    best: Optional[Unit] = None
    best_distance = 0
    for other in state.team_units(unit.team.opponent):
        distance = unit.distance_to(other)
        if best is None or distance < best_distance:
            best, best_distance = other, distance
    return best


def decide_action(unit: Unit, state: BattleState) -> EnemyAction:
    """Compute what ``unit`` does this turn without applying it.

    Works for either team: the target is always picked from the other side.
    """
    target = find_nearest_opponent(unit, state)
    if target is None:
        return EnemyAction(unit_id=unit.id)

    if unit.distance_to(target) <= unit.attack_range:
        return EnemyAction(unit_id=unit.id, target_id=target.id, attack=True)

    path = shortest_path(
        unit.position,
        target.position,
        state.blocking_predicate(ignore_unit_id=unit.id, passable=target.position),
        state.board.width,
        state.board.height,
    )
    # The last cell is the target's own; stop before it
    if not path or len(path) <= 2:
        log.debug("[AI] %s has no way toward %s, stalling", unit.id, target.id)
        return EnemyAction(unit_id=unit.id, target_id=target.id)

    steps = min(unit.move_range, len(path) - 2)
    if steps <= 0:
        return EnemyAction(unit_id=unit.id, target_id=target.id)
    destination = path[steps]
    in_range = destination.distance_to(target.position) <= unit.attack_range
    return EnemyAction(
        unit_id=unit.id,
        target_id=target.id,
        destination=destination,
        steps=steps,
        attack=in_range,
    )


# Name used by the enemy phase
decide_enemy_action = decide_action
