"""Unit model — a single combatant on the battle board.

Units are created once from squad configuration at battle start and mutated
by the turn controller, the combat resolver and the ability engine. They are
never removed: a unit reduced to 0 HP is marked downed and stays in the unit
list so the presentation layer can keep drawing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from skirmish.models.grid import GridCoord
from skirmish.util import constants
from skirmish.util.errors import UnitConfigError


class Team(Enum):
    """Side a unit fights for."""

    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> Team:
        return Team.ENEMY if self is Team.PLAYER else Team.PLAYER


# Default ability list per class tag
CLASS_ABILITIES: dict[str, tuple[str, ...]] = {
    "scout": ("dash",),
    "soldier": ("suppress",),
    "tech": ("repair",),
}


@dataclass
class TurnState:
    """Per-phase movement and attack bookkeeping.

    Attributes:
        moved: Movement for this phase is used up.
        acted: The unit has attacked this phase.
        extra_movement: Bonus tiles granted by dash.
        steps_taken: Tiles travelled this phase.
    """

    moved: bool = False
    acted: bool = False
    extra_movement: int = 0
    steps_taken: int = 0


@dataclass
class AbilityState:
    """Usage flags and charges of the unit's abilities."""

    dash_used: bool = False
    suppress_used: bool = False
    repair_charges: int = constants.REPAIR_CHARGES


@dataclass
class StatusEffect:
    """A timed modifier carried by a unit.

    Attributes:
        id: Effect identifier, e.g. ``"suppressed"``.
        duration: Remaining full turn cycles (>= 1 while attached).
        defense_mod: Added to the hit chance of attacks against the holder.
        description: Human readable summary.
    """

    id: str
    duration: int
    defense_mod: int = 0
    description: str = ""


@dataclass
class Unit:
    """A combatant.

    Attributes:
        id: Unique unit id.
        name: Display name.
        team: Owning side.
        unit_class: Class tag (``scout``, ``raider`` ...).
        hp: Current hit points, within ``[0, max_hp]``.
        max_hp: Maximum hit points.
        move_range: Tiles per phase.
        attack_range: Maximum Manhattan distance of an attack.
        accuracy: Base hit chance, 0-100.
        damage: Inclusive ``(min, max)`` damage roll.
        abilities: Ability ids this unit may use.
        position: Current cell.

        turn_state: Movement/attack flags for the running phase.
        turn_complete: The unit has finished its phase.
        ability_state: Ability usage flags and charges.
        status_effects: Active timed effects in application order.
        downed: Terminal; set once HP reaches 0.
    """

    id: str
    name: str
    team: Team
    unit_class: str
    hp: int
    max_hp: int
    move_range: int
    attack_range: int
    accuracy: int
    damage: tuple[int, int]
    position: GridCoord
    abilities: tuple[str, ...] = ()

    turn_state: TurnState = field(default_factory=TurnState)
    turn_complete: bool = False
    ability_state: AbilityState = field(default_factory=AbilityState)
    status_effects: list[StatusEffect] = field(default_factory=list)
    downed: bool = False

    # -- Derived properties ----------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self.hp > 0 and not self.downed

    @property
    def damage_min(self) -> int:
        return self.damage[0]

    @property
    def damage_max(self) -> int:
        return self.damage[1]

    @property
    def movement_left(self) -> int:
        """Tiles still available this phase (0 once movement is used up)."""
        if self.turn_state.moved:
            return 0
        budget = self.move_range + self.turn_state.extra_movement
        return max(0, budget - self.turn_state.steps_taken)

    def has_status(self, status_id: str) -> bool:
        return any(s.id == status_id for s in self.status_effects)

    def can_use(self, ability_id: str) -> bool:
        return ability_id in self.abilities

    def distance_to(self, other: Unit) -> int:
        return self.position.distance_to(other.position)

    # -- Mutators --------------------------------------------------------

    def reset_turn(self) -> None:
        """Clear phase bookkeeping at the start of the unit's team phase."""
        self.turn_state = TurnState()
        self.turn_complete = False


def normalize_abilities(raw: Any) -> tuple[str, ...]:
    """Ability list from config: a single id, a list of ids, or nothing.

    Raises:
        ValueError: If the value is neither a string nor a list of strings.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,)
    if isinstance(raw, (list, tuple)) and all(isinstance(a, str) for a in raw):
        return tuple(raw)
    raise ValueError(f"abilities must be an id or a list of ids, got {raw!r}")


def is_alive(unit: Unit) -> bool:
    """Whether the unit can still act and be targeted."""
    return unit.is_alive


def create_unit(
    config: Mapping[str, Any],
    team: Optional[Team] = None,
    repair_charges: int = constants.REPAIR_CHARGES,
    class_abilities: Optional[Mapping[str, tuple[str, ...]]] = None,
) -> Unit:
    """Build a unit from a squad configuration entry.

    Missing stats fall back to the class-agnostic defaults and the ability
    list falls back to the class default.

    Args:
        config: Mapping with at least ``id``, ``hp`` and ``position``.
        team: Side to assign; overrides ``config["team"]``.
        repair_charges: Starting repair pool.
        class_abilities: Class tag -> default abilities table.

    Returns:
        A fresh unit with cleared turn state.

    Raises:
        UnitConfigError: If required keys are missing or stats are invalid.
    """
    if class_abilities is None:
        class_abilities = CLASS_ABILITIES

    try:
        unit_id = str(config["id"])
        hp = int(config["hp"])
        position = GridCoord.parse(config["position"])
        team = team if team is not None else Team(config.get("team", "player"))
        max_hp = int(config.get("max_hp", config.get("maxHp", hp)))
        damage_raw = config.get("damage", constants.DEFAULT_DAMAGE)
        damage = (int(damage_raw[0]), int(damage_raw[1]))
        move_range = int(config.get("move_range", config.get("moveRange", constants.DEFAULT_MOVE_RANGE)))
        attack_range = int(config.get("attack_range", config.get("attackRange", constants.DEFAULT_ATTACK_RANGE)))
        accuracy = int(config.get("accuracy", constants.DEFAULT_ACCURACY))
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        raise UnitConfigError(f"invalid unit config {dict(config)!r}: {exc}") from exc

    if max_hp <= 0 or not 0 < hp <= max_hp:
        raise UnitConfigError(f"unit {unit_id}: hp {hp} outside (0, {max_hp}]")
    if damage[0] < 0 or damage[0] > damage[1]:
        raise UnitConfigError(f"unit {unit_id}: invalid damage range {damage}")
    if move_range < 0 or attack_range < 0:
        raise UnitConfigError(f"unit {unit_id}: negative range")

    unit_class = str(config.get("class", config.get("unit_class", "")))
    if config.get("abilities") is None:
        abilities = tuple(class_abilities.get(unit_class, ()))
    else:
        try:
            abilities = normalize_abilities(config["abilities"])
        except ValueError as exc:
            raise UnitConfigError(f"unit {unit_id}: {exc}") from exc

    return Unit(
        id=unit_id,
        name=str(config.get("name", unit_id)),
        team=team,
        unit_class=unit_class,
        hp=hp,
        max_hp=max_hp,
        move_range=move_range,
        attack_range=attack_range,
        accuracy=max(0, min(100, accuracy)),
        damage=damage,
        position=position,
        abilities=abilities,
        ability_state=AbilityState(repair_charges=repair_charges),
    )


@dataclass(frozen=True)
class UnitView:
    """Read-only snapshot of a unit for the presentation layer."""

    id: str
    name: str
    team: str
    unit_class: str
    position: tuple[int, int]
    hp: int
    max_hp: int
    alive: bool
    downed: bool
    moved: bool
    acted: bool
    turn_complete: bool
    extra_movement: int
    repair_charges: int
    statuses: tuple[str, ...] = ()

    @classmethod
    def from_unit(cls, unit: Unit) -> UnitView:
        return cls(
            id=unit.id,
            name=unit.name,
            team=unit.team.value,
            unit_class=unit.unit_class,
            position=(unit.position.x, unit.position.y),
            hp=unit.hp,
            max_hp=unit.max_hp,
            alive=unit.is_alive,
            downed=unit.downed,
            moved=unit.turn_state.moved,
            acted=unit.turn_state.acted,
            turn_complete=unit.turn_complete,
            extra_movement=unit.turn_state.extra_movement,
            repair_charges=unit.ability_state.repair_charges,
            statuses=tuple(s.id for s in unit.status_effects),
        )
