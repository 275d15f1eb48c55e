"""Result values — outcomes of attacks, abilities and commands.

Results are pure data. They are consumed right away by the caller to drive
presentation; the state changes they describe have already been applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AttackResult:
    """Outcome of one ranged attack.

    Attributes:
        hit: Whether the attack landed.
        damage: HP removed from the defender (0 on a miss).
        hit_chance: Hit probability used for the roll, 5-95.
    """

    hit: bool
    damage: int
    hit_chance: int


@dataclass(frozen=True)
class AbilityResult:
    """Outcome of an ability activation.

    Only the payload field matching ``ability`` is meaningful.
    """

    success: bool
    message: str
    ability: Optional[str] = None
    target_id: Optional[str] = None
    extra_movement: int = 0
    accuracy_penalty: int = 0
    heal: int = 0

    @classmethod
    def failed(cls, message: str, ability: Optional[str] = None) -> AbilityResult:
        return cls(success=False, message=message, ability=ability)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a controller command.

    ``success`` is the machine-checkable flag, ``message`` the human
    readable reason or summary.
    """

    success: bool
    message: str = ""
    attack: Optional[AttackResult] = None
    ability: Optional[AbilityResult] = None

    @classmethod
    def ok(cls, message: str = "", **kwargs) -> CommandResult:
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, message: str) -> CommandResult:
        return cls(success=False, message=message)

    def __bool__(self) -> bool:
        return self.success
