"""Typed event bus — decoupled notification of the presentation layer.

The combat core publishes what happened; rendering, HUD and scene
orchestration subscribe. Events are notifications only, never state.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar, Type

T = TypeVar("T")


# -- Battle events -------------------------------------------------------

@dataclass(frozen=True)
class PhaseChanged:
    """Control passed to the other team."""
    phase: str  # "player" or "enemy"
    round: int


@dataclass(frozen=True)
class UnitSelected:
    """The player-phase selection changed."""
    unit_id: Optional[str]


@dataclass(frozen=True)
class UnitMoved:
    """A unit moved to a new cell."""
    unit_id: str
    origin: tuple[int, int]
    destination: tuple[int, int]
    steps: int


@dataclass(frozen=True)
class AttackResolved:
    """An attack was rolled."""
    attacker_id: str
    defender_id: str
    hit: bool
    damage: int
    hit_chance: int


@dataclass(frozen=True)
class UnitDowned:
    """A unit dropped to 0 HP."""
    unit_id: str
    team: str


@dataclass(frozen=True)
class AbilityUsed:
    """An ability was activated successfully."""
    unit_id: str
    ability: str
    target_id: Optional[str]
    message: str


@dataclass(frozen=True)
class BattleResolved:
    """One side has no living units left."""
    won: bool
    round: int


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(UnitDowned, lambda e: print(e.unit_id))
        bus.emit(UnitDowned(unit_id="raider-1", team="enemy"))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
