"""Ability engine — dispatch and gating of special actions.

Abilities form a closed set (``AbilityId``). Each member is bound to a
handler through ``register_ability``; the dispatcher refuses ids outside the
set and ids without a handler. Handlers check their own usage limit before
consuming it and apply their effect directly:

- Dash      once per phase, grants extra movement and re-opens movement
- Suppress  once per player phase, puts ``suppressed`` on a target
- Repair    limited charges per battle, heals a target (self by default)

Whether the *unit* may act at all (phase, already finished, already
attacked) is the turn controller's concern and checked before dispatch.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from skirmish.engine.combat import apply_status, clamp
from skirmish.loaders.game_config_loader import CombatRules
from skirmish.models.results import AbilityResult
from skirmish.models.unit import StatusEffect, Unit
from skirmish.util import constants

log = logging.getLogger(__name__)


class AbilityId(Enum):
    """All abilities known to the engine."""

    DASH = "dash"
    SUPPRESS = "suppress"
    REPAIR = "repair"

    @classmethod
    def parse(cls, raw: str | AbilityId) -> Optional[AbilityId]:
        if isinstance(raw, AbilityId):
            return raw
        try:
            return cls(str(raw).lower())
        except ValueError:
            return None


AbilityHandler = Callable[[Unit, Optional[Unit], CombatRules, Optional[int]], AbilityResult]

_HANDLERS: dict[AbilityId, AbilityHandler] = {}

_DEFAULT_RULES = CombatRules()


def register_ability(ability_id: AbilityId, handler: AbilityHandler) -> None:
    """Bind (or rebind) the handler for an ability."""
    _HANDLERS[ability_id] = handler


def registered_abilities() -> set[AbilityId]:
    return set(_HANDLERS)


def resolve_ability(
    ability_id: str | AbilityId,
    user: Unit,
    target: Optional[Unit] = None,
    rules: CombatRules = _DEFAULT_RULES,
    amount: Optional[int] = None,
) -> AbilityResult:
    """Validate and apply an ability.

    Args:
        ability_id: Ability to use.
        user: Acting unit.
        target: Target unit, when the ability needs one.
        rules: Combat tuning values.
        amount: Optional override of the ability's magnitude
                (dash tiles, repair HP).

    Returns:
        AbilityResult; ``success`` is False with a reason on any rejection.
    """
    parsed = AbilityId.parse(ability_id)
    if parsed is None:
        return AbilityResult.failed(f"Ability {ability_id} not implemented.")
    handler = _HANDLERS.get(parsed)
    if handler is None:
        return AbilityResult.failed(f"Ability {parsed.value} has no handler.", parsed.value)
    result = handler(user, target, rules, amount)
    if result.success:
        log.info("[ABILITY] %s used %s: %s", user.id, parsed.value, result.message)
    else:
        log.debug("[ABILITY] %s failed %s: %s", user.id, parsed.value, result.message)
    return result


# -- Handlers ------------------------------------------------------------

def _dash(user: Unit, target: Optional[Unit], rules: CombatRules, amount: Optional[int]) -> AbilityResult:
    if user.ability_state.dash_used:
        return AbilityResult.failed("Dash already used.", AbilityId.DASH.value)
    extra = user.move_range if amount is None else max(0, amount)
    user.ability_state.dash_used = True
    user.turn_state.extra_movement += extra
    user.turn_state.moved = False
    return AbilityResult(
        success=True,
        message=f"{user.name} can move again.",
        ability=AbilityId.DASH.value,
        target_id=user.id,
        extra_movement=extra,
    )


def _suppress(user: Unit, target: Optional[Unit], rules: CombatRules, amount: Optional[int]) -> AbilityResult:
    if user.ability_state.suppress_used:
        return AbilityResult.failed("Suppress already used this turn.", AbilityId.SUPPRESS.value)
    if target is None or not target.is_alive:
        return AbilityResult.failed("No target for suppress.", AbilityId.SUPPRESS.value)
    user.ability_state.suppress_used = True
    apply_status(target, StatusEffect(
        id=constants.SUPPRESSED,
        duration=rules.suppress_duration,
        defense_mod=0,
        description="Reduced accuracy next attack.",
    ))
    return AbilityResult(
        success=True,
        message=f"{target.name} is suppressed and loses accuracy.",
        ability=AbilityId.SUPPRESS.value,
        target_id=target.id,
        accuracy_penalty=rules.suppressed_penalty,
    )


def _repair(user: Unit, target: Optional[Unit], rules: CombatRules, amount: Optional[int]) -> AbilityResult:
    target = target or user
    if user.ability_state.repair_charges <= 0:
        return AbilityResult.failed("No repair charges left.", AbilityId.REPAIR.value)
    # Once down, permanently out: repair never revives
    if target.downed:
        return AbilityResult.failed(f"{target.name} is down and cannot be repaired.", AbilityId.REPAIR.value)
    user.ability_state.repair_charges -= 1
    heal_amount = rules.repair_heal if amount is None else max(0, amount)
    before = target.hp
    target.hp = clamp(target.hp + heal_amount, 0, target.max_hp)
    return AbilityResult(
        success=True,
        message=f"{user.name} repairs {target.name} for {target.hp - before} HP.",
        ability=AbilityId.REPAIR.value,
        target_id=target.id,
        heal=target.hp - before,
    )


register_ability(AbilityId.DASH, _dash)
register_ability(AbilityId.SUPPRESS, _suppress)
register_ability(AbilityId.REPAIR, _repair)
