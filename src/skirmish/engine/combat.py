"""Combat resolver — hit chance, damage rolls and status effects.

Pure functions of the two combatants, the defender's cover and an injected
random source. The only state they touch is the defender's ``hp`` and
``downed`` flag (and the status list for the status helpers). Targeting,
range and turn legality are checked by the turn controller beforehand.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from skirmish.loaders.game_config_loader import CombatRules
from skirmish.models.board import CoverType
from skirmish.models.results import AttackResult
from skirmish.models.unit import StatusEffect, Unit
from skirmish.util import constants

log = logging.getLogger(__name__)

_DEFAULT_RULES = CombatRules()


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def calculate_cover_modifier(cover: CoverType = CoverType.NONE, rules: CombatRules = _DEFAULT_RULES) -> int:
    """Hit-chance modifier granted by the defender's cover."""
    if cover is CoverType.LOW:
        return rules.low_cover_modifier
    if cover is CoverType.HIGH:
        return rules.high_cover_modifier
    return 0


def hit_chance(
    attacker: Unit,
    defender: Unit,
    cover: CoverType = CoverType.NONE,
    modifiers: int = 0,
    rules: CombatRules = _DEFAULT_RULES,
) -> int:
    """Probability (percent) that ``attacker`` hits ``defender``.

    accuracy + cover modifier + defender status modifiers + the flat
    suppression penalty + extra ``modifiers``, rounded and clamped so an
    attack is never certain nor impossible.
    """
    status_mod = sum(status.defense_mod for status in defender.status_effects)
    suppressed_mod = rules.suppressed_penalty if defender.has_status(constants.SUPPRESSED) else 0
    result = (
        attacker.accuracy
        + calculate_cover_modifier(cover, rules)
        + status_mod
        + suppressed_mod
        + modifiers
    )
    return clamp(round(result), rules.min_hit_chance, rules.max_hit_chance)


def roll_damage(damage_range: tuple[int, int], rng: random.Random) -> int:
    """Uniform integer in the inclusive damage range."""
    low, high = damage_range
    return rng.randint(low, high)


def resolve_attack(
    attacker: Unit,
    defender: Unit,
    cover: CoverType,
    rng: random.Random,
    modifiers: int = 0,
    rules: CombatRules = _DEFAULT_RULES,
) -> AttackResult:
    """Roll one attack and apply its damage to the defender.

    Draws a value in [0, 100); the attack hits when the value is at most the
    hit chance. A hit deals a uniform roll of the attacker's damage range.
    Reaching exactly 0 HP marks the defender downed for good.
    """
    chance = hit_chance(attacker, defender, cover, modifiers, rules)
    roll = rng.random() * 100
    if roll > chance:
        log.debug("[ATTACK] %s -> %s missed (roll %.1f > %d%%)", attacker.id, defender.id, roll, chance)
        return AttackResult(hit=False, damage=0, hit_chance=chance)

    damage = roll_damage(attacker.damage, rng)
    defender.hp = max(0, defender.hp - damage)
    if defender.hp == 0:
        defender.downed = True
    log.debug("[ATTACK] %s -> %s hit for %d (roll %.1f <= %d%%, hp now %d)",
              attacker.id, defender.id, damage, roll, chance, defender.hp)
    return AttackResult(hit=True, damage=damage, hit_chance=chance)


# -- Status effects ------------------------------------------------------

def apply_status(unit: Unit, status: StatusEffect) -> StatusEffect:
    """Attach a status, or refresh it if the unit already carries it.

    A refresh keeps the longer of the two durations; effects never stack.

    Returns:
        The status instance now attached to the unit.
    """
    for existing in unit.status_effects:
        if existing.id == status.id:
            existing.duration = max(existing.duration, status.duration)
            existing.defense_mod = status.defense_mod
            return existing
    attached = StatusEffect(
        id=status.id,
        duration=status.duration,
        defense_mod=status.defense_mod,
        description=status.description,
    )
    unit.status_effects.append(attached)
    return attached


def tick_status_effects(unit: Unit) -> list[str]:
    """Decrement all status durations by one full cycle.

    Returns:
        Ids of the effects that expired and were removed.
    """
    expired: list[str] = []
    remaining: list[StatusEffect] = []
    for status in unit.status_effects:
        status.duration -= 1
        if status.duration > 0:
            remaining.append(status)
        else:
            expired.append(status.id)
    unit.status_effects = remaining
    return expired


def find_status(unit: Unit, status_id: str) -> Optional[StatusEffect]:
    for status in unit.status_effects:
        if status.id == status_id:
            return status
    return None
