"""Game configuration — loads tunable combat rules from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at battle
setup and then passed (or injected) wherever rules are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from skirmish.models.unit import CLASS_ABILITIES, normalize_abilities
from skirmish.util import constants
from skirmish.util.errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class CombatRules:
    """Numbers used by hit resolution and abilities."""
    low_cover_modifier: int = constants.LOW_COVER_MODIFIER
    high_cover_modifier: int = constants.HIGH_COVER_MODIFIER
    min_hit_chance: int = constants.MIN_HIT_CHANCE
    max_hit_chance: int = constants.MAX_HIT_CHANCE
    suppressed_penalty: int = constants.SUPPRESSED_PENALTY
    suppress_duration: int = constants.SUPPRESS_DURATION
    repair_heal: int = constants.REPAIR_HEAL
    repair_charges: int = constants.REPAIR_CHARGES


@dataclass
class GameConfig:
    """All tunable battle constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so a battle can start even without the file.
    """

    # -- Rules -------------------------------------------------------
    combat: CombatRules = field(default_factory=CombatRules)

    # -- Units -------------------------------------------------------
    class_abilities: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(CLASS_ABILITIES)
    )

    # -- Simulation --------------------------------------------------
    seed: Optional[int] = None
    max_rounds: int = 50


def load_game_config(path: str | Path = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s — using defaults", p)
        return GameConfig()

    try:
        with p.open() as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {p}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: expected a mapping at top level")

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    # Handle nested combat rules
    combat = CombatRules()
    combat_raw = raw.pop("combat", None)
    if isinstance(combat_raw, dict):
        for key, value in combat_raw.items():
            if key not in CombatRules.__dataclass_fields__:
                log.warning("[SETUP] Ignoring unknown combat rule %r", key)
                continue
            converted = _to_int(f"combat.{key}", value)
            if converted is not None:
                setattr(combat, key, converted)
    elif combat_raw is not None:
        log.warning("[SETUP] 'combat' must be a mapping, got %r — using defaults", combat_raw)

    abilities_raw = raw.pop("class_abilities", None)
    class_abilities = dict(CLASS_ABILITIES)
    if isinstance(abilities_raw, dict):
        for unit_class, abilities in abilities_raw.items():
            try:
                class_abilities[str(unit_class)] = normalize_abilities(abilities)
            except ValueError as exc:
                log.warning("[SETUP] Ignoring abilities of class %s: %s", unit_class, exc)

    unknown = sorted(k for k in raw if k not in GameConfig.__dataclass_fields__)
    if unknown:
        log.warning("Ignoring unknown game config keys: %s", ", ".join(unknown))

    cfg = GameConfig(combat=combat, class_abilities=class_abilities)
    if raw.get("seed") is not None:
        cfg.seed = _to_int("seed", raw["seed"])
    if "max_rounds" in raw:
        max_rounds = _to_int("max_rounds", raw["max_rounds"])
        if max_rounds is not None and max_rounds >= 0:
            cfg.max_rounds = max_rounds
        elif max_rounds is not None:
            log.warning("[SETUP] Invalid max_rounds %d — keeping %d", max_rounds, cfg.max_rounds)
    return cfg


def _to_int(key: str, value: Any) -> Optional[int]:
    """Integer value of a config entry, or None (with a warning) if it is not one."""
    converted: Optional[int] = None
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            converted = int(value)
        except (ValueError, OverflowError):
            converted = None
        if isinstance(value, float) and converted != value:
            converted = None
    if converted is None:
        log.warning("[SETUP] Invalid value %r for %s — using default", value, key)
    return converted
