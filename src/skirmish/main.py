"""Headless battle runner.

Plays one encounter end to end without a presentation layer:
1. Load configuration (game rules, board, squads)
2. Create the event bus and the turn controller
3. Wire event logging
4. Drive the player squad with the nearest-target policy through the
   public commands, and run each enemy phase step by step
5. Report the outcome

Usage:
    python -m skirmish.main
    # or via entry point:
    skirmish --config_dir config --seed 42
"""

from __future__ import annotations

import logging
import os
import random
import sys
from dataclasses import dataclass, field
from typing import Optional

from skirmish.engine.enemy_ai import decide_action
from skirmish.engine.turn_controller import TurnController
from skirmish.loaders.game_config_loader import GameConfig, load_game_config
from skirmish.loaders.squad_loader import (
    DEFAULT_BOARD,
    DEFAULT_ENEMY_SQUAD,
    DEFAULT_PLAYER_SQUAD,
    board_from_dict,
    build_units,
    load_board,
    load_squads,
)
from skirmish.models.battle import Outcome, Phase
from skirmish.models.board import Board
from skirmish.util.events import (
    AbilityUsed,
    AttackResolved,
    BattleResolved,
    EventBus,
    PhaseChanged,
    UnitDowned,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Container for all loaded configuration
# ---------------------------------------------------------------------------


@dataclass
class Configuration:
    """Holds all data loaded from config files."""

    game: GameConfig = field(default_factory=GameConfig)
    board: Optional[Board] = None
    player_squad: list = field(default_factory=list)
    enemy_squad: list = field(default_factory=list)


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_dir: str = "config") -> Configuration:
    """Load game rules, board and squads from ``config_dir``.

    Missing board or squad files fall back to the built-in encounter.
    """
    log.info("Loading configuration …")
    config = Configuration(game=load_game_config(os.path.join(config_dir, "game.yaml")))

    board_path = os.path.join(config_dir, "board.yaml")
    if os.path.exists(board_path):
        config.board = load_board(board_path)
    else:
        log.warning("Board not found at %s — using built-in board", board_path)
        config.board = board_from_dict(DEFAULT_BOARD)

    squads_path = os.path.join(config_dir, "squads.yaml")
    if os.path.exists(squads_path):
        config.player_squad, config.enemy_squad = load_squads(squads_path)
    else:
        log.warning("Squads not found at %s — using built-in squads", squads_path)
        config.player_squad, config.enemy_squad = DEFAULT_PLAYER_SQUAD, DEFAULT_ENEMY_SQUAD

    log.info("  board: %dx%d, %d cover cells", config.board.width, config.board.height, len(config.board.cover))
    log.info("  squads: %d player, %d enemy", len(config.player_squad), len(config.enemy_squad))
    return config


# ===================================================================
# 2. Create controller and wire events
# ===================================================================


def create_controller(config: Configuration, seed: Optional[int] = None) -> TurnController:
    event_bus = EventBus()
    wire_events(event_bus)
    units = build_units(config.player_squad, config.enemy_squad, config.game)
    rng = random.Random(seed if seed is not None else config.game.seed)
    return TurnController(config.board, units, config=config.game, rng=rng, event_bus=event_bus)


def wire_events(event_bus: EventBus) -> None:
    """Log every battle event a presentation layer would render."""
    event_bus.on(PhaseChanged, lambda e: log.info("── %s phase (round %d) ──", e.phase, e.round))
    event_bus.on(AttackResolved, lambda e: log.info(
        "%s attacks %s: %s (%d%%)", e.attacker_id, e.defender_id,
        f"-{e.damage} HP" if e.hit else "MISS", e.hit_chance))
    event_bus.on(UnitDowned, lambda e: log.info("%s is down", e.unit_id))
    event_bus.on(AbilityUsed, lambda e: log.info("%s", e.message))
    event_bus.on(BattleResolved, lambda e: log.info(
        "%s after %d rounds", "Victory!" if e.won else "Defeat...", e.round))


# ===================================================================
# 3. Play
# ===================================================================


def play_selected_unit(controller: TurnController) -> None:
    """Give the selected player unit one turn using the public commands."""
    unit = controller.state.selected_unit
    if unit is None:
        return
    unit_id = unit.id

    if unit.can_use("suppress") and controller.attackable_targets():
        controller.use_ability("suppress")
    if unit.can_use("repair") and unit.hp < unit.max_hp:
        controller.use_ability("repair")

    if not controller.attackable_targets():
        plan = decide_action(unit, controller.state)
        if plan.destination is not None:
            controller.move_selected_to(plan.destination)

    targets = controller.attackable_targets()
    if targets and controller.selected_unit_id == unit_id:
        controller.attack(targets[0])

    if controller.selected_unit_id == unit_id and not controller.state.is_over:
        controller.end_turn()


def play_battle(controller: TurnController, max_rounds: int = 50) -> Optional[Outcome]:
    """Run the battle until it resolves or ``max_rounds`` pass."""
    while not controller.state.is_over:
        if controller.round > max_rounds:
            log.warning("No resolution after %d rounds — aborting", max_rounds)
            controller.abort()
            break
        if controller.phase is Phase.PLAYER:
            play_selected_unit(controller)
        else:
            controller.step_enemy()
    return controller.outcome


# ===================================================================
# Entry points
# ===================================================================


def main() -> None:
    """Entry point for the headless runner.

    Supports command-line arguments:
        --config_dir <path>  Configuration directory (default: config)
        --seed <int>         Override the RNG seed
    """
    config_dir = "config"
    seed: Optional[int] = None

    # Parse command-line arguments
    args = sys.argv[1:]
    try:
        if "--config_dir" in args:
            config_dir = args[args.index("--config_dir") + 1]
        if "--seed" in args:
            seed = int(args[args.index("--seed") + 1])
    except (IndexError, ValueError):
        print("Usage: skirmish [--config_dir <path>] [--seed <int>]", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== Skirmish starting ===")

    config = load_configuration(config_dir=config_dir)
    controller = create_controller(config, seed=seed)
    outcome = play_battle(controller, max_rounds=config.game.max_rounds)

    log.info("=== Result: %s ===", outcome.value if outcome else "aborted")
    sys.exit(0 if outcome is not None else 2)


if __name__ == "__main__":
    main()
