"""Turn controller — the phase state machine of a battle.

Owns the ``BattleState`` and is the only writer of unit positions and
phase bookkeeping. External callers (input handling, scene orchestration)
drive it one command at a time:

    select_unit / move_selected_to / attack / use_ability / end_turn
        while the player phase is active,
    step_enemy
        repeatedly while the enemy phase is active (one enemy per call, so
        the caller can pace animations between steps).

Phase cycle:
  PLAYER  reset player turn state, select first available unit,
          auto-advance when a unit has moved and attacked, or on end_turn
  ENEMY   reset enemy turn state, queue living enemies in squad order,
          each step runs one enemy's move + attack atomically
  PLAYER  (next round) status effects tick once for every unit

The battle resolves after any attack and after each enemy action as soon
as one team has no living unit. Resolution is reported exactly once and
every later command is rejected.

Commands never raise: every rejection is a failed ``CommandResult``.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, Optional

from skirmish.engine import abilities
from skirmish.engine.combat import resolve_attack, tick_status_effects
from skirmish.engine.enemy_ai import EnemyAction, decide_enemy_action
from skirmish.engine.grid_search import reachable_tiles
from skirmish.loaders.game_config_loader import GameConfig
from skirmish.models.battle import BattleState, Outcome, Phase
from skirmish.models.board import Board, CoverType
from skirmish.models.grid import GridCoord
from skirmish.models.results import AttackResult, CommandResult
from skirmish.models.unit import Team, Unit, UnitView
from skirmish.util.events import (
    AbilityUsed,
    AttackResolved,
    BattleResolved,
    EventBus,
    PhaseChanged,
    UnitDowned,
    UnitMoved,
    UnitSelected,
)

log = logging.getLogger(__name__)


class TurnController:
    """Runs one battle from setup to resolution.

    Args:
        board: Board layout.
        units: Units in squad order. Entries outside the board, on an
               obstacle, on an occupied cell or with a duplicate id are
               skipped with a warning.
        config: Game configuration (defaults when omitted).
        rng: Random source for attack rolls; seeded from ``config.seed``
             when omitted.
        event_bus: Bus that receives battle events.
    """

    def __init__(
        self,
        board: Board,
        units: Iterable[Unit],
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._config = config or GameConfig()
        self._rules = self._config.combat
        self._rng = rng if rng is not None else random.Random(self._config.seed)
        self._events = event_bus or EventBus()
        self.state = BattleState(board=board)
        self._place_units(units)
        log.info("[SETUP] Battle on %dx%d board with %d units",
                 board.width, board.height, len(self.state.units))
        self._start_player_phase(new_round=False)

    # ── Setup ──────────────────────────────────────────────────

    def _place_units(self, units: Iterable[Unit]) -> None:
        state = self.state
        for unit in units:
            if state.get_unit(unit.id) is not None:
                log.warning("[SETUP] Skipping unit %s: duplicate id", unit.id)
                continue
            if not state.board.in_bounds(unit.position):
                log.warning("[SETUP] Skipping unit %s: %r outside the board", unit.id, unit.position)
                continue
            if state.board.is_obstacle(unit.position):
                log.warning("[SETUP] Skipping unit %s: %r is an obstacle", unit.id, unit.position)
                continue
            if unit.position in state.occupancy:
                log.warning("[SETUP] Skipping unit %s: %r already occupied by %s",
                            unit.id, unit.position, state.occupancy[unit.position])
                continue
            state.units.append(unit)
            if unit.is_alive:
                state.occupy(unit.position, unit.id)

    # ── Queries ────────────────────────────────────────────────

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def selected_unit_id(self) -> Optional[str]:
        return self.state.selected_unit_id

    @property
    def outcome(self) -> Optional[Outcome]:
        return self.state.outcome

    @property
    def round(self) -> int:
        return self.state.round

    def units(self) -> list[UnitView]:
        """Snapshot of every unit, squad order."""
        return [UnitView.from_unit(unit) for unit in self.state.units]

    def cover_at(self, coord: GridCoord) -> CoverType:
        return self.state.cover_at(coord)

    def reachable_tiles(self) -> dict[GridCoord, int]:
        """Cells the selected unit can still move to, with step distances."""
        unit = self.state.selected_unit
        if unit is None or self.state.phase is not Phase.PLAYER or self.state.is_over:
            return {}
        return reachable_tiles(
            unit.position,
            unit.movement_left,
            self.state.blocking_predicate(ignore_unit_id=unit.id),
            self.state.board.width,
            self.state.board.height,
        )

    def attackable_targets(self) -> list[str]:
        """Ids of living enemies the selected unit can attack right now."""
        unit = self.state.selected_unit
        if unit is None or unit.turn_state.acted or self.state.phase is not Phase.PLAYER:
            return []
        return [
            enemy.id for enemy in self.state.team_units(Team.ENEMY)
            if unit.distance_to(enemy) <= unit.attack_range
        ]

    # ── Player commands ────────────────────────────────────────

    def select_unit(self, unit_id: str) -> CommandResult:
        failure = self._reject_player_command()
        if failure is not None:
            return failure
        unit = self.state.get_unit(unit_id)
        if unit is None:
            return CommandResult.fail(f"Unknown unit {unit_id}.")
        if unit.team is not Team.PLAYER:
            return CommandResult.fail(f"{unit.name} is not in your squad.")
        if not unit.is_alive:
            return CommandResult.fail(f"{unit.name} is down.")
        if unit.turn_complete:
            return CommandResult.fail(f"{unit.name} has already finished this turn.")
        self._select(unit)
        return CommandResult.ok(f"{unit.name} selected.")

    def move_selected_to(self, destination: GridCoord | tuple[int, int]) -> CommandResult:
        failure = self._reject_unit_command()
        if failure is not None:
            return failure
        unit = self.state.selected_unit
        try:
            destination = GridCoord.parse(destination)
        except (ValueError, KeyError, TypeError):
            return CommandResult.fail(f"Invalid destination {destination!r}.")
        if unit.movement_left <= 0:
            return CommandResult.fail(f"{unit.name} has already moved.")
        distance = self.reachable_tiles().get(destination)
        if distance is None:
            return CommandResult.fail(f"{destination!r} is out of reach.")
        if distance == 0:
            return CommandResult.fail(f"{unit.name} is already there.")

        self._move_unit(unit, destination, distance)
        ts = unit.turn_state
        ts.steps_taken += distance
        ts.moved = ts.extra_movement == 0 or unit.movement_left == 0
        self._check_turn_complete(unit)
        return CommandResult.ok(f"{unit.name} moved {distance} tiles.")

    def attack(self, target_id: str) -> CommandResult:
        failure = self._reject_unit_command()
        if failure is not None:
            return failure
        attacker = self.state.selected_unit
        if attacker.turn_state.acted:
            return CommandResult.fail(f"{attacker.name} has already attacked.")
        target = self.state.get_unit(target_id)
        if target is None or target.team is not Team.ENEMY:
            return CommandResult.fail(f"{target_id} is not an enemy.")
        if not target.is_alive:
            return CommandResult.fail(f"{target.name} is already down.")
        if attacker.distance_to(target) > attacker.attack_range:
            return CommandResult.fail(f"{target.name} is out of range.")

        result = self._resolve_attack(attacker, target)
        attacker.turn_state.acted = True
        self._check_battle_resolution()
        if not self.state.is_over:
            self._check_turn_complete(attacker)
        message = f"Hit {target.name} for {result.damage}." if result.hit else f"Missed {target.name}."
        return CommandResult.ok(message, attack=result)

    def use_ability(self, ability_id: str, target_id: Optional[str] = None) -> CommandResult:
        failure = self._reject_unit_command()
        if failure is not None:
            return failure
        unit = self.state.selected_unit
        if unit.turn_state.acted:
            return CommandResult.fail(f"{unit.name} has already acted.")
        parsed = abilities.AbilityId.parse(ability_id)
        if parsed is None:
            return CommandResult.fail(f"Ability {ability_id} not implemented.")
        if not unit.can_use(parsed.value):
            return CommandResult.fail(f"{unit.name} cannot use {parsed.value}.")

        target = self._ability_target(unit, parsed, target_id)
        if isinstance(target, CommandResult):
            return target
        result = abilities.resolve_ability(parsed, unit, target, self._rules)
        if not result.success:
            return CommandResult(success=False, message=result.message, ability=result)

        self._events.emit(AbilityUsed(
            unit_id=unit.id, ability=parsed.value,
            target_id=result.target_id, message=result.message,
        ))
        self._check_turn_complete(unit)
        return CommandResult.ok(result.message, ability=result)

    def end_turn(self) -> CommandResult:
        """Forfeit whatever the selected unit has left and move on."""
        failure = self._reject_player_command()
        if failure is not None:
            return failure
        unit = self.state.selected_unit
        if unit is not None:
            unit.turn_complete = True
            log.info("[TURN] %s ends its turn", unit.id)
        self._select_next_available()
        return CommandResult.ok("Turn ended.")

    # ── Enemy phase ────────────────────────────────────────────

    def step_enemy(self) -> Optional[EnemyAction]:
        """Run the next enemy's turn.

        Returns:
            The applied action, or None if no enemy phase is running.
            After the last enemy the player phase starts.
        """
        state = self.state
        if state.phase is not Phase.ENEMY or state.is_over:
            return None

        unit: Optional[Unit] = None
        while state.enemy_queue and unit is None:
            candidate = state.get_unit(state.enemy_queue.pop(0))
            if candidate is not None and candidate.is_alive:
                unit = candidate
        if unit is None:
            self._start_player_phase()
            return None

        action = decide_enemy_action(unit, state)
        if action.destination is not None:
            self._move_unit(unit, action.destination, action.steps)
            unit.turn_state.moved = True
            unit.turn_state.steps_taken += action.steps
        if action.attack:
            target = state.get_unit(action.target_id)
            self._resolve_attack(unit, target)
            unit.turn_state.acted = True
        if action.stalled:
            log.info("[AI] %s stalls", unit.id)
        unit.turn_complete = True

        self._check_battle_resolution()
        if not state.is_over and not state.enemy_queue:
            self._start_player_phase()
        return action

    def run_enemy_phase(self) -> list[EnemyAction]:
        """Run every remaining enemy step without pacing."""
        actions: list[EnemyAction] = []
        while self.state.phase is Phase.ENEMY and not self.state.is_over:
            action = self.step_enemy()
            if action is not None:
                actions.append(action)
        return actions

    # ── Teardown ───────────────────────────────────────────────

    def abort(self) -> None:
        """Stop the battle; safe between any two commands or steps."""
        if not self.state.aborted:
            self.state.aborted = True
            self.state.enemy_queue.clear()
            log.info("[ABORT] Battle aborted in round %d", self.state.round)

    # ── Internal ───────────────────────────────────────────────

    def _reject_player_command(self) -> Optional[CommandResult]:
        if self.state.aborted:
            return CommandResult.fail("Battle aborted.")
        if self.state.outcome is not None:
            return CommandResult.fail("Battle is over.")
        if self.state.phase is not Phase.PLAYER:
            return CommandResult.fail("Not the player phase.")
        return None

    def _reject_unit_command(self) -> Optional[CommandResult]:
        failure = self._reject_player_command()
        if failure is not None:
            return failure
        unit = self.state.selected_unit
        if unit is None:
            return CommandResult.fail("No unit selected.")
        if unit.turn_complete:
            return CommandResult.fail(f"{unit.name} has already finished this turn.")
        return None

    def _ability_target(
        self, unit: Unit, ability: abilities.AbilityId, target_id: Optional[str]
    ) -> Unit | CommandResult | None:
        """Pick the ability target, or a failed result for an illegal one."""
        if ability is abilities.AbilityId.SUPPRESS:
            if target_id is None:
                candidates = self.attackable_targets()
                return self.state.get_unit(candidates[0]) if candidates else None
            target = self.state.get_unit(target_id)
            if target is None or target.team is unit.team or not target.is_alive:
                return CommandResult.fail(f"{target_id} cannot be suppressed.")
            if unit.distance_to(target) > unit.attack_range:
                return CommandResult.fail(f"{target.name} is out of range.")
            return target
        if ability is abilities.AbilityId.REPAIR:
            if target_id is None:
                return unit
            target = self.state.get_unit(target_id)
            if target is None or target.team is not unit.team:
                return CommandResult.fail(f"{target_id} is not a squad member.")
            return target
        return None

    def _select(self, unit: Optional[Unit]) -> None:
        new_id = unit.id if unit is not None else None
        if new_id == self.state.selected_unit_id:
            return
        self.state.selected_unit_id = new_id
        self._events.emit(UnitSelected(unit_id=new_id))

    def _select_next_available(self) -> None:
        for unit in self.state.team_units(Team.PLAYER):
            if not unit.turn_complete:
                self._select(unit)
                return
        self._select(None)
        self._start_enemy_phase()

    def _check_turn_complete(self, unit: Unit) -> None:
        if unit.turn_state.moved and unit.turn_state.acted:
            unit.turn_complete = True
            log.info("[TURN] %s finished (moved and attacked)", unit.id)
            if unit.id == self.state.selected_unit_id:
                self._select_next_available()

    def _move_unit(self, unit: Unit, destination: GridCoord, steps: int) -> None:
        origin = unit.position
        self.state.free(origin, unit.id)
        unit.position = destination
        self.state.occupy(destination, unit.id)
        log.info("[MOVE] %s %r -> %r (%d steps)", unit.id, origin, destination, steps)
        self._events.emit(UnitMoved(
            unit_id=unit.id,
            origin=(origin.x, origin.y),
            destination=(destination.x, destination.y),
            steps=steps,
        ))

    def _resolve_attack(self, attacker: Unit, target: Unit) -> AttackResult:
        cover = self.state.cover_at(target.position)
        result = resolve_attack(attacker, target, cover, self._rng, rules=self._rules)
        log.info("[ATTACK] %s -> %s (%s cover, %d%%): %s",
                 attacker.id, target.id, cover.value, result.hit_chance,
                 f"hit for {result.damage}" if result.hit else "miss")
        self._events.emit(AttackResolved(
            attacker_id=attacker.id,
            defender_id=target.id,
            hit=result.hit,
            damage=result.damage,
            hit_chance=result.hit_chance,
        ))
        if target.downed:
            self.state.free(target.position, target.id)
            log.info("[DOWNED] %s is down", target.id)
            self._events.emit(UnitDowned(unit_id=target.id, team=target.team.value))
        return result

    def _check_battle_resolution(self) -> None:
        state = self.state
        if state.is_over:
            return
        if not state.has_living(Team.ENEMY):
            state.outcome = Outcome.WON
        elif not state.has_living(Team.PLAYER):
            state.outcome = Outcome.LOST
        else:
            return
        state.enemy_queue.clear()
        log.info("[RESOLVED] Battle %s in round %d", state.outcome.value, state.round)
        self._events.emit(BattleResolved(won=state.outcome is Outcome.WON, round=state.round))

    def _reset_team(self, team: Team) -> None:
        for unit in self.state.team_units(team):
            unit.reset_turn()
            unit.ability_state.dash_used = False
            if team is Team.PLAYER:
                unit.ability_state.suppress_used = False

    def _start_player_phase(self, new_round: bool = True) -> None:
        state = self.state
        if new_round:
            state.round += 1
            for unit in state.units:
                for expired in tick_status_effects(unit):
                    log.debug("[STATUS] %s no longer %s", unit.id, expired)
        state.phase = Phase.PLAYER
        self._reset_team(Team.PLAYER)
        log.info("[PHASE] Player phase, round %d", state.round)
        self._events.emit(PhaseChanged(phase=Phase.PLAYER.value, round=state.round))
        self._check_battle_resolution()
        if not state.is_over:
            self._select_next_available()

    def _start_enemy_phase(self) -> None:
        state = self.state
        state.phase = Phase.ENEMY
        self._reset_team(Team.ENEMY)
        state.enemy_queue = [unit.id for unit in state.team_units(Team.ENEMY)]
        log.info("[PHASE] Enemy phase, round %d (%d enemies)", state.round, len(state.enemy_queue))
        self._events.emit(PhaseChanged(phase=Phase.ENEMY.value, round=state.round))
