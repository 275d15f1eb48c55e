"""Tests for the headless battle runner."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from skirmish.main import create_controller, load_configuration, main, play_battle
from skirmish.models.battle import Outcome

CONFIG_DIR = str(Path(__file__).resolve().parent.parent / "config")


def _run(seed: int):
    controller = create_controller(load_configuration(CONFIG_DIR), seed=seed)
    outcome = play_battle(controller, max_rounds=50)
    return controller, outcome


class TestHeadlessRunner:
    def test_configuration_loaded(self):
        config = load_configuration(CONFIG_DIR)
        assert config.board.width == 8
        assert len(config.player_squad) == 3
        assert len(config.enemy_squad) == 3

    def test_builtin_fallback(self, tmp_path):
        config = load_configuration(str(tmp_path))
        assert config.board.height == 6
        assert [c["id"] for c in config.enemy_squad] == ["raider-1", "raider-2", "marksman"]

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_battle_terminates(self, seed):
        controller, outcome = _run(seed)
        assert controller.state.is_over
        assert outcome in (Outcome.WON, Outcome.LOST, None)

    def test_same_seed_same_battle(self):
        first, outcome_a = _run(42)
        second, outcome_b = _run(42)
        assert outcome_a == outcome_b
        assert first.round == second.round
        assert first.units() == second.units()

    def test_round_limit_aborts(self):
        controller = create_controller(load_configuration(CONFIG_DIR), seed=5)
        assert play_battle(controller, max_rounds=0) is None
        assert controller.state.aborted

    def test_main_exit_code(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["skirmish", "--config_dir", CONFIG_DIR, "--seed", "3"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code in (0, 2)

    def test_main_bad_arguments(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["skirmish", "--seed", "many"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
