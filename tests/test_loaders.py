"""Tests for the YAML configuration loaders."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from skirmish.loaders.game_config_loader import GameConfig, load_game_config
from skirmish.loaders.squad_loader import (
    DEFAULT_BOARD,
    board_from_dict,
    build_units,
    load_board,
    load_squads,
)
from skirmish.models.board import CoverType
from skirmish.models.grid import GridCoord
from skirmish.models.unit import Team
from skirmish.util.errors import ConfigError

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


class TestGameConfig:
    def test_shipped_config(self):
        cfg = load_game_config(CONFIG_DIR / "game.yaml")
        assert cfg.seed == 7
        assert cfg.max_rounds == 50
        assert cfg.combat.high_cover_modifier == -25
        assert cfg.class_abilities["scout"] == ("dash",)

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        cfg = load_game_config(tmp_path / "nope.yaml")
        assert cfg == GameConfig()
        assert "not found" in caplog.text

    def test_partial_override(self, tmp_path):
        path = _write(tmp_path, "game.yaml", "combat:\n  repair_heal: 3\nmax_rounds: 10\n")
        cfg = load_game_config(path)
        assert cfg.combat.repair_heal == 3
        assert cfg.combat.repair_charges == 2
        assert cfg.max_rounds == 10
        assert cfg.seed is None

    def test_class_abilities_merge(self, tmp_path):
        path = _write(tmp_path, "game.yaml", "class_abilities:\n  medic: [repair]\n")
        cfg = load_game_config(path)
        assert cfg.class_abilities["medic"] == ("repair",)
        assert cfg.class_abilities["soldier"] == ("suppress",)

    def test_unknown_keys_warned(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        load_game_config(_write(tmp_path, "game.yaml", "difficulty: hard\n"))
        assert "difficulty" in caplog.text

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError):
            load_game_config(_write(tmp_path, "game.yaml", "combat: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError):
            load_game_config(_write(tmp_path, "game.yaml", "- 1\n- 2\n"))

    def test_bad_combat_value_keeps_default(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        path = _write(tmp_path, "game.yaml", "combat:\n  repair_heal: lots\n  repair_charges: 3\n")
        cfg = load_game_config(path)
        assert cfg.combat.repair_heal == 2
        assert cfg.combat.repair_charges == 3
        assert "[SETUP]" in caplog.text
        assert "combat.repair_heal" in caplog.text

    def test_fractional_combat_value_rejected(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        cfg = load_game_config(_write(tmp_path, "game.yaml", "combat:\n  suppress_duration: 1.5\n"))
        assert cfg.combat.suppress_duration == 2
        assert "suppress_duration" in caplog.text

    @pytest.mark.parametrize("text", ["max_rounds: abc\n", "max_rounds: -3\n", "max_rounds: [1]\n"])
    def test_bad_max_rounds_keeps_default(self, tmp_path, caplog, text):
        caplog.set_level(logging.WARNING)
        cfg = load_game_config(_write(tmp_path, "game.yaml", text))
        assert cfg.max_rounds == 50
        assert "[SETUP]" in caplog.text

    def test_bad_seed_ignored(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        cfg = load_game_config(_write(tmp_path, "game.yaml", "seed: random\n"))
        assert cfg.seed is None
        assert "seed" in caplog.text

    def test_numeric_string_seed(self, tmp_path):
        assert load_game_config(_write(tmp_path, "game.yaml", "seed: \"12\"\n")).seed == 12

    def test_single_class_ability_string(self, tmp_path):
        cfg = load_game_config(_write(tmp_path, "game.yaml", "class_abilities:\n  scout: dash\n"))
        assert cfg.class_abilities["scout"] == ("dash",)

    def test_malformed_class_abilities_skipped(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        cfg = load_game_config(_write(tmp_path, "game.yaml", "class_abilities:\n  scout: {a: 1}\n"))
        assert cfg.class_abilities["scout"] == ("dash",)
        assert "scout" in caplog.text


class TestBoard:
    def test_shipped_board(self):
        board = load_board(CONFIG_DIR / "board.yaml")
        assert (board.width, board.height) == (8, 6)
        assert board.cover_at(GridCoord(3, 3)) is CoverType.HIGH
        assert board.cover_at(GridCoord(3, 2)) is CoverType.LOW
        assert board.cover_at(GridCoord(0, 0)) is CoverType.NONE

    def test_builtin_board(self):
        board = board_from_dict(DEFAULT_BOARD)
        assert set(board.obstacles()) == {GridCoord(3, 3)}

    def test_bad_obstacles_skipped(self, caplog):
        caplog.set_level(logging.WARNING)
        board = board_from_dict({
            "width": 4, "height": 4,
            "obstacles": [
                {"x": 1, "y": 1, "cover": "high"},
                {"x": 9, "y": 9, "cover": "low"},
                {"x": 2, "y": 2, "cover": "lava"},
                "garbage",
            ],
        })
        assert board.cover == {GridCoord(1, 1): CoverType.HIGH}
        assert caplog.text.count("[SETUP]") == 3

    @pytest.mark.parametrize("data", [{}, {"width": 0, "height": 3}, {"width": "wide", "height": 3}])
    def test_bad_dimensions(self, data):
        with pytest.raises(ConfigError):
            board_from_dict(data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_board(tmp_path / "board.yaml")


class TestSquads:
    def test_shipped_squads(self):
        player, enemy = load_squads(CONFIG_DIR / "squads.yaml")
        assert [c["id"] for c in player] == ["scout", "soldier", "tech"]
        assert [c["id"] for c in enemy] == ["raider-1", "raider-2", "marksman"]

    def test_lists_required(self, tmp_path):
        with pytest.raises(ConfigError):
            load_squads(_write(tmp_path, "squads.yaml", "player: scout\n"))

    def test_build_units_players_first(self):
        player, enemy = load_squads(CONFIG_DIR / "squads.yaml")
        units = build_units(player, enemy)
        assert [u.team for u in units] == [Team.PLAYER] * 3 + [Team.ENEMY] * 3
        assert units[0].abilities == ("dash",)
        assert units[5].attack_range == 5

    def test_build_units_skips_invalid(self, caplog):
        caplog.set_level(logging.WARNING)
        units = build_units(
            [{"id": "ok", "hp": 5, "position": [0, 0]}, {"id": "broken", "position": [1, 0]}],
            [],
        )
        assert [u.id for u in units] == ["ok"]
        assert "Skipping player unit" in caplog.text

    def test_ability_string_not_split(self):
        units = build_units([{"id": "s", "hp": 5, "position": [0, 0], "abilities": "dash"}], [])
        assert units[0].abilities == ("dash",)

    def test_repair_charges_from_config(self, tmp_path):
        cfg = load_game_config(_write(tmp_path, "game.yaml", "combat:\n  repair_charges: 4\n"))
        units = build_units([{"id": "tech", "class": "tech", "hp": 5, "position": [0, 0]}], [], cfg)
        assert units[0].ability_state.repair_charges == 4
