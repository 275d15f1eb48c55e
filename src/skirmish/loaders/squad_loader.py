"""Squad and board loader — parses battle setup YAML into models.

Board format::

    width: 8
    height: 6
    obstacles:
      - {x: 3, y: 2, cover: low}
      - {x: 3, y: 3, cover: high}

Squad format::

    player:
      - {id: scout, name: Scout, class: scout, hp: 6, position: {x: 1, y: 2}}
    enemy:
      - {id: raider-1, class: raider, hp: 6, attack_range: 1, position: [6, 2]}

Malformed entries (obstacles outside the board, unknown cover kinds,
invalid unit stats) are skipped with a warning instead of aborting setup.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from skirmish.loaders.game_config_loader import GameConfig
from skirmish.models.board import Board, CoverType
from skirmish.models.grid import GridCoord
from skirmish.models.unit import Team, Unit, create_unit
from skirmish.util.errors import ConfigError, UnitConfigError

log = logging.getLogger(__name__)

DEFAULT_BOARD_PATH = "config/board.yaml"
DEFAULT_SQUADS_PATH = "config/squads.yaml"


def _read_yaml(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return data


# -- Board ---------------------------------------------------------------

def load_board(path: str | Path = DEFAULT_BOARD_PATH) -> Board:
    """Load a board layout from a YAML file.

    Args:
        path: Path to the board YAML file.

    Returns:
        Populated Board instance.
    """
    return board_from_dict(_read_yaml(path))


def board_from_dict(data: Mapping[str, Any]) -> Board:
    """Build a Board from a parsed layout dict.

    Raises:
        ConfigError: If the dimensions are missing or not positive.
    """
    try:
        width, height = int(data["width"]), int(data["height"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"board needs integer width and height: {exc}") from exc
    if width <= 0 or height <= 0:
        raise ConfigError(f"board dimensions must be positive, got {width}x{height}")

    cover: dict[GridCoord, CoverType] = {}
    for raw in data.get("obstacles") or []:
        try:
            coord = GridCoord.parse(raw)
            kind = CoverType(str(raw.get("cover", "low")).lower())
        except (ValueError, KeyError, TypeError, AttributeError):
            log.warning("[SETUP] Skipping malformed obstacle %r", raw)
            continue
        if not coord.in_bounds(width, height):
            log.warning("[SETUP] Skipping obstacle %r outside %dx%d board", coord, width, height)
            continue
        if kind is CoverType.NONE:
            continue
        cover[coord] = kind

    return Board(width=width, height=height, cover=cover)


# -- Squads --------------------------------------------------------------

def load_squads(path: str | Path = DEFAULT_SQUADS_PATH) -> tuple[list[dict], list[dict]]:
    """Load the raw player and enemy squad definitions.

    Returns:
        Tuple of (player configs, enemy configs), each in squad order.
    """
    data = _read_yaml(path)
    player = data.get("player") or []
    enemy = data.get("enemy") or []
    if not isinstance(player, list) or not isinstance(enemy, list):
        raise ConfigError(f"{path}: 'player' and 'enemy' must be lists")
    return player, enemy


def build_units(
    player_configs: Iterable[Mapping[str, Any]],
    enemy_configs: Iterable[Mapping[str, Any]],
    game_config: GameConfig | None = None,
) -> list[Unit]:
    """Create units for both squads, players first.

    Invalid entries are logged and skipped.
    """
    game_config = game_config or GameConfig()
    units: list[Unit] = []
    for team, configs in ((Team.PLAYER, player_configs), (Team.ENEMY, enemy_configs)):
        for config in configs:
            try:
                units.append(create_unit(
                    config,
                    team=team,
                    repair_charges=game_config.combat.repair_charges,
                    class_abilities=game_config.class_abilities,
                ))
            except UnitConfigError as exc:
                log.warning("[SETUP] Skipping %s unit: %s", team.value, exc)
    return units


# -- Built-in encounter --------------------------------------------------

DEFAULT_PLAYER_SQUAD: list[dict[str, Any]] = [
    {"id": "scout", "name": "Scout", "class": "scout", "hp": 6, "move_range": 5,
     "attack_range": 3, "accuracy": 75, "damage": [1, 6], "position": {"x": 1, "y": 2}},
    {"id": "soldier", "name": "Soldier", "class": "soldier", "hp": 8, "move_range": 4,
     "attack_range": 4, "accuracy": 70, "damage": [1, 8], "position": {"x": 1, "y": 3}},
    {"id": "tech", "name": "Tech", "class": "tech", "hp": 7, "move_range": 4,
     "attack_range": 3, "accuracy": 65, "damage": [1, 6], "position": {"x": 1, "y": 4}},
]

DEFAULT_ENEMY_SQUAD: list[dict[str, Any]] = [
    {"id": "raider-1", "name": "Raider", "class": "raider", "hp": 6, "move_range": 4,
     "attack_range": 1, "accuracy": 70, "damage": [1, 6], "position": {"x": 6, "y": 2}},
    {"id": "raider-2", "name": "Raider", "class": "raider", "hp": 6, "move_range": 4,
     "attack_range": 1, "accuracy": 70, "damage": [1, 6], "position": {"x": 6, "y": 4}},
    {"id": "marksman", "name": "Marksman", "class": "marksman", "hp": 5, "move_range": 3,
     "attack_range": 5, "accuracy": 75, "damage": [1, 6], "position": {"x": 5, "y": 3}},
]

DEFAULT_BOARD: dict[str, Any] = {
    "width": 8,
    "height": 6,
    "obstacles": [
        {"x": 3, "y": 2, "cover": "low"},
        {"x": 3, "y": 3, "cover": "high"},
        {"x": 4, "y": 4, "cover": "low"},
    ],
}
