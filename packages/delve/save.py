"""
Save/Load - JSON snapshots of a run in progress.

A save holds the seed and the RNG draw counter rather than the generator's
internal state: loading re-seeds and fast-forwards, so the restored run
continues with exactly the draws it would have made.

Usage:
    save_game(runner, "delve_save.json")
    runner = load_game("delve_save.json")
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import GameConfig
from .content.monsters import MonsterProvider
from .game import GamePhase, GameRunner, GameStats
from .generation.dungeon import dungeon_from_dict
from .state.player import player_from_dict
from .state.rng import Random


logger = logging.getLogger(__name__)

SAVE_VERSION = 1


def create_save(runner: GameRunner) -> Dict[str, Any]:
    """Build a JSON-compatible snapshot of the runner."""
    if runner.dungeon is None:
        raise ValueError("No game in progress")
    return {
        "version": SAVE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "seed": runner.seed,
        "rng_counter": runner.rng.counter,
        "player_class": runner.player_class.value,
        "player_name": runner.player_name,
        "player": runner.player.to_dict(),
        "dungeon": runner.dungeon.to_dict(),
        "phase": runner.phase.value,
        "turn": runner.turn,
        "stats": runner.stats.to_dict(),
        "searched_rooms": sorted(runner._searched_rooms),
    }


def save_game(runner: GameRunner, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_text(json.dumps(create_save(runner), indent=2))
    logger.info("Saved run %s (turn %d) to %s", runner.seed, runner.turn, path)
    return path


def restore_runner(
    data: Dict[str, Any],
    config: Optional[GameConfig] = None,
    monster_provider: Optional[MonsterProvider] = None,
) -> GameRunner:
    """
    Rebuild a GameRunner from create_save() output.

    A run saved mid-combat resumes with a fresh encounter against the room's
    surviving enemies; status effects and turn order are not saved.

    Raises:
        ValueError: if the save version is not SAVE_VERSION
    """
    version = data.get("version")
    if version != SAVE_VERSION:
        raise ValueError(f"Unsupported save version: {version} (expected {SAVE_VERSION})")

    runner = GameRunner(
        seed=data["seed"],
        player_class=data["player_class"],
        player_name=data["player_name"],
        config=config,
        monster_provider=monster_provider,
    )
    runner.rng = Random(data["seed"], data["rng_counter"])
    runner.player = player_from_dict(data["player"])
    runner.dungeon = dungeon_from_dict(data["dungeon"])
    runner.phase = GamePhase(data["phase"])
    runner.turn = data["turn"]
    runner.stats = GameStats(**data["stats"])
    runner._searched_rooms = set(data.get("searched_rooms", []))

    if runner.phase == GamePhase.GAME_OVER:
        runner.game_over = runner.game_lost = True
    elif runner.phase == GamePhase.VICTORY:
        runner.game_over = runner.game_won = True
    elif runner.phase == GamePhase.COMBAT:
        runner.initialize_combat()
    return runner


def load_game(
    path: Union[str, Path],
    config: Optional[GameConfig] = None,
    monster_provider: Optional[MonsterProvider] = None,
) -> GameRunner:
    path = Path(path)
    data = json.loads(path.read_text())
    runner = restore_runner(data, config, monster_provider)
    logger.info("Loaded run %s (turn %d) from %s", runner.seed, runner.turn, path)
    return runner
