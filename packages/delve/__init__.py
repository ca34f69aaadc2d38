"""
delve engine

A seeded, turn-based dungeon crawler: every dungeon, loot roll and fight
replays exactly from its seed.

Core subsystems:
- state: RNG (Mulberry32), player model, combat state types
- content: Items, monsters, relics, mysterious events, puzzles
- generation: Dungeon room graph, loot and shop stock
- dungeon: Room state machine, interactables and traps
- handlers: Non-combat room logic (shop, event, puzzle, rest, inventory)
- combat_engine: Turn-based encounter resolution

Usage:
    import asyncio
    from packages.delve import GameRunner, PlayerClass

    runner = GameRunner(seed="abc", player_class=PlayerClass.FIGHTER)
    runner.start_new_game()
    while not runner.game_over:
        actions = runner.get_available_actions()
        asyncio.run(runner.take_action(actions[0]))

    from packages.delve import DungeonGenerator, DungeonGeneratorConfig, Random
    dungeon = DungeonGenerator(Random("abc"), DungeonGeneratorConfig()).generate()
"""

__version__ = "0.2.0"

# RNG System
from .state.rng import Random, resolve_rng, generate_random_string, seed_to_int

# Player
from .state.player import Player, PlayerClass, PlayerStats, create_player, player_from_dict

# Combat
from .state.combat import CombatState, CombatStatus, StatusEffect, StatusEffectType
from .combat_engine import CombatEngine, CombatResult

# Dungeon
from .dungeon.room import Room, RoomType, RoomState, Reward
from .dungeon.interactables import Interactable, InteractableType, TrapType
from .generation.dungeon import (
    Dungeon,
    DungeonLayer,
    DungeonGenerator,
    DungeonGeneratorConfig,
    validate_connectivity,
    dungeon_to_string,
)

# Content
from .content.items import Item, ItemType, ItemSlot, ItemRarity
from .content.monsters import Enemy, MonsterProvider, LocalMonsterProvider
from .content.relics import Relic

# Game Runner
from .config import GameConfig, configure_logging
from .game import GameRunner, GamePhase, GameStats
from .save import SAVE_VERSION, create_save, save_game, load_game

__all__ = [
    "__version__",
    # RNG
    "Random", "resolve_rng", "generate_random_string", "seed_to_int",
    # Player
    "Player", "PlayerClass", "PlayerStats", "create_player", "player_from_dict",
    # Combat
    "CombatState", "CombatStatus", "StatusEffect", "StatusEffectType",
    "CombatEngine", "CombatResult",
    # Dungeon
    "Room", "RoomType", "RoomState", "Reward",
    "Interactable", "InteractableType", "TrapType",
    "Dungeon", "DungeonLayer", "DungeonGenerator", "DungeonGeneratorConfig",
    "validate_connectivity", "dungeon_to_string",
    # Content
    "Item", "ItemType", "ItemSlot", "ItemRarity",
    "Enemy", "MonsterProvider", "LocalMonsterProvider", "Relic",
    # Game
    "GameConfig", "configure_logging",
    "GameRunner", "GamePhase", "GameStats",
    "SAVE_VERSION", "create_save", "save_game", "load_game",
]
