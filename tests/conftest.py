"""
Shared pytest fixtures for the delve test suite.

This module provides reusable fixtures for:
- RNG with known seeds, and a scripted RNG for exact dice outcomes
- Players of both classes
- Generated dungeons and started runs
- Hand-built enemies and a monster provider that serves them
"""

import os
import sys
from typing import List, Optional

import pytest

# Ensure project root is in path
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _project_root)

from packages.delve.content.monsters import Enemy, EnemyType
from packages.delve.game import GameRunner, GameStats
from packages.delve.generation.dungeon import DungeonGenerator, DungeonGeneratorConfig
from packages.delve.state.player import PlayerClass, create_player
from packages.delve.state.rng import Random


# =============================================================================
# RNG Fixtures
# =============================================================================


class ScriptedRandom(Random):
    """
    Random whose next_int/next_float return queued values first.

    Once a queue is empty the seeded Mulberry32 stream takes over, so code
    paths that draw more than the test cares about still work.
    """

    def __init__(self, ints=(), floats=(), seed="scripted"):
        super().__init__(seed)
        self.ints = list(ints)
        self.floats = list(floats)

    def next_int(self, min_val: int, max_val: int) -> int:
        if self.ints:
            return self.ints.pop(0)
        return super().next_int(min_val, max_val)

    def next_float(self) -> float:
        if self.floats:
            return self.floats.pop(0)
        return super().next_float()


@pytest.fixture
def rng():
    """RNG seeded with 'abc', the default report seed."""
    return Random("abc")


@pytest.fixture
def scripted_rng():
    """Factory for ScriptedRandom instances."""
    return ScriptedRandom


# =============================================================================
# Player Fixtures
# =============================================================================


@pytest.fixture
def fighter():
    return create_player("Hero", PlayerClass.FIGHTER)


@pytest.fixture
def warlock():
    return create_player("Mage", PlayerClass.WARLOCK)


@pytest.fixture
def stats():
    return GameStats()


# =============================================================================
# Enemy Fixtures
# =============================================================================


def build_enemy(
    enemy_id: str = "dummy-1",
    health: int = 20,
    attack_power: int = 2,
    defense: int = 0,
    speed: int = 1,
    challenge_rating: float = 0,
    experience: int = 10,
) -> Enemy:
    return Enemy(
        id=enemy_id,
        template_id="dummy",
        name="Training Dummy",
        health=health,
        max_health=health,
        attack_power=attack_power,
        defense=defense,
        experience=experience,
        challenge_rating=challenge_rating,
        type=EnemyType.CONSTRUCT,
        speed=speed,
    )


@pytest.fixture
def make_enemy():
    """Factory for hand-built enemies (slow, weak, defenseless by default)."""
    return build_enemy


class WeakMonsterProvider:
    """Serves fragile, slow enemies so fights resolve quickly."""

    def __init__(self, health: int = 1):
        self.health = health
        self.lookups = 0

    async def get_random_monsters_by_cr(
        self, cr: float, count: int, rng: Optional[Random] = None
    ) -> List[Enemy]:
        self.lookups += 1
        return [
            build_enemy(f"weakling-{self.lookups}-{i}", health=self.health)
            for i in range(count)
        ]


@pytest.fixture
def weak_provider():
    return WeakMonsterProvider()


# =============================================================================
# Dungeon and Run Fixtures
# =============================================================================


@pytest.fixture
def dungeon():
    """Default 20-level dungeon for seed 'abc'."""
    return DungeonGenerator(Random("abc"), DungeonGeneratorConfig()).generate()


@pytest.fixture
def runner(weak_provider):
    """Started fighter run on seed 'abc' with weak enemies."""
    game = GameRunner(seed="abc", monster_provider=weak_provider)
    game.start_new_game()
    return game
