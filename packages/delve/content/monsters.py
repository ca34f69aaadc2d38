"""
Monster Definitions - bundled monster table keyed by challenge rating.

Hostile rooms ask a MonsterProvider for enemies on first entry. The
provider contract is async so that a remote lookup can be plugged in; the
bundled LocalMonsterProvider serves the table below without I/O.

Room level is used directly as the challenge rating. Ratings with no
entries fall back to the nearest rating that has some.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol

from ..state.rng import Random, generate_random_string, resolve_rng

logger = logging.getLogger(__name__)


class EnemyType(Enum):
    """Creature types."""
    ABERRATION = "aberration"
    BEAST = "beast"
    CELESTIAL = "celestial"
    CONSTRUCT = "construct"
    DRAGON = "dragon"
    ELEMENTAL = "elemental"
    FEY = "fey"
    FIEND = "fiend"
    GIANT = "giant"
    HUMANOID = "humanoid"
    MONSTROSITY = "monstrosity"
    OOZE = "ooze"
    PLANT = "plant"
    UNDEAD = "undead"


@dataclass
class Enemy:
    """A monster instance in a room."""
    id: str
    template_id: str
    name: str
    health: int
    max_health: int
    attack_power: int
    defense: int
    experience: int
    challenge_rating: float
    type: EnemyType
    speed: int

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "name": self.name,
            "health": self.health,
            "max_health": self.max_health,
            "attack_power": self.attack_power,
            "defense": self.defense,
            "experience": self.experience,
            "challenge_rating": self.challenge_rating,
            "type": self.type.value,
            "speed": self.speed,
        }


def enemy_from_dict(data: Dict) -> Enemy:
    return Enemy(
        id=data["id"],
        template_id=data["template_id"],
        name=data["name"],
        health=data["health"],
        max_health=data["max_health"],
        attack_power=data["attack_power"],
        defense=data["defense"],
        experience=data["experience"],
        challenge_rating=data["challenge_rating"],
        type=EnemyType(data["type"]),
        speed=data["speed"],
    )


@dataclass(frozen=True)
class MonsterTemplate:
    id: str
    name: str
    health: int
    attack_power: int
    defense: int
    experience: int
    type: EnemyType
    speed: int


def _m(id: str, name: str, hp: int, atk: int, df: int, xp: int,
       etype: EnemyType, speed: int) -> MonsterTemplate:
    return MonsterTemplate(id, name, hp, atk, df, xp, etype, speed)


B, H, U, M = EnemyType.BEAST, EnemyType.HUMANOID, EnemyType.UNDEAD, EnemyType.MONSTROSITY
G, D = EnemyType.GIANT, EnemyType.DRAGON

# (id, name, health, attack, defense, xp, type, speed)
LOCAL_MONSTERS: Dict[float, List[MonsterTemplate]] = {
    0: [
        _m("rat", "Giant Rat", 7, 2, 10, 10, B, 30),
        _m("bat", "Giant Bat", 5, 2, 12, 10, B, 60),
        _m("spider", "Giant Spider", 4, 2, 10, 10, B, 30),
    ],
    0.125: [
        _m("bandit", "Bandit", 11, 3, 12, 25, H, 30),
        _m("cultist", "Cultist", 9, 2, 12, 25, H, 30),
        _m("kobold", "Kobold", 5, 4, 12, 25, H, 30),
    ],
    0.25: [
        _m("goblin", "Goblin", 7, 4, 15, 50, H, 30),
        _m("skeleton", "Skeleton", 13, 4, 13, 50, U, 30),
        _m("zombie", "Zombie", 22, 3, 8, 50, U, 20),
        _m("wolf", "Wolf", 11, 4, 13, 50, B, 40),
    ],
    0.5: [
        _m("orc", "Orc", 15, 5, 13, 100, H, 30),
        _m("hobgoblin", "Hobgoblin", 11, 3, 18, 100, H, 30),
        _m("shadow", "Shadow", 16, 4, 12, 100, U, 40),
        _m("worg", "Worg", 26, 5, 13, 100, M, 50),
    ],
    1: [
        _m("bugbear", "Bugbear", 27, 4, 16, 200, H, 30),
        _m("ghoul", "Ghoul", 22, 4, 12, 200, U, 30),
        _m("specter", "Specter", 22, 4, 12, 200, U, 50),
        _m("dire-wolf", "Dire Wolf", 37, 5, 14, 200, B, 50),
    ],
    2: [
        _m("ogre", "Ogre", 59, 6, 11, 450, G, 40),
        _m("gargoyle", "Gargoyle", 52, 4, 15, 450, EnemyType.ELEMENTAL, 30),
        _m("ghast", "Ghast", 36, 5, 13, 450, U, 30),
        _m("mimic", "Mimic", 58, 5, 12, 450, M, 15),
    ],
    3: [
        _m("owlbear", "Owlbear", 59, 7, 13, 700, M, 40),
        _m("mummy", "Mummy", 58, 5, 11, 700, U, 20),
        _m("werewolf", "Werewolf", 58, 4, 12, 700, H, 40),
        _m("hell-hound", "Hell Hound", 45, 5, 15, 700, EnemyType.FIEND, 50),
    ],
    4: [
        _m("ettin", "Ettin", 85, 7, 12, 1100, G, 40),
        _m("ghost", "Ghost", 45, 5, 11, 1100, U, 40),
        _m("flameskull", "Flameskull", 40, 5, 13, 1100, U, 40),
    ],
    5: [
        _m("troll", "Troll", 84, 7, 15, 1800, G, 30),
        _m("wraith", "Wraith", 67, 6, 13, 1800, U, 60),
        _m("salamander", "Salamander", 90, 7, 15, 1800, EnemyType.ELEMENTAL, 30),
    ],
    6: [
        _m("chimera", "Chimera", 114, 6, 14, 2300, M, 30),
        _m("cyclops", "Cyclops", 138, 9, 14, 2300, G, 30),
        _m("wyvern", "Wyvern", 110, 7, 13, 2300, D, 80),
    ],
    7: [
        _m("stone-giant", "Stone Giant", 126, 9, 17, 2900, G, 40),
        _m("oni", "Oni", 110, 7, 16, 2900, G, 30),
    ],
    8: [
        _m("frost-giant", "Frost Giant", 138, 8, 15, 3900, G, 40),
        _m("hydra", "Hydra", 172, 8, 15, 3900, M, 30),
    ],
    9: [
        _m("fire-giant", "Fire Giant", 162, 11, 18, 5000, G, 30),
        _m("treant", "Treant", 138, 6, 16, 5000, EnemyType.PLANT, 30),
    ],
    10: [
        _m("aboleth", "Aboleth", 135, 9, 17, 5900, EnemyType.ABERRATION, 40),
        _m("stone-golem", "Stone Golem", 178, 10, 17, 5900, EnemyType.CONSTRUCT, 30),
    ],
    11: [
        _m("remorhaz", "Remorhaz", 195, 11, 17, 7200, M, 30),
        _m("behir", "Behir", 168, 10, 17, 7200, M, 50),
    ],
    12: [
        _m("archmage", "Archmage", 99, 6, 12, 8400, H, 30),
    ],
    13: [
        _m("beholder", "Beholder", 180, 4, 18, 10000, EnemyType.ABERRATION, 20),
        _m("adult-white-dragon", "Adult White Dragon", 200, 11, 18, 10000, D, 80),
    ],
    14: [
        _m("adult-black-dragon", "Adult Black Dragon", 195, 11, 19, 11500, D, 80),
    ],
    15: [
        _m("adult-green-dragon", "Adult Green Dragon", 207, 11, 19, 13000, D, 80),
        _m("purple-worm", "Purple Worm", 247, 14, 18, 13000, M, 50),
    ],
    16: [
        _m("adult-blue-dragon", "Adult Blue Dragon", 225, 12, 19, 15000, D, 80),
        _m("iron-golem", "Iron Golem", 210, 14, 20, 15000, EnemyType.CONSTRUCT, 30),
    ],
    17: [
        _m("adult-red-dragon", "Adult Red Dragon", 256, 14, 19, 18000, D, 80),
        _m("death-knight", "Death Knight", 180, 11, 20, 18000, U, 30),
    ],
    18: [
        _m("demilich", "Demilich", 80, 6, 20, 20000, U, 30),
    ],
    19: [
        _m("balor", "Balor", 262, 14, 19, 22000, EnemyType.FIEND, 40),
    ],
    20: [
        _m("ancient-white-dragon", "Ancient White Dragon", 333, 14, 20, 25000, D, 80),
        _m("pit-fiend", "Pit Fiend", 300, 14, 19, 25000, EnemyType.FIEND, 30),
    ],
}


def get_available_crs() -> List[float]:
    return sorted(LOCAL_MONSTERS)


def nearest_cr(cr: float) -> float:
    """Nearest rating with templates. Ties go to the lower rating."""
    best = None
    for candidate in get_available_crs():
        if best is None or abs(candidate - cr) < abs(best - cr):
            best = candidate
    return best


def create_enemy(template: MonsterTemplate, cr: float, rng: Optional[Random] = None) -> Enemy:
    """Instantiate a template with a unique instance id."""
    return Enemy(
        id=f"{template.id}-{generate_random_string(8, rng)}",
        template_id=template.id,
        name=template.name,
        health=template.health,
        max_health=template.health,
        attack_power=template.attack_power,
        defense=template.defense,
        experience=template.experience,
        challenge_rating=cr,
        type=template.type,
        speed=template.speed,
    )


def get_random_local_monsters(cr: float, count: int = 1, rng: Optional[Random] = None) -> List[Enemy]:
    """
    Pick count monsters (with replacement) of the given rating.

    Args:
        cr: Challenge rating (room level)
        count: Number of enemies
        rng: Session RNG

    Returns:
        New Enemy instances
    """
    rng = resolve_rng(rng)
    templates = LOCAL_MONSTERS.get(cr)
    if not templates:
        fallback = nearest_cr(cr)
        logger.debug("No monsters at CR %s, using nearest CR %s", cr, fallback)
        cr, templates = fallback, LOCAL_MONSTERS[fallback]

    return [
        create_enemy(templates[rng.next_int(0, len(templates) - 1)], cr, rng)
        for _ in range(count)
    ]


class MonsterProvider(Protocol):
    """Async enemy lookup used when a hostile room materializes."""

    async def get_random_monsters_by_cr(
        self, cr: float, count: int, rng: Optional[Random] = None
    ) -> List[Enemy]:
        ...


class LocalMonsterProvider:
    """MonsterProvider backed by the bundled LOCAL_MONSTERS table."""

    def __init__(self):
        self.lookups = 0

    async def get_random_monsters_by_cr(
        self, cr: float, count: int, rng: Optional[Random] = None
    ) -> List[Enemy]:
        self.lookups += 1
        return get_random_local_monsters(cr, count, rng)
