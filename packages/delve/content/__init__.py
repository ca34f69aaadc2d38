"""
Content module - All game content data definitions.

Contains items, monsters, relics, mysterious events and puzzles.
"""

# Items
from .items import (
    Item, ItemType, ItemSlot, ItemRarity, DamageType, OnHitEffectType,
    StatBonus, Ability, OnHitEffect, WeaponDamage, ConsumeEffect,
    WEAPONS, ARMOR, ACCESSORIES, CONSUMABLES, TREASURE, ALL_ITEMS,
    POTION_OF_HEALING, POTION_OF_MANA,
    get_item, get_items_by_type, get_items_by_rarity, item_from_dict,
    roll_dice, calculate_average_damage, get_sell_price,
)

# Monsters
from .monsters import (
    Enemy, EnemyType, MonsterTemplate, MonsterProvider, LocalMonsterProvider,
    LOCAL_MONSTERS, get_random_local_monsters, nearest_cr, enemy_from_dict,
)

# Relics
from .relics import (
    Relic, RelicType, RelicRarity, PassiveEffect, PassiveEffectType,
    CombatModifier, CombatModifierType, RELIC_DATABASE,
    get_relic, get_relics_by_rarity, get_relics_by_type,
    generate_random_relic, generate_trap_relic, clone_relic, relic_from_dict,
)

# Events
from .events import (
    MysteriousEvent, EventOutcome, EventOutcomeType, EventKind,
    generate_mysterious_event, get_outcome_message, event_from_dict,
)

# Puzzles
from .puzzles import (
    Puzzle, PuzzleType, PuzzleSolveResult,
    generate_puzzle, attempt_puzzle, puzzle_rewards, puzzle_from_dict,
)

__all__ = [
    # Items
    "Item", "ItemType", "ItemSlot", "ItemRarity", "DamageType", "OnHitEffectType",
    "StatBonus", "Ability", "OnHitEffect", "WeaponDamage", "ConsumeEffect",
    "WEAPONS", "ARMOR", "ACCESSORIES", "CONSUMABLES", "TREASURE", "ALL_ITEMS",
    "POTION_OF_HEALING", "POTION_OF_MANA",
    "get_item", "get_items_by_type", "get_items_by_rarity", "item_from_dict",
    "roll_dice", "calculate_average_damage", "get_sell_price",
    # Monsters
    "Enemy", "EnemyType", "MonsterTemplate", "MonsterProvider", "LocalMonsterProvider",
    "LOCAL_MONSTERS", "get_random_local_monsters", "nearest_cr", "enemy_from_dict",
    # Relics
    "Relic", "RelicType", "RelicRarity", "PassiveEffect", "PassiveEffectType",
    "CombatModifier", "CombatModifierType", "RELIC_DATABASE",
    "get_relic", "get_relics_by_rarity", "get_relics_by_type",
    "generate_random_relic", "generate_trap_relic", "clone_relic", "relic_from_dict",
    # Events
    "MysteriousEvent", "EventOutcome", "EventOutcomeType", "EventKind",
    "generate_mysterious_event", "get_outcome_message", "event_from_dict",
    # Puzzles
    "Puzzle", "PuzzleType", "PuzzleSolveResult",
    "generate_puzzle", "attempt_puzzle", "puzzle_rewards", "puzzle_from_dict",
]
