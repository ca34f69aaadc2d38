"""
Mysterious Events - one-shot outcomes found in EVENT rooms.

An event is rolled once, the first time its room is entered, and applied
when the player accepts it. Outcome odds shift toward item rewards as the
dungeon deepens (up to +15% at level 6 and beyond).

Outcome kinds:
    weapon / armor / potion  - a generated item goes to the inventory
    buff / debuff            - a timed stat change
    gold                     - a gold cache
    heal / damage            - a fraction of max health (30-50% / 10-25%)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional

from ..state.rng import Random, generate_random_string, resolve_rng
from .items import (
    ConsumeEffect,
    DamageType,
    Item,
    ItemRarity,
    ItemType,
    StatBonus,
    WeaponDamage,
    item_from_dict,
)


class EventOutcomeType(Enum):
    BUFF = "buff"
    DEBUFF = "debuff"
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    GOLD = "gold"
    HEAL = "heal"
    DAMAGE = "damage"


class EventKind(Enum):
    ALTAR = "altar"
    CHEST = "chest"
    SPIRIT = "spirit"


EVENT_TITLES: Dict[EventKind, str] = {
    EventKind.ALTAR: "Mysterious Altar",
    EventKind.CHEST: "Hidden Treasure",
    EventKind.SPIRIT: "Spectral Encounter",
}

EVENT_DESCRIPTIONS: Dict[EventKind, List[str]] = {
    EventKind.ALTAR: [
        "A strange altar glows with a pale, unsteady light...",
        "An old shrine hums with power you cannot name...",
        "A weathered statue seems to follow you with its eyes...",
    ],
    EventKind.CHEST: [
        "An ornate chest lies half hidden in the shadows...",
        "A gilded coffer rests on a stone pedestal...",
        "A small lockbox is covered in unfamiliar runes...",
    ],
    EventKind.SPIRIT: [
        "A ghostly figure drifts into view...",
        "The air shimmers and a spectral shape takes form...",
        "Something watches you from just beyond the veil...",
    ],
}


# ============================================================================
# OUTCOME TEMPLATES
# ============================================================================

# (name, stat, value, duration, description)
BUFF_TEMPLATES = [
    ("Blessing of Strength", "attack", 5, 10, "Power surges through your arms!"),
    ("Iron Skin", "defense", 5, 10, "Your skin hardens like forged iron!"),
    ("Swift Feet", "speed", 10, 10, "You feel light as a feather!"),
    ("Arcane Infusion", "max_mana", 20, 15, "Raw magic floods your veins!"),
    ("Vitality Surge", "max_health", 30, 15, "Life force pours into you!"),
    ("Lucky Charm", "crit_chance", 10, 10, "Fortune smiles on you!"),
]

DEBUFF_TEMPLATES = [
    ("Curse of Weakness", "attack", -3, 8, "A dark curse saps your strength..."),
    ("Brittle Bones", "defense", -3, 8, "Your guard feels fragile..."),
    ("Sluggish Mind", "speed", -5, 8, "Your reactions slow to a crawl..."),
    ("Mana Drain", "max_mana", -10, 10, "Your magical reserves dwindle..."),
]

# (name, description, dice, damage type, bonuses, rarity)
WEAPON_TEMPLATES = [
    ("Blade of the Fallen", "A sword that whispers of old battles",
     "2d6+3", DamageType.SLASHING, StatBonus(attack=4, crit_chance=5), ItemRarity.RARE),
    ("Thunderstrike Mace", "Crackles with barely contained lightning",
     "1d10+4", DamageType.BLUDGEONING, StatBonus(attack=5), ItemRarity.RARE),
    ("Shadowfang Dagger", "Seems to drink in the light around it",
     "1d6+2", DamageType.PIERCING, StatBonus(attack=2, speed=5, crit_chance=10), ItemRarity.RARE),
    ("Infernal Greataxe", "Burns with a fire that never dies",
     "2d8+5", DamageType.FIRE, StatBonus(attack=6), ItemRarity.VERY_RARE),
]

# (name, description, bonuses, rarity)
ARMOR_TEMPLATES = [
    ("Dragonscale Mail", "Forged from the scales of an ancient dragon",
     StatBonus(defense=6, max_health=20), ItemRarity.RARE),
    ("Cloak of Shadows", "Makes its wearer hard to pin down",
     StatBonus(defense=3, speed=8), ItemRarity.RARE),
    ("Platemail of the Guardian", "Heavy, but very hard to pierce",
     StatBonus(defense=8, speed=-2), ItemRarity.RARE),
    ("Robes of the Archmage", "Woven with threads of pure magic",
     StatBonus(defense=2, max_mana=30, mana=15), ItemRarity.VERY_RARE),
]

# (name, description, healing dice, healing bonus, buff, buff duration, rarity)
POTION_TEMPLATES = [
    ("Greater Healing Potion", "Restores a good deal of health",
     "4d4", 8, None, 0, ItemRarity.UNCOMMON),
    ("Elixir of Vitality", "Restores health and grants a burst of vigor",
     "6d6", 10, StatBonus(max_health=20), 5, ItemRarity.RARE),
    ("Potion of Giant Strength", "Grants immense strength for a time",
     None, 0, StatBonus(attack=8), 8, ItemRarity.RARE),
]


# ============================================================================
# DATA TYPES
# ============================================================================


@dataclass
class EventOutcome:
    """
    What an event does to the player.

    health_change is a fraction of max health: positive heals, negative hurts.
    """
    type: EventOutcomeType
    name: str
    description: str
    is_positive: bool
    item: Optional[Item] = None
    stat_bonus: Optional[StatBonus] = None
    duration: int = 0
    gold: int = 0
    health_change: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "is_positive": self.is_positive,
            "item": self.item.to_dict() if self.item else None,
            "stat_bonus": self.stat_bonus.to_dict() if self.stat_bonus else None,
            "duration": self.duration,
            "gold": self.gold,
            "health_change": self.health_change,
        }


@dataclass
class MysteriousEvent:
    id: str
    kind: EventKind
    title: str
    description: str
    outcome: EventOutcome

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "description": self.description,
            "outcome": self.outcome.to_dict(),
        }


def event_from_dict(data: Dict) -> MysteriousEvent:
    raw = data["outcome"]
    outcome = EventOutcome(
        type=EventOutcomeType(raw["type"]),
        name=raw["name"],
        description=raw["description"],
        is_positive=raw["is_positive"],
        item=item_from_dict(raw["item"]) if raw.get("item") else None,
        stat_bonus=StatBonus(**raw["stat_bonus"]) if raw.get("stat_bonus") is not None else None,
        duration=raw["duration"],
        gold=raw["gold"],
        health_change=raw["health_change"],
    )
    return MysteriousEvent(
        id=data["id"],
        kind=EventKind(data["kind"]),
        title=data["title"],
        description=data["description"],
        outcome=outcome,
    )


# ============================================================================
# GENERATION
# ============================================================================


def roll_outcome_type(level: int, roll: float) -> EventOutcomeType:
    """Map a [0, 1) roll to an outcome kind. Item odds grow with level."""
    bonus = min(level / 40, 0.15)
    if roll < 0.20 + bonus:
        return EventOutcomeType.WEAPON
    if roll < 0.35 + bonus:
        return EventOutcomeType.ARMOR
    if roll < 0.50 + bonus:
        return EventOutcomeType.POTION
    if roll < 0.65 + bonus:
        return EventOutcomeType.BUFF
    if roll < 0.75:
        return EventOutcomeType.GOLD
    if roll < 0.85:
        return EventOutcomeType.HEAL
    if roll < 0.92:
        return EventOutcomeType.DEBUFF
    return EventOutcomeType.DAMAGE


def _found(name: str, description: str) -> str:
    return f"You found {name}! {description}"


def _buff_outcome(level: int, rng: Random) -> EventOutcome:
    name, stat, value, duration, desc = rng.choice(BUFF_TEMPLATES)
    scaled = math.floor(value * (1 + level / 20))
    return EventOutcome(
        EventOutcomeType.BUFF, name, desc, True,
        stat_bonus=StatBonus(**{stat: scaled}), duration=duration,
    )


def _debuff_outcome(level: int, rng: Random) -> EventOutcome:
    name, stat, value, duration, desc = rng.choice(DEBUFF_TEMPLATES)
    return EventOutcome(
        EventOutcomeType.DEBUFF, name, desc, False,
        stat_bonus=StatBonus(**{stat: value}), duration=duration,
    )


def _weapon_outcome(level: int, rng: Random) -> EventOutcome:
    name, desc, dice, damage_type, bonuses, rarity = rng.choice(WEAPON_TEMPLATES)
    item = Item(
        id=f"event-weapon-{generate_random_string(8, rng)}",
        name=name, type=ItemType.WEAPON, rarity=rarity,
        value=100 + level * 20, description=desc,
        damage=WeaponDamage(dice, damage_type), bonuses=replace(bonuses),
    )
    return EventOutcome(EventOutcomeType.WEAPON, name, _found(name, desc), True, item=item)


def _armor_outcome(level: int, rng: Random) -> EventOutcome:
    name, desc, bonuses, rarity = rng.choice(ARMOR_TEMPLATES)
    item = Item(
        id=f"event-armor-{generate_random_string(8, rng)}",
        name=name, type=ItemType.ARMOR, rarity=rarity,
        value=80 + level * 15, description=desc, bonuses=replace(bonuses),
    )
    return EventOutcome(EventOutcomeType.ARMOR, name, _found(name, desc), True, item=item)


def _potion_outcome(level: int, rng: Random) -> EventOutcome:
    name, desc, dice, bonus, buff, buff_duration, rarity = rng.choice(POTION_TEMPLATES)
    item = Item(
        id=f"event-potion-{generate_random_string(8, rng)}",
        name=name, type=ItemType.CONSUMABLE, rarity=rarity,
        value=50 + level * 5, description=desc,
        consume_effect=ConsumeEffect(
            healing_dice=dice, healing_bonus=bonus,
            buff=replace(buff) if buff else None, buff_duration=buff_duration,
        ),
    )
    return EventOutcome(EventOutcomeType.POTION, name, _found(name, desc), True, item=item)


def _gold_outcome(level: int, rng: Random) -> EventOutcome:
    amount = 50 + math.floor(level * 15 * (0.8 + rng.next_float() * 0.4))
    return EventOutcome(
        EventOutcomeType.GOLD, "Gold Cache",
        f"You discovered a hidden cache of {amount} gold!", True, gold=amount,
    )


def _heal_outcome(level: int, rng: Random) -> EventOutcome:
    return EventOutcome(
        EventOutcomeType.HEAL, "Healing Light",
        "A warm light washes over you and closes your wounds.", True,
        health_change=0.3 + rng.next_float() * 0.2,
    )


def _damage_outcome(level: int, rng: Random) -> EventOutcome:
    return EventOutcome(
        EventOutcomeType.DAMAGE, "Dark Curse",
        "A malevolent force strikes you!", False,
        health_change=-(0.1 + rng.next_float() * 0.15),
    )


OUTCOME_BUILDERS = {
    EventOutcomeType.BUFF: _buff_outcome,
    EventOutcomeType.DEBUFF: _debuff_outcome,
    EventOutcomeType.WEAPON: _weapon_outcome,
    EventOutcomeType.ARMOR: _armor_outcome,
    EventOutcomeType.POTION: _potion_outcome,
    EventOutcomeType.GOLD: _gold_outcome,
    EventOutcomeType.HEAL: _heal_outcome,
    EventOutcomeType.DAMAGE: _damage_outcome,
}


def generate_mysterious_event(level: int, rng: Optional[Random] = None) -> MysteriousEvent:
    """
    Roll an event for a dungeon level.

    Draw order: outcome kind, outcome details, event kind, description, id.
    """
    rng = resolve_rng(rng)
    outcome_type = roll_outcome_type(level, rng.next_float())
    outcome = OUTCOME_BUILDERS[outcome_type](level, rng)
    kind = rng.choice(list(EventKind))
    description = rng.choice(EVENT_DESCRIPTIONS[kind])

    return MysteriousEvent(
        id=f"event-{generate_random_string(8, rng)}",
        kind=kind,
        title=EVENT_TITLES[kind],
        description=description,
        outcome=outcome,
    )


def _format_bonus(bonus: Optional[StatBonus], signed: bool) -> str:
    parts = []
    for stat, value in (bonus.to_dict() if bonus else {}).items():
        prefix = "+" if signed and value > 0 else ""
        parts.append(f"{prefix}{value} {stat}")
    return ", ".join(parts)


def get_outcome_message(outcome: EventOutcome) -> str:
    if outcome.type in (EventOutcomeType.BUFF, EventOutcomeType.DEBUFF):
        stats = _format_bonus(outcome.stat_bonus, outcome.type == EventOutcomeType.BUFF)
        return f"{outcome.name} - {outcome.description} ({stats} for {outcome.duration} turns)"
    return outcome.description
