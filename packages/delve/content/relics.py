"""
Relic Definitions - permanent rewards earned by disarming traps.

Relic kinds:
- ABILITY: grants a usable ability (resolved by the generic ability path)
- STAT_BOOST: permanent flat stat bonuses
- PASSIVE: automatic effects (health/mana regeneration tick each turn)
- COMBAT_MODIFIER: slayer, resistance, armor pierce and crit modifiers

Every relic carries a base_id (its database entry) and an instance id.
Ownership checks compare base ids, so a player never rolls a second copy
of a relic while other relics remain.

Usage:
    relic = generate_trap_relic(dc=15, level=6, exclude_base_ids=player.owned_relic_base_ids(), rng=rng)
    player.add_relic(relic)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..state.rng import Random, generate_random_string, resolve_rng
from .items import Ability, StatBonus


class RelicType(Enum):
    ABILITY = "ability"
    STAT_BOOST = "stat_boost"
    PASSIVE = "passive"
    COMBAT_MODIFIER = "combat_modifier"


class RelicRarity(Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


class PassiveEffectType(Enum):
    HEALTH_REGEN = "health_regen"
    MANA_REGEN = "mana_regen"
    DAMAGE_REFLECT = "damage_reflect"
    EVASION = "evasion"
    LIFESTEAL = "lifesteal"
    GOLD_BONUS = "gold_bonus"
    XP_BONUS = "xp_bonus"
    STATUS_RESISTANCE = "status_resistance"
    DOUBLE_STRIKE = "double_strike"
    THORNS = "thorns"


class CombatModifierType(Enum):
    SLAYER = "slayer"
    RESISTANCE = "resistance"
    INITIATIVE_BONUS = "initiative_bonus"
    ARMOR_PIERCE = "armor_pierce"
    CRIT_DAMAGE = "crit_damage"
    CRIT_CHANCE = "crit_chance"


@dataclass
class PassiveEffect:
    type: PassiveEffectType
    value: int
    chance: Optional[float] = None


@dataclass
class CombatModifier:
    type: CombatModifierType
    value: int
    target_type: Optional[str] = None


@dataclass
class Relic:
    """A relic template (id == base_id) or an owned instance."""
    id: str
    name: str
    description: str
    type: RelicType
    rarity: RelicRarity
    base_id: Optional[str] = None
    granted_ability: Optional[Ability] = None
    stat_bonus: Optional[StatBonus] = None
    passive_effect: Optional[PassiveEffect] = None
    combat_modifier: Optional[CombatModifier] = None

    def __post_init__(self):
        if self.base_id is None:
            self.base_id = self.id

    def to_dict(self) -> Dict:
        data = {
            "id": self.id,
            "base_id": self.base_id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "rarity": self.rarity.value,
        }
        if self.granted_ability:
            data["granted_ability"] = self.granted_ability.to_dict()
        if self.stat_bonus:
            data["stat_bonus"] = self.stat_bonus.to_dict()
        if self.passive_effect:
            data["passive_effect"] = {
                "type": self.passive_effect.type.value,
                "value": self.passive_effect.value,
                "chance": self.passive_effect.chance,
            }
        if self.combat_modifier:
            data["combat_modifier"] = {
                "type": self.combat_modifier.type.value,
                "value": self.combat_modifier.value,
                "target_type": self.combat_modifier.target_type,
            }
        return data


def relic_from_dict(data: Dict) -> Relic:
    passive = data.get("passive_effect")
    modifier = data.get("combat_modifier")
    return Relic(
        id=data["id"],
        name=data["name"],
        description=data["description"],
        type=RelicType(data["type"]),
        rarity=RelicRarity(data["rarity"]),
        base_id=data.get("base_id"),
        granted_ability=Ability.from_dict(data["granted_ability"]) if data.get("granted_ability") else None,
        stat_bonus=StatBonus(**data["stat_bonus"]) if "stat_bonus" in data else None,
        passive_effect=PassiveEffect(
            PassiveEffectType(passive["type"]), passive["value"], passive["chance"]
        ) if passive else None,
        combat_modifier=CombatModifier(
            CombatModifierType(modifier["type"]), modifier["value"], modifier["target_type"]
        ) if modifier else None,
    )


# ============================================================================
# ABILITY RELICS
# ============================================================================

ABILITY_RELICS: List[Relic] = [
    Relic(
        id="relic_shadow_step", name="Shadow Step Amulet",
        description="An old amulet that lets its bearer slip through shadows to strike from behind.",
        type=RelicType.ABILITY, rarity=RelicRarity.RARE,
        granted_ability=Ability(
            id="shadow_step", name="Shadow Step",
            description="Step through the shadows and strike an enemy.",
            mana_cost=15, cooldown=4, damage=20, effect="teleport_strike",
        ),
    ),
    Relic(
        id="relic_healing_light", name="Sunstone Pendant",
        description="A warm stone that still holds the light of a forgotten sun god.",
        type=RelicType.ABILITY, rarity=RelicRarity.UNCOMMON,
        granted_ability=Ability(
            id="healing_light", name="Healing Light",
            description="Channel light to restore health.",
            mana_cost=20, cooldown=3, healing=35,
        ),
    ),
    Relic(
        id="relic_frost_nova", name="Frozen Heart Crystal",
        description="A shard of eternal ice that can burst into a freezing nova.",
        type=RelicType.ABILITY, rarity=RelicRarity.RARE,
        granted_ability=Ability(
            id="frost_nova", name="Frost Nova",
            description="Blast every enemy with frost.",
            mana_cost=25, cooldown=5, damage=30, effect="aoe_slow", is_aoe=True,
        ),
    ),
    Relic(
        id="relic_chain_lightning", name="Stormcaller's Shard",
        description="A splinter of a lightning bolt that never stopped crackling.",
        type=RelicType.ABILITY, rarity=RelicRarity.LEGENDARY,
        granted_ability=Ability(
            id="chain_lightning", name="Chain Lightning",
            description="Lightning leaps from enemy to enemy.",
            mana_cost=30, cooldown=4, damage=45, effect="chain_damage", is_aoe=True,
        ),
    ),
    Relic(
        id="relic_life_drain", name="Vampire's Fang",
        description="A fang pulled from a vampire lord. It still thirsts.",
        type=RelicType.ABILITY, rarity=RelicRarity.RARE,
        granted_ability=Ability(
            id="life_drain", name="Life Drain",
            description="Drain life from an enemy to heal yourself.",
            mana_cost=18, cooldown=3, damage=25, healing=15, effect="lifesteal",
        ),
    ),
    Relic(
        id="relic_berserk", name="Berserker's Totem",
        description="A carved totem that wakes a furious battle rage.",
        type=RelicType.ABILITY, rarity=RelicRarity.UNCOMMON,
        granted_ability=Ability(
            id="berserk", name="Berserk",
            description="Fly into a rage, raising attack for 3 turns.",
            mana_cost=15, cooldown=6, effect="attack_buff",
        ),
    ),
    Relic(
        id="relic_stone_skin", name="Earth Guardian's Core",
        description="The heart of an earth elemental. Its bearer can turn to stone for a moment.",
        type=RelicType.ABILITY, rarity=RelicRarity.LEGENDARY,
        granted_ability=Ability(
            id="stone_skin", name="Stone Skin",
            description="Turn your skin to stone, shrugging off the next blows.",
            mana_cost=25, cooldown=8, effect="invulnerable",
        ),
    ),
    Relic(
        id="relic_poison_cloud", name="Plague Doctor's Vial",
        description="A stoppered vial of concentrated plague.",
        type=RelicType.ABILITY, rarity=RelicRarity.UNCOMMON,
        granted_ability=Ability(
            id="poison_cloud", name="Poison Cloud",
            description="Release a toxic cloud over all enemies.",
            mana_cost=20, cooldown=4, damage=10, effect="aoe_poison", is_aoe=True,
        ),
    ),
]


# ============================================================================
# STAT BOOST RELICS
# ============================================================================

STAT_RELICS: List[Relic] = [
    Relic(
        id="relic_warriors_heart", name="Warrior's Heart",
        description="The crystallized heart of a legendary warrior.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.RARE,
        stat_bonus=StatBonus(max_health=25),
    ),
    Relic(
        id="relic_mages_focus", name="Mage's Focus",
        description="A lens that sharpens the mind and deepens mana reserves.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.RARE,
        stat_bonus=StatBonus(mana=20, max_mana=20),
    ),
    Relic(
        id="relic_iron_will", name="Iron Will Medallion",
        description="A medallion that hardens body and resolve alike.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.UNCOMMON,
        stat_bonus=StatBonus(defense=5),
    ),
    Relic(
        id="relic_strength_band", name="Band of Strength",
        description="A plain iron band humming with borrowed strength.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.UNCOMMON,
        stat_bonus=StatBonus(attack=5),
    ),
    Relic(
        id="relic_swift_boots_essence", name="Essence of Swiftness",
        description="A wisp of essence that quickens every movement.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.UNCOMMON,
        stat_bonus=StatBonus(speed=3),
    ),
    Relic(
        id="relic_lucky_coin", name="Lucky Coin",
        description="A worn coin that always seems to land the right way up.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.COMMON,
        stat_bonus=StatBonus(crit_chance=5),
    ),
    Relic(
        id="relic_titans_blessing", name="Titan's Blessing",
        description="The lingering favor of a titan.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.LEGENDARY,
        stat_bonus=StatBonus(attack=3, defense=3, max_health=15, speed=2),
    ),
    Relic(
        id="relic_assassins_mark", name="Assassin's Mark",
        description="A tattooed sigil that guides the blade to weak points.",
        type=RelicType.STAT_BOOST, rarity=RelicRarity.RARE,
        stat_bonus=StatBonus(crit_chance=10, crit_multiplier=0.25),
    ),
]


# ============================================================================
# PASSIVE RELICS
# ============================================================================

PASSIVE_RELICS: List[Relic] = [
    Relic(
        id="relic_regeneration_ring", name="Ring of Regeneration",
        description="A ring that slowly knits wounds closed.",
        type=RelicType.PASSIVE, rarity=RelicRarity.UNCOMMON,
        passive_effect=PassiveEffect(PassiveEffectType.HEALTH_REGEN, 3),
    ),
    Relic(
        id="relic_mana_spring", name="Mana Spring Charm",
        description="A charm that draws mana out of the air.",
        type=RelicType.PASSIVE, rarity=RelicRarity.UNCOMMON,
        passive_effect=PassiveEffect(PassiveEffectType.MANA_REGEN, 5),
    ),
    Relic(
        id="relic_mirror_shield", name="Mirror Shield Fragment",
        description="A shard of a mirrored shield that throws blows back.",
        type=RelicType.PASSIVE, rarity=RelicRarity.RARE,
        passive_effect=PassiveEffect(PassiveEffectType.DAMAGE_REFLECT, 20, 0.15),
    ),
    Relic(
        id="relic_shadow_cloak", name="Shadow Cloak Essence",
        description="Living shadow that blurs your outline.",
        type=RelicType.PASSIVE, rarity=RelicRarity.RARE,
        passive_effect=PassiveEffect(PassiveEffectType.EVASION, 10, 0.10),
    ),
    Relic(
        id="relic_vampiric_essence", name="Vampiric Essence",
        description="Dark essence that steals a little life with each strike.",
        type=RelicType.PASSIVE, rarity=RelicRarity.RARE,
        passive_effect=PassiveEffect(PassiveEffectType.LIFESTEAL, 10, 0.20),
    ),
    Relic(
        id="relic_gold_magnet", name="Gold Magnet",
        description="A lodestone with an unusual fondness for gold.",
        type=RelicType.PASSIVE, rarity=RelicRarity.COMMON,
        passive_effect=PassiveEffect(PassiveEffectType.GOLD_BONUS, 25),
    ),
    Relic(
        id="relic_wisdom_stone", name="Stone of Wisdom",
        description="A smooth stone that helps lessons stick.",
        type=RelicType.PASSIVE, rarity=RelicRarity.COMMON,
        passive_effect=PassiveEffect(PassiveEffectType.XP_BONUS, 15),
    ),
    Relic(
        id="relic_thorns_aura", name="Thorns Aura Crystal",
        description="A crystal that wraps its bearer in invisible thorns.",
        type=RelicType.PASSIVE, rarity=RelicRarity.UNCOMMON,
        passive_effect=PassiveEffect(PassiveEffectType.THORNS, 5),
    ),
    Relic(
        id="relic_double_strike", name="Echo Strike Gem",
        description="A gem that sometimes repeats your attacks.",
        type=RelicType.PASSIVE, rarity=RelicRarity.LEGENDARY,
        passive_effect=PassiveEffect(PassiveEffectType.DOUBLE_STRIKE, 1, 0.15),
    ),
    Relic(
        id="relic_status_ward", name="Ward of Purity",
        description="A ward against curses and poisons.",
        type=RelicType.PASSIVE, rarity=RelicRarity.UNCOMMON,
        passive_effect=PassiveEffect(PassiveEffectType.STATUS_RESISTANCE, 30),
    ),
]


# ============================================================================
# COMBAT MODIFIER RELICS
# ============================================================================

MODIFIER_RELICS: List[Relic] = [
    Relic(
        id="relic_undead_slayer", name="Undead Slayer's Badge",
        description="A badge carried by hunters of the restless dead.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.UNCOMMON,
        combat_modifier=CombatModifier(CombatModifierType.SLAYER, 25, "undead"),
    ),
    Relic(
        id="relic_beast_hunter", name="Beast Hunter's Trophy",
        description="A trophy claw from a great beast.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.UNCOMMON,
        combat_modifier=CombatModifier(CombatModifierType.SLAYER, 25, "beast"),
    ),
    Relic(
        id="relic_dragon_scale", name="Dragon Scale",
        description="A scale from an ancient dragon, warm to the touch.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.RARE,
        combat_modifier=CombatModifier(CombatModifierType.RESISTANCE, 30, "fire"),
    ),
    Relic(
        id="relic_armor_piercer", name="Armor Piercing Rune",
        description="A rune that finds the seams in any armor.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.RARE,
        combat_modifier=CombatModifier(CombatModifierType.ARMOR_PIERCE, 20),
    ),
    Relic(
        id="relic_quick_reflexes", name="Reflex Enhancer",
        description="A charm that sharpens reflexes.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.COMMON,
        combat_modifier=CombatModifier(CombatModifierType.INITIATIVE_BONUS, 5),
    ),
    Relic(
        id="relic_brutal_strikes", name="Brutal Strike Sigil",
        description="A sigil that makes critical hits far worse.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.RARE,
        combat_modifier=CombatModifier(CombatModifierType.CRIT_DAMAGE, 50),
    ),
    Relic(
        id="relic_precision_lens", name="Precision Lens",
        description="A lens that reveals weak points.",
        type=RelicType.COMBAT_MODIFIER, rarity=RelicRarity.UNCOMMON,
        combat_modifier=CombatModifier(CombatModifierType.CRIT_CHANCE, 8),
    ),
]


# ============================================================================
# REGISTRY
# ============================================================================

RELIC_DATABASE: List[Relic] = ABILITY_RELICS + STAT_RELICS + PASSIVE_RELICS + MODIFIER_RELICS

RELICS_BY_ID: Dict[str, Relic] = {relic.id: relic for relic in RELIC_DATABASE}

# Fallback order when a rolled rarity has nothing left
RARITY_FALLBACK_ORDER: List[RelicRarity] = [
    RelicRarity.LEGENDARY,
    RelicRarity.RARE,
    RelicRarity.UNCOMMON,
    RelicRarity.COMMON,
]


def get_relic(relic_id: str) -> Relic:
    if relic_id not in RELICS_BY_ID:
        raise ValueError(f"Unknown relic: {relic_id}")
    return RELICS_BY_ID[relic_id]


def get_relics_by_rarity(rarity: RelicRarity) -> List[Relic]:
    return [relic for relic in RELIC_DATABASE if relic.rarity == rarity]


def get_relics_by_type(relic_type: RelicType) -> List[Relic]:
    return [relic for relic in RELIC_DATABASE if relic.type == relic_type]


def roll_relic_rarity(level: int, roll: float) -> RelicRarity:
    """Map a [0, 1) roll to a rarity. Better odds at deeper levels."""
    legendary = min(0.05 + level * 0.01, 0.15)
    rare = min(0.15 + level * 0.02, 0.35)
    uncommon = min(0.35 + level * 0.02, 0.50)

    if roll < legendary:
        return RelicRarity.LEGENDARY
    if roll < legendary + rare:
        return RelicRarity.RARE
    if roll < legendary + rare + uncommon:
        return RelicRarity.UNCOMMON
    return RelicRarity.COMMON


def generate_random_relic(
    level: int,
    exclude_base_ids: Iterable[str] = (),
    rng: Optional[Random] = None,
) -> Relic:
    """
    Pick a relic template for a dungeon level.

    Args:
        level: Effective dungeon level
        exclude_base_ids: Base ids already owned
        rng: Session RNG

    Returns:
        The chosen template. Use clone_relic() before giving it to a player.
    """
    rng = resolve_rng(rng)
    excluded = set(exclude_base_ids)
    rarity = roll_relic_rarity(level, rng.next_float())

    available = [r for r in get_relics_by_rarity(rarity) if r.base_id not in excluded]
    if not available:
        for fallback in RARITY_FALLBACK_ORDER:
            available = [r for r in get_relics_by_rarity(fallback) if r.base_id not in excluded]
            if available:
                break
    if not available:
        # Everything owned: duplicates are allowed
        available = RELIC_DATABASE

    return available[rng.next_int(0, len(available) - 1)]


def trap_relic_level(dc: int, level: int) -> int:
    """Effective level for a trap reward: harder traps roll better relics."""
    if dc >= 18:
        return level + 3
    if dc >= 15:
        return level + 2
    if dc >= 11:
        return level + 1
    return level


def generate_trap_relic(
    dc: int,
    level: int,
    exclude_base_ids: Iterable[str] = (),
    rng: Optional[Random] = None,
) -> Relic:
    return generate_random_relic(trap_relic_level(dc, level), exclude_base_ids, rng)


def clone_relic(relic: Relic, rng: Optional[Random] = None) -> Relic:
    """Deep copy with a fresh instance id. base_id is preserved."""
    clone = copy.deepcopy(relic)
    clone.id = f"{relic.base_id}-{generate_random_string(8, rng)}"
    return clone
