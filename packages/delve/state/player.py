"""
Player - the adventurer's stats, gear, relics, buffs and abilities.

One dataclass covers both classes. The ``player_class`` tag selects base
stats, per-level growth, the class ability list and the class passive:

    FIGHTER  Last Stand: at or below 25% health, defense gains half of base defense
    WARLOCK  Soul shards: one per kill (max 3); basic attacks restore 3 mana

Effective stats stack additively: base + equipment + active buffs + stat relics.
Attack power also includes the equipped weapon's average dice roll.

Usage:
    player = create_player("Hero", PlayerClass.FIGHTER)
    player.equip_item(get_item("longsword"))
    result = player.basic_attack(rng)
    player.take_damage(12)
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..content.items import (
    Ability,
    Item,
    ItemSlot,
    ItemType,
    OnHitEffectType,
    StatBonus,
    calculate_average_damage,
    item_from_dict,
    roll_dice,
)
from ..content.relics import (
    CombatModifier,
    CombatModifierType,
    PassiveEffect,
    PassiveEffectType,
    Relic,
    RelicType,
    relic_from_dict,
)
from .rng import Random, resolve_rng


class PlayerClass(Enum):
    FIGHTER = "fighter"
    WARLOCK = "warlock"


MAX_LEVEL = 20

# XP_PER_LEVEL[n] is the total experience needed to reach level n + 1
XP_PER_LEVEL: List[int] = [
    0, 100, 300, 600, 1000, 1500, 2100, 2800, 3600, 4500,
    5500, 6600, 7800, 9100, 10500, 12000, 13600, 15300, 17100, 19000,
]

MAX_SOUL_SHARDS = 3
WARLOCK_ATTACK_MANA = 3
LAST_STAND_THRESHOLD = 0.25


@dataclass
class PlayerStats:
    max_health: int
    health: int
    attack: int
    defense: int
    mana: int
    max_mana: int
    speed: int
    crit_chance: float
    crit_multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


CLASS_BASE_STATS: Dict[PlayerClass, PlayerStats] = {
    PlayerClass.FIGHTER: PlayerStats(
        max_health=120, health=120, attack=14, defense=10,
        mana=30, max_mana=30, speed=25, crit_chance=15, crit_multiplier=1.75,
    ),
    PlayerClass.WARLOCK: PlayerStats(
        max_health=80, health=80, attack=6, defense=6,
        mana=100, max_mana=100, speed=20, crit_chance=10, crit_multiplier=1.75,
    ),
}

# Growth applied on every level up. "mana" raises both pools, "max_mana" the cap only.
CLASS_STAT_GROWTH: Dict[PlayerClass, Dict[str, float]] = {
    PlayerClass.FIGHTER: {
        "max_health": 15, "attack": 2, "defense": 2, "mana": 5,
        "max_mana": 5, "speed": 1, "crit_chance": 0.5,
    },
    PlayerClass.WARLOCK: {
        "max_health": 8, "attack": 1, "defense": 1, "mana": 15,
        "max_mana": 15, "speed": 1, "crit_chance": 1,
    },
}


# ============================================================================
# CLASS ABILITIES
# ============================================================================

# Effects are resolved by CombatEngine per ability id.
CLASS_ABILITIES: Dict[PlayerClass, List[Ability]] = {
    PlayerClass.FIGHTER: [
        Ability(id="power_strike", name="Power Strike",
                description="A devastating blow that deals 150% weapon damage.",
                mana_cost=10, cooldown=1),
        Ability(id="shield_bash", name="Shield Bash",
                description="Bash the enemy for 75% damage and stun it for 1 turn.",
                mana_cost=15, cooldown=3, effect="stun"),
        Ability(id="battle_cry", name="Battle Cry",
                description="A fierce cry that raises attack by 25% for 3 turns.",
                mana_cost=20, cooldown=5, effect="attack_buff"),
        Ability(id="second_wind", name="Second Wind",
                description="Catch your breath and recover 30% of max health.",
                mana_cost=25, cooldown=6),
        Ability(id="whirlwind", name="Whirlwind",
                description="Spin and strike every enemy for 75% weapon damage.",
                mana_cost=30, cooldown=4, is_aoe=True),
    ],
    PlayerClass.WARLOCK: [
        Ability(id="eldritch_blast", name="Eldritch Blast",
                description="A beam of crackling energy.",
                mana_cost=8, cooldown=1),
        Ability(id="drain_life", name="Drain Life",
                description="Siphon life from an enemy, healing for half the damage dealt.",
                mana_cost=20, cooldown=3, effect="lifesteal"),
        Ability(id="hex", name="Hex",
                description="Curse an enemy so it takes 25% more damage for 3 turns.",
                mana_cost=15, cooldown=4, effect="debuff"),
        Ability(id="shadow_bolt", name="Shadow Bolt",
                description="A bolt of shadow empowered by every soul shard held.",
                mana_cost=25, cooldown=2),
        Ability(id="dark_pact", name="Dark Pact",
                description="Sacrifice 20% of current health to restore 40% of max mana.",
                mana_cost=0, cooldown=5, effect="mana_restore"),
        Ability(id="soul_harvest", name="Soul Harvest",
                description="Consume all soul shards to deal massive damage.",
                mana_cost=35, cooldown=6, effect="consume_shards"),
    ],
}


# ============================================================================
# COMPONENTS
# ============================================================================


@dataclass
class ActiveBuff:
    name: str
    bonuses: StatBonus
    remaining_turns: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "bonuses": self.bonuses.to_dict(),
            "remaining_turns": self.remaining_turns,
        }


@dataclass
class Equipment:
    weapon: Optional[Item] = None
    armor: Optional[Item] = None
    accessory: Optional[Item] = None

    def items(self) -> List[Item]:
        return [item for item in (self.weapon, self.armor, self.accessory) if item is not None]

    def get(self, slot: ItemSlot) -> Optional[Item]:
        return getattr(self, slot.value, None)


@dataclass
class OnHitResult:
    """An on-hit effect that procced on a basic attack."""
    type: OnHitEffectType
    value: int = 0
    duration: int = 0
    source: str = ""


@dataclass
class BasicAttackResult:
    damage: int
    is_crit: bool
    on_hit_effects: List[OnHitResult] = field(default_factory=list)


@dataclass
class LevelUpResult:
    levels_gained: int
    new_level: int


# ============================================================================
# PLAYER
# ============================================================================


@dataclass
class Player:
    """The adventurer. Create with create_player()."""
    name: str
    player_class: PlayerClass
    stats: PlayerStats
    id: str = "player"
    level: int = 1
    experience: int = 0
    gold: int = 0
    equipment: Equipment = field(default_factory=Equipment)
    inventory: List[Item] = field(default_factory=list)
    abilities: List[Ability] = field(default_factory=list)
    active_buffs: List[ActiveBuff] = field(default_factory=list)
    relics: List[Relic] = field(default_factory=list)
    soul_shards: int = 0

    # ------------------------------------------------------------------
    # Stat totals
    # ------------------------------------------------------------------

    def _bonus(self, stat: str) -> float:
        total = 0
        for item in self.equipment.items():
            total += getattr(item.bonuses, stat)
        for buff in self.active_buffs:
            total += getattr(buff.bonuses, stat)
        for relic in self.relics:
            if relic.type == RelicType.STAT_BOOST and relic.stat_bonus:
                total += getattr(relic.stat_bonus, stat)
        return total

    def get_attack_power(self) -> int:
        attack = self.stats.attack
        weapon = self.equipment.weapon
        if weapon and weapon.damage:
            attack += calculate_average_damage(weapon.damage.dice)
        return math.floor(attack + self._bonus("attack"))

    def get_defense(self) -> int:
        defense = self.stats.defense + self._bonus("defense")
        armor = self.equipment.armor
        if armor and armor.armor_class:
            defense += armor.armor_class
        return int(defense + self.last_stand_bonus())

    def get_max_health(self) -> int:
        return int(self.stats.max_health + self._bonus("max_health"))

    def get_max_mana(self) -> int:
        return int(self.stats.max_mana + self._bonus("max_mana"))

    def get_speed(self) -> int:
        return int(self.stats.speed + self._bonus("speed"))

    def get_crit_chance(self) -> float:
        return (
            self.stats.crit_chance + self._bonus("crit_chance")
            + self.get_combat_modifier_value(CombatModifierType.CRIT_CHANCE)
        )

    def get_crit_multiplier(self) -> float:
        # Crit damage relics are percent points on top of the multiplier
        extra = self.get_combat_modifier_value(CombatModifierType.CRIT_DAMAGE) / 100
        return self.stats.crit_multiplier + self._bonus("crit_multiplier") + extra

    def last_stand_bonus(self) -> int:
        """Fighter passive: half of base defense while at or below 25% health."""
        if self.player_class != PlayerClass.FIGHTER:
            return 0
        max_health = self.get_max_health()
        if max_health > 0 and self.stats.health / max_health <= LAST_STAND_THRESHOLD:
            return math.floor(self.stats.defense * 0.5)
        return 0

    @property
    def is_alive(self) -> bool:
        return self.stats.health > 0

    # ------------------------------------------------------------------
    # Abilities
    # ------------------------------------------------------------------

    def get_all_abilities(self) -> List[Ability]:
        """
        Class abilities, then equipment-granted, then relic-granted.

        Granted abilities are the live objects on the item or relic, so their
        cooldowns persist while the source stays equipped or owned. The first
        ability with a given id wins.
        """
        abilities = list(self.abilities)
        seen = {a.id for a in abilities}
        granted = [item.granted_ability for item in self.equipment.items()]
        granted += [
            relic.granted_ability for relic in self.relics
            if relic.type == RelicType.ABILITY
        ]
        for ability in granted:
            if ability is not None and ability.id not in seen:
                abilities.append(ability)
                seen.add(ability.id)
        return abilities

    def find_ability(self, ability_id: str) -> Optional[Ability]:
        for ability in self.get_all_abilities():
            if ability.id == ability_id:
                return ability
        return None

    def use_ability(self, ability_id: str) -> Optional[Ability]:
        """Pay mana and start the cooldown. None if missing, cooling down or unaffordable."""
        ability = self.find_ability(ability_id)
        if ability is None or ability.current_cooldown > 0:
            return None
        if not self.use_mana(ability.mana_cost):
            return None
        ability.current_cooldown = ability.cooldown
        return ability

    def tick_cooldowns(self) -> None:
        for ability in self.get_all_abilities():
            if ability.current_cooldown > 0:
                ability.current_cooldown -= 1

    def gain_soul_shard(self) -> bool:
        if self.player_class != PlayerClass.WARLOCK or self.soul_shards >= MAX_SOUL_SHARDS:
            return False
        self.soul_shards += 1
        return True

    def consume_soul_shards(self) -> int:
        shards, self.soul_shards = self.soul_shards, 0
        return shards

    # ------------------------------------------------------------------
    # Relics
    # ------------------------------------------------------------------

    def add_relic(self, relic: Relic) -> None:
        """Add a relic. Max health/mana relics also fill the new capacity."""
        self.relics.append(relic)
        if relic.type == RelicType.STAT_BOOST and relic.stat_bonus:
            if relic.stat_bonus.max_health:
                self.stats.health = min(
                    self.stats.health + relic.stat_bonus.max_health, self.get_max_health()
                )
            if relic.stat_bonus.max_mana:
                self.stats.mana = min(
                    self.stats.mana + relic.stat_bonus.max_mana, self.get_max_mana()
                )

    def get_passive_effects(self) -> List[PassiveEffect]:
        return [
            r.passive_effect for r in self.relics
            if r.type == RelicType.PASSIVE and r.passive_effect
        ]

    def get_combat_modifiers(self) -> List[CombatModifier]:
        return [
            r.combat_modifier for r in self.relics
            if r.type == RelicType.COMBAT_MODIFIER and r.combat_modifier
        ]

    def get_passive_effect_value(self, effect_type: PassiveEffectType) -> int:
        return sum(e.value for e in self.get_passive_effects() if e.type == effect_type)

    def get_combat_modifier_value(self, modifier_type: CombatModifierType,
                                  target_type: Optional[str] = None) -> int:
        """Sum of relic modifiers of one type; typed modifiers only count on a matching target."""
        total = 0
        for modifier in self.get_combat_modifiers():
            if modifier.type != modifier_type:
                continue
            if modifier.target_type is None or modifier.target_type == target_type:
                total += modifier.value
        return total

    def get_owned_relic_base_ids(self) -> List[str]:
        return [relic.base_id for relic in self.relics]

    def process_passive_effects(self) -> Dict[str, int]:
        """Start-of-turn regeneration from relics, capped at the maximums."""
        health_regen = 0
        mana_regen = 0

        regen = self.get_passive_effect_value(PassiveEffectType.HEALTH_REGEN)
        if regen > 0 and self.stats.health < self.get_max_health():
            health_regen = min(regen, self.get_max_health() - self.stats.health)
            self.stats.health += health_regen

        regen = self.get_passive_effect_value(PassiveEffectType.MANA_REGEN)
        if regen > 0 and self.stats.mana < self.get_max_mana():
            mana_regen = min(regen, self.get_max_mana() - self.stats.mana)
            self.stats.mana += mana_regen

        return {"health_regen": health_regen, "mana_regen": mana_regen}

    # ------------------------------------------------------------------
    # Health and mana
    # ------------------------------------------------------------------

    def take_damage(self, amount: int) -> int:
        """Apply raw damage reduced by floor(defense / 2), at least 1. Returns damage taken."""
        amount = max(0, amount)
        actual = max(1, amount - math.floor(self.get_defense() / 2))
        self.stats.health = max(0, self.stats.health - actual)
        return actual

    def lose_health(self, amount: int) -> int:
        """Unmitigated health loss (damage-over-time, pre-reduced hits)."""
        before = self.stats.health
        self.stats.health = max(0, self.stats.health - max(0, amount))
        return before - self.stats.health

    def heal(self, amount: int) -> int:
        if amount <= 0:
            return 0
        before = self.stats.health
        self.stats.health = min(self.get_max_health(), self.stats.health + amount)
        return self.stats.health - before

    def restore_mana(self, amount: int) -> int:
        if amount <= 0:
            return 0
        before = self.stats.mana
        self.stats.mana = min(self.get_max_mana(), self.stats.mana + amount)
        return self.stats.mana - before

    def use_mana(self, amount: int) -> bool:
        if self.stats.mana < amount:
            return False
        self.stats.mana -= amount
        return True

    # ------------------------------------------------------------------
    # Buffs
    # ------------------------------------------------------------------

    def apply_buff(self, name: str, bonuses: StatBonus, duration: int) -> None:
        """Add a named buff. Re-applying refreshes to the longer duration."""
        for buff in self.active_buffs:
            if buff.name == name:
                buff.remaining_turns = max(buff.remaining_turns, duration)
                return
        self.active_buffs.append(ActiveBuff(name, copy.deepcopy(bonuses), duration))

    def tick_buffs(self) -> None:
        for buff in self.active_buffs:
            buff.remaining_turns -= 1
        self.active_buffs = [b for b in self.active_buffs if b.remaining_turns > 0]

    # ------------------------------------------------------------------
    # Experience and gold
    # ------------------------------------------------------------------

    def add_experience(self, amount: int) -> LevelUpResult:
        self.experience += amount
        gained = 0
        while self.level < MAX_LEVEL and self.experience >= XP_PER_LEVEL[self.level]:
            self._level_up()
            gained += 1
        return LevelUpResult(gained, self.level)

    def _level_up(self) -> None:
        self.level += 1
        growth = CLASS_STAT_GROWTH[self.player_class]
        stats = self.stats

        stats.max_health += growth["max_health"]
        stats.health += growth["max_health"]
        stats.attack += growth["attack"]
        stats.defense += growth["defense"]
        stats.max_mana += growth["mana"]
        stats.mana += growth["mana"]
        stats.max_mana += growth["max_mana"]
        stats.speed += growth["speed"]
        stats.crit_chance += growth["crit_chance"]

        stats.health = stats.max_health
        stats.mana = stats.max_mana

    def experience_to_next_level(self) -> int:
        if self.level >= MAX_LEVEL:
            return 0
        return XP_PER_LEVEL[self.level] - self.experience

    def add_gold(self, amount: int) -> None:
        if amount > 0:
            self.gold += amount

    def spend_gold(self, amount: int) -> bool:
        if self.gold < amount:
            return False
        self.gold -= amount
        return True

    # ------------------------------------------------------------------
    # Equipment and inventory
    # ------------------------------------------------------------------

    def equip_item(self, item: Item) -> Optional[Item]:
        """
        Equip item into its slot. The replaced item goes to the inventory.

        Returns:
            The previously equipped item, or None. Non-equipment is ignored.
        """
        if not item.is_equipment:
            return None
        previous = self.equipment.get(item.slot)
        setattr(self.equipment, item.slot.value, item)
        self.remove_from_inventory(item.id)
        if previous is not None:
            self.inventory.append(previous)
        return previous

    def unequip_slot(self, slot: ItemSlot) -> Optional[Item]:
        item = self.equipment.get(slot)
        if item is None:
            return None
        setattr(self.equipment, slot.value, None)
        self.inventory.append(item)
        return item

    def add_to_inventory(self, item: Item) -> None:
        self.inventory.append(item)

    def remove_from_inventory(self, item_id: str) -> Optional[Item]:
        for index, item in enumerate(self.inventory):
            if item.id == item_id:
                return self.inventory.pop(index)
        return None

    def find_inventory_item(self, item_id: str) -> Optional[Item]:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def get_inventory_by_type(self, item_type: ItemType) -> List[Item]:
        return [item for item in self.inventory if item.type == item_type]

    def use_consumable(self, item: Item, rng: Optional[Random] = None) -> bool:
        """Drink or use a consumable from the inventory. False if not usable."""
        if item.type != ItemType.CONSUMABLE or item.consume_effect is None:
            return False
        if self.find_inventory_item(item.id) is None:
            return False

        effect = item.consume_effect
        if effect.healing_dice:
            self.heal(roll_dice(effect.healing_dice, rng) + effect.healing_bonus)
        if effect.mana_restore:
            self.restore_mana(effect.mana_restore)
        if effect.buff and effect.buff_duration:
            self.apply_buff(item.name, effect.buff, effect.buff_duration)

        self.remove_from_inventory(item.id)
        return True

    # ------------------------------------------------------------------
    # Combat
    # ------------------------------------------------------------------

    def process_on_hit_effects(self, rng: Optional[Random] = None) -> List[OnHitResult]:
        """Roll each weapon/accessory on-hit effect against its own chance."""
        rng = resolve_rng(rng)
        results = []
        for item in (self.equipment.weapon, self.equipment.accessory):
            if item is not None and item.on_hit is not None:
                if rng.percent_chance(item.on_hit.chance):
                    results.append(OnHitResult(
                        item.on_hit.type, item.on_hit.value, item.on_hit.duration, item.name,
                    ))
        return results

    def basic_attack(self, rng: Optional[Random] = None, force_crit: bool = False) -> BasicAttackResult:
        """
        Attack power with a crit roll, plus on-hit procs.

        The crit chance is always rolled so the RNG stream does not depend on
        force_crit.
        """
        rng = resolve_rng(rng)
        attack_power = self.get_attack_power()
        is_crit = rng.percent_chance(self.get_crit_chance()) or force_crit
        damage = math.floor(attack_power * self.get_crit_multiplier()) if is_crit else attack_power
        on_hit = self.process_on_hit_effects(rng)

        if self.player_class == PlayerClass.WARLOCK:
            self.restore_mana(WARLOCK_ATTACK_MANA)

        return BasicAttackResult(damage, is_crit, on_hit)

    def upkeep(self) -> None:
        """Tick cooldowns and buffs at the start of the player's combat turn."""
        self.tick_cooldowns()
        self.tick_buffs()

    def rest(self) -> None:
        """Full health and mana, cooldowns reset, buffs cleared."""
        self.active_buffs = []
        self.stats.health = self.get_max_health()
        self.stats.mana = self.get_max_mana()
        for ability in self.get_all_abilities():
            ability.current_cooldown = 0

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        equipment = self.equipment
        return {
            "id": self.id,
            "name": self.name,
            "player_class": self.player_class.value,
            "level": self.level,
            "experience": self.experience,
            "gold": self.gold,
            "stats": self.stats.to_dict(),
            "equipment": {
                "weapon": equipment.weapon.to_dict() if equipment.weapon else None,
                "armor": equipment.armor.to_dict() if equipment.armor else None,
                "accessory": equipment.accessory.to_dict() if equipment.accessory else None,
            },
            "inventory": [item.to_dict() for item in self.inventory],
            "abilities": [a.to_dict() for a in self.abilities],
            "active_buffs": [b.to_dict() for b in self.active_buffs],
            "relics": [r.to_dict() for r in self.relics],
            "soul_shards": self.soul_shards,
        }


def create_player(name: str, player_class: PlayerClass) -> Player:
    """A level 1 player with class base stats and class abilities."""
    return Player(
        name=name,
        player_class=player_class,
        stats=copy.deepcopy(CLASS_BASE_STATS[player_class]),
        abilities=copy.deepcopy(CLASS_ABILITIES[player_class]),
    )


def player_from_dict(data: Dict[str, Any]) -> Player:
    """Rebuild a Player from Player.to_dict() output."""
    equipment = data["equipment"]

    def _item(slot: str) -> Optional[Item]:
        return item_from_dict(equipment[slot]) if equipment.get(slot) else None

    return Player(
        id=data.get("id", "player"),
        name=data["name"],
        player_class=PlayerClass(data["player_class"]),
        level=data["level"],
        experience=data["experience"],
        gold=data["gold"],
        stats=PlayerStats(**data["stats"]),
        equipment=Equipment(_item("weapon"), _item("armor"), _item("accessory")),
        inventory=[item_from_dict(d) for d in data["inventory"]],
        abilities=[Ability.from_dict(d) for d in data["abilities"]],
        active_buffs=[
            ActiveBuff(b["name"], StatBonus(**b["bonuses"]), b["remaining_turns"])
            for b in data["active_buffs"]
        ],
        relics=[relic_from_dict(d) for d in data.get("relics", [])],
        soul_shards=data.get("soul_shards", 0),
    )
