"""
Item Definitions - weapons, armor, accessories, consumables and treasure.

Item structure:
- id: instance identifier (template id for database entries, suffixed for clones)
- base_id: template identifier, shared by every clone of the same item
- type / slot: what the item is and where it equips
- rarity: COMMON through LEGENDARY, drives loot weighting
- value: gold value (shop price is value * 1.5, sell price value * 0.5)

Optional components:
- damage: weapon dice ("1d8") and damage type
- armor_class: base defense granted by armor
- bonuses: flat stat bonuses while equipped
- on_hit: proc effect rolled on each basic attack
- granted_ability: ability usable while equipped
- consume_effect: healing / mana / timed buff applied when used
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..state.rng import Random, resolve_rng


class ItemType(Enum):
    """Item categories."""
    WEAPON = "weapon"
    ARMOR = "armor"
    CONSUMABLE = "consumable"
    ACCESSORY = "accessory"
    TREASURE = "treasure"


class ItemSlot(Enum):
    """Equipment slots. Consumables and treasure do not equip."""
    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"
    CONSUMABLE = "consumable"
    NONE = "none"


class ItemRarity(Enum):
    """Rarity tiers, ordered from most to least common."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    VERY_RARE = "very_rare"
    LEGENDARY = "legendary"


RARITY_ORDER: List[ItemRarity] = [
    ItemRarity.COMMON,
    ItemRarity.UNCOMMON,
    ItemRarity.RARE,
    ItemRarity.VERY_RARE,
    ItemRarity.LEGENDARY,
]

# Copies of each item placed in the weighted loot pool
RARITY_WEIGHTS: Dict[ItemRarity, int] = {
    ItemRarity.COMMON: 10,
    ItemRarity.UNCOMMON: 5,
    ItemRarity.RARE: 2,
    ItemRarity.VERY_RARE: 1,
    ItemRarity.LEGENDARY: 1,
}


class DamageType(Enum):
    """Damage types for weapons and abilities."""
    PHYSICAL = "physical"
    SLASHING = "slashing"
    PIERCING = "piercing"
    BLUDGEONING = "bludgeoning"
    MAGIC = "magic"
    FIRE = "fire"
    ICE = "ice"
    LIGHTNING = "lightning"
    POISON = "poison"
    NECROTIC = "necrotic"


class OnHitEffectType(Enum):
    """Effects that can proc when a weapon or accessory lands a hit."""
    POISON = "poison"
    BURN = "burn"
    FREEZE = "freeze"
    LIFESTEAL = "lifesteal"
    MANA_STEAL = "manaSteal"
    STUN = "stun"
    BLEED = "bleed"


TYPE_TO_SLOT: Dict[ItemType, ItemSlot] = {
    ItemType.WEAPON: ItemSlot.WEAPON,
    ItemType.ARMOR: ItemSlot.ARMOR,
    ItemType.ACCESSORY: ItemSlot.ACCESSORY,
    ItemType.CONSUMABLE: ItemSlot.CONSUMABLE,
    ItemType.TREASURE: ItemSlot.NONE,
}


# ============================================================================
# ITEM COMPONENTS
# ============================================================================


@dataclass
class StatBonus:
    """Flat stat deltas. Used by equipment, buffs and relics."""
    max_health: int = 0
    attack: int = 0
    defense: int = 0
    mana: int = 0
    max_mana: int = 0
    speed: int = 0
    crit_chance: int = 0
    crit_multiplier: float = 0.0

    def is_empty(self) -> bool:
        return not any((
            self.max_health, self.attack, self.defense, self.mana,
            self.max_mana, self.speed, self.crit_chance, self.crit_multiplier,
        ))

    def to_dict(self) -> Dict[str, float]:
        return {k: v for k, v in self.__dict__.items() if v}


@dataclass
class Ability:
    """
    An activatable ability.

    Class abilities resolve through per-class tables in the combat engine.
    Abilities granted by items and relics use the generic fields below:
    flat damage, flat healing, an effect tag and the AOE flag.
    """
    id: str
    name: str
    description: str = ""
    mana_cost: int = 0
    cooldown: int = 0
    current_cooldown: int = 0
    damage: Optional[int] = None
    damage_type: Optional[DamageType] = None
    healing: Optional[int] = None
    effect: Optional[str] = None
    is_aoe: bool = False

    def is_ready(self) -> bool:
        return self.current_cooldown == 0

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "mana_cost": self.mana_cost,
            "cooldown": self.cooldown,
            "current_cooldown": self.current_cooldown,
            "damage": self.damage,
            "damage_type": self.damage_type.value if self.damage_type else None,
            "healing": self.healing,
            "effect": self.effect,
            "is_aoe": self.is_aoe,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Ability":
        fields = dict(data)
        if fields.get("damage_type"):
            fields["damage_type"] = DamageType(fields["damage_type"])
        return cls(**fields)


@dataclass
class OnHitEffect:
    """Proc effect. chance is a percentage (0-100)."""
    chance: int
    type: OnHitEffectType
    value: int = 0
    duration: int = 0


@dataclass
class WeaponDamage:
    dice: str
    type: DamageType = DamageType.PHYSICAL


@dataclass
class ConsumeEffect:
    """Effect of using a consumable."""
    healing_dice: Optional[str] = None
    healing_bonus: int = 0
    mana_restore: int = 0
    buff: Optional[StatBonus] = None
    buff_duration: int = 0


@dataclass
class Item:
    """An item template or instance."""
    id: str
    name: str
    type: ItemType
    rarity: ItemRarity = ItemRarity.COMMON
    value: int = 0
    weight: float = 0.0
    description: str = ""
    slot: Optional[ItemSlot] = None
    base_id: Optional[str] = None
    damage: Optional[WeaponDamage] = None
    armor_class: int = 0
    bonuses: StatBonus = field(default_factory=StatBonus)
    on_hit: Optional[OnHitEffect] = None
    granted_ability: Optional[Ability] = None
    consume_effect: Optional[ConsumeEffect] = None

    def __post_init__(self):
        if self.slot is None:
            self.slot = TYPE_TO_SLOT[self.type]
        if self.base_id is None:
            self.base_id = self.id

    @property
    def is_equipment(self) -> bool:
        return self.slot in (ItemSlot.WEAPON, ItemSlot.ARMOR, ItemSlot.ACCESSORY)

    def to_dict(self) -> Dict:
        data = {
            "id": self.id,
            "base_id": self.base_id,
            "name": self.name,
            "type": self.type.value,
            "slot": self.slot.value,
            "rarity": self.rarity.value,
            "value": self.value,
            "weight": self.weight,
            "description": self.description,
        }
        if self.damage:
            data["damage"] = {"dice": self.damage.dice, "type": self.damage.type.value}
        if self.armor_class:
            data["armor_class"] = self.armor_class
        if not self.bonuses.is_empty():
            data["bonuses"] = self.bonuses.to_dict()
        if self.on_hit:
            data["on_hit"] = {
                "chance": self.on_hit.chance,
                "type": self.on_hit.type.value,
                "value": self.on_hit.value,
                "duration": self.on_hit.duration,
            }
        if self.granted_ability:
            data["granted_ability"] = self.granted_ability.to_dict()
        if self.consume_effect:
            effect = self.consume_effect
            data["consume_effect"] = {
                "healing_dice": effect.healing_dice,
                "healing_bonus": effect.healing_bonus,
                "mana_restore": effect.mana_restore,
                "buff": effect.buff.to_dict() if effect.buff else None,
                "buff_duration": effect.buff_duration,
            }
        return data


def item_from_dict(data: Dict) -> Item:
    """Rebuild an Item from Item.to_dict() output."""
    damage = None
    if data.get("damage"):
        damage = WeaponDamage(data["damage"]["dice"], DamageType(data["damage"]["type"]))
    on_hit = None
    if data.get("on_hit"):
        hit = data["on_hit"]
        on_hit = OnHitEffect(hit["chance"], OnHitEffectType(hit["type"]), hit["value"], hit["duration"])
    consume_effect = None
    if data.get("consume_effect"):
        effect = dict(data["consume_effect"])
        if effect.get("buff"):
            effect["buff"] = StatBonus(**effect["buff"])
        consume_effect = ConsumeEffect(**effect)
    granted = data.get("granted_ability")

    return Item(
        id=data["id"],
        name=data["name"],
        type=ItemType(data["type"]),
        rarity=ItemRarity(data["rarity"]),
        value=data["value"],
        weight=data.get("weight", 0.0),
        description=data.get("description", ""),
        slot=ItemSlot(data["slot"]),
        base_id=data.get("base_id"),
        damage=damage,
        armor_class=data.get("armor_class", 0),
        bonuses=StatBonus(**data.get("bonuses", {})),
        on_hit=on_hit,
        granted_ability=Ability.from_dict(granted) if granted else None,
        consume_effect=consume_effect,
    )


# ============================================================================
# DICE
# ============================================================================

DICE_PATTERN = re.compile(r"(\d+)d(\d+)(?:\s*\+\s*(\d+))?")


def _parse_dice(dice: str):
    match = DICE_PATTERN.search(dice)
    if not match:
        return None
    count, size, bonus = match.groups()
    return int(count), int(size), int(bonus) if bonus else 0


def calculate_average_damage(dice: str) -> float:
    """Average of an "XdY+Z" expression, e.g. 1d8 -> 4.5. Unparseable -> 0."""
    parsed = _parse_dice(dice)
    if parsed is None:
        return 0
    count, size, bonus = parsed
    return count * (size + 1) / 2 + bonus


def roll_dice(dice: str, rng: Optional[Random] = None) -> int:
    """Roll an "XdY+Z" expression, one next_int(1, Y) draw per die."""
    parsed = _parse_dice(dice)
    if parsed is None:
        return 0
    count, size, bonus = parsed
    rng = resolve_rng(rng)
    return bonus + sum(rng.next_int(1, size) for _ in range(count))


def get_sell_price(item: Item) -> int:
    return int(item.value * 0.5)


# ============================================================================
# WEAPONS
# ============================================================================

DAGGER = Item(
    id="dagger", name="Dagger", type=ItemType.WEAPON, value=2, weight=1,
    description="A simple dagger, quick but weak.",
    damage=WeaponDamage("1d4", DamageType.PIERCING),
    bonuses=StatBonus(speed=2),
)

SHORTSWORD = Item(
    id="shortsword", name="Shortsword", type=ItemType.WEAPON, value=10, weight=2,
    description="A reliable short blade.",
    damage=WeaponDamage("1d6", DamageType.SLASHING),
)

LONGSWORD = Item(
    id="longsword", name="Longsword", type=ItemType.WEAPON, value=15, weight=3,
    description="A versatile blade favored by fighters.",
    damage=WeaponDamage("1d8", DamageType.SLASHING),
)

GREATAXE = Item(
    id="greataxe", name="Greataxe", type=ItemType.WEAPON, value=30, weight=7,
    description="A massive axe requiring two hands.",
    damage=WeaponDamage("1d12", DamageType.SLASHING),
    bonuses=StatBonus(attack=1),
)

WOODEN_STAFF = Item(
    id="staff", name="Wooden Staff", type=ItemType.WEAPON, value=5, weight=4,
    description="A simple wooden staff, good for channeling magic.",
    damage=WeaponDamage("1d6", DamageType.BLUDGEONING),
    bonuses=StatBonus(max_mana=10),
)

SILVER_SWORD = Item(
    id="silver-sword", name="Silver Sword", type=ItemType.WEAPON,
    rarity=ItemRarity.UNCOMMON, value=100, weight=3,
    description="A blade of pure silver, effective against undead.",
    damage=WeaponDamage("1d8", DamageType.SLASHING),
    bonuses=StatBonus(attack=2),
)

VAMPIRIC_DAGGER = Item(
    id="vampiric-dagger", name="Vampiric Dagger", type=ItemType.WEAPON,
    rarity=ItemRarity.UNCOMMON, value=150, weight=1,
    description="A cursed blade that drains life from enemies.",
    damage=WeaponDamage("1d4", DamageType.PIERCING),
    on_hit=OnHitEffect(chance=25, type=OnHitEffectType.LIFESTEAL, value=5),
    bonuses=StatBonus(speed=2),
)

ARCANE_STAFF = Item(
    id="arcane-staff", name="Arcane Staff", type=ItemType.WEAPON,
    rarity=ItemRarity.UNCOMMON, value=200, weight=4,
    description="A staff imbued with arcane energy.",
    damage=WeaponDamage("1d6", DamageType.MAGIC),
    bonuses=StatBonus(max_mana=25, crit_chance=3),
)

FLAME_TONGUE = Item(
    id="flame-tongue", name="Flame Tongue", type=ItemType.WEAPON,
    rarity=ItemRarity.RARE, value=500, weight=3,
    description="A sword wreathed in magical flames.",
    damage=WeaponDamage("1d8", DamageType.SLASHING),
    on_hit=OnHitEffect(chance=100, type=OnHitEffectType.BURN, value=5, duration=2),
    bonuses=StatBonus(attack=3),
)

FROST_BRAND = Item(
    id="frost-brand", name="Frost Brand", type=ItemType.WEAPON,
    rarity=ItemRarity.RARE, value=500, weight=3,
    description="A blade of eternal ice that chills enemies to the bone.",
    damage=WeaponDamage("1d8", DamageType.SLASHING),
    on_hit=OnHitEffect(chance=30, type=OnHitEffectType.FREEZE, duration=1),
    bonuses=StatBonus(attack=2, defense=2),
)

STAFF_OF_POWER = Item(
    id="staff-of-power", name="Staff of Power", type=ItemType.WEAPON,
    rarity=ItemRarity.RARE, value=750, weight=4,
    description="A powerful staff crackling with arcane energy.",
    damage=WeaponDamage("1d8", DamageType.MAGIC),
    bonuses=StatBonus(max_mana=50, attack=2, crit_multiplier=0.25),
    granted_ability=Ability(
        id="arcane-burst", name="Arcane Burst",
        description="Release a burst of arcane energy dealing damage to all enemies.",
        mana_cost=25, cooldown=4, damage=20, damage_type=DamageType.MAGIC, is_aoe=True,
    ),
)

VORPAL_SWORD = Item(
    id="vorpal-sword", name="Vorpal Sword", type=ItemType.WEAPON,
    rarity=ItemRarity.VERY_RARE, value=2000, weight=3,
    description="A legendary blade that can sever heads with a single strike.",
    damage=WeaponDamage("2d6", DamageType.SLASHING),
    bonuses=StatBonus(attack=5, crit_chance=10, crit_multiplier=0.5),
)

STAFF_OF_THE_MAGI = Item(
    id="staff-of-the-magi", name="Staff of the Magi", type=ItemType.WEAPON,
    rarity=ItemRarity.VERY_RARE, value=2500, weight=4,
    description="The ultimate staff for any spellcaster.",
    damage=WeaponDamage("1d10", DamageType.MAGIC),
    bonuses=StatBonus(max_mana=100, attack=4, max_health=20),
    granted_ability=Ability(
        id="spell-absorption", name="Spell Absorption",
        description="Absorb incoming magic damage and convert it to mana.",
        mana_cost=0, cooldown=5, effect="magic_immunity",
    ),
)

SOUL_REAVER = Item(
    id="soul-reaver", name="Soul Reaver", type=ItemType.WEAPON,
    rarity=ItemRarity.LEGENDARY, value=10000, weight=4,
    description="A blade forged from the souls of fallen warriors.",
    damage=WeaponDamage("2d8", DamageType.NECROTIC),
    on_hit=OnHitEffect(chance=50, type=OnHitEffectType.LIFESTEAL, value=15),
    bonuses=StatBonus(attack=8, max_health=30, crit_chance=15),
    granted_ability=Ability(
        id="soul-drain", name="Soul Drain",
        description="Drain the soul of an enemy, dealing massive damage and healing yourself.",
        mana_cost=40, cooldown=6, damage=50, damage_type=DamageType.NECROTIC, healing=25,
    ),
)

WEAPONS: List[Item] = [
    DAGGER, SHORTSWORD, LONGSWORD, GREATAXE, WOODEN_STAFF, SILVER_SWORD,
    VAMPIRIC_DAGGER, ARCANE_STAFF, FLAME_TONGUE, FROST_BRAND, STAFF_OF_POWER,
    VORPAL_SWORD, STAFF_OF_THE_MAGI, SOUL_REAVER,
]


# ============================================================================
# ARMOR
# ============================================================================

LEATHER_ARMOR = Item(
    id="leather-armor", name="Leather Armor", type=ItemType.ARMOR, value=10, weight=10,
    description="Light armor made of leather.", armor_class=11,
)

CHAIN_SHIRT = Item(
    id="chain-shirt", name="Chain Shirt", type=ItemType.ARMOR, value=50, weight=20,
    description="A shirt of interlocking metal rings.", armor_class=13,
)

CHAIN_MAIL = Item(
    id="chain-mail", name="Chain Mail", type=ItemType.ARMOR, value=75, weight=55,
    description="Heavy armor of interlocking metal rings.", armor_class=16,
)

CLOTH_ROBES = Item(
    id="robes", name="Cloth Robes", type=ItemType.ARMOR, value=5, weight=3,
    description="Simple cloth robes, offering little protection.", armor_class=10,
    bonuses=StatBonus(max_mana=15),
)

SCALE_MAIL_PLUS = Item(
    id="scale-mail-plus", name="Scale Mail +1", type=ItemType.ARMOR,
    rarity=ItemRarity.UNCOMMON, value=200, weight=45,
    description="Enchanted scale armor providing extra protection.", armor_class=15,
    bonuses=StatBonus(defense=1),
)

MITHRAL_CHAIN = Item(
    id="mithral-chain", name="Mithral Chain Shirt", type=ItemType.ARMOR,
    rarity=ItemRarity.UNCOMMON, value=300, weight=10,
    description="Lightweight chain made of mithral.", armor_class=13,
    bonuses=StatBonus(speed=5),
)

ARCANE_ROBES = Item(
    id="arcane-robes", name="Arcane Robes", type=ItemType.ARMOR,
    rarity=ItemRarity.UNCOMMON, value=250, weight=3,
    description="Robes woven with arcane threads.", armor_class=11,
    bonuses=StatBonus(max_mana=30, crit_chance=2),
)

PLATE_OF_FORTITUDE = Item(
    id="plate-of-fortitude", name="Plate of Fortitude", type=ItemType.ARMOR,
    rarity=ItemRarity.RARE, value=1500, weight=65,
    description="Heavy plate armor that bolsters the wearer's vitality.", armor_class=18,
    bonuses=StatBonus(max_health=30, defense=3),
)

SHADOW_LEATHER = Item(
    id="shadow-leather", name="Shadow Leather", type=ItemType.ARMOR,
    rarity=ItemRarity.RARE, value=800, weight=8,
    description="Armor that seems to absorb light.", armor_class=13,
    bonuses=StatBonus(speed=10, crit_chance=5),
)

ROBES_OF_THE_ARCHMAGI = Item(
    id="robes-of-the-archmagi", name="Robes of the Archmagi", type=ItemType.ARMOR,
    rarity=ItemRarity.RARE, value=1000, weight=3,
    description="Legendary robes worn by powerful mages.", armor_class=13,
    bonuses=StatBonus(max_mana=50, defense=2, crit_multiplier=0.2),
)

ARMOR_OF_INVULNERABILITY = Item(
    id="armor-of-invulnerability", name="Armor of Invulnerability", type=ItemType.ARMOR,
    rarity=ItemRarity.LEGENDARY, value=15000, weight=65,
    description="Legendary armor that renders the wearer nearly invincible.", armor_class=20,
    bonuses=StatBonus(max_health=50, defense=10),
    granted_ability=Ability(
        id="invulnerability", name="Invulnerability",
        description="Become immune to all damage for 1 turn.",
        mana_cost=50, cooldown=10, effect="invulnerable",
    ),
)

ARMOR: List[Item] = [
    LEATHER_ARMOR, CHAIN_SHIRT, CHAIN_MAIL, CLOTH_ROBES, SCALE_MAIL_PLUS,
    MITHRAL_CHAIN, ARCANE_ROBES, PLATE_OF_FORTITUDE, SHADOW_LEATHER,
    ROBES_OF_THE_ARCHMAGI, ARMOR_OF_INVULNERABILITY,
]


# ============================================================================
# ACCESSORIES
# ============================================================================

ACCESSORIES: List[Item] = [
    Item(
        id="ring-of-protection", name="Ring of Protection", type=ItemType.ACCESSORY, value=50,
        description="A simple ring that offers minor protection.",
        bonuses=StatBonus(defense=1),
    ),
    Item(
        id="amulet-of-health", name="Amulet of Health", type=ItemType.ACCESSORY, value=50,
        description="An amulet that bolsters vitality.",
        bonuses=StatBonus(max_health=10),
    ),
    Item(
        id="ring-of-mana", name="Ring of Mana", type=ItemType.ACCESSORY, value=50,
        description="A ring that expands the wearer's mana pool.",
        bonuses=StatBonus(max_mana=15),
    ),
    Item(
        id="boots-of-speed", name="Boots of Speed", type=ItemType.ACCESSORY,
        rarity=ItemRarity.UNCOMMON, value=200, weight=1,
        description="Enchanted boots that quicken the wearer.",
        bonuses=StatBonus(speed=10),
    ),
    Item(
        id="cloak-of-protection", name="Cloak of Protection", type=ItemType.ACCESSORY,
        rarity=ItemRarity.UNCOMMON, value=250, weight=1,
        description="A magical cloak that deflects attacks.",
        bonuses=StatBonus(defense=2, max_health=10),
    ),
    Item(
        id="ring-of-precision", name="Ring of Precision", type=ItemType.ACCESSORY,
        rarity=ItemRarity.UNCOMMON, value=200,
        description="A ring that sharpens the wearer's strikes.",
        bonuses=StatBonus(crit_chance=5, attack=1),
    ),
    Item(
        id="amulet-of-fireball", name="Amulet of Fireball", type=ItemType.ACCESSORY,
        rarity=ItemRarity.RARE, value=1000,
        description="An amulet that grants the power to cast Fireball.",
        bonuses=StatBonus(max_mana=20),
        granted_ability=Ability(
            id="fireball", name="Fireball", description="Hurl a ball of fire at all enemies.",
            mana_cost=30, cooldown=5, damage=30, damage_type=DamageType.FIRE, is_aoe=True,
        ),
    ),
    Item(
        id="ring-of-vampirism", name="Ring of Vampirism", type=ItemType.ACCESSORY,
        rarity=ItemRarity.RARE, value=800,
        description="A cursed ring that drains life with each attack.",
        on_hit=OnHitEffect(chance=20, type=OnHitEffectType.LIFESTEAL, value=10),
        bonuses=StatBonus(attack=2),
    ),
    Item(
        id="belt-of-giant-strength", name="Belt of Giant Strength", type=ItemType.ACCESSORY,
        rarity=ItemRarity.RARE, value=1200, weight=1,
        description="A belt that grants the strength of a giant.",
        bonuses=StatBonus(attack=5, max_health=20),
    ),
    Item(
        id="ring-of-three-wishes", name="Ring of Three Wishes", type=ItemType.ACCESSORY,
        rarity=ItemRarity.LEGENDARY, value=50000,
        description="A legendary ring containing three powerful wishes.",
        bonuses=StatBonus(max_health=30, max_mana=30, attack=3, defense=3),
        granted_ability=Ability(
            id="wish", name="Wish",
            description="Fully restore health and mana, and reset all cooldowns.",
            mana_cost=0, cooldown=99, effect="full_restore",
        ),
    ),
]


# ============================================================================
# CONSUMABLES
# ============================================================================

POTION_OF_HEALING = Item(
    id="potion-of-healing", name="Potion of Healing", type=ItemType.CONSUMABLE,
    value=50, weight=0.5, description="A red potion that restores health.",
    consume_effect=ConsumeEffect(healing_dice="2d4", healing_bonus=2),
)

POTION_OF_MANA = Item(
    id="potion-of-mana", name="Potion of Mana", type=ItemType.CONSUMABLE,
    value=50, weight=0.5, description="A blue potion that restores mana.",
    consume_effect=ConsumeEffect(mana_restore=25),
)

CONSUMABLES: List[Item] = [
    POTION_OF_HEALING,
    Item(
        id="potion-of-greater-healing", name="Potion of Greater Healing", type=ItemType.CONSUMABLE,
        rarity=ItemRarity.UNCOMMON, value=100, weight=0.5,
        description="A vibrant red potion that restores significant health.",
        consume_effect=ConsumeEffect(healing_dice="4d4", healing_bonus=4),
    ),
    Item(
        id="potion-of-superior-healing", name="Potion of Superior Healing", type=ItemType.CONSUMABLE,
        rarity=ItemRarity.RARE, value=500, weight=0.5,
        description="A brilliant red potion that restores great health.",
        consume_effect=ConsumeEffect(healing_dice="8d4", healing_bonus=8),
    ),
    POTION_OF_MANA,
    Item(
        id="potion-of-greater-mana", name="Potion of Greater Mana", type=ItemType.CONSUMABLE,
        rarity=ItemRarity.UNCOMMON, value=100, weight=0.5,
        description="A vibrant blue potion that restores significant mana.",
        consume_effect=ConsumeEffect(mana_restore=50),
    ),
    Item(
        id="potion-of-strength", name="Potion of Strength", type=ItemType.CONSUMABLE,
        rarity=ItemRarity.UNCOMMON, value=150, weight=0.5,
        description="A potion that temporarily increases attack power.",
        consume_effect=ConsumeEffect(buff=StatBonus(attack=5), buff_duration=5),
    ),
    Item(
        id="potion-of-iron-skin", name="Potion of Iron Skin", type=ItemType.CONSUMABLE,
        rarity=ItemRarity.UNCOMMON, value=150, weight=0.5,
        description="A potion that temporarily increases defense.",
        consume_effect=ConsumeEffect(buff=StatBonus(defense=5), buff_duration=5),
    ),
    Item(
        id="elixir-of-heroism", name="Elixir of Heroism", type=ItemType.CONSUMABLE,
        rarity=ItemRarity.RARE, value=500, weight=0.5,
        description="A powerful elixir that enhances all abilities.",
        consume_effect=ConsumeEffect(
            buff=StatBonus(attack=5, defense=3, crit_chance=10, speed=5), buff_duration=3,
        ),
    ),
]


# ============================================================================
# TREASURE
# ============================================================================

TREASURE: List[Item] = [
    Item(id="gold-coins", name="Gold Coins", type=ItemType.TREASURE, value=1, weight=0.02,
         description="Shiny gold coins."),
    Item(id="ruby", name="Ruby", type=ItemType.TREASURE, rarity=ItemRarity.UNCOMMON,
         value=100, description="A brilliant red gemstone."),
    Item(id="sapphire", name="Sapphire", type=ItemType.TREASURE, rarity=ItemRarity.UNCOMMON,
         value=100, description="A deep blue gemstone."),
    Item(id="emerald", name="Emerald", type=ItemType.TREASURE, rarity=ItemRarity.RARE,
         value=500, description="A vivid green gemstone."),
    Item(id="diamond", name="Diamond", type=ItemType.TREASURE, rarity=ItemRarity.VERY_RARE,
         value=1000, description="A flawless diamond."),
]


# ============================================================================
# REGISTRY
# ============================================================================

ALL_ITEMS: List[Item] = WEAPONS + ARMOR + ACCESSORIES + CONSUMABLES + TREASURE

ITEMS_BY_ID: Dict[str, Item] = {item.id: item for item in ALL_ITEMS}


def get_item(item_id: str) -> Item:
    """Get a fresh copy of an item template by ID."""
    if item_id not in ITEMS_BY_ID:
        raise ValueError(f"Unknown item: {item_id}")
    return copy.deepcopy(ITEMS_BY_ID[item_id])


def get_items_by_type(item_type: ItemType) -> List[Item]:
    return [item for item in ALL_ITEMS if item.type == item_type]


def get_items_by_rarity(rarity: ItemRarity) -> List[Item]:
    return [item for item in ALL_ITEMS if item.rarity == rarity]
