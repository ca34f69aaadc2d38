"""
Loot Generation - item drops, shop stock and item cloning.

All draws come from the session Random so a seed reproduces every drop.

Drop rules:
- Max rarity scales with dungeon level (uncommon at 3, rare at 5,
  very rare at 10, legendary at 15)
- Every drop includes one consumable
- Equipment drops when guaranteed or on a 50% + 3%/level roll
- From level 5, a bonus equipment roll of 10% + 2%/level
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..content.items import (
    ALL_ITEMS,
    RARITY_ORDER,
    RARITY_WEIGHTS,
    Item,
    ItemRarity,
    ItemType,
    item_from_dict,
)
from ..state.rng import Random, generate_random_string, resolve_rng


EQUIPMENT_TYPES: List[ItemType] = [ItemType.WEAPON, ItemType.ARMOR, ItemType.ACCESSORY]

SHOP_MARKUP = 1.5
SHOP_ACCESSORY_CHANCE = 0.6


@dataclass
class ShopItem:
    """An item for sale and its price."""
    item: Item
    buy_price: int

    def to_dict(self) -> Dict:
        return {"item": self.item.to_dict(), "buy_price": self.buy_price}


def shop_item_from_dict(data: Dict) -> ShopItem:
    return ShopItem(item=item_from_dict(data["item"]), buy_price=data["buy_price"])


def loot_max_rarity(level: int) -> ItemRarity:
    if level >= 15:
        return ItemRarity.LEGENDARY
    if level >= 10:
        return ItemRarity.VERY_RARE
    if level >= 5:
        return ItemRarity.RARE
    if level >= 3:
        return ItemRarity.UNCOMMON
    return ItemRarity.COMMON


def shop_max_rarity(level: int) -> ItemRarity:
    if level >= 15:
        return ItemRarity.VERY_RARE
    if level >= 10:
        return ItemRarity.RARE
    if level >= 5:
        return ItemRarity.UNCOMMON
    return ItemRarity.COMMON


def get_random_item(
    item_type: Optional[ItemType] = None,
    max_rarity: Optional[ItemRarity] = None,
    rng: Optional[Random] = None,
) -> Item:
    """
    Pick a rarity-weighted item template.

    Args:
        item_type: Restrict to one item type
        max_rarity: Exclude items rarer than this
        rng: Session RNG

    Returns:
        The chosen template (not a copy)
    """
    rng = resolve_rng(rng)
    pool = ALL_ITEMS
    if item_type is not None:
        pool = [item for item in pool if item.type == item_type]
    if max_rarity is not None:
        max_index = RARITY_ORDER.index(max_rarity)
        pool = [item for item in pool if RARITY_ORDER.index(item.rarity) <= max_index]

    weighted: List[Item] = []
    for item in pool:
        weighted.extend([item] * RARITY_WEIGHTS[item.rarity])
    return rng.choice(weighted)


def clone_item(item: Item, rng: Optional[Random] = None) -> Item:
    """Deep copy with a fresh instance id. base_id is preserved."""
    clone = copy.deepcopy(item)
    clone.id = f"{item.base_id}-{generate_random_string(8, rng)}"
    return clone


def generate_loot_for_level(
    level: int,
    rng: Optional[Random] = None,
    guarantee_equipment: bool = False,
) -> List[Item]:
    """
    Roll a loot drop for a dungeon level.

    Returns cloned item instances.
    """
    rng = resolve_rng(rng)
    max_rarity = loot_max_rarity(level)
    loot = [get_random_item(ItemType.CONSUMABLE, max_rarity, rng)]

    if guarantee_equipment or rng.chance(0.5 + level * 0.03):
        equipment_type = rng.choice(EQUIPMENT_TYPES)
        loot.append(get_random_item(equipment_type, max_rarity, rng))

    if level >= 5 and rng.chance(0.1 + level * 0.02):
        equipment_type = rng.choice(EQUIPMENT_TYPES)
        loot.append(get_random_item(equipment_type, max_rarity, rng))

    return [clone_item(item, rng) for item in loot]


def generate_shop_inventory(level: int, rng: Optional[Random] = None) -> List[ShopItem]:
    """
    Stock a shop: 2-3 consumables, 1-2 weapons, 1-2 armor, 60% chance of an accessory.
    """
    rng = resolve_rng(rng)
    max_rarity = shop_max_rarity(level)
    stock: List[ShopItem] = []

    def add(item_type: ItemType) -> None:
        item = clone_item(get_random_item(item_type, max_rarity, rng), rng)
        stock.append(ShopItem(item=item, buy_price=int(item.value * SHOP_MARKUP)))

    for _ in range(rng.next_int(2, 3)):
        add(ItemType.CONSUMABLE)
    for _ in range(rng.next_int(1, 2)):
        add(ItemType.WEAPON)
    for _ in range(rng.next_int(1, 2)):
        add(ItemType.ARMOR)
    if rng.chance(SHOP_ACCESSORY_CHANCE):
        add(ItemType.ACCESSORY)

    return stock
