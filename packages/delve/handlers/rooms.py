"""
Room Handlers - non-combat room interactions.

Handles everything the player does in a room outside of combat:
- ShopHandler: buying from the room's stock, selling inventory
- EventHandler: resolving a mysterious event's outcome
- PuzzleHandler: answering or skipping a puzzle
- InteractionHandler: chests, altars, levers, NPCs, trap searching and disarming
- RestHandler: resting at a campfire
- InventoryHandler: consumables and equipment

Each handler takes the Player (and Room) and modifies them in place, using
the session RNG for anything random. Handlers never complete rooms or change
the game phase; GameRunner does that from the returned result.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ..content.events import EventOutcomeType, get_outcome_message
from ..content.items import Item, ItemSlot, ItemType, StatBonus, get_sell_price
from ..content.puzzles import attempt_puzzle, puzzle_rewards
from ..content.relics import Relic
from ..dungeon.interactables import (
    InteractableType,
    TrapEffect,
    detect_trap,
    disarm_trap,
    interact,
)
from ..dungeon.room import Room
from ..state.player import Player
from ..state.rng import Random

if TYPE_CHECKING:
    from ..game import GameStats


BLESSING_BUFF = "Blessing"
BLESSING_DEFAULT_TURNS = 10
TRAP_SLOW_PENALTY = 5


def trap_skill_bonus(player: Player) -> int:
    """Bonus to trap detection and disarm rolls: quick hands and experience."""
    return player.get_speed() // 5 + player.level // 4


# ============================================================================
# RESULT DATACLASSES
# ============================================================================

@dataclass
class ShopResult:
    """Result of a shop transaction."""
    success: bool
    message: str
    item: Optional[Item] = None
    gold_change: int = 0


@dataclass
class EventResult:
    """Result of resolving a mysterious event."""
    success: bool
    message: str
    outcome_type: Optional[EventOutcomeType] = None
    player_died: bool = False


@dataclass
class PuzzleResult:
    """Result of a puzzle answer or skip."""
    success: bool
    message: str
    room_complete: bool = False
    experience: int = 0
    gold: int = 0
    remaining_attempts: Optional[int] = None


@dataclass
class InteractOutcome:
    """Result of using an interactable, already applied to the player."""
    success: bool
    message: str
    items: List[Item] = field(default_factory=list)
    gold: int = 0
    damage: int = 0
    healing: int = 0
    relic: Optional[Relic] = None
    player_died: bool = False


@dataclass
class RestResult:
    hp_healed: int = 0
    mana_restored: int = 0
    message: str = ""


@dataclass
class InventoryResult:
    success: bool
    message: str
    item: Optional[Item] = None


# ============================================================================
# SHOP HANDLER
# ============================================================================

class ShopHandler:
    """
    Shop purchases and sales.

    Stock is the room's shop inventory, generated on first entry. Bought
    items leave the stock; sold items go for get_sell_price (half value).
    """

    @staticmethod
    def buy_item(player: Player, room: Optional[Room], item_id: str, stats: GameStats) -> ShopResult:
        if room is None or room.shop_inventory is None:
            return ShopResult(False, "No shop here")

        stock = room.shop_inventory
        for index, shop_item in enumerate(stock):
            if shop_item.item.id == item_id:
                break
        else:
            return ShopResult(False, "Item not in shop")

        if player.gold < shop_item.buy_price:
            return ShopResult(
                False, f"Not enough gold (need {shop_item.buy_price}, have {player.gold})"
            )

        player.spend_gold(shop_item.buy_price)
        player.add_to_inventory(shop_item.item)
        del stock[index]
        stats.items_found += 1

        return ShopResult(
            True,
            f"Bought {shop_item.item.name} for {shop_item.buy_price} gold",
            item=shop_item.item,
            gold_change=-shop_item.buy_price,
        )

    @staticmethod
    def sell_item(player: Player, item_id: str, stats: GameStats) -> ShopResult:
        item = player.find_inventory_item(item_id)
        if item is None:
            return ShopResult(False, "Item not found")

        price = get_sell_price(item)
        player.remove_from_inventory(item.id)
        player.add_gold(price)
        stats.gold_collected += price

        return ShopResult(True, f"Sold {item.name} for {price} gold", item=item, gold_change=price)


# ============================================================================
# EVENT HANDLER
# ============================================================================

class EventHandler:
    """Applies a mysterious event's pre-rolled outcome to the player."""

    @staticmethod
    def execute_event(player: Player, room: Optional[Room], stats: GameStats) -> EventResult:
        if room is None:
            return EventResult(False, "Cannot execute event")
        event = room.event
        if event is None:
            return EventResult(False, "No event in this room")

        outcome = event.outcome
        message = get_outcome_message(outcome)
        player_died = False

        if outcome.type in (EventOutcomeType.BUFF, EventOutcomeType.DEBUFF):
            # Debuff templates already carry negative deltas
            if outcome.stat_bonus and outcome.duration:
                player.apply_buff(event.title, outcome.stat_bonus, outcome.duration)

        elif outcome.type in (EventOutcomeType.WEAPON, EventOutcomeType.ARMOR, EventOutcomeType.POTION):
            if outcome.item:
                player.add_to_inventory(outcome.item)
                stats.items_found += 1

        elif outcome.type == EventOutcomeType.GOLD:
            if outcome.gold:
                player.add_gold(outcome.gold)
                stats.gold_collected += outcome.gold

        elif outcome.type == EventOutcomeType.HEAL:
            amount = math.floor(player.get_max_health() * outcome.health_change)
            player.heal(amount)
            message = f"You feel revitalized! Healed for {amount} HP."

        elif outcome.type == EventOutcomeType.DAMAGE:
            amount = math.floor(player.get_max_health() * abs(outcome.health_change))
            taken = player.take_damage(amount)
            message = f"Dark energy surges through you! Took {taken} damage."
            if not player.is_alive:
                player_died = True
                message += " You have been slain!"

        return EventResult(True, message, outcome.type, player_died)


# ============================================================================
# PUZZLE HANDLER
# ============================================================================

class PuzzleHandler:
    """
    Puzzle answers. Three attempts; each miss lowers the reward multiplier.

    A solved puzzle pays floor(50 * level * m) XP and floor(30 * level * m)
    gold on top of the room reward.
    """

    @staticmethod
    def attempt_answer(
        player: Player, room: Optional[Room], answer_index: Optional[int], stats: GameStats
    ) -> PuzzleResult:
        if room is None or room.puzzle is None:
            return PuzzleResult(False, "No puzzle here")
        if answer_index is None:
            return PuzzleResult(False, "No answer provided")

        puzzle = room.puzzle
        result = attempt_puzzle(puzzle, answer_index)

        if result.complete and result.correct:
            xp, gold = puzzle_rewards(puzzle, room.level)
            player.add_experience(xp)
            player.add_gold(gold)
            stats.gold_collected += gold
            return PuzzleResult(
                True,
                f"{result.message} You earned {xp} XP and {gold} gold!",
                room_complete=True,
                experience=xp,
                gold=gold,
            )

        if result.complete:
            return PuzzleResult(False, result.message, room_complete=True, remaining_attempts=0)

        return PuzzleResult(False, result.message, remaining_attempts=result.remaining_attempts)

    @staticmethod
    def skip_puzzle(room: Optional[Room]) -> PuzzleResult:
        if room is None or room.puzzle is None:
            return PuzzleResult(True, "No puzzle to skip")
        return PuzzleResult(
            True, "You decided to skip the puzzle, forfeiting any rewards.", room_complete=True,
        )


# ============================================================================
# INTERACTION HANDLER
# ============================================================================

class InteractionHandler:
    """
    Applies interactables to the player.

    Interacting with a detected trap is a disarm attempt. Hidden traps stay
    out of reach until a search detects them.
    """

    @staticmethod
    def interact(
        player: Player, room: Optional[Room], interactable_id: str, stats: GameStats, rng: Random
    ) -> InteractOutcome:
        if room is None:
            return InteractOutcome(False, "No room")

        obj = room.find_interactable(interactable_id)
        if obj is None or not obj.is_available:
            return InteractOutcome(False, "Nothing to interact with")

        if obj.type == InteractableType.TRAP:
            return InteractionHandler._disarm(player, room, obj, rng)

        result = interact(obj, rng)
        outcome = InteractOutcome(True, result.message)

        if result.gold > 0:
            player.add_gold(result.gold)
            stats.gold_collected += result.gold
            outcome.gold = result.gold
        for item in result.items:
            player.add_to_inventory(item)
            stats.items_found += 1
        outcome.items = list(result.items)
        if result.damage > 0:
            outcome.damage = player.take_damage(result.damage)
        if result.healing > 0:
            outcome.healing = player.heal(result.healing)
        if result.stat_bonus is not None:
            player.apply_buff(BLESSING_BUFF, result.stat_bonus, result.duration or BLESSING_DEFAULT_TURNS)

        outcome.player_died = not player.is_alive
        return outcome

    @staticmethod
    def _disarm(player: Player, room: Room, trap, rng: Random) -> InteractOutcome:
        result = disarm_trap(
            trap,
            skill_bonus=trap_skill_bonus(player),
            level=room.level,
            owned_relic_base_ids=player.get_owned_relic_base_ids(),
            rng=rng,
        )
        outcome = InteractOutcome(result.success, result.message)

        if result.relic is not None:
            player.add_relic(result.relic)
            outcome.relic = result.relic
        if result.damage > 0:
            outcome.damage = player.take_damage(result.damage)
        if result.trap_effect is not None:
            outcome.damage += InteractionHandler.apply_trap_effect(player, result.trap_effect)

        outcome.player_died = not player.is_alive
        return outcome

    @staticmethod
    def apply_trap_effect(player: Player, effect: TrapEffect) -> int:
        """
        Apply a triggered trap's lingering effect outside combat.

        Damage over time is taken at once; slows become a speed debuff.
        Returns the extra health lost.
        """
        lost = 0
        if effect.damage_per_turn and effect.duration:
            lost = player.lose_health(effect.damage_per_turn * effect.duration)
        if effect.status == "slow" and effect.duration:
            player.apply_buff("Slowed", StatBonus(speed=-TRAP_SLOW_PENALTY), effect.duration)
        if effect.gold_lost:
            player.spend_gold(min(player.gold, effect.gold_lost))
        return lost

    @staticmethod
    def search_room(player: Player, room: Optional[Room], rng: Random) -> List[str]:
        """Roll detection against every hidden trap in the room."""
        if room is None:
            return []
        messages = []
        for obj in room.interactables:
            if obj.is_trap and obj.hidden and not obj.detected and not obj.used:
                result = detect_trap(obj, trap_skill_bonus(player), rng)
                if result.success:
                    messages.append(result.message)
        return messages or ["You search the room but find nothing unusual."]


# ============================================================================
# REST HANDLER
# ============================================================================

class RestHandler:

    @staticmethod
    def rest(player: Player) -> RestResult:
        health = player.stats.health
        mana = player.stats.mana
        player.rest()
        healed = player.stats.health - health
        restored = player.stats.mana - mana
        return RestResult(
            hp_healed=healed,
            mana_restored=restored,
            message=f"You rest by the fire. Restored {healed} HP and {restored} mana.",
        )


# ============================================================================
# INVENTORY HANDLER
# ============================================================================

EQUIPMENT_SLOTS = {slot.value: slot for slot in (ItemSlot.WEAPON, ItemSlot.ARMOR, ItemSlot.ACCESSORY)}


class InventoryHandler:

    @staticmethod
    def use_item(player: Player, item_id: str, rng: Random) -> InventoryResult:
        item = player.find_inventory_item(item_id)
        if item is None:
            return InventoryResult(False, "Item not found")
        if item.type != ItemType.CONSUMABLE:
            return InventoryResult(False, f"{item.name} cannot be used", item)
        if not player.use_consumable(item, rng):
            return InventoryResult(False, "Failed to use item", item)
        return InventoryResult(True, f"Used {item.name}", item)

    @staticmethod
    def equip_item(player: Player, item_id: str) -> InventoryResult:
        item = player.find_inventory_item(item_id)
        if item is None:
            return InventoryResult(False, "Item not found")
        if not item.is_equipment:
            return InventoryResult(False, f"Cannot equip {item.name}", item)
        previous = player.equip_item(item)
        message = f"Equipped {item.name}"
        if previous is not None:
            message += f" (replacing {previous.name})"
        return InventoryResult(True, message, item)

    @staticmethod
    def unequip_item(player: Player, slot_name: Optional[str]) -> InventoryResult:
        if not slot_name:
            return InventoryResult(False, "No slot specified")
        slot = EQUIPMENT_SLOTS.get(slot_name)
        if slot is None:
            return InventoryResult(False, "Invalid slot")
        item = player.unequip_slot(slot)
        if item is None:
            return InventoryResult(False, "No item in that slot")
        return InventoryResult(True, f"Unequipped {item.name}", item)
