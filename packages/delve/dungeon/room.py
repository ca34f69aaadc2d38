"""
Room - a node of the dungeon graph and its lifecycle.

A room moves strictly forward through LOCKED -> AVAILABLE -> ACTIVE -> CLEARED.
Its reward, description and interactables are fixed when it is created; its
type-specific payloads are filled in later:

    - event / shop stock / puzzle on the first enter()
    - enemies (hostile rooms only) on ensure_enemies_loaded(), which awaits the
      monster provider and only ever fetches once

Usage:
    rng = Random("abc")
    room = Room.create(RoomType.COMBAT, level=3, rng=rng, room_id="room_007")
    room.state = RoomState.AVAILABLE
    room.enter(rng)
    await room.ensure_enemies_loaded(LocalMonsterProvider(), rng)
    ...
    reward = room.complete()
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from ..content.events import MysteriousEvent, event_from_dict, generate_mysterious_event
from ..content.items import Item, item_from_dict
from ..content.monsters import Enemy, MonsterProvider, enemy_from_dict
from ..content.puzzles import Puzzle, generate_puzzle, puzzle_from_dict
from ..generation.loot import (
    ShopItem,
    generate_loot_for_level,
    generate_shop_inventory,
    shop_item_from_dict,
)
from ..state.rng import Random, resolve_rng
from .interactables import (
    Interactable,
    InteractableType,
    InteractionResult,
    create_interactable,
    interact,
    interactable_from_dict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Enums
# =============================================================================


class RoomType(Enum):
    ENTRANCE = "entrance"
    COMBAT = "combat"
    ELITE = "elite"
    BOSS = "boss"
    TREASURE = "treasure"
    REST = "rest"
    SHOP = "shop"
    EVENT = "event"
    PUZZLE = "puzzle"


class RoomState(Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    ACTIVE = "active"
    CLEARED = "cleared"


HOSTILE_ROOM_TYPES = (RoomType.COMBAT, RoomType.ELITE, RoomType.BOSS)

ROOM_ICONS: Dict[RoomType, str] = {
    RoomType.ENTRANCE: "🚪",
    RoomType.COMBAT: "⚔️",
    RoomType.ELITE: "👹",
    RoomType.TREASURE: "💎",
    RoomType.REST: "🔥",
    RoomType.SHOP: "🏪",
    RoomType.EVENT: "❓",
    RoomType.BOSS: "💀",
    RoomType.PUZZLE: "🔍",
}


# =============================================================================
# Lazy payloads
# =============================================================================


class Unloaded:
    """Marker for content that has not been generated yet."""

    def __repr__(self) -> str:
        return "Unloaded"


UNLOADED = Unloaded()


@dataclass(frozen=True)
class Loaded(Generic[T]):
    """Content that has been generated; the wrapper itself never changes."""
    value: T


Lazy = Union[Unloaded, Loaded[T]]


def _lazy_value(slot: Lazy) -> Any:
    return slot.value if isinstance(slot, Loaded) else None


# =============================================================================
# Rewards
# =============================================================================


BASE_GOLD = 50
BASE_XP = 100
REST_HEALTH_RESTORE = 100

# (gold multiplier, xp multiplier)
REWARD_MULTIPLIERS: Dict[RoomType, tuple] = {
    RoomType.TREASURE: (3.0, 1.0),
    RoomType.ELITE: (1.5, 1.5),
    RoomType.BOSS: (2.0, 3.0),
    RoomType.COMBAT: (1.0, 1.2),
    RoomType.PUZZLE: (0.5, 1.5),
    RoomType.EVENT: (0.75, 0.75),
}


@dataclass
class Reward:
    items: List[Item] = field(default_factory=list)
    gold: int = 0
    experience: int = 0
    health_restore: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "gold": self.gold,
            "experience": self.experience,
            "health_restore": self.health_restore,
        }


def reward_from_dict(data: Dict[str, Any]) -> Reward:
    return Reward(
        items=[item_from_dict(d) for d in data.get("items", [])],
        gold=data.get("gold", 0),
        experience=data.get("experience", 0),
        health_restore=data.get("health_restore"),
    )


def _reward_items(room_type: RoomType, level: int, rng: Random) -> List[Item]:
    if room_type == RoomType.TREASURE:
        return (
            generate_loot_for_level(level, rng, guarantee_equipment=True)
            + generate_loot_for_level(level, rng)
        )
    if room_type == RoomType.BOSS:
        return (
            generate_loot_for_level(level + 2, rng, guarantee_equipment=True)
            + generate_loot_for_level(level + 1, rng, guarantee_equipment=True)
            + generate_loot_for_level(level, rng)
        )
    if room_type == RoomType.ELITE:
        return generate_loot_for_level(level + 1, rng, guarantee_equipment=True)
    if room_type == RoomType.COMBAT:
        return generate_loot_for_level(level, rng, guarantee_equipment=level <= 2)
    if room_type in (RoomType.PUZZLE, RoomType.EVENT):
        if rng.chance(0.5):
            return generate_loot_for_level(level, rng)
    return []


def generate_reward(room_type: RoomType, level: int, rng: Random) -> Reward:
    """
    Compute the reward a room pays out when completed.

    Gold is floor(50 * level * gold_mult) and experience floor(100 * level *
    xp_mult). Rest rooms only restore health; shops pay a flat 50 gold per level.
    """
    if room_type == RoomType.ENTRANCE:
        return Reward()
    if room_type == RoomType.REST:
        return Reward(health_restore=REST_HEALTH_RESTORE)
    if room_type == RoomType.SHOP:
        return Reward(gold=BASE_GOLD * level)

    gold_mult, xp_mult = REWARD_MULTIPLIERS[room_type]
    items = _reward_items(room_type, level, rng)
    return Reward(
        items=items,
        gold=math.floor(BASE_GOLD * gold_mult * level),
        experience=math.floor(BASE_XP * xp_mult * level),
    )


# =============================================================================
# Descriptions
# =============================================================================


SHALLOW_ATMOSPHERE = ["dimly lit", "musty", "damp", "echoing", "shadowy"]
MIDDLE_ATMOSPHERE = ["ominous", "foreboding", "ancient", "crumbling", "haunted"]
DEEP_ATMOSPHERE = ["malevolent", "corrupted", "suffocating", "nightmarish", "abyssal"]

ROOM_DESCRIPTIONS: Dict[RoomType, List[str]] = {
    RoomType.ENTRANCE: [
        "Worn steps lead down into the dark. The air turns cold around you.",
        "A cracked archway marks the way into the depths. Faded runes glow on its stones.",
        "Rusted gates grind open onto a passage that swallows the light.",
        "Your torch barely pushes back the gloom of the old entry hall. The descent starts here.",
    ],
    RoomType.COMBAT: [
        "A {atmosphere} chamber opens ahead. Something watches from the dark.",
        "Old bones crack under your boots in this {atmosphere} room. You are not alone.",
        "This {atmosphere} hall reeks of danger. Shapes shift in the shadows.",
        "Claws scrape somewhere in the {atmosphere} corners. Ready your weapon.",
        "Scars of old fights cover this {atmosphere} room. Another one is coming.",
    ],
    RoomType.ELITE: [
        "A heavy presence fills this {atmosphere} chamber. A strong foe waits.",
        "Dark energy hums through this {atmosphere} hall. A champion stands guard.",
        "Gear of fallen adventurers hangs on the walls of this {atmosphere} lair.",
        "A deep chill settles over this {atmosphere} sanctum. Something powerful stirs.",
    ],
    RoomType.BOSS: [
        "The last chamber rises before you. The master of the depths is waiting.",
        "Old power throbs in the air. The lord of this dungeon stands ready.",
        "Huge pillars vanish into the shadowed vault overhead. The final test begins.",
        "The heart of the dungeon beats with hostile energy. Face what waits here.",
    ],
    RoomType.TREASURE: [
        "Gold glints in the torchlight of this {atmosphere} vault.",
        "Chests and coffers crowd this {atmosphere} chamber.",
        "Precious metal gleams across this {atmosphere} room.",
        "Old treasures lie scattered around this {atmosphere} hoard.",
    ],
    RoomType.REST: [
        "A quiet alcove shelters a small crackling fire.",
        "Soft moss carpets this hidden refuge. The air feels lighter.",
        "An old shrine gives off a calming glow. You can rest here.",
        "An abandoned camp offers cover. The dungeon feels far away for a moment.",
    ],
    RoomType.SHOP: [
        "A merchant has set out wares in this unlikely spot.",
        "Lanterns light a cramped bazaar. A hooded figure waves you closer.",
        "A wandering trader has claimed this sheltered corner. Gold for gear?",
        "Shelves of potions and arms line the walls. The shopkeeper nods at you.",
    ],
    RoomType.EVENT: [
        "Something odd catches your eye in this {atmosphere} chamber.",
        "The air ripples strangely in this {atmosphere} room.",
        "A presence not of this world lingers in this {atmosphere} space.",
        "Strange currents swirl through this {atmosphere} alcove.",
    ],
    RoomType.PUZZLE: [
        "Gears and levers line the walls of this {atmosphere} chamber.",
        "Carved symbols cover every surface of this {atmosphere} room.",
        "Odd contraptions fill this {atmosphere} hall. Only wits will get you through.",
        "The room hums with old magic. A puzzle bars the way forward.",
    ],
}


def _pick(options: List[str], rng: Random) -> str:
    return options[rng.next_int(0, len(options) - 1)]


def generate_description(room_type: RoomType, level: int, rng: Random) -> str:
    """Flavor text; the atmosphere word darkens with depth."""
    if level <= 5:
        atmosphere = _pick(SHALLOW_ATMOSPHERE, rng)
    elif level <= 12:
        atmosphere = _pick(MIDDLE_ATMOSPHERE, rng)
    else:
        atmosphere = _pick(DEEP_ATMOSPHERE, rng)
    return _pick(ROOM_DESCRIPTIONS[room_type], rng).format(atmosphere=atmosphere)


# =============================================================================
# Interactables
# =============================================================================


EVENT_INTERACTABLE_CHOICES = [
    InteractableType.CHEST,
    InteractableType.ALTAR,
    InteractableType.NPC,
    InteractableType.TRAP,
]


def generate_interactables(room_type: RoomType, level: int, rng: Random) -> List[Interactable]:
    objs: List[Interactable] = []

    def add(obj_type: InteractableType, obj_level: int = level) -> None:
        objs.append(create_interactable(obj_type, obj_level, rng))

    if room_type == RoomType.TREASURE:
        for _ in range(rng.next_int(1, 2)):
            add(InteractableType.CHEST)
        if rng.chance(0.3):
            add(InteractableType.TRAP)

    elif room_type in (RoomType.COMBAT, RoomType.ELITE):
        if rng.chance(0.2):
            add(InteractableType.CHEST)
        if rng.chance(0.15):
            add(InteractableType.TRAP)

    elif room_type == RoomType.BOSS:
        add(InteractableType.CHEST, level + 2)

    elif room_type == RoomType.REST:
        add(InteractableType.ALTAR)

    elif room_type == RoomType.SHOP:
        add(InteractableType.NPC)

    elif room_type == RoomType.PUZZLE:
        for _ in range(rng.next_int(1, 3)):
            add(InteractableType.LEVER)
        if rng.chance(0.5):
            add(InteractableType.TRAP)

    elif room_type == RoomType.EVENT:
        add(rng.choice(EVENT_INTERACTABLE_CHOICES))

    return objs


# =============================================================================
# Room
# =============================================================================


@dataclass
class Room:
    id: str
    type: RoomType
    level: int
    state: RoomState = RoomState.LOCKED
    connections: List[str] = field(default_factory=list)
    reward: Reward = field(default_factory=Reward)
    description: str = ""
    interactables: List[Interactable] = field(default_factory=list)
    enemies_slot: Lazy = UNLOADED
    event_slot: Lazy = UNLOADED
    shop_slot: Lazy = UNLOADED
    puzzle_slot: Lazy = UNLOADED

    @classmethod
    def create(
        cls,
        room_type: RoomType,
        level: int,
        rng: Optional[Random] = None,
        room_id: Optional[str] = None,
    ) -> "Room":
        """Build a locked room with its reward, description and interactables."""
        rng = resolve_rng(rng)
        room = cls(id=room_id or f"room_{rng.next():08x}", type=room_type, level=max(1, level))
        room._derive_contents(rng)
        return room

    def _derive_contents(self, rng: Random) -> None:
        self.reward = generate_reward(self.type, self.level, rng)
        self.description = generate_description(self.type, self.level, rng)
        self.interactables = generate_interactables(self.type, self.level, rng)

    def retype(self, room_type: RoomType, rng: Optional[Random] = None) -> None:
        """Convert a not-yet-visited room to another type, rebuilding its contents."""
        if self.state not in (RoomState.LOCKED, RoomState.AVAILABLE):
            raise ValueError(f"Cannot retype room {self.id} in state {self.state.value}")
        self.type = room_type
        self._derive_contents(resolve_rng(rng))

    # -------------------------------------------------------------------------
    # Graph
    # -------------------------------------------------------------------------

    def connect_to(self, other: "Room") -> None:
        if other.id not in self.connections:
            self.connections.append(other.id)
        if self.id not in other.connections:
            other.connections.append(self.id)

    def is_connected_to(self, room_id: str) -> bool:
        return room_id in self.connections

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_hostile(self) -> bool:
        return self.type in HOSTILE_ROOM_TYPES

    def can_enter(self) -> bool:
        if self.state in (RoomState.LOCKED, RoomState.CLEARED):
            return False
        return self.type == RoomType.ENTRANCE or self.state == RoomState.AVAILABLE

    def enter(self, rng: Optional[Random] = None) -> None:
        """
        Make this the active room and generate its one-shot payload.

        Raises:
            ValueError: if the room is locked or already cleared
        """
        if self.state == RoomState.LOCKED:
            raise ValueError("Room is locked")
        if self.state == RoomState.CLEARED:
            raise ValueError("Room is already cleared")

        self.state = RoomState.ACTIVE
        rng = resolve_rng(rng)

        if self.type == RoomType.EVENT and isinstance(self.event_slot, Unloaded):
            self.event_slot = Loaded(generate_mysterious_event(self.level, rng))
        elif self.type == RoomType.SHOP and isinstance(self.shop_slot, Unloaded):
            self.shop_slot = Loaded(generate_shop_inventory(self.level, rng))
        elif self.type == RoomType.PUZZLE and isinstance(self.puzzle_slot, Unloaded):
            self.puzzle_slot = Loaded(generate_puzzle(self.level, rng))

    async def ensure_enemies_loaded(
        self, provider: MonsterProvider, rng: Optional[Random] = None
    ) -> List[Enemy]:
        """
        Fetch this room's enemies from the provider, once.

        Boss and elite rooms get a single enemy; combat rooms get
        min(d[1, 3], level // 3 + 1). Non-hostile rooms stay empty and never
        call the provider.
        """
        if isinstance(self.enemies_slot, Loaded):
            return self.enemies_slot.value
        if not self.is_hostile:
            return []

        rng = resolve_rng(rng)
        if self.type in (RoomType.BOSS, RoomType.ELITE):
            count = 1
        else:
            count = min(rng.next_int(1, 3), self.level // 3 + 1)

        enemies = await provider.get_random_monsters_by_cr(self.level, count, rng)
        self.enemies_slot = Loaded(list(enemies))
        logger.debug("Loaded %d enemies for %s (%s)", count, self.id, self.type.value)
        return self.enemies_slot.value

    @property
    def are_enemies_loaded(self) -> bool:
        return isinstance(self.enemies_slot, Loaded)

    def complete(self) -> Reward:
        """
        Clear the room and hand back its reward.

        Raises:
            ValueError: if the room is not active, or living enemies remain
        """
        if self.state != RoomState.ACTIVE:
            raise ValueError("Room is not active")
        if self.is_hostile and any(enemy.health > 0 for enemy in self.enemies):
            raise ValueError("Room still has living enemies")
        self.state = RoomState.CLEARED
        return self.reward

    # -------------------------------------------------------------------------
    # Payload accessors
    # -------------------------------------------------------------------------

    @property
    def enemies(self) -> List[Enemy]:
        return _lazy_value(self.enemies_slot) or []

    @property
    def living_enemies(self) -> List[Enemy]:
        return [enemy for enemy in self.enemies if enemy.health > 0]

    @property
    def event(self) -> Optional[MysteriousEvent]:
        return _lazy_value(self.event_slot)

    @property
    def shop_inventory(self) -> Optional[List[ShopItem]]:
        return _lazy_value(self.shop_slot)

    @property
    def puzzle(self) -> Optional[Puzzle]:
        return _lazy_value(self.puzzle_slot)

    # -------------------------------------------------------------------------
    # Interactables
    # -------------------------------------------------------------------------

    def find_interactable(self, interactable_id: str) -> Optional[Interactable]:
        for obj in self.interactables:
            if obj.id == interactable_id:
                return obj
        return None

    def interact_with(
        self, interactable_id: str, rng: Optional[Random] = None
    ) -> Optional[InteractionResult]:
        obj = self.find_interactable(interactable_id)
        if obj is None:
            return None
        return interact(obj, rng)

    def available_interactables(self) -> List[Interactable]:
        return [obj for obj in self.interactables if obj.is_available]

    def has_available_interactables(self) -> bool:
        return bool(self.available_interactables())

    def get_icon(self) -> str:
        return ROOM_ICONS.get(self.type, "?")

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        event = self.event
        shop = self.shop_inventory
        puzzle = self.puzzle
        return {
            "id": self.id,
            "type": self.type.value,
            "level": self.level,
            "state": self.state.value,
            "connections": list(self.connections),
            "reward": self.reward.to_dict(),
            "description": self.description,
            "icon": self.get_icon(),
            "interactables": [obj.to_dict() for obj in self.interactables],
            "enemies": (
                [enemy.to_dict() for enemy in self.enemies]
                if self.are_enemies_loaded else None
            ),
            "event": event.to_dict() if event else None,
            "shop_inventory": [s.to_dict() for s in shop] if shop is not None else None,
            "puzzle": puzzle.to_dict() if puzzle else None,
        }


def room_from_dict(data: Dict[str, Any]) -> Room:
    room = Room(
        id=data["id"],
        type=RoomType(data["type"]),
        level=data["level"],
        state=RoomState(data["state"]),
        connections=list(data.get("connections", [])),
        reward=reward_from_dict(data.get("reward", {})),
        description=data.get("description", ""),
        interactables=[interactable_from_dict(d) for d in data.get("interactables", [])],
    )
    if data.get("enemies") is not None:
        room.enemies_slot = Loaded([enemy_from_dict(d) for d in data["enemies"]])
    if data.get("event") is not None:
        room.event_slot = Loaded(event_from_dict(data["event"]))
    if data.get("shop_inventory") is not None:
        room.shop_slot = Loaded([shop_item_from_dict(d) for d in data["shop_inventory"]])
    if data.get("puzzle") is not None:
        room.puzzle_slot = Loaded(puzzle_from_dict(data["puzzle"]))
    return room
