"""
Interactables - chests, traps, altars, levers and NPCs placed in rooms.

Traps are the only interactable with rules of their own:

    - hidden traps must be detected (d20 + perception vs DC) before disarming
    - a disarm roll of natural 20 always succeeds and yields a relic
    - a regular success yields a relic on a DC-scaled chance
    - failing by 5 or more, or rolling a natural 1, triggers the trap
    - smaller failures leave the trap armed for another try

Every function takes the session RNG explicitly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..content.items import Item, StatBonus, item_from_dict
from ..content.relics import Relic, clone_relic, generate_trap_relic
from ..generation.loot import generate_loot_for_level
from ..state.rng import Random, generate_random_string, resolve_rng


class InteractableType(Enum):
    CHEST = "chest"
    LEVER = "lever"
    ALTAR = "altar"
    TRAP = "trap"
    NPC = "npc"


class TrapType(Enum):
    SPIKE = "spike"
    POISON = "poison"
    FROST = "frost"
    FIRE = "fire"
    STUN = "stun"
    TELEPORT = "teleport"
    GOLD_DRAIN = "gold_drain"
    ALARM = "alarm"


INTERACTABLE_NAMES: Dict[InteractableType, List[str]] = {
    InteractableType.CHEST: ["Wooden Chest", "Iron Chest", "Ornate Chest", "Ancient Chest"],
    InteractableType.LEVER: ["Rusty Lever", "Stone Lever", "Golden Lever"],
    InteractableType.ALTAR: ["Stone Altar", "Dark Altar", "Blessed Altar", "Ancient Shrine"],
    InteractableType.TRAP: ["Spike Trap", "Poison Dart Trap", "Fire Trap", "Pit Trap"],
    InteractableType.NPC: ["Wandering Merchant", "Lost Adventurer", "Mysterious Figure"],
}

TRAP_NAMES: Dict[TrapType, List[str]] = {
    TrapType.SPIKE: ["Spike Trap", "Pit Trap", "Blade Trap", "Crushing Wall"],
    TrapType.POISON: ["Poison Dart Trap", "Venomous Needle", "Toxic Gas Vent", "Serpent Trap"],
    TrapType.FROST: ["Frost Trap", "Ice Shard Trap", "Freezing Glyph", "Cryogenic Vent"],
    TrapType.FIRE: ["Fire Trap", "Flame Jet", "Inferno Glyph", "Lava Pit"],
    TrapType.STUN: ["Lightning Trap", "Thunder Rune", "Shock Plate", "Static Glyph"],
    TrapType.TELEPORT: ["Teleportation Circle", "Displacement Trap", "Warp Rune"],
    TrapType.GOLD_DRAIN: ["Cursed Chest", "Greed Trap", "Gold Siphon"],
    TrapType.ALARM: ["Alarm Trap", "Summoning Circle", "Warning Glyph", "Sentry Rune"],
}

# Minimum dungeon level for each trap type
TRAP_MIN_LEVEL: Dict[TrapType, int] = {
    TrapType.SPIKE: 1,
    TrapType.POISON: 2,
    TrapType.FROST: 3,
    TrapType.FIRE: 4,
    TrapType.STUN: 5,
    TrapType.GOLD_DRAIN: 7,
    TrapType.ALARM: 8,
    TrapType.TELEPORT: 10,
}

CRITICAL_FAIL_MARGIN = 5
ALTAR_OFFERING_CHANCE = 0.3
BLESSING_STATS = ["attack", "defense", "speed"]


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class TrapEffect:
    """Lingering consequences of a triggered trap."""
    status: Optional[str] = None     # poison, slow, burn, stun
    duration: int = 0
    damage_per_turn: int = 0
    gold_lost: int = 0
    teleport: bool = False
    alarm: bool = False


@dataclass
class Interactable:
    id: str
    type: InteractableType
    name: str
    used: bool = False
    contents: List[Item] = field(default_factory=list)
    gold: int = 0
    damage: int = 0
    disarmed: bool = False
    trap_type: Optional[TrapType] = None
    disarm_dc: int = 0
    hidden: bool = False
    detected: bool = False

    @property
    def is_trap(self) -> bool:
        return self.type == InteractableType.TRAP

    @property
    def is_available(self) -> bool:
        """Can still be used: unused, or an NPC."""
        if self.type == InteractableType.NPC:
            return True
        if self.is_trap:
            return not self.used and not self.disarmed and self.detected
        return not self.used

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "used": self.used,
            "contents": [item.to_dict() for item in self.contents],
            "gold": self.gold,
            "damage": self.damage,
            "disarmed": self.disarmed,
            "trap_type": self.trap_type.value if self.trap_type else None,
            "disarm_dc": self.disarm_dc,
            "hidden": self.hidden,
            "detected": self.detected,
        }


def interactable_from_dict(data: Dict[str, Any]) -> Interactable:
    fields = dict(data)
    fields["type"] = InteractableType(fields["type"])
    fields["contents"] = [item_from_dict(d) for d in fields.get("contents", [])]
    if fields.get("trap_type"):
        fields["trap_type"] = TrapType(fields["trap_type"])
    return Interactable(**fields)


@dataclass
class InteractionResult:
    message: str
    consumed: bool = False
    items: List[Item] = field(default_factory=list)
    gold: int = 0
    damage: int = 0
    healing: int = 0
    stat_bonus: Optional[StatBonus] = None
    duration: int = 0
    trap_effect: Optional[TrapEffect] = None


@dataclass
class DetectResult:
    success: bool
    message: str


@dataclass
class DisarmResult:
    success: bool
    message: str
    damage: int = 0
    trap_effect: Optional[TrapEffect] = None
    critical_fail: bool = False
    relic: Optional[Relic] = None


# =============================================================================
# Creation
# =============================================================================


def get_trap_types_for_level(level: int) -> List[TrapType]:
    return [t for t, min_level in TRAP_MIN_LEVEL.items() if level >= min_level]


def create_interactable(
    interactable_type: InteractableType, level: int, rng: Optional[Random] = None
) -> Interactable:
    """
    Build an interactable for a room at the given dungeon level.

    Chests get cloned loot and floor(d[10, 50] * level) gold. Traps get a
    level-gated type, scaled damage and DC, and may start hidden. Altars
    hold level + 1 offerings 30% of the time.
    """
    rng = resolve_rng(rng)
    obj = Interactable(
        id=f"{interactable_type.value}-{generate_random_string(8, rng)}",
        type=interactable_type,
        name=rng.choice(INTERACTABLE_NAMES[interactable_type]),
    )

    if interactable_type == InteractableType.CHEST:
        obj.contents = generate_loot_for_level(level, rng)
        obj.gold = math.floor(rng.next_int(10, 50) * level)

    elif interactable_type == InteractableType.TRAP:
        obj.trap_type = rng.choice(get_trap_types_for_level(level))
        obj.damage = math.floor(5 + level * 2 + rng.next_int(0, level))
        obj.disarm_dc = min(20, 8 + math.floor(level * 0.6))
        obj.hidden = rng.chance(0.3 + level * 0.02)
        obj.detected = not obj.hidden
        obj.name = rng.choice(TRAP_NAMES[obj.trap_type])

    elif interactable_type == InteractableType.ALTAR:
        if rng.chance(ALTAR_OFFERING_CHANCE):
            obj.contents = generate_loot_for_level(level + 1, rng)

    return obj


# =============================================================================
# Interaction
# =============================================================================


def _join_names(names: List[str]) -> str:
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def _open_chest(chest: Interactable, rng: Random) -> InteractionResult:
    chest.used = True
    parts = []
    if chest.contents:
        parts.append(_join_names([item.name for item in chest.contents]))
    if chest.gold > 0:
        parts.append(f"{chest.gold} gold")
    found = " and ".join(parts) if parts else "nothing"
    return InteractionResult(
        message=f"You open the {chest.name} and find {found}!",
        consumed=True,
        items=list(chest.contents),
        gold=chest.gold,
    )


def _pray_at_altar(altar: Interactable, rng: Random) -> InteractionResult:
    altar.used = True
    if altar.contents:
        names = ", ".join(item.name for item in altar.contents)
        return InteractionResult(
            message=f"You pray at the {altar.name} and find offerings: {names}.",
            consumed=True,
            items=list(altar.contents),
        )

    roll = rng.next_float()
    if roll < 0.4:
        stat = BLESSING_STATS[math.floor(rng.next_float() * len(BLESSING_STATS))]
        bonus = rng.next_int(2, 5)
        duration = rng.next_int(5, 10)
        return InteractionResult(
            message=f"The {altar.name} bestows a blessing upon you! +{bonus} {stat} for {duration} turns.",
            consumed=True,
            stat_bonus=StatBonus(**{stat: bonus}),
            duration=duration,
        )
    if roll < 0.7:
        return InteractionResult(
            message=f"The {altar.name} glows warmly. You feel restored.",
            consumed=True,
            healing=rng.next_int(15, 40),
        )
    if roll < 0.85:
        return InteractionResult(
            message=f"You find gold offerings at the {altar.name}.",
            consumed=True,
            gold=rng.next_int(20, 50),
        )
    return InteractionResult(
        message=f"Dark energy surges from the {altar.name}!",
        consumed=True,
        damage=rng.next_int(8, 20),
    )


def _spring_trap(trap: Interactable, rng: Random) -> InteractionResult:
    if trap.disarmed:
        return InteractionResult(message=f"The {trap.name} has been disarmed.")
    trap.used = True
    return trigger_trap(trap, rng)


def _pull_lever(lever: Interactable, rng: Random) -> InteractionResult:
    lever.used = True
    return InteractionResult(
        message=f"You pull the {lever.name}. You hear a distant rumbling...", consumed=True,
    )


def _greet_npc(npc: Interactable, rng: Random) -> InteractionResult:
    return InteractionResult(message=f"The {npc.name} greets you.")


INTERACTION_HANDLERS = {
    InteractableType.CHEST: _open_chest,
    InteractableType.TRAP: _spring_trap,
    InteractableType.ALTAR: _pray_at_altar,
    InteractableType.LEVER: _pull_lever,
    InteractableType.NPC: _greet_npc,
}


def interact(obj: Interactable, rng: Optional[Random] = None) -> InteractionResult:
    """
    Use an interactable. Everything but NPCs is single-use.

    The caller applies the result (items, gold, damage, healing, buffs) to the
    player; this function only mutates the interactable.
    """
    if obj.used and obj.type != InteractableType.NPC:
        return InteractionResult(message=f"The {obj.name} has already been used.")
    return INTERACTION_HANDLERS[obj.type](obj, resolve_rng(rng))


def trigger_trap(trap: Interactable, rng: Optional[Random] = None) -> InteractionResult:
    """Resolve a trap firing: direct damage plus its type-specific effect."""
    rng = resolve_rng(rng)
    trap_type = trap.trap_type or TrapType.SPIKE
    base = trap.damage or 10
    result = InteractionResult(
        message=f"You trigger the {trap.name}!", consumed=True, damage=trap.damage,
    )

    if trap_type == TrapType.SPIKE:
        result.message = (
            f"You trigger the {trap.name}! Sharp spikes pierce your flesh for {trap.damage} damage!"
        )
    elif trap_type == TrapType.POISON:
        duration = rng.next_int(3, 6)
        result.message = (
            f"You trigger the {trap.name}! Venomous darts strike you for {trap.damage} damage "
            "and poison courses through your veins!"
        )
        result.trap_effect = TrapEffect("poison", duration, damage_per_turn=base // 3)
    elif trap_type == TrapType.FROST:
        duration = rng.next_int(2, 4)
        result.damage = math.floor(base * 0.7)
        result.message = (
            f"You trigger the {trap.name}! Freezing cold blasts you for {result.damage} damage "
            "and slows your movements!"
        )
        result.trap_effect = TrapEffect("slow", duration)
    elif trap_type == TrapType.FIRE:
        duration = rng.next_int(2, 4)
        result.damage = math.floor(base * 1.2)
        result.message = (
            f"You trigger the {trap.name}! Flames engulf you for {result.damage} damage "
            "and you catch fire!"
        )
        result.trap_effect = TrapEffect("burn", duration, damage_per_turn=base // 4)
    elif trap_type == TrapType.STUN:
        duration = rng.next_int(1, 2)
        result.damage = math.floor(base * 0.5)
        result.message = (
            f"You trigger the {trap.name}! Lightning courses through you for {result.damage} damage "
            "and stuns you!"
        )
        result.trap_effect = TrapEffect("stun", duration)
    elif trap_type == TrapType.TELEPORT:
        result.damage = 0
        result.message = (
            f"You trigger the {trap.name}! Reality warps around you and you find yourself elsewhere!"
        )
        result.trap_effect = TrapEffect(teleport=True)
    elif trap_type == TrapType.GOLD_DRAIN:
        gold_lost = rng.next_int(20, 100)
        result.damage = math.floor(base * 0.3)
        result.message = f"You trigger the {trap.name}! A curse drains {gold_lost} gold from your pouch!"
        result.trap_effect = TrapEffect(gold_lost=gold_lost)
    elif trap_type == TrapType.ALARM:
        result.damage = 0
        result.message = (
            f"You trigger the {trap.name}! A loud alarm sounds and you hear footsteps approaching!"
        )
        result.trap_effect = TrapEffect(alarm=True)

    return result


# =============================================================================
# Detection and Disarming
# =============================================================================


def detect_trap(
    trap: Interactable, perception_bonus: int = 0, rng: Optional[Random] = None
) -> DetectResult:
    """Search for a trap. Only hidden traps need a roll."""
    if not trap.is_trap:
        return DetectResult(False, "Nothing suspicious here.")
    if trap.detected:
        return DetectResult(True, f"You already know about the {trap.name}.")
    if not trap.hidden:
        trap.detected = True
        return DetectResult(True, f"You spot the {trap.name}!")

    rng = resolve_rng(rng)
    if rng.next_int(1, 20) + perception_bonus >= trap.disarm_dc:
        trap.detected = True
        trap.hidden = False
        return DetectResult(True, f"Your keen senses detect a hidden {trap.name}!")
    return DetectResult(False, "You don't notice anything unusual.")


def relic_chance_for_dc(dc: int) -> float:
    if dc >= 18:
        return 0.9
    if dc >= 15:
        return 0.7
    if dc >= 11:
        return 0.5
    return 0.3


def disarm_trap(
    trap: Interactable,
    skill_bonus: int = 0,
    level: int = 1,
    owned_relic_base_ids: Iterable[str] = (),
    rng: Optional[Random] = None,
) -> DisarmResult:
    """
    Attempt to disarm a detected trap with d20 + skill_bonus vs its DC.

    Args:
        trap: The trap
        skill_bonus: Flat bonus added to the roll
        level: Dungeon level, raises relic quality
        owned_relic_base_ids: Relics the player already has
        rng: Session RNG

    Returns:
        DisarmResult; on a trigger, damage and trap_effect are filled in
    """
    if not trap.is_trap:
        return DisarmResult(False, "This is not a trap.")
    if trap.disarmed:
        return DisarmResult(True, "The trap is already disarmed.")
    if trap.used:
        return DisarmResult(False, "The trap has already been triggered.")
    if not trap.detected:
        return DisarmResult(False, "You need to detect the trap first!")

    rng = resolve_rng(rng)
    dc = trap.disarm_dc
    roll = rng.next_int(1, 20)
    total = roll + skill_bonus
    detail = f"(Rolled {roll}+{skill_bonus}={total} vs DC {dc})"

    if roll == 20:
        trap.disarmed = True
        relic = clone_relic(generate_trap_relic(dc, level, owned_relic_base_ids, rng), rng)
        return DisarmResult(
            True,
            f"Critical success! You expertly disarm the {trap.name} and discover a hidden {relic.name}!",
            relic=relic,
        )

    if total >= dc:
        trap.disarmed = True
        if rng.chance(relic_chance_for_dc(dc)):
            relic = clone_relic(generate_trap_relic(dc, level, owned_relic_base_ids, rng), rng)
            return DisarmResult(
                True, f"You carefully disarm the {trap.name} and find a {relic.name}! {detail}", relic=relic,
            )
        return DisarmResult(True, f"You carefully disarm the {trap.name}. {detail}")

    if roll == 1 or dc - total >= CRITICAL_FAIL_MARGIN:
        trap.used = True
        triggered = trigger_trap(trap, rng)
        return DisarmResult(
            False,
            f"You fumble the disarm attempt and trigger the {trap.name}! {detail}",
            damage=triggered.damage,
            trap_effect=triggered.trap_effect,
            critical_fail=roll == 1,
        )

    return DisarmResult(
        False, f"You fail to disarm the {trap.name}, but avoid triggering it. {detail}",
    )
