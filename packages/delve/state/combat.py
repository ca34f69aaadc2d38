"""
Combat State - turn order, status effects and the bounded combat log.

These are plain data types. All rules (rolls, damage, effect ticking) live in
CombatEngine; this module only defines what an encounter looks like at a
point in time so it can be inspected, rendered and serialized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


MAX_LOG_MESSAGES = 50


# =============================================================================
# Status Effects
# =============================================================================


class StatusEffectCategory(Enum):
    DOT = "dot"
    INCAPACITATION = "incapacitation"
    DEBUFF = "debuff"
    BUFF = "buff"
    HOT = "hot"


class StatusEffectType(Enum):
    POISON = "poison"
    BURN = "burn"
    BLEED = "bleed"
    STUN = "stun"
    FREEZE = "freeze"
    SLEEP = "sleep"
    SLOW = "slow"
    WEAKEN = "weaken"
    VULNERABLE = "vulnerable"
    HASTE = "haste"
    STRENGTHEN = "strengthen"
    FORTIFY = "fortify"
    REGENERATION = "regeneration"


EFFECT_CATEGORIES: Dict[StatusEffectType, StatusEffectCategory] = {
    StatusEffectType.POISON: StatusEffectCategory.DOT,
    StatusEffectType.BURN: StatusEffectCategory.DOT,
    StatusEffectType.BLEED: StatusEffectCategory.DOT,
    StatusEffectType.STUN: StatusEffectCategory.INCAPACITATION,
    StatusEffectType.FREEZE: StatusEffectCategory.INCAPACITATION,
    StatusEffectType.SLEEP: StatusEffectCategory.INCAPACITATION,
    StatusEffectType.SLOW: StatusEffectCategory.DEBUFF,
    StatusEffectType.WEAKEN: StatusEffectCategory.DEBUFF,
    StatusEffectType.VULNERABLE: StatusEffectCategory.DEBUFF,
    StatusEffectType.HASTE: StatusEffectCategory.BUFF,
    StatusEffectType.STRENGTHEN: StatusEffectCategory.BUFF,
    StatusEffectType.FORTIFY: StatusEffectCategory.BUFF,
    StatusEffectType.REGENERATION: StatusEffectCategory.HOT,
}

EFFECT_DISPLAY_NAMES: Dict[StatusEffectType, str] = {
    StatusEffectType.POISON: "Poison",
    StatusEffectType.BURN: "Burn",
    StatusEffectType.BLEED: "Bleed",
    StatusEffectType.STUN: "Stunned",
    StatusEffectType.FREEZE: "Frozen",
    StatusEffectType.SLEEP: "Asleep",
    StatusEffectType.SLOW: "Slowed",
    StatusEffectType.WEAKEN: "Weakened",
    StatusEffectType.VULNERABLE: "Vulnerable",
    StatusEffectType.HASTE: "Haste",
    StatusEffectType.STRENGTHEN: "Strengthened",
    StatusEffectType.FORTIFY: "Fortified",
    StatusEffectType.REGENERATION: "Regeneration",
}

# Percent modifiers carried by buff/debuff effects
EFFECT_MODIFIERS: Dict[StatusEffectType, int] = {
    StatusEffectType.SLOW: -50,        # speed
    StatusEffectType.WEAKEN: -25,      # attack
    StatusEffectType.VULNERABLE: 25,   # damage taken
    StatusEffectType.HASTE: 50,        # speed
    StatusEffectType.STRENGTHEN: 25,   # attack
    StatusEffectType.FORTIFY: 25,      # damage taken (reduction)
}


@dataclass
class StatusEffect:
    """An effect instance on one combatant."""
    id: str
    type: StatusEffectType
    name: str
    remaining_turns: int
    source: str
    source_level: int
    value_per_turn: Optional[int] = None
    percent_modifier: Optional[int] = None

    @property
    def category(self) -> StatusEffectCategory:
        return EFFECT_CATEGORIES[self.type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "remaining_turns": self.remaining_turns,
            "source": self.source,
            "source_level": self.source_level,
            "value_per_turn": self.value_per_turn,
            "percent_modifier": self.percent_modifier,
        }


@dataclass
class StatusEffectTickResult:
    """What happened when a combatant's effects were processed at turn start."""
    processed_effects: List[StatusEffect] = field(default_factory=list)
    dot_damage: int = 0
    hot_healing: int = 0
    expired_effects: List[StatusEffect] = field(default_factory=list)
    is_incapacitated: bool = False
    combatant_died: bool = False
    messages: List[str] = field(default_factory=list)

    @property
    def skip_turn(self) -> bool:
        """The combatant whose turn this was cannot act."""
        return self.is_incapacitated or self.combatant_died


@dataclass
class ApplyEffectResult:
    applied: bool
    refreshed: bool
    upgraded: bool
    message: str


# =============================================================================
# Combatants
# =============================================================================


@dataclass
class Combatant:
    """Turn-order view of the player or one enemy."""
    id: str
    name: str
    health: int
    max_health: int
    speed: int
    defense: int
    is_player: bool = False
    status_effects: List[StatusEffect] = field(default_factory=list)

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def get_effect(self, effect_type: StatusEffectType) -> Optional[StatusEffect]:
        for effect in self.status_effects:
            if effect.type == effect_type:
                return effect
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "health": self.health,
            "max_health": self.max_health,
            "speed": self.speed,
            "defense": self.defense,
            "is_player": self.is_player,
            "status_effects": [e.to_dict() for e in self.status_effects],
        }


@dataclass
class TurnOrderEntry:
    combatant: Combatant
    initiative: int


# =============================================================================
# Roll / Action Results
# =============================================================================


@dataclass
class AttackRollResult:
    roll: int
    total: int
    target_defense: int
    is_hit: bool
    is_natural_20: bool
    is_natural_1: bool


@dataclass
class DamageResult:
    base_damage: int
    damage_reduction: int
    final_damage: int
    is_critical: bool
    crit_multiplier: Optional[float] = None


@dataclass
class AttackResult:
    attacker: Combatant
    defender: Combatant
    attack_roll: AttackRollResult
    damage: Optional[DamageResult] = None
    defender_died: bool = False
    on_hit_effects: List[Any] = field(default_factory=list)


@dataclass
class AbilityResult:
    ability_name: str
    success: bool
    message: str
    damage: int = 0
    healing: int = 0
    is_aoe: bool = False
    effect_applied: Optional[str] = None
    enemies_killed: List[str] = field(default_factory=list)


@dataclass
class ItemUseResult:
    success: bool
    message: str
    healing: int = 0
    mana_restored: int = 0


@dataclass
class FleeResult:
    success: bool
    message: str
    roll: Optional[int] = None


# =============================================================================
# Combat State
# =============================================================================


class CombatStatus(Enum):
    IN_PROGRESS = "in_progress"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"


@dataclass
class CombatState:
    """
    Snapshot of one encounter.

    The log keeps the most recent MAX_LOG_MESSAGES entries; older lines are
    dropped as new ones arrive.
    """
    turn_order: List[TurnOrderEntry] = field(default_factory=list)
    round: int = 1
    current_turn_index: int = 0
    status: CombatStatus = CombatStatus.IN_PROGRESS
    log: List[str] = field(default_factory=list)

    def add_log(self, message: str) -> None:
        self.log.append(message)
        overflow = len(self.log) - MAX_LOG_MESSAGES
        if overflow > 0:
            del self.log[:overflow]

    @property
    def is_over(self) -> bool:
        return self.status != CombatStatus.IN_PROGRESS

    def find_entry(self, combatant_id: str) -> Optional[TurnOrderEntry]:
        for entry in self.turn_order:
            if entry.combatant.id == combatant_id:
                return entry
        return None

    def current_entry(self) -> Optional[TurnOrderEntry]:
        if self.is_over:
            return None
        if 0 <= self.current_turn_index < len(self.turn_order):
            return self.turn_order[self.current_turn_index]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round": self.round,
            "current_turn_index": self.current_turn_index,
            "status": self.status.value,
            "turn_order": [
                {"combatant": e.combatant.to_dict(), "initiative": e.initiative}
                for e in self.turn_order
            ],
            "log": list(self.log),
        }
