"""
State module - RNG and combat state.

Contains:
- RNG system (Mulberry32, seed hashing, random ids)
- Combat state tracking (turn order, status effects, combat log)

The player model lives in state.player and is imported directly; it depends
on the content tables, which themselves depend on the RNG here.
"""

# RNG System
from .rng import Random, seed_to_int, resolve_rng, generate_random_string

# Combat State
from .combat import (
    CombatState,
    CombatStatus,
    Combatant,
    TurnOrderEntry,
    StatusEffect,
    StatusEffectType,
    StatusEffectCategory,
    StatusEffectTickResult,
    EFFECT_CATEGORIES,
    MAX_LOG_MESSAGES,
)

__all__ = [
    # RNG
    "Random", "seed_to_int", "resolve_rng", "generate_random_string",
    # Combat
    "CombatState", "CombatStatus", "Combatant", "TurnOrderEntry",
    "StatusEffect", "StatusEffectType", "StatusEffectCategory",
    "StatusEffectTickResult", "EFFECT_CATEGORIES", "MAX_LOG_MESSAGES",
]
