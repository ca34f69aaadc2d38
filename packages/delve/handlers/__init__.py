"""
Handlers for delve.

Room Handlers:
- ShopHandler: Purchases and sales
- EventHandler: Mysterious event outcomes
- PuzzleHandler: Puzzle answers and skips
- InteractionHandler: Chests, altars, levers, NPCs, traps
- RestHandler: Campfire rest
- InventoryHandler: Consumables and equipment

Combat itself lives in combat_engine.CombatEngine.
"""

from .rooms import (
    # Handlers
    ShopHandler,
    EventHandler,
    PuzzleHandler,
    InteractionHandler,
    RestHandler,
    InventoryHandler,

    # Result dataclasses
    ShopResult,
    EventResult,
    PuzzleResult,
    InteractOutcome,
    RestResult,
    InventoryResult,
    trap_skill_bonus,
)

__all__ = [
    # Handlers
    "ShopHandler",
    "EventHandler",
    "PuzzleHandler",
    "InteractionHandler",
    "RestHandler",
    "InventoryHandler",

    # Results
    "ShopResult",
    "EventResult",
    "PuzzleResult",
    "InteractOutcome",
    "RestResult",
    "InventoryResult",
    "trap_skill_bonus",
]
