"""
Dungeon module - rooms and the objects placed in them.

Contains:
- Room state machine (types, states, rewards, lazy payloads)
- Interactables (chests, traps, altars, levers, NPCs)

The room graph itself is built by generation.dungeon.
"""

# Rooms
from .room import (
    Room,
    RoomType,
    RoomState,
    Reward,
    Loaded,
    Unloaded,
    UNLOADED,
    HOSTILE_ROOM_TYPES,
    generate_reward,
    room_from_dict,
)

# Interactables
from .interactables import (
    Interactable,
    InteractableType,
    TrapType,
    InteractionResult,
    DetectResult,
    DisarmResult,
    create_interactable,
    interact,
    trigger_trap,
    detect_trap,
    disarm_trap,
)

__all__ = [
    # Rooms
    "Room", "RoomType", "RoomState", "Reward", "Loaded", "Unloaded", "UNLOADED",
    "HOSTILE_ROOM_TYPES", "generate_reward", "room_from_dict",
    # Interactables
    "Interactable", "InteractableType", "TrapType", "InteractionResult",
    "DetectResult", "DisarmResult", "create_interactable", "interact",
    "trigger_trap", "detect_trap", "disarm_trap",
]
