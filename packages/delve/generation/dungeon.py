"""
Dungeon Generation - layered room graph from entrance to boss.

Layout:
- Level 1: a single entrance room, already available
- Levels 2..N-1: rooms whose count grows early, plateaus, then narrows
  toward the boss; types are drawn from progress-dependent bands
- Level N: a single boss room every penultimate room connects to

Adjacent layers are wired in three passes so that every room is reachable and
every room leads forward. Rest, shop and treasure rooms are then overlaid at
fixed depths.

Usage:
    rng = Random("abc")
    generator = DungeonGenerator(rng, DungeonGeneratorConfig(total_levels=20))
    dungeon = generator.generate()
    problems = generator.validate_connectivity()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..dungeon.room import Room, RoomState, RoomType, room_from_dict
from ..state.rng import Random


REST_INTERVAL = 5
SHOP_LEVEL_RANGE = (10, 15)
TREASURE_LEVEL_RANGE = (3, 8)


@dataclass
class DungeonGeneratorConfig:
    """Configuration for dungeon generation."""
    total_levels: int = 20
    branching_factor: int = 3
    # Chance of a second edge between layers of equal size
    convergence_rate: float = 0.3


@dataclass
class DungeonLayer:
    level: int
    rooms: List[Room] = field(default_factory=list)

    @property
    def room_ids(self) -> List[str]:
        return [room.id for room in self.rooms]


@dataclass
class Dungeon:
    """
    A generated dungeon: a flat room arena plus the per-level layering.

    Connections are stored as id lists on each room; `rooms` resolves them.
    """
    rooms: Dict[str, Room] = field(default_factory=dict)
    layers: List[DungeonLayer] = field(default_factory=list)
    current_room_id: Optional[str] = None

    @property
    def entrance(self) -> Room:
        return self.layers[0].rooms[0]

    @property
    def boss(self) -> Room:
        return self.layers[-1].rooms[0]

    @property
    def total_levels(self) -> int:
        return len(self.layers)

    @property
    def current_room(self) -> Optional[Room]:
        if self.current_room_id is None:
            return None
        return self.rooms.get(self.current_room_id)

    def get_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise ValueError(f"Unknown room: {room_id}")
        return room

    def get_layer(self, level: int) -> Optional[DungeonLayer]:
        if 1 <= level <= len(self.layers):
            return self.layers[level - 1]
        return None

    def neighbors(self, room_id: str) -> List[Room]:
        return [self.rooms[rid] for rid in self.get_room(room_id).connections]

    def add_room(self, room: Room) -> None:
        self.rooms[room.id] = room

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rooms": {rid: room.to_dict() for rid, room in self.rooms.items()},
            "layers": [
                {"level": layer.level, "rooms": layer.room_ids} for layer in self.layers
            ],
            "current_room_id": self.current_room_id,
        }


def dungeon_from_dict(data: Dict[str, Any]) -> Dungeon:
    rooms = {rid: room_from_dict(rd) for rid, rd in data["rooms"].items()}
    layers = [
        DungeonLayer(level=ld["level"], rooms=[rooms[rid] for rid in ld["rooms"]])
        for ld in data["layers"]
    ]
    return Dungeon(rooms=rooms, layers=layers, current_room_id=data.get("current_room_id"))


class DungeonGenerator:
    """
    Generates a layered dungeon from one RNG.

    Usage:
        generator = DungeonGenerator(Random(seed), config)
        dungeon = generator.generate()
    """

    def __init__(self, rng: Random, config: Optional[DungeonGeneratorConfig] = None):
        """
        Args:
            rng: The session RNG; generation draws from it in a fixed order
            config: Generation configuration
        """
        self.rng = rng
        self.config = config or DungeonGeneratorConfig()
        if self.config.total_levels < 3:
            raise ValueError("A dungeon needs at least 3 levels")
        if self.config.branching_factor < 1:
            raise ValueError("branching_factor must be at least 1")
        self.dungeon = Dungeon()
        self._room_counter = 0

    def generate(self) -> Dungeon:
        """
        Generate a complete dungeon.

        Returns:
            Dungeon with every room created (enemies not yet loaded)
        """
        self.dungeon = Dungeon()
        self._room_counter = 0
        total = self.config.total_levels

        self._create_entrance()
        for level in range(2, total):
            self._generate_level(level)
        self._create_boss(total)
        self._place_special_rooms()

        return self.dungeon

    # -------------------------------------------------------------------------
    # Room creation
    # -------------------------------------------------------------------------

    def _next_room_id(self) -> str:
        self._room_counter += 1
        return f"room_{self._room_counter:03d}"

    def _create_room(self, room_type: RoomType, level: int) -> Room:
        room = Room.create(room_type, level, self.rng, room_id=self._next_room_id())
        self.dungeon.add_room(room)
        return room

    def _create_entrance(self) -> None:
        entrance = self._create_room(RoomType.ENTRANCE, 1)
        entrance.state = RoomState.AVAILABLE
        self.dungeon.layers.append(DungeonLayer(level=1, rooms=[entrance]))

    def _generate_level(self, level: int) -> None:
        previous = self.dungeon.layers[-1]
        count = self._calculate_room_count(level, len(previous.rooms))

        rooms = []
        for _ in range(count):
            rooms.append(self._create_room(self._select_room_type(level), level))

        self._connect_layers(previous.rooms, rooms)
        self.dungeon.layers.append(DungeonLayer(level=level, rooms=rooms))

    def _create_boss(self, level: int) -> None:
        boss = self._create_room(RoomType.BOSS, level)
        for room in self.dungeon.layers[-1].rooms:
            room.connect_to(boss)
        self.dungeon.layers.append(DungeonLayer(level=level, rooms=[boss]))

    def _calculate_room_count(self, level: int, previous_count: int) -> int:
        """
        Rooms at a level: gradual growth to level 5, faster growth to level
        10, narrowing over the last five levels, a +/-1 plateau otherwise.
        """
        branching = self.config.branching_factor
        remaining = self.config.total_levels - level

        if level <= 5:
            return min(branching, previous_count + self.rng.next_int(0, 1))
        if level <= 10:
            return min(branching, previous_count + self.rng.next_int(0, 2))
        if remaining <= 5:
            if remaining <= 2:
                return max(1, previous_count - self.rng.next_int(1, 2))
            return max(2, previous_count - self.rng.next_int(0, 1))
        return max(2, previous_count + self.rng.next_int(-1, 1))

    def _select_room_type(self, level: int) -> RoomType:
        progress = level / self.config.total_levels
        roll = self.rng.next_float()

        if progress < 0.3:
            if roll < 0.70:
                return RoomType.COMBAT
            if roll < 0.85:
                return RoomType.TREASURE
            if roll < 0.93:
                return RoomType.REST
            return RoomType.EVENT

        if progress < 0.7:
            if roll < 0.60:
                return RoomType.COMBAT
            if roll < 0.72:
                return RoomType.ELITE
            if roll < 0.82:
                return RoomType.TREASURE
            if roll < 0.90:
                return RoomType.SHOP
            if roll < 0.96:
                return RoomType.REST
            return RoomType.PUZZLE

        if roll < 0.50:
            return RoomType.COMBAT
        if roll < 0.70:
            return RoomType.ELITE
        if roll < 0.82:
            return RoomType.TREASURE
        if roll < 0.92:
            return RoomType.PUZZLE
        return RoomType.EVENT

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def _connect_layers(self, from_rooms: List[Room], to_rooms: List[Room]) -> None:
        """
        Wire two adjacent layers.

        1. every source room gets one forward edge
        2. extra edges by layer shape, preferring unconnected targets
        3. every target without an incoming edge gets one
        """
        connected_to = set()

        for src in from_rooms:
            target = self.rng.choice(to_rooms)
            src.connect_to(target)
            connected_to.add(target.id)

        for src in from_rooms:
            extra = self._calculate_connections(len(from_rooms), len(to_rooms)) - 1
            for _ in range(extra):
                candidates = [r for r in to_rooms if r.id not in src.connections]
                if candidates:
                    target = self.rng.choice(candidates)
                    src.connect_to(target)
                    connected_to.add(target.id)

        for dst in to_rooms:
            if dst.id not in connected_to:
                self.rng.choice(from_rooms).connect_to(dst)

    def _calculate_connections(self, from_count: int, to_count: int) -> int:
        if to_count > from_count:
            return 1 if self.rng.next_float() < 0.5 else 2
        if to_count < from_count:
            return 1
        return 2 if self.rng.next_float() < self.config.convergence_rate else 1

    # -------------------------------------------------------------------------
    # Special rooms
    # -------------------------------------------------------------------------

    def _place_special_rooms(self) -> None:
        """Overlay guaranteed rest, shop and treasure rooms."""
        total = self.config.total_levels

        for level in range(REST_INTERVAL, total, REST_INTERVAL):
            layer = self.dungeon.get_layer(level)
            if layer and layer.rooms:
                room = self.rng.choice(layer.rooms)
                if room.type == RoomType.COMBAT:
                    room.retype(RoomType.REST, self.rng)

        shop_layer = self.dungeon.get_layer(self.rng.next_int(*SHOP_LEVEL_RANGE))
        if shop_layer and self._is_overlay_layer(shop_layer):
            room = self.rng.choice(shop_layer.rooms)
            room.retype(RoomType.SHOP, self.rng)

        treasure_layer = self.dungeon.get_layer(self.rng.next_int(*TREASURE_LEVEL_RANGE))
        if treasure_layer and self._is_overlay_layer(treasure_layer):
            room = self.rng.choice(treasure_layer.rooms)
            if room.type != RoomType.REST:
                room.retype(RoomType.TREASURE, self.rng)

    def _is_overlay_layer(self, layer: DungeonLayer) -> bool:
        # Never convert the entrance or the boss
        return 1 < layer.level < self.config.total_levels

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_connectivity(self) -> List[str]:
        return validate_connectivity(self.dungeon)


def validate_connectivity(dungeon: Dungeon) -> List[str]:
    """
    Check the connectivity rules of a dungeon.

    Returns:
        Human-readable problems; an empty list means the dungeon is sound
    """
    errors: List[str] = []
    layers = dungeon.layers
    if len(layers) < 3:
        return [f"Dungeon has only {len(layers)} levels"]

    for index in range(1, len(layers) - 1):
        previous, current, following = layers[index - 1], layers[index], layers[index + 1]
        following_ids = set(following.room_ids)

        for room in current.rooms:
            if not any(room.id in prev.connections for prev in previous.rooms):
                errors.append(
                    f"Level {current.level} room {room.id} has no incoming "
                    f"connection from level {previous.level}"
                )
            if not any(rid in following_ids for rid in room.connections):
                errors.append(
                    f"Level {current.level} room {room.id} has no outgoing "
                    f"connection to level {following.level}"
                )

    level_two_ids = set(layers[1].room_ids)
    if not any(rid in level_two_ids for rid in dungeon.entrance.connections):
        errors.append("Entrance has no connection to level 2")

    boss = dungeon.boss
    pre_boss = layers[-2]
    for room in pre_boss.rooms:
        if boss.id not in room.connections:
            errors.append(f"Level {pre_boss.level} room {room.id} does not connect to boss")

    return errors


def dungeon_to_string(dungeon: Dungeon, show_state: bool = False) -> str:
    """
    ASCII rendering, boss at the top.

    Each line lists one level's rooms as `[icon id]` followed by the ids they
    lead to on the next level.
    """
    lines = []
    for layer in reversed(dungeon.layers):
        cells = []
        for room in layer.rooms:
            forward = [
                rid for rid in room.connections
                if dungeon.rooms[rid].level == layer.level + 1
            ]
            marker = "*" if room.id == dungeon.current_room_id else ""
            cell = f"[{marker}{room.type.value[:4].upper()} {room.id}"
            if show_state:
                cell += f" {room.state.value}"
            cell += "]"
            if forward:
                cell += " -> " + ",".join(rid.replace("room_", "") for rid in forward)
            cells.append(cell)
        lines.append(f"{layer.level:>3} | " + "   ".join(cells))
    return "\n".join(lines)
