"""
Dungeon Generation Tests

Layered room graph: shape, connectivity, room type bands, overlays,
determinism and rendering.
"""

import pytest

from packages.delve.dungeon.room import RoomState, RoomType
from packages.delve.generation.dungeon import (
    Dungeon,
    DungeonGenerator,
    DungeonGeneratorConfig,
    DungeonLayer,
    dungeon_from_dict,
    dungeon_to_string,
    validate_connectivity,
)
from packages.delve.state.rng import Random


SEEDS = ["abc", "1", "dungeon", "seed-42", "zzz", "hello_world", "x", "777"]


def generate(seed="abc", **kwargs):
    return DungeonGenerator(Random(seed), DungeonGeneratorConfig(**kwargs)).generate()


class TestConfiguration:
    """Generator parameter validation."""

    def test_defaults(self):
        config = DungeonGeneratorConfig()
        assert config.total_levels == 20
        assert config.branching_factor == 3
        assert config.convergence_rate == 0.3

    def test_too_few_levels_rejected(self):
        with pytest.raises(ValueError):
            DungeonGenerator(Random("abc"), DungeonGeneratorConfig(total_levels=2))

    def test_zero_branching_rejected(self):
        with pytest.raises(ValueError):
            DungeonGenerator(Random("abc"), DungeonGeneratorConfig(branching_factor=0))

    def test_default_config_used_when_omitted(self):
        generator = DungeonGenerator(Random("abc"))
        assert generator.config.total_levels == 20


class TestShape:
    """Layers, ids and endpoints."""

    def test_level_count(self, dungeon):
        assert dungeon.total_levels == 20
        assert [layer.level for layer in dungeon.layers] == list(range(1, 21))

    def test_single_entrance_and_boss(self, dungeon):
        assert len(dungeon.layers[0].rooms) == 1
        assert len(dungeon.layers[-1].rooms) == 1
        assert dungeon.entrance.type == RoomType.ENTRANCE
        assert dungeon.boss.type == RoomType.BOSS
        assert dungeon.boss.level == 20

    def test_no_other_entrance_or_boss(self, dungeon):
        for layer in dungeon.layers[1:-1]:
            for room in layer.rooms:
                assert room.type not in (RoomType.ENTRANCE, RoomType.BOSS)

    def test_sequential_room_ids(self, dungeon):
        expected = [f"room_{i:03d}" for i in range(1, len(dungeon.rooms) + 1)]
        assert sorted(dungeon.rooms) == expected
        assert dungeon.entrance.id == "room_001"
        assert dungeon.boss.id == expected[-1]

    def test_rooms_match_layers(self, dungeon):
        layered = [room.id for layer in dungeon.layers for room in layer.rooms]
        assert sorted(layered) == sorted(dungeon.rooms)
        for layer in dungeon.layers:
            for room in layer.rooms:
                assert room.level == layer.level

    def test_initial_states(self, dungeon):
        assert dungeon.entrance.state == RoomState.AVAILABLE
        for room in dungeon.rooms.values():
            if room is not dungeon.entrance:
                assert room.state == RoomState.LOCKED

    @pytest.mark.parametrize("seed", SEEDS)
    def test_early_growth_capped_by_branching(self, seed):
        dungeon = generate(seed)
        assert 1 <= len(dungeon.get_layer(2).rooms) <= 2
        for level in range(2, 11):
            assert 1 <= len(dungeon.get_layer(level).rooms) <= 3

    @pytest.mark.parametrize("seed", SEEDS)
    def test_branching_factor_one_is_a_corridor(self, seed):
        dungeon = generate(seed, total_levels=8, branching_factor=1)
        for level in range(2, 6):
            assert len(dungeon.get_layer(level).rooms) == 1

    def test_minimum_dungeon(self):
        dungeon = generate(total_levels=3)
        assert dungeon.total_levels == 3
        assert validate_connectivity(dungeon) == []
        assert dungeon.boss.id in dungeon.layers[1].rooms[0].connections


class TestConnectivity:
    """Every room reachable, every room leads forward."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_valid_for_many_seeds(self, seed):
        assert validate_connectivity(generate(seed)) == []

    @pytest.mark.parametrize("levels,branching", [(5, 2), (10, 4), (30, 3), (12, 6)])
    def test_valid_for_other_shapes(self, levels, branching):
        dungeon = generate("shape", total_levels=levels, branching_factor=branching)
        assert validate_connectivity(dungeon) == []

    def test_connections_are_symmetric(self, dungeon):
        for room in dungeon.rooms.values():
            for other_id in room.connections:
                assert room.id in dungeon.rooms[other_id].connections

    def test_connections_only_between_adjacent_levels(self, dungeon):
        for room in dungeon.rooms.values():
            for other_id in room.connections:
                assert abs(dungeon.rooms[other_id].level - room.level) == 1

    def test_every_penultimate_room_reaches_boss(self, dungeon):
        for room in dungeon.layers[-2].rooms:
            assert dungeon.boss.id in room.connections

    def test_generator_validate_matches_module_function(self):
        generator = DungeonGenerator(Random("abc"))
        dungeon = generator.generate()
        assert generator.validate_connectivity() == validate_connectivity(dungeon)

    def test_validation_reports_missing_boss_edge(self, dungeon):
        pre_boss = dungeon.layers[-2].rooms[0]
        pre_boss.connections.remove(dungeon.boss.id)
        issues = validate_connectivity(dungeon)
        assert any("does not connect to boss" in issue for issue in issues)

    def test_validation_reports_orphan_room(self, dungeon):
        orphan = dungeon.layers[3].rooms[0]
        for room in dungeon.layers[2].rooms:
            if orphan.id in room.connections:
                room.connections.remove(orphan.id)
        issues = validate_connectivity(dungeon)
        assert any(orphan.id in issue and "no incoming" in issue for issue in issues)

    def test_validation_rejects_shallow_dungeon(self):
        shallow = Dungeon(layers=[DungeonLayer(1), DungeonLayer(2)])
        assert validate_connectivity(shallow) == ["Dungeon has only 2 levels"]


class TestRoomTypes:
    """Progress bands and overlays."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_early_band(self, seed):
        dungeon = generate(seed)
        allowed = {RoomType.COMBAT, RoomType.TREASURE, RoomType.REST, RoomType.EVENT}
        for level in range(2, 6):
            for room in dungeon.get_layer(level).rooms:
                assert room.type in allowed

    @pytest.mark.parametrize("seed", SEEDS)
    def test_shops_only_in_middle_levels(self, seed):
        dungeon = generate(seed)
        for room in dungeon.rooms.values():
            if room.type == RoomType.SHOP:
                assert 6 <= room.level <= 15

    def test_hostile_rooms_start_without_enemies(self, dungeon):
        for room in dungeon.rooms.values():
            assert not room.are_enemies_loaded
            assert room.enemies == []


class TestDeterminism:
    """Same seed, same dungeon."""

    def test_same_seed_same_dungeon(self):
        assert generate("repeat").to_dict() == generate("repeat").to_dict()

    def test_different_seed_different_dungeon(self):
        assert generate("one").to_dict() != generate("two").to_dict()

    def test_generate_resets_between_calls(self):
        generator = DungeonGenerator(Random("twice"))
        first = generator.generate()
        second = generator.generate()
        assert second.entrance.id == "room_001"
        assert first is not second


class TestDungeonAccess:
    """Lookups and serialization."""

    def test_get_room_unknown_raises(self, dungeon):
        with pytest.raises(ValueError, match="Unknown room"):
            dungeon.get_room("room_999")

    def test_get_layer_out_of_range(self, dungeon):
        assert dungeon.get_layer(0) is None
        assert dungeon.get_layer(21) is None

    def test_neighbors(self, dungeon):
        neighbors = dungeon.neighbors(dungeon.entrance.id)
        assert neighbors
        assert all(room.level == 2 for room in neighbors)

    def test_current_room_none_before_entry(self, dungeon):
        assert dungeon.current_room is None

    def test_restore_from_dict(self, dungeon):
        restored = dungeon_from_dict(dungeon.to_dict())
        assert restored.to_dict() == dungeon.to_dict()
        assert restored.boss.type == RoomType.BOSS


class TestRendering:
    """ASCII dump."""

    def test_one_line_per_level_boss_first(self, dungeon):
        lines = dungeon_to_string(dungeon).splitlines()
        assert len(lines) == 20
        assert lines[0].strip().startswith("20")
        assert dungeon.boss.id in lines[0]
        assert "room_001" in lines[-1]

    def test_show_state(self, dungeon):
        text = dungeon_to_string(dungeon, show_state=True)
        assert "available" in text
        assert "locked" in text

    def test_current_room_marker(self, dungeon):
        dungeon.current_room_id = dungeon.entrance.id
        assert "[*ENTR room_001" in dungeon_to_string(dungeon)
