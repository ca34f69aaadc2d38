"""
Game Runner Tests

Run setup, room navigation and path locking, phase dispatch, the action
interface, combat flow, auto play and run statistics.
"""

import asyncio
import logging

import pytest

from packages.delve.config import GameConfig
from packages.delve.dungeon.room import RoomState, RoomType
from packages.delve.game import (
    AcceptEventAction,
    AttackAction,
    FleeAction,
    GamePhase,
    GameRunner,
    LeaveAction,
    MoveAction,
    PuzzleAnswerAction,
    QuitAction,
    RestAction,
    RestartAction,
    SearchAction,
    SkipPuzzleAction,
    ViewStatsAction,
)
from packages.delve.state.player import PlayerClass


def first_step(runner):
    """The first level-2 room reachable from the entrance."""
    return runner.dungeon.neighbors(runner.dungeon.entrance.id)[0]


def enter_as(runner, room_type):
    """Retype the first level-2 room, then walk into it."""
    target = first_step(runner)
    target.retype(room_type, runner.rng)
    assert asyncio.run(runner.take_action(MoveAction(target.id)))
    return target


def fight_to_the_end(runner, limit=100):
    for _ in range(limit):
        if runner.phase != GamePhase.COMBAT:
            return
        target = runner.combat.get_valid_targets()[0]
        asyncio.run(runner.take_action(AttackAction(target)))
    raise AssertionError("combat did not finish")


class TestSetup:
    """Construction and start_new_game."""

    def test_start_is_logged(self, weak_provider, caplog):
        game = GameRunner(seed="abc", monster_provider=weak_provider, verbose=True)
        with caplog.at_level(logging.INFO, logger="packages.delve.game"):
            game.start_new_game()
        assert "=== Game Started ===" in caplog.messages

    def test_entrance_active_and_neighbors_open(self, runner):
        dungeon = runner.dungeon
        assert dungeon.current_room_id == dungeon.entrance.id
        assert dungeon.entrance.state == RoomState.ACTIVE
        for neighbor in dungeon.neighbors(dungeon.entrance.id):
            assert neighbor.state == RoomState.AVAILABLE
        assert runner.phase == GamePhase.EXPLORATION

    def test_class_by_name(self):
        runner = GameRunner(seed="abc", player_class="Warlock")
        assert runner.player_class == PlayerClass.WARLOCK
        assert runner.player.stats.mana == 100

    def test_unknown_class(self):
        with pytest.raises(ValueError, match="Unknown player class"):
            GameRunner(seed="abc", player_class="bard")

    def test_random_seed_when_missing(self):
        runner = GameRunner()
        assert isinstance(runner.seed, str)
        assert len(runner.seed) == 12

    def test_config_seed_and_depth(self):
        runner = GameRunner(config=GameConfig(seed="cfg", total_levels=5))
        runner.start_new_game()
        assert runner.seed == "cfg"
        assert runner.dungeon.total_levels == 5

    def test_same_seed_same_dungeon(self):
        a = GameRunner(seed="same")
        b = GameRunner(seed="same")
        assert a.start_new_game().to_dict() == b.start_new_game().to_dict()

    def test_requires_game(self):
        runner = GameRunner(seed="abc")
        assert runner.get_available_actions() == []
        with pytest.raises(ValueError, match="No game in progress"):
            asyncio.run(runner.take_action(SearchAction()))


class TestNavigation:
    """move_to_room rules and path locking."""

    def test_unknown_room(self, runner):
        with pytest.raises(ValueError, match="Room room_999 not found"):
            asyncio.run(runner.move_to_room("room_999"))

    def test_not_connected(self, runner):
        far = runner.dungeon.get_layer(3).rooms[0]
        with pytest.raises(ValueError, match="not connected"):
            asyncio.run(runner.move_to_room(far.id))

    def test_leaving_entrance_completes_it(self, runner):
        target = enter_as(runner, RoomType.TREASURE)
        assert runner.dungeon.entrance.state == RoomState.CLEARED
        assert runner.stats.rooms_cleared == 1
        assert runner.current_room is target
        assert target.state == RoomState.ACTIVE
        assert runner.player.gold == 0

    def test_cannot_go_back(self, runner):
        enter_as(runner, RoomType.TREASURE)
        asyncio.run(runner.take_action(LeaveAction()))
        with pytest.raises(ValueError, match="cannot be entered"):
            asyncio.run(runner.move_to_room(runner.dungeon.entrance.id))

    def test_path_locking(self, runner):
        target = enter_as(runner, RoomType.TREASURE)
        for room in runner.dungeon.get_layer(2).rooms:
            if room is not target:
                assert room.state == RoomState.LOCKED
        for room in runner.dungeon.get_layer(3).rooms:
            if target.is_connected_to(room.id):
                assert room.state == RoomState.AVAILABLE
            else:
                assert room.state == RoomState.LOCKED

    def test_move_rejected_outside_exploration(self, runner):
        target = enter_as(runner, RoomType.SHOP)
        onward = [r for r in runner.dungeon.neighbors(target.id) if r.level == 3][0]
        assert not asyncio.run(runner.take_action(MoveAction(onward.id)))
        assert runner.current_room is target


class TestRoomPhases:
    """Phase per room type and the actions that finish each one."""

    def test_shop(self, runner):
        room = enter_as(runner, RoomType.SHOP)
        assert runner.phase == GamePhase.SHOP
        assert room.shop_inventory
        assert LeaveAction() in runner.get_available_actions()
        assert asyncio.run(runner.take_action(LeaveAction()))
        assert room.state == RoomState.CLEARED
        assert runner.player.gold == 100
        assert runner.phase == GamePhase.EXPLORATION

    def test_rest(self, runner):
        room = enter_as(runner, RoomType.REST)
        runner.player.stats.health = 40
        assert runner.get_available_actions() == [RestAction(), LeaveAction()]
        assert asyncio.run(runner.take_action(RestAction()))
        assert runner.player.stats.health == runner.player.get_max_health()
        assert room.state == RoomState.CLEARED

    def test_rest_only_at_campfire(self, runner):
        enter_as(runner, RoomType.TREASURE)
        assert not asyncio.run(runner.take_action(RestAction()))

    def test_event(self, runner):
        room = enter_as(runner, RoomType.EVENT)
        assert runner.phase == GamePhase.EVENT
        assert runner.get_available_actions() == [AcceptEventAction()]
        assert asyncio.run(runner.take_action(AcceptEventAction()))
        assert room.state == RoomState.CLEARED
        assert runner.phase == GamePhase.EXPLORATION

    def test_puzzle_skip_pays_nothing(self, runner):
        room = enter_as(runner, RoomType.PUZZLE)
        assert runner.phase == GamePhase.PUZZLE
        assert asyncio.run(runner.take_action(SkipPuzzleAction()))
        assert room.state == RoomState.CLEARED
        assert runner.player.gold == 0
        assert runner.phase == GamePhase.EXPLORATION

    def test_puzzle_answer_pays_puzzle_reward(self, runner):
        room = enter_as(runner, RoomType.PUZZLE)
        answer = room.puzzle.correct_index
        assert asyncio.run(runner.take_action(PuzzleAnswerAction(answer)))
        assert room.state == RoomState.CLEARED
        # floor(30 * 2), not the room's own reward
        assert runner.player.gold == 60

    def test_puzzle_wrong_answer_keeps_room_open(self, runner):
        room = enter_as(runner, RoomType.PUZZLE)
        wrong = (room.puzzle.correct_index + 1) % len(room.puzzle.options)
        assert asyncio.run(runner.take_action(PuzzleAnswerAction(wrong)))
        assert runner.phase == GamePhase.PUZZLE
        assert room.state == RoomState.ACTIVE

    def test_treasure(self, runner):
        room = enter_as(runner, RoomType.TREASURE)
        assert runner.phase == GamePhase.TREASURE
        actions = runner.get_available_actions()
        assert actions[-1] == LeaveAction()
        asyncio.run(runner.take_action(LeaveAction()))
        assert room.state == RoomState.CLEARED
        assert runner.player.gold == room.reward.gold


class TestCombat:
    """Hostile rooms with fragile enemies."""

    def test_enters_combat_on_player_turn(self, runner, weak_provider):
        room = enter_as(runner, RoomType.COMBAT)
        assert runner.phase == GamePhase.COMBAT
        assert room.are_enemies_loaded
        assert weak_provider.lookups == 1
        assert runner.combat.is_player_turn()
        actions = runner.get_available_actions()
        assert AttackAction(room.enemies[0].id) in actions
        assert FleeAction() in actions

    def test_victory_completes_room(self, runner):
        room = enter_as(runner, RoomType.COMBAT)
        fight_to_the_end(runner)
        assert runner.phase == GamePhase.EXPLORATION
        assert room.state == RoomState.CLEARED
        assert runner.player.gold == 100
        assert runner.player.level == 2
        assert runner.stats.enemies_defeated == len(room.enemies)
        assert runner.last_combat_result.victory

    def test_invalid_target_keeps_turn(self, runner):
        enter_as(runner, RoomType.COMBAT)
        turn = runner.turn
        assert not asyncio.run(runner.take_action(AttackAction("nobody")))
        assert runner.turn == turn
        assert runner.combat.is_player_turn()

    def test_boss_room_has_no_flee(self, runner):
        enter_as(runner, RoomType.BOSS)
        assert FleeAction() not in runner.get_available_actions()
        assert not asyncio.run(runner.take_action(FleeAction()))

    def test_boss_victory_wins_run(self, runner):
        enter_as(runner, RoomType.BOSS)
        fight_to_the_end(runner)
        assert runner.phase == GamePhase.VICTORY
        assert runner.game_won
        assert runner.game_over
        assert runner.get_available_actions() == [ViewStatsAction(), RestartAction()]

    def test_death_ends_run(self, runner):
        enter_as(runner, RoomType.COMBAT)
        runner.handle_player_death()
        assert runner.phase == GamePhase.GAME_OVER
        assert runner.game_lost
        assert runner.get_available_actions() == [RestartAction(), QuitAction()]
        assert not asyncio.run(runner.take_action(SearchAction()))


class TestActions:
    """Exploration actions and the meta actions."""

    def test_exploration_actions(self, runner):
        actions = runner.get_available_actions()
        moves = [a for a in actions if isinstance(a, MoveAction)]
        assert {m.room_id for m in moves} == {r.id for r in runner.dungeon.neighbors("room_001")}
        assert SearchAction() in actions

    def test_search_once_per_room(self, runner):
        assert asyncio.run(runner.take_action(SearchAction()))
        assert SearchAction() not in runner.get_available_actions()
        assert not asyncio.run(runner.take_action(SearchAction()))

    def test_decision_log(self, runner):
        asyncio.run(runner.take_action(SearchAction()))
        entry = runner.decision_log[-1]
        assert entry.action_taken == SearchAction()
        assert entry.phase == GamePhase.EXPLORATION
        assert entry.state_snapshot["room_id"] == "room_001"
        assert entry.result["message"]

    def test_view_stats(self, runner):
        assert asyncio.run(runner.take_action(ViewStatsAction()))
        assert runner.decision_log[-1].result["stats"]["seed"] == "abc"

    def test_restart(self, runner):
        enter_as(runner, RoomType.SHOP)
        asyncio.run(runner.take_action(LeaveAction()))
        assert asyncio.run(runner.take_action(RestartAction()))
        assert runner.turn == 0
        assert runner.player.gold == 0
        assert runner.stats.rooms_cleared == 0
        assert runner.phase == GamePhase.EXPLORATION
        assert runner.current_room is runner.dungeon.entrance

    def test_quit(self, runner):
        asyncio.run(runner.take_action(QuitAction()))
        assert runner.game_over


class TestAutoPlay:
    """Greedy policy to completion."""

    def test_runs_to_the_end(self, weak_provider):
        runner = GameRunner(seed="abc", monster_provider=weak_provider)
        stats = asyncio.run(runner.auto_play())
        assert runner.game_over
        assert stats["seed"] == "abc"
        assert stats["total_levels"] == 20
        assert stats["rooms_cleared"] >= 1
        assert stats["decisions_made"] == len(runner.decision_log)

    def test_replays_exactly(self, weak_provider):
        provider_type = type(weak_provider)

        def play():
            runner = GameRunner(seed="replay", monster_provider=provider_type())
            return asyncio.run(runner.auto_play())

        assert play() == play()

    def test_step_limit(self, weak_provider):
        runner = GameRunner(seed="abc", monster_provider=weak_provider)
        stats = asyncio.run(runner.auto_play(max_steps=3))
        assert stats["decisions_made"] == 3

    def test_display_dungeon(self, runner):
        text = runner.display_dungeon()
        assert "[*ENTR room_001" in text
        assert "active" in text
