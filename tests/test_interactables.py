"""
Interactable and Trap Tests

Chests, altars, levers and NPCs; trap creation, detection, disarming and
triggering.
"""

import pytest

from packages.delve.dungeon.interactables import (
    CRITICAL_FAIL_MARGIN,
    Interactable,
    InteractableType,
    TrapType,
    create_interactable,
    detect_trap,
    disarm_trap,
    get_trap_types_for_level,
    interact,
    interactable_from_dict,
    relic_chance_for_dc,
    trigger_trap,
)
from packages.delve.state.rng import Random


def make_trap(trap_type=TrapType.SPIKE, dc=15, damage=10, hidden=False):
    return Interactable(
        id="trap-test",
        type=InteractableType.TRAP,
        name="Spike Trap",
        damage=damage,
        trap_type=trap_type,
        disarm_dc=dc,
        hidden=hidden,
        detected=not hidden,
    )


class TestCreation:
    """create_interactable per type."""

    def test_id_prefix(self, rng):
        chest = create_interactable(InteractableType.CHEST, 3, rng)
        assert chest.id.startswith("chest-")
        assert len(chest.id) == len("chest-") + 8

    def test_chest_contents_and_gold(self):
        for seed in ["a", "b", "c"]:
            chest = create_interactable(InteractableType.CHEST, 4, Random(seed))
            assert chest.contents
            assert 40 <= chest.gold <= 200

    @pytest.mark.parametrize("level", [1, 5, 12, 20, 40])
    def test_trap_scaling(self, level):
        for seed in ["a", "b", "c", "d"]:
            trap = create_interactable(InteractableType.TRAP, level, Random(seed))
            assert trap.trap_type in get_trap_types_for_level(level)
            assert trap.disarm_dc == min(20, 8 + int(level * 0.6))
            assert 5 + level * 2 <= trap.damage <= 5 + level * 3
            assert trap.detected == (not trap.hidden)

    def test_trap_types_gated_by_level(self):
        assert get_trap_types_for_level(1) == [TrapType.SPIKE]
        assert TrapType.TELEPORT not in get_trap_types_for_level(9)
        assert set(get_trap_types_for_level(10)) == set(TrapType)

    def test_serialization(self, rng):
        trap = create_interactable(InteractableType.TRAP, 6, rng)
        restored = interactable_from_dict(trap.to_dict())
        assert restored == trap


class TestAvailability:
    """is_available rules."""

    def test_npc_always_available(self):
        npc = Interactable("npc-1", InteractableType.NPC, "Merchant", used=True)
        assert npc.is_available

    def test_used_object_unavailable(self):
        lever = Interactable("lever-1", InteractableType.LEVER, "Lever", used=True)
        assert not lever.is_available

    def test_hidden_trap_unavailable(self):
        assert not make_trap(hidden=True).is_available

    def test_detected_trap_available(self):
        assert make_trap().is_available

    def test_disarmed_trap_unavailable(self):
        trap = make_trap()
        trap.disarmed = True
        assert not trap.is_available


class TestInteract:
    """interact() on non-trap objects."""

    def test_chest_opens_once(self, rng):
        chest = create_interactable(InteractableType.CHEST, 3, rng)
        result = interact(chest, rng)
        assert chest.used
        assert result.gold == chest.gold
        assert len(result.items) == len(chest.contents)
        again = interact(chest, rng)
        assert again.message == f"The {chest.name} has already been used."
        assert again.gold == 0

    def test_lever(self, rng):
        lever = create_interactable(InteractableType.LEVER, 3, rng)
        result = interact(lever, rng)
        assert lever.used
        assert "rumbling" in result.message

    def test_npc_reusable(self, rng):
        npc = create_interactable(InteractableType.NPC, 3, rng)
        interact(npc, rng)
        result = interact(npc, rng)
        assert "greets you" in result.message
        assert not npc.used

    def test_altar_single_use(self):
        for seed in ["a", "b", "c", "d", "e"]:
            rng = Random(seed)
            altar = create_interactable(InteractableType.ALTAR, 3, rng)
            interact(altar, rng)
            assert altar.used


class TestTriggerTrap:
    """trigger_trap per trap type."""

    def test_spike(self, rng):
        result = trigger_trap(make_trap(TrapType.SPIKE, damage=12), rng)
        assert result.damage == 12
        assert result.trap_effect is None

    def test_poison(self, rng):
        result = trigger_trap(make_trap(TrapType.POISON, damage=12), rng)
        assert result.damage == 12
        assert result.trap_effect.status == "poison"
        assert result.trap_effect.damage_per_turn == 4
        assert 3 <= result.trap_effect.duration <= 6

    def test_frost(self, rng):
        result = trigger_trap(make_trap(TrapType.FROST, damage=10), rng)
        assert result.damage == 7
        assert result.trap_effect.status == "slow"

    def test_fire(self, rng):
        result = trigger_trap(make_trap(TrapType.FIRE, damage=10), rng)
        assert result.damage == 12
        assert result.trap_effect.status == "burn"
        assert result.trap_effect.damage_per_turn == 2

    def test_stun(self, rng):
        result = trigger_trap(make_trap(TrapType.STUN, damage=10), rng)
        assert result.damage == 5
        assert result.trap_effect.status == "stun"

    def test_teleport(self, rng):
        result = trigger_trap(make_trap(TrapType.TELEPORT), rng)
        assert result.damage == 0
        assert result.trap_effect.teleport

    def test_gold_drain(self, rng):
        result = trigger_trap(make_trap(TrapType.GOLD_DRAIN, damage=10), rng)
        assert result.damage == 3
        assert 20 <= result.trap_effect.gold_lost <= 100

    def test_alarm(self, rng):
        result = trigger_trap(make_trap(TrapType.ALARM), rng)
        assert result.damage == 0
        assert result.trap_effect.alarm


class TestDetection:
    """detect_trap: d20 + bonus vs DC for hidden traps."""

    def test_non_trap(self, rng):
        chest = Interactable("chest-1", InteractableType.CHEST, "Chest")
        result = detect_trap(chest, 0, rng)
        assert not result.success
        assert result.message == "Nothing suspicious here."

    def test_visible_trap_detected_without_roll(self, rng):
        trap = make_trap()
        trap.detected = False
        before = rng.counter
        assert detect_trap(trap, 0, rng).success
        assert trap.detected
        assert rng.counter == before

    def test_already_detected(self, rng):
        before = rng.counter
        assert detect_trap(make_trap(), 0, rng).success
        assert rng.counter == before

    def test_hidden_trap_roll_meets_dc(self, scripted_rng):
        trap = make_trap(dc=15, hidden=True)
        assert detect_trap(trap, 3, scripted_rng(ints=[12])).success
        assert trap.detected
        assert not trap.hidden

    def test_hidden_trap_roll_below_dc(self, scripted_rng):
        trap = make_trap(dc=15, hidden=True)
        assert not detect_trap(trap, 3, scripted_rng(ints=[11])).success
        assert not trap.detected


class TestDisarm:
    """disarm_trap outcomes."""

    def test_non_trap(self, rng):
        lever = Interactable("lever-1", InteractableType.LEVER, "Lever")
        assert not disarm_trap(lever, rng=rng).success

    def test_already_disarmed(self, rng):
        trap = make_trap()
        trap.disarmed = True
        assert disarm_trap(trap, rng=rng).success

    def test_already_triggered(self, rng):
        trap = make_trap()
        trap.used = True
        assert not disarm_trap(trap, rng=rng).success

    def test_must_detect_first(self, rng):
        result = disarm_trap(make_trap(hidden=True), rng=rng)
        assert not result.success
        assert result.message == "You need to detect the trap first!"

    def test_natural_20_always_disarms_with_relic(self, scripted_rng):
        trap = make_trap(dc=20)
        result = disarm_trap(trap, 0, 5, (), scripted_rng(ints=[20]))
        assert result.success
        assert trap.disarmed
        assert result.relic is not None
        assert result.relic.id.startswith(result.relic.base_id + "-")

    def test_success_without_relic(self, scripted_rng):
        trap = make_trap(dc=15)
        # relic chance at DC 15 is 0.7; a 0.95 roll misses it
        result = disarm_trap(trap, 5, 5, (), scripted_rng(ints=[10], floats=[0.95]))
        assert result.success
        assert trap.disarmed
        assert result.relic is None

    def test_success_with_relic(self, scripted_rng):
        trap = make_trap(dc=15)
        result = disarm_trap(trap, 5, 5, (), scripted_rng(ints=[10], floats=[0.1]))
        assert result.success
        assert result.relic is not None

    def test_margin_five_triggers(self, scripted_rng):
        trap = make_trap(dc=15, damage=9)
        result = disarm_trap(trap, 0, 1, (), scripted_rng(ints=[10]))
        assert 15 - 10 == CRITICAL_FAIL_MARGIN
        assert not result.success
        assert trap.used
        assert result.damage == 9
        assert not result.critical_fail

    def test_margin_four_fails_safely(self, scripted_rng):
        trap = make_trap(dc=15, damage=9)
        result = disarm_trap(trap, 0, 1, (), scripted_rng(ints=[11]))
        assert not result.success
        assert not trap.used
        assert result.damage == 0
        assert "avoid triggering" in result.message

    def test_natural_1_triggers_within_margin(self, scripted_rng):
        trap = make_trap(dc=15, damage=9)
        # 1 + 10 misses DC 15 by only 4, but a natural 1 still springs it
        result = disarm_trap(trap, 10, 1, (), scripted_rng(ints=[1]))
        assert not result.success
        assert result.critical_fail
        assert trap.used

    @pytest.mark.parametrize("dc,chance", [(8, 0.3), (11, 0.5), (15, 0.7), (18, 0.9), (20, 0.9)])
    def test_relic_chance_bands(self, dc, chance):
        assert relic_chance_for_dc(dc) == chance
