"""
Combat Engine Tests

Turn order, attack rolls, damage, status effects, class abilities, items,
fleeing and combat end conditions.
"""

import copy

import pytest

from packages.delve.combat_engine import (
    FLEE_CHANCE,
    CombatEngine,
    get_enemy_damage_dice,
)
from packages.delve.content.items import get_item
from packages.delve.state.combat import CombatStatus, StatusEffectType
from packages.delve.state.rng import Random


def engine_for(player, *enemies, rng=None, boss=False):
    return CombatEngine(player, list(enemies), rng or Random("combat"), is_boss_room=boss)


class TestSetup:
    """Construction and turn order."""

    def test_requires_enemies(self, fighter):
        with pytest.raises(ValueError):
            CombatEngine(fighter, [], Random("x"))

    def test_dead_enemies_ignored(self, fighter, make_enemy):
        dead = make_enemy("dead-1", health=0)
        with pytest.raises(ValueError):
            CombatEngine(fighter, [dead], Random("x"))
        engine = engine_for(fighter, dead, make_enemy("alive-1"))
        assert engine.get_valid_targets() == ["alive-1"]

    def test_player_wins_speed_ties(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy(speed=fighter.get_speed()))
        assert engine.is_player_turn()

    def test_faster_enemy_goes_first(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy("fast-1", speed=60), make_enemy("slow-1", speed=1))
        order = [entry.combatant.id for entry in engine.state.turn_order]
        assert order == ["fast-1", "player", "slow-1"]
        assert not engine.is_player_turn()

    def test_initial_state(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        assert engine.get_status() == CombatStatus.IN_PROGRESS
        assert engine.state.round == 1
        assert "Combat begins! Round 1" in engine.get_log()


class TestTurnFlow:

    def test_round_advances_after_everyone_acts(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        engine.next_turn()
        assert not engine.is_player_turn()
        engine.next_turn()
        assert engine.is_player_turn()
        assert engine.state.round == 2

    def test_player_turn_start_ticks_cooldowns(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy(health=500))
        fighter.find_ability("power_strike").current_cooldown = 1
        engine.start_turn()
        assert fighter.find_ability("power_strike").current_cooldown == 0


class TestAttackRolls:
    """d20 against defense."""

    def test_natural_20_always_hits(self, fighter, make_enemy, scripted_rng):
        engine = engine_for(fighter, make_enemy(), rng=scripted_rng(ints=[20]))
        roll = engine.roll_attack(0, 999)
        assert roll.is_hit
        assert roll.is_natural_20

    def test_natural_1_always_misses(self, fighter, make_enemy, scripted_rng):
        engine = engine_for(fighter, make_enemy(), rng=scripted_rng(ints=[1]))
        roll = engine.roll_attack(100, 0)
        assert not roll.is_hit
        assert roll.is_natural_1

    def test_total_meets_defense(self, fighter, make_enemy, scripted_rng):
        engine = engine_for(fighter, make_enemy(), rng=scripted_rng(ints=[10, 9]))
        assert engine.roll_attack(3, 13).is_hit
        assert not engine.roll_attack(3, 13).is_hit

    @pytest.mark.parametrize("cr,dice", [
        (0, "1d4"), (0.5, "1d4"), (1, "1d6"), (2, "1d8"), (4, "1d10"),
        (8, "2d6"), (12, "2d8"), (16, "2d10"), (20, "2d12"),
    ])
    def test_enemy_damage_dice(self, cr, dice):
        assert get_enemy_damage_dice(cr) == dice


class TestPlayerAttack:

    def test_unknown_target_raises(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        with pytest.raises(ValueError, match="not found"):
            engine.player_attack("ghost-1")

    def test_miss_deals_no_damage(self, fighter, make_enemy, scripted_rng):
        enemy = make_enemy(health=50)
        engine = engine_for(fighter, enemy, rng=scripted_rng(ints=[1]))
        result = engine.player_attack(enemy.id)
        assert not result.attack_roll.is_hit
        assert enemy.health == 50

    def test_hit_damages_and_kill_ends_combat(self, fighter, make_enemy, scripted_rng):
        enemy = make_enemy(health=1)
        engine = engine_for(fighter, enemy, rng=scripted_rng(ints=[15]))
        result = engine.player_attack(enemy.id)
        assert result.attack_roll.is_hit
        assert result.defender_died
        assert engine.get_status() == CombatStatus.VICTORY
        assert engine.get_result().victory
        assert engine.get_result().enemies_defeated == ["Training Dummy"]

    def test_defense_reduces_damage(self, fighter, make_enemy, scripted_rng):
        hard = make_enemy("hard-1", health=500, defense=12)
        engine = engine_for(fighter, hard, rng=scripted_rng(ints=[15]))
        result = engine.player_attack(hard.id)
        assert result.damage.damage_reduction == 6
        assert result.damage.final_damage == max(1, result.damage.base_damage - 6)
        assert hard.health == 500 - result.damage.final_damage

    def test_damage_floor_when_defense_exceeds_roll(self, fighter, make_enemy, scripted_rng):
        engine = engine_for(fighter, make_enemy(), rng=scripted_rng(ints=[4, 100]))
        damage = engine.calculate_damage(0, "1d4", 40, 0, 1.5, False)
        assert damage.base_damage == 4
        assert damage.damage_reduction == 20
        assert damage.final_damage == 1
        assert not damage.is_critical

    def test_player_damage_floor(self, fighter, make_enemy):
        wall = make_enemy("wall-1", health=500, defense=40)
        engine = engine_for(fighter, wall)
        damage = engine._player_damage_against(wall, 5, False)
        assert damage.damage_reduction >= damage.base_damage
        assert damage.final_damage == 1

    def test_killed_enemy_removed_from_turn_order(self, fighter, make_enemy, scripted_rng):
        weak = make_enemy("weak-1", health=1)
        other = make_enemy("other-1", health=500)
        engine = engine_for(fighter, weak, other, rng=scripted_rng(ints=[15]))
        engine.player_attack(weak.id)
        ids = [entry.combatant.id for entry in engine.state.turn_order]
        assert "weak-1" not in ids
        assert engine.get_valid_targets() == ["other-1"]
        assert not engine.is_combat_over()


class TestEnemyAttack:

    def test_enemy_hit_lowers_health(self, fighter, make_enemy, scripted_rng):
        enemy = make_enemy(attack_power=10)
        engine = engine_for(fighter, enemy, rng=scripted_rng(ints=[20]))
        result = engine.enemy_attack(enemy.id)
        assert result.attack_roll.is_hit
        assert fighter.stats.health == 120 - result.damage.final_damage
        assert engine.damage_taken == result.damage.final_damage

    def test_enemy_turn_none_on_player_turn(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        assert engine.enemy_turn() is None

    def test_player_death_is_defeat(self, fighter, make_enemy, scripted_rng):
        fighter.stats.health = 1
        enemy = make_enemy(attack_power=10)
        engine = engine_for(fighter, enemy, rng=scripted_rng(ints=[20]))
        engine.enemy_attack(enemy.id)
        assert engine.get_status() == CombatStatus.DEFEAT
        assert not engine.get_result().victory


class TestStatusEffects:

    def test_poison_ticks_and_expires(self, fighter, make_enemy):
        enemy = make_enemy(health=50)
        engine = engine_for(fighter, enemy)
        engine.apply_status_effect(enemy.id, StatusEffectType.POISON, 2, "test", 1, value_override=3)
        tick = engine.process_status_effects(enemy.id)
        assert tick.dot_damage == 3
        assert enemy.health == 47
        engine.process_status_effects(enemy.id)
        assert enemy.health == 44
        assert not engine.has_status_effect(enemy.id, StatusEffectType.POISON)

    def test_same_type_refreshes_and_upgrades(self, fighter, make_enemy):
        enemy = make_enemy(health=50)
        engine = engine_for(fighter, enemy)
        engine.apply_status_effect(enemy.id, StatusEffectType.POISON, 2, "a", 1, value_override=3)
        result = engine.apply_status_effect(enemy.id, StatusEffectType.POISON, 5, "b", 1, value_override=4)
        assert result.refreshed
        assert result.upgraded
        effects = engine.get_status_effects(enemy.id)
        assert len(effects) == 1
        assert effects[0].remaining_turns == 5
        assert effects[0].value_per_turn == 4

    def test_different_types_stack(self, fighter, make_enemy):
        enemy = make_enemy(health=50)
        engine = engine_for(fighter, enemy)
        engine.apply_status_effect(enemy.id, StatusEffectType.POISON, 2, "a", 1)
        engine.apply_status_effect(enemy.id, StatusEffectType.BURN, 2, "a", 1)
        assert len(engine.get_status_effects(enemy.id)) == 2

    def test_stun_incapacitates(self, fighter, make_enemy):
        enemy = make_enemy(health=50)
        engine = engine_for(fighter, enemy)
        engine.apply_status_effect(enemy.id, StatusEffectType.STUN, 1, "a", 1)
        assert engine.is_incapacitated(enemy.id)
        tick = engine.process_status_effects(enemy.id)
        assert tick.is_incapacitated
        assert not engine.is_incapacitated(enemy.id)

    def test_lethal_dot_ends_combat(self, fighter, make_enemy):
        enemy = make_enemy(health=2)
        engine = engine_for(fighter, enemy)
        engine.apply_status_effect(enemy.id, StatusEffectType.POISON, 3, "a", 1, value_override=5)
        engine.process_status_effects(enemy.id)
        assert engine.get_status() == CombatStatus.VICTORY

    def test_lethal_dot_on_player_is_defeat_at_turn_start(self, fighter, make_enemy):
        fighter.stats.health = 3
        engine = engine_for(fighter, make_enemy())
        engine.apply_status_effect(fighter.id, StatusEffectType.POISON, 3, "a", 1, value_override=5)
        assert engine.is_player_turn()
        tick = engine.start_turn()
        assert tick.combatant_died
        assert tick.skip_turn
        assert engine.get_status() == CombatStatus.DEFEAT
        assert engine.is_combat_over()
        assert engine.get_result().victory is False

    def test_enemy_dying_on_its_own_turn_does_not_hand_over_the_turn(self, fighter, make_enemy):
        first = make_enemy("ea", health=50)
        second = make_enemy("eb", health=3)
        engine = engine_for(fighter, first, second)
        assert [e.combatant.id for e in engine.state.turn_order] == ["player", "ea", "eb"]
        engine.next_turn()
        engine.next_turn()
        assert engine.get_current_turn().combatant.id == "eb"

        engine.apply_status_effect("eb", StatusEffectType.POISON, 3, "a", 1, value_override=5)
        tick = engine.start_turn()
        assert tick.combatant_died
        assert tick.skip_turn
        assert not tick.is_incapacitated
        assert not engine.is_combat_over()
        assert engine.get_valid_targets() == ["ea"]

        engine.next_turn()
        assert engine.is_player_turn()
        assert engine.state.round == 2

    def test_unknown_target(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        assert not engine.apply_status_effect("nobody", StatusEffectType.STUN, 1, "a", 1).applied

    @pytest.mark.parametrize("effect_type,value", [
        (StatusEffectType.BURN, 7),
        (StatusEffectType.BLEED, 5),
        (StatusEffectType.REGENERATION, 6),
    ])
    def test_effect_values(self, effect_type, value):
        assert CombatEngine.calculate_effect_value(effect_type, 2, 100) == value

    def test_poison_scales_with_max_health(self):
        assert CombatEngine.calculate_effect_value(StatusEffectType.POISON, 1, 100) == 5
        assert CombatEngine.calculate_effect_value(StatusEffectType.POISON, 1, 10) == 1


class TestFighterAbilities:

    def test_requires_target_without_spending_mana(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        result = engine.player_use_ability("power_strike")
        assert not result.success
        assert "requires a target" in result.message
        assert fighter.stats.mana == 30

    def test_cooldown_rejection(self, fighter, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(fighter, enemy)
        assert engine.player_use_ability("power_strike", enemy.id).success
        assert fighter.stats.mana == 20
        result = engine.player_use_ability("power_strike", enemy.id)
        assert not result.success
        assert "cooldown" in result.message
        assert fighter.stats.mana == 20

    def test_not_enough_mana(self, fighter, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(fighter, enemy)
        fighter.stats.mana = 5
        result = engine.player_use_ability("power_strike", enemy.id)
        assert not result.success
        assert "Not enough mana" in result.message

    def test_unknown_ability(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        assert engine.player_use_ability("meteor").message == "Ability not found"

    def test_invalid_target(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        result = engine.player_use_ability("power_strike", "ghost-1")
        assert not result.success
        assert fighter.stats.mana == 30

    def test_shield_bash_stuns(self, fighter, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(fighter, enemy)
        result = engine.player_use_ability("shield_bash", enemy.id)
        assert result.success
        assert engine.has_status_effect(enemy.id, StatusEffectType.STUN)

    def test_second_wind_heals_30_percent(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        fighter.stats.health = 50
        result = engine.player_use_ability("second_wind")
        assert result.healing == 36
        assert fighter.stats.health == 86

    def test_battle_cry_buffs_attack(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        before = fighter.get_attack_power()
        engine.player_use_ability("battle_cry")
        assert fighter.get_attack_power() == before + 3

    def test_whirlwind_hits_everyone(self, fighter, make_enemy):
        a = make_enemy("a-1", health=1000)
        b = make_enemy("b-1", health=1000)
        engine = engine_for(fighter, a, b)
        result = engine.player_use_ability("whirlwind")
        assert result.success
        assert result.is_aoe
        assert a.health < 1000
        assert b.health < 1000


class TestWarlockAbilities:

    def test_soul_harvest_needs_shards(self, warlock, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(warlock, enemy)
        result = engine.player_use_ability("soul_harvest", enemy.id)
        assert not result.success
        assert "soul shard" in result.message
        assert warlock.stats.mana == 100

    def test_soul_harvest_damage(self, warlock, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(warlock, enemy)
        warlock.soul_shards = 2
        result = engine.player_use_ability("soul_harvest", enemy.id)
        assert result.damage == 46
        assert enemy.health == 954
        assert warlock.soul_shards == 0

    def test_kill_grants_soul_shard(self, warlock, make_enemy):
        enemy = make_enemy(health=5)
        engine = engine_for(warlock, enemy)
        engine.player_use_ability("eldritch_blast", enemy.id)
        assert warlock.soul_shards == 1
        assert engine.get_status() == CombatStatus.VICTORY

    def test_hex_makes_vulnerable(self, warlock, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(warlock, enemy)
        engine.player_use_ability("hex", enemy.id)
        assert engine.has_status_effect(enemy.id, StatusEffectType.VULNERABLE)
        assert engine.get_damage_received_modifier(enemy.id) > 1.0

    def test_drain_life_heals_half(self, warlock, make_enemy):
        enemy = make_enemy(health=1000)
        engine = engine_for(warlock, enemy)
        warlock.stats.health = 10
        result = engine.player_use_ability("drain_life", enemy.id)
        assert result.healing == result.damage // 2

    def test_dark_pact(self, warlock, make_enemy):
        engine = engine_for(warlock, make_enemy())
        warlock.stats.mana = 0
        engine.player_use_ability("dark_pact")
        assert warlock.stats.health == 64
        assert warlock.stats.mana == 40

    def test_needs_target_flags(self, warlock, make_enemy):
        engine = engine_for(warlock, make_enemy())
        assert engine.ability_needs_target(warlock.find_ability("hex"))
        assert not engine.ability_needs_target(warlock.find_ability("dark_pact"))


class TestItemsAndFleeing:

    def test_potion_in_combat(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        fighter.add_to_inventory(copy.deepcopy(get_item("potion-of-healing")))
        fighter.stats.health = 50
        result = engine.player_use_item("potion-of-healing")
        assert result.success
        assert result.healing >= 4

    def test_equipment_not_usable(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        fighter.add_to_inventory(copy.deepcopy(get_item("longsword")))
        assert not engine.player_use_item("longsword").success

    def test_missing_item(self, fighter, make_enemy):
        engine = engine_for(fighter, make_enemy())
        assert engine.player_use_item("nothing").message == "Item not found"

    def test_boss_flee_draws_nothing(self, fighter, make_enemy):
        rng = Random("flee")
        engine = engine_for(fighter, make_enemy(), rng=rng, boss=True)
        before = rng.counter
        result = engine.attempt_flee()
        assert not result.success
        assert result.roll is None
        assert rng.counter == before
        assert engine.get_status() == CombatStatus.IN_PROGRESS

    def test_flee_success_at_threshold(self, fighter, make_enemy, scripted_rng):
        engine = engine_for(fighter, make_enemy(), rng=scripted_rng(ints=[FLEE_CHANCE]))
        result = engine.attempt_flee()
        assert result.success
        assert engine.get_status() == CombatStatus.FLED
        assert engine.is_combat_over()

    def test_flee_failure_above_threshold(self, fighter, make_enemy, scripted_rng):
        engine = engine_for(fighter, make_enemy(), rng=scripted_rng(ints=[FLEE_CHANCE + 1]))
        result = engine.attempt_flee()
        assert not result.success
        assert result.roll == FLEE_CHANCE + 1
        assert not engine.is_combat_over()


class TestDeterminism:

    def test_same_seed_same_fight(self, make_enemy):
        from packages.delve.state.player import PlayerClass, create_player

        def fight(seed):
            player = create_player("P", PlayerClass.FIGHTER)
            enemy = make_enemy(health=60, attack_power=8, speed=30)
            engine = CombatEngine(player, [enemy], Random(seed))
            while not engine.is_combat_over():
                tick = engine.start_turn()
                if engine.is_combat_over():
                    break
                if not tick.skip_turn:
                    if engine.is_player_turn():
                        engine.player_attack(enemy.id)
                    else:
                        engine.enemy_turn()
                engine.next_turn()
            return engine.get_log(), player.stats.health

        assert fight("replay") == fight("replay")
