"""
Player Tests

Class stats, damage and healing, experience and levelling, equipment,
consumables, relics, buffs and class passives.
"""

import copy

import pytest

from packages.delve.content.items import StatBonus, get_item
from packages.delve.content.relics import RELICS_BY_ID, RelicType, clone_relic
from packages.delve.state.player import (
    MAX_LEVEL,
    MAX_SOUL_SHARDS,
    XP_PER_LEVEL,
    PlayerClass,
    create_player,
    player_from_dict,
)
from packages.delve.state.rng import Random


class TestCreation:
    """Base stats and class abilities."""

    def test_fighter_base_stats(self, fighter):
        assert fighter.stats.max_health == 120
        assert fighter.stats.health == 120
        assert fighter.stats.attack == 14
        assert fighter.stats.defense == 10
        assert fighter.stats.mana == 30
        assert fighter.level == 1
        assert fighter.gold == 0

    def test_warlock_base_stats(self, warlock):
        assert warlock.stats.max_health == 80
        assert warlock.stats.mana == 100
        assert warlock.stats.attack == 6

    def test_class_abilities(self, fighter, warlock):
        assert [a.id for a in fighter.abilities] == [
            "power_strike", "shield_bash", "battle_cry", "second_wind", "whirlwind",
        ]
        assert "soul_harvest" in [a.id for a in warlock.abilities]
        assert len(warlock.abilities) == 6

    def test_players_do_not_share_state(self):
        a = create_player("A", PlayerClass.FIGHTER)
        b = create_player("B", PlayerClass.FIGHTER)
        a.stats.health = 1
        a.abilities[0].current_cooldown = 3
        assert b.stats.health == 120
        assert b.abilities[0].current_cooldown == 0


class TestHealth:
    """take_damage, lose_health, heal, mana."""

    def test_take_damage_reduced_by_half_defense(self, fighter):
        assert fighter.take_damage(20) == 15
        assert fighter.stats.health == 105

    def test_take_damage_minimum_one(self, fighter):
        assert fighter.take_damage(2) == 1
        assert fighter.take_damage(0) == 1

    def test_health_never_negative(self, fighter):
        fighter.take_damage(10_000)
        assert fighter.stats.health == 0
        assert not fighter.is_alive

    def test_lose_health_unmitigated(self, fighter):
        assert fighter.lose_health(20) == 20
        assert fighter.stats.health == 100

    def test_heal_capped(self, fighter):
        fighter.stats.health = 100
        assert fighter.heal(50) == 20
        assert fighter.stats.health == 120
        assert fighter.heal(-5) == 0

    def test_mana(self, warlock):
        assert warlock.use_mana(30)
        assert warlock.stats.mana == 70
        assert not warlock.use_mana(500)
        assert warlock.stats.mana == 70
        assert warlock.restore_mana(100) == 30


class TestExperience:
    """Levelling."""

    def test_level_up_at_threshold(self, fighter):
        fighter.stats.health = 10
        result = fighter.add_experience(XP_PER_LEVEL[1])
        assert result.levels_gained == 1
        assert result.new_level == 2
        assert fighter.stats.max_health == 135
        assert fighter.stats.health == 135
        assert fighter.stats.attack == 16

    def test_multiple_levels_at_once(self, fighter):
        result = fighter.add_experience(600)
        assert result.levels_gained == 3
        assert fighter.level == 4

    def test_below_threshold(self, fighter):
        result = fighter.add_experience(99)
        assert result.levels_gained == 0
        assert fighter.experience_to_next_level() == 1

    def test_level_cap(self, warlock):
        warlock.add_experience(10 ** 7)
        assert warlock.level == MAX_LEVEL
        assert warlock.experience_to_next_level() == 0


class TestGold:

    def test_spend(self, fighter):
        fighter.add_gold(100)
        assert fighter.spend_gold(60)
        assert fighter.gold == 40
        assert not fighter.spend_gold(41)
        assert fighter.gold == 40

    def test_negative_ignored(self, fighter):
        fighter.add_gold(-10)
        assert fighter.gold == 0


class TestEquipment:
    """Equip, unequip and stat contributions."""

    def test_weapon_adds_average_damage(self, fighter):
        base = fighter.get_attack_power()
        fighter.add_to_inventory(copy.deepcopy(get_item("longsword")))
        fighter.equip_item(fighter.inventory[0])
        # 1d8 averages 4.5
        assert fighter.get_attack_power() == int(base + 4.5)
        assert fighter.inventory == []

    def test_replaced_item_returns_to_inventory(self, fighter):
        dagger = copy.deepcopy(get_item("dagger"))
        sword = copy.deepcopy(get_item("longsword"))
        fighter.equip_item(dagger)
        previous = fighter.equip_item(sword)
        assert previous is dagger
        assert fighter.equipment.weapon is sword
        assert fighter.inventory == [dagger]

    def test_consumable_not_equipped(self, fighter):
        potion = copy.deepcopy(get_item("potion-of-healing"))
        assert fighter.equip_item(potion) is None
        assert fighter.equipment.items() == []

    def test_unequip(self, fighter):
        armor = copy.deepcopy(get_item("chain-mail"))
        fighter.equip_item(armor)
        defense = fighter.get_defense()
        assert fighter.unequip_slot(armor.slot) is armor
        assert fighter.get_defense() < defense
        assert fighter.inventory == [armor]
        assert fighter.unequip_slot(armor.slot) is None


class TestConsumables:

    def test_healing_potion(self, fighter):
        potion = copy.deepcopy(get_item("potion-of-healing"))
        fighter.add_to_inventory(potion)
        fighter.stats.health = 50
        assert fighter.use_consumable(potion, Random("potion"))
        # 2d4 + 2
        assert 54 <= fighter.stats.health <= 60
        assert fighter.inventory == []

    def test_mana_potion(self, warlock):
        potion = copy.deepcopy(get_item("potion-of-mana"))
        warlock.add_to_inventory(potion)
        warlock.stats.mana = 10
        assert warlock.use_consumable(potion)
        assert warlock.stats.mana == 35

    def test_not_in_inventory(self, fighter):
        potion = copy.deepcopy(get_item("potion-of-healing"))
        assert not fighter.use_consumable(potion)


class TestBuffs:

    def test_buff_adds_and_expires(self, fighter):
        attack = fighter.get_attack_power()
        fighter.apply_buff("Rage", StatBonus(attack=5), 2)
        assert fighter.get_attack_power() == attack + 5
        fighter.tick_buffs()
        assert fighter.get_attack_power() == attack + 5
        fighter.tick_buffs()
        assert fighter.get_attack_power() == attack

    def test_reapply_refreshes_longer(self, fighter):
        fighter.apply_buff("Rage", StatBonus(attack=5), 2)
        fighter.apply_buff("Rage", StatBonus(attack=5), 4)
        assert len(fighter.active_buffs) == 1
        assert fighter.active_buffs[0].remaining_turns == 4

    def test_rest_clears_buffs_and_cooldowns(self, fighter):
        fighter.apply_buff("Rage", StatBonus(attack=5), 5)
        fighter.abilities[0].current_cooldown = 2
        fighter.stats.health = 5
        fighter.rest()
        assert fighter.active_buffs == []
        assert fighter.abilities[0].current_cooldown == 0
        assert fighter.stats.health == fighter.get_max_health()


class TestAbilities:

    def test_use_ability_pays_and_starts_cooldown(self, fighter):
        ability = fighter.use_ability("power_strike")
        assert ability is not None
        assert fighter.stats.mana == 20
        assert ability.current_cooldown == ability.cooldown
        assert fighter.use_ability("power_strike") is None

    def test_tick_cooldowns(self, fighter):
        fighter.use_ability("power_strike")
        fighter.upkeep()
        assert fighter.find_ability("power_strike").current_cooldown == 0

    def test_unknown_ability(self, fighter):
        assert fighter.use_ability("fireball") is None


class TestClassPassives:

    def test_last_stand(self, fighter):
        normal = fighter.get_defense()
        fighter.stats.health = 30
        assert fighter.get_defense() == normal + 5

    def test_last_stand_fighter_only(self, warlock):
        normal = warlock.get_defense()
        warlock.stats.health = 1
        assert warlock.get_defense() == normal

    def test_soul_shards_capped(self, warlock):
        for _ in range(MAX_SOUL_SHARDS + 2):
            warlock.gain_soul_shard()
        assert warlock.soul_shards == MAX_SOUL_SHARDS
        assert warlock.consume_soul_shards() == MAX_SOUL_SHARDS
        assert warlock.soul_shards == 0

    def test_fighter_gains_no_shards(self, fighter):
        assert not fighter.gain_soul_shard()

    def test_warlock_attack_restores_mana(self, warlock):
        warlock.stats.mana = 50
        warlock.basic_attack(Random("atk"))
        assert warlock.stats.mana == 53


class TestRelics:

    def test_stat_relic_applies(self, fighter):
        relic = next(r for r in RELICS_BY_ID.values() if r.type == RelicType.STAT_BOOST)
        before = fighter.to_dict()["stats"]
        fighter.add_relic(clone_relic(relic, Random("relic")))
        assert fighter.get_owned_relic_base_ids() == [relic.base_id]
        bonus = relic.stat_bonus
        assert fighter.get_max_health() == before["max_health"] + bonus.max_health
        assert fighter.get_speed() == before["speed"] + bonus.speed

    def test_ability_relic_grants_ability(self, warlock):
        relic = next(r for r in RELICS_BY_ID.values() if r.type == RelicType.ABILITY)
        warlock.add_relic(clone_relic(relic, Random("relic")))
        assert warlock.find_ability(relic.granted_ability.id) is not None


class TestSerialization:

    def test_restore(self, fighter):
        fighter.add_gold(77)
        fighter.equip_item(copy.deepcopy(get_item("longsword")))
        fighter.apply_buff("Rage", StatBonus(attack=5), 3)
        fighter.add_experience(150)
        restored = player_from_dict(fighter.to_dict())
        assert restored.to_dict() == fighter.to_dict()
        assert restored.get_attack_power() == fighter.get_attack_power()


@pytest.mark.parametrize("player_class", list(PlayerClass))
def test_basic_attack_crit_is_multiplied(player_class):
    player = create_player("P", player_class)
    result = player.basic_attack(Random("crit"), force_crit=True)
    assert result.is_crit
    assert result.damage == int(player.get_attack_power() * player.get_crit_multiplier())
