"""
Combat Engine - turn-based encounter resolution for one room.

This module resolves a single fight between the player and a room's enemies:
1. Turn order by speed (player wins ties), fixed for the whole encounter
2. d20 attack rolls against defense (natural 20 hits and crits, natural 1 misses)
3. Damage with defense reduction (floor(defense / 2), minimum 1)
4. Status effects: damage/heal over time, incapacitation, percent modifiers
5. Class abilities (Fighter, Warlock) and item/relic granted abilities
6. Consumables and fleeing

The engine mutates the Player and Enemy objects it was given. All randomness
comes from the shared session Random, so a fight replays exactly from a seed.

Usage:
    engine = CombatEngine(player, room.enemies, rng, is_boss_room=False)

    while not engine.is_combat_over():
        tick = engine.start_turn()
        if engine.is_combat_over():
            break
        if not tick.skip_turn:
            if engine.is_player_turn():
                engine.player_attack(engine.get_valid_targets()[0])
            else:
                engine.enemy_turn()
        engine.next_turn()

    result = engine.get_result()
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .content.items import Ability, ItemType, OnHitEffectType, StatBonus, roll_dice
from .content.monsters import Enemy
from .content.relics import CombatModifierType
from .state.combat import (
    EFFECT_CATEGORIES,
    EFFECT_DISPLAY_NAMES,
    EFFECT_MODIFIERS,
    AbilityResult,
    ApplyEffectResult,
    AttackResult,
    AttackRollResult,
    Combatant,
    CombatState,
    CombatStatus,
    DamageResult,
    FleeResult,
    ItemUseResult,
    StatusEffect,
    StatusEffectCategory,
    StatusEffectTickResult,
    StatusEffectType,
    TurnOrderEntry,
)
from .state.player import Player
from .state.rng import Random, resolve_rng


ENEMY_CRIT_CHANCE = 10
ENEMY_CRIT_MULTIPLIER = 1.5
UNARMED_DICE = "1d4"
FLEE_CHANCE = 50
MIN_DAMAGE_RECEIVED = 0.25
INVULNERABLE_DEFENSE = 999
ATTACK_BUFF_TURNS = 3
HEX_TURNS = 3
STUN_TURNS = 1

# (max challenge rating, damage dice), checked in order
ENEMY_DAMAGE_DICE: List[Tuple[float, str]] = [
    (0.5, "1d4"),
    (1, "1d6"),
    (2, "1d8"),
    (4, "1d10"),
    (8, "2d6"),
    (12, "2d8"),
    (16, "2d10"),
]
ENEMY_DAMAGE_DICE_MAX = "2d12"

ON_HIT_STATUS_EFFECTS: Dict[OnHitEffectType, StatusEffectType] = {
    OnHitEffectType.POISON: StatusEffectType.POISON,
    OnHitEffectType.BURN: StatusEffectType.BURN,
    OnHitEffectType.BLEED: StatusEffectType.BLEED,
    OnHitEffectType.FREEZE: StatusEffectType.FREEZE,
    OnHitEffectType.STUN: StatusEffectType.STUN,
}

# Area effects of granted abilities: (status, turns) applied to every enemy hit
AOE_STATUS_EFFECTS: Dict[str, Tuple[StatusEffectType, int]] = {
    "aoe_slow": (StatusEffectType.SLOW, 2),
    "aoe_poison": (StatusEffectType.POISON, 3),
}

INVULNERABILITY_EFFECTS = ("invulnerable", "magic_immunity")


def get_enemy_damage_dice(challenge_rating: float) -> str:
    for max_cr, dice in ENEMY_DAMAGE_DICE:
        if challenge_rating <= max_cr:
            return dice
    return ENEMY_DAMAGE_DICE_MAX


# =============================================================================
# COMBAT RESULT
# =============================================================================

@dataclass
class CombatResult:
    """Summary of a finished (or abandoned) encounter."""
    status: CombatStatus
    rounds: int
    hp_remaining: int
    hp_lost: int
    damage_dealt: int
    damage_taken: int
    enemies_defeated: List[str] = field(default_factory=list)
    experience: int = 0

    @property
    def victory(self) -> bool:
        return self.status == CombatStatus.VICTORY


# =============================================================================
# COMBAT ENGINE
# =============================================================================

class CombatEngine:
    """
    Resolves one encounter.

    The turn-order entries hold Combatant views of the player and enemies.
    Health lives on the Player/Enemy objects and is copied into the views
    whenever it changes; status effects live only on the views.
    """

    def __init__(
        self,
        player: Player,
        enemies: List[Enemy],
        rng: Optional[Random] = None,
        is_boss_room: bool = False,
    ):
        self.player = player
        self.enemies: List[Enemy] = [e for e in enemies if e.is_alive]
        if not self.enemies:
            raise ValueError("Cannot start combat without enemies")
        self.rng = resolve_rng(rng)
        self.is_boss_room = is_boss_room

        self.state = CombatState(turn_order=self._calculate_turn_order())
        self.state.add_log("Combat begins! Round 1")

        # Statistics
        self.initial_hp = player.stats.health
        self.damage_dealt = 0
        self.damage_taken = 0
        self.defeated: List[Enemy] = []
        self._effect_counter = 0

        self._class_abilities: Dict[str, Callable[[Ability, Optional[Enemy]], AbilityResult]] = {
            "power_strike": self._power_strike,
            "shield_bash": self._shield_bash,
            "battle_cry": self._battle_cry,
            "second_wind": self._second_wind,
            "whirlwind": self._whirlwind,
            "eldritch_blast": self._eldritch_blast,
            "drain_life": self._drain_life,
            "hex": self._hex,
            "shadow_bolt": self._shadow_bolt,
            "dark_pact": self._dark_pact,
            "soul_harvest": self._soul_harvest,
        }

    # =========================================================================
    # Turn Order
    # =========================================================================

    def _calculate_turn_order(self) -> List[TurnOrderEntry]:
        entries = [TurnOrderEntry(self._player_view(), self._player_initiative())]
        entries += [TurnOrderEntry(self._enemy_view(e), e.speed) for e in self.enemies]
        # Stable sort keeps enemy order on ties; the player sorts ahead of equal speeds
        entries.sort(key=lambda e: (-e.initiative, not e.combatant.is_player))
        return entries

    def _player_initiative(self) -> int:
        bonus = self.player.get_combat_modifier_value(CombatModifierType.INITIATIVE_BONUS)
        return self.player.get_speed() + bonus

    def _player_view(self) -> Combatant:
        return Combatant(
            id=self.player.id,
            name=self.player.name,
            health=self.player.stats.health,
            max_health=self.player.get_max_health(),
            speed=self.player.get_speed(),
            defense=self.player.get_defense(),
            is_player=True,
        )

    @staticmethod
    def _enemy_view(enemy: Enemy) -> Combatant:
        return Combatant(
            id=enemy.id,
            name=enemy.name,
            health=enemy.health,
            max_health=enemy.max_health,
            speed=enemy.speed,
            defense=enemy.defense,
        )

    def _sync_player(self) -> None:
        entry = self.state.find_entry(self.player.id)
        if entry is not None:
            entry.combatant.health = self.player.stats.health
            entry.combatant.max_health = self.player.get_max_health()
            entry.combatant.defense = self.player.get_defense()

    def _sync_enemy(self, enemy: Enemy) -> None:
        entry = self.state.find_entry(enemy.id)
        if entry is not None:
            entry.combatant.health = enemy.health

    # =========================================================================
    # State Access
    # =========================================================================

    def is_combat_over(self) -> bool:
        return self.state.is_over

    def get_status(self) -> CombatStatus:
        return self.state.status

    def get_log(self) -> List[str]:
        return list(self.state.log)

    def get_current_turn(self) -> Optional[TurnOrderEntry]:
        return self.state.current_entry()

    def is_player_turn(self) -> bool:
        current = self.get_current_turn()
        return current is not None and current.combatant.is_player

    def get_valid_targets(self) -> List[str]:
        return [e.id for e in self.enemies if e.is_alive]

    def find_enemy(self, enemy_id: str) -> Optional[Enemy]:
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def _require_enemy(self, enemy_id: str) -> Enemy:
        enemy = self.find_enemy(enemy_id)
        if enemy is None:
            raise ValueError(f"Enemy with ID {enemy_id} not found")
        return enemy

    # =========================================================================
    # Turn Flow
    # =========================================================================

    def start_turn(self) -> StatusEffectTickResult:
        """
        Begin the current combatant's turn.

        On the player's turn, relic regeneration is applied and cooldowns and
        buffs tick down first. Then status effects are processed; a lethal
        damage-over-time tick ends the combat here.
        """
        current = self.get_current_turn()
        if current is None:
            return StatusEffectTickResult(messages=["No current turn"])

        if current.combatant.is_player:
            regen = self.player.process_passive_effects()
            if regen["health_regen"]:
                self.state.add_log(f"{self.player.name} regenerates {regen['health_regen']} health.")
            if regen["mana_regen"]:
                self.state.add_log(f"{self.player.name} regenerates {regen['mana_regen']} mana.")
            self.player.upkeep()
            self._sync_player()

        return self.process_status_effects(current.combatant.id)

    def next_turn(self) -> Optional[TurnOrderEntry]:
        """Advance to the next combatant, rolling over into a new round."""
        if self.state.is_over:
            return None

        self.state.current_turn_index += 1
        if self.state.current_turn_index >= len(self.state.turn_order):
            self.state.current_turn_index = 0
            self.state.round += 1
            self.state.add_log(f"Round {self.state.round}")

        return self.get_current_turn()

    def _remove_dead_enemy(self, enemy: Enemy) -> None:
        if enemy in self.enemies:
            self.enemies.remove(enemy)
            self.defeated.append(enemy)
            if self.player.gain_soul_shard():
                self.state.add_log(f"{self.player.name} gains a soul shard ({self.player.soul_shards}).")

        for index, entry in enumerate(self.state.turn_order):
            if entry.combatant.id == enemy.id:
                del self.state.turn_order[index]
                # The current combatant dying also steps back so next_turn lands correctly
                if index <= self.state.current_turn_index:
                    self.state.current_turn_index -= 1
                break

    def _check_combat_end(self) -> bool:
        if self.state.is_over:
            return True
        if not self.player.is_alive:
            self.state.status = CombatStatus.DEFEAT
            self.state.add_log("DEFEAT - You have been slain!")
            return True
        if not self.enemies:
            self.state.status = CombatStatus.VICTORY
            self.state.add_log("VICTORY - All enemies defeated!")
            return True
        return False

    def get_result(self) -> CombatResult:
        return CombatResult(
            status=self.state.status,
            rounds=self.state.round,
            hp_remaining=self.player.stats.health,
            hp_lost=max(0, self.initial_hp - self.player.stats.health),
            damage_dealt=self.damage_dealt,
            damage_taken=self.damage_taken,
            enemies_defeated=[e.name for e in self.defeated],
            experience=sum(e.experience for e in self.defeated),
        )

    # =========================================================================
    # Status Effects
    # =========================================================================

    def apply_status_effect(
        self,
        target_id: str,
        effect_type: StatusEffectType,
        duration: int,
        source: str,
        source_level: int,
        value_override: Optional[int] = None,
    ) -> ApplyEffectResult:
        """
        Apply an effect. The same type refreshes to the longer duration and
        upgrades to the higher per-turn value; different types stack.
        """
        entry = self.state.find_entry(target_id)
        if entry is None:
            return ApplyEffectResult(False, False, False, "Target not found")

        combatant = entry.combatant
        category = EFFECT_CATEGORIES[effect_type]
        name = EFFECT_DISPLAY_NAMES[effect_type]
        value = value_override
        if value is None:
            value = self.calculate_effect_value(effect_type, source_level, combatant.max_health)

        existing = combatant.get_effect(effect_type)
        if existing is not None:
            existing.remaining_turns = max(existing.remaining_turns, duration)
            upgraded = existing.value_per_turn is not None and value > existing.value_per_turn
            if upgraded:
                existing.value_per_turn = value
                message = f"{combatant.name}'s {name} is upgraded and refreshed!"
            else:
                message = f"{combatant.name}'s {name} duration refreshed."
            self.state.add_log(message)
            return ApplyEffectResult(True, True, upgraded, message)

        self._effect_counter += 1
        effect = StatusEffect(
            id=f"{effect_type.value}_{self._effect_counter}",
            type=effect_type,
            name=name,
            remaining_turns=duration,
            source=source,
            source_level=source_level,
        )
        if category in (StatusEffectCategory.DOT, StatusEffectCategory.HOT):
            effect.value_per_turn = value
        if category in (StatusEffectCategory.BUFF, StatusEffectCategory.DEBUFF):
            effect.percent_modifier = EFFECT_MODIFIERS.get(effect_type, 0)
        combatant.status_effects.append(effect)

        message = f"{combatant.name} is afflicted with {name}!"
        self.state.add_log(message)
        return ApplyEffectResult(True, False, False, message)

    def remove_status_effect(self, target_id: str, effect_id: str) -> bool:
        entry = self.state.find_entry(target_id)
        if entry is None:
            return False
        for effect in entry.combatant.status_effects:
            if effect.id == effect_id:
                entry.combatant.status_effects.remove(effect)
                self.state.add_log(f"{entry.combatant.name}'s {effect.name} has worn off.")
                return True
        return False

    def get_status_effects(self, target_id: str) -> List[StatusEffect]:
        entry = self.state.find_entry(target_id)
        return entry.combatant.status_effects if entry else []

    def has_status_effect(self, target_id: str, effect_type: StatusEffectType) -> bool:
        return any(e.type == effect_type for e in self.get_status_effects(target_id))

    def is_incapacitated(self, target_id: str) -> bool:
        return any(
            e.category == StatusEffectCategory.INCAPACITATION
            for e in self.get_status_effects(target_id)
        )

    def process_status_effects(self, combatant_id: str) -> StatusEffectTickResult:
        """Tick every effect once: damage/heal over time, incapacitation, expiry."""
        entry = self.state.find_entry(combatant_id)
        if entry is None:
            return StatusEffectTickResult()

        combatant = entry.combatant
        result = StatusEffectTickResult()

        for effect in combatant.status_effects:
            category = effect.category
            if category == StatusEffectCategory.DOT and effect.value_per_turn:
                result.dot_damage += effect.value_per_turn
                result.messages.append(
                    f"{combatant.name} takes {effect.value_per_turn} {effect.name} damage."
                )
            elif category == StatusEffectCategory.HOT and effect.value_per_turn:
                result.hot_healing += effect.value_per_turn
                result.messages.append(
                    f"{combatant.name} regenerates {effect.value_per_turn} health."
                )
            elif category == StatusEffectCategory.INCAPACITATION:
                result.is_incapacitated = True
                result.messages.append(
                    f"{combatant.name} is {effect.name.lower()} and cannot act!"
                )

            effect.remaining_turns -= 1
            if effect.remaining_turns <= 0:
                result.expired_effects.append(effect)

        for effect in result.expired_effects:
            combatant.status_effects.remove(effect)
            result.messages.append(f"{combatant.name}'s {effect.name} has worn off.")
        result.processed_effects = list(combatant.status_effects)

        for message in result.messages:
            self.state.add_log(message)

        if result.dot_damage > 0:
            self._apply_direct_damage(combatant_id, result.dot_damage)
        if result.hot_healing > 0:
            self._apply_direct_healing(combatant_id, result.hot_healing)
        # A dead enemy is already out of the turn order; the index now points before it
        result.combatant_died = not combatant.is_alive

        self._check_combat_end()
        return result

    def _apply_direct_damage(self, target_id: str, damage: int) -> None:
        """Unmitigated damage (damage over time)."""
        if target_id == self.player.id:
            self.damage_taken += self.player.lose_health(damage)
            self._sync_player()
            return

        enemy = self.find_enemy(target_id)
        if enemy is None:
            return
        enemy.health = max(0, enemy.health - damage)
        self._sync_enemy(enemy)
        if not enemy.is_alive:
            self.state.add_log(f"{enemy.name} succumbs to their wounds!")
            self._remove_dead_enemy(enemy)

    def _apply_direct_healing(self, target_id: str, healing: int) -> None:
        if target_id == self.player.id:
            self.player.heal(healing)
            self._sync_player()
            return

        enemy = self.find_enemy(target_id)
        if enemy is not None:
            enemy.health = min(enemy.max_health, enemy.health + healing)
            self._sync_enemy(enemy)

    @staticmethod
    def calculate_effect_value(
        effect_type: StatusEffectType, source_level: int, target_max_health: int
    ) -> int:
        if effect_type == StatusEffectType.POISON:
            return max(1, math.floor(target_max_health * 0.05))
        if effect_type == StatusEffectType.BURN:
            return 3 + 2 * source_level
        if effect_type == StatusEffectType.BLEED:
            return 5
        if effect_type == StatusEffectType.REGENERATION:
            return 5 + source_level // 2
        return 0

    def get_effective_attack_modifier(self, combatant_id: str) -> int:
        """Percent attack change from weaken/strengthen."""
        modifier = 0
        for effect in self.get_status_effects(combatant_id):
            if effect.type in (StatusEffectType.WEAKEN, StatusEffectType.STRENGTHEN):
                modifier += effect.percent_modifier or 0
        return modifier

    def get_damage_received_modifier(self, combatant_id: str) -> float:
        """Damage taken multiplier from vulnerable/fortify, never below 25%."""
        modifier = 1.0
        for effect in self.get_status_effects(combatant_id):
            if effect.type == StatusEffectType.VULNERABLE:
                modifier += (effect.percent_modifier or 0) / 100
            elif effect.type == StatusEffectType.FORTIFY:
                modifier -= (effect.percent_modifier or 0) / 100
        return max(MIN_DAMAGE_RECEIVED, modifier)

    def _break_sleep(self, target_id: str) -> None:
        for effect in self.get_status_effects(target_id):
            if effect.type == StatusEffectType.SLEEP:
                self.remove_status_effect(target_id, effect.id)
                entry = self.state.find_entry(target_id)
                self.state.add_log(f"{entry.combatant.name} wakes up from the damage!")
                return

    # =========================================================================
    # Rolls and Damage
    # =========================================================================

    def roll_attack(self, attack_bonus: int, target_defense: int) -> AttackRollResult:
        roll = self.rng.next_int(1, 20)
        total = roll + attack_bonus
        is_natural_20 = roll == 20
        is_natural_1 = roll == 1
        if is_natural_20:
            is_hit = True
        elif is_natural_1:
            is_hit = False
        else:
            is_hit = total >= target_defense
        return AttackRollResult(roll, total, target_defense, is_hit, is_natural_20, is_natural_1)

    def get_player_attack_bonus(self) -> int:
        return self.player.get_attack_power() // 5 + self.player.level // 4

    @staticmethod
    def get_enemy_attack_bonus(enemy: Enemy) -> int:
        return enemy.attack_power // 5 + math.floor(enemy.challenge_rating / 4)

    def calculate_damage(
        self,
        attack_power: int,
        dice: Optional[str],
        target_defense: int,
        crit_chance: float,
        crit_multiplier: float,
        is_natural_20: bool,
    ) -> DamageResult:
        """Dice plus half attack power, crit on natural 20 or a d100 roll, minus half defense."""
        base = roll_dice(dice or UNARMED_DICE, self.rng) + attack_power // 2

        is_critical = is_natural_20
        if not is_critical:
            is_critical = self.rng.next_int(1, 100) <= crit_chance
        if is_critical:
            base = math.floor(base * crit_multiplier)

        reduction = target_defense // 2
        return DamageResult(
            base_damage=base,
            damage_reduction=reduction,
            final_damage=max(1, base - reduction),
            is_critical=is_critical,
            crit_multiplier=crit_multiplier if is_critical else None,
        )

    def _player_damage_against(self, enemy: Enemy, raw: int, is_critical: bool) -> DamageResult:
        """
        Mitigate outgoing player damage against one enemy.

        Attack modifiers and slayer relics scale the raw amount, armor-pierce
        relics shrink the defense reduction, and the target's vulnerability
        scales the result.
        """
        percent = 100 + self.get_effective_attack_modifier(self.player.id)
        percent += self.player.get_combat_modifier_value(CombatModifierType.SLAYER, enemy.type.value)
        base = max(0, math.floor(raw * percent / 100))

        reduction = enemy.defense // 2
        pierce = self.player.get_combat_modifier_value(CombatModifierType.ARMOR_PIERCE)
        if pierce:
            reduction -= math.floor(reduction * min(pierce, 100) / 100)

        final = max(1, base - reduction)
        final = max(1, math.floor(final * self.get_damage_received_modifier(enemy.id)))
        return DamageResult(base, reduction, final, is_critical)

    def _damage_enemy(self, enemy: Enemy, damage: int) -> bool:
        """Apply mitigated damage. Returns True if the enemy died (and logs its defeat)."""
        self._break_sleep(enemy.id)
        dealt = min(enemy.health, damage)
        enemy.health -= dealt
        self.damage_dealt += dealt
        self._sync_enemy(enemy)
        if enemy.is_alive:
            return False
        self.state.add_log(f"{enemy.name} is defeated!")
        self._remove_dead_enemy(enemy)
        return True

    # =========================================================================
    # Player Actions
    # =========================================================================

    def player_attack(self, target_id: str) -> AttackResult:
        """Basic attack with the equipped weapon. Raises ValueError for an unknown enemy."""
        target = self._require_enemy(target_id)
        attacker = self._player_view()
        defender = self._enemy_view(target)

        roll = self.roll_attack(self.get_player_attack_bonus(), target.defense)
        result = AttackResult(attacker, defender, roll)

        if roll.is_hit:
            basic = self.player.basic_attack(self.rng, force_crit=roll.is_natural_20)
            damage = self._player_damage_against(target, basic.damage, basic.is_crit)
            if damage.is_critical:
                damage.crit_multiplier = self.player.get_crit_multiplier()
            result.damage = damage

            if damage.is_critical:
                self.state.add_log(
                    f"{attacker.name} CRITICALLY hits {defender.name} for {damage.final_damage} damage!"
                )
            else:
                self.state.add_log(
                    f"{attacker.name} hits {defender.name} for {damage.final_damage} damage."
                )
            result.defender_died = self._damage_enemy(target, damage.final_damage)
            result.on_hit_effects = basic.on_hit_effects
            for on_hit in basic.on_hit_effects:
                self._apply_on_hit(on_hit, target)
            self._sync_player()
        elif roll.is_natural_1:
            self.state.add_log(f"{attacker.name} critically misses {defender.name}!")
        else:
            self.state.add_log(f"{attacker.name} misses {defender.name}.")

        self._check_combat_end()
        return result

    def _apply_on_hit(self, on_hit, target: Enemy) -> None:
        if on_hit.type == OnHitEffectType.LIFESTEAL:
            healed = self.player.heal(on_hit.value)
            if healed:
                self.state.add_log(f"{self.player.name} drains {healed} health with {on_hit.source}!")
            return
        if on_hit.type == OnHitEffectType.MANA_STEAL:
            restored = self.player.restore_mana(on_hit.value)
            if restored:
                self.state.add_log(f"{self.player.name} siphons {restored} mana with {on_hit.source}!")
            return

        effect_type = ON_HIT_STATUS_EFFECTS.get(on_hit.type)
        if effect_type is None or not target.is_alive:
            return
        value = on_hit.value if on_hit.value > 0 else None
        if EFFECT_CATEGORIES[effect_type] != StatusEffectCategory.DOT:
            value = None
        self.apply_status_effect(
            target.id, effect_type, max(1, on_hit.duration),
            on_hit.source, self.player.level, value,
        )

    def player_use_ability(self, ability_id: str, target_id: Optional[str] = None) -> AbilityResult:
        """
        Use a class or granted ability.

        Unknown abilities, cooldowns, missing mana, unmet class requirements and
        missing targets are rejected before any mana is spent.
        """
        ability = self.player.find_ability(ability_id)
        if ability is None:
            return AbilityResult("Unknown", False, "Ability not found")
        if ability.current_cooldown > 0:
            return AbilityResult(
                ability.name, False,
                f"{ability.name} is on cooldown ({ability.current_cooldown} turns remaining)",
            )
        if self.player.stats.mana < ability.mana_cost:
            return AbilityResult(
                ability.name, False,
                f"Not enough mana for {ability.name} "
                f"(need {ability.mana_cost}, have {self.player.stats.mana})",
            )

        target = None
        if target_id is not None:
            target = self.find_enemy(target_id)
            if target is None:
                return AbilityResult(ability.name, False, f"Invalid target for {ability.name}")

        rejection = self.ability_requirement(ability, target)
        if rejection:
            return AbilityResult(ability.name, False, rejection)

        self.player.use_ability(ability.id)
        if self._is_class_ability(ability):
            result = self._class_abilities[ability.id](ability, target)
        else:
            result = self._use_generic_ability(ability, target)

        self._sync_player()
        self._check_combat_end()
        return result

    # -------------------------------------------------------------------------
    # Requirements
    # -------------------------------------------------------------------------

    def _is_class_ability(self, ability: Ability) -> bool:
        return ability.id in self._class_abilities and any(a.id == ability.id for a in self.player.abilities)

    def ability_requirement(self, ability: Ability, target: Optional[Enemy] = None) -> Optional[str]:
        """Why ability cannot be used on target right now, or None."""
        if self._is_class_ability(ability):
            return self._class_requirement(ability, target)
        return self._generic_requirement(ability, target)

    TARGETED_CLASS_ABILITIES = (
        "power_strike", "shield_bash", "eldritch_blast", "drain_life",
        "hex", "shadow_bolt", "soul_harvest",
    )

    def _class_requirement(self, ability: Ability, target: Optional[Enemy]) -> Optional[str]:
        if ability.id in self.TARGETED_CLASS_ABILITIES and target is None:
            return f"{ability.name} requires a target"
        if ability.id == "soul_harvest" and self.player.soul_shards == 0:
            return f"{ability.name} requires at least one soul shard"
        if ability.id == "dark_pact":
            cost = math.floor(self.player.stats.health * 0.2)
            if self.player.stats.health <= cost:
                return f"Not enough health for {ability.name}"
        return None

    @staticmethod
    def _generic_requirement(ability: Ability, target: Optional[Enemy]) -> Optional[str]:
        needs_target = (ability.damage or ability.effect == "stun") and not ability.is_aoe
        if needs_target and target is None:
            return f"{ability.name} requires a target"
        return None

    def ability_needs_target(self, ability: Ability) -> bool:
        """Whether using ability requires an enemy id."""
        if self._is_class_ability(ability):
            return ability.id in self.TARGETED_CLASS_ABILITIES
        return bool((ability.damage or ability.effect == "stun") and not ability.is_aoe)

    # -------------------------------------------------------------------------
    # Fighter
    # -------------------------------------------------------------------------

    def _strike(self, ability: Ability, target: Enemy, multiplier: float) -> Tuple[int, bool, bool]:
        basic = self.player.basic_attack(self.rng)
        raw = math.floor(basic.damage * multiplier)
        damage = self._player_damage_against(target, raw, basic.is_crit)
        prefix = "CRITICAL! " if basic.is_crit else ""
        self.state.add_log(
            f"{prefix}{self.player.name} uses {ability.name} on {target.name} "
            f"for {damage.final_damage} damage!"
        )
        died = self._damage_enemy(target, damage.final_damage)
        return damage.final_damage, basic.is_crit, died

    def _power_strike(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        damage, _, died = self._strike(ability, target, 1.5)
        return AbilityResult(
            ability.name, True, f"{ability.name} deals {damage} damage",
            damage=damage, enemies_killed=[target.name] if died else [],
        )

    def _shield_bash(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        damage, _, died = self._strike(ability, target, 0.75)
        effect = None
        if not died:
            self.apply_status_effect(
                target.id, StatusEffectType.STUN, STUN_TURNS, ability.name, self.player.level,
            )
            effect = StatusEffectType.STUN.value
        return AbilityResult(
            ability.name, True, f"{ability.name} deals {damage} damage",
            damage=damage, effect_applied=effect, enemies_killed=[target.name] if died else [],
        )

    def _battle_cry(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        return self._attack_buff(ability)

    def _second_wind(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        healed = self.player.heal(math.floor(self.player.get_max_health() * 0.3))
        message = f"{self.player.name} uses {ability.name} and heals for {healed} HP!"
        self.state.add_log(message)
        return AbilityResult(ability.name, True, message, healing=healed)

    def _whirlwind(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        basic = self.player.basic_attack(self.rng)
        raw = math.floor(basic.damage * 0.75)
        self.state.add_log(f"{self.player.name} uses {ability.name}!")
        total, killed = self._hit_all(ability, raw, basic.is_crit)
        return AbilityResult(
            ability.name, True, f"{ability.name} deals {total} total damage",
            damage=total, is_aoe=True, enemies_killed=killed,
        )

    # -------------------------------------------------------------------------
    # Warlock
    # -------------------------------------------------------------------------

    def _spell_crit(self, damage: int) -> Tuple[int, bool]:
        if self.rng.percent_chance(self.player.get_crit_chance()):
            return math.floor(damage * self.player.get_crit_multiplier()), True
        return damage, False

    def _spell(self, ability: Ability, target: Enemy, raw: int, is_crit: bool) -> Tuple[int, bool]:
        damage = self._player_damage_against(target, raw, is_crit)
        prefix = "CRITICAL! " if is_crit else ""
        self.state.add_log(
            f"{prefix}{self.player.name} uses {ability.name} on {target.name} "
            f"for {damage.final_damage} damage!"
        )
        return damage.final_damage, self._damage_enemy(target, damage.final_damage)

    def _eldritch_blast(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        raw, is_crit = self._spell_crit(12)
        raw += math.floor(self.player.level * 1.5)
        damage, died = self._spell(ability, target, raw, is_crit)
        return AbilityResult(
            ability.name, True, f"{ability.name} deals {damage} damage",
            damage=damage, enemies_killed=[target.name] if died else [],
        )

    def _drain_life(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        raw, is_crit = self._spell_crit(12 + math.floor(self.player.level * 1.2))
        damage, died = self._spell(ability, target, raw, is_crit)
        healed = self.player.heal(damage // 2)
        self.state.add_log(f"{self.player.name} heals for {healed} HP!")
        return AbilityResult(
            ability.name, True, f"{ability.name} drains {damage} damage",
            damage=damage, healing=healed, enemies_killed=[target.name] if died else [],
        )

    def _hex(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        self.state.add_log(f"{self.player.name} hexes {target.name}!")
        self.apply_status_effect(
            target.id, StatusEffectType.VULNERABLE, HEX_TURNS, ability.name, self.player.level,
        )
        return AbilityResult(
            ability.name, True, f"{target.name} is hexed",
            effect_applied=StatusEffectType.VULNERABLE.value,
        )

    def _shadow_bolt(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        shards = self.player.consume_soul_shards()
        raw, is_crit = self._spell_crit(25 + 2 * self.player.level + 10 * shards)
        damage, died = self._spell(ability, target, raw, is_crit)
        return AbilityResult(
            ability.name, True, f"{ability.name} deals {damage} damage ({shards} shards)",
            damage=damage, enemies_killed=[target.name] if died else [],
        )

    def _dark_pact(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        cost = math.floor(self.player.stats.health * 0.2)
        lost = self.player.lose_health(cost)
        restored = self.player.restore_mana(math.floor(self.player.get_max_mana() * 0.4))
        message = f"{self.player.name} sacrifices {lost} HP to restore {restored} mana!"
        self.state.add_log(message)
        return AbilityResult(ability.name, True, message, effect_applied="mana_restore")

    def _soul_harvest(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        shards = self.player.consume_soul_shards()
        raw = (20 + 3 * self.player.level) * shards
        damage, died = self._spell(ability, target, raw, False)
        return AbilityResult(
            ability.name, True, f"{ability.name} consumes {shards} shards for {damage} damage",
            damage=damage, enemies_killed=[target.name] if died else [],
        )

    # -------------------------------------------------------------------------
    # Granted abilities
    # -------------------------------------------------------------------------

    def _attack_buff(self, ability: Ability) -> AbilityResult:
        bonus = math.floor(self.player.stats.attack * 0.25)
        self.player.apply_buff(ability.name, StatBonus(attack=bonus), ATTACK_BUFF_TURNS)
        message = (
            f"{self.player.name} uses {ability.name}, increasing attack by {bonus} "
            f"for {ATTACK_BUFF_TURNS} turns!"
        )
        self.state.add_log(message)
        return AbilityResult(ability.name, True, message, effect_applied="attack_buff")

    def _hit_all(self, ability: Ability, raw: int, is_crit: bool) -> Tuple[int, List[str]]:
        total = 0
        killed = []
        for enemy in list(self.enemies):
            damage = self._player_damage_against(enemy, raw, is_crit)
            self.state.add_log(f"{ability.name} hits {enemy.name} for {damage.final_damage} damage!")
            total += damage.final_damage
            if self._damage_enemy(enemy, damage.final_damage):
                killed.append(enemy.name)
            elif ability.effect in AOE_STATUS_EFFECTS:
                effect_type, turns = AOE_STATUS_EFFECTS[ability.effect]
                self.apply_status_effect(enemy.id, effect_type, turns, ability.name, self.player.level)
        return total, killed

    def _use_generic_ability(self, ability: Ability, target: Optional[Enemy]) -> AbilityResult:
        """Flat effects for abilities granted by equipment and relics."""
        name = self.player.name

        if ability.damage is None:
            if ability.healing:
                healed = self.player.heal(ability.healing)
                message = f"{name} uses {ability.name} and heals for {healed} HP!"
                self.state.add_log(message)
                return AbilityResult(ability.name, True, message, healing=healed)
            if ability.effect == "attack_buff":
                return self._attack_buff(ability)
            if ability.effect == "full_restore":
                self.player.stats.health = self.player.get_max_health()
                self.player.stats.mana = self.player.get_max_mana()
                for other in self.player.get_all_abilities():
                    other.current_cooldown = 0
                message = f"{name} uses {ability.name}! Fully restored health, mana, and cooldowns!"
                self.state.add_log(message)
                return AbilityResult(ability.name, True, message, effect_applied="full_restore")
            if ability.effect in INVULNERABILITY_EFFECTS:
                self.player.apply_buff(ability.name, StatBonus(defense=INVULNERABLE_DEFENSE), 1)
                message = f"{name} uses {ability.name} and becomes temporarily invulnerable!"
                self.state.add_log(message)
                return AbilityResult(ability.name, True, message, effect_applied=ability.effect)
            if ability.effect == "stun" and target is not None:
                self.apply_status_effect(
                    target.id, StatusEffectType.STUN, STUN_TURNS, ability.name, self.player.level,
                )
                message = f"{name} uses {ability.name} on {target.name}!"
                self.state.add_log(message)
                return AbilityResult(ability.name, True, message, effect_applied="stun")

        if ability.damage and ability.is_aoe:
            total, killed = self._hit_all(ability, ability.damage, False)
            message = f"{name} uses {ability.name}!"
            return AbilityResult(
                ability.name, True, message, damage=total, is_aoe=True,
                effect_applied=ability.effect, enemies_killed=killed,
            )

        if ability.damage and target is not None:
            damage = self._player_damage_against(target, ability.damage, False)
            if ability.healing:
                self.state.add_log(f"{ability.name} drains {target.name} for {damage.final_damage} damage!")
            else:
                self.state.add_log(
                    f"{name} uses {ability.name} on {target.name} for {damage.final_damage} damage!"
                )
            died = self._damage_enemy(target, damage.final_damage)
            healed = 0
            if ability.healing:
                healed = self.player.heal(ability.healing)
                self.state.add_log(f"{name} heals for {healed} HP!")
            return AbilityResult(
                ability.name, True, f"{ability.name} deals {damage.final_damage} damage",
                damage=damage.final_damage, healing=healed, effect_applied=ability.effect,
                enemies_killed=[target.name] if died else [],
            )

        message = f"{name} uses {ability.name}!"
        self.state.add_log(message)
        return AbilityResult(ability.name, True, message)

    # -------------------------------------------------------------------------
    # Items and fleeing
    # -------------------------------------------------------------------------

    def player_use_item(self, item_id: str) -> ItemUseResult:
        item = self.player.find_inventory_item(item_id)
        if item is None:
            return ItemUseResult(False, "Item not found")
        if item.type != ItemType.CONSUMABLE:
            return ItemUseResult(False, f"{item.name} cannot be used in combat")

        health_before = self.player.stats.health
        mana_before = self.player.stats.mana
        if not self.player.use_consumable(item, self.rng):
            return ItemUseResult(False, f"{item.name} has no effect")

        healing = self.player.stats.health - health_before
        mana = self.player.stats.mana - mana_before
        message = f"{self.player.name} uses {item.name}."
        if healing:
            message += f" Restored {healing} HP."
        if mana:
            message += f" Restored {mana} mana."
        self.state.add_log(message)
        self._sync_player()
        return ItemUseResult(True, message, healing=healing, mana_restored=mana)

    def attempt_flee(self, is_boss_room: Optional[bool] = None) -> FleeResult:
        """50% escape on a d100. Boss fights never allow escape and draw nothing."""
        if is_boss_room is None:
            is_boss_room = self.is_boss_room
        if is_boss_room:
            self.state.add_log("Cannot flee from boss!")
            return FleeResult(False, "Cannot flee from boss!")

        roll = self.rng.next_int(1, 100)
        if roll <= FLEE_CHANCE:
            self.state.status = CombatStatus.FLED
            self.state.add_log("You escaped!")
            return FleeResult(True, "You escaped!", roll)
        self.state.add_log("Failed to escape!")
        return FleeResult(False, "Failed to escape!", roll)

    # =========================================================================
    # Enemy Actions
    # =========================================================================

    def enemy_turn(self) -> Optional[AttackResult]:
        """The current enemy attacks the player. None when it is not an enemy's turn."""
        current = self.get_current_turn()
        if current is None or current.combatant.is_player:
            return None
        return self.enemy_attack(current.combatant.id)

    def enemy_attack(self, enemy_id: str) -> AttackResult:
        enemy = self._require_enemy(enemy_id)
        attacker = self._enemy_view(enemy)
        defender = self._player_view()
        player_defense = self.player.get_defense()

        roll = self.roll_attack(self.get_enemy_attack_bonus(enemy), player_defense)
        result = AttackResult(attacker, defender, roll)

        if roll.is_hit:
            damage = self.calculate_damage(
                enemy.attack_power,
                get_enemy_damage_dice(enemy.challenge_rating),
                player_defense,
                ENEMY_CRIT_CHANCE,
                ENEMY_CRIT_MULTIPLIER,
                roll.is_natural_20,
            )
            percent = 100 + self.get_effective_attack_modifier(enemy.id)
            final = max(1, math.floor(damage.final_damage * percent / 100))
            damage.final_damage = max(
                1, math.floor(final * self.get_damage_received_modifier(self.player.id))
            )
            result.damage = damage

            self._break_sleep(self.player.id)
            # Defense was already applied by the roll above
            self.damage_taken += self.player.lose_health(damage.final_damage)
            self._sync_player()
            result.defender_died = not self.player.is_alive

            if damage.is_critical:
                self.state.add_log(
                    f"{attacker.name} CRITICALLY hits {defender.name} for {damage.final_damage} damage!"
                )
            else:
                self.state.add_log(
                    f"{attacker.name} hits {defender.name} for {damage.final_damage} damage."
                )
            if result.defender_died:
                self.state.add_log(f"{defender.name} has fallen!")
        elif roll.is_natural_1:
            self.state.add_log(f"{attacker.name} critically misses {defender.name}!")
        else:
            self.state.add_log(f"{attacker.name} misses {defender.name}.")

        self._check_combat_end()
        return result
