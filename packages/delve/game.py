"""
Game Runner - Main orchestrator for a delve run.

This module provides the GameRunner class that manages a complete game from
seed to victory/defeat. It handles:
- Run initialization with seed, class and dungeon generation
- Room graph navigation (path locking, unlocking the next level)
- Room dispatch by phase (combat, shop, event, rest, puzzle, treasure)
- Turn-by-turn combat through CombatEngine
- Game statistics and decision logging
- Abstract action interface for bot/CLI integration

Usage:
    runner = GameRunner(seed="abc", player_class=PlayerClass.WARLOCK)
    runner.start_new_game()
    stats = asyncio.run(runner.auto_play())  # Greedy policy to completion
    # OR manual control:
    while not runner.game_over:
        actions = runner.get_available_actions()
        asyncio.run(runner.take_action(actions[0]))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .combat_engine import CombatEngine, CombatResult
from .config import GameConfig
from .content.items import ItemType
from .content.monsters import LocalMonsterProvider, MonsterProvider
from .dungeon.room import Reward, Room, RoomState, RoomType
from .generation.dungeon import Dungeon, DungeonGenerator, dungeon_to_string, validate_connectivity
from .handlers.rooms import (
    EQUIPMENT_SLOTS,
    EventHandler,
    InteractionHandler,
    InventoryHandler,
    PuzzleHandler,
    RestHandler,
    ShopHandler,
)
from .state.combat import CombatStatus, FleeResult
from .state.player import Player, PlayerClass, create_player
from .state.rng import Random, generate_random_string


logger = logging.getLogger(__name__)

SEED_LENGTH = 12
DEFAULT_MAX_STEPS = 2000

# Greedy policy thresholds (fractions of max health)
LOW_HEALTH = 0.35
HURT = 0.5


# =============================================================================
# Game Phase Enumeration
# =============================================================================

class GamePhase(Enum):
    """Current phase of the game."""
    EXPLORATION = "exploration"  # Choosing the next room, looting
    COMBAT = "combat"            # In a combat encounter
    SHOP = "shop"                # Buying and selling
    EVENT = "event"              # Mysterious event pending
    REST = "rest"                # At a campfire
    PUZZLE = "puzzle"            # Puzzle pending
    TREASURE = "treasure"        # Treasure room
    GAME_OVER = "game_over"      # Player died
    VICTORY = "victory"          # Boss room cleared


TERMINAL_PHASES = (GamePhase.GAME_OVER, GamePhase.VICTORY)


# =============================================================================
# Action Types
# =============================================================================

@dataclass(frozen=True)
class MoveAction:
    """Move to a connected room."""
    room_id: str


@dataclass(frozen=True)
class InteractAction:
    """Use an interactable in the current room (a trap means disarming it)."""
    interactable_id: str


@dataclass(frozen=True)
class SearchAction:
    """Search the current room for hidden traps."""


@dataclass(frozen=True)
class AttackAction:
    """Basic attack on an enemy."""
    target_id: str


@dataclass(frozen=True)
class AbilityAction:
    ability_id: str
    target_id: Optional[str] = None


@dataclass(frozen=True)
class UseItemAction:
    """Use a consumable (in or out of combat)."""
    item_id: str


@dataclass(frozen=True)
class FleeAction:
    pass


@dataclass(frozen=True)
class BuyAction:
    item_id: str


@dataclass(frozen=True)
class SellAction:
    item_id: str


@dataclass(frozen=True)
class LeaveAction:
    """Leave a shop, rest site or treasure room, completing it."""


@dataclass(frozen=True)
class RestAction:
    pass


@dataclass(frozen=True)
class AcceptEventAction:
    pass


@dataclass(frozen=True)
class PuzzleAnswerAction:
    answer_index: int


@dataclass(frozen=True)
class SkipPuzzleAction:
    pass


@dataclass(frozen=True)
class EquipAction:
    item_id: str


@dataclass(frozen=True)
class UnequipAction:
    slot: str  # "weapon", "armor", "accessory"


@dataclass(frozen=True)
class RestartAction:
    pass


@dataclass(frozen=True)
class QuitAction:
    pass


@dataclass(frozen=True)
class ViewStatsAction:
    pass


GameAction = Union[
    MoveAction, InteractAction, SearchAction, AttackAction, AbilityAction,
    UseItemAction, FleeAction, BuyAction, SellAction, LeaveAction, RestAction,
    AcceptEventAction, PuzzleAnswerAction, SkipPuzzleAction, EquipAction,
    UnequipAction, RestartAction, QuitAction, ViewStatsAction,
]

COMBAT_ACTIONS = (AttackAction, AbilityAction, FleeAction)


# =============================================================================
# Statistics and Decision Log
# =============================================================================

@dataclass
class GameStats:
    """Running totals for one game."""
    rooms_cleared: int = 0
    enemies_defeated: int = 0
    gold_collected: int = 0
    items_found: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "rooms_cleared": self.rooms_cleared,
            "enemies_defeated": self.enemies_defeated,
            "gold_collected": self.gold_collected,
            "items_found": self.items_found,
        }


@dataclass
class DecisionLogEntry:
    """Record of a decision made during the run."""
    turn: int
    level: int
    phase: GamePhase
    action_taken: GameAction
    available_actions: List[GameAction]
    state_snapshot: Dict[str, Any]  # Relevant state at time of decision
    result: Optional[Dict[str, Any]] = None  # Outcome of the action


# =============================================================================
# Game Runner
# =============================================================================

class GameRunner:
    """
    Main orchestrator for a delve run.

    Owns the session RNG, the player, the dungeon and the active combat.
    Every random draw in a run goes through self.rng, so a seed replays the
    same dungeon and the same fights for the same sequence of actions.
    """

    def __init__(
        self,
        seed: Optional[Union[str, int]] = None,
        player_class: Union[PlayerClass, str] = PlayerClass.FIGHTER,
        player_name: str = "Hero",
        config: Optional[GameConfig] = None,
        monster_provider: Optional[MonsterProvider] = None,
        verbose: bool = False,
    ):
        """
        Initialize a new game run. Call start_new_game() to build the dungeon.

        Args:
            seed: Seed string or number; falls back to config.seed, then random
            player_class: PlayerClass or its name ("fighter", "warlock")
            player_name: Display name
            config: Generation settings (defaults to GameConfig())
            monster_provider: Async enemy lookup (defaults to the local table)
            verbose: If True, game events are logged at INFO instead of DEBUG
        """
        self.config = config or GameConfig()
        self.verbose = verbose

        if seed is None:
            seed = self.config.seed or generate_random_string(SEED_LENGTH)
        self.seed = seed
        self.rng = Random(seed)

        if isinstance(player_class, str):
            try:
                player_class = PlayerClass(player_class.strip().lower())
            except ValueError:
                raise ValueError(f"Unknown player class: {player_class}") from None
        self.player_class = player_class
        self.player_name = player_name
        self.player: Player = create_player(player_name, player_class)

        self.monster_provider: MonsterProvider = monster_provider or LocalMonsterProvider()

        self.dungeon: Optional[Dungeon] = None
        self.phase = GamePhase.EXPLORATION
        self.stats = GameStats()
        self.turn = 0

        # Game status flags
        self.game_over = False
        self.game_won = False
        self.game_lost = False

        # Combat state (when in combat)
        self.combat: Optional[CombatEngine] = None
        self.last_combat_result: Optional[CombatResult] = None
        self.last_room_rewards: Optional[Reward] = None

        self.decision_log: List[DecisionLogEntry] = []
        self._searched_rooms: set = set()

    def _log(self, message: str):
        """Log a game event; INFO when verbose, DEBUG otherwise."""
        logger.log(logging.INFO if self.verbose else logging.DEBUG, message)

    # =========================================================================
    # Run Setup
    # =========================================================================

    def start_new_game(self) -> Dungeon:
        """
        Generate the dungeon and stand the player in the entrance.

        Connectivity problems are logged, not raised: the run still starts.
        """
        generator = DungeonGenerator(self.rng, self.config.generator_config())
        dungeon = generator.generate()
        for issue in validate_connectivity(dungeon):
            logger.warning("Dungeon connectivity (seed %s): %s", self.seed, issue)

        self.dungeon = dungeon
        self.phase = GamePhase.EXPLORATION
        self.combat = None
        self.game_over = self.game_won = self.game_lost = False

        entrance = dungeon.entrance
        dungeon.current_room_id = entrance.id
        entrance.enter(self.rng)
        self._unlock_deeper_neighbors(entrance)

        self._log("=== Game Started ===")
        self._log(f"Seed: {self.seed}")
        self._log(f"Class: {self.player_class.value}")
        self._log(f"Levels: {dungeon.total_levels}, rooms: {len(dungeon.rooms)}")
        return dungeon

    def restart(self) -> Dungeon:
        """New player and statistics; the dungeon is regenerated from the ongoing RNG."""
        self.player = create_player(self.player_name, self.player_class)
        self.stats = GameStats()
        self.turn = 0
        self.last_combat_result = None
        self.last_room_rewards = None
        self._searched_rooms = set()
        return self.start_new_game()

    def _require_dungeon(self) -> Dungeon:
        if self.dungeon is None:
            raise ValueError("No game in progress")
        return self.dungeon

    @property
    def current_room(self) -> Optional[Room]:
        return self.dungeon.current_room if self.dungeon else None

    # =========================================================================
    # Navigation
    # =========================================================================

    async def move_to_room(self, room_id: str) -> Room:
        """
        Move into a connected room and set the phase for it.

        Leaving an active room clears it: with its reward when nothing living
        remains, without one when the player fled. Choosing a room locks the
        sibling rooms on its level and every deeper available room it does
        not connect to, then unlocks its deeper neighbors. Hostile rooms load
        their enemies before the phase is decided.

        Raises:
            ValueError: unknown room, not connected, or not enterable
        """
        dungeon = self._require_dungeon()
        target = dungeon.rooms.get(room_id)
        if target is None:
            raise ValueError(f"Room {room_id} not found")

        current = dungeon.current_room
        if current is not None and not current.is_connected_to(room_id):
            raise ValueError(f"Room {room_id} is not connected to current room")
        if not target.can_enter():
            raise ValueError(f"Room {room_id} cannot be entered")

        if current is not None and current.state == RoomState.ACTIVE:
            self._leave_room(current)

        for other in dungeon.rooms.values():
            if other is target or other.state != RoomState.AVAILABLE:
                continue
            if other.level == target.level:
                other.state = RoomState.LOCKED
            elif other.level > target.level and not target.is_connected_to(other.id):
                other.state = RoomState.LOCKED

        dungeon.current_room_id = target.id
        target.enter(self.rng)
        self._unlock_deeper_neighbors(target)

        if target.is_hostile:
            await target.ensure_enemies_loaded(self.monster_provider, self.rng)

        self.phase = self._phase_for_room(target)
        self._log(f"Entered {target.type.value} room {target.id} (level {target.level})")
        if self.phase == GamePhase.COMBAT:
            self.initialize_combat()
        return target

    def _leave_room(self, room: Room) -> None:
        if room.living_enemies:
            # Fled: the room is abandoned and pays nothing
            room.state = RoomState.CLEARED
            self.stats.rooms_cleared += 1
        else:
            self.complete_room()

    def _unlock_deeper_neighbors(self, room: Room) -> None:
        for neighbor in self._require_dungeon().neighbors(room.id):
            if neighbor.state == RoomState.LOCKED and neighbor.level > room.level:
                neighbor.state = RoomState.AVAILABLE

    @staticmethod
    def _phase_for_room(room: Room) -> GamePhase:
        if room.is_hostile:
            return GamePhase.COMBAT if room.living_enemies else GamePhase.EXPLORATION
        if room.type == RoomType.SHOP:
            return GamePhase.SHOP
        if room.type == RoomType.REST:
            return GamePhase.REST
        if room.type == RoomType.EVENT:
            return GamePhase.EVENT
        if room.type == RoomType.PUZZLE:
            puzzle = room.puzzle
            if puzzle is not None and not puzzle.solved and not puzzle.is_locked:
                return GamePhase.PUZZLE
            return GamePhase.EXPLORATION
        if room.type == RoomType.TREASURE:
            return GamePhase.TREASURE
        return GamePhase.EXPLORATION

    def complete_room(self) -> Reward:
        """
        Clear the current room and grant its reward.

        Raises:
            ValueError: no current room, room not active, or enemies remain
        """
        room = self.current_room
        if room is None:
            raise ValueError("No current room")
        reward = room.complete()

        self.player.add_gold(reward.gold)
        level_up = self.player.add_experience(reward.experience)
        for item in reward.items:
            self.player.add_to_inventory(item)
        if reward.health_restore:
            self.player.heal(reward.health_restore)

        self.stats.gold_collected += reward.gold
        self.stats.items_found += len(reward.items)
        self.stats.enemies_defeated += len(room.enemies)
        self.stats.rooms_cleared += 1
        self.last_room_rewards = reward

        if level_up.levels_gained:
            self._log(f"Level up! Now level {self.player.level}")

        self.combat = None
        if room.type == RoomType.BOSS:
            self.phase = GamePhase.VICTORY
            self.game_over = True
            self.game_won = True
            self._log("=== VICTORY ===")
        else:
            self.phase = GamePhase.EXPLORATION
        return reward

    def _clear_without_reward(self, room: Room) -> None:
        room.complete()
        self.stats.rooms_cleared += 1
        self.phase = GamePhase.EXPLORATION

    # =========================================================================
    # Combat
    # =========================================================================

    def initialize_combat(self) -> CombatEngine:
        """
        Start combat against the current room's living enemies.

        Runs any enemy turns that come before the player's first turn.

        Raises:
            ValueError: no current room, or no living enemies in it
        """
        room = self.current_room
        if room is None:
            raise ValueError("Cannot initialize combat: No current room")
        enemies = room.living_enemies
        if not enemies:
            raise ValueError("Cannot initialize combat: No enemies in room")

        engine = CombatEngine(
            self.player, enemies, self.rng, is_boss_room=room.type == RoomType.BOSS
        )
        self.combat = engine
        self.phase = GamePhase.COMBAT
        self._log(f"Combat: {', '.join(e.name for e in enemies)}")
        self._advance_to_player_turn()
        return engine

    def _advance_to_player_turn(self) -> None:
        """
        Process turns until the player can act or the fight ends.

        Each combatant's turn starts with status effect processing. Enemies
        act immediately; an incapacitated combatant, or one that died to its
        own effects, is skipped.
        """
        combat = self.combat
        while not combat.is_combat_over():
            entry = combat.get_current_turn()
            tick = combat.start_turn()
            if combat.is_combat_over():
                break
            if not tick.skip_turn:
                if entry.combatant.is_player:
                    return
                combat.enemy_turn()
                if combat.is_combat_over():
                    break
            combat.next_turn()
        self.handle_combat_end()

    def run_combat_turn(self, action: GameAction) -> Dict[str, Any]:
        """
        Execute the player's combat action, then run enemy turns.

        A rejected action (bad target, cooldown, no mana) does not use up
        the player's turn.
        """
        combat = self.combat
        if self.phase != GamePhase.COMBAT or combat is None:
            return {"success": False, "message": "Not in combat"}

        if isinstance(action, AttackAction):
            if action.target_id not in combat.get_valid_targets():
                return {"success": False, "message": "Invalid target"}
            attack = combat.player_attack(action.target_id)
            if not attack.attack_roll.is_hit:
                message = f"You miss {attack.defender.name}."
            else:
                message = f"You hit {attack.defender.name} for {attack.damage.final_damage} damage."
            result = {"success": True, "message": message, "hit": attack.attack_roll.is_hit}
        elif isinstance(action, AbilityAction):
            ability = combat.player_use_ability(action.ability_id, action.target_id)
            if not ability.success:
                return {"success": False, "message": ability.message}
            result = {"success": True, "message": ability.message, "damage": ability.damage}
        elif isinstance(action, UseItemAction):
            used = combat.player_use_item(action.item_id)
            if not used.success:
                return {"success": False, "message": used.message}
            result = {"success": True, "message": used.message}
        elif isinstance(action, FleeAction):
            flee = self.attempt_flee()
            if not flee.success and flee.roll is None:
                return {"success": False, "message": flee.message}
            return {"success": True, "message": flee.message, "escaped": flee.success}
        else:
            return {"success": False, "message": f"Not a combat action: {action}"}

        if combat.is_combat_over():
            self.handle_combat_end()
        else:
            combat.next_turn()
            self._advance_to_player_turn()
        return result

    def attempt_flee(self) -> FleeResult:
        """Try to escape; a failed attempt costs the player's turn."""
        combat = self.combat
        if self.phase != GamePhase.COMBAT or combat is None:
            return FleeResult(False, "Not in combat")

        result = combat.attempt_flee()
        if result.success:
            self.handle_combat_end()
        elif result.roll is not None:
            combat.next_turn()
            self._advance_to_player_turn()
        return result

    def handle_combat_end(self) -> None:
        """Resolve a finished fight: clear the room, end the run, or walk away."""
        combat = self.combat
        if combat is None or not combat.is_combat_over():
            return
        self.last_combat_result = combat.get_result()
        status = combat.get_status()

        if status == CombatStatus.VICTORY:
            self._log(f"Combat won in {combat.state.round} rounds")
            self.complete_room()
        elif status == CombatStatus.DEFEAT:
            self.handle_player_death()
        elif status == CombatStatus.FLED:
            self._log("Fled from combat")
            self.combat = None
            self.phase = GamePhase.EXPLORATION

    def handle_player_death(self) -> None:
        self.combat = None
        self.phase = GamePhase.GAME_OVER
        self.game_over = True
        self.game_lost = True
        room = self.current_room
        self._log(f"=== GAME OVER === ({room.id if room else 'no room'}, level {room.level if room else 0})")

    # =========================================================================
    # Action Interface
    # =========================================================================

    def get_available_actions(self) -> List[GameAction]:
        """
        Get all valid actions for the current game state.

        Returns:
            List of valid GameAction objects
        """
        if self.dungeon is None:
            return []

        if self.phase == GamePhase.EXPLORATION:
            return self._get_exploration_actions()
        if self.phase == GamePhase.COMBAT:
            return self._get_combat_actions()
        if self.phase == GamePhase.SHOP:
            return self._get_shop_actions()
        if self.phase == GamePhase.EVENT:
            return [AcceptEventAction()]
        if self.phase == GamePhase.REST:
            return [RestAction(), LeaveAction()]
        if self.phase == GamePhase.PUZZLE:
            return self._get_puzzle_actions()
        if self.phase == GamePhase.TREASURE:
            return self._get_interact_actions() + [LeaveAction()]
        if self.phase == GamePhase.GAME_OVER:
            return [RestartAction(), QuitAction()]
        if self.phase == GamePhase.VICTORY:
            return [ViewStatsAction(), RestartAction()]
        return []

    def _get_exploration_actions(self) -> List[GameAction]:
        room = self.current_room
        actions: List[GameAction] = [
            MoveAction(neighbor.id)
            for neighbor in self.dungeon.neighbors(room.id)
            if neighbor.can_enter()
        ]
        actions.extend(self._get_interact_actions())
        if room.id not in self._searched_rooms:
            actions.append(SearchAction())
        actions.extend(self._get_inventory_actions())
        return actions

    def _get_interact_actions(self) -> List[GameAction]:
        room = self.current_room
        return [InteractAction(obj.id) for obj in room.available_interactables()]

    def _get_inventory_actions(self) -> List[GameAction]:
        actions: List[GameAction] = []
        for item in self.player.inventory:
            if item.type == ItemType.CONSUMABLE:
                actions.append(UseItemAction(item.id))
            elif item.is_equipment:
                actions.append(EquipAction(item.id))
        for slot_name, slot in EQUIPMENT_SLOTS.items():
            if self.player.equipment.get(slot) is not None:
                actions.append(UnequipAction(slot_name))
        return actions

    def _get_combat_actions(self) -> List[GameAction]:
        combat = self.combat
        if combat is None or not combat.is_player_turn():
            return []

        targets = combat.get_valid_targets()
        actions: List[GameAction] = [AttackAction(t) for t in targets]

        for ability in self.player.get_all_abilities():
            if ability.current_cooldown > 0 or self.player.stats.mana < ability.mana_cost:
                continue
            if combat.ability_needs_target(ability):
                if targets and not combat.ability_requirement(ability, combat.find_enemy(targets[0])):
                    actions.extend(AbilityAction(ability.id, t) for t in targets)
            elif not combat.ability_requirement(ability):
                actions.append(AbilityAction(ability.id))

        actions.extend(
            UseItemAction(item.id)
            for item in self.player.inventory
            if item.type == ItemType.CONSUMABLE and item.consume_effect is not None
        )
        if not combat.is_boss_room:
            actions.append(FleeAction())
        return actions

    def _get_shop_actions(self) -> List[GameAction]:
        room = self.current_room
        actions: List[GameAction] = [
            BuyAction(entry.item.id)
            for entry in room.shop_inventory or []
            if entry.buy_price <= self.player.gold
        ]
        actions.extend(SellAction(item.id) for item in self.player.inventory)
        actions.append(LeaveAction())
        return actions

    def _get_puzzle_actions(self) -> List[GameAction]:
        puzzle = self.current_room.puzzle
        actions: List[GameAction] = []
        if puzzle is not None:
            actions.extend(PuzzleAnswerAction(i) for i in range(len(puzzle.options)))
        actions.append(SkipPuzzleAction())
        return actions

    async def take_action(self, action: GameAction) -> bool:
        """
        Execute an action and advance the game state.

        Args:
            action: The action to take

        Returns:
            True if action was valid and executed, False otherwise
        """
        if self.dungeon is None:
            raise ValueError("No game in progress")

        room = self.current_room
        log_entry = DecisionLogEntry(
            turn=self.turn,
            level=room.level if room else 0,
            phase=self.phase,
            action_taken=action,
            available_actions=self.get_available_actions(),
            state_snapshot=self._create_state_snapshot(),
        )

        success, result = await self._dispatch(action)

        if success:
            self.turn += 1
        log_entry.result = result
        self.decision_log.append(log_entry)
        self._log(f"[{log_entry.phase.value}] {action}: {result.get('message', '')}")
        return success

    async def _dispatch(self, action: GameAction) -> Tuple[bool, Dict]:
        if isinstance(action, (RestartAction, QuitAction, ViewStatsAction)):
            return self._handle_meta_action(action)
        if self.phase in TERMINAL_PHASES:
            return False, {"message": "The run is over"}

        if isinstance(action, MoveAction):
            return await self._handle_move_action(action)
        if isinstance(action, COMBAT_ACTIONS) or (
            isinstance(action, UseItemAction) and self.phase == GamePhase.COMBAT
        ):
            result = self.run_combat_turn(action)
            return result["success"], result
        if isinstance(action, (InteractAction, SearchAction)):
            return self._handle_interact_action(action)
        if isinstance(action, (UseItemAction, EquipAction, UnequipAction)):
            return self._handle_inventory_action(action)
        if isinstance(action, (BuyAction, SellAction)):
            return self._handle_shop_action(action)
        if isinstance(action, (RestAction, LeaveAction)):
            return self._handle_leave_action(action)
        if isinstance(action, AcceptEventAction):
            return self._handle_event_action(action)
        if isinstance(action, (PuzzleAnswerAction, SkipPuzzleAction)):
            return self._handle_puzzle_action(action)
        return False, {"message": f"Unknown action: {action}"}

    # -------------------------------------------------------------------------
    # Action Handlers
    # -------------------------------------------------------------------------

    async def _handle_move_action(self, action: MoveAction) -> Tuple[bool, Dict]:
        if self.phase != GamePhase.EXPLORATION:
            return False, {"message": f"Cannot move during {self.phase.value}"}
        try:
            room = await self.move_to_room(action.room_id)
        except ValueError as e:
            return False, {"message": str(e)}
        return True, {"message": room.description, "room_type": room.type.value, "phase": self.phase.value}

    def _handle_interact_action(self, action: Union[InteractAction, SearchAction]) -> Tuple[bool, Dict]:
        if self.phase not in (GamePhase.EXPLORATION, GamePhase.TREASURE):
            return False, {"message": f"Cannot do that during {self.phase.value}"}
        room = self.current_room

        if isinstance(action, SearchAction):
            if room.id in self._searched_rooms:
                return False, {"message": "You have already searched this room"}
            self._searched_rooms.add(room.id)
            messages = InteractionHandler.search_room(self.player, room, self.rng)
            return True, {"message": " ".join(messages)}

        outcome = InteractionHandler.interact(
            self.player, room, action.interactable_id, self.stats, self.rng
        )
        if outcome.player_died:
            self.handle_player_death()
        return outcome.success or outcome.player_died, {
            "message": outcome.message,
            "gold": outcome.gold,
            "damage": outcome.damage,
            "items": [item.name for item in outcome.items],
        }

    def _handle_inventory_action(self, action: GameAction) -> Tuple[bool, Dict]:
        if isinstance(action, UseItemAction):
            result = InventoryHandler.use_item(self.player, action.item_id, self.rng)
        elif isinstance(action, EquipAction):
            result = InventoryHandler.equip_item(self.player, action.item_id)
        else:
            result = InventoryHandler.unequip_item(self.player, action.slot)
        return result.success, {"message": result.message}

    def _handle_shop_action(self, action: Union[BuyAction, SellAction]) -> Tuple[bool, Dict]:
        if self.phase != GamePhase.SHOP:
            return False, {"message": "No shop here"}
        if isinstance(action, BuyAction):
            result = ShopHandler.buy_item(self.player, self.current_room, action.item_id, self.stats)
        else:
            result = ShopHandler.sell_item(self.player, action.item_id, self.stats)
        return result.success, {"message": result.message, "gold_change": result.gold_change}

    def _handle_leave_action(self, action: Union[RestAction, LeaveAction]) -> Tuple[bool, Dict]:
        if isinstance(action, RestAction):
            if self.phase != GamePhase.REST:
                return False, {"message": "You can only rest at a campfire"}
            rest = RestHandler.rest(self.player)
            reward = self.complete_room()
            return True, {"message": rest.message, "hp_healed": rest.hp_healed, "gold": reward.gold}

        if self.phase not in (GamePhase.SHOP, GamePhase.REST, GamePhase.TREASURE):
            return False, {"message": "Nothing to leave"}
        reward = self.complete_room()
        return True, {"message": "You left the area", "gold": reward.gold}

    def _handle_event_action(self, action: AcceptEventAction) -> Tuple[bool, Dict]:
        if self.phase != GamePhase.EVENT:
            return False, {"message": "No event here"}
        result = EventHandler.execute_event(self.player, self.current_room, self.stats)
        if not result.success:
            return False, {"message": result.message}
        if result.player_died:
            self.handle_player_death()
        else:
            self.complete_room()
        return True, {
            "message": result.message,
            "outcome": result.outcome_type.value if result.outcome_type else None,
        }

    def _handle_puzzle_action(self, action: Union[PuzzleAnswerAction, SkipPuzzleAction]) -> Tuple[bool, Dict]:
        if self.phase != GamePhase.PUZZLE:
            return False, {"message": "No puzzle here"}
        room = self.current_room

        if isinstance(action, SkipPuzzleAction):
            result = PuzzleHandler.skip_puzzle(room)
        else:
            result = PuzzleHandler.attempt_answer(self.player, room, action.answer_index, self.stats)
            if not result.success and not result.room_complete and result.remaining_attempts is None:
                return False, {"message": result.message}

        # Puzzles pay their own reward; the room itself pays nothing
        if result.room_complete:
            self._clear_without_reward(room)
        return True, {
            "message": result.message,
            "correct": result.success and isinstance(action, PuzzleAnswerAction),
            "remaining_attempts": result.remaining_attempts,
        }

    def _handle_meta_action(self, action: GameAction) -> Tuple[bool, Dict]:
        if isinstance(action, RestartAction):
            self.restart()
            return True, {"message": "A new dungeon awaits"}
        if isinstance(action, QuitAction):
            self.game_over = True
            return True, {"message": "Quit"}
        return True, {"message": "Run statistics", "stats": self.get_run_statistics()}

    # =========================================================================
    # Auto Play
    # =========================================================================

    async def auto_play(self, max_steps: int = DEFAULT_MAX_STEPS) -> Dict[str, Any]:
        """
        Play the run with choose_greedy_action until it ends or max_steps pass.

        Returns:
            Dict with run statistics
        """
        if self.dungeon is None:
            self.start_new_game()

        steps = 0
        while steps < max_steps and not self.game_over:
            actions = self.get_available_actions()
            if not actions:
                self._log("No actions available - ending run")
                break
            await self.take_action(self.choose_greedy_action(actions))
            steps += 1

        return self.get_run_statistics()

    def choose_greedy_action(self, actions: List[GameAction]) -> GameAction:
        """
        Pick an action with a fixed, deterministic policy.

        In combat: drink a healing consumable when low, else spend a ready
        targeted ability, else attack the weakest enemy. Out of combat: fill
        empty equipment slots, loot chests and altars, rest, accept events,
        skip puzzles, then move (preferring rest rooms when hurt and avoiding
        elites).
        """
        player = self.player
        health_ratio = player.stats.health / max(1, player.get_max_health())

        if self.phase == GamePhase.COMBAT:
            if health_ratio < LOW_HEALTH:
                for action in actions:
                    if isinstance(action, UseItemAction) and self._heals(action.item_id):
                        return action
            weakest = self._weakest_target()
            for action in actions:
                if (isinstance(action, AbilityAction) and action.target_id == weakest
                        and action.ability_id != "dark_pact"):
                    return action
            for action in actions:
                if isinstance(action, AttackAction) and action.target_id == weakest:
                    return action
            return actions[0]

        by_type = {type(a): a for a in reversed(actions)}
        if self.phase == GamePhase.REST:
            return by_type[RestAction]
        if self.phase == GamePhase.EVENT:
            return by_type[AcceptEventAction]
        if self.phase == GamePhase.PUZZLE:
            return by_type[SkipPuzzleAction]
        if self.phase in TERMINAL_PHASES:
            return by_type.get(QuitAction, actions[0])

        for action in actions:
            if isinstance(action, EquipAction):
                item = player.find_inventory_item(action.item_id)
                if item is not None and player.equipment.get(item.slot) is None:
                    return action
        for action in actions:
            if isinstance(action, InteractAction) and self._worth_looting(action.interactable_id):
                return action
        if LeaveAction in by_type:
            return by_type[LeaveAction]

        moves = [a for a in actions if isinstance(a, MoveAction)]
        if moves:
            return min(moves, key=lambda a: self._move_preference(a.room_id, health_ratio))
        return actions[0]

    def _heals(self, item_id: str) -> bool:
        item = self.player.find_inventory_item(item_id)
        return bool(item and item.consume_effect and item.consume_effect.healing_dice)

    def _weakest_target(self) -> Optional[str]:
        living = [e for e in self.combat.enemies if e.is_alive] if self.combat else []
        if not living:
            return None
        return min(living, key=lambda e: e.health).id

    def _worth_looting(self, interactable_id: str) -> bool:
        obj = self.current_room.find_interactable(interactable_id)
        return obj is not None and obj.type.value in ("chest", "altar", "lever")

    def _move_preference(self, room_id: str, health_ratio: float) -> int:
        room_type = self.dungeon.rooms[room_id].type
        if health_ratio < HURT:
            order = [RoomType.REST, RoomType.TREASURE, RoomType.SHOP, RoomType.EVENT,
                     RoomType.PUZZLE, RoomType.COMBAT, RoomType.ELITE, RoomType.BOSS]
        else:
            order = [RoomType.TREASURE, RoomType.COMBAT, RoomType.EVENT, RoomType.SHOP,
                     RoomType.PUZZLE, RoomType.REST, RoomType.ELITE, RoomType.BOSS]
        return order.index(room_type) if room_type in order else len(order)

    # =========================================================================
    # Statistics
    # =========================================================================

    def _create_state_snapshot(self) -> Dict[str, Any]:
        """Create a snapshot of relevant game state for logging."""
        room = self.current_room
        return {
            "hp": self.player.stats.health,
            "max_hp": self.player.get_max_health(),
            "mana": self.player.stats.mana,
            "gold": self.player.gold,
            "level": self.player.level,
            "room_id": room.id if room else None,
            "room_level": room.level if room else 0,
            "inventory_size": len(self.player.inventory),
        }

    def get_run_statistics(self) -> Dict[str, Any]:
        """Get statistics for the current run."""
        room = self.current_room
        return {
            "seed": self.seed,
            "player_class": self.player_class.value,
            "game_won": self.game_won,
            "game_lost": self.game_lost,
            "phase": self.phase.value,
            "final_room_level": room.level if room else 0,
            "total_levels": self.dungeon.total_levels if self.dungeon else 0,
            "player_level": self.player.level,
            "final_hp": self.player.stats.health,
            "final_max_hp": self.player.get_max_health(),
            "final_gold": self.player.gold,
            "relic_count": len(self.player.relics),
            "turns": self.turn,
            "decisions_made": len(self.decision_log),
            **self.stats.to_dict(),
        }

    def display_dungeon(self) -> str:
        """ASCII dungeon with room states."""
        return dungeon_to_string(self._require_dungeon(), show_state=True)


# =============================================================================
# Example Usage
# =============================================================================

def main():
    """Run the GameRunner demo."""
    configure_logging(verbose=False)
    print("=== delve Game Runner Demo ===\n")

    runner = GameRunner(seed="abc", player_class=PlayerClass.FIGHTER, verbose=True)
    runner.start_new_game()
    print(runner.display_dungeon())

    stats = asyncio.run(runner.auto_play())

    print("\n=== Run Statistics ===")
    for key, value in stats.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
