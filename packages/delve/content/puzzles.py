"""
Puzzles - multiple-choice challenges found in PUZZLE rooms.

Three puzzle kinds:
    riddle   (50%) - a fixed riddle with four answers
    math     (30%) - addition, multiplication or subtraction scaled by level
    sequence (20%) - pick the elemental sequence that was shown

Each puzzle allows three attempts. Solving it on a later attempt lowers the
reward multiplier by 0.25 per extra attempt, down to 0.5.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..state.rng import Random, generate_random_string, resolve_rng

MAX_ATTEMPTS = 3
BASE_PUZZLE_XP = 50
BASE_PUZZLE_GOLD = 30


class PuzzleType(Enum):
    RIDDLE = "riddle"
    SEQUENCE = "sequence"
    MATH = "math"


# (question, options, correct index, hint)
RIDDLES: List[Tuple[str, List[str], int, str]] = [
    (
        "I have cities, but no houses live there. I have mountains, but no trees grow there. "
        "I have water, but no fish swim there. What am I?",
        ["A painting", "A map", "A dream", "A mirror"], 1,
        "Adventurers use me to find their way.",
    ),
    (
        "The more you take, the more you leave behind. What am I?",
        ["Memories", "Footsteps", "Breaths", "Time"], 1,
        "Look down as you walk.",
    ),
    (
        "I speak without a mouth and hear without ears. I have no body, but I come alive "
        "with the wind. What am I?",
        ["A ghost", "An echo", "A shadow", "A whisper"], 1,
        "Shout into a canyon and you will hear me.",
    ),
    (
        "What has keys but no locks, space but no room, and you can enter but can't go inside?",
        ["A keyboard", "A piano", "A treasure chest", "A riddle"], 0,
        "Scribes tap on me all day.",
    ),
    (
        "I am not alive, but I grow. I don't have lungs, but I need air. What am I?",
        ["A crystal", "Fire", "A shadow", "Moss"], 1,
        "Dragons breathe me.",
    ),
    (
        "What can travel around the world while staying in a corner?",
        ["A spider", "A stamp", "A shadow", "The wind"], 1,
        "You will find me on letters and parcels.",
    ),
    (
        "The more of me there is, the less you see. What am I?",
        ["Fog", "Darkness", "Smoke", "All of these"], 3,
        "Rogues love to hide in me.",
    ),
    (
        "I have hands but cannot clap. What am I?",
        ["A statue", "A clock", "A tree", "A puppet"], 1,
        "I tell you when it is time for adventure.",
    ),
]

SEQUENCE_ELEMENTS = ["Fire", "Water", "Earth", "Air", "Light", "Shadow"]
SEQUENCE_SYMBOLS = ["🔥", "💧", "🌍", "💨", "✨", "🌑"]


@dataclass
class Puzzle:
    id: str
    type: PuzzleType
    title: str
    question: str
    options: List[str]
    correct_index: int
    hint: str
    solved: bool = False
    attempts: int = 0
    max_attempts: int = MAX_ATTEMPTS
    reward_multiplier: float = 1.0

    @property
    def remaining_attempts(self) -> int:
        return self.max_attempts - self.attempts

    @property
    def is_locked(self) -> bool:
        """Out of attempts without a solution."""
        return not self.solved and self.attempts >= self.max_attempts

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "question": self.question,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "hint": self.hint,
            "solved": self.solved,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "reward_multiplier": self.reward_multiplier,
        }


def puzzle_from_dict(data: Dict) -> Puzzle:
    fields = dict(data)
    fields["type"] = PuzzleType(fields["type"])
    return Puzzle(**fields)


@dataclass
class PuzzleSolveResult:
    correct: bool
    complete: bool
    message: str
    remaining_attempts: Optional[int] = None


# ============================================================================
# GENERATION
# ============================================================================


def generate_math_puzzle(level: int, rng: Random) -> Tuple[str, List[str], int, str]:
    max_num = 10 + level * 2
    kind = rng.next_int(0, 2)

    if kind == 0:
        a, b = rng.next_int(5, max_num), rng.next_int(5, max_num)
        answer = a + b
        question = f"A warrior has {a} swords. He finds {b} more in a chest. How many swords does he have now?"
        hint = "Add them together."
    elif kind == 1:
        cap = min(12, 5 + level // 3)
        a, b = rng.next_int(2, cap), rng.next_int(2, cap)
        answer = a * b
        question = f"A dungeon has {a} floors. Each floor has {b} rooms. How many rooms are there in total?"
        hint = "Multiply the numbers."
    else:
        a = rng.next_int(20, max_num * 2)
        b = rng.next_int(5, a - 5)
        answer = a - b
        question = f"A mage has {a} mana. She casts a spell costing {b} mana. How much mana remains?"
        hint = "Subtract to find what is left."

    wrong = [
        answer + rng.next_int(1, 5),
        answer - rng.next_int(1, 5),
        answer + rng.next_int(6, 10),
    ]
    wrong = [w for w in wrong if w != answer and w > 0]

    options = rng.shuffle([str(answer)] + [str(w) for w in wrong])
    return question, options, options.index(str(answer)), hint


def generate_sequence_puzzle(level: int, rng: Random) -> Tuple[str, List[str], int, str]:
    length = min(3 + level // 5, 5)
    count = len(SEQUENCE_ELEMENTS)
    sequence = [rng.next_int(0, count - 1) for _ in range(length)]

    def spell(indices) -> str:
        return ", ".join(SEQUENCE_ELEMENTS[i] for i in indices)

    correct = spell(sequence)
    options = rng.shuffle([
        correct,
        spell(reversed(sequence)),
        spell((i + 1) % count for i in sequence),
        spell((i + 2) % count for i in sequence),
    ])
    question = "Repeat the sequence: " + " → ".join(SEQUENCE_SYMBOLS[i] for i in sequence)
    return question, options, options.index(correct), "Follow the symbols in order."


def generate_puzzle(level: int, rng: Optional[Random] = None) -> Puzzle:
    """Roll a puzzle for a dungeon level."""
    rng = resolve_rng(rng)
    roll = rng.next_float()

    if roll < 0.5:
        puzzle_type = PuzzleType.RIDDLE
        question, options, correct, hint = rng.choice(RIDDLES)
        options = list(options)
        title = "Ancient Riddle"
    elif roll < 0.8:
        puzzle_type = PuzzleType.MATH
        question, options, correct, hint = generate_math_puzzle(level, rng)
        title = "Numerical Challenge"
    else:
        puzzle_type = PuzzleType.SEQUENCE
        question, options, correct, hint = generate_sequence_puzzle(level, rng)
        title = "Elemental Sequence"

    return Puzzle(
        id=f"puzzle-{generate_random_string(8, rng)}",
        type=puzzle_type,
        title=title,
        question=question,
        options=options,
        correct_index=correct,
        hint=hint,
    )


# ============================================================================
# SOLVING
# ============================================================================


def attempt_puzzle(puzzle: Puzzle, answer_index: int) -> PuzzleSolveResult:
    """Record an attempt. A solved puzzle reports success without counting."""
    if puzzle.solved:
        return PuzzleSolveResult(True, True, "This puzzle has already been solved.")

    puzzle.attempts += 1

    if answer_index == puzzle.correct_index:
        puzzle.solved = True
        puzzle.reward_multiplier = max(0.5, 1.0 - (puzzle.attempts - 1) * 0.25)
        if puzzle.attempts == 1:
            message = "Brilliant! You solved it on the first try!"
        else:
            message = f"Correct! Solved in {puzzle.attempts} attempts."
        return PuzzleSolveResult(True, True, message)

    remaining = puzzle.remaining_attempts
    if remaining <= 0:
        answer = puzzle.options[puzzle.correct_index]
        return PuzzleSolveResult(
            False, True, f"Wrong! The puzzle locks itself. The answer was: {answer}", 0,
        )

    plural = "s" if remaining > 1 else ""
    return PuzzleSolveResult(
        False, False, f"Incorrect. {remaining} attempt{plural} remaining. Hint: {puzzle.hint}", remaining,
    )


def puzzle_rewards(puzzle: Puzzle, level: int) -> Tuple[int, int]:
    """(xp, gold) for a solved puzzle."""
    xp = math.floor(BASE_PUZZLE_XP * level * puzzle.reward_multiplier)
    gold = math.floor(BASE_PUZZLE_GOLD * level * puzzle.reward_multiplier)
    return xp, gold
