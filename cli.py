#!/usr/bin/env python3
"""
delve - Command Line Interface

CLI for generating, inspecting and auto-playing seeded dungeons.
Settings come from DELVE_* environment variables (and .env); flags override.

Usage:
    python cli.py generate --seed abc --levels 20
    python cli.py rng --seed abc --count 20
    python cli.py report --seed abc --output dungeon.html
    python cli.py play --seed abc --class warlock --save run.json
    python cli.py play --load run.json
    python cli.py serve --port 8000
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict

from packages.delve.config import GameConfig, configure_logging
from packages.delve.game import GameRunner
from packages.delve.generation.dungeon import (
    DungeonGenerator,
    dungeon_to_string,
    validate_connectivity,
)
from packages.delve.save import load_game, save_game
from packages.delve.state.rng import Random, seed_to_int


# =============================================================================
# CONFIG
# =============================================================================

def build_config(args) -> GameConfig:
    """Environment config with any command-line flags applied on top."""
    config = GameConfig.from_env()
    overrides = {
        "seed": getattr(args, "seed", None),
        "total_levels": getattr(args, "levels", None),
        "branching_factor": getattr(args, "branching", None),
        "convergence_rate": getattr(args, "convergence", None),
        "player_class": getattr(args, "player_class", None),
        "player_name": getattr(args, "name", None),
        "host": getattr(args, "host", None),
        "port": getattr(args, "port", None),
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    return config


def format_stats(stats: Dict[str, Any]) -> str:
    width = max(len(key) for key in stats)
    return "\n".join(f"  {key.ljust(width)}  {value}" for key, value in stats.items())


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_generate(args) -> int:
    """Generate a dungeon and print it with its connectivity report."""
    config = build_config(args)
    seed = config.seed or "abc"
    try:
        dungeon = DungeonGenerator(Random(seed), config.generator_config()).generate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    issues = validate_connectivity(dungeon)

    if args.json:
        print(json.dumps({"seed": seed, "issues": issues, **dungeon.to_dict()}, indent=2))
    else:
        print(f"Seed: {seed}")
        print(f"Levels: {dungeon.total_levels}, rooms: {len(dungeon.rooms)}")
        print()
        print(dungeon_to_string(dungeon))
        print()
        if issues:
            print("Connectivity issues:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("Connectivity: OK")

    return 1 if issues else 0


def cmd_rng(args) -> int:
    """Display the RNG sequence for a seed."""
    seed = args.seed
    count = args.count

    rng = Random(seed)
    raw = [rng.next() for _ in range(count)]
    int_rng = Random(seed)
    ints = [int_rng.next_int(1, 100) for _ in range(count)]
    first_float = Random(seed).next_float()

    if args.json:
        print(json.dumps({
            "seed": seed,
            "numeric_seed": seed_to_int(seed),
            "next": raw,
            "next_int_1_100": ints,
            "first_float": first_float,
        }, indent=2))
        return 0

    print(f"Seed: {seed} (numeric: {seed_to_int(seed)})")
    print()
    print(f"First {count} next() values:")
    for i, value in enumerate(raw):
        print(f"  {i}: {value}")
    print()
    print(f"First {count} next_int(1, 100) values:")
    print("  " + " ".join(str(v) for v in ints))
    print(f"\nFirst next_float(): {first_float:.6f}")
    print(f"RNG counter after {count} calls: {rng.counter}")
    return 0


def cmd_report(args) -> int:
    """Write the HTML dungeon report to a file."""
    from web.server import build_dungeon, render_report

    config = build_config(args)
    seed = config.seed or "abc"
    try:
        dungeon = build_dungeon(seed, config.total_levels, config.branching_factor, config.convergence_rate)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output = Path(args.output or f"dungeon_{seed}.html")
    output.write_text(render_report(dungeon, seed))
    print(f"Report written to {output}")
    return 0


def cmd_play(args) -> int:
    """Auto-play a run with the greedy policy."""
    config = build_config(args)

    try:
        if args.load:
            runner = load_game(args.load, config)
            runner.verbose = args.verbose
        else:
            runner = GameRunner(
                seed=config.seed,
                player_class=config.player_class,
                player_name=config.player_name,
                config=config,
                verbose=args.verbose,
            )
            runner.start_new_game()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stats = asyncio.run(runner.auto_play(args.max_steps))

    if args.save:
        save_game(runner, args.save)

    if args.json:
        print(json.dumps(stats, indent=2))
    else:
        outcome = "VICTORY" if runner.game_won else "DEFEAT" if runner.game_lost else "UNFINISHED"
        print(f"=== {outcome} ===")
        print(format_stats(stats))
        if args.save:
            print(f"\nSaved to {args.save}")

    return 0 if runner.game_won else 2


def cmd_serve(args) -> int:
    """Start the report server."""
    from web.server import serve

    config = build_config(args)
    serve(config.host, config.port, config.log_level)
    return 0


# =============================================================================
# MAIN
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="delve - seeded dungeon crawler tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s generate --seed abc
  %(prog)s generate --seed abc --levels 10 --branching 4 --json
  %(prog)s rng --seed abc --count 20
  %(prog)s report --seed abc --output abc.html
  %(prog)s play --seed abc --class warlock --save run.json
  %(prog)s play --load run.json
  %(prog)s serve --port 8000
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_dungeon_args(sub):
        sub.add_argument("--seed", "-s", help="Dungeon seed")
        sub.add_argument("--levels", "-l", type=int, help="Total levels (>= 3)")
        sub.add_argument("--branching", "-b", type=int, help="Max rooms per level")
        sub.add_argument("--convergence", "-c", type=float, help="Convergence rate (0-1)")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate and display a dungeon")
    add_dungeon_args(generate_parser)
    generate_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    # RNG command
    rng_parser = subparsers.add_parser("rng", help="Show the RNG sequence for a seed")
    rng_parser.add_argument("--seed", "-s", required=True, help="Seed")
    rng_parser.add_argument("--count", "-n", type=int, default=20, help="Number of values to show")
    rng_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    # Report command
    report_parser = subparsers.add_parser("report", help="Write an HTML dungeon report")
    add_dungeon_args(report_parser)
    report_parser.add_argument("--output", "-o", help="Output file (default dungeon_<seed>.html)")

    # Play command
    play_parser = subparsers.add_parser("play", help="Auto-play a run")
    add_dungeon_args(play_parser)
    play_parser.add_argument("--class", dest="player_class", choices=["fighter", "warlock"],
                             help="Player class")
    play_parser.add_argument("--name", help="Player name")
    play_parser.add_argument("--max-steps", type=int, default=2000, help="Action limit")
    play_parser.add_argument("--save", help="Save the run to this file when done")
    play_parser.add_argument("--load", help="Resume a saved run")
    play_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the report server")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, help="Port")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(GameConfig.from_env().log_level, args.verbose)

    # Dispatch to command handler
    commands = {
        "generate": cmd_generate,
        "rng": cmd_rng,
        "report": cmd_report,
        "play": cmd_play,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
