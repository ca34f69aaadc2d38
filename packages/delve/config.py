"""
Configuration - run settings from the environment, plus logging setup.

Settings are read from DELVE_* environment variables, with a .env file in
the working directory loaded first when present. Command-line flags override
whatever this produces.

    DELVE_SEED              seed string (random when unset)
    DELVE_PLAYER_CLASS      fighter | warlock
    DELVE_PLAYER_NAME       display name
    DELVE_TOTAL_LEVELS      dungeon depth (>= 3)
    DELVE_BRANCHING_FACTOR  max rooms per level
    DELVE_CONVERGENCE_RATE  chance of a second edge between equal layers
    DELVE_SAVE_PATH         save file location
    DELVE_HOST / DELVE_PORT report server address
    DELVE_LOG_LEVEL         DEBUG, INFO, WARNING, ...

Usage:
    config = GameConfig.from_env()
    configure_logging(config.log_level)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .generation.dungeon import DungeonGeneratorConfig


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


@dataclass
class GameConfig:
    """Settings for one run and the tools around it."""
    seed: Optional[str] = None
    player_class: str = "fighter"
    player_name: str = "Hero"
    total_levels: int = 20
    branching_factor: int = 3
    convergence_rate: float = 0.3
    save_path: str = "delve_save.json"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "GameConfig":
        """Build a config from DELVE_* variables (after loading .env)."""
        load_dotenv(env_file)
        defaults = cls()
        return cls(
            seed=os.environ.get("DELVE_SEED") or None,
            player_class=os.environ.get("DELVE_PLAYER_CLASS", defaults.player_class).lower(),
            player_name=os.environ.get("DELVE_PLAYER_NAME", defaults.player_name),
            total_levels=int(os.environ.get("DELVE_TOTAL_LEVELS", defaults.total_levels)),
            branching_factor=int(os.environ.get("DELVE_BRANCHING_FACTOR", defaults.branching_factor)),
            convergence_rate=float(os.environ.get("DELVE_CONVERGENCE_RATE", defaults.convergence_rate)),
            save_path=os.environ.get("DELVE_SAVE_PATH", defaults.save_path),
            host=os.environ.get("DELVE_HOST", defaults.host),
            port=int(os.environ.get("DELVE_PORT", defaults.port)),
            log_level=os.environ.get("DELVE_LOG_LEVEL", defaults.log_level).upper(),
        )

    def generator_config(self) -> DungeonGeneratorConfig:
        return DungeonGeneratorConfig(
            total_levels=self.total_levels,
            branching_factor=self.branching_factor,
            convergence_rate=self.convergence_rate,
        )


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging once for an entry point. verbose forces DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
