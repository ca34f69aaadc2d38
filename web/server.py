#!/usr/bin/env python3
"""
delve Dungeon Report Server

Serves generated dungeons as an HTML report and as JSON. Every request
regenerates the dungeon from its seed, so the same URL always shows the
same dungeon.

Usage:
    python web/server.py
    python cli.py serve --port 8000

Then open http://localhost:8000/?seed=abc
"""

import html
import logging
import os
import sys
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse
import uvicorn

from packages.delve.config import GameConfig, configure_logging
from packages.delve.dungeon.room import RoomType
from packages.delve.generation.dungeon import (
    Dungeon,
    DungeonGenerator,
    DungeonGeneratorConfig,
    validate_connectivity,
)
from packages.delve.state.rng import Random


logger = logging.getLogger(__name__)

DEFAULT_SEED = "abc"

app = FastAPI(title="delve Dungeon Report")


# ============================================================================
# DUNGEON BUILDING
# ============================================================================

def build_dungeon(
    seed: str,
    total_levels: Optional[int] = None,
    branching_factor: Optional[int] = None,
    convergence_rate: Optional[float] = None,
) -> Dungeon:
    """Generate a dungeon, filling unset parameters from the defaults."""
    defaults = DungeonGeneratorConfig()
    config = DungeonGeneratorConfig(
        total_levels=defaults.total_levels if total_levels is None else total_levels,
        branching_factor=defaults.branching_factor if branching_factor is None else branching_factor,
        convergence_rate=defaults.convergence_rate if convergence_rate is None else convergence_rate,
    )
    return DungeonGenerator(Random(seed), config).generate()


def _build_or_400(seed: str, total_levels, branching_factor, convergence_rate) -> Dungeon:
    try:
        return build_dungeon(seed, total_levels, branching_factor, convergence_rate)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================================================
# HTML REPORT
# ============================================================================

ROOM_COLORS: Dict[RoomType, str] = {
    RoomType.ENTRANCE: "#7fb069",
    RoomType.COMBAT: "#d9534f",
    RoomType.ELITE: "#a83279",
    RoomType.BOSS: "#222222",
    RoomType.TREASURE: "#e6b800",
    RoomType.REST: "#3c8dbc",
    RoomType.SHOP: "#5cb85c",
    RoomType.EVENT: "#9b59b6",
    RoomType.PUZZLE: "#f0ad4e",
}

REPORT_STYLE = """
body { font-family: monospace; background: #f4f1ea; margin: 2em; }
h1 { margin-bottom: 0.2em; }
table { border-collapse: collapse; }
td { padding: 4px 8px; vertical-align: top; }
.room { display: inline-block; margin: 2px; padding: 4px 6px; color: #fff; border-radius: 4px; }
.links { color: #666; font-size: 0.85em; }
.issues { color: #b00; }
"""


def render_report(dungeon: Dungeon, seed: str) -> str:
    """Render a dungeon as a standalone HTML page, boss level first."""
    issues = validate_connectivity(dungeon)
    counts: Dict[str, int] = {}
    for room in dungeon.rooms.values():
        counts[room.type.value] = counts.get(room.type.value, 0) + 1

    rows = []
    for layer in reversed(dungeon.layers):
        cells = []
        for room in layer.rooms:
            forward = [
                rid for rid in room.connections if dungeon.rooms[rid].level == layer.level + 1
            ]
            color = ROOM_COLORS.get(room.type, "#888")
            cells.append(
                f'<span class="room" style="background:{color}" '
                f'title="{html.escape(room.description)}">'
                f"{html.escape(room.get_icon())} {room.id} {room.type.value}</span>"
                f'<span class="links">{" &rarr; " + ", ".join(forward) if forward else ""}</span>'
            )
        rows.append(f"<tr><td>{layer.level}</td><td>{''.join(cells)}</td></tr>")

    summary = ", ".join(f"{name}: {count}" for name, count in sorted(counts.items()))
    if issues:
        issue_html = '<ul class="issues">' + "".join(
            f"<li>{html.escape(issue)}</li>" for issue in issues
        ) + "</ul>"
    else:
        issue_html = "<p>Connectivity: OK</p>"

    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>delve dungeon {html.escape(seed)}</title>"
        f"<style>{REPORT_STYLE}</style></head><body>"
        f"<h1>Dungeon for seed {html.escape(seed)}</h1>"
        f"<p>{dungeon.total_levels} levels, {len(dungeon.rooms)} rooms ({summary})</p>"
        f"{issue_html}"
        f"<table>{''.join(rows)}</table>"
        "</body></html>"
    )


def validation_report(dungeon: Dungeon, seed: str) -> Dict[str, Any]:
    issues: List[str] = validate_connectivity(dungeon)
    return {
        "seed": seed,
        "valid": not issues,
        "issues": issues,
        "room_count": len(dungeon.rooms),
        "total_levels": dungeon.total_levels,
    }


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def index(
    seed: str = DEFAULT_SEED,
    total_levels: Optional[int] = None,
    branching_factor: Optional[int] = None,
    convergence_rate: Optional[float] = None,
):
    """HTML report for one seed."""
    dungeon = _build_or_400(seed, total_levels, branching_factor, convergence_rate)
    return render_report(dungeon, seed)


@app.get("/api/dungeon")
async def get_dungeon(
    seed: str = DEFAULT_SEED,
    total_levels: Optional[int] = None,
    branching_factor: Optional[int] = None,
    convergence_rate: Optional[float] = None,
):
    """Full dungeon snapshot as JSON."""
    dungeon = _build_or_400(seed, total_levels, branching_factor, convergence_rate)
    return JSONResponse({"seed": seed, **dungeon.to_dict()})


@app.get("/api/rooms/{room_id}")
async def get_room(
    room_id: str,
    seed: str = DEFAULT_SEED,
    total_levels: Optional[int] = None,
    branching_factor: Optional[int] = None,
    convergence_rate: Optional[float] = None,
):
    """One room of the dungeon for seed."""
    dungeon = _build_or_400(seed, total_levels, branching_factor, convergence_rate)
    room = dungeon.rooms.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail=f"Room {room_id} not found")
    return JSONResponse(room.to_dict())


@app.get("/api/validate")
async def validate(
    seed: str = DEFAULT_SEED,
    total_levels: Optional[int] = None,
    branching_factor: Optional[int] = None,
    convergence_rate: Optional[float] = None,
):
    """Connectivity check for the dungeon of seed."""
    dungeon = _build_or_400(seed, total_levels, branching_factor, convergence_rate)
    return JSONResponse(validation_report(dungeon, seed))


# ============================================================================
# MAIN
# ============================================================================

def serve(host: str, port: int, log_level: str = "info") -> None:
    logger.info("Report server on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    config = GameConfig.from_env()
    configure_logging(config.log_level)
    print(f"""
    ========================================
    delve Dungeon Report
    ========================================

    Report URL: http://{config.host}:{config.port}/?seed={DEFAULT_SEED}

    Press Ctrl+C to stop.
    ========================================
    """)
    serve(config.host, config.port, config.log_level)
