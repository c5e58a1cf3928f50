# debug_dump.py
# Writes game states and enemy tracking data to disk for offline analysis.

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from .schemas import Snapshot

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = ["hero", "game_time", "x", "y"]


def _stamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2), encoding="utf-8")


def enemy_tracking_summary(tracker) -> Dict[str, Dict[str, Any]]:
    """Last known position, time and spot count for every tracked enemy."""
    summary = {}
    for name, samples in tracker.snapshot_histories().items():
        if not samples:
            continue
        last_time, (x, y) = samples[-1]
        summary[name] = {
            "name": name,
            "last_seen_position": [x, y],
            "last_seen_time": last_time,
            "times_spotted": tracker.times_spotted(name),
        }
    return summary


def save_game_state(snapshot: Snapshot, tracker, out_dir: Path) -> Path:
    """
    Saves the raw payload of a snapshot plus the enemy tracking data.

    :param snapshot: The snapshot to dump.
    :param tracker: The EnemyPositionTracker whose data is attached.
    :param out_dir: Directory receiving dota_state_<timestamp>.json.
    :return: The written path.
    """
    combined = dict(snapshot.raw)
    combined["enemy_tracking"] = enemy_tracking_summary(tracker)
    path = Path(out_dir) / f"dota_state_{_stamp()}.json"
    write_json(path, combined)
    logger.info(f"Saved game state to {path}")
    return path


def save_raw_payload(payload: Dict[str, Any], game_time: Optional[int], out_dir: Path) -> Path:
    suffix = "unknown" if game_time is None else str(game_time)
    path = Path(out_dir) / f"gsi_data_{_stamp()}_{suffix}.json"
    write_json(path, payload)
    logger.debug(f"Saved raw payload to {path}")
    return path


def position_history_frame(tracker) -> pd.DataFrame:
    rows = []
    for name, samples in tracker.snapshot_histories().items():
        for game_time, (x, y) in samples:
            rows.append({"hero": name, "game_time": game_time, "x": x, "y": y})
    df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
    if not df.empty:
        df = df.sort_values(["hero", "game_time"], kind="stable").reset_index(drop=True)
    return df


def export_position_history(tracker, path: Path) -> Path:
    """Writes every tracked enemy position as one CSV row (hero, game_time, x, y)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = position_history_frame(tracker)
    df.to_csv(path, index=False)
    logger.info(f"Exported {len(df)} enemy positions to {path}")
    return path
