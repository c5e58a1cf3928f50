# replay.py
# Posts recorded GSI payloads (*.json, sorted by name) to a running coach.

from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import List

import requests

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://127.0.0.1:3000/"
DEFAULT_DELAY = 0.1


def load_payload_paths(folder: Path) -> List[Path]:
    folder = Path(folder)
    if not folder.is_dir():
        raise SystemExit(f"Missing payload folder: {folder}")
    return sorted(folder.glob("*.json"))


def post_payload(url: str, payload: dict, session=None) -> None:
    http = session or requests
    r = http.post(url, json=payload, timeout=5)
    if r.status_code != 200:
        raise RuntimeError(f"HTTP {r.status_code}: {r.text[:500]}")


def replay(folder: Path, url: str = DEFAULT_URL, delay: float = DEFAULT_DELAY) -> int:
    """
    Sends every payload in `folder` to `url` in file-name order.

    :return: Number of payloads sent.
    """
    sent = 0
    with requests.Session() as session:
        for path in load_payload_paths(folder):
            payload = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(payload, dict):
                # debug dumps carry tracker output next to the raw state
                payload.pop("enemy_tracking", None)
            post_payload(url, payload, session=session)
            sent += 1
            logger.debug(f"Replayed {path.name}")
            if delay:
                time.sleep(delay)
    return sent


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay recorded GSI payloads into the coach.")
    parser.add_argument("folder", type=Path)
    parser.add_argument("--url", default=DEFAULT_URL)
    parser.add_argument("--delay", type=float, default=DEFAULT_DELAY)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    sent = replay(args.folder, url=args.url, delay=args.delay)
    print(f"Done. Payloads sent: {sent}")


if __name__ == "__main__":
    main()
