# main.py
import logging
import sys
import time
from pathlib import Path

from coach.coach_agent import CoachAgent
from coach.config import load_config
from gsi_pipeline.debug_dump import export_position_history, save_game_state, save_raw_payload
from gsi_pipeline.parsing import format_game_time
from gsi_pipeline.receiver import GSIReceiver

logger = logging.getLogger(__name__)

RAW_DUMP_EVERY = 30


def render(agent: CoachAgent) -> None:
    snapshot = agent.current_snapshot()
    print("\n" + "=" * 37)
    print(f"Game time: {format_game_time(snapshot.game_time if snapshot else None)}")
    lines = agent.insights()
    if not lines:
        print("Waiting for Dota 2 game data...")
    for line in lines:
        print(line)


def main() -> None:
    """
    Starts the GSI receiver and prints coaching insights on a fixed cadence
    until interrupted.
    """
    try:
        config = load_config()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(level=config.log_level, format="%(asctime)s - %(levelname)s - %(message)s")

    print("--- Dota 2 Coach ---")
    print("Make sure the GSI config file is installed and Dota 2 runs with -gamestateintegration.")

    agent = CoachAgent()
    receiver = GSIReceiver(agent.ingest, host=config.host, port=config.port)
    try:
        receiver.start()
    except OSError as e:
        logger.error(f"Could not start GSI receiver on {config.host}:{config.port}: {e}")
        sys.exit(1)

    debug_dir = Path(config.debug_dir)
    last_save = time.monotonic()
    last_raw_dump = None

    try:
        while True:
            render(agent)

            snapshot = agent.current_snapshot()
            if snapshot is not None:
                game_time = snapshot.game_time
                if game_time is not None and game_time % RAW_DUMP_EVERY == 0 and game_time != last_raw_dump:
                    save_raw_payload(snapshot.raw, game_time, debug_dir)
                    last_raw_dump = game_time
                if time.monotonic() - last_save >= config.save_interval:
                    save_game_state(snapshot, agent.position_tracker, debug_dir)
                    last_save = time.monotonic()

            time.sleep(config.refresh_seconds)
    except KeyboardInterrupt:
        print("\nExiting Dota 2 Coach. Good luck in your games!")
    finally:
        receiver.stop()
        if agent.current_snapshot() is not None:
            export_position_history(agent.position_tracker, debug_dir / "enemy_positions.csv")


if __name__ == "__main__":
    main()
