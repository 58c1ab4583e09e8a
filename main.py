#!/usr/bin/env python3
"""
main.py
-------
Entry point for the session timer.

Usage:
    python main.py                  # uses config.yaml
    python main.py --mode mock      # mock camera, in-memory store and sync
    python main.py --mode dev       # webcam + files on disk
    python main.py --config my.yaml # custom config file
    python main.py --fps 60         # frame loop rate

Type commands in the terminal (start, pause, stop, snap, cancel, restart, quit).
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from utils.config import load_config, build_components, _deep_merge
from utils.logger import setup_logging
from core.controller import SessionController
from ui.keyboard import KeyboardCommands


# ---------------------------------------------------------------------------
# Mode presets — override config for quick startup
# ---------------------------------------------------------------------------

MODE_OVERRIDES = {
    "mock": {
        "hardware": {"camera": "mock", "clock": "monotonic"},
        "storage": {"store": "memory", "sync": "memory"},
        "display": "log",
    },
    "dev": {
        "hardware": {"camera": "webcam", "clock": "monotonic"},
        "storage": {"store": "file", "sync": "memory"},
        "display": "log",
    },
}


def run_loop(controller: SessionController, commands: KeyboardCommands,
             fps: float, status_interval: float) -> None:
    """Cooperative frame loop: every mutation happens on this thread."""
    logger = logging.getLogger(__name__)
    actions = {
        "start": controller.start_or_resume,
        "pause": controller.pause,
        "stop": controller.stop,
        "snap": controller.shutter,
        "cancel": controller.cancel_capture,
        "restart": controller.restart,
    }
    frame = 1.0 / fps
    last_status = 0.0
    seen_recent: list[float] = []

    while True:
        command = commands.poll()
        if command == "quit":
            logger.info("Quit requested")
            return
        if command:
            actions[command]()

        controller.tick()

        now = time.monotonic()
        if now - last_status >= status_interval:
            controller.display.show_status(controller.elapsed(), controller.status)
            last_status = now
        if controller.recent_durations != seen_recent:
            seen_recent = controller.recent_durations
            controller.display.show_recent(seen_recent)

        time.sleep(frame)


def main() -> None:
    parser = argparse.ArgumentParser(description="Session timer with photo checkpoints")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML")
    parser.add_argument("--mode", choices=list(MODE_OVERRIDES),
                        help="Quick-start mode (overrides config)")
    parser.add_argument("--fps", type=float, help="Frame loop rate (overrides config)")
    args = parser.parse_args()

    # Load config
    config = load_config(args.config)
    if args.mode and args.mode in MODE_OVERRIDES:
        config = _deep_merge(config, MODE_OVERRIDES[args.mode])

    # Setup logging
    log_cfg = config.get("logging", {})
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("log_file"),
    )
    logger = logging.getLogger(__name__)
    logger.info("Starting session timer (mode=%s)", args.mode or "config")

    # Build components
    components = build_components(config)
    controller = SessionController(
        camera=components["camera"],
        clock=components["clock"],
        store=components["store"],
        sync=components["sync"],
        display=components["display"],
        config=config.get("session", {}),
    )

    loop_cfg = config.get("loop", {})
    commands = KeyboardCommands()

    # Run
    with controller.camera, controller.worker:
        commands.start()
        try:
            run_loop(
                controller,
                commands,
                fps=args.fps or loop_cfg.get("fps", 30),
                status_interval=loop_cfg.get("status_interval_seconds", 1.0),
            )
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            commands.stop()
            controller.worker.join()
            controller.display.close()


if __name__ == "__main__":
    main()
