"""
ui/keyboard.py
--------------
Terminal command source for the frame loop. Type a command and press ENTER.

  start   start a session / resume after pause
  pause   pause the timer
  stop    stop the session and take the end photos
  snap    press the shutter on the capture sheet
  cancel  close the capture sheet
  restart discard the current session
  quit    exit
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

logger = logging.getLogger(__name__)

COMMANDS = ("start", "pause", "stop", "snap", "cancel", "restart", "quit")
ALIASES = {"s": "start", "p": "pause", "x": "stop", "": "snap", "c": "cancel", "r": "restart", "q": "quit"}


class KeyboardCommands:
    """Reads lines on a daemon thread; the frame loop polls without blocking."""

    def __init__(self) -> None:
        self._queue: queue.Queue[str] = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def start(self) -> None:
        self._running = True
        self._thread = threading.Thread(target=self._listen, daemon=True)
        self._thread.start()
        logger.info("KeyboardCommands started — commands: %s (ENTER alone = snap)",
                    ", ".join(COMMANDS))

    def stop(self) -> None:
        self._running = False

    def _listen(self) -> None:
        while self._running:
            try:
                line = input()  # blocks until ENTER
            except EOFError:
                self._queue.put("quit")
                return
            if not self._running:
                return
            word = line.strip().lower()
            command = ALIASES.get(word, word)
            if command in COMMANDS:
                self._queue.put(command)
            else:
                logger.warning("Unknown command %r — try one of: %s", word, ", ".join(COMMANDS))

    def poll(self) -> Optional[str]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None
