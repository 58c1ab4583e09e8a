"""
utils/logger.py
---------------
Structured logging setup.
"""

import logging
import sys
from pathlib import Path

# third-party loggers that are chatty at DEBUG
QUIET_LOGGERS = ("PIL", "urllib3")


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    fmt = "%(asctime)s  %(levelname)-8s  %(threadName)s  %(name)s — %(message)s"
    datefmt = "%H:%M:%S"
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format=fmt, datefmt=datefmt, handlers=handlers)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
