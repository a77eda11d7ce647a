"""Log file setup."""

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(filename)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def setup_logging(log_path: str | Path, level: int = logging.INFO) -> logging.Logger:
    """Append the ``bulletin`` logger's output to *log_path*.

    Creates the parent directory if needed.  Raises OSError when the file
    cannot be opened.
    """
    log_path = Path(log_path)
    os.makedirs(log_path.parent, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger = logging.getLogger("bulletin")
    for old in list(logger.handlers):
        if isinstance(old, logging.FileHandler):
            logger.removeHandler(old)
            old.close()
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
