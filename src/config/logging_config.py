# src/config/logging_config.py

"""Per-run logging for prixnc_ai, tagged with the mode that was launched.

Each launch writes one file in ``logs/`` named after the launch time and
the run mode (``tui``, ``search``, ``scan``, ``relay``...), e.g.
``logs/run_20261019_153045_scan.log``.  Every record carries the mode,
so a relay log and a TUI session can be told apart after the fact and
one user action can be followed from client to matcher in one file.
"""

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(run_mode)s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_UNSAFE_MODE_CHARS = re.compile(r"[^a-z0-9-]+")

# Libraries whose per-request chatter stays out of the run log
_QUIET_LOGGERS = ("httpx", "openai", "PIL", "multipart")


class RunModeFilter(logging.Filter):
    """Stamp every record with the run mode of this process."""

    def __init__(self, mode: str) -> None:
        super().__init__()
        self.mode = mode

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_mode = self.mode
        return True


def _safe_mode(mode: str) -> str:
    return _UNSAFE_MODE_CHARS.sub("-", mode.lower()).strip("-") or "run"


def setup_logging(mode: str = "cli") -> Path:
    """Initialise the ``prixnc_ai`` logger for the current run.

    Args:
        mode: Entry point being launched; becomes part of the log file
            name and of every file record.

    Returns:
        The path of the log file for this run.  When handlers are
        already installed (tests, relay reloads) they are kept and the
        returned path is only the would-be name.
    """
    run_mode = _safe_mode(mode)
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}_{run_mode}.log"

    root_logger = logging.getLogger("prixnc_ai")
    root_logger.setLevel(logging.DEBUG)

    if root_logger.handlers:
        return log_file

    run_filter = RunModeFilter(run_mode)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(run_filter)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.addFilter(run_filter)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        "prixnc_ai %s run, catalog %s, log file: %s",
        run_mode,
        Settings.API_BASE_URL,
        log_file,
    )
    return log_file
