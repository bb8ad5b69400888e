"""NewsTracker logging utilities.

One package logger with a timestamp + abbreviated level prefix. The CLI
configures it once per action; library code logs through `log` or through a
child of it (``logging.getLogger(__name__)``), whose records are tagged with
the last component of the module name.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Final


_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}

_ROOT_NAME: Final = "NewsTracker"
_NOISY_LOGGERS: Final = ("urllib3",)


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        if record.name != _ROOT_NAME and record.name.startswith(_ROOT_NAME + "."):
            record.origin = record.name.rsplit(".", 1)[-1] + ": "
        else:
            record.origin = ""
        return super().format(record)


log = logging.getLogger(_ROOT_NAME)


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = True,
    log_dir: str = "log",
) -> Path | None:
    """Configure the NewsTracker logger.

    Uses format: mm-dd HH:MM:SS [<LVL>] <origin: ><message>
    where LVL is one of: DEBG/INFO/WARN/ERRO.

    The console never shows DEBUG records; the per-action log file receives
    everything.

    Args:
        level: Logging level (e.g., INFO, DEBUG).
        action: CLI action name used to create the log file path.
        log_to_file: Whether to mirror logs to a file.
        log_dir: Base directory for log files.

    Returns:
        Path of the log file when one was created, otherwise None.
    """
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    formatter = _AbbrevLevelFormatter(
        fmt="%(asctime)s [%(levelabbr)s] %(origin)s%(message)s",
        datefmt="%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(max(resolved_level, logging.INFO))
    stream_handler.setFormatter(formatter)

    log.handlers.clear()
    log.addHandler(stream_handler)

    log_path: Path | None = None
    if log_to_file and action:
        log_path = _action_log_path(Path(log_dir or "log"), action)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    log.setLevel(logging.DEBUG if log_path is not None else resolved_level)
    log.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return log_path


def _action_log_path(log_root: Path, action: str) -> Path:
    """Return ``<log_root>/<action>/<action>_<mmddHHMMSS>.log``, creating the directory."""
    action_dir = log_root / action
    action_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%m%d%H%M%S")
    return action_dir / f"{action}_{timestamp}.log"
