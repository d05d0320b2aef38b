"""Logging for the investment council.

Console output honours COUNCIL_LOG_LEVEL (default INFO). Every process
start also writes a full DEBUG trace to ``council_<timestamp>.log`` and
mirrors it into ``council.log``; only the newest run logs are kept.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from council.config import settings

RUN_LOG_PATTERN = "council_*.log"

_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(name: str, default: int = logging.INFO) -> int:
    """Map a level name like ``"debug"`` to its logging constant."""
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else default


def prune_run_logs(logs_dir: Path, keep: int) -> list[Path]:
    """Delete all but the *keep* most recent run logs; returns what was removed."""
    run_logs = sorted(logs_dir.glob(RUN_LOG_PATTERN), key=lambda p: p.stat().st_mtime)
    removed = []
    for old in run_logs[: max(len(run_logs) - keep, 0)]:
        try:
            old.unlink()
        except OSError:
            continue
        removed.append(old)
    return removed


def _file_handler(path: Path, mode: str = "a") -> logging.Handler:
    handler = logging.FileHandler(path, mode=mode, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _setup_logger(name: str = "council") -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)
    if log.handlers:
        return log

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(resolve_level(settings.LOG_LEVEL))
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    log.addHandler(console)

    logs_dir = settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    run_log = logs_dir / f"council_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"
    log.addHandler(_file_handler(run_log))

    try:
        log.addHandler(_file_handler(logs_dir / "council.log", mode="w"))
    except OSError as e:
        log.warning("council.log unavailable: %s", e)

    prune_run_logs(logs_dir, settings.LOG_KEEP_RUNS)
    log.debug("Run log: %s (console level %s)", run_log.name, settings.LOG_LEVEL)
    return log


logger = _setup_logger()
