"""
Logging configuration — console output and the installation operation log.

``setup_logging`` runs once at startup from main.py.  Every module that
does ``logger = logging.getLogger(__name__)`` inherits its config.

Console level precedence:
    --debug / --verbose / --quiet  >  KASPA_AIO_LOG_LEVEL  >  WARNING

KASPA_AIO_LOG_FILE / KASPA_AIO_LOG_FILE_LEVEL add a full-detail process log.

``attach_operation_log`` is called by the ``profile add`` and ``profile
remove`` commands.  For the length of the command the add/remove
workflows, their validators, the config writer, the state/audit stores
and the Docker and backup adapters log at INFO into the installation's
operation log (``.kaspa-aio/operations.log`` beside the audit ledger),
whatever the console level.  The audit ledger records one line per
attempt; the operation log records the steps in between.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ── Format strings ──────────────────────────────────────────────

# WARNING and above: level name and message
_FMT_MINIMAL = "%(levelname)s: %(message)s"

# INFO: timestamp and logger name
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# DEBUG, process log and operation log: full detail with file:line
_FMT_DETAIL = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_DETAIL = "%Y-%m-%d %H:%M:%S"

# Loggers that take part in a profile add/remove run
OPERATION_LOGGERS = (
    "kaspa_aio.core.services.profile_addition",
    "kaspa_aio.core.services.profile_removal",
    "kaspa_aio.core.services.dependency_validator",
    "kaspa_aio.core.services.config_generator",
    "kaspa_aio.core.persistence",
    "kaspa_aio.adapters",
)


class OperationLogHandler(logging.FileHandler):
    """File handler bound to one installation's operation log."""


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of a process-wide log file.
        log_file_level: Level for *log_file*; defaults to ``level``.
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DETAIL, _DATEFMT_VERBOSE
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level

    # ── Process log (optional) ──────────────────────────────────
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_DETAIL))
        root.addHandler(fh)

    root.setLevel(effective_level)
    logging.raiseExceptions = False


# ── Operation log ───────────────────────────────────────────────


def attach_operation_log(path: Path) -> OperationLogHandler:
    """Write INFO+ records of the add/remove loggers to *path*.

    Any operation log attached earlier in the process is detached first.
    The console handler keeps its own level, so nothing extra reaches
    stderr.
    """
    detach_operation_log()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = OperationLogHandler(path, encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_DETAIL))

    for name in OPERATION_LOGGERS:
        op_logger = logging.getLogger(name)
        op_logger.addHandler(handler)
        if op_logger.getEffectiveLevel() > logging.INFO:
            op_logger.setLevel(logging.INFO)
    return handler


def detach_operation_log() -> None:
    """Remove and close the operation log handler; reset logger levels."""
    for name in OPERATION_LOGGERS:
        op_logger = logging.getLogger(name)
        for handler in [h for h in op_logger.handlers if isinstance(h, OperationLogHandler)]:
            op_logger.removeHandler(handler)
            handler.close()
        op_logger.setLevel(logging.NOTSET)


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
