# bucket_routing/logger.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

__all__ = ["configure_logging", "remove_handlers", "log_file_name"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marks handlers installed here so a reconfigure leaves foreign handlers alone
_OWNED = "_bucket_routing_handler"


def log_file_name(run_name: str, when: Optional[datetime] = None) -> str:
    """File name for a run, e.g. "Merge Join 1" -> "Merge_Join_1_20250818_123456.log"."""
    slug = re.sub(r"[^A-Za-z0-9_.-]+", "_", run_name.strip()).strip("_") or "bucket_routing"
    ts = (when or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{slug}_{ts}.log"


def remove_handlers() -> int:
    """Detach and close the root handlers configure_logging installed."""
    root = logging.getLogger()
    removed = 0
    for h in list(root.handlers):
        if getattr(h, _OWNED, False):
            root.removeHandler(h)
            h.close()
            removed += 1
    return removed


def _own(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    setattr(handler, _OWNED, True)
    logging.getLogger().addHandler(handler)
    return handler


def configure_logging(
    *,
    run_name: str = "bucket_routing",
    log_dir: str | Path | None = None,
    verbose: bool = False,
    console: Optional[bool] = None,
    rotate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
) -> Optional[Path]:
    """
    Route package logs for one routing run.

    With log_dir, records go to a file named after run_name (usually the
    vertex name); without it they go to stderr. console=None means "stderr
    only when there is no file". Calling again replaces the handlers of the
    previous call and keeps any the host process installed.

    Returns the log file path, or None when logging to stderr only.
    """
    level = logging.DEBUG if verbose else logging.INFO
    remove_handlers()

    root = logging.getLogger()
    root.setLevel(level)

    log_path = None
    if log_dir is not None:
        target_dir = Path(log_dir).expanduser()
        target_dir.mkdir(parents=True, exist_ok=True)
        log_path = target_dir / log_file_name(run_name)
        if rotate:
            handler = RotatingFileHandler(
                log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        else:
            handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        _own(handler, level)

    if console is None:
        console = log_path is None
    if console:
        _own(logging.StreamHandler(), level)

    logging.getLogger(__name__).info(
        "Logging run %s to %s", run_name, log_path if log_path is not None else "stderr"
    )
    return log_path
