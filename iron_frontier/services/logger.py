from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(slots=True)
class ToolLoggerBundle:
    app: logging.Logger
    rolls: logging.Logger
    latest_log_path: Path
    rolls_log_path: Path


def _rotate_latest_log(logs_dir: Path, keep_archives: int = 5) -> Path:
    logs_dir.mkdir(parents=True, exist_ok=True)
    latest = logs_dir / "latest.log"
    if latest.exists():
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        latest.replace(logs_dir / f"latest_{stamp}.log")

    archives = sorted(
        [path for path in logs_dir.glob("latest_*.log") if path.is_file()],
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for stale in archives[keep_archives:]:
        stale.unlink(missing_ok=True)
    return latest


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def configure_logging(
    logs_dir: Path,
    level: str = "INFO",
    keep_archives: int = 5,
    console: bool = True,
) -> ToolLoggerBundle:
    latest = _rotate_latest_log(logs_dir, keep_archives)
    rolls_log_path = logs_dir / "rolls.log"

    formatter = logging.Formatter(LOG_FORMAT)

    app_logger = logging.getLogger("iron_frontier")
    app_logger.setLevel(level)
    _reset_handlers(app_logger)
    app_logger.propagate = False

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        app_logger.addHandler(stream_handler)

    file_handler = logging.FileHandler(latest, mode="w", encoding="utf-8")
    file_handler.setFormatter(formatter)
    app_logger.addHandler(file_handler)

    # Roll traces stay out of the console and the main log.
    rolls_logger = logging.getLogger("iron_frontier.rolls")
    rolls_logger.setLevel(logging.INFO)
    _reset_handlers(rolls_logger)
    rolls_logger.propagate = False

    rolls_handler = logging.FileHandler(rolls_log_path, mode="w", encoding="utf-8")
    rolls_handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    rolls_logger.addHandler(rolls_handler)

    return ToolLoggerBundle(app=app_logger, rolls=rolls_logger, latest_log_path=latest, rolls_log_path=rolls_log_path)
