from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

LOGGER_NAME = "video_play_bot"

# Per-video context attached through ``extra=`` by the player and runner.
CONTEXT_FIELDS = ("video_id", "device", "batch_size")


class RunLogFormatter(logging.Formatter):
    """One JSON object per line, with the video/device context lifted to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        obj: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                obj[name] = value
        if record.exc_info and record.exc_info[0] is not None:
            obj["error"] = self.formatException(record.exc_info)
        return json.dumps(obj, default=str)


def enable_file_logging(log_dir: Path) -> Path:
    """Write DEBUG-level run events to *log_dir*/run.log; safe to call twice."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = (log_dir / "run.log").absolute()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    if not any(
        isinstance(h, logging.FileHandler) and h.baseFilename == str(log_path)
        for h in logger.handlers
    ):
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(RunLogFormatter())
        logger.addHandler(fh)
    return log_path


def setup_cli_logging(*, verbosity: int = 0) -> None:
    """Send ``video_play_bot`` logs to the terminal through rich.

    -1 shows warnings only, 0 shows progress, 1+ adds selector-level detail.
    """
    from rich.logging import RichHandler

    level = {-1: logging.WARNING, 0: logging.INFO}.get(verbosity, logging.DEBUG)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for h in logger.handlers:
        if isinstance(h, RichHandler):
            h.setLevel(level)
            return

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
