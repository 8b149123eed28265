from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """Let mydo logs through; other libraries only from WARNING up."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "mydo" or record.name.startswith("mydo."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.WARNING, log_file: str | Path | None = None) -> None:
    """Configure the root logger: filtered stderr output plus an optional debug file.

    Call once, before the first log call. Calling again replaces the handlers.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    if log_file is not None:
        log_path = Path(log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        except OSError:
            logging.getLogger(__name__).warning("Cannot open log file %s", log_path, exc_info=True)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(fmt)
            root.addHandler(file_handler)

    logging.captureWarnings(True)
