from __future__ import annotations

import logging
import sys
from pathlib import Path

_OWN_PREFIXES = ("app", "controller", "core", "gui", "services", "storage")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - our own loggers pass through at the handler level
    - ConsistencyWarnings captured as 'py.warnings' pass at WARNING+
    - third-party (urllib3 retries, connection pool chatter) only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.split(".", 1)[0] in _OWN_PREFIXES or name == "__main__":
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskboard",
    console_level: int | str = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure the root logger with a filtered console handler and a file
    handler that keeps everything.

    Call this ONCE, before the first log line.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskboard.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # warnings.warn(MultipleActiveTimers(...)) ends up here as 'py.warnings'
    logging.captureWarnings(True)
