import os
from pathlib import Path
from typing import Optional


def _truthy_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


# ===================== CONFIG =====================
BASE_URL = os.getenv("TASKBOARD_API_URL", "http://localhost:8080/api")
REQUEST_TIMEOUT = float(os.getenv("TASKBOARD_TIMEOUT", "10"))
SYNC_INTERVAL_MS = int(os.getenv("TASKBOARD_SYNC_MS", "60000"))
TIMER_TICK_MS = 1000
QUEUE_POLL_MS = 50

TOPMOST = _truthy_env(os.getenv("TASKBOARD_TOPMOST"), False)
WINDOW_GEOMETRY = os.getenv("TASKBOARD_GEOMETRY", "1180x640")

LOG_DIR = Path(os.getenv("TASKBOARD_LOG_DIR", ".local/taskboard"))
LOG_LEVEL = os.getenv("TASKBOARD_LOG_LEVEL", "INFO").upper()
