from __future__ import annotations

import logging

from imagetool.core.config import settings
from imagetool.core.paths import get_data_path

LOG_FILE = "logs.txt"

# Keep the newest MAX_LOG_LINES once the file grows past TRUNCATE_THRESHOLD
MAX_LOG_LINES = 10000
TRUNCATE_THRESHOLD = 15000


def truncate_log_file() -> None:
    """Trim the log file to its last MAX_LOG_LINES lines when it is oversized."""
    log_path = get_data_path(LOG_FILE)
    if not log_path.exists():
        return

    try:
        lines = log_path.read_text(encoding="utf-8").splitlines(keepends=True)
        if len(lines) <= TRUNCATE_THRESHOLD:
            return

        temp_path = log_path.with_suffix(".txt.tmp")
        temp_path.write_text("".join(lines[-MAX_LOG_LINES:]), encoding="utf-8")
        temp_path.replace(log_path)
        print(f"LOG_ROTATION: Truncated {len(lines)} lines to {MAX_LOG_LINES} lines")
    except OSError as e:
        print(f"LOG_ROTATION_ERROR: Failed to truncate log file: {e}")


def setup_logging() -> logging.Logger:
    """Configure file logging under DATA_DIR and return the imagetool logger."""
    data_dir = get_data_path()
    data_dir.mkdir(parents=True, exist_ok=True)
    truncate_log_file()

    logging.basicConfig(
        filename=str(get_data_path(LOG_FILE)),
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # httpx logs full request URLs at INFO, which include signed image links
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("imagetool")


log = setup_logging()
