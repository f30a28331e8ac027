from __future__ import annotations

from pathlib import Path

from imagetool.core.config import settings


def get_data_path(filename: str = "") -> Path:
    """Get path to file in the configured data directory.

    Args:
        filename: Optional filename to append to data directory path

    Returns:
        Path object pointing to DATA_DIR or DATA_DIR/filename
    """
    data_dir = Path(settings.data_dir)
    if filename:
        return data_dir / filename
    return data_dir
