"""Persist remote files under the configured file strategy.

Only the `local` strategy ships here: the file is downloaded into the data
directory and served back under `/<base_path>/<user_id>/<file_name>`.
"""

from __future__ import annotations

import mimetypes
import time
import uuid
from typing import Callable

import httpx

from imagetool.core.config import settings
from imagetool.core.logging import log
from imagetool.core.paths import get_data_path
from imagetool.core.storage import append_json_line, atomic_write_bytes, safe_join

FILES_INDEX = "files.json"
FILE_RECORD_SCHEMA = {"required": ["file_id", "user", "filename", "filepath", "bytes", "source"]}
ANONYMOUS_USER = "anonymous"


def _http_client() -> httpx.Client:
    return httpx.Client(
        timeout=settings.dalle_timeout_s,
        proxy=settings.proxy or None,
        follow_redirects=True,
    )


def save_file_from_url_local(
    user_id: str | None,
    url: str,
    file_name: str,
    base_path: str = "images",
) -> str:
    """Download `url` into the local data directory.

    Args:
        user_id: Owner of the file (used as a sub-directory)
        url: Remote file URL
        file_name: Target file name
        base_path: Top-level folder, also the public URL prefix

    Returns:
        Public path of the stored file, e.g. `/images/<user>/<file_name>`

    Raises:
        ValueError: If any path component attempts traversal
        RuntimeError: If the download fails
    """
    user = user_id or ANONYMOUS_USER
    target = safe_join(str(get_data_path()), base_path, user, file_name)

    with _http_client() as client:
        resp = client.get(url)
        if resp.status_code >= 400:
            log.error(f"file_download_failed status={resp.status_code} url={url[:120]}")
            raise RuntimeError(f"Download failed ({resp.status_code}) for {file_name}")
        content = resp.content

    atomic_write_bytes(target, content)

    filepath = f"/{base_path}/{user}/{file_name}"
    content_type = (
        resp.headers.get("content-type")
        or mimetypes.guess_type(file_name)[0]
        or "application/octet-stream"
    )
    append_json_line(
        str(get_data_path(FILES_INDEX)),
        {
            "file_id": str(uuid.uuid4()),
            "user": user,
            "filename": file_name,
            "filepath": filepath,
            "bytes": len(content),
            "type": content_type,
            "source": "local",
            "ts": int(time.time()),
        },
        schema=FILE_RECORD_SCHEMA,
    )
    log.info(f"file_saved strategy=local user={user} path={filepath} bytes={len(content)}")
    return filepath


STRATEGIES: dict[str, Callable[..., str]] = {
    "local": save_file_from_url_local,
}


def process_file_url(
    file_strategy: str | None,
    user_id: str | None,
    url: str,
    file_name: str,
    base_path: str = "images",
) -> str:
    """Store a remote file with the given strategy and return its reference.

    Raises:
        ValueError: If the strategy is unknown
    """
    strategy = file_strategy or settings.file_strategy
    save = STRATEGIES.get(strategy)
    if save is None:
        raise ValueError(f"Unsupported file strategy: {strategy}")
    return save(user_id, url, file_name, base_path)
