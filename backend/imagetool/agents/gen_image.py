from __future__ import annotations

from typing import Any

from imagetool.agents.dalle3 import DALLE3


def generate(args: dict[str, Any], user_id: str | None = None, file_strategy: str | None = None) -> str:
    """Runs the dalle tool once for a user.

    Args:
        args: Tool arguments (prompt, style, quality, size)
        user_id: Owner of the stored image
        file_strategy: Storage strategy override (defaults to FILE_STRATEGY)

    Returns:
        Markdown image reference or an error message

    Raises:
        RuntimeError: If DALLE_API_KEY is missing
        ValueError: If the arguments are invalid
    """
    return DALLE3(user_id=user_id, file_strategy=file_strategy).run(args)
