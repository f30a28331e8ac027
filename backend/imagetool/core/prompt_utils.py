"""Prompt and output text helpers for the DALL-E tool."""

from __future__ import annotations

import re

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")


def replace_unwanted_chars(text: str) -> str:
    """Flatten a prompt to a single line without double quotes.

    Each line break becomes one space, every `"` is dropped and the result is
    stripped of surrounding whitespace.
    """
    return _LINE_BREAKS.sub(" ", text).replace('"', "").strip()


def wrap_in_markdown(image_url: str) -> str:
    return f"![generated image]({image_url})"
