"""DALL-E tool package.

Exports:
    DALLE3: Image generation tool adapter
"""

from .dalle3 import DALLE3

__all__ = ["DALLE3"]
