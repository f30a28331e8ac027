"""Pydantic models for DALL-E tool input and Images API responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

SIZE_ALIASES = {
    "square": "1024x1024",
    "wide": "1792x1024",
    "tall": "1024x1792",
}


class GenerationRequest(BaseModel):
    """Arguments a calling agent passes to the dalle tool."""

    prompt: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="A text description of the desired image, following the rules, up to 4000 characters.",
    )
    style: Literal["vivid", "natural"] = Field(
        default="vivid",
        description=(
            "Must be one of `vivid` or `natural`. `vivid` generates hyper-real and dramatic images, "
            "`natural` produces more natural, less hyper-real looking images"
        ),
    )
    quality: Literal["hd", "standard"] = Field(
        default="standard",
        description="The quality of the generated image. Only `hd` and `standard` are supported.",
    )
    size: Literal["1024x1024", "1792x1024", "1024x1792"] = Field(
        default="1024x1024",
        description=(
            "The size of the requested image. Use 1024x1024 (square) as the default, 1792x1024 if the "
            "user requests a wide image, and 1024x1792 for full-body portraits. "
            "Always include this parameter in the request."
        ),
    )

    @field_validator("size", mode="before")
    @classmethod
    def resolve_size_alias(cls, v: object) -> object:
        """Accept `square`, `wide` and `tall` for the three pixel sizes."""
        if isinstance(v, str):
            return SIZE_ALIASES.get(v.strip().lower(), v)
        return v


class ImageData(BaseModel):
    """One generated image in an Images API response."""

    url: str | None = None
    b64_json: str | None = None
    revised_prompt: str | None = None


class ImagesResponse(BaseModel):
    """Images API response body."""

    created: int | None = None
    data: list[ImageData] = Field(default_factory=list)
