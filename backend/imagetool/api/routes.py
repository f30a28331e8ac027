"""Image tool API routes (tool manifest + tool call + observability)."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from imagetool.agents import gen_image
from imagetool.agents.dalle3 import DALLE3
from imagetool.core.config import settings
from imagetool.core.cost import get_current_cost
from imagetool.core.logging import log
from imagetool.core.paths import get_data_path

router = APIRouter()

# Rate limiter instance
limiter = Limiter(key_func=get_remote_address)


class ToolCallRequest(BaseModel):
    """Request body for a dalle tool call."""

    user_id: str | None = None
    file_strategy: str | None = None
    args: dict[str, Any] = Field(default_factory=dict)


@router.get("/healthz")
def healthz() -> dict:
    """Liveness check with configuration summary (no secrets)."""
    return {
        "ok": True,
        "api_key_configured": bool(settings.dalle_api_key),
        "reverse_proxy": bool(settings.dalle_reverse_proxy),
        "proxy": bool(settings.proxy),
        "file_strategy": settings.file_strategy,
        "data_dir": str(get_data_path()),
        "cost_usd": str(get_current_cost()),
    }


@router.get("/tools/dalle")
def dalle_manifest() -> dict:
    """Tool declaration (name, descriptions and argument schema) for a calling agent."""
    return DALLE3.manifest()


@router.post("/tools/dalle")
@limiter.limit("10/minute")
async def call_dalle(request: Request) -> dict:
    """Run the dalle tool once.

    Rate limited to 10 requests per minute per client.

    Returns:
        Dict with:
        {
            "ok": True,
            "result": "![generated image](/images/<user>/<file>)"
        }

        Generation and storage failures are still `ok: True`; the message is in
        `result`, as a calling agent would receive it.

    Raises:
        HTTPException: 400 if body or tool arguments are invalid,
            500 if the tool cannot be constructed (e.g. DALLE_API_KEY missing)
    """
    # Parse body manually to work around slowapi/FastAPI integration issue
    try:
        body_dict = json.loads(await request.body())
        body = ToolCallRequest(**body_dict)
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid request body: {str(e)}")

    try:
        # Blocking network I/O runs in a worker thread
        result = await asyncio.to_thread(
            gen_image.generate, body.args, user_id=body.user_id, file_strategy=body.file_strategy
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid tool arguments: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        log.error(f"DALLE_TOOL_UNAVAILABLE: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    log.info(f"DALLE_TOOL_CALL user={body.user_id} ok={result.startswith('![')}")
    return {"ok": True, "result": result}
