from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from imagetool.api.routes import limiter, router
from imagetool.core.config import settings
from imagetool.core.logging import log
from imagetool.core.paths import get_data_path

# Local file strategy root, served under /images
IMAGES_DIR = get_data_path("images")
IMAGES_DIR.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI app."""
    log.info(
        f"IMAGETOOL_STARTUP model={settings.dalle_model} file_strategy={settings.file_strategy} "
        f"api_key_configured={bool(settings.dalle_api_key)}"
    )
    if not settings.dalle_api_key:
        log.warning("IMAGETOOL_NO_API_KEY tool calls will fail until DALLE_API_KEY is set")

    yield

    log.info("IMAGETOOL_SHUTDOWN")


app = FastAPI(lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3080", "http://localhost:5173"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def body_size_limit_middleware(request: Request, call_next):
    """Limits request body size (prompts are capped at 4000 chars anyway).

    Returns:
        JSONResponse: 400 if Content-Length is not a number, 413 if body exceeds 64KB
    """
    content_length = request.headers.get("content-length")
    if not content_length:
        return await call_next(request)
    try:
        size = int(content_length)
    except ValueError:
        log.warning(f"bad_content_length client={get_remote_address(request)} value={content_length[:40]}")
        return JSONResponse({"error": "Invalid Content-Length header"}, status_code=400)
    if size > 64_000:
        log.warning(f"body_too_large client={get_remote_address(request)} size={content_length}")
        return JSONResponse(
            {"error": "Payload too large (max 64KB)"},
            status_code=413,
        )
    return await call_next(request)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Adds security headers to all responses."""
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


# API routes
app.include_router(router, prefix="/api")

# Serve images stored by the local file strategy
app.mount("/images", StaticFiles(directory=str(IMAGES_DIR)), name="images")


@app.get("/")
def root() -> dict:
    """Root endpoint."""
    return {
        "name": "DALL-E Image Tool API",
        "docs": "/docs",
        "health": "/api/healthz",
        "endpoints": {
            "manifest": "/api/tools/dalle",
            "call": "/api/tools/dalle",
            "images": "/images/{user_id}/{file_name}",
        },
    }
