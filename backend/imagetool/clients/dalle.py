from __future__ import annotations

import httpx
from pydantic import ValidationError

from imagetool.core.config import settings
from imagetool.core.cost import add_cost, check_budget, estimate_image_cost
from imagetool.core.logging import log
from imagetool.core.models import ImagesResponse

BASE_URL = "https://api.openai.com/v1"


class DalleAPIError(RuntimeError):
    """Raised when the Images API answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def extract_base_url(url: str) -> str:
    """Reduce a reverse-proxy URL to the API base the client should use.

    Everything up to and including `/v1` is kept. Gateway URLs of the form
    `https://gw.example.com/acct/openai/...` keep the path up to `/openai`.
    Anything else is returned without its trailing slash.

    Example:
        >>> extract_base_url("https://proxy.example.com/v1/images/generations")
        'https://proxy.example.com/v1'
    """
    if "/openai/" in url and "/v1" not in url:
        return url.split("/openai/", 1)[0] + "/openai"
    if "/v1" in url:
        return url[: url.index("/v1") + 3]
    return url.rstrip("/")


def _error_message(resp: httpx.Response) -> str:
    """Pull `error.message` out of an OpenAI error body, falling back to raw text."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return resp.text or f"HTTP {resp.status_code}"


class DalleClient:
    """OpenAI Images API client (DALL-E 3)."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        proxy: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
    ):
        if not api_key:
            raise ValueError("API key cannot be empty")
        self.key = api_key
        reverse_proxy = base_url if base_url is not None else settings.dalle_reverse_proxy
        self.base_url = extract_base_url(reverse_proxy) if reverse_proxy else BASE_URL
        self.proxy = proxy if proxy is not None else settings.proxy
        self.model = model or settings.dalle_model
        self.timeout_s = timeout_s or settings.dalle_timeout_s
        self.headers = {
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    def generate(
        self,
        prompt: str,
        quality: str = "standard",
        style: str = "vivid",
        size: str = "1024x1024",
        n: int = 1,
    ) -> ImagesResponse:
        """Create image(s) from a prompt.

        Args:
            prompt: Final (already sanitized) prompt
            quality: `standard` or `hd`
            style: `vivid` or `natural`
            size: `1024x1024`, `1792x1024` or `1024x1792`
            n: Number of images (dall-e-3 only accepts 1)

        Returns:
            Parsed Images API response

        Raises:
            RuntimeError: If this call alone exceeds the cost budget
            DalleAPIError: If the API returns an error status or a malformed body
            httpx.HTTPError: On network failures
        """
        estimate = estimate_image_cost(quality, size) * n
        check_budget(estimate, "dalle")

        data = {
            "model": self.model,
            "quality": quality,
            "style": style,
            "size": size,
            "prompt": prompt,
            "n": n,
        }

        log.info(
            f"dalle_request model={self.model} quality={quality} style={style} "
            f"size={size} prompt_len={len(prompt)} base_url={self.base_url}"
        )

        with httpx.Client(timeout=self.timeout_s, proxy=self.proxy or None) as client:
            r = client.post(f"{self.base_url}/images/generations", headers=self.headers, json=data)

        if r.status_code >= 400:
            message = _error_message(r)
            log.error(f"dalle_generate_failed status={r.status_code} error={message[:300]}")
            raise DalleAPIError(message, status_code=r.status_code)

        try:
            parsed = ImagesResponse.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            log.error(f"dalle_bad_response status={r.status_code} body={r.text[:300]}")
            raise DalleAPIError(f"Malformed Images API response: {e}", status_code=r.status_code) from e

        add_cost(estimate, "dalle")
        log.info(f"dalle_generated count={len(parsed.data)} created={parsed.created}")
        return parsed
