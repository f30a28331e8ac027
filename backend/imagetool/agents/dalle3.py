"""DALL-E 3 tool: prompt in, stored image reference (as markdown) out.

Processing flow:
    1. Validate the tool arguments against `GenerationRequest`.
    2. Flatten the prompt and call the Images API once (n=1).
    3. Take the first result URL and derive a file name from it.
    4. Hand the URL to the file-storage collaborator.
    5. Return `![generated image](<reference>)`.

Failures after validation are reported as plain strings so the calling agent
can relay them to the user.
"""

from __future__ import annotations

from typing import Any, Callable

from imagetool.clients.dalle import DalleClient
from imagetool.core.config import settings
from imagetool.core.files import process_file_url
from imagetool.core.image_utils import get_image_basename, new_image_name
from imagetool.core.logging import log
from imagetool.core.models import GenerationRequest, ImagesResponse
from imagetool.core.prompt_utils import replace_unwanted_chars, wrap_in_markdown

API_UNAVAILABLE = (
    "Something went wrong when trying to generate the image. "
    "The DALL-E API may be unavailable"
)
NO_IMAGE_URL = (
    "No image URL returned from OpenAI API. "
    "There may be a problem with the API or your configuration."
)
SAVE_FAILED = "Failed to save the image locally."

DESCRIPTION = """Use DALLE to create images from text descriptions.
- It requires prompts to be in English, detailed, and to specify image type and human features for diversity.
- Create only one image, without repeating or listing descriptions outside the "prompts" field.
- Maintains the original intent of the description, with parameters for image style, quality, and size to tailor the output."""

DEFAULT_SYSTEM_PROMPT = """// Whenever a description of an image is given, generate prompts (following these rules), and use dalle to create the image. If the user does not ask for a specific number of images, default to creating 2 prompts to send to dalle that are written to be as diverse as possible. All prompts sent to dalle must abide by the following policies:
// 1. Prompts must be in English. Translate to English if needed.
// 2. One image per function call. Create only 1 image per request unless explicitly told to generate more than 1 image.
// 3. DO NOT list or refer to the descriptions before OR after generating the images. They should ONLY ever be written out ONCE, in the `"prompts"` field of the request. You do not need to ask for permission to generate, just do it!
// 4. Always mention the image type (photo, oil painting, watercolor painting, illustration, cartoon, drawing, vector, render, etc.) at the beginning of the caption. Unless the captions suggests otherwise, make one of the images a photo.
// 5. Diversify depictions of ALL images with people to always include always DESCENT and GENDER for EACH person using direct terms. Adjust only human descriptions.
// - EXPLICITLY specify these attributes, not abstractly reference them. The attributes should be specified in a minimal way and should directly describe their physical form.
// - Your choices should be grounded in reality. For example, all of a given OCCUPATION should not be the same gender or race. Additionally, focus on creating diverse, inclusive, and exploratory scenes via the properties you choose during rewrites.  Make choices that may be insightful or unique sometimes.
// - Use "various" or "diverse" ONLY IF the description refers to groups of more than 3 people. Do not change the number of people requested in the original description.
// - Don't alter memes, fictional character origins, or unseen people. Maintain the original prompt's intent and prioritize quality.
// The prompt must intricately describe every part of the image in concrete, objective detail. THINK about what the end goal of the description is, and extrapolate that to what would make satisfying images.
// All descriptions sent to dalle should be a paragraph of text that is extremely descriptive and detailed. Each should be more than 3 sentences long."""

StorageFn = Callable[..., str]


class DALLE3:
    """DALL-E 3 image generation tool."""

    name = "dalle"
    description = DESCRIPTION
    schema = GenerationRequest

    def __init__(
        self,
        user_id: str | None = None,
        file_strategy: str | None = None,
        api_key: str | None = None,
        client: DalleClient | None = None,
        storage: StorageFn | None = None,
    ):
        self.user_id = user_id
        self.file_strategy = file_strategy
        self.client = client or DalleClient(api_key=api_key or self.get_api_key())
        self.storage = storage or process_file_url
        self.description_for_model = settings.dalle3_system_prompt or DEFAULT_SYSTEM_PROMPT
        self.result: str | None = None

    @staticmethod
    def get_api_key() -> str:
        api_key = settings.dalle_api_key or ""
        if not api_key:
            raise RuntimeError("Missing DALLE_API_KEY environment variable.")
        return api_key

    @staticmethod
    def replace_unwanted_chars(text: str) -> str:
        return replace_unwanted_chars(text)

    @staticmethod
    def wrap_in_markdown(image_url: str) -> str:
        return wrap_in_markdown(image_url)

    @classmethod
    def manifest(cls) -> dict[str, Any]:
        """Tool declaration for a calling agent (name, descriptions, JSON schema)."""
        return {
            "name": cls.name,
            "description": cls.description,
            "description_for_model": settings.dalle3_system_prompt or DEFAULT_SYSTEM_PROMPT,
            "parameters": cls.schema.model_json_schema(),
        }

    def run(self, data: dict[str, Any]) -> str:
        """Generate one image and return a markdown reference or an error string.

        Args:
            data: Tool arguments (prompt, style, quality, size)

        Returns:
            `![generated image](<reference>)` on success, otherwise a message
            describing what failed

        Raises:
            ValueError: If `prompt` is missing or empty
            pydantic.ValidationError: If other arguments are out of range
        """
        if not data.get("prompt"):
            raise ValueError("Missing required field: prompt")
        request = GenerationRequest.model_validate(data)

        try:
            resp = self.client.generate(
                prompt=self.replace_unwanted_chars(request.prompt),
                quality=request.quality,
                style=request.style,
                size=request.size,
                n=1,
            )
        except Exception as e:
            log.error(f"dalle3_generate_failed user={self.user_id} error={e}")
            return f"{API_UNAVAILABLE}:\nError Message: {e}"

        if not resp:
            return API_UNAVAILABLE

        image_url = self._first_url(resp)
        if not image_url:
            log.warning(f"dalle3_no_image_url user={self.user_id} results={len(resp.data)}")
            return NO_IMAGE_URL

        image_name = get_image_basename(image_url)
        if image_name:
            log.debug(f"dalle3_image_name name={image_name}")
        else:
            image_name = new_image_name()
            log.debug(f"dalle3_no_image_name url={image_url[:120]} generated={image_name}")

        try:
            reference = self.storage(
                file_strategy=self.file_strategy,
                user_id=self.user_id,
                url=image_url,
                file_name=image_name,
                base_path="images",
            )
            self.result = self.wrap_in_markdown(reference)
        except Exception as e:
            log.error(f"dalle3_save_failed user={self.user_id} name={image_name} error={e}", exc_info=True)
            self.result = f"{SAVE_FAILED} {e}"

        return self.result

    @staticmethod
    def _first_url(resp: ImagesResponse) -> str | None:
        if not resp.data:
            return None
        return resp.data[0].url
