"""
AI image generation relay.
Forwards a prompt and the caller's API key to the Imagen predict endpoint.
"""

import logging

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

DATA_URL_PREFIX = "data:image/png;base64,"

PROMPT_TEMPLATES = {
    "content": (
        'Create a modern, clean illustration related to: "{text}". '
        "Use vibrant colors and professional design. Style: minimal, tech-focused, high quality."
    ),
    "background": (
        'Create an abstract background design inspired by: "{text}". '
        "Use gradients, geometric shapes, and modern aesthetics. "
        "Style: clean, professional, suitable as a background."
    ),
}


class ImageGenerationError(Exception):
    """Image generation failed with a message meant for the client."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def build_default_prompt(kind: str, text: str) -> str:
    """Default prompt for a content illustration or an abstract background."""
    try:
        template = PROMPT_TEMPLATES[kind]
    except KeyError:
        raise ValueError(f"Unknown image kind: {kind}") from None
    return template.format(text=text)


def to_data_url(image_base64: str) -> str:
    return DATA_URL_PREFIX + image_base64


def predict_url() -> str:
    return f"{settings.image_api_base_url}/models/{settings.image_model}:predict"


async def generate_image(prompt: str, api_key: str) -> str:
    """
    Request a single image from the upstream model.

    Args:
        prompt: Text prompt for the image
        api_key: Caller's Google AI Studio key

    Returns:
        Base64-encoded image bytes, exactly as returned upstream

    Raises:
        ImageGenerationError: on missing input, a failed request,
            non-success status, or a response without image data
    """
    if not prompt:
        raise ImageGenerationError("Prompt is required.", 400)
    if not api_key:
        raise ImageGenerationError("API key is required.", 400)

    payload = {
        "instances": [{"prompt": prompt}],
        "parameters": {"sampleCount": 1},
    }

    try:
        async with httpx.AsyncClient(timeout=settings.image_api_timeout) as client:
            response = await client.post(
                predict_url(),
                params={"key": api_key},
                json=payload,
            )
    except httpx.HTTPError as e:
        logger.error(f"Image API request failed: {e!r}")
        raise ImageGenerationError("An internal server error occurred.", 500) from e

    if not response.is_success:
        logger.error(f"Image API error {response.status_code}: {response.text[:500]}")
        raise ImageGenerationError(
            f"Failed to generate image. Status: {response.status_code}",
            response.status_code,
        )

    try:
        result = response.json()
        image_base64 = result["predictions"][0]["bytesBase64Encoded"]
    except (ValueError, KeyError, IndexError, TypeError):
        image_base64 = None

    if not image_base64:
        logger.error(f"Unexpected image API response: {response.text[:500]}")
        raise ImageGenerationError("Unexpected response from image generation API.", 500)

    return image_base64
