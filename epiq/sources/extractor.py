"""
Label extraction through an OpenAI-compatible AI gateway.

Sends a product photo (URL or data URL) to a vision model and reads back
the ingredient list, brand, category and product name as JSON.
"""

import base64
import json
import mimetypes
import re
from pathlib import Path
from typing import Any, Dict

import requests

from ..env import Settings
from ..logger import get_logger

logger = get_logger()

EXTRACTION_TIMEOUT = 60

CATEGORIES = ("cleanser", "serum", "moisturizer", "toner", "sunscreen", "mask", "treatment")

EXTRACTION_PROMPT = f"""Read the skincare or cosmetic product label in this image and return:
1. The ingredient list, comma-separated, without special characters
2. The brand name, if visible
3. The product category, one of: {", ".join(CATEGORIES)}
4. The product name, if visible

Return ONLY a JSON object shaped exactly like:
{{"ingredients": "ingredient1, ingredient2", "brand": "Brand", "category": "category", "productName": "Product"}}

Only the ingredients section belongs in "ingredients"; leave out directions,
warnings and marketing copy. Keep commas, hyphens and parentheses. Use an
empty string for any field that is not visible."""

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ExtractionError(Exception):
    """Raised when the gateway call fails or its reply cannot be read."""
    pass


def image_to_data_url(path: Path) -> str:
    """Encode a local image file as a data URL the gateway accepts."""
    mime = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def parse_label_reply(content: str) -> Dict[str, Any]:
    """Pull the first JSON object out of the model's reply and normalize its keys."""
    match = JSON_OBJECT.search(content or "")
    if not match:
        raise ExtractionError("Could not find JSON in AI response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON in AI response: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError("AI response JSON is not an object")

    def _field(key: str) -> str:
        v = data.get(key)
        return v.strip() if isinstance(v, str) else ""

    return {
        "ingredients": _field("ingredients"),
        "brand": _field("brand"),
        "category": _field("category").lower(),
        "product_name": _field("productName"),
    }


def extract_label(image_url: str, settings: Settings) -> Dict[str, Any]:
    """Extract label fields from a product photo.

    Raises:
        ExtractionError: When the gateway is not configured, the request
            fails, or the reply holds no usable JSON
    """
    if not settings.ai_gateway_key:
        raise ExtractionError("AI_GATEWAY_KEY not configured")

    logger.record_api_call()
    try:
        r = requests.post(
            f"{settings.ai_gateway_url.rstrip('/')}/chat/completions",
            headers={
                "Authorization": f"Bearer {settings.ai_gateway_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": settings.ai_model,
                "messages": [{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }],
            },
            timeout=EXTRACTION_TIMEOUT,
        )
        r.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.error("AI gateway request failed", status=status)
        raise ExtractionError(f"AI gateway request failed: {status}") from e
    except requests.exceptions.RequestException as e:
        logger.error("AI gateway request error", error=str(e))
        raise ExtractionError(f"AI gateway request error: {e}") from e

    try:
        content = r.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ExtractionError("No content returned from AI") from e

    label = parse_label_reply(content)
    logger.info("Label extracted", brand=label["brand"], ingredients=len(label["ingredients"]))
    return label
