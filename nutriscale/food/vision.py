# -*- coding: utf-8 -*-
"""Food: nutrition estimation from a photo via the Gemini generateContent API."""

from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from .models import NutritionAnalysis

logger = logging.getLogger(__name__)

NO_FOOD_TOKEN = "none"

NUTRITION_PROMPT = (
    "Analyze this food image and provide its nutritional facts using this json format "
    '"{ \\"food\\": \\"Red Apple\\", \\"nutritional_facts_per_gram\\": { \\"calories\\": 0.475, '
    '\\"carbohydrates\\": { \\"total\\": 0.125, \\"sugars\\": 0.095, \\"dietary_fiber\\": 0.02 }, '
    '\\"protein\\": 0.0025, \\"fat\\": 0.0015, \\"vitamin_c\\": \\"0.07% RDI\\", '
    '\\"potassium_mg\\": 0.975, \\"water_content\\": \\"85%\\" } }" '
    f"if no object reply with {NO_FOOD_TOKEN}."
)

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")


class VisionError(RuntimeError):
    """The inference service could not be reached or returned no usable reply."""


@dataclass(frozen=True)
class VisionSettings:
    api_key: str | None
    model: str
    base_url: str


def resolve_vision_settings() -> VisionSettings:
    return VisionSettings(
        api_key=settings.google_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
    )


def build_generate_content_payload(image_bytes: bytes, image_mime: str, prompt: str = NUTRITION_PROMPT) -> Dict[str, Any]:
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"inline_data": {"mime_type": image_mime, "data": b64}},
                    {"text": prompt},
                ],
            }
        ]
    }


def _extract_text_from_gemini_response(data: object) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    if not isinstance(first, dict):
        return ""
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    out: list[str] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        # Thought summaries are not part of the answer.
        if part.get("thought"):
            continue
        text = part.get("text")
        if isinstance(text, str) and text:
            out.append(text)
    return "".join(out)


def _extract_error_from_gemini_response(data: object) -> str | None:
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        status = err.get("status") or err.get("code") or "error"
        message = err.get("message") or ""
        return f"{status}: {message}".strip(": ")
    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return f"Prompt blocked: {feedback['blockReason']}"
    return None


async def generate_nutrition_text(
    image_bytes: bytes,
    image_mime: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Send the photo and the fixed prompt; return the model's raw reply text."""
    cfg = resolve_vision_settings()
    if not cfg.api_key:
        raise VisionError("GOOGLE_API_KEY is not configured")

    url = f"{cfg.base_url}/models/{cfg.model}:generateContent"
    payload = build_generate_content_payload(image_bytes, image_mime)

    try:
        async with httpx.AsyncClient(timeout=None, follow_redirects=True, transport=transport) as client:
            resp = await client.post(url, params={"key": cfg.api_key}, json=payload)
            try:
                data = resp.json()
            except ValueError:
                data = None
            if resp.status_code >= 400:
                detail = _extract_error_from_gemini_response(data) or resp.text[:200]
                raise VisionError(f"Gemini returned {resp.status_code}: {detail}")
    except httpx.HTTPError as exc:
        raise VisionError(f"Gemini call failed: {exc}") from exc

    if data is None:
        raise VisionError("Gemini returned a non-JSON body")
    error = _extract_error_from_gemini_response(data)
    if error:
        raise VisionError(error)
    return _extract_text_from_gemini_response(data)


def extract_json_block(text: str) -> str:
    """First `{` through last `}`; the whole text when there are no braces."""
    match = _JSON_BLOCK_RE.search(text or "")
    return match.group(0) if match else (text or "")


def parse_nutrition_reply(text: str) -> NutritionAnalysis:
    """Parse the model reply into a validated analysis.

    Raises ValueError (including pydantic's ValidationError) when the reply has
    no JSON object or the object does not match the requested shape.
    """
    parsed = json.loads(extract_json_block(text))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return NutritionAnalysis.model_validate(parsed)
