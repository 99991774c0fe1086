# -*- coding: utf-8 -*-

from __future__ import annotations

import base64
import json
import unittest
from unittest.mock import patch

import httpx
from pydantic import ValidationError

from nutriscale.config import settings
from nutriscale.food.vision import (
    NUTRITION_PROMPT,
    VisionError,
    build_generate_content_payload,
    extract_json_block,
    generate_nutrition_text,
    parse_nutrition_reply,
)

APPLE = {
    "food": "Red Apple",
    "nutritional_facts_per_gram": {
        "calories": 0.475,
        "carbohydrates": {"total": 0.125, "sugars": 0.095, "dietary_fiber": 0.02},
        "protein": 0.0025,
        "fat": 0.0015,
        "vitamin_c": "0.07% RDI",
        "potassium_mg": 0.975,
        "water_content": "85%",
    },
}


class TestExtractJsonBlock(unittest.TestCase):
    def test_strips_markdown_fence_and_prose(self) -> None:
        text = "Here you go:\n```json\n" + json.dumps(APPLE) + "\n```\nEnjoy!"
        self.assertEqual(json.loads(extract_json_block(text)), APPLE)

    def test_without_braces_returns_text(self) -> None:
        self.assertEqual(extract_json_block("none"), "none")
        self.assertEqual(extract_json_block(""), "")


class TestParseNutritionReply(unittest.TestCase):
    def test_apple_reply(self) -> None:
        analysis = parse_nutrition_reply(json.dumps(APPLE))
        self.assertEqual(analysis.food, "Red Apple")
        self.assertEqual(analysis.nutritional_facts_per_gram.calories, 0.475)
        self.assertEqual(analysis.nutritional_facts_per_gram.carbohydrates.sugars, 0.095)
        self.assertEqual(analysis.nutritional_facts_per_gram.vitamin_c, "0.07% RDI")

    def test_none_token_fails(self) -> None:
        with self.assertRaises(ValueError):
            parse_nutrition_reply("none")

    def test_missing_field_fails_closed(self) -> None:
        broken = json.loads(json.dumps(APPLE))
        del broken["nutritional_facts_per_gram"]["protein"]
        with self.assertRaises(ValidationError):
            parse_nutrition_reply(json.dumps(broken))

    def test_numeric_string_is_rejected(self) -> None:
        broken = json.loads(json.dumps(APPLE))
        broken["nutritional_facts_per_gram"]["calories"] = "0.475"
        with self.assertRaises(ValueError):
            parse_nutrition_reply(json.dumps(broken))

    def test_integer_values_are_accepted(self) -> None:
        data = json.loads(json.dumps(APPLE))
        data["nutritional_facts_per_gram"]["fat"] = 0
        analysis = parse_nutrition_reply(json.dumps(data))
        self.assertEqual(analysis.nutritional_facts_per_gram.fat, 0.0)

    def test_unknown_keys_are_dropped(self) -> None:
        data = dict(APPLE, confidence=0.9, timestamp=1)
        analysis = parse_nutrition_reply(json.dumps(data))
        self.assertNotIn("confidence", analysis.model_dump())
        self.assertNotIn("timestamp", analysis.model_dump())


class TestGenerateContentPayload(unittest.TestCase):
    def test_image_then_prompt(self) -> None:
        payload = build_generate_content_payload(b"\xff\xd8jpeg", "image/jpeg")
        parts = payload["contents"][0]["parts"]
        self.assertEqual(parts[0]["inline_data"]["mime_type"], "image/jpeg")
        self.assertEqual(base64.b64decode(parts[0]["inline_data"]["data"]), b"\xff\xd8jpeg")
        self.assertEqual(parts[1]["text"], NUTRITION_PROMPT)
        self.assertIn("Red Apple", NUTRITION_PROMPT)
        self.assertTrue(NUTRITION_PROMPT.endswith("if no object reply with none."))


class TestGenerateNutritionText(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        patcher = patch.multiple(
            settings,
            google_api_key="test-key",
            gemini_model="gemini-2.0-flash-lite",
            gemini_base_url="https://gemini.test/v1beta",
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    async def test_returns_candidate_text(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "```json\n"}, {"text": "{}\n```"}]}}]},
            )

        text = await generate_nutrition_text(b"img", "image/png", transport=httpx.MockTransport(handler))
        self.assertEqual(text, "```json\n{}\n```")
        self.assertTrue(seen["url"].startswith("https://gemini.test/v1beta/models/gemini-2.0-flash-lite:generateContent"))
        self.assertIn("key=test-key", seen["url"])
        self.assertEqual(seen["body"]["contents"][0]["parts"][0]["inline_data"]["mime_type"], "image/png")

    async def test_http_error_raises_vision_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": {"code": 403, "status": "PERMISSION_DENIED", "message": "bad key"}})

        with self.assertRaises(VisionError) as ctx:
            await generate_nutrition_text(b"img", "image/jpeg", transport=httpx.MockTransport(handler))
        self.assertIn("PERMISSION_DENIED", str(ctx.exception))

    async def test_transport_error_raises_vision_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with self.assertRaises(VisionError):
            await generate_nutrition_text(b"img", "image/jpeg", transport=httpx.MockTransport(handler))

    async def test_blocked_prompt_raises_vision_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        with self.assertRaises(VisionError):
            await generate_nutrition_text(b"img", "image/jpeg", transport=httpx.MockTransport(handler))

    async def test_missing_api_key(self) -> None:
        with patch.object(settings, "google_api_key", None):
            with self.assertRaises(VisionError):
                await generate_nutrition_text(b"img", "image/jpeg")


if __name__ == "__main__":
    unittest.main()
