# -*- coding: utf-8 -*-
"""Food: forward analysed photos to a Telegram chat."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# Telegram rejects photo captions longer than this.
CAPTION_LIMIT = 1024


class RelayConfigError(RuntimeError):
    """Bot token or chat id is not configured."""


class RelayError(RuntimeError):
    """The bot API answered but refused the photo."""


def build_caption(label: str, text: Optional[str]) -> str:
    caption = f"{label}:\n{text or ''}"
    if len(caption) > CAPTION_LIMIT:
        logger.debug("Truncating relay caption from %d to %d characters", len(caption), CAPTION_LIMIT)
    return caption[:CAPTION_LIMIT]


async def send_photo(
    *,
    photo: bytes,
    filename: str,
    mime: str,
    caption: str,
    bot_token: Optional[str],
    chat_id: Optional[str],
    api_base: str = "https://api.telegram.org",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    if not bot_token or not chat_id:
        raise RelayConfigError("Missing bot token or chat ID")

    url = f"{api_base.rstrip('/')}/bot{bot_token}/sendPhoto"
    data = {"chat_id": chat_id}
    if caption:
        data["caption"] = caption
    files = {"photo": (filename, photo, mime)}

    async with httpx.AsyncClient(timeout=None, follow_redirects=True, transport=transport) as client:
        resp = await client.post(url, data=data, files=files)
        result = resp.json()

    if not isinstance(result, dict) or not result.get("ok"):
        description = result.get("description") if isinstance(result, dict) else None
        raise RelayError(description or "Failed to send photo")
    logger.info("Relayed photo to chat %s", chat_id)
    return result
