# -*- coding: utf-8 -*-
"""Food: API endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from ..config import settings
from ..store import RealtimeStore, get_store
from .models import AnalyzeParseFailure, ErrorResponse, FoodStateResponse, NutritionRecord, RelayFailureResponse
from .relay import RelayConfigError, RelayError, build_caption, send_photo
from .storage import create_record, is_fresh, load_food_record, save_food_record
from .vision import generate_nutrition_text, parse_nutrition_reply

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Food"])

PARSE_ERROR = "Failed to parse JSON response"


@dataclass
class ImageUpload:
    data: bytes
    mime: str
    filename: str


async def _read_image(request: Request) -> Optional[ImageUpload]:
    """Multipart field `image`, or a raw `image/*` body as posted by the ESP32-CAM."""
    content_type = (request.headers.get("content-type") or "").lower()
    if content_type.startswith("image/"):
        body = await request.body()
        if not body:
            return None
        mime = content_type.split(";", 1)[0].strip()
        return ImageUpload(data=body, mime=mime, filename="capture." + mime.split("/", 1)[1])

    if not content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        return None
    form = await request.form()
    item = form.get("image")
    if not isinstance(item, UploadFile):
        return None
    data = await item.read()
    if not data:
        return None
    return ImageUpload(
        data=data,
        mime=item.content_type or "application/octet-stream",
        filename=item.filename or "image",
    )


async def _relay_photo(upload: ImageUpload, text: str) -> Optional[JSONResponse]:
    """Best-effort relay. Returns an error response only for config or bot refusals."""
    try:
        await send_photo(
            photo=upload.data,
            filename=upload.filename,
            mime=upload.mime,
            caption=build_caption(settings.relay_caption_label, text),
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            api_base=settings.telegram_api_base,
        )
    except (RelayConfigError, RelayError) as exc:
        logger.warning("Telegram relay refused: %s", exc)
        return JSONResponse(status_code=500, content=RelayFailureResponse(error=str(exc)).model_dump())
    except httpx.HTTPError as exc:
        logger.error("Error sending photo to Telegram: %s", exc)
    except Exception:
        # The record is already stored; relay failures never fail the request.
        logger.exception("Error sending photo to Telegram")
    return None


@router.post(
    "/analyze-food",
    summary="Analyze a food photo and publish its nutrition facts",
    responses={
        200: {"model": NutritionRecord},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze_food(request: Request, store: RealtimeStore = Depends(get_store)):
    try:
        upload = await _read_image(request)
        if upload is None:
            return JSONResponse(status_code=400, content=ErrorResponse(error="No image provided").model_dump())

        text = await generate_nutrition_text(upload.data, upload.mime)
        logger.info("Model reply: %s", text)

        try:
            analysis = parse_nutrition_reply(text)
        except ValueError as exc:
            logger.warning("Model reply is not a nutrition record: %s", exc)
            return JSONResponse(content=AnalyzeParseFailure(raw=text, error=PARSE_ERROR).model_dump())

        record = create_record(analysis)
        await save_food_record(store, record)

        relay_failure = await _relay_photo(upload, text)
        if relay_failure is not None:
            return relay_failure

        return JSONResponse(content=record.model_dump())
    except Exception:
        logger.exception("Error processing image")
        return JSONResponse(status_code=500, content=ErrorResponse(error="Failed to process image").model_dump())


@router.get("/food", response_model=FoodStateResponse, summary="Current nutrition record")
async def get_food(store: RealtimeStore = Depends(get_store)) -> FoodStateResponse:
    record = await load_food_record(store)
    return FoodStateResponse(
        food=record,
        is_data_valid=record is not None and is_fresh(record.timestamp),
    )
