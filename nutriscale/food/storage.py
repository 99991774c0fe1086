# -*- coding: utf-8 -*-
"""Food: current nutrition record and scale reading in the realtime store."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Optional

from pydantic import ValidationError

from ..config import settings
from ..store import RealtimeStore
from .models import NutritionAnalysis, NutritionRecord

logger = logging.getLogger(__name__)

# Records older than this are no longer shown.
STALE_AFTER_MS = 30 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def create_record(analysis: NutritionAnalysis, *, now: Optional[int] = None) -> NutritionRecord:
    return NutritionRecord(
        **analysis.model_dump(),
        timestamp=now_ms() if now is None else now,
    )


def is_fresh(timestamp: Any, *, now: Optional[int] = None, max_age_ms: Optional[int] = None) -> bool:
    """True while the record is younger than `STALE_AFTER_MS`."""
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not timestamp:
        return False
    current = now_ms() if now is None else now
    limit = STALE_AFTER_MS if max_age_ms is None else max_age_ms
    return current - timestamp < limit


def coerce_record(value: Any) -> Optional[NutritionRecord]:
    if value is None:
        return None
    try:
        return NutritionRecord.model_validate(value)
    except ValidationError as exc:
        logger.warning("Ignoring malformed food record: %s", exc.errors()[:3])
        return None


def coerce_weight(value: Any) -> float:
    """Scale readings are grams; anything unusable reads as an empty scale."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    weight = float(value)
    if math.isnan(weight) or math.isinf(weight):
        return 0.0
    return weight


async def save_food_record(store: RealtimeStore, record: NutritionRecord) -> None:
    # Overwrites unconditionally: last writer wins.
    await store.set(settings.food_path, record.model_dump())
    logger.info("Stored food record %r at %s", record.food, settings.food_path)


async def load_food_record(store: RealtimeStore) -> Optional[NutritionRecord]:
    return coerce_record(await store.get(settings.food_path))


async def load_weight(store: RealtimeStore) -> float:
    return coerce_weight(await store.get(settings.weight_path))


async def save_weight(store: RealtimeStore, weight: float) -> None:
    await store.set(settings.weight_path, weight)
