# -*- coding: utf-8 -*-
"""
Live store subscriptions

Each subscription follows one store path and keeps a small state record
(value, loading, error) that is replaced on every push from the store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..config import settings
from ..food.models import NutritionRecord
from ..food.storage import coerce_record, coerce_weight, is_fresh, now_ms
from ..store import RealtimeStore, StoreError

logger = logging.getLogger(__name__)

CONNECT_ERROR = "Failed to connect to the realtime store"

ChangeListener = Callable[[], Awaitable[None]]


class Subscription:
    """Cancellable `subscribe(path)` with local state."""

    initial_value: Any = None

    def __init__(self, store: RealtimeStore, path: str, on_change: Optional[ChangeListener] = None) -> None:
        self.store = store
        self.path = path
        self.on_change = on_change
        self.value: Any = self.initial_value
        self.loading: bool = True
        self.error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    def transform(self, raw: Any) -> Any:
        return raw

    def on_value(self, raw: Any) -> None:
        self.value = self.transform(raw)
        self.loading = False

    def on_error(self, message: str) -> None:
        self.error = message
        self.loading = False

    def start(self) -> "Subscription":
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self

    async def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            await self.on_change()
        except Exception as exc:
            logger.warning("Listener for %s failed: %s", self.path, exc)

    async def _run(self) -> None:
        stream = None
        try:
            stream = self.store.subscribe(self.path)
            async for raw in stream:
                self.on_value(raw)
                await self._notify()
        except asyncio.CancelledError:
            raise
        except StoreError as exc:
            logger.error("Subscription to %s failed: %s", self.path, exc)
            self.on_error(str(exc))
            await self._notify()
        except Exception as exc:
            logger.error("Subscription to %s failed: %s", self.path, exc)
            self.on_error(CONNECT_ERROR)
            await self._notify()
        finally:
            if stream is not None:
                await stream.aclose()

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Subscription to %s ended with an error", self.path)


class FoodDataSubscription(Subscription):
    """Follows `food`; `is_data_valid` is true while the record is fresh."""

    def __init__(self, store: RealtimeStore, on_change: Optional[ChangeListener] = None) -> None:
        super().__init__(store, settings.food_path, on_change)
        self.is_data_valid: bool = False

    @property
    def record(self) -> Optional[NutritionRecord]:
        return self.value

    def transform(self, raw: Any) -> Optional[NutritionRecord]:
        return coerce_record(raw)

    def on_value(self, raw: Any) -> None:
        super().on_value(raw)
        self.check_freshness()

    def check_freshness(self, now: Optional[int] = None) -> bool:
        record = self.record
        self.is_data_valid = record is not None and is_fresh(record.timestamp, now=now if now is not None else now_ms())
        return self.is_data_valid


class ScaleWeightSubscription(Subscription):
    """Follows `scale/weight` in grams; empty or invalid readings are 0."""

    initial_value = 0.0

    def __init__(self, store: RealtimeStore, on_change: Optional[ChangeListener] = None) -> None:
        super().__init__(store, settings.weight_path, on_change)

    @property
    def weight(self) -> float:
        return self.value

    def transform(self, raw: Any) -> float:
        return coerce_weight(raw)
