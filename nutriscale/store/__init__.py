# -*- coding: utf-8 -*-
"""
Realtime store clients

`food` and `scale/weight` live in an external key-path database. The app talks
to it through `RealtimeStore`; `NUTRISCALE_STORE` selects the backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import settings
from .base import RealtimeStore, StoreError
from .firebase import FirebaseStore
from .memory import MemoryStore

logger = logging.getLogger(__name__)

_store: Optional[RealtimeStore] = None


def create_store() -> RealtimeStore:
    backend = settings.store_backend
    if backend == "firebase":
        logger.info("Using Firebase realtime store at %s", settings.firebase_database_url)
        return FirebaseStore(settings.firebase_database_url or "", auth=settings.firebase_auth)
    if backend != "memory":
        raise ValueError(f"Unknown NUTRISCALE_STORE backend: {backend!r}")
    logger.info("Using in-process memory store")
    return MemoryStore()


def get_store() -> RealtimeStore:
    """FastAPI dependency returning the process-wide store client."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def set_store(store: Optional[RealtimeStore]) -> None:
    global _store
    _store = store


__all__ = [
    "FirebaseStore",
    "MemoryStore",
    "RealtimeStore",
    "StoreError",
    "create_store",
    "get_store",
    "set_store",
]
