# -*- coding: utf-8 -*-
"""
Dashboard WebSocket

Each connection owns a food and a weight subscription; every store push is
turned into a fresh dashboard snapshot and sent to that connection.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect

from ..config import settings
from ..dashboard.presentation import dashboard_snapshot
from ..store import RealtimeStore
from .subscriptions import FoodDataSubscription, ScaleWeightSubscription

logger = logging.getLogger(__name__)


@dataclass
class DashboardSession:
    session_id: str
    websocket: WebSocket
    started_at: datetime
    food: FoodDataSubscription
    weight: ScaleWeightSubscription
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    pushes: int = 0


def build_snapshot(food: FoodDataSubscription, weight: ScaleWeightSubscription) -> dict:
    food.check_freshness()
    return dashboard_snapshot(
        record=food.record,
        is_data_valid=food.is_data_valid,
        food_loading=food.loading,
        food_error=food.error,
        weight=weight.weight,
        weight_loading=weight.loading,
        weight_error=weight.error,
        max_weight=settings.max_weight,
    )


class DashboardManager:
    """Tracks live dashboard connections."""

    def __init__(self) -> None:
        self.sessions: Dict[str, DashboardSession] = {}

    async def connect(self, websocket: WebSocket, store: RealtimeStore, session_id: Optional[str] = None) -> str:
        await websocket.accept()
        sid = session_id or str(uuid4())

        async def push() -> None:
            await self.send_snapshot(sid)

        session = DashboardSession(
            session_id=sid,
            websocket=websocket,
            started_at=datetime.now(),
            food=FoodDataSubscription(store, on_change=push),
            weight=ScaleWeightSubscription(store, on_change=push),
        )
        self.sessions[sid] = session
        logger.info("Dashboard connected: %s", sid)

        await self.send(session, {
            "type": "connected",
            "session_id": sid,
            "timestamp": datetime.now().isoformat(),
        })
        session.food.start()
        session.weight.start()
        return sid

    async def disconnect(self, session_id: str) -> None:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return
        await session.food.close()
        await session.weight.close()
        logger.info("Dashboard disconnected: %s", session_id)

    async def send(self, session: DashboardSession, message: dict) -> None:
        async with session.send_lock:
            await session.websocket.send_json(message)

    async def send_snapshot(self, session_id: str) -> None:
        session = self.sessions.get(session_id)
        if session is None:
            return
        session.pushes += 1
        message = {"type": "dashboard", **build_snapshot(session.food, session.weight)}
        await self.send(session, message)


dashboard_manager = DashboardManager()


async def websocket_endpoint(websocket: WebSocket, store: RealtimeStore) -> None:
    """Push snapshots until the client leaves; answers `ping` and `refresh` messages."""
    sid = await dashboard_manager.connect(websocket, store)
    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except ValueError:
                message = {}
            kind = message.get("type") if isinstance(message, dict) else None
            if kind == "ping":
                await dashboard_manager.send(dashboard_manager.sessions[sid], {"type": "pong"})
            elif kind == "refresh":
                await dashboard_manager.send_snapshot(sid)
            else:
                await dashboard_manager.send(
                    dashboard_manager.sessions[sid], {"type": "error", "message": "Unknown message"}
                )
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error")
    finally:
        await dashboard_manager.disconnect(sid)
