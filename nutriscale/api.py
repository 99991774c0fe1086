# -*- coding: utf-8 -*-
"""
NutriScale API

Food photo analysis, live scale readings and the dashboard push channel.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .dashboard.api import router as dashboard_router
from .food.api import router as food_router
from .realtime.websocket import dashboard_manager, websocket_endpoint
from .store import RealtimeStore, get_store

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    title="NutriScale",
    description="Live scale readings and photo-based nutrition facts",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(food_router)
app.include_router(dashboard_router)


@app.get("/api/health")
def health() -> dict:
    return {
        "ok": True,
        "store": settings.store_backend,
        "dashboards": len(dashboard_manager.sessions),
    }


@app.websocket("/api/ws/dashboard")
async def dashboard_websocket(websocket: WebSocket, store: RealtimeStore = Depends(get_store)):
    await websocket_endpoint(websocket, store)


# Static frontend
frontend_dir = Path(__file__).resolve().parent.parent / "frontend"
if frontend_dir.exists():
    app.mount("/app", StaticFiles(directory=frontend_dir, html=True), name="app")


@app.get("/", include_in_schema=False)
def root() -> FileResponse:
    index_file = frontend_dir / "index.html"
    if not index_file.exists():
        raise HTTPException(status_code=404, detail="frontend not found")
    return FileResponse(index_file)


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    uvicorn.run("nutriscale.api:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    run()
