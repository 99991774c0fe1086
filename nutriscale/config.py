from __future__ import annotations

import os
from typing import List


class Settings:
    """Centralized configuration for the scale dashboard backend."""

    def __init__(self) -> None:
        # ---- Inference (Gemini) ----
        self.google_api_key: str | None = os.environ.get("GOOGLE_API_KEY") or None
        self.gemini_model: str = (
            os.environ.get("GEMINI_MODEL") or "gemini-2.0-flash-lite"
        ).strip()
        self.gemini_base_url: str = os.environ.get(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/")

        # ---- Messaging relay (Telegram) ----
        # Missing credentials are not a startup error: the analyze handler reports them per request.
        self.telegram_bot_token: str | None = os.environ.get("TELEGRAM_BOT_TOKEN") or None
        self.telegram_chat_id: str | None = os.environ.get("TELEGRAM_CHAT_ID") or None
        self.telegram_api_base: str = os.environ.get(
            "TELEGRAM_API_BASE", "https://api.telegram.org"
        ).rstrip("/")
        self.relay_caption_label: str = os.environ.get("NUTRISCALE_CAPTION_LABEL") or "Gemini"

        # ---- Realtime store ----
        self.store_backend: str = (os.environ.get("NUTRISCALE_STORE") or "memory").strip().lower()
        self.firebase_database_url: str | None = (
            os.environ.get("FIREBASE_DATABASE_URL") or ""
        ).rstrip("/") or None
        self.firebase_auth: str | None = os.environ.get("FIREBASE_AUTH") or None
        self.food_path: str = "food"
        self.weight_path: str = "scale/weight"

        # ---- Dashboard ----
        self.max_weight: float = float(os.environ.get("NUTRISCALE_MAX_WEIGHT") or "500")

        cors = os.environ.get("NUTRISCALE_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]

        # ---- Server ----
        self.host: str = os.environ.get("NUTRISCALE_HOST") or os.environ.get("HOST") or "127.0.0.1"
        port_raw = os.environ.get("NUTRISCALE_PORT") or os.environ.get("PORT") or "8000"
        try:
            self.port: int = int(port_raw)
        except ValueError:
            self.port = 8000


settings = Settings()
