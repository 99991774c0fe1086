# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from nutriscale.api import app, run
from nutriscale.config import settings
from nutriscale.food.storage import now_ms
from nutriscale.realtime.websocket import dashboard_manager
from nutriscale.store import MemoryStore, get_store

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


class DashboardTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        app.dependency_overrides[get_store] = lambda: self.store

    def tearDown(self) -> None:
        app.dependency_overrides.clear()


class TestScaleWeightEndpoints(DashboardTestCase):
    def test_missing_weight_reads_zero(self) -> None:
        with TestClient(app) as client:
            resp = client.get("/api/scale/weight")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"weight": 0.0})

    def test_put_then_get(self) -> None:
        with TestClient(app) as client:
            resp = client.put("/api/scale/weight", json={"weight": 182.5})
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(client.get("/api/scale/weight").json(), {"weight": 182.5})
        self.assertEqual(self.store.snapshot("scale/weight"), 182.5)

    def test_rejects_non_numeric_weight(self) -> None:
        with TestClient(app) as client:
            resp = client.put("/api/scale/weight", json={"weight": "heavy"})
        self.assertEqual(resp.status_code, 422)
        self.assertIsNone(self.store.snapshot("scale/weight"))


class TestDashboardSnapshotEndpoint(DashboardTestCase):
    def test_empty_store(self) -> None:
        with TestClient(app) as client:
            body = client.get("/api/dashboard").json()
        self.assertEqual(body["weight"], 0.0)
        self.assertEqual(body["nutrition"]["state"], "empty")
        self.assertFalse(body["nutrition"]["stale"])
        self.assertEqual(body["scale"]["state"], "ready")

    def test_fresh_record_on_scale(self) -> None:
        self.store = MemoryStore({"food": {**APPLE, "timestamp": now_ms()}, "scale": {"weight": 200}})
        with TestClient(app) as client:
            body = client.get("/api/dashboard").json()
        self.assertEqual(body["nutrition"]["state"], "ready")
        self.assertEqual(body["nutrition"]["food"], "Red Apple")
        self.assertAlmostEqual(body["nutrition"]["totals"]["calories"], 95.0)
        self.assertEqual(body["scale"]["gauge"]["value"], 200)

    def test_stale_record_is_hidden(self) -> None:
        old = now_ms() - 31 * 60 * 1000
        self.store = MemoryStore({"food": {**APPLE, "timestamp": old}, "scale": {"weight": 200}})
        with TestClient(app) as client:
            body = client.get("/api/dashboard").json()
        self.assertEqual(body["nutrition"]["state"], "empty")
        self.assertTrue(body["nutrition"]["stale"])

    def test_health(self) -> None:
        with TestClient(app) as client:
            body = client.get("/api/health").json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["store"], settings.store_backend)
        self.assertEqual(body["dashboards"], 0)


class TestServe(unittest.TestCase):
    def test_run_serves_app_on_configured_address(self) -> None:
        with patch("uvicorn.run") as uvicorn_run, \
                patch.multiple(settings, host="0.0.0.0", port=9000):
            run()
        uvicorn_run.assert_called_once_with("nutriscale.api:app", host="0.0.0.0", port=9000, reload=False)


class TestDashboardWebSocket(DashboardTestCase):
    def _drain_initial(self, ws) -> dict:
        connected = ws.receive_json()
        self.assertEqual(connected["type"], "connected")
        # One push per subscription once each has its first value.
        first = ws.receive_json()
        second = ws.receive_json()
        self.assertEqual(first["type"], "dashboard")
        self.assertEqual(second["type"], "dashboard")
        return second

    def test_live_updates(self) -> None:
        generate = AsyncMock(return_value=json.dumps(APPLE))
        with patch("nutriscale.food.api.generate_nutrition_text", generate), \
                patch("nutriscale.food.api.send_photo", AsyncMock(return_value={"ok": True})), \
                patch.multiple(settings, telegram_bot_token="123:abc", telegram_chat_id="42"):
            with TestClient(app) as client:
                with client.websocket_connect("/api/ws/dashboard") as ws:
                    snapshot = self._drain_initial(ws)
                    self.assertEqual(snapshot["nutrition"]["state"], "empty")
                    self.assertEqual(snapshot["weight"], 0.0)

                    client.put("/api/scale/weight", json={"weight": 150})
                    snapshot = ws.receive_json()
                    self.assertEqual(snapshot["weight"], 150)
                    self.assertEqual(snapshot["scale"]["gauge"]["value"], 150)
                    self.assertEqual(snapshot["nutrition"]["state"], "empty")

                    resp = client.post(
                        "/api/analyze-food",
                        files={"image": ("apple.jpg", b"\xff\xd8jpeg", "image/jpeg")},
                    )
                    self.assertEqual(resp.status_code, 200)
                    snapshot = ws.receive_json()
                    nutrition = snapshot["nutrition"]
                    self.assertEqual(nutrition["state"], "ready")
                    self.assertEqual(nutrition["food"], "Red Apple")
                    self.assertAlmostEqual(nutrition["totals"]["calories"], 0.475 * 150)
                    self.assertEqual(nutrition["weight_display"], "150.0g")

                    self.assertEqual(len(dashboard_manager.sessions), 1)

        self.assertEqual(dashboard_manager.sessions, {})
        self.assertEqual(self.store.subscriber_count, 0)

    def test_ping_refresh_and_unknown_messages(self) -> None:
        with TestClient(app) as client:
            with client.websocket_connect("/api/ws/dashboard") as ws:
                self._drain_initial(ws)

                ws.send_text(json.dumps({"type": "ping"}))
                self.assertEqual(ws.receive_json(), {"type": "pong"})

                ws.send_text(json.dumps({"type": "refresh"}))
                self.assertEqual(ws.receive_json()["type"], "dashboard")

                ws.send_text("not json")
                self.assertEqual(ws.receive_json()["type"], "error")

    def test_handler_error_is_logged_with_traceback(self) -> None:
        failing = AsyncMock(side_effect=RuntimeError("render failed"))
        with patch.object(dashboard_manager, "send_snapshot", failing), \
                self.assertLogs("nutriscale.realtime.websocket", level="ERROR") as logs:
            with TestClient(app) as client:
                with client.websocket_connect("/api/ws/dashboard") as ws:
                    self.assertEqual(ws.receive_json()["type"], "connected")
                    ws.send_text(json.dumps({"type": "refresh"}))
        record = logs.records[0]
        self.assertEqual(record.getMessage(), "WebSocket error")
        self.assertIsNotNone(record.exc_info)
        self.assertEqual(dashboard_manager.sessions, {})


if __name__ == "__main__":
    unittest.main()
