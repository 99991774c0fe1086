# -*- coding: utf-8 -*-
"""Realtime store: Firebase Realtime Database over its REST/streaming API."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import httpx

from .base import RealtimeStore, StoreError, split_path, write_at

logger = logging.getLogger(__name__)


def parse_sse_event(lines: list[str]) -> Tuple[str, str]:
    """Join one SSE block into `(event, data)`."""
    event = "message"
    data_lines: list[str] = []
    for line in lines:
        if line.startswith("event:"):
            event = line[6:].strip()
        elif line.startswith("data:"):
            data_lines.append(line[5:].strip())
    return event, "\n".join(data_lines)


def apply_stream_event(current: Any, event: str, payload: Dict[str, Any]) -> Any:
    """Fold a `put`/`patch` event into the locally cached value."""
    keys = split_path(str(payload.get("path") or "/"))
    data = payload.get("data")
    if event == "put":
        return write_at(copy.deepcopy(current), keys, data)
    if event == "patch":
        value = copy.deepcopy(current)
        if not isinstance(data, dict):
            return value
        for child, child_value in data.items():
            value = write_at(value, keys + split_path(child), child_value)
        return value
    return current


class FirebaseStore(RealtimeStore):
    def __init__(
        self,
        database_url: str,
        *,
        auth: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not database_url:
            raise ValueError("FIREBASE_DATABASE_URL is required for the firebase store")
        self.database_url = database_url.rstrip("/")
        self.auth = auth
        self.timeout = timeout
        self._transport = transport

    def _url(self, path: str) -> str:
        return f"{self.database_url}/{'/'.join(split_path(path))}.json"

    def _params(self) -> Dict[str, str]:
        return {"auth": self.auth} if self.auth else {}

    def _client(self, timeout: Optional[float]) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=self._transport)

    async def get(self, path: str) -> Any:
        try:
            async with self._client(self.timeout) as client:
                resp = await client.get(self._url(path), params=self._params())
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as exc:
            raise StoreError(f"Firebase read failed for {path!r}: {exc}") from exc

    async def set(self, path: str, value: Any) -> None:
        try:
            async with self._client(self.timeout) as client:
                resp = await client.put(self._url(path), params=self._params(), json=value)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise StoreError(f"Firebase write failed for {path!r}: {exc}") from exc

    async def subscribe(self, path: str) -> AsyncIterator[Any]:
        current: Any = None
        headers = {"Accept": "text/event-stream"}
        try:
            async with self._client(None) as client:
                async with client.stream(
                    "GET", self._url(path), params=self._params(), headers=headers
                ) as resp:
                    resp.raise_for_status()
                    block: list[str] = []
                    async for line in resp.aiter_lines():
                        if line.strip():
                            block.append(line)
                            continue
                        if not block:
                            continue
                        event, data = parse_sse_event(block)
                        block = []
                        if event == "keep-alive":
                            continue
                        if event in {"cancel", "auth_revoked"}:
                            raise StoreError(f"Firebase stream closed for {path!r}: {event} {data}".strip())
                        if event not in {"put", "patch"}:
                            continue
                        try:
                            payload = json.loads(data)
                        except ValueError:
                            logger.warning("Ignoring malformed stream payload on %s: %s", path, data[:200])
                            continue
                        if not isinstance(payload, dict):
                            continue
                        current = apply_stream_event(current, event, payload)
                        yield copy.deepcopy(current)
        except httpx.HTTPError as exc:
            raise StoreError(f"Firebase stream failed for {path!r}: {exc}") from exc
