# -*- coding: utf-8 -*-
"""Realtime store: in-process implementation for local runs and tests."""

from __future__ import annotations

import asyncio
import copy
import logging
import threading
from typing import Any, AsyncIterator, List, Tuple

from .base import RealtimeStore, paths_overlap, read_at, split_path, write_at

logger = logging.getLogger(__name__)


class MemoryStore(RealtimeStore):
    def __init__(self, initial: Any = None) -> None:
        self._tree: Any = copy.deepcopy(initial) if initial is not None else {}
        self._lock = threading.Lock()
        # (path keys, queue, owning loop)
        self._subscribers: List[Tuple[List[str], asyncio.Queue, asyncio.AbstractEventLoop]] = []

    def snapshot(self, path: str = "") -> Any:
        with self._lock:
            return copy.deepcopy(read_at(self._tree, split_path(path)))

    async def get(self, path: str) -> Any:
        return self.snapshot(path)

    async def set(self, path: str, value: Any) -> None:
        keys = split_path(path)
        with self._lock:
            self._tree = write_at(self._tree, keys, copy.deepcopy(value))
            targets = [s for s in self._subscribers if paths_overlap(s[0], keys)]
            updates = [(s, copy.deepcopy(read_at(self._tree, s[0]))) for s in targets]

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        for (_, queue, loop), new_value in updates:
            if loop is running:
                queue.put_nowait(new_value)
            elif not loop.is_closed():
                # Subscriber lives on another thread's event loop.
                loop.call_soon_threadsafe(queue.put_nowait, new_value)
        logger.debug("store set %s (%d subscribers notified)", "/".join(keys) or "/", len(updates))

    async def subscribe(self, path: str) -> AsyncIterator[Any]:
        keys = split_path(path)
        queue: asyncio.Queue = asyncio.Queue()
        entry = (keys, queue, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.append(entry)
            current = copy.deepcopy(read_at(self._tree, keys))
        try:
            yield current
            while True:
                yield await queue.get()
        finally:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
