# -*- coding: utf-8 -*-
"""Realtime store: shared interface and path helpers."""

from __future__ import annotations

from typing import Any, AsyncIterator, List


class StoreError(RuntimeError):
    """Transport or protocol failure talking to the realtime store."""


def split_path(path: str) -> List[str]:
    """`"scale/weight/"` -> `["scale", "weight"]`; the root is `[]`."""
    return [part for part in (path or "").strip("/").split("/") if part]


def read_at(tree: Any, keys: List[str]) -> Any:
    node = tree
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def write_at(tree: Any, keys: List[str], value: Any) -> Any:
    """Return `tree` with `value` placed at `keys`. `None` deletes the node."""
    if not keys:
        return value
    root = tree if isinstance(tree, dict) else {}
    node = root
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    if value is None:
        node.pop(keys[-1], None)
    else:
        node[keys[-1]] = value
    return root


def paths_overlap(a: List[str], b: List[str]) -> bool:
    n = min(len(a), len(b))
    return a[:n] == b[:n]


class RealtimeStore:
    """Key-path JSON database with push subscriptions.

    `subscribe(path)` yields the current value at `path` first and then the new
    value after every change that touches it. Closing the iterator unsubscribes.
    """

    async def get(self, path: str) -> Any:
        raise NotImplementedError

    async def set(self, path: str, value: Any) -> None:
        raise NotImplementedError

    def subscribe(self, path: str) -> AsyncIterator[Any]:
        raise NotImplementedError
