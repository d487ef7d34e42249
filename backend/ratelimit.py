"""
Per-caller request quota.
Simple in-memory fixed window; each worker process keeps its own counts.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request


@dataclass
class _Window:
    count: int
    start: float


class RateLimiter:
    def __init__(self, limit: int = 20, window_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, _Window] = {}
        self._last_prune = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def _prune(self, now: float) -> None:
        # Keys are client controlled; at most one sweep per window keeps the map to recent callers
        if now - self._last_prune <= self.window_seconds:
            return
        expired = [key for key, entry in self._windows.items() if now - entry.start > self.window_seconds]
        for key in expired:
            del self._windows[key]
        self._last_prune = now

    def hit(self, key: str) -> bool:
        """Count one request for `key`; False once the key is over its limit for the current window."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            entry = self._windows.get(key)
            if entry is None:
                entry = self._windows[key] = _Window(count=0, start=now)
            if now - entry.start > self.window_seconds:
                entry.count = 1
                entry.start = now
            else:
                entry.count += 1
            return entry.count <= self.limit

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_key(request: Request, user_id: Optional[str] = None) -> str:
    if user_id:
        return f"user:{user_id}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
