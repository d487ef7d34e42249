"""Shared helpers for tests."""
from __future__ import annotations

from typing import Any, List, Optional

import httpx


def json_transport(status_code: int = 200, body: Any = None, calls: Optional[List[httpx.Request]] = None) -> httpx.MockTransport:
    """MockTransport answering every request with the same JSON response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


def failing_transport(exc_type=httpx.ConnectError) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("connection refused", request=request)

    return httpx.MockTransport(handler)
