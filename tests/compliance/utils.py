"""Utility functions and types for compliance tests.

This module contains non-fixture utilities that can be imported directly:
store capabilities and in-process fakes of the two REST services. The fakes
are mounted behind respx so the real httpx code paths run end to end.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass

import httpx

REDIS_REST_HOST = "redis-rest.test"
KV_REST_HOST = "kv-rest.test"
TEST_TOKEN = "test-token"


# =============================================================================
# STORE CAPABILITIES
# =============================================================================


@dataclass(frozen=True)
class StoreCapabilities:
    """Capabilities of a rate limit store."""

    name: str
    atomic_increment: bool
    requires_infrastructure: bool
    markers: tuple[str, ...]


STORE_CAPABILITIES: dict[str, StoreCapabilities] = {
    "memory": StoreCapabilities(
        name="memory",
        atomic_increment=True,
        requires_infrastructure=False,
        markers=(),
    ),
    "redis_rest": StoreCapabilities(
        name="redis_rest",
        atomic_increment=False,
        requires_infrastructure=False,  # faked with respx
        markers=(),
    ),
    "kv_rest": StoreCapabilities(
        name="kv_rest",
        atomic_increment=False,
        requires_infrastructure=False,  # faked with respx
        markers=(),
    ),
}


def get_all_stores() -> list[str]:
    """Get all store names."""
    return list(STORE_CAPABILITIES.keys())


def get_stores_with(capability: str) -> list[str]:
    """Get store names that support a specific capability.

    Args:
        capability: One of 'atomic_increment', 'no_infrastructure'
    """
    stores = []
    for name, caps in STORE_CAPABILITIES.items():
        if capability == "atomic_increment" and caps.atomic_increment:
            stores.append(name)
        elif capability == "no_infrastructure" and not caps.requires_infrastructure:
            stores.append(name)
    return stores


# =============================================================================
# FAKE REST SERVICES
# =============================================================================


class _FakeKeyValue:
    """Key-value map with millisecond expiry driven by an injected clock."""

    def __init__(self, clock: Callable[[], int], token: str = TEST_TOKEN) -> None:
        self.clock = clock
        self.token = token
        self.data: dict[str, tuple[str, int | None]] = {}
        self.requests: list[httpx.Request] = []

    def read(self, key: str) -> str | None:
        item = self.data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self.clock() >= expires_at:
            del self.data[key]
            return None
        return value

    def write(self, key: str, value: str, ttl_ms: int | None) -> None:
        expires_at = None if ttl_ms is None else self.clock() + ttl_ms
        self.data[key] = (value, expires_at)

    def authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {self.token}"


class FakeRedisRestServer(_FakeKeyValue):
    """Answers Redis commands POSTed as JSON arrays, Upstash style."""

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.authorized(request):
            return httpx.Response(401, json={"error": "Unauthorized"})

        command = json.loads(request.content)
        name = str(command[0]).upper()

        if name == "GET":
            return httpx.Response(200, json={"result": self.read(command[1])})

        if name == "SET":
            ttl_ms = None
            if len(command) >= 5 and str(command[3]).upper() == "PX":
                ttl_ms = int(command[4])
            self.write(command[1], command[2], ttl_ms)
            return httpx.Response(200, json={"result": "OK"})

        return httpx.Response(400, json={"error": f"ERR unknown command '{name}'"})


class FakeKvRestServer(_FakeKeyValue):
    """Answers path-based /get/{key} and /set/{key} requests, Vercel KV style."""

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.authorized(request):
            return httpx.Response(401, json={"error": "Unauthorized"})

        _, command, key = request.url.path.split("/", 2)

        if command == "get" and request.method == "GET":
            return httpx.Response(200, json={"result": self.read(key)})

        if command == "set" and request.method == "POST":
            body = json.loads(request.content)
            ttl_ms = int(body["ex"]) * 1000 if "ex" in body else None
            self.write(key, body["value"], ttl_ms)
            return httpx.Response(200, json={"result": "OK"})

        return httpx.Response(404, json={"error": "Not found"})
