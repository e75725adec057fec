"""Test doubles shared across the suite."""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

BUYER = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"


def record(
    skill_id: int,
    *,
    metadata_uri: str = "",
    active: bool = True,
    price: int = 0,
    calls: int = 0,
    creator: str = "0x" + "ab" * 20,
) -> tuple[Any, ...]:
    """A registry entry in the positional shape getAllSkills() decodes to."""
    return (skill_id, creator, price, metadata_uri, active, calls)


class FakeRegistry:
    """In-memory registry reader; optionally blocks reads on a gate."""

    def __init__(self, records: list[Any] | None = None) -> None:
        self.records = list(records or [])
        self.account_address = BUYER
        self.reads = 0
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def read_all(self) -> list[Any]:
        self.reads += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.records)


class FakeFetcher:
    """Metadata fetcher serving canned documents by pointer."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self.documents = documents or {}
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    async def fetch(self, pointer: str) -> dict[str, Any] | None:
        self.calls.append(pointer)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        return self.documents.get(pointer)


class RecordingRegistrar:
    """Tool registrar that remembers the latest binding per name."""

    def __init__(self) -> None:
        self.tools: dict[str, tuple[str, Any]] = {}
        self.calls: list[str] = []

    def register(self, name: str, description: str, invoker: Any) -> None:
        self.calls.append(name)
        self.tools[name] = (description, invoker)


def mock_client(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


