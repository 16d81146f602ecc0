"""Fixtures for Renpho scale tests."""
from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from renpho_ble.exceptions import TransportWriteError

ADDRESS = "A4:C1:38:D9:67:6A"


class FakeTransport:
    """In-memory transport recording writes and (un)subscriptions.

    Buffers in ``script`` are delivered one per loop iteration once a
    subscription is made.
    """

    def __init__(self, script: list[bytes] | None = None, address: str = ADDRESS) -> None:
        self.address = address
        self.script = list(script or [])
        self.writes: list[bytes] = []
        self.callback: Callable[[bytes], None] | None = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.disconnect_calls = 0
        self.fail_writes = False
        self.write_error: Exception | None = None
        self.fail_subscribe: Exception | None = None

    async def write_command(self, data: bytes) -> None:
        if self.write_error is not None:
            error, self.write_error = self.write_error, None
            raise error
        if self.fail_writes:
            raise TransportWriteError("write failed")
        self.writes.append(bytes(data))

    async def subscribe(self, callback: Callable[[bytes], None]) -> str:
        self.subscribe_calls += 1
        if self.fail_subscribe is not None:
            raise self.fail_subscribe
        self.callback = callback
        if self.script:
            asyncio.get_running_loop().call_soon(self._play, list(self.script))
        return "notify-handle"

    async def unsubscribe(self, handle: str) -> None:
        assert handle == "notify-handle"
        self.unsubscribe_calls += 1

    async def disconnect(self) -> None:
        self.disconnect_calls += 1

    def notify(self, data: bytes) -> None:
        assert self.callback is not None
        self.callback(data)

    def _play(self, remaining: list[bytes]) -> None:
        if not remaining:
            return
        self.notify(remaining.pop(0))
        asyncio.get_running_loop().call_soon(self._play, remaining)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
