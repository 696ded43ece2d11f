"""Tests for the dashboard ConnectionRegistry."""

from __future__ import annotations

import json

import pytest
from starlette.websockets import WebSocketState

from ecomarine.services.connection_manager import ConnectionRegistry

from tests.conftest import FakeWebSocket


class TestConnectionRegistry:
    @pytest.mark.asyncio
    async def test_register_accepts_and_tracks(self) -> None:
        registry = ConnectionRegistry()
        ws = FakeWebSocket()
        await registry.register(ws)
        assert ws.client_state == WebSocketState.CONNECTED
        assert ws in registry
        assert registry.active_count == 1

    @pytest.mark.asyncio
    async def test_unregister_removes(self) -> None:
        registry = ConnectionRegistry()
        ws = FakeWebSocket()
        await registry.register(ws)
        registry.unregister(ws)
        assert registry.active_count == 0
        registry.unregister(ws)  # second call is a no-op

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_open_client_once(self) -> None:
        registry = ConnectionRegistry()
        a, b = FakeWebSocket(), FakeWebSocket()
        await registry.register(a)
        await registry.register(b)

        delivered = await registry.broadcast("new_analysis", {"id": 7})

        assert delivered == 2
        for ws in (a, b):
            assert ws.messages == [{"type": "new_analysis", "data": {"id": 7}}]

    @pytest.mark.asyncio
    async def test_late_client_gets_nothing_from_earlier_broadcast(self) -> None:
        registry = ConnectionRegistry()
        early = FakeWebSocket()
        await registry.register(early)
        await registry.broadcast("new_analysis", {"id": 1})

        late = FakeWebSocket()
        await registry.register(late)

        assert len(early.sent) == 1
        assert late.sent == []

    @pytest.mark.asyncio
    async def test_closed_clients_skipped_but_kept(self) -> None:
        registry = ConnectionRegistry()
        open_ws, closing = FakeWebSocket(), FakeWebSocket()
        await registry.register(open_ws)
        await registry.register(closing)
        closing.client_state = WebSocketState.DISCONNECTED

        delivered = await registry.broadcast("satellite_update", {"id": 2})

        assert delivered == 1
        assert closing.sent == []
        assert closing in registry

    @pytest.mark.asyncio
    async def test_failed_send_does_not_stop_fan_out(self) -> None:
        registry = ConnectionRegistry()
        broken, healthy = FakeWebSocket(), FakeWebSocket()
        await registry.register(broken)
        await registry.register(healthy)
        broken.fail_sends = True

        delivered = await registry.broadcast("new_analysis", {"id": 3})

        assert delivered == 1
        assert len(healthy.sent) == 1

    @pytest.mark.asyncio
    async def test_payload_serialised_once_with_string_fallback(self) -> None:
        from datetime import datetime, timezone

        registry = ConnectionRegistry()
        a, b = FakeWebSocket(), FakeWebSocket()
        await registry.register(a)
        await registry.register(b)

        await registry.broadcast("new_analysis", {"at": datetime(2026, 1, 1, tzinfo=timezone.utc)})

        assert a.sent == b.sent
        assert json.loads(a.sent[0])["data"]["at"].startswith("2026-01-01")
