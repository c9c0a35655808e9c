"""Tests for RemoteContext and the keepAlive heartbeat."""

import asyncio

import pytest

from live_bridge.remote.context import BridgeState, Heartbeat, RemoteContext


class TestRemoteContext:
    """Handle invalidation and reset."""

    def test_invalidate_clears_handles(self):
        context = RemoteContext(command_handle="a", utility_handle="b", state=BridgeState.READY)

        context.invalidate()

        assert context.command_handle is None
        assert context.utility_handle is None
        assert context.state is BridgeState.LOADING

    def test_invalidate_keeps_unloaded(self):
        context = RemoteContext()

        context.invalidate()

        assert context.state is BridgeState.UNLOADED

    def test_reset(self):
        context = RemoteContext(command_handle="a", state=BridgeState.READY)

        context.reset()

        assert context.command_handle is None
        assert context.state is BridgeState.UNLOADED


class TestHeartbeat:
    """Heartbeat keeps at most one timer and never raises beat failures."""

    @pytest.mark.asyncio
    async def test_beats_periodically(self):
        beats = []

        async def beat():
            beats.append(1)

        heartbeat = Heartbeat(RemoteContext(), beat, interval=0.01)
        heartbeat.start()
        await asyncio.sleep(0.055)
        heartbeat.stop()

        assert len(beats) >= 2

    @pytest.mark.asyncio
    async def test_start_replaces_existing_timer(self):
        async def beat():
            pass

        heartbeat = Heartbeat(RemoteContext(), beat, interval=0.01)
        heartbeat.start()
        first = heartbeat._task
        heartbeat.start()
        await asyncio.sleep(0)

        assert first.cancelled()
        assert heartbeat._task is not first
        heartbeat.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        async def beat():
            pass

        context = RemoteContext()
        heartbeat = Heartbeat(context, beat, interval=0.01)
        heartbeat.start()
        assert context.heartbeat_active

        heartbeat.stop()
        heartbeat.stop()

        assert not heartbeat.is_active
        assert not context.heartbeat_active

    @pytest.mark.asyncio
    async def test_no_beats_after_stop(self):
        beats = []

        async def beat():
            beats.append(1)

        heartbeat = Heartbeat(RemoteContext(), beat, interval=0.01)
        heartbeat.start()
        await asyncio.sleep(0.035)
        heartbeat.stop()
        count = len(beats)
        await asyncio.sleep(0.035)

        assert len(beats) == count

    @pytest.mark.asyncio
    async def test_failed_beat_keeps_running(self):
        beats = []

        async def beat():
            beats.append(1)
            raise RuntimeError("remote gone")

        heartbeat = Heartbeat(RemoteContext(), beat, interval=0.01)
        heartbeat.start()
        await asyncio.sleep(0.045)

        assert heartbeat.is_active
        assert len(beats) >= 2
        heartbeat.stop()
