"""Shared fixtures for the WLED Sync tests."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import aiohttp
import pytest

from custom_components.wled_sync.wled.client import WLEDClient

HOST = "192.168.1.50"


class FakeHass:
    """Just enough of HomeAssistant for the coordinator.

    Tasks run on the test's event loop.  ``loop.call_later`` is recorded
    instead of scheduled so backoff timers can be fired by hand.
    """

    def __init__(self):
        self.data = {}
        self.tasks = []
        self.timers = []  # [(delay, callback, handle)]
        self.loop = Mock()
        self.loop.call_later = Mock(side_effect=self._call_later)

    def _call_later(self, delay, cb, *args):
        handle = Mock()
        self.timers.append((delay, cb, handle))
        return handle

    def async_create_task(self, coro, name=None, eager_start=True):
        task = asyncio.get_running_loop().create_task(coro)
        self.tasks.append(task)
        return task

    def async_create_background_task(self, coro, name=None, eager_start=True):
        return self.async_create_task(coro, name)

    def fire_timer(self):
        """Run the most recently scheduled ``call_later`` callback."""
        _delay, cb, _handle = self.timers[-1]
        cb()


async def settle(rounds: int = 20) -> None:
    """Let pending tasks and queued frames run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeWebSocket:
    """Async-iterable stand-in for ``aiohttp.ClientWebSocketResponse``."""

    def __init__(self):
        self._queue = asyncio.Queue()
        self.closed = False
        self.error = None

    def feed_text(self, data):
        self._queue.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=data))

    def feed_error(self, error):
        self.error = error
        self._queue.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.ERROR, data=error))

    def feed_close(self):
        self._queue.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.CLOSE, data=None))

    def exception(self):
        return self.error

    async def close(self):
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.CLOSED, data=None))

    def __aiter__(self):
        return self

    async def __anext__(self):
        msg = await self._queue.get()
        if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
            raise StopAsyncIteration
        return msg


@pytest.fixture
def hass():
    return FakeHass()


@pytest.fixture
def client():
    client = Mock(spec=WLEDClient)
    client.host = HOST
    client.ws_url = f"ws://{HOST}/ws"
    client.state_url = f"http://{HOST}/json/state"
    client.async_connect = AsyncMock()
    client.async_get_state = AsyncMock(return_value={})
    client.async_post_state = AsyncMock(return_value=None)
    return client


@pytest.fixture
def track_interval():
    """Patch ``async_track_time_interval`` and hand back the mock.

    Each call returns a fresh unsubscribe mock.
    """
    with patch(
        "custom_components.wled_sync.coordinator.async_track_time_interval",
        side_effect=lambda hass, action, interval: Mock(name=f"unsub_{interval}"),
    ) as mock_track:
        yield mock_track


@pytest.fixture
def issue_registry():
    with patch("custom_components.wled_sync.coordinator.ir") as mock_ir:
        yield mock_ir
