"""Thin async client for the WLED JSON API.

Both channels share one host:

* ``ws://<host>/ws``       push channel, the device sends its state on change.
* ``http://<host>/json/state``  request/response, ``GET`` reads the full state
  and ``POST`` applies a partial state document.

The client is stateless apart from the ``aiohttp`` session it was given; the
connection lifecycle belongs to the coordinator.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp

from .exceptions import CommandError, ParseError, TransportError

CONNECT_TIMEOUT = 10.0
"""Maximum seconds for the WebSocket handshake."""

COMMAND_TIMEOUT = 5.0
"""Maximum seconds for a ``POST /json/state`` round trip."""

POLL_TIMEOUT = 5.0
"""Maximum seconds for a ``GET /json/state`` round trip."""


def _reject_constant(name: str) -> Any:
    raise ParseError(f"Non-finite number {name} is not valid state")


def parse_message(raw: str | bytes) -> dict[str, Any]:
    """Decode a WLED JSON payload into a state document.

    Push frames wrap the state as ``{"state": {...}, "info": {...}}``; the
    ``state`` object is unwrapped when present.  ``NaN`` and ``Infinity``
    literals are rejected.

    Raises:
        ParseError: *raw* is not JSON or does not decode to an object.
    """
    try:
        document = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    state = document.get("state")
    if isinstance(state, dict):
        return state
    return document


class WLEDClient:
    """Speaks WLED's WebSocket and HTTP JSON API for a single device."""

    def __init__(self, session: aiohttp.ClientSession, host: str) -> None:
        """Initialise the client.

        Args:
            session: Shared ``aiohttp`` session (Home Assistant's by default).
            host:    Device address, ``<ip>`` or ``<ip>:<port>``.
        """
        self._session = session
        self.host = host

    @property
    def ws_url(self) -> str:
        """URL of the push channel."""
        return f"ws://{self.host}/ws"

    @property
    def state_url(self) -> str:
        """URL of the JSON state endpoint."""
        return f"http://{self.host}/json/state"

    async def async_connect(self) -> aiohttp.ClientWebSocketResponse:
        """Open the push channel.

        Raises:
            TransportError: The handshake failed or timed out.
        """
        try:
            return await asyncio.wait_for(
                self._session.ws_connect(self.ws_url), timeout=CONNECT_TIMEOUT
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timeout connecting to {self.ws_url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Cannot connect to {self.ws_url}: {exc}") from exc

    async def async_get_state(self) -> dict[str, Any]:
        """Fetch the full device state.

        Raises:
            TransportError: The request failed, timed out or returned an error status.
            ParseError:     The response body was not a JSON object.
        """
        try:
            async with self._session.get(
                self.state_url, timeout=aiohttp.ClientTimeout(total=POLL_TIMEOUT)
            ) as resp:
                resp.raise_for_status()
                body = await resp.text()
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timeout fetching {self.state_url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Cannot fetch {self.state_url}: {exc}") from exc

        return parse_message(body)

    async def async_post_state(self, payload: dict[str, Any]) -> None:
        """Apply a partial state document on the device.

        Raises:
            CommandError: The request failed, timed out or was rejected.
        """
        try:
            async with self._session.post(
                self.state_url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=COMMAND_TIMEOUT),
            ) as resp:
                resp.raise_for_status()
        except asyncio.TimeoutError as exc:
            raise CommandError(f"Timeout posting {payload} to {self.state_url}") from exc
        except aiohttp.ClientError as exc:
            raise CommandError(f"Posting {payload} to {self.state_url} failed: {exc}") from exc
