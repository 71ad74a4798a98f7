"""WLED Sync coordinator.

The coordinator is the central hub for each WLED device registered in Home
Assistant.  It owns the authoritative :class:`~.wled.state.LightState`, keeps
it in sync with the device, sends commands and distributes state changes to
the registered light entity.

Connection modes
----------------
``connecting``
    A push-channel (WebSocket) handshake is in flight.

``open``
    The push channel is live.  Every frame the device sends is reconciled
    into :attr:`WLEDCoordinator.state` in arrival order.

``retry_scheduled``
    The channel failed or closed.  A one-shot reconnect fires after
    ``RECONNECT_INTERVAL * retry_count`` seconds (linear backoff).

``polling_fallback``
    More than ``max_retries`` consecutive attempts failed.  The full state is
    fetched over HTTP every ``poll_interval`` milliseconds and, independently,
    a push-channel reconnect is attempted every
    :data:`~.const.BACKGROUND_RECONNECT_INTERVAL` seconds.  The first
    successful reconnect stops both timers.

Commands are optimistic and fire-and-forget: the state is updated and the
entity notified before the HTTP request is even started, and a failed request
is only logged.  Requests are sent one at a time, in the order they were
issued.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import aiohttp

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import issue_registry as ir
from homeassistant.helpers.event import async_track_time_interval

from .const import (
    BACKGROUND_RECONNECT_INTERVAL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NAME,
    DEFAULT_POLL_INTERVAL,
    DOMAIN,
    ISSUE_PUSH_UNAVAILABLE,
    RECONNECT_INTERVAL,
)
from .wled.client import WLEDClient, parse_message
from .wled.exceptions import CommandError, ParseError, TransportError
from .wled.state import (
    ConnectionMode,
    LightState,
    apply_state_document,
    cmd_brightness,
    cmd_color,
    cmd_power,
)

_LOGGER = logging.getLogger(__name__)


class WLEDCoordinator:
    """Manages the push channel, polling fallback and state for one WLED device.

    Attributes:
        host:        Device address.
        name:        User-assigned display name.
        state:       Current known state of the light.
        mode:        Active :class:`~.wled.state.ConnectionMode`.
        retry_count: Consecutive failed push-channel attempts.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        client: WLEDClient,
        *,
        name: str = DEFAULT_NAME,
        poll_interval: int = DEFAULT_POLL_INTERVAL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        debug: bool = False,
    ) -> None:
        """Initialise the coordinator.

        Args:
            hass:          Home Assistant instance.
            client:        WLED API client for the device.
            name:          Display name.
            poll_interval: Polling-fallback interval in milliseconds.
            max_retries:   Failed retries tolerated before polling.
            debug:         Emit debug traces at info level.
        """
        self._hass = hass
        self._client = client
        self.host = client.host
        self.name = name
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.debug = debug

        self.state = LightState()
        self.mode = ConnectionMode.CONNECTING
        self.retry_count = 0

        # Callbacks registered by entity classes
        self._listeners: list[Callable[[], None]] = []

        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._channel_task: asyncio.Task[None] | None = None
        self._reconnect_timer: asyncio.TimerHandle | None = None
        self._poll_unsub: Callable[[], None] | None = None
        self._background_unsub: Callable[[], None] | None = None
        # Serialises POSTs so the device applies commands in dispatch order.
        self._write_lock = asyncio.Lock()
        self._shutdown = False

    @property
    def _repair_issue_id(self) -> str:
        """Stable issue ID for the 'push channel unavailable' repair entry."""
        return f"{ISSUE_PUSH_UNAVAILABLE}_{self.host.lower().replace('.', '_').replace(':', '_')}"

    @property
    def polling(self) -> bool:
        """Return ``True`` while the HTTP poll timer is running."""
        return self._poll_unsub is not None

    @property
    def background_reconnect_scheduled(self) -> bool:
        """Return ``True`` while the background reconnect timer is running."""
        return self._background_unsub is not None

    def _log_debug(self, msg: str, *args: Any) -> None:
        """Log a trace message, promoted to info level in verbose mode."""
        if self.debug:
            _LOGGER.info("[%s] [DEBUG] " + msg, self.host, *args)
        else:
            _LOGGER.debug("[%s] " + msg, self.host, *args)

    # ── Public API ─────────────────────────────────────────────────────────────

    def register_update_callback(self, cb: Callable[[], None]) -> Callable[[], None]:
        """Subscribe *cb* to state and connection-mode changes.

        Returns an unsubscribe callable that is safe to call more than once.
        """
        self._listeners.append(cb)

        def _unsubscribe() -> None:
            if cb in self._listeners:
                self._listeners.remove(cb)

        return _unsubscribe

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    async def async_start(self) -> None:
        """Start the coordinator.

        The push channel is opened in a background task so that HA setup is
        not blocked by the handshake.  Entities report the default state until
        the first message or poll result arrives.
        """
        self._shutdown = False
        _LOGGER.info("[%s] Initializing WLED coordinator", self.host)
        self._start_channel()

    async def async_stop(self) -> None:
        """Shut down the coordinator, cancel every timer and close the channel."""
        self._shutdown = True
        self._cancel_reconnect_timer()
        self._stop_polling()

        task = self._channel_task
        self._channel_task = None
        if task is not None and not task.done():
            task.cancel()

        ws = self._ws
        self._ws = None
        if ws is not None and not ws.closed:
            await ws.close()
            _LOGGER.debug("[%s] WebSocket closed on shutdown", self.host)

        ir.async_delete_issue(self._hass, DOMAIN, self._repair_issue_id)

    # ── Command API ────────────────────────────────────────────────────────────

    @callback
    def set_power(self, on: bool) -> None:
        """Switch the light on or off."""
        self.state.power = on
        self._notify_listeners()
        self._dispatch(cmd_power(on), "POWER")

    @callback
    def set_brightness(self, brightness_pct: float) -> None:
        """Set brightness.

        Args:
            brightness_pct: Brightness percentage 0–100.
        """
        self.state.brightness = brightness_pct
        self._notify_listeners()
        self._dispatch(cmd_brightness(brightness_pct), "BRIGHTNESS")

    @callback
    def set_hue(self, hue: float) -> None:
        """Set hue (0–360°) and send the resulting colour."""
        self.state.hue = hue
        self._notify_listeners()
        self._dispatch_color()

    @callback
    def set_saturation(self, saturation: float) -> None:
        """Set saturation (0–100 %) and send the resulting colour."""
        self.state.saturation = saturation
        self._notify_listeners()
        self._dispatch_color()

    @callback
    def _dispatch_color(self) -> None:
        """Send the current hue/saturation/brightness as segment 0, colour 0."""
        s = self.state
        payload = cmd_color(s.hue, s.saturation, s.brightness)
        self._log_debug("Updating color to RGB: %s", payload["seg"][0]["col"][0])
        self._dispatch(payload, "COLOR")

    @callback
    def _dispatch(self, payload: dict[str, Any], label: str) -> None:
        """Fire-and-forget a state command; the caller never waits on it."""
        self._hass.async_create_task(self._async_send_command(payload, label))

    async def _async_send_command(self, payload: dict[str, Any], label: str) -> bool:
        """POST a state command to the device.

        Returns:
            ``True`` if the device accepted the command.
        """
        self._log_debug("→ %s: %s", label, payload)
        try:
            async with self._write_lock:
                await self._client.async_post_state(payload)
        except CommandError as exc:
            _LOGGER.error("[%s] HTTP request failed for %s: %s", self.host, label, exc)
            return False
        self._log_debug("HTTP request successful for %s", label)
        return True

    # ── Push channel ───────────────────────────────────────────────────────────

    @callback
    def _start_channel(self) -> None:
        """Enter ``connecting`` and run a push-channel attempt in the background."""
        if self._shutdown:
            return
        if self._channel_task is not None and not self._channel_task.done():
            self._log_debug("Channel attempt already in progress, skipping reconnect")
            return

        self.mode = ConnectionMode.CONNECTING
        self._channel_task = self._hass.async_create_background_task(
            self._async_run_channel(), name=f"{DOMAIN} push channel {self.host}"
        )

    async def _async_run_channel(self) -> None:
        """Open the push channel and reconcile every frame until it closes."""
        _LOGGER.info("[%s] Connecting to WLED WebSocket at %s", self.host, self._client.ws_url)
        try:
            ws = await self._client.async_connect()
        except TransportError as exc:
            _LOGGER.error("[%s] WebSocket error: %s", self.host, exc)
            self._handle_channel_closed()
            return

        self._ws = ws
        self._handle_channel_open()

        try:
            async for msg in ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    _LOGGER.error("[%s] WebSocket error: %s", self.host, ws.exception())
                    break
        except aiohttp.ClientError as exc:
            _LOGGER.error("[%s] WebSocket error: %s", self.host, exc)
        except Exception:  # noqa: BLE001
            # Cancellation is not caught here, so only a cancelled task skips the retry.
            _LOGGER.exception("[%s] Unexpected error on WebSocket channel", self.host)
        finally:
            # An error always forces the channel closed before retrying.
            if self._ws is ws:
                self._ws = None
            if not ws.closed:
                await ws.close()

        _LOGGER.warning("[%s] WLED WebSocket closed", self.host)
        self._handle_channel_closed()

    @callback
    def _handle_channel_open(self) -> None:
        """Transition to ``open``: reset backoff and stop the fallback timers."""
        _LOGGER.info("[%s] Connected to WLED WebSocket", self.host)
        self.mode = ConnectionMode.OPEN
        self.retry_count = 0
        self._cancel_reconnect_timer()
        self._stop_polling()
        ir.async_delete_issue(self._hass, DOMAIN, self._repair_issue_id)
        self._notify_listeners()

    @callback
    def _handle_channel_closed(self) -> None:
        """Schedule a linear-backoff reconnect, or fall back to polling."""
        if self._shutdown:
            return

        self.retry_count += 1
        if self.retry_count > self.max_retries:
            self._start_polling_fallback()
            return

        self.mode = ConnectionMode.RETRY_SCHEDULED
        delay = RECONNECT_INTERVAL * self.retry_count
        _LOGGER.warning(
            "[%s] Retrying WebSocket in %.0f s (attempt %d/%d)",
            self.host, delay, self.retry_count, self.max_retries,
        )
        self._cancel_reconnect_timer()
        self._reconnect_timer = self._hass.loop.call_later(delay, self._on_reconnect_timer)
        self._notify_listeners()

    @callback
    def _on_reconnect_timer(self) -> None:
        """One-shot backoff timer expired."""
        self._reconnect_timer = None
        self._start_channel()

    def _cancel_reconnect_timer(self) -> None:
        """Cancel the backoff timer if active."""
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    @callback
    def _handle_message(self, data: str | bytes) -> None:
        """Parse one push frame and reconcile it; a bad frame keeps the channel open."""
        self._log_debug("Received WS message: %s", data)
        try:
            document = parse_message(data)
        except ParseError as exc:
            _LOGGER.error("[%s] WebSocket parse error: %s", self.host, exc)
            return
        self._apply_document(document)

    # ── Polling fallback ───────────────────────────────────────────────────────

    @callback
    def _start_polling_fallback(self) -> None:
        """Enter ``polling_fallback``; start whichever fallback timers are idle."""
        self.mode = ConnectionMode.POLLING_FALLBACK

        if self._poll_unsub is None:
            _LOGGER.warning(
                "[%s] Max WebSocket retries reached, switching to HTTP polling every %d ms",
                self.host, self.poll_interval,
            )
            self._poll_unsub = async_track_time_interval(
                self._hass,
                self._on_poll_timer,
                timedelta(milliseconds=self.poll_interval),
            )
            # Surface a HA Repairs issue so the user sees the degraded mode.
            ir.async_create_issue(
                self._hass,
                DOMAIN,
                self._repair_issue_id,
                is_fixable=False,
                severity=ir.IssueSeverity.WARNING,
                translation_key=ISSUE_PUSH_UNAVAILABLE,
                translation_placeholders={"host": self.host},
            )

        if self._background_unsub is None:
            self._background_unsub = async_track_time_interval(
                self._hass,
                self._on_background_reconnect_timer,
                timedelta(seconds=BACKGROUND_RECONNECT_INTERVAL),
            )
            self._log_debug(
                "Background reconnect timer started (%ds)", BACKGROUND_RECONNECT_INTERVAL
            )

        self._notify_listeners()

    @callback
    def _on_poll_timer(self, now: Any) -> None:  # noqa: ANN401
        """Fire-and-forget a full-state fetch."""
        self._hass.async_create_task(self._async_poll())

    async def _async_poll(self) -> None:
        """Fetch the full state over HTTP and reconcile it.

        Failures are logged only: they never touch the retry counter or the
        connection mode.
        """
        self._log_debug("Fetching WLED state via HTTP")
        try:
            document = await self._client.async_get_state()
        except (TransportError, ParseError) as exc:
            _LOGGER.error("[%s] Polling fetch failed: %s", self.host, exc)
            return
        self._log_debug("Fetched state: %s", document)
        self._apply_document(document)

    @callback
    def _on_background_reconnect_timer(self, now: Any) -> None:  # noqa: ANN401
        """Try the push channel again without stopping the poller."""
        self._log_debug("Trying to reconnect WebSocket...")
        self._start_channel()

    def _stop_polling(self) -> None:
        """Cancel the poll timer and the background reconnect timer."""
        if self._poll_unsub is not None:
            self._poll_unsub()
            self._poll_unsub = None
            _LOGGER.info("[%s] Stopped HTTP polling", self.host)
        if self._background_unsub is not None:
            self._background_unsub()
            self._background_unsub = None

    # ── Reconciliation ─────────────────────────────────────────────────────────

    @callback
    def _apply_document(self, document: dict[str, Any]) -> None:
        """Merge an inbound state document and notify listeners if anything applied."""
        self._log_debug("Updating state from WLED: %s", document)
        try:
            applied = apply_state_document(self.state, document)
        except ParseError as exc:
            _LOGGER.error("[%s] Ignoring state document: %s", self.host, exc)
            return
        if applied:
            self._notify_listeners()

    # ── Listener notification ──────────────────────────────────────────────────

    @callback
    def _notify_listeners(self) -> None:
        """Push the current state to every subscriber; one failing entity does not block the rest."""
        for cb in tuple(self._listeners):
            try:
                cb()
            except Exception:  # noqa: BLE001
                _LOGGER.exception(
                    "[%s] Listener %r failed while in %s mode", self.host, cb, self.mode.value
                )
