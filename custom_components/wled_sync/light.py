"""Light platform for the WLED Sync integration.

One :class:`~homeassistant.components.light.LightEntity` is created per WLED
device.  It supports on/off, brightness and hue/saturation colour.

Getters read the coordinator's :class:`~.wled.state.LightState` directly and
never touch the network.  Setters apply the change optimistically through the
coordinator and return immediately; the device is updated in the background.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_HS_COLOR,
    ColorMode,
    LightEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, MANUFACTURER, MODEL
from .coordinator import WLEDCoordinator
from .wled.state import brightness_pct_to_raw, brightness_raw_to_pct

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the light entity for a config entry.

    Args:
        hass:               Home Assistant instance.
        entry:              Config entry for this device.
        async_add_entities: Callback to register the new entities with HA.
    """
    coordinator: WLEDCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([WLEDLight(coordinator, entry)])


class WLEDLight(LightEntity):
    """Hue/saturation light backed by a :class:`WLEDCoordinator`."""

    _attr_has_entity_name = True
    _attr_name = None  # Uses the device name directly
    _attr_should_poll = False
    _attr_color_mode = ColorMode.HS
    _attr_supported_color_modes = {ColorMode.HS}

    def __init__(self, coordinator: WLEDCoordinator, entry: ConfigEntry) -> None:
        """Initialise the entity.

        Args:
            coordinator: Coordinator managing this device.
            entry:       Config entry.
        """
        self._coordinator = coordinator
        self._entry = entry
        self._attr_unique_id = entry.data[CONF_HOST]
        self._remove_callback: Callable[[], None] | None = None

    @property
    def device_info(self) -> DeviceInfo:
        """Return device registry info."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._entry.data[CONF_HOST])},
            name=self._coordinator.name,
            manufacturer=MANUFACTURER,
            model=MODEL,
            configuration_url=f"http://{self._coordinator.host}",
        )

    async def async_added_to_hass(self) -> None:
        """Subscribe to coordinator state updates when the entity is added."""
        self._remove_callback = self._coordinator.register_update_callback(
            self.async_write_ha_state
        )

    async def async_will_remove_from_hass(self) -> None:
        """Unsubscribe from coordinator state updates."""
        if self._remove_callback is not None:
            self._remove_callback()
            self._remove_callback = None

    # ── State properties ───────────────────────────────────────────────────────

    @property
    def is_on(self) -> bool:
        """Return ``True`` when the light is on."""
        return self._coordinator.state.power

    @property
    def brightness(self) -> int:
        """Return brightness in HA scale (0–255)."""
        return brightness_pct_to_raw(self._coordinator.state.brightness)

    @property
    def hs_color(self) -> tuple[float, float]:
        """Return ``(hue, saturation)``."""
        s = self._coordinator.state
        return (s.hue, s.saturation)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose the synchronisation mode for diagnostics."""
        return {
            "connection_mode": self._coordinator.mode.value,
            "retry_count": self._coordinator.retry_count,
        }

    # ── Command handlers ───────────────────────────────────────────────────────

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the light on, optionally setting brightness and colour.

        Args:
            **kwargs: Standard HA light service call attributes:

                * ``ATTR_BRIGHTNESS`` (0–255) – maps to 0–100 %.
                * ``ATTR_HS_COLOR`` (hue, saturation) – sent as an RGB colour.
        """
        # Always dispatched, whatever the local power flag says.
        self._coordinator.set_power(True)

        if ATTR_BRIGHTNESS in kwargs:
            brightness = kwargs[ATTR_BRIGHTNESS]
            pct = brightness_raw_to_pct(brightness)
            # WLED treats bri 0 as off, so the lowest non-zero level stays at 1 %.
            if brightness > 0:
                pct = max(pct, 1)
            self._coordinator.set_brightness(pct)

        if ATTR_HS_COLOR in kwargs:
            hue, saturation = kwargs[ATTR_HS_COLOR]
            self._coordinator.set_hue(hue)
            self._coordinator.set_saturation(saturation)

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the light off."""
        self._coordinator.set_power(False)
