"""WLED Sync integration for Home Assistant."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_NAME, Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import (
    CONF_DEBUG,
    CONF_MAX_RETRIES,
    CONF_POLL_INTERVAL,
    DEFAULT_DEBUG,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NAME,
    DEFAULT_POLL_INTERVAL,
    DOMAIN,
)
from .coordinator import WLEDCoordinator
from .wled.client import WLEDClient

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.LIGHT]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a WLED device from a config entry."""
    host = entry.data[CONF_HOST]
    name = entry.data.get(CONF_NAME, DEFAULT_NAME)
    poll_interval = entry.options.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL)
    max_retries = entry.options.get(CONF_MAX_RETRIES, DEFAULT_MAX_RETRIES)
    debug = entry.options.get(CONF_DEBUG, DEFAULT_DEBUG)

    _LOGGER.debug(
        "Setting up WLED device: %s (%s), poll_interval=%d ms, max_retries=%d",
        name,
        host,
        poll_interval,
        max_retries,
    )

    client = WLEDClient(async_get_clientsession(hass), host)
    coordinator = WLEDCoordinator(
        hass,
        client,
        name=name,
        poll_interval=poll_interval,
        max_retries=max_retries,
        debug=debug,
    )

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = coordinator

    # Handle options updates
    entry.async_on_unload(entry.add_update_listener(async_options_updated))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    await coordinator.async_start()

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        coordinator: WLEDCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_stop()

    return unload_ok


async def async_options_updated(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    # Configuration is static for a coordinator's lifetime; reload to apply.
    await hass.config_entries.async_reload(entry.entry_id)
