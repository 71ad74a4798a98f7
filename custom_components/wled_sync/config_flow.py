"""Config flow for the WLED Sync integration.

The user step asks for a display name and the device address and checks that
``/json/state`` answers.  Transport tuning (poll interval, retry budget,
verbose logging) lives in the options flow; changing it reloads the entry.
"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.const import CONF_HOST, CONF_NAME
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
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
    MAX_MAX_RETRIES,
    MIN_POLL_INTERVAL,
)
from .wled.client import WLEDClient
from .wled.exceptions import WLEDError

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): str,
        vol.Optional(CONF_NAME, default=DEFAULT_NAME): str,
    }
)


class WLEDSyncConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for WLED Sync."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Handle the user step: pick a host and probe it."""
        errors: dict[str, str] = {}

        if user_input is not None:
            host = user_input[CONF_HOST].strip()
            await self.async_set_unique_id(host)
            self._abort_if_unique_id_configured()

            client = WLEDClient(async_get_clientsession(self.hass), host)
            try:
                await client.async_get_state()
            except WLEDError as exc:
                _LOGGER.debug("Cannot reach WLED device at %s: %s", host, exc)
                errors["base"] = "cannot_connect"
            else:
                return self.async_create_entry(
                    title=user_input[CONF_NAME],
                    data={CONF_HOST: host, CONF_NAME: user_input[CONF_NAME]},
                )

        return self.async_show_form(
            step_id="user", data_schema=STEP_USER_DATA_SCHEMA, errors=errors
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> WLEDSyncOptionsFlow:
        """Return the options flow handler."""
        return WLEDSyncOptionsFlow()


class WLEDSyncOptionsFlow(config_entries.OptionsFlow):
    """Transport tuning for an existing entry."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Manage the options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        schema = vol.Schema(
            {
                vol.Optional(
                    CONF_POLL_INTERVAL,
                    default=options.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
                ): vol.All(vol.Coerce(int), vol.Range(min=MIN_POLL_INTERVAL)),
                vol.Optional(
                    CONF_MAX_RETRIES,
                    default=options.get(CONF_MAX_RETRIES, DEFAULT_MAX_RETRIES),
                ): vol.All(vol.Coerce(int), vol.Range(min=0, max=MAX_MAX_RETRIES)),
                vol.Optional(
                    CONF_DEBUG,
                    default=options.get(CONF_DEBUG, DEFAULT_DEBUG),
                ): bool,
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)
