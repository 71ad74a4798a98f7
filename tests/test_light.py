"""Tests for the WLEDLight entity (control surface)."""

from unittest.mock import Mock

import pytest

from homeassistant.components.light import ATTR_BRIGHTNESS, ATTR_HS_COLOR, ColorMode
from homeassistant.const import CONF_HOST

from custom_components.wled_sync.coordinator import WLEDCoordinator
from custom_components.wled_sync.light import WLEDLight
from custom_components.wled_sync.wled.state import ConnectionMode, LightState

HOST = "192.168.1.50"


@pytest.fixture
def coordinator():
    coordinator = Mock(spec=WLEDCoordinator)
    coordinator.host = HOST
    coordinator.name = "Desk"
    coordinator.state = LightState()
    coordinator.mode = ConnectionMode.OPEN
    coordinator.retry_count = 0
    return coordinator


@pytest.fixture
def light(coordinator):
    entry = Mock()
    entry.data = {CONF_HOST: HOST}
    return WLEDLight(coordinator, entry)


class TestGetters:
    """Getters read the coordinator state without I/O."""

    def test_identity(self, light):
        assert light.unique_id == HOST
        assert light.supported_color_modes == {ColorMode.HS}
        assert light.color_mode == ColorMode.HS

    def test_is_on(self, light, coordinator):
        assert light.is_on is False
        coordinator.state.power = True
        assert light.is_on is True

    def test_brightness_is_scaled_to_255(self, light, coordinator):
        coordinator.state.brightness = 50
        assert light.brightness == 128
        coordinator.state.brightness = 100
        assert light.brightness == 255

    def test_hs_color(self, light, coordinator):
        coordinator.state.hue = 240
        coordinator.state.saturation = 75
        assert light.hs_color == (240, 75)

    def test_diagnostic_attributes(self, light, coordinator):
        coordinator.mode = ConnectionMode.POLLING_FALLBACK
        coordinator.retry_count = 6
        assert light.extra_state_attributes == {
            "connection_mode": "polling_fallback",
            "retry_count": 6,
        }


class TestSetters:
    """Setters delegate to the coordinator's optimistic commands."""

    async def test_turn_on_when_off_sends_power(self, light, coordinator):
        await light.async_turn_on()
        coordinator.set_power.assert_called_once_with(True)

    async def test_turn_on_when_already_on_still_sends_power(self, light, coordinator):
        """A stale optimistic 'on' must not suppress the power command."""
        coordinator.state.power = True
        await light.async_turn_on(**{ATTR_BRIGHTNESS: 128})

        coordinator.set_power.assert_called_once_with(True)
        coordinator.set_brightness.assert_called_once_with(50)

    async def test_minimum_brightness_does_not_turn_off(self, light, coordinator):
        """HA brightness 1 maps to 1 %, never to WLED's 'off' level 0."""
        await light.async_turn_on(**{ATTR_BRIGHTNESS: 1})

        coordinator.set_brightness.assert_called_once_with(1)

    async def test_zero_brightness_is_passed_through(self, light, coordinator):
        await light.async_turn_on(**{ATTR_BRIGHTNESS: 0})

        coordinator.set_brightness.assert_called_once_with(0)

    async def test_turn_on_with_hs_color(self, light, coordinator):
        coordinator.state.power = True
        await light.async_turn_on(**{ATTR_HS_COLOR: (120.0, 80.0)})

        coordinator.set_hue.assert_called_once_with(120.0)
        coordinator.set_saturation.assert_called_once_with(80.0)

    async def test_turn_off(self, light, coordinator):
        await light.async_turn_off()
        coordinator.set_power.assert_called_once_with(False)


class TestSubscription:
    async def test_added_and_removed(self, light, coordinator):
        remove = Mock()
        coordinator.register_update_callback.return_value = remove

        await light.async_added_to_hass()
        coordinator.register_update_callback.assert_called_once_with(light.async_write_ha_state)

        await light.async_will_remove_from_hass()
        remove.assert_called_once()
