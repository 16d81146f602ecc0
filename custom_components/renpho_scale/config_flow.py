"""Config flow for Renpho Scale integration."""
from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.components import bluetooth
from homeassistant.const import CONF_ADDRESS
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult

from .const import (
    CONF_TIMEOUT,
    DEFAULT_SESSION_TIMEOUT,
    DEVICE_NAME_PREFIXES,
    DOMAIN,
    MAX_SESSION_TIMEOUT,
    MIN_SESSION_TIMEOUT,
    SERVICE_UUID,
)

MANUAL_ENTRY = "manual"


def format_address(address: str) -> str:
    """Normalise a MAC address typed by the user."""
    compact = address.upper().replace(":", "").replace("-", "").strip()
    if len(compact) == 12:
        return ":".join(compact[i:i + 2] for i in range(0, 12, 2))
    return address.upper().strip()


def is_supported_device(name: str | None, service_uuids: list[str] | None = None) -> bool:
    """Check if an advertisement looks like a Renpho scale."""
    if service_uuids and SERVICE_UUID in (uuid.lower() for uuid in service_uuids):
        return True
    if not name:
        return False

    name_lower = name.lower()
    return any(name_lower.startswith(prefix.lower()) for prefix in DEVICE_NAME_PREFIXES)


class RenphoScaleConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Renpho Scale."""

    VERSION = 1
    MINOR_VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._discovered_devices: dict[str, str] = {}
        self._discovery_info: bluetooth.BluetoothServiceInfoBleak | None = None

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> RenphoScaleOptionsFlow:
        """Get the options flow for this handler."""
        return RenphoScaleOptionsFlow()

    async def async_step_bluetooth(
        self, discovery_info: bluetooth.BluetoothServiceInfoBleak
    ) -> FlowResult:
        """Handle the bluetooth discovery step."""
        if not is_supported_device(discovery_info.name, discovery_info.service_uuids):
            return self.async_abort(reason="not_supported")

        await self.async_set_unique_id(discovery_info.address.upper())
        self._abort_if_unique_id_configured()

        device_name = discovery_info.name or discovery_info.address
        self.context["title_placeholders"] = {"name": device_name}
        self._discovery_info = discovery_info

        return await self.async_step_bluetooth_confirm()

    async def async_step_bluetooth_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Confirm discovery."""
        assert self._discovery_info is not None

        if user_input is not None:
            return self.async_create_entry(
                title=self._discovery_info.name or self._discovery_info.address,
                data={CONF_ADDRESS: self._discovery_info.address.upper()},
            )

        self._set_confirm_only()
        return self.async_show_form(
            step_id="bluetooth_confirm",
            description_placeholders={
                "name": self._discovery_info.name or self._discovery_info.address
            },
        )

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Pick a discovered scale or choose to enter an address."""
        if user_input is not None:
            if user_input[CONF_ADDRESS] == MANUAL_ENTRY:
                return await self.async_step_manual()
            return await self._async_create_scale_entry(
                user_input[CONF_ADDRESS], self._discovered_devices[user_input[CONF_ADDRESS]]
            )

        current_addresses = self._async_current_ids()
        self._discovered_devices = {
            info.address.upper(): info.name or info.address
            for info in bluetooth.async_discovered_service_info(self.hass)
            if info.address.upper() not in current_addresses
            and is_supported_device(info.name, info.service_uuids)
        }
        if not self._discovered_devices:
            return await self.async_step_manual()

        choices = {address: f"{name} ({address})" for address, name in self._discovered_devices.items()}
        choices[MANUAL_ENTRY] = "Enter address manually"
        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema({vol.Required(CONF_ADDRESS): vol.In(choices)}),
        )

    async def async_step_manual(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle manual address entry."""
        if user_input is not None:
            address = format_address(user_input[CONF_ADDRESS])
            return await self._async_create_scale_entry(address, address)

        return self.async_show_form(
            step_id="manual",
            data_schema=vol.Schema({vol.Required(CONF_ADDRESS): str}),
        )

    async def _async_create_scale_entry(self, address: str, title: str) -> FlowResult:
        await self.async_set_unique_id(address)
        self._abort_if_unique_id_configured()
        return self.async_create_entry(title=title, data={CONF_ADDRESS: address})


class RenphoScaleOptionsFlow(config_entries.OptionsFlow):
    """Handle Renpho Scale options."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the session timeout."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema({
                vol.Required(
                    CONF_TIMEOUT,
                    default=self.config_entry.options.get(CONF_TIMEOUT, DEFAULT_SESSION_TIMEOUT),
                ): vol.All(vol.Coerce(int), vol.Range(min=MIN_SESSION_TIMEOUT, max=MAX_SESSION_TIMEOUT)),
            }),
        )
