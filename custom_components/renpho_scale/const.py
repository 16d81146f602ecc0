"""Constants for the Renpho Scale integration."""

from renpho_ble.const import DEFAULT_TIMEOUT, SERVICE_UUID

DOMAIN = "renpho_scale"

# Device name prefixes for auto-discovery
DEVICE_NAME_PREFIXES = ["QN-Scale", "Renpho"]

# Options
CONF_TIMEOUT = "timeout"
DEFAULT_SESSION_TIMEOUT = int(DEFAULT_TIMEOUT)
MIN_SESSION_TIMEOUT = 5
MAX_SESSION_TIMEOUT = 120

# Seconds between reconnection attempts
RECONNECT_INTERVAL = 5.0

__all__ = [
    "CONF_TIMEOUT",
    "DEFAULT_SESSION_TIMEOUT",
    "DEVICE_NAME_PREFIXES",
    "DOMAIN",
    "MAX_SESSION_TIMEOUT",
    "MIN_SESSION_TIMEOUT",
    "RECONNECT_INTERVAL",
    "SERVICE_UUID",
]
