"""Exceptions for the Renpho BLE scale library."""
from __future__ import annotations


class RenphoError(Exception):
    """Base class for all Renpho scale errors."""


class MalformedPacketError(RenphoError, ValueError):
    """Raised when a notification is too short to hold a packet."""

    def __init__(self, data: bytes, reason: str) -> None:
        """Initialize."""
        super().__init__(f"Malformed packet ({reason}): {data.hex()}")
        self.data = data


class TransportError(RenphoError):
    """Base class for transport failures."""


class TransportConnectError(TransportError):
    """Raised when no connection to the scale could be established."""


class TransportWriteError(TransportError):
    """Raised when writing a command to the scale fails."""
