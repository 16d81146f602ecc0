"""Constants for the Renpho BLE scale protocol."""
from enum import StrEnum
from typing import Final

# Bluetooth service and characteristic UUIDs
SERVICE_UUID: Final = "0000ffe0-0000-1000-8000-00805f9b34fb"
NOTIFY_CHARACTERISTIC_UUID: Final = "0000ffe1-0000-1000-8000-00805f9b34fb"
COMMAND_CHARACTERISTIC_UUID: Final = "0000ffe3-0000-1000-8000-00805f9b34fb"

# Packet ids (byte 0 of every notification)
PACKET_WEIGHT: Final = 0x10
PACKET_HANDSHAKE_1: Final = 0x12
PACKET_HANDSHAKE_2: Final = 0x14

# Packet layout
MIN_PACKET_LENGTH: Final = 2
SCALE_TYPE_INDEX: Final = 2
WEIGHT_BYTES_START: Final = 3
FLAG_BYTE_INDEX: Final = 5

# Convergence flag values (byte 5 of a weight packet)
FLAG_LIVE: Final = 0
FLAG_FINAL: Final = 1

# Scale type magic numbers
SCALE_TYPE_KG: Final = 21
UNIT_KG: Final = "kg"
UNIT_UNKNOWN: Final = "unknown"

# Command sequences written to the command characteristic
COMMAND_HANDSHAKE_1_ACK: Final = bytes([0x13, 0x09, 0x15, 0x01, 0x10, 0x00, 0x00, 0x00, 0x42])
COMMAND_HANDSHAKE_2_ACK: Final = bytes([0x20, 0x08, 0x15, 0x09, 0x0B, 0xAC, 0x29, 0x26])
COMMAND_STOP: Final = bytes([0x1F, 0x05, 0x15, 0x10, 0x49])

# Timing defaults (seconds)
DEFAULT_TIMEOUT: Final = 10.0
DEFAULT_RETRY_DELAY: Final = 1.0
DEFAULT_CONNECT_TIMEOUT: Final = 15.0
DEFAULT_CONNECT_ATTEMPTS: Final = 2


class ScaleEvent(StrEnum):
    """Events raised by a scale session.

    Payloads: DATA carries the decoded packet, LIVE_UPDATE and MEASUREMENT the
    weight in kg, TIMEOUT nothing.
    """

    DATA = "data"
    LIVE_UPDATE = "liveupdate"
    MEASUREMENT = "measurement"
    TIMEOUT = "timeout"
