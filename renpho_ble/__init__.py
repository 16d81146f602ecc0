"""Library for Renpho BLE body-weight scales."""

from .const import (
    COMMAND_CHARACTERISTIC_UUID,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    NOTIFY_CHARACTERISTIC_UUID,
    SERVICE_UUID,
    ScaleEvent,
)
from .exceptions import (
    MalformedPacketError,
    RenphoError,
    TransportConnectError,
    TransportError,
    TransportWriteError,
)
from .protocol import (
    Action,
    HandshakePacket1,
    HandshakePacket2,
    NoOp,
    Packet,
    RaiseEvent,
    SendAndRaise,
    SendBytes,
    UnknownPacket,
    WeightPacket,
    decide,
    format_packet,
    parse_packet,
)
from .session import ScaleSession, SessionState
from .supervisor import SessionSupervisor
from .transport import BleakScaleTransport, ScaleTransport, async_connect

__all__ = [
    "COMMAND_CHARACTERISTIC_UUID",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
    "NOTIFY_CHARACTERISTIC_UUID",
    "SERVICE_UUID",
    "Action",
    "BleakScaleTransport",
    "HandshakePacket1",
    "HandshakePacket2",
    "MalformedPacketError",
    "NoOp",
    "Packet",
    "RaiseEvent",
    "RenphoError",
    "ScaleEvent",
    "ScaleSession",
    "ScaleTransport",
    "SendAndRaise",
    "SendBytes",
    "SessionState",
    "SessionSupervisor",
    "TransportConnectError",
    "TransportError",
    "TransportWriteError",
    "UnknownPacket",
    "WeightPacket",
    "async_connect",
    "decide",
    "format_packet",
    "parse_packet",
]
