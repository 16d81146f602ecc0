"""Packet codec and handshake decision table for the Renpho scale protocol."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, TypeAlias

from .const import (
    COMMAND_HANDSHAKE_1_ACK,
    COMMAND_HANDSHAKE_2_ACK,
    COMMAND_STOP,
    FLAG_BYTE_INDEX,
    FLAG_FINAL,
    FLAG_LIVE,
    MIN_PACKET_LENGTH,
    PACKET_HANDSHAKE_1,
    PACKET_HANDSHAKE_2,
    PACKET_WEIGHT,
    SCALE_TYPE_INDEX,
    SCALE_TYPE_KG,
    UNIT_KG,
    UNIT_UNKNOWN,
    WEIGHT_BYTES_START,
    ScaleEvent,
)
from .exceptions import MalformedPacketError

SCALE_TYPES: Final = MappingProxyType({SCALE_TYPE_KG: UNIT_KG})


def scale_unit(scale_type: int | None) -> str:
    """Translate the scale type magic number into a unit string."""
    return SCALE_TYPES.get(scale_type, UNIT_UNKNOWN)


def hexlify_spaced(data: bytes) -> str:
    """Render bytes as hex with a space between every byte."""
    return " ".join(f"{b:02x}" for b in data)


@dataclass(frozen=True)
class Packet:
    """A notification received from the scale."""

    packet_id: int
    length: int
    checksum: int
    payload: bytes


@dataclass(frozen=True)
class HandshakePacket1(Packet):
    """First device-initiated handshake packet."""


@dataclass(frozen=True)
class HandshakePacket2(Packet):
    """Second device-initiated handshake packet."""


@dataclass(frozen=True)
class WeightPacket(Packet):
    """Weight reading, either converging or final."""

    scale_type: int | None
    weight: float | None
    flag: int | None

    @property
    def unit(self) -> str:
        """Return the unit reported by the scale."""
        return scale_unit(self.scale_type)

    @property
    def is_final(self) -> bool:
        """Return True if the reading has settled."""
        return self.flag == FLAG_FINAL


@dataclass(frozen=True)
class UnknownPacket(Packet):
    """Packet with an id this library does not act on."""


def _byte_at(payload: bytes, index: int) -> int | None:
    return payload[index] if len(payload) > index else None


def parse_packet(data: bytes | bytearray) -> Packet:
    """Parse a raw notification buffer.

    Raises MalformedPacketError if the buffer cannot hold a packet header. A
    weight packet too short for a field carries None for that field.
    """
    payload = bytes(data)
    if len(payload) < MIN_PACKET_LENGTH:
        raise MalformedPacketError(payload, f"{len(payload)} bytes, header needs {MIN_PACKET_LENGTH}")

    packet_id = payload[0]
    header = {
        "packet_id": packet_id,
        "length": payload[1],
        "checksum": payload[-1],
        "payload": payload,
    }

    if packet_id == PACKET_HANDSHAKE_1:
        return HandshakePacket1(**header)
    if packet_id == PACKET_HANDSHAKE_2:
        return HandshakePacket2(**header)
    if packet_id == PACKET_WEIGHT:
        weight = None
        if len(payload) > WEIGHT_BYTES_START + 1:
            weight = ((payload[WEIGHT_BYTES_START] << 8) + payload[WEIGHT_BYTES_START + 1]) / 100
        return WeightPacket(
            **header,
            scale_type=_byte_at(payload, SCALE_TYPE_INDEX),
            weight=weight,
            flag=_byte_at(payload, FLAG_BYTE_INDEX),
        )
    return UnknownPacket(**header)


def _format_optional(value: int | float | None, spec: str) -> str:
    return "-" if value is None else format(value, spec)


def format_packet(packet: Packet) -> str:
    """Render a packet as a single diagnostic line."""
    fields = [f"packet_id=0x{packet.packet_id:02x}", f"length={packet.length:02d}"]
    if isinstance(packet, WeightPacket):
        fields.append(f"scale_type={_format_optional(packet.scale_type, '02d')}")
        fields.append(f"weight={_format_optional(packet.weight, '06.2f')}")
        fields.append(f"flag={_format_optional(packet.flag, 'd')}")
    fields.append(f"checksum={packet.checksum:03d}")
    fields.append(f"payload={hexlify_spaced(packet.payload)}")
    return " ".join(fields)


@dataclass(frozen=True)
class SendBytes:
    """Write a command to the scale."""

    command: bytes


@dataclass(frozen=True)
class RaiseEvent:
    """Raise an event with a weight value."""

    event: ScaleEvent
    value: float


@dataclass(frozen=True)
class SendAndRaise:
    """Write a command, then raise an event."""

    command: bytes
    event: ScaleEvent
    value: float


@dataclass(frozen=True)
class NoOp:
    """Nothing to do for this packet."""


Action: TypeAlias = SendBytes | RaiseEvent | SendAndRaise | NoOp


def decide(packet: Packet) -> Action:
    """Decide how to react to a packet."""
    if isinstance(packet, HandshakePacket1):
        return SendBytes(COMMAND_HANDSHAKE_1_ACK)
    if isinstance(packet, HandshakePacket2):
        # Enables weight streaming and the scale's bluetooth indicator
        return SendBytes(COMMAND_HANDSHAKE_2_ACK)
    if isinstance(packet, WeightPacket) and packet.weight is not None:
        if packet.flag == FLAG_LIVE:
            return RaiseEvent(ScaleEvent.LIVE_UPDATE, packet.weight)
        if packet.flag == FLAG_FINAL:
            return SendAndRaise(COMMAND_STOP, ScaleEvent.MEASUREMENT, packet.weight)
    return NoOp()
