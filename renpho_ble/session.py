"""A single listening session on a connected Renpho scale."""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
import logging
from typing import Any, TypeAlias

from .const import DEFAULT_TIMEOUT, ScaleEvent
from .exceptions import MalformedPacketError, TransportWriteError
from .protocol import (
    Packet,
    RaiseEvent,
    SendAndRaise,
    SendBytes,
    UnknownPacket,
    decide,
    format_packet,
    hexlify_spaced,
    parse_packet,
)
from .transport import ScaleTransport

_LOGGER = logging.getLogger(__name__)

EventHandler: TypeAlias = Callable[..., Any]


class SessionState(Enum):
    """Lifecycle of a scale session."""

    IDLE = "idle"
    LISTENING = "listening"
    ENDED = "ended"


class ScaleSession:
    """Drive the handshake and measurement cycle over one connection.

    Notifications are queued and processed one at a time by a worker task, so
    all handlers for one packet have run before the next packet is decoded.
    Handlers are plain callables:

        DATA         handler(packet)
        LIVE_UPDATE  handler(weight_kg)
        MEASUREMENT  handler(weight_kg)
        TIMEOUT      handler()
    """

    def __init__(self, transport: ScaleTransport, *, verbose: bool = False) -> None:
        """Initialize."""
        self._transport = transport
        self._verbose = verbose
        self._state = SessionState.IDLE
        self._listeners: dict[ScaleEvent, list[EventHandler]] = {event: [] for event in ScaleEvent}
        self._subscription: Any = None
        self._timeout = DEFAULT_TIMEOUT
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._queue: asyncio.Queue[bytes] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._teardown_task: asyncio.Task | None = None
        self._measurement_sent = False
        self._packets_received = 0
        self._last_packet: Packet | None = None

    @property
    def state(self) -> SessionState:
        """Return the session state."""
        return self._state

    @property
    def is_listening(self) -> bool:
        """Return True while notifications are being processed."""
        return self._state is SessionState.LISTENING

    @property
    def address(self) -> str:
        """Return the address of the scale."""
        return self._transport.address

    @property
    def packets_received(self) -> int:
        """Return the number of decoded packets."""
        return self._packets_received

    @property
    def last_packet(self) -> Packet | None:
        """Return the last decoded packet."""
        return self._last_packet

    def _get_listeners(self, event: ScaleEvent | str) -> list[EventHandler]:
        try:
            return self._listeners[ScaleEvent(event)]
        except ValueError:
            raise ValueError(f"Invalid event: {event}") from None

    def on(self, event: ScaleEvent | str, handler: EventHandler) -> ScaleSession:
        """Register a handler for an event."""
        self._get_listeners(event).append(handler)
        return self

    def once(self, event: ScaleEvent | str, handler: EventHandler) -> ScaleSession:
        """Register a handler that is removed after its first call."""

        def _wrapped(*args: Any) -> Any:
            self.off(event, _wrapped)
            return handler(*args)

        return self.on(event, _wrapped)

    def off(self, event: ScaleEvent | str, handler: EventHandler | None = None) -> ScaleSession:
        """Remove a handler, or all handlers for the event if none is given."""
        listeners = self._get_listeners(event)
        if handler is None:
            listeners.clear()
        elif handler in listeners:
            listeners.remove(handler)
        return self

    def _emit(self, event: ScaleEvent, *args: Any) -> None:
        """Call every handler for an event; a failing handler does not stop the rest."""
        for handler in list(self._listeners[event]):
            try:
                handler(*args)
            except Exception:
                _LOGGER.exception("Error in %s handler %s", event, handler)

    async def async_start_listening(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Subscribe to notifications and arm the inactivity timer."""
        if self._state is not SessionState.IDLE:
            return

        _LOGGER.info("Listening to %s (timeout after %s seconds)", self.address, timeout)
        self._timeout = timeout
        self._state = SessionState.LISTENING
        self._worker = asyncio.create_task(self._async_process_notifications())
        try:
            self._subscription = await self._transport.subscribe(self._handle_notification)
        except Exception:
            await self.async_destroy()
            raise
        if self._state is SessionState.LISTENING:
            self._reset_timer()
        else:
            # Destroyed while subscribing
            await self._async_teardown()

    def _handle_notification(self, data: bytes) -> None:
        """Queue a notification from the transport."""
        if self._state is not SessionState.LISTENING:
            return
        self._queue.put_nowait(data)

    async def _async_process_notifications(self) -> None:
        while True:
            data = await self._queue.get()
            try:
                if self._state is SessionState.LISTENING:
                    await self._async_handle_data(data)
            except Exception:
                _LOGGER.exception("Error while handling notification from %s", self.address)
            finally:
                self._queue.task_done()
            if self._state is not SessionState.LISTENING:
                return

    async def _async_handle_data(self, data: bytes) -> None:
        if self._verbose:
            _LOGGER.debug("RECV %s", hexlify_spaced(data))

        try:
            packet = parse_packet(data)
        except MalformedPacketError as err:
            _LOGGER.debug("Dropping notification: %s", err)
            return

        self._packets_received += 1
        self._last_packet = packet
        self._reset_timer()
        _LOGGER.debug("Received packet: %s", format_packet(packet))
        self._emit(ScaleEvent.DATA, packet)

        action = decide(packet)
        if isinstance(action, (RaiseEvent, SendAndRaise)) and action.event is ScaleEvent.MEASUREMENT:
            if self._measurement_sent:
                _LOGGER.debug("Ignoring final reading %.2f, measurement already raised", action.value)
                return

        if isinstance(action, (SendBytes, SendAndRaise)):
            try:
                await self._async_send_command(action.command)
            except TransportWriteError as err:
                _LOGGER.warning("Error while handling packet 0x%02x: %s", packet.packet_id, err)
                return
            except Exception:
                _LOGGER.exception(
                    "Unexpected error writing to %s for packet 0x%02x", self.address, packet.packet_id
                )
                return
            if self._state is not SessionState.LISTENING:
                return

        if isinstance(action, (RaiseEvent, SendAndRaise)):
            if action.event is ScaleEvent.MEASUREMENT:
                self._measurement_sent = True
            self._emit(action.event, action.value)
        elif isinstance(packet, UnknownPacket):
            _LOGGER.debug("Ignoring unknown packet 0x%02x", packet.packet_id)

    async def _async_send_command(self, command: bytes) -> None:
        if self._verbose:
            _LOGGER.debug("SEND %s", hexlify_spaced(command))
        await self._transport.write_command(command)
        _LOGGER.debug("Sent command %s to %s", command.hex(), self.address)

    def _reset_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timeout_handle = loop.call_later(self._timeout, self._handle_timeout)

    def _cancel_timer(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _handle_timeout(self) -> None:
        self._timeout_handle = None
        if self._state is not SessionState.LISTENING:
            return
        _LOGGER.warning("No data from %s for %s seconds", self.address, self._timeout)
        self._state = SessionState.ENDED
        self._emit(ScaleEvent.TIMEOUT)
        self._teardown_task = asyncio.create_task(self._async_teardown())

    async def async_join(self) -> None:
        """Wait until every queued notification has been handled."""
        await self._queue.join()

    async def async_destroy(self) -> None:
        """Stop listening and release resources. Safe to call repeatedly."""
        self._state = SessionState.ENDED
        self._cancel_timer()
        if self._teardown_task is None:
            self._teardown_task = asyncio.create_task(self._async_teardown())
        await asyncio.shield(self._teardown_task)

    async def _async_teardown(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
        self._drain_queue()

        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await self._transport.unsubscribe(subscription)
        except Exception as err:  # noqa: BLE001
            _LOGGER.debug("Error while unsubscribing from %s, ignoring: %s", self.address, err)

    def _drain_queue(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
