"""Reconnect loop that keeps a scale session alive."""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
import logging
from typing import Any, TypeAlias

from bleak import BleakError

from .const import DEFAULT_RETRY_DELAY, DEFAULT_TIMEOUT, ScaleEvent
from .exceptions import TransportConnectError
from .session import ScaleSession
from .transport import ScaleTransport, async_connect

_LOGGER = logging.getLogger(__name__)

Connector: TypeAlias = Callable[[str], Awaitable[ScaleTransport]]
ConnectedCallback: TypeAlias = Callable[[ScaleSession], Any]


class SessionSupervisor:
    """Repeatedly connect to a scale and run one session per connection.

    A session ends on TIMEOUT or MEASUREMENT. In once mode the loop stops after
    the first session that ends this way; connection failures are always
    retried after ``retry_delay`` seconds.
    """

    def __init__(
        self,
        address: str,
        connector: Connector = async_connect,
        *,
        once: bool = False,
        on_connected: ConnectedCallback | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        verbose: bool = False,
    ) -> None:
        """Initialize."""
        self.address = address.upper()
        self._connector = connector
        self._once = once
        self._on_connected = on_connected
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._verbose = verbose
        self._stopping = False
        self._session: ScaleSession | None = None
        self._completion: asyncio.Future[ScaleEvent | None] | None = None
        self._run_task: asyncio.Task | None = None

        self._connection_attempts = 0
        self._connection_failures = 0
        self._sessions = 0
        self._measurements = 0
        self._timeouts = 0
        self._last_measurement: float | None = None
        self._last_measurement_time: datetime | None = None
        self._last_error: str | None = None
        self._unavailable_logged = False

    @property
    def session(self) -> ScaleSession | None:
        """Return the active session, if any."""
        return self._session

    @property
    def is_running(self) -> bool:
        """Return True while the loop runs."""
        return self._run_task is not None and not self._run_task.done()

    @property
    def stats(self) -> dict[str, Any]:
        """Return statistics for diagnostics."""
        return {
            "connection_attempts": self._connection_attempts,
            "connection_failures": self._connection_failures,
            "sessions": self._sessions,
            "measurements": self._measurements,
            "timeouts": self._timeouts,
            "last_measurement": self._last_measurement,
            "last_measurement_time": (
                self._last_measurement_time.isoformat() if self._last_measurement_time else None
            ),
            "last_error": self._last_error,
            "session_active": self._session is not None and self._session.is_listening,
        }

    def start(self) -> asyncio.Task:
        """Run the loop in a background task."""
        if not self.is_running:
            self._stopping = False
            self._run_task = asyncio.create_task(self.async_run())
        return self._run_task

    def stop(self) -> None:
        """Ask the loop to end and release the current session."""
        self._stopping = True
        if self._completion is not None and not self._completion.done():
            self._completion.set_result(None)

    async def async_stop(self) -> None:
        """Stop the loop and wait for the background task to finish."""
        self.stop()
        if self._run_task is None:
            return
        task, self._run_task = self._run_task, None
        if task is asyncio.current_task():
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), self._retry_delay + self._timeout)
        except TimeoutError:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def async_run(self) -> ScaleEvent | None:
        """Run sessions until stopped, or until the first one completes in once mode."""
        result: ScaleEvent | None = None
        self._run_task = asyncio.current_task()
        while not self._stopping:
            try:
                transport = await self._async_acquire()
            except (TransportConnectError, TimeoutError, BleakError) as err:
                self._connection_failures += 1
                self._last_error = str(err)
                if not self._unavailable_logged:
                    _LOGGER.warning("Could not connect to %s: %s", self.address, err)
                    self._unavailable_logged = True
                else:
                    _LOGGER.debug("Could not connect to %s: %s", self.address, err)
                await self._async_delay()
                continue
            except Exception as err:
                self._connection_failures += 1
                self._last_error = str(err)
                _LOGGER.exception("Unexpected error connecting to %s", self.address)
                await self._async_delay()
                continue

            if self._unavailable_logged:
                _LOGGER.info("Scale %s is back online", self.address)
                self._unavailable_logged = False

            try:
                result = await self._async_run_session(transport)
            except (TimeoutError, BleakError, OSError) as err:
                self._last_error = str(err)
                _LOGGER.warning("Session with %s failed: %s", self.address, err)
                result = None
            except Exception as err:
                self._last_error = str(err)
                _LOGGER.exception("Unexpected error in session with %s", self.address)
                result = None
            finally:
                await self._async_release(transport)

            if self._once and result is not None:
                _LOGGER.debug("Session with %s complete, stopping", self.address)
                break
            _LOGGER.debug("Next iteration for %s", self.address)
            await self._async_delay()

        return result

    async def _async_acquire(self) -> ScaleTransport:
        self._connection_attempts += 1
        _LOGGER.debug("Waiting for connection to %s (attempt %d)", self.address, self._connection_attempts)
        return await self._connector(self.address)

    async def _async_run_session(self, transport: ScaleTransport) -> ScaleEvent | None:
        loop = asyncio.get_running_loop()
        completion: asyncio.Future[ScaleEvent | None] = loop.create_future()
        self._completion = completion
        session = ScaleSession(transport, verbose=self._verbose)
        self._session = session
        self._sessions += 1

        def _complete(event: ScaleEvent) -> None:
            if not completion.done():
                completion.set_result(event)

        def _on_timeout() -> None:
            self._timeouts += 1
            _complete(ScaleEvent.TIMEOUT)

        def _on_measurement(weight: float) -> None:
            self._measurements += 1
            self._last_measurement = weight
            self._last_measurement_time = datetime.now()
            _LOGGER.info("Measurement from %s: %.2f kg", self.address, weight)
            _complete(ScaleEvent.MEASUREMENT)

        session.on(ScaleEvent.TIMEOUT, _on_timeout).on(ScaleEvent.MEASUREMENT, _on_measurement)

        try:
            if self._on_connected is not None:
                self._on_connected(session)
            if self._stopping:
                return None
            await session.async_start_listening(self._timeout)
            return await completion
        finally:
            await session.async_destroy()
            self._completion = None
            self._session = None

    async def _async_release(self, transport: ScaleTransport) -> None:
        try:
            await transport.disconnect()
        except Exception as err:  # noqa: BLE001
            _LOGGER.debug("Error while releasing connection to %s: %s", self.address, err)

    async def _async_delay(self) -> None:
        if not self._stopping:
            await asyncio.sleep(self._retry_delay)
