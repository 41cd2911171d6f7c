"""Abnormality signal: the desktop screensaver / idle state became active."""

import asyncio
from typing import AsyncIterator, Optional, Tuple

from dbus_fast import BusType
from dbus_fast.aio import MessageBus
from dbus_fast.errors import DBusError, InterfaceNotFoundError

from .._utils import logger
from ..errors import DetectorError
from .base import BaseSignalDetector

_DBUS_ERRORS = (DBusError, InterfaceNotFoundError, OSError)


class IdleSignalDetector(BaseSignalDetector):
    """Screensaver state over the session bus (org.freedesktop.ScreenSaver API).

    Event-driven: ``transitions`` yields each state change delivered by the
    ``ActiveChanged`` signal. ``evaluate`` asks ``GetActive`` fresh.
    """

    def __init__(
        self,
        bus_name: str = "org.freedesktop.ScreenSaver",
        path: str = "/org/freedesktop/ScreenSaver",
        interface: str = "org.freedesktop.ScreenSaver",
        bus_type: BusType = BusType.SESSION,
    ):
        self.bus_name = bus_name
        self.path = path
        self.interface = interface
        self.bus_type = bus_type
        self._subscribed = None

    @property
    def reason(self) -> str:
        return "The point-of-sale terminal went idle (screensaver activated)."

    async def _connect(self) -> Tuple[MessageBus, object]:
        bus = await MessageBus(bus_type=self.bus_type).connect()
        try:
            introspection = await bus.introspect(self.bus_name, self.path)
            proxy = bus.get_proxy_object(self.bus_name, self.path, introspection)
            return bus, proxy.get_interface(self.interface)
        except BaseException:
            bus.disconnect()
            raise

    async def evaluate(self) -> bool:
        try:
            if self._subscribed is not None:
                return bool(await self._subscribed.call_get_active())

            bus, screensaver = await self._connect()
            try:
                return bool(await screensaver.call_get_active())
            finally:
                bus.disconnect()
        except _DBUS_ERRORS as e:
            raise DetectorError(f"Could not query {self.interface} idle state: {e}") from e

    async def transitions(self) -> AsyncIterator[bool]:
        """Yield the new idle state each time it changes.

        The subscription stays open while the iterator is consumed; losing the
        bus connection raises DetectorError.
        """
        try:
            bus, screensaver = await self._connect()
        except _DBUS_ERRORS as e:
            raise DetectorError(f"Could not subscribe to {self.interface}: {e}") from e

        changes: "asyncio.Queue[bool]" = asyncio.Queue()
        screensaver.on_active_changed(changes.put_nowait)
        self._subscribed = screensaver
        logger.info(f"Subscribed to {self.interface} ActiveChanged on {self.path}")

        try:
            last: Optional[bool] = bool(await screensaver.call_get_active())
        except _DBUS_ERRORS as e:
            logger.warning(f"Could not read initial idle state: {e}")
            last = None

        disconnected = asyncio.ensure_future(bus.wait_for_disconnect())
        change = None
        try:
            while True:
                change = asyncio.ensure_future(changes.get())
                done, _ = await asyncio.wait({change, disconnected}, return_when=asyncio.FIRST_COMPLETED)
                if change not in done:
                    error = None if disconnected.cancelled() else disconnected.exception()
                    raise DetectorError(f"Lost the bus connection for {self.interface}: {error or 'disconnected'}")

                active = bool(change.result())
                if active == last:
                    continue
                last = active
                yield active
        finally:
            for future in (change, disconnected):
                if future is not None and not future.done():
                    future.cancel()
            screensaver.off_active_changed(changes.put_nowait)
            self._subscribed = None
            bus.disconnect()
