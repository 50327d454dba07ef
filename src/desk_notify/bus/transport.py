from __future__ import annotations

import asyncio
from typing import Any, Protocol

from dbus_fast import Variant
from dbus_fast.aio import MessageBus

from desk_notify.config import get_settings
from desk_notify.errors import TransportError
from desk_notify.request.models import MergedRequest
from desk_notify.utils.log import logger

NOTIFY_DEST = "org.freedesktop.Notifications"
NOTIFY_PATH = "/org/freedesktop/Notifications"
NOTIFY_IFACE = "org.freedesktop.Notifications"

ACTION_INVOKED = "ActionInvoked"
NOTIFICATION_CLOSED = "NotificationClosed"

# dbus-fast exposes signals as on_<snake_case_name>
_SIGNAL_HANDLERS = {
    ACTION_INVOKED: "on_action_invoked",
    NOTIFICATION_CLOSED: "on_notification_closed",
}

_END = object()


class SignalFeed:
    """
    Lazy, unbounded sequence of signal argument tuples.

    One feed per subscription; items are consumed once and the feed cannot be
    restarted. `close()` ends iteration for the consumer.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._q: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, *args: Any) -> None:
        self._q.put_nowait(tuple(args))

    def close(self) -> None:
        self._q.put_nowait(_END)

    def __aiter__(self) -> SignalFeed:
        return self

    async def __anext__(self) -> tuple[Any, ...]:
        item = await self._q.get()
        if item is _END:
            # keep the feed ended for later readers
            self._q.put_nowait(_END)
            raise StopAsyncIteration
        return item


class NotificationService(Protocol):
    async def notify(self, request: MergedRequest) -> int: ...

    async def subscribe(self, signal_name: str) -> SignalFeed: ...

    async def close(self) -> None: ...


class DbusNotificationService:
    """
    `org.freedesktop.Notifications` over the session bus (dbus-fast).
    """

    def __init__(self, bus: MessageBus, interface: Any) -> None:
        self._bus = bus
        self._iface = interface
        self._feeds: list[SignalFeed] = []

    async def notify(self, request: MergedRequest) -> int:
        hints = {k: Variant(v.signature, v.value) for k, v in request.hints.items()}
        try:
            nid = await self._iface.call_notify(
                request.app_name,
                int(request.replaces_id),
                request.icon,
                request.summary,
                request.body,
                list(request.actions),
                hints,
                int(request.expire_timeout),
            )
        except Exception as ex:
            raise TransportError(f"failed to send desktop notification: {ex}") from ex
        logger.info("notification_sent", notification_id=int(nid), replaces_id=int(request.replaces_id))
        return int(nid)

    async def subscribe(self, signal_name: str) -> SignalFeed:
        feed = SignalFeed(signal_name)
        member = _SIGNAL_HANDLERS.get(signal_name)
        if member is None:
            raise TransportError(f"unknown notification signal: {signal_name}")
        try:
            getattr(self._iface, member)(feed.push)
        except Exception as ex:
            raise TransportError(f"failed to subscribe to {signal_name} signal: {ex}") from ex
        self._feeds.append(feed)
        logger.debug("signal_subscribed", signal=signal_name)
        return feed

    async def close(self) -> None:
        for feed in self._feeds:
            feed.close()
        self._feeds = []
        self._bus.disconnect()


async def connect_service(address: str | None = None) -> DbusNotificationService:
    """
    Connect to the session bus and bind the notifications interface.
    """
    s = get_settings()
    addr = address or s.session_bus_address
    timeout = float(s.connect_timeout_sec)
    try:
        bus = await asyncio.wait_for(MessageBus(bus_address=addr).connect(), timeout=timeout)
    except Exception as ex:
        raise TransportError(f"failed to connect to session D-Bus: {ex}") from ex
    try:
        introspection = await bus.introspect(NOTIFY_DEST, NOTIFY_PATH, timeout=timeout)
        proxy = bus.get_proxy_object(NOTIFY_DEST, NOTIFY_PATH, introspection)
        iface = proxy.get_interface(NOTIFY_IFACE)
    except Exception as ex:
        bus.disconnect()
        raise TransportError(f"failed to create notifications proxy: {ex}") from ex
    logger.debug("bus_connected", destination=NOTIFY_DEST)
    return DbusNotificationService(bus, iface)
