"""
Wait for the user's answer to a sent notification.

The coordinator has one waiting state and two terminal ones:

    Waiting --(matching ActionInvoked / NotificationClosed)--> Matched
    Waiting --(deadline)-----------------------------------> TimedOut

Both signal feeds are raised by the server for *every* notification, so
events for other ids are dropped and waiting continues. Exactly one outcome
line is printed per call.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import click

from desk_notify.errors import AwaitTimeoutError, TransportError
from desk_notify.utils.log import logger

from .events import AwaitTimeoutEvent, ClosedEvent, Event, decode_action_key
from .transport import ACTION_INVOKED, NOTIFICATION_CLOSED, NotificationService


def _decode(signal_name: str, item: Any) -> tuple[int, Any]:
    try:
        signal_id, payload = item
        return int(signal_id), payload
    except (TypeError, ValueError) as ex:
        raise TransportError(f"failed to decode {signal_name}: {ex}") from ex


def _closed_reason(payload: Any) -> int:
    try:
        return int(payload)
    except (TypeError, ValueError) as ex:
        raise TransportError(f"failed to decode {NOTIFICATION_CLOSED} reason: {ex}") from ex


class AwaitCoordinator:
    def __init__(self, service: NotificationService, *, echo: Callable[[str], Any] = click.echo) -> None:
        self.service = service
        self._echo = echo

    async def await_outcome(
        self,
        notification_id: int,
        *,
        print_id: bool = False,
        timeout_ms: int | None = None,
    ) -> Event:
        """
        Block until `notification_id` is acted on, closed, or the deadline hits.

        `timeout_ms=None` waits forever. On timeout the await-timeout line is
        printed and AwaitTimeoutError is raised (carrying the event).
        """
        actions = await self.service.subscribe(ACTION_INVOKED)
        closed = await self.service.subscribe(NOTIFICATION_CLOSED)
        logger.info("await_begin", timeout_ms=timeout_ms)

        wait = self._wait_for_match(int(notification_id), actions, closed)
        try:
            if timeout_ms is None:
                event = await wait
            else:
                event = await asyncio.wait_for(wait, timeout=int(timeout_ms) / 1000.0)
        except asyncio.TimeoutError:
            timed_out = AwaitTimeoutEvent(notification_id=int(notification_id), timeout_ms=int(timeout_ms or 0))
            self._echo(timed_out.to_json(print_id=print_id))
            logger.warning("await_timeout", timeout_ms=timeout_ms)
            raise AwaitTimeoutError(int(timeout_ms or 0), event=timed_out) from None

        self._echo(event.to_json(print_id=print_id))
        logger.info("await_matched", outcome=type(event).__name__)
        return event

    async def _wait_for_match(
        self,
        notification_id: int,
        actions: AsyncIterator[Any],
        closed: AsyncIterator[Any],
    ) -> Event:
        feeds = {ACTION_INVOKED: actions, NOTIFICATION_CLOSED: closed}
        pending: dict[asyncio.Future, str] = {}
        try:
            while True:
                # keep exactly one outstanding read per feed
                reading = set(pending.values())
                for name, feed in feeds.items():
                    if name not in reading:
                        pending[asyncio.ensure_future(feed.__anext__())] = name

                done, _ = await asyncio.wait(pending.keys(), return_when=asyncio.FIRST_COMPLETED)
                for fut in done:
                    name = pending.pop(fut)
                    try:
                        item = fut.result()
                    except StopAsyncIteration:
                        raise TransportError(f"{name} signal stream ended") from None
                    signal_id, payload = _decode(name, item)
                    if signal_id != notification_id:
                        logger.debug("await_ignored", signal=name, other_id=signal_id)
                        continue
                    if name == ACTION_INVOKED:
                        return decode_action_key(notification_id, str(payload))
                    return ClosedEvent(notification_id=notification_id, reason=_closed_reason(payload))
        finally:
            for fut in pending:
                fut.cancel()
            if pending:
                await asyncio.gather(*pending.keys(), return_exceptions=True)
