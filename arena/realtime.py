"""
In-process change feed: table-level publish/subscribe for realtime pushes.

Services publish after their transaction commits; subscribers (WebSocket
bridges, tests) register a callback per table and event type, optionally
narrowed by a column-equality filter or a predicate. Delivery is best-effort
and at-most-once: nothing is buffered for a subscriber that is not listening,
and an async callback slower than ``send_timeout`` is dropped.
"""

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from arena.config import settings

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ANY = "*"

EVENT_TYPES = {INSERT, UPDATE, DELETE, ANY}


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)

    @property
    def record(self) -> Dict[str, Any]:
        """The row the event is about: ``old`` for deletes, ``new`` otherwise."""
        return self.old if self.event == DELETE else self.new

    def as_dict(self) -> Dict[str, Any]:
        return {"table": self.table, "event": self.event, "new": self.new, "old": self.old}


Callback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]
Filter = Union[Mapping[str, Any], Callable[[ChangeEvent], bool], None]


@dataclass(eq=False)
class Subscription:
    """Token returned by :meth:`ChangeFeed.subscribe`; pass it back to unsubscribe."""

    id: int
    table: str
    event: str
    callback: Callback
    filter: Filter = None

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        if self.event != ANY and change.event != self.event:
            return False
        if self.filter is None:
            return True
        if callable(self.filter):
            return bool(self.filter(change))
        record = change.record
        return all(record.get(col) == value for col, value in self.filter.items())


class ChangeFeed:
    def __init__(self, send_timeout: Optional[float] = None):
        self.send_timeout = settings.REALTIME_SEND_TIMEOUT if send_timeout is None else send_timeout
        self._subscriptions: List[Subscription] = []
        self._ids = itertools.count(1)

    def subscribe(
        self,
        table: str,
        callback: Callback,
        event: str = ANY,
        filter: Filter = None,
    ) -> Subscription:
        event = event.upper()
        if event not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event}")
        sub = Subscription(next(self._ids), table, event, callback, filter)
        self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was already gone."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            return True
        return False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(
        self,
        table: str,
        event: str,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Deliver a change to every matching subscriber; returns how many got it.

        Sync callbacks run inline. Async ones run concurrently, each bounded by
        ``send_timeout``, so one slow client cannot stall the publisher.
        """
        change = ChangeEvent(table, event.upper(), dict(new or {}), dict(old or {}))
        delivered = 0
        waiting = []
        # Copy: callbacks may unsubscribe themselves while we iterate
        for sub in list(self._subscriptions):
            try:
                if not sub.matches(change):
                    continue
                result = sub.callback(change)
            except Exception:
                logger.exception(
                    "Realtime callback %s failed for %s %s", sub.id, change.event, change.table
                )
                continue
            if inspect.isawaitable(result):
                waiting.append(self._finish(sub, change, result))
            else:
                delivered += 1

        if waiting:
            delivered += sum(await asyncio.gather(*waiting))
        return delivered

    async def _finish(self, sub: Subscription, change: ChangeEvent, pending: Awaitable) -> bool:
        try:
            await asyncio.wait_for(pending, timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Realtime callback %s timed out for %s %s", sub.id, change.event, change.table
            )
            return False
        except Exception:
            logger.exception(
                "Realtime callback %s failed for %s %s", sub.id, change.event, change.table
            )
            return False
        return True


def subscribe_user_feeds(
    feed: ChangeFeed,
    user_id: int,
    send: Callback,
) -> List[Subscription]:
    """
    Wire the per-user pushes a signed-in page listens to:
    invitations addressed to the user, join requests on teams the user owns,
    the user's in-app notifications and chat on the teams they sit on.
    """
    return [
        feed.subscribe("team_invitations", send, filter={"user_id": user_id}),
        feed.subscribe("team_join_requests", send, filter={"owner_id": user_id}),
        feed.subscribe("notifications", send, event=INSERT, filter={"user_id": user_id}),
        feed.subscribe(
            "team_messages",
            send,
            event=INSERT,
            filter=lambda change: user_id in change.new.get("recipient_ids", ()),
        ),
    ]


# Process-wide feed shared by services and the WebSocket bridge
change_feed = ChangeFeed()
