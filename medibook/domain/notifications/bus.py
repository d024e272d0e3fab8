"""
Live notification feed.

Committed Notification inserts are staged by a mapper event, published by
the session's after_commit hook and delivered to per-account subscriber
queues. Each subscription belongs to the event loop that created it, so
publishing is safe from request handlers running on any thread.

Delivery is at-most-once: a subscriber whose queue is full loses the push
and catches up on its next full list fetch.
"""

import asyncio
import inspect
import logging
import threading
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional, Union

from sqlalchemy import event
from sqlalchemy.orm import Session, object_session

from ...config import NOTIFICATION_QUEUE_SIZE
from ...models import Notification

logger = logging.getLogger(__name__)

InsertCallback = Callable[[dict], Union[None, Awaitable[None]]]

_STAGED_KEY = "staged_notifications"
_CLOSED = object()


class SubscriptionClosed(Exception):
    """Raised by Subscription.get() once the handle has been released"""


class Subscription:
    """Cancellable handle for one account's stream of notification inserts"""

    def __init__(self, bus: "NotificationBus", account_id: str, maxsize: int):
        self.account_id = account_id
        self._bus = bus
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._pump: Optional[asyncio.Task] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, payload: dict) -> None:
        """Hand a payload to this subscriber from any thread"""
        try:
            self._loop.call_soon_threadsafe(self._enqueue, payload)
        except RuntimeError:
            # Subscriber's loop is gone; it can no longer be reached
            logger.debug(f"Dropping push for {self.account_id}: event loop closed")

    def _enqueue(self, payload: Any) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"⚠️ Notification queue full for {self.account_id}, dropping push")

    async def get(self) -> dict:
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise SubscriptionClosed(self.account_id)
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration from None

    def attach(self, on_insert: InsertCallback) -> None:
        """
        Start invoking `on_insert` for queued and future payloads.

        Payloads published between subscribe() and attach() wait in the queue.
        """
        if self._pump is not None:
            raise RuntimeError(f"A callback is already attached for {self.account_id}")

        async def pump():
            async for payload in self:
                try:
                    result = on_insert(payload)
                    if inspect.isawaitable(result):
                        await result
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"❌ Live notification callback failed for {self.account_id}: {e}")

        self._pump = self._loop.create_task(pump())

    def close(self) -> None:
        """Release the subscription; safe to call more than once"""
        if self._closed:
            return
        self._closed = True
        self._bus._remove(self)
        if self._pump is not None and not self._pump.done():
            self._pump.cancel()
        try:
            self._loop.call_soon_threadsafe(self._shutdown_queue)
        except RuntimeError:
            pass

    def _shutdown_queue(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.close()


class NotificationBus:
    """Routes committed notification rows to the subscribers of their recipient"""

    def __init__(self, queue_size: int = NOTIFICATION_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, account_id: str) -> Subscription:
        """Open a queue-backed subscription; must be called inside a running event loop"""
        subscription = Subscription(self, account_id, self.queue_size)
        with self._lock:
            self._subscribers[account_id].add(subscription)
        logger.debug(f"📡 Live notifications subscribed for {account_id}")
        return subscription

    def subscribe_inserts(self, account_id: str, on_insert: InsertCallback) -> Subscription:
        """
        Invoke `on_insert` for every notification committed for `account_id`.

        The returned handle must be closed by the consumer; closing stops the
        callback pump.
        """
        subscription = self.subscribe(account_id)
        subscription.attach(on_insert)
        return subscription

    def publish(self, payload: dict) -> int:
        """Deliver one notification payload; returns the number of subscribers reached"""
        with self._lock:
            targets = list(self._subscribers.get(payload.get("user_id"), ()))
        for subscription in targets:
            subscription.offer(payload)
        return len(targets)

    def subscriber_count(self, account_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(account_id, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.account_id)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.account_id]
        logger.debug(f"📴 Live notifications released for {subscription.account_id}")


notification_bus = NotificationBus()


def subscribe_inserts(account_id: str, on_insert: InsertCallback) -> Subscription:
    return notification_bus.subscribe_inserts(account_id, on_insert)


@event.listens_for(Notification, "after_insert")
def _stage_insert(mapper, connection, target):
    session = object_session(target)
    if session is not None:
        session.info.setdefault(_STAGED_KEY, []).append(target.to_dict())


@event.listens_for(Session, "after_commit")
def _publish_committed(session):
    for payload in session.info.pop(_STAGED_KEY, None) or ():
        notification_bus.publish(payload)


@event.listens_for(Session, "after_rollback")
def _discard_uncommitted(session):
    session.info.pop(_STAGED_KEY, None)
