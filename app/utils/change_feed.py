"""
In-process change feed for live monitoring

Writers publish the full current snapshot for a key; every subscriber of
that key receives it. Snapshots are full state, never diffs, so a slow
consumer that misses an intermediate snapshot loses nothing.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Hashable, Optional, Set

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """
    Cancellable handle on a feed key

    Delivers each snapshot to on_change (if given) and buffers it for
    async iteration. dispose() unregisters; it is safe to call twice.
    """

    def __init__(
        self,
        feed: "ChangeFeed",
        key: Hashable,
        on_change: Optional[Callable[[Any], None]] = None,
        max_buffered: int = 100
    ):
        self.feed = feed
        self.key = key
        self.on_change = on_change
        self.disposed = False
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_buffered)

    def deliver(self, snapshot: Any) -> None:
        if self.disposed:
            return

        if self.on_change is not None:
            try:
                self.on_change(snapshot)
            except Exception as e:
                logger.error(f"Subscriber callback failed for {self.key}: {str(e)}", exc_info=True)

        if self._queue.full():
            # Oldest snapshot is superseded by this one
            self._queue.get_nowait()
        self._queue.put_nowait(snapshot)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.feed._remove(self)
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        if self.disposed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()

    def __repr__(self):
        return f"<Subscription(key={self.key}, disposed={self.disposed})>"


class ChangeFeed:
    """Registry of subscriptions keyed by (class_id, test_id)"""

    def __init__(self, name: str):
        self.name = name
        self._subscribers: Dict[Hashable, Set[Subscription]] = defaultdict(set)

    def subscribe(
        self,
        key: Hashable,
        on_change: Optional[Callable[[Any], None]] = None
    ) -> Subscription:
        subscription = Subscription(self, key, on_change)
        self._subscribers[key].add(subscription)
        logger.info(f"{self.name} feed: subscribed to {key} ({len(self._subscribers[key])} active)")
        return subscription

    def publish(self, key: Hashable, snapshot: Any) -> int:
        """
        Push a snapshot to every subscriber of key

        Returns:
            Number of subscribers notified
        """
        subscribers = list(self._subscribers.get(key, ()))
        for subscription in subscribers:
            subscription.deliver(snapshot)
        if subscribers:
            logger.debug(f"{self.name} feed: published to {len(subscribers)} subscriber(s) of {key}")
        return len(subscribers)

    def subscriber_count(self, key: Hashable) -> int:
        return len(self._subscribers.get(key, ()))

    def total_subscribers(self) -> int:
        return sum(len(s) for s in self._subscribers.values())

    def close_all(self) -> int:
        """Dispose every open subscription; returns how many were closed"""
        subscriptions = [s for subs in self._subscribers.values() for s in subs]
        for subscription in subscriptions:
            subscription.dispose()
        return len(subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.key)
        if subscribers is None:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.key]
        logger.info(f"{self.name} feed: unsubscribed from {subscription.key}")
