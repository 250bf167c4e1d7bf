import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
from uuid import uuid4

from .errors import SubscriptionClosed

logger = logging.getLogger(__name__)

_CLOSED = object()


# ------------ In-memory structures ------------
class SubscriberQueue:
    ''' Unbounded FIFO of pending events for one subscription.'''

    def __init__(self, sub_id: str):
        self.sub_id = sub_id
        # publisher never waits on a subscriber; no backpressure
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def put(self, item: Any) -> bool:
        """Enqueue an event. Returns False if the queue is already closed."""
        if self.closed:
            return False
        self._queue.put_nowait(item)
        return True

    async def get(self) -> Any:
        """Suspend until an event arrives; raise SubscriptionClosed once closed."""
        if self.closed:
            raise SubscriptionClosed(self.sub_id)
        item = await self._queue.get()
        if item is _CLOSED:
            raise SubscriptionClosed(self.sub_id)
        return item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # pending events are dropped, then a waiting get() is woken up
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def pending(self) -> int:
        return 0 if self.closed else self._queue.qsize()

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration


@dataclass(frozen=True)
class SubscriptionHandle:
    topic: str
    sub_id: str = field(default_factory=lambda: str(uuid4()))


class Topic:
    def __init__(self, name: str):
        self.name = name
        # insertion order is registration order
        self.subscribers: Dict[str, SubscriberQueue] = {}
        self.lock = asyncio.Lock()
        # stats
        self.messages_published = 0

    async def publish(self, payload: Any) -> int:

        # locking before critical section
        async with self.lock:
            self.messages_published += 1
            subscribers = list(self.subscribers.values())

        # fan-out outside lock; a queue removed meanwhile is closed and refuses the put
        delivered = 0
        for sub in subscribers:
            try:
                if sub.put(payload):
                    delivered += 1
            except Exception:
                logger.exception(f"Failed to enqueue event on {self.name} for subscriber {sub.sub_id}")
        return delivered


class TopicRegistry:
    ''' Maps topic names to their subscriber queues. Topics are created lazily and never dropped.'''

    def __init__(self):
        self._topics: Dict[str, Topic] = {}
        self._lock = asyncio.Lock()

    async def _get_or_create(self, name: str) -> Topic:
        async with self._lock:
            t = self._topics.get(name)
            if t is None:
                t = Topic(name)
                self._topics[name] = t
            return t

    async def subscribe(self, topic_name: str) -> Tuple[SubscriberQueue, SubscriptionHandle]:
        topic = await self._get_or_create(topic_name)
        handle = SubscriptionHandle(topic_name)
        queue = SubscriberQueue(handle.sub_id)
        async with topic.lock:
            topic.subscribers[handle.sub_id] = queue
        logger.debug(f"Subscribed {handle.sub_id} to {topic_name}")
        return queue, handle

    async def publish(self, topic_name: str, payload: Any) -> int:
        """Deliver payload to every queue registered under topic_name; returns the delivery count."""
        topic = await self._get_or_create(topic_name)
        return await topic.publish(payload)

    async def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """Remove and close the queue behind handle. Safe to call repeatedly."""
        async with self._lock:
            topic = self._topics.get(handle.topic)
        if topic is None:
            return False
        async with topic.lock:
            sub = topic.subscribers.pop(handle.sub_id, None)
        if sub is None:
            return False
        sub.close()
        logger.debug(f"Unsubscribed {handle.sub_id} from {handle.topic}")
        return True

    async def stats(self) -> Dict[str, Dict[str, int]]:
        async with self._lock:
            topic_items = list(self._topics.items())
        out = {}
        for name, t in topic_items:
            async with t.lock:
                out[name] = {
                    "messages": t.messages_published,
                    "subscribers": len(t.subscribers),
                }
        return out
