"""
Typed event channels over the topic registry.

Each channel is bound to one topic and one payload model, so a channel
created for Message can never carry a SystemStatus.
"""
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from ..schemas import EventPayload, Message, Settings, SystemStatus
from ..utilities import MESSAGE_ADDED, SETTINGS_UPDATED, SYSTEM_STATUS_CHANGED
from .models import SubscriberQueue, SubscriptionHandle, TopicRegistry

T = TypeVar("T", bound=EventPayload)


class Subscription(Generic[T]):
    """
    A live registration on one channel.

    Iterating yields payloads published after the subscription was created,
    in publish order, and stops once unsubscribe() has run.
    """

    def __init__(
        self,
        registry: TopicRegistry,
        queue: SubscriberQueue,
        handle: SubscriptionHandle,
        owner: Optional[Any] = None,
    ):
        self._registry = registry
        self._queue = queue
        self.handle = handle
        self.owner = owner

    @property
    def topic(self) -> str:
        return self.handle.topic

    @property
    def closed(self) -> bool:
        return self._queue.closed

    async def get(self) -> T:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.pending()

    async def unsubscribe(self) -> None:
        await self._registry.unsubscribe(self.handle)

    def __aiter__(self):
        return self._queue


class EventChannel(Generic[T]):
    def __init__(self, registry: TopicRegistry, topic: str, payload_type: Type[T]):
        self.registry = registry
        self.topic = topic
        self.payload_type = payload_type

    async def publish(self, payload: T) -> int:
        if not isinstance(payload, self.payload_type):
            raise TypeError(
                f"Channel {self.topic} carries {self.payload_type.__name__}, "
                f"got {type(payload).__name__}"
            )
        return await self.registry.publish(self.topic, payload)

    async def subscribe(self, owner: Optional[Any] = None) -> Subscription[T]:
        queue, handle = await self.registry.subscribe(self.topic)
        return Subscription(self.registry, queue, handle, owner)


class EventChannels:
    """The three channels the relay exposes, keyed by subscription field."""

    def __init__(self, registry: TopicRegistry):
        self.registry = registry
        self.message_added: EventChannel[Message] = EventChannel(registry, MESSAGE_ADDED, Message)
        self.system_status_changed: EventChannel[SystemStatus] = EventChannel(
            registry, SYSTEM_STATUS_CHANGED, SystemStatus
        )
        self.settings_updated: EventChannel[Settings] = EventChannel(registry, SETTINGS_UPDATED, Settings)

    def by_field(self) -> Dict[str, EventChannel]:
        return {
            "messageAdded": self.message_added,
            "systemStatusChanged": self.system_status_changed,
            "settingsUpdated": self.settings_updated,
        }
