import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

from ..models import DuplicateOperationError, EventChannel, SessionClosedError, Subscription
from ..utilities import make_next

logger = logging.getLogger(__name__)

# Type alias for the transport send callback
Sender = Callable[[Dict[str, Any]], Awaitable[None]]


class SessionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ConnectionSession:
    """
    One caller's connection lifetime and the subscriptions it owns.

    Every subscription gets a forwarder task that pops from its queue and
    hands `next` frames to the transport. close() is terminal: it releases
    every owned subscription before returning.
    """

    def __init__(self, send: Sender, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid4())
        self.state = SessionState.OPEN
        self._send = send
        self._subscriptions: Dict[str, Subscription] = {}
        self._forwarders: Dict[str, asyncio.Task] = {}

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def operations(self) -> List[str]:
        return list(self._subscriptions)

    async def subscribe(self, op_id: str, field: str, channel: EventChannel) -> Subscription:
        """
        Start streaming `channel` to the caller under operation `op_id`.

        Raises:
            SessionClosedError: If the session is Closed
            DuplicateOperationError: If `op_id` is already streaming
        """
        if not self.is_open:
            raise SessionClosedError(self.session_id)
        if op_id in self._subscriptions:
            raise DuplicateOperationError(f"Subscriber for {op_id} already exists")

        sub = await channel.subscribe(owner=self)
        if not self.is_open:
            # closed while registering
            await sub.unsubscribe()
            raise SessionClosedError(self.session_id)

        self._subscriptions[op_id] = sub
        self._forwarders[op_id] = asyncio.create_task(self._forward(op_id, field, sub))
        logger.debug(f"Session {self.session_id} streaming {field} as {op_id}")
        return sub

    async def stop(self, op_id: str) -> bool:
        """Release one subscription. Unknown or already-stopped ids are ignored."""
        sub = self._subscriptions.pop(op_id, None)
        task = self._forwarders.pop(op_id, None)
        if sub is not None:
            await sub.unsubscribe()
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        return sub is not None

    async def close(self) -> int:
        """Open -> Closed. Returns the number of subscriptions released."""
        if not self.is_open:
            return 0
        self.state = SessionState.CLOSED
        released = 0
        for op_id in list(self._subscriptions):
            if await self.stop(op_id):
                released += 1
        logger.info(f"Session {self.session_id} closed; released {released} subscription(s)")
        return released

    async def _forward(self, op_id: str, field: str, sub: Subscription) -> None:
        try:
            async for payload in sub:
                await self._send(make_next(op_id, field, payload.to_wire()))
        except Exception as e:
            # broken transport; the receive loop will close the session
            logger.warning(f"Forwarding {op_id} on session {self.session_id} stopped: {e}")
