import logging
from typing import Any, Dict

from pydantic import ValidationError

from ..models import CommandValidationError, EventChannel, IdCounter
from ..schemas import Message, SendMessageInput
from ..utilities import now_ts

logger = logging.getLogger(__name__)


class CommandHandlers:
    """
    Caller-issued commands that produce events.

    A command's result is returned only after its event has been fanned
    out, so a caller subscribed to its own channel sees the event too.
    """

    def __init__(self, message_added: EventChannel[Message], counter: IdCounter):
        self.message_added = message_added
        self.counter = counter

    async def send_message(self, **arguments: Any) -> Message:
        """
        Publish a user message on the message-added channel.

        Only `text` is taken from the arguments; author, channel, important
        and tags are validated but the message always carries their defaults.

        Raises:
            CommandValidationError: If `text` is missing or empty
        """
        try:
            command = SendMessageInput(**arguments)
        except ValidationError as e:
            raise CommandValidationError(_describe(e)) from e

        message = Message(
            id=str(self.counter.allocate()),
            text=command.text,
            created_at=now_ts(),
            author="user",
            channel="general",
            important=False,
            tags=[],
        )
        delivered = await self.message_added.publish(message)
        logger.info(f"sendMessage {message.id} delivered to {delivered} subscriber(s)")
        return message

    async def noop(self, **_: Any) -> bool:
        return True


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "input"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def command_fields(handlers: CommandHandlers) -> Dict[str, Any]:
    """Root query/mutation fields mapped to their handlers."""
    return {
        "_noop": handlers.noop,
        "sendMessage": handlers.send_message,
    }
