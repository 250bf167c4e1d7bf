from .schemas import EventPayload, Message, SystemStatus, Settings, SendMessageInput
from .protocol import ClientMessage, SubscribePayload
