from .errors import (
    RelayError,
    SubscriptionClosed,
    SessionClosedError,
    DuplicateOperationError,
    CommandValidationError,
    UnknownOperationError,
)
from .models import SubscriberQueue, SubscriptionHandle, Topic, TopicRegistry
from .counter import IdCounter
from .channels import EventChannel, EventChannels, Subscription
