from .commands import CommandHandlers, command_fields
from .generators import (
    SampleGenerator,
    GeneratorGroup,
    build_sample_generators,
    message_factory,
    status_factory,
    settings_factory,
)
from .session import ConnectionSession, SessionState
