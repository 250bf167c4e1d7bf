"""
Pytest configuration for relay tests.
"""
import os
import random

import pytest

# Keep demo generators out of transport tests
os.environ["RELAY_SAMPLE_GENERATORS_ENABLED"] = "false"

from pubsub_relay.config import RelaySettings
from pubsub_relay.main import create_app
from pubsub_relay.models import EventChannels, IdCounter, TopicRegistry
from pubsub_relay.services import CommandHandlers


@pytest.fixture
def registry():
    return TopicRegistry()


@pytest.fixture
def channels(registry):
    return EventChannels(registry)


@pytest.fixture
def counter():
    return IdCounter()


@pytest.fixture
def commands(channels, counter):
    return CommandHandlers(channels.message_added, counter)


@pytest.fixture
def relay_settings():
    return RelaySettings(
        sample_generators_enabled=False,
        message_interval=0.02,
        status_interval=0.03,
        settings_interval=0.04,
    )


@pytest.fixture
def app(relay_settings):
    return create_app(relay_settings, rng=random.Random(7))
