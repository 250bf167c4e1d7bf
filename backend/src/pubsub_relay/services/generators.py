"""
Periodic sample event producers.

Each generator owns one background task that sleeps for its interval and
then publishes a single synthesized payload. A failing tick is logged and
skipped; the generator keeps its cadence and the other generators are not
affected.
"""
import asyncio
import logging
import random
from typing import Callable, List, Optional

from ..config import RelaySettings
from ..models import EventChannel, EventChannels, IdCounter
from ..schemas import EventPayload, Message, Settings, SystemStatus
from ..utilities import now_ts

logger = logging.getLogger(__name__)

PayloadFactory = Callable[[], EventPayload]


class SampleGenerator:
    def __init__(self, name: str, interval: float, channel: EventChannel, factory: PayloadFactory):
        self.name = name
        self.interval = interval
        self.channel = channel
        self.factory = factory
        self.ticks = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"generator:{self.name}")
        logger.info(f"Generator {self.name} started (every {self.interval}s)")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Generator {self.name} stopped after {self.ticks} tick(s)")

    async def tick(self) -> None:
        payload = self.factory()
        await self.channel.publish(payload)
        self.ticks += 1

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                self.failures += 1
                logger.exception(f"Generator {self.name} tick failed; retrying next interval")


class GeneratorGroup:
    def __init__(self, generators: List[SampleGenerator]):
        self.generators = generators

    def start_all(self) -> None:
        for generator in self.generators:
            generator.start()

    async def stop_all(self) -> None:
        for generator in self.generators:
            await generator.stop()

    def get(self, name: str) -> SampleGenerator:
        for generator in self.generators:
            if generator.name == name:
                return generator
        raise KeyError(name)


# -------------- Payload factories --------------

def message_factory(counter: IdCounter) -> PayloadFactory:
    def build() -> Message:
        msg_id = counter.allocate()
        return Message(
            id=str(msg_id),
            text=f"Server message #{counter.current}",
            created_at=now_ts(),
            author="server",
            channel="news",
            important=False,
            tags=["auto"],
        )
    return build


def status_factory(rng: random.Random) -> PayloadFactory:
    def build() -> SystemStatus:
        return SystemStatus(
            online=True,
            load=round(rng.random() * 1.5 + 0.1, 2),
            updated_at=now_ts(),
        )
    return build


def settings_factory(rng: random.Random) -> PayloadFactory:
    def build() -> Settings:
        return Settings(
            theme="dark" if rng.random() > 0.5 else "light",
            lang="ja" if rng.random() > 0.5 else "en",
            updated_at=now_ts(),
        )
    return build


def build_sample_generators(
    channels: EventChannels,
    counter: IdCounter,
    settings: RelaySettings,
    rng: Optional[random.Random] = None,
) -> GeneratorGroup:
    rng = rng or random.Random()
    return GeneratorGroup([
        SampleGenerator("message", settings.message_interval, channels.message_added, message_factory(counter)),
        SampleGenerator("status", settings.status_interval, channels.system_status_changed, status_factory(rng)),
        SampleGenerator("settings", settings.settings_interval, channels.settings_updated, settings_factory(rng)),
    ])
