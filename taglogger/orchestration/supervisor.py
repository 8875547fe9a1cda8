from __future__ import annotations
import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Iterable, List, Optional

from taglogger.models.config_models import DeviceConfig
from taglogger.protocols.protocol_factory import ProtocolFactory
from .device_controller import DeviceController, RETRY_SECONDS


class SupervisorState(Enum):
    """Supervisor phases, in the only order they can be reached."""
    INITIALIZING = 0
    RUNNING = 1
    SHUTTING_DOWN = 2
    SHUTDOWN = 3


class Supervisor:
    """Owns every device, drives the fixed-period tick and the shutdown join."""

    def __init__(self, devices: Iterable[DeviceController], *,
                 tick_seconds: float = 1.0,
                 clock: Callable[[], float] = time.monotonic):
        self.devices: List[DeviceController] = list(devices)
        self.tick_seconds = tick_seconds
        self.state = SupervisorState.INITIALIZING
        self.ticks = 0
        self.logger = logging.getLogger(self.__class__.__name__)
        self._clock = clock
        self._stop = asyncio.Event()

    @classmethod
    def from_config(cls, configs: Iterable[DeviceConfig], *,
                    tick_seconds: float = 1.0,
                    retry_seconds: float = RETRY_SECONDS,
                    request_timeout: float = 10.0,
                    clock: Callable[[], float] = time.monotonic) -> "Supervisor":
        devices = [
            DeviceController(cfg, ProtocolFactory.create(cfg.url, request_timeout=request_timeout),
                             clock=clock, retry_seconds=retry_seconds)
            for cfg in configs
        ]
        return cls(devices, tick_seconds=tick_seconds, clock=clock)

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #
    async def run(self) -> None:
        """Start every device and tick until shutdown is requested, then join."""
        if self._advance(SupervisorState.RUNNING):
            for device in self.devices:
                device.start()
            self.logger.info(f"supervisor running ({len(self.devices)} devices)")

            loop = asyncio.get_running_loop()
            next_tick = loop.time()
            while not self._stop.is_set():
                self.tick()
                next_tick += self.tick_seconds
                try:
                    await asyncio.wait_for(self._stop.wait(), max(0.0, next_tick - loop.time()))
                except asyncio.TimeoutError:
                    pass
        await self.shutdown()

    def tick(self, now: Optional[float] = None) -> None:
        """Advance every device once, in configuration order."""
        now = self._clock() if now is None else now
        self.ticks += 1
        for device in self.devices:
            try:
                device.do_timer(now)
            except Exception as e:
                self.logger.error(f"tick failed for {device.name}: {e}", exc_info=True)

    def request_shutdown(self) -> None:
        """Stop ticking; ``run`` then performs the shutdown join. Safe from signal handlers."""
        if not self._stop.is_set():
            self.logger.info("shutdown requested")
        self._stop.set()

    async def shutdown(self) -> None:
        """Close every device and wait until all of them report closed."""
        self._stop.set()
        if self._advance(SupervisorState.SHUTTING_DOWN):
            for device in self.devices:
                try:
                    device.request_close()
                except Exception as e:
                    self.logger.error(f"close request failed for {device.name}: {e}", exc_info=True)
        await asyncio.gather(*(device.wait_closed() for device in self.devices))
        if self.state is SupervisorState.SHUTTING_DOWN:
            self._advance(SupervisorState.SHUTDOWN)
            self.logger.info("all devices closed")

    def _advance(self, target: SupervisorState) -> bool:
        # phases only move forward; a late run() after shutdown is refused
        if target.value <= self.state.value:
            return False
        self.logger.info(f"supervisor {self.state.name} -> {target.name}")
        self.state = target
        return True
