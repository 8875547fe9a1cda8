"""One device: session lifecycle, retry timer, samplers and output file."""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Callable, List, Optional

from taglogger.core.patterns.state_machine import DeviceState, DeviceStateMachine, Effect
from taglogger.models.config_models import DeviceConfig
from taglogger.protocols.base_session import SessionEngine
from taglogger.protocols.protocol_factory import ProtocolFactory
from taglogger.sampling.base_sampler import TagSampler
from taglogger.sampling.sampler_factory import SamplerFactory
from taglogger.services.line_writer import LineWriter

RETRY_SECONDS = 30.0


class DeviceController:
    """Drives one device through ``DeviceState``.

    Transitions are planned by ``DeviceStateMachine`` and their effects are
    executed here. Login and logout run as background tasks whose
    completions feed the next transition back in; everything happens on the
    event loop thread, so at most one transition is active at a time.
    """

    def __init__(self, cfg: DeviceConfig, session: Optional[SessionEngine] = None, *,
                 sink: Optional[LineWriter] = None,
                 clock: Callable[[], float] = time.monotonic,
                 retry_seconds: float = RETRY_SECONDS):
        self.cfg = cfg
        self.name = cfg.url
        self.session = session if session is not None else ProtocolFactory.create(cfg.url)
        self.sink: Optional[LineWriter] = sink if sink is not None else LineWriter(cfg.filename, cfg.append)
        self.samplers: List[TagSampler] = SamplerFactory.create_samplers(self, list(cfg.tags))
        self.machine = DeviceStateMachine(DeviceState.IDLE)
        self.close_requested = False
        self.deadline = 0.0
        self.retry_seconds = retry_seconds
        self.history: List[DeviceState] = [DeviceState.IDLE]
        self.logger = logging.getLogger(self.__class__.__name__)
        self._clock = clock
        self._closed = asyncio.Event()
        self._tasks: set = set()

    @property
    def state(self) -> DeviceState:
        return self.machine.state

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        """Leave IDLE and begin the first login."""
        if self.state is DeviceState.IDLE and not self.close_requested:
            self.enter_state(DeviceState.CONNECTING)

    def do_timer(self, now: Optional[float] = None) -> None:
        """Per-tick check: retry after the fail timeout, health-check while running."""
        now = self._clock() if now is None else now
        if self.state is DeviceState.FAIL:
            if now >= self.deadline:
                self.enter_state(DeviceState.CONNECTING)
        elif self.state is DeviceState.RUNNING:
            if not self.session.connection_ok():
                self.logger.warning(f"Connection not ok: {self.name}")
                self.enter_state(DeviceState.FAIL)
                return
            self.session.test_timeouts()
            for sampler in self.samplers:
                sampler.on_tick(now)

    def request_close(self) -> None:
        """Ask the device to shut down. Idempotent."""
        if self.close_requested:
            return
        self.close_requested = True
        if self.state in (DeviceState.FAIL, DeviceState.IDLE):
            self.enter_state(DeviceState.CLOSED)
        elif self.state is DeviceState.RUNNING:
            self.enter_state(DeviceState.CLOSE)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def close(self) -> None:
        self.request_close()
        await self.wait_closed()

    def write_line(self, line: str) -> bool:
        """Append one data line; False (and nothing written) once the sink is gone."""
        if self.sink is None or not self.sink.write_line(line):
            return False
        self.logger.info(f"{self.name}\t{line}")
        return True

    # ------------------------------------------------------------------ #
    #  Transitions
    # ------------------------------------------------------------------ #
    def enter_state(self, target: DeviceState) -> None:
        if target is self.state:
            return
        for step in self.machine.plan(target, self.close_requested):
            self.machine.commit(step)
            self.history.append(step.state)
            self.logger.info(f"{self.name} enterState: {step.state.name}")
            for effect in step.effects:
                self._perform(effect)

    def _perform(self, effect: Effect) -> None:
        if effect is Effect.ARM_DEADLINE:
            self.deadline = self._clock() + self.retry_seconds
        elif effect is Effect.LOGIN:
            self._spawn(self._login())
        elif effect is Effect.START_SAMPLERS:
            self._each_sampler("start")
        elif effect is Effect.STOP_SAMPLERS:
            self._each_sampler("stop")
        elif effect is Effect.LOGOUT:
            self._spawn(self._logout())
        elif effect is Effect.LOGOUT_THEN_CLOSE:
            self._spawn(self._logout_then_close())
        elif effect is Effect.RELEASE_SINK:
            sink, self.sink = self.sink, None
            if sink is not None:
                sink.close()
            self._closed.set()

    def _each_sampler(self, action: str) -> None:
        for sampler in self.samplers:
            try:
                getattr(sampler, action)()
            except Exception as e:
                self.logger.error(f"{self.name}: {action} of '{sampler.tag}' failed: {e}")

    # ------------------------------------------------------------------ #
    #  Async continuations
    # ------------------------------------------------------------------ #
    async def _login(self) -> None:
        timeout = max(0.0, self.deadline - self._clock())
        try:
            await asyncio.wait_for(self.session.login(self.cfg.user, self.cfg.password), timeout)
        except Exception as e:
            if self.state is DeviceState.CONNECTING:
                self.logger.warning(f"Failed to log in to {self.name}: {str(e) or type(e).__name__}")
                self.enter_state(DeviceState.FAIL)
        else:
            if self.state is DeviceState.CONNECTING:
                self.enter_state(DeviceState.START_SUBSCR)

    async def _logout(self) -> None:
        try:
            await self.session.logout()
        except Exception as e:
            self.logger.error(f"Logout from {self.name} failed: {e}")

    async def _logout_then_close(self) -> None:
        await self._logout()
        self.enter_state(DeviceState.CLOSED)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
