from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Set, Tuple

from taglogger.core.exceptions import InvalidTransitionError


class DeviceState(Enum):
    IDLE          = auto()
    CONNECTING    = auto()
    START_SUBSCR  = auto()
    RUNNING       = auto()
    FAIL          = auto()
    CLOSE         = auto()
    CLOSED        = auto()


class Effect(Enum):
    ARM_DEADLINE      = auto()      # retry/login deadline = now + retry period
    LOGIN             = auto()
    START_SAMPLERS    = auto()
    STOP_SAMPLERS     = auto()
    LOGOUT            = auto()      # fire-and-forget
    LOGOUT_THEN_CLOSE = auto()      # enter CLOSED once logout completes
    RELEASE_SINK      = auto()      # close sink, drop it, signal closed


@dataclass(frozen=True)
class Step:
    state: DeviceState
    effects: Tuple[Effect, ...]


class DeviceStateMachine:
    """Pure transition planner for one device.

    ``plan`` never performs I/O: it validates the edge, works out the entry
    effects of the target state and follows any immediate follow-on
    transition (``START_SUBSCR -> RUNNING``, ``FAIL -> CLOSED`` when a close
    is pending, ...).  The caller commits the returned steps in order.
    """

    def __init__(self, initial: DeviceState = DeviceState.IDLE):
        self._state = initial
        self._trans: Dict[DeviceState, Set[DeviceState]] = {
            DeviceState.IDLE:         {DeviceState.CONNECTING, DeviceState.CLOSED},
            DeviceState.CONNECTING:   {DeviceState.START_SUBSCR, DeviceState.FAIL},
            DeviceState.START_SUBSCR: {DeviceState.RUNNING, DeviceState.CLOSE},
            DeviceState.RUNNING:      {DeviceState.FAIL, DeviceState.CLOSE},
            DeviceState.FAIL:         {DeviceState.CONNECTING, DeviceState.CLOSED},
            DeviceState.CLOSE:        {DeviceState.CLOSED},
            DeviceState.CLOSED:       set(),
        }

    @property
    def state(self) -> DeviceState: return self._state

    def can(self, nxt: DeviceState) -> bool: return nxt in self._trans[self._state]

    def plan(self, target: DeviceState, close_requested: bool) -> List[Step]:
        """Return the steps needed to enter *target*; empty if already there."""
        steps: List[Step] = []
        current, nxt = self._state, target
        while nxt is not None and nxt != current:
            if nxt not in self._trans[current]:
                raise InvalidTransitionError(f"{current.name} -> {nxt.name}")
            effects, follow = self._entry(nxt, close_requested)
            steps.append(Step(nxt, effects))
            current, nxt = nxt, follow
        return steps

    def commit(self, step: Step) -> None:
        self._state = step.state

    @staticmethod
    def _entry(state: DeviceState, close_requested: bool):
        if state is DeviceState.CONNECTING:
            return (Effect.ARM_DEADLINE, Effect.LOGIN), None
        if state is DeviceState.START_SUBSCR:
            if close_requested:
                return (), DeviceState.CLOSE
            return (Effect.START_SAMPLERS,), DeviceState.RUNNING
        if state is DeviceState.RUNNING:
            return (), DeviceState.CLOSE if close_requested else None
        if state is DeviceState.FAIL:
            effects = (Effect.ARM_DEADLINE, Effect.STOP_SAMPLERS, Effect.LOGOUT)
            return effects, DeviceState.CLOSED if close_requested else None
        if state is DeviceState.CLOSE:
            return (Effect.STOP_SAMPLERS, Effect.LOGOUT_THEN_CLOSE), None
        if state is DeviceState.CLOSED:
            return (Effect.RELEASE_SINK,), None
        return (), None
