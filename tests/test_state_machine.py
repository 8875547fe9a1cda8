"""Tests for the pure device transition planner."""

import pytest

from taglogger.core.exceptions import InvalidTransitionError
from taglogger.core.patterns.state_machine import (
    DeviceState as S,
    DeviceStateMachine,
    Effect as E,
)


def _walk(machine, target, close_requested=False):
    steps = machine.plan(target, close_requested)
    for step in steps:
        machine.commit(step)
    return [(step.state, step.effects) for step in steps]


class TestPlan:

    def test_connecting_arms_deadline_and_logs_in(self):
        machine = DeviceStateMachine()
        assert _walk(machine, S.CONNECTING) == [(S.CONNECTING, (E.ARM_DEADLINE, E.LOGIN))]

    def test_start_subscr_runs_through_to_running(self):
        machine = DeviceStateMachine(S.CONNECTING)
        assert _walk(machine, S.START_SUBSCR) == [
            (S.START_SUBSCR, (E.START_SAMPLERS,)),
            (S.RUNNING, ()),
        ]
        assert machine.state is S.RUNNING

    def test_start_subscr_honours_close_request(self):
        machine = DeviceStateMachine(S.CONNECTING)
        assert _walk(machine, S.START_SUBSCR, close_requested=True) == [
            (S.START_SUBSCR, ()),
            (S.CLOSE, (E.STOP_SAMPLERS, E.LOGOUT_THEN_CLOSE)),
        ]

    def test_close_waits_for_logout(self):
        machine = DeviceStateMachine(S.RUNNING)
        steps = _walk(machine, S.CLOSE, close_requested=True)
        assert steps == [(S.CLOSE, (E.STOP_SAMPLERS, E.LOGOUT_THEN_CLOSE))]
        assert machine.state is S.CLOSE

    def test_fail_entry(self):
        machine = DeviceStateMachine(S.RUNNING)
        assert _walk(machine, S.FAIL) == [
            (S.FAIL, (E.ARM_DEADLINE, E.STOP_SAMPLERS, E.LOGOUT)),
        ]

    def test_fail_with_close_goes_straight_to_closed(self):
        machine = DeviceStateMachine(S.CONNECTING)
        assert _walk(machine, S.FAIL, close_requested=True) == [
            (S.FAIL, (E.ARM_DEADLINE, E.STOP_SAMPLERS, E.LOGOUT)),
            (S.CLOSED, (E.RELEASE_SINK,)),
        ]

    def test_retry_edge(self):
        machine = DeviceStateMachine(S.FAIL)
        assert _walk(machine, S.CONNECTING)[0][0] is S.CONNECTING

    def test_idle_to_closed(self):
        machine = DeviceStateMachine()
        assert _walk(machine, S.CLOSED) == [(S.CLOSED, (E.RELEASE_SINK,))]

    def test_same_state_is_noop(self):
        machine = DeviceStateMachine(S.RUNNING)
        assert machine.plan(S.RUNNING, close_requested=False) == []

    def test_plan_does_not_mutate(self):
        machine = DeviceStateMachine()
        machine.plan(S.CONNECTING, close_requested=False)
        assert machine.state is S.IDLE


class TestInvalidEdges:

    @pytest.mark.parametrize("start, target", [
        (S.IDLE, S.RUNNING),
        (S.CONNECTING, S.RUNNING),
        (S.CONNECTING, S.CLOSED),
        (S.RUNNING, S.CONNECTING),
        (S.RUNNING, S.CLOSED),
        (S.CLOSE, S.FAIL),
        (S.CLOSED, S.CONNECTING),
    ])
    def test_rejected(self, start, target):
        machine = DeviceStateMachine(start)
        assert not machine.can(target)
        with pytest.raises(InvalidTransitionError):
            machine.plan(target, close_requested=False)
