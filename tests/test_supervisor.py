"""Tests for taglogger.orchestration.supervisor."""

import asyncio

import pytest

from conftest import FakeSession, settle
from taglogger.core.patterns.state_machine import DeviceState as S
from taglogger.orchestration.supervisor import Supervisor, SupervisorState

TEMP = {"tag": "ns=2;s=Temp"}


class RecordingDevice:
    """Stand-in device that records what the supervisor asks of it."""

    def __init__(self, name, calls, fail_tick=False):
        self.name = name
        self.calls = calls
        self.fail_tick = fail_tick
        self.closed = asyncio.Event()

    def start(self):
        self.calls.append((self.name, "start"))

    def do_timer(self, now=None):
        self.calls.append((self.name, "tick", now))
        if self.fail_tick:
            raise RuntimeError("boom")

    def request_close(self):
        self.calls.append((self.name, "close"))
        self.closed.set()

    async def wait_closed(self):
        await self.closed.wait()


class TestTick:

    def test_devices_ticked_in_configuration_order(self, clock):
        calls = []
        supervisor = Supervisor([RecordingDevice(n, calls) for n in "abc"], clock=clock)
        supervisor.tick()
        assert calls == [("a", "tick", 1000.0), ("b", "tick", 1000.0), ("c", "tick", 1000.0)]
        assert supervisor.ticks == 1

    def test_one_failing_device_does_not_stop_the_others(self, caplog):
        calls = []
        devices = [RecordingDevice("a", calls, fail_tick=True), RecordingDevice("b", calls)]
        supervisor = Supervisor(devices)
        supervisor.tick(5.0)
        assert ("b", "tick", 5.0) in calls
        assert "tick failed for a" in caplog.text


class TestShutdown:

    @pytest.mark.asyncio
    async def test_waits_for_slowest_device(self, make_device):
        devices = []
        for name in ("fast", "slow"):
            device = make_device(tags=[TEMP], name=name, session=FakeSession(f"fake://{name}"))
            device.session.auto_login = True
            device.session.auto_logout = False
            device.start()
            devices.append(device)
        await settle()
        assert all(d.state is S.RUNNING for d in devices)

        supervisor = Supervisor(devices)
        join = asyncio.ensure_future(supervisor.shutdown())
        await settle()
        assert supervisor.state is SupervisorState.SHUTTING_DOWN
        assert all(d.state is S.CLOSE for d in devices)

        devices[0].session.logouts[0].set_result(None)
        await settle()
        assert devices[0].is_closed
        assert not join.done()

        devices[1].session.logouts[0].set_result(None)
        await settle()
        assert join.done()
        assert supervisor.state is SupervisorState.SHUTDOWN

    @pytest.mark.asyncio
    async def test_shutdown_with_failed_devices(self, make_device):
        device = make_device(tags=[TEMP])
        device.session.auto_login = False
        device.start()
        await settle()
        supervisor = Supervisor([device])
        await asyncio.wait_for(supervisor.shutdown(), 1.0)
        assert device.is_closed

    @pytest.mark.asyncio
    async def test_second_shutdown_is_harmless(self):
        calls = []
        supervisor = Supervisor([RecordingDevice("a", calls)])
        await supervisor.shutdown()
        await supervisor.shutdown()
        assert calls.count(("a", "close")) == 1
        assert supervisor.state is SupervisorState.SHUTDOWN


class TestRun:

    @pytest.mark.asyncio
    async def test_run_until_shutdown_requested(self, make_device):
        device = make_device(tags=[TEMP])
        device.session.auto_login = True
        supervisor = Supervisor([device], tick_seconds=0.01)

        runner = asyncio.ensure_future(supervisor.run())
        await asyncio.sleep(0.05)
        assert supervisor.state is SupervisorState.RUNNING
        assert device.state is S.RUNNING
        assert supervisor.ticks >= 2

        supervisor.request_shutdown()
        await asyncio.wait_for(runner, 1.0)
        assert device.is_closed
        assert supervisor.state is SupervisorState.SHUTDOWN

    @pytest.mark.asyncio
    async def test_ticks_stop_after_shutdown(self):
        calls = []
        supervisor = Supervisor([RecordingDevice("a", calls)], tick_seconds=0.01)
        runner = asyncio.ensure_future(supervisor.run())
        await asyncio.sleep(0.03)
        supervisor.request_shutdown()
        await asyncio.wait_for(runner, 1.0)
        ticks = supervisor.ticks
        await asyncio.sleep(0.03)
        assert supervisor.ticks == ticks
        assert calls[0] == ("a", "start")
        assert calls[-1] == ("a", "close")

    @pytest.mark.asyncio
    async def test_shutdown_requested_before_run(self):
        calls = []
        supervisor = Supervisor([RecordingDevice("a", calls)])
        supervisor.request_shutdown()
        await asyncio.wait_for(supervisor.run(), 1.0)
        assert supervisor.state is SupervisorState.SHUTDOWN
        assert ("a", "close") in calls

    @pytest.mark.asyncio
    async def test_run_after_shutdown_does_not_restart(self):
        calls = []
        supervisor = Supervisor([RecordingDevice("a", calls)])
        await supervisor.shutdown()
        await asyncio.wait_for(supervisor.run(), 1.0)
        assert ("a", "start") not in calls
        assert supervisor.ticks == 0
        assert supervisor.state is SupervisorState.SHUTDOWN
