"""Shared pytest fixtures and test doubles for taglogger tests."""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from taglogger.models.config_models import DeviceConfig, TagConfig
from taglogger.models.value import Value
from taglogger.orchestration.device_controller import DeviceController
from taglogger.protocols.base_session import SessionEngine, SubscriptionHandle


async def settle(rounds: int = 10) -> None:
    """Let pending callbacks and task continuations run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Injectable monotonic clock the test moves by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeHandle(SubscriptionHandle):
    def __init__(self, session, tag, observer):
        self.session = session
        self.tag = tag
        self.observer = observer
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeSession(SessionEngine):
    """Session engine whose async operations finish when the test says so.

    Set ``auto_login`` / ``auto_logout`` to complete immediately instead.
    """

    def __init__(self, url: str = "fake://device"):
        super().__init__(url)
        self.auto_login: Optional[bool] = None     # True succeed, False fail
        self.auto_logout = True
        self.healthy = True
        self.credentials: List[Tuple[str, str]] = []
        self.logins: List[asyncio.Future] = []
        self.logouts: List[asyncio.Future] = []
        self.requests: List[Tuple[str, asyncio.Future]] = []
        self.handles: List[FakeHandle] = []
        self.timeout_checks = 0

    async def login(self, user: str, password: str) -> None:
        self.credentials.append((user, password))
        future = asyncio.get_running_loop().create_future()
        self.logins.append(future)
        if self.auto_login is True:
            future.set_result(None)
        elif self.auto_login is False:
            future.set_exception(ConnectionRefusedError("bad credentials"))
        await future

    async def logout(self) -> None:
        future = asyncio.get_running_loop().create_future()
        self.logouts.append(future)
        if self.auto_logout:
            future.set_result(None)
        await future

    def subscribe(self, tag, observer, format_profile=None) -> SubscriptionHandle:
        handle = FakeHandle(self, tag, observer)
        self.handles.append(handle)
        return handle

    async def request(self, tag: str) -> Value:
        future = asyncio.get_running_loop().create_future()
        self.requests.append((tag, future))
        return await future

    def connection_ok(self) -> bool:
        return self.healthy

    def test_timeouts(self) -> None:
        self.timeout_checks += 1

    # helpers
    def active_handles(self, tag: Optional[str] = None) -> List[FakeHandle]:
        return [h for h in self.handles
                if not h.cancelled and (tag is None or h.tag == tag)]

    def push(self, tag: str, value: Value) -> None:
        for handle in self.active_handles(tag):
            handle.observer.on_value(value)


class FakeDevice:
    """Minimal stand-in for DeviceController used by sampler tests."""

    def __init__(self, session: FakeSession):
        self.session = session
        self.lines: List[str] = []
        self.open = True
        self.write_error: Optional[Exception] = None

    def write_line(self, line: str) -> bool:
        if self.write_error is not None:
            raise self.write_error
        if not self.open:
            return False
        self.lines.append(line)
        return True


def read_lines(path) -> List[str]:
    with open(path, "r", encoding="utf-8", newline="") as f:
        data = f.read()
    assert data == "" or data.endswith("\r\n")
    return [line for line in data.split("\r\n") if line]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_device(tmp_path, clock):
    """Build a DeviceController over a FakeSession writing into tmp_path."""

    def _make(tags=(), session=None, name="dev1", append=False, sink=None) -> DeviceController:
        cfg = DeviceConfig(
            url=f"fake://{name}",
            user="operator",
            password="secret",
            filename=str(tmp_path / f"{name}.log"),
            append=append,
            tags=tuple(TagConfig.from_row(t) for t in tags),
        )
        return DeviceController(cfg, session or FakeSession(cfg.url), sink=sink, clock=clock)

    return _make
