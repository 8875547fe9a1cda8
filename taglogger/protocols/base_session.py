"""
Session Engine Framework
Base abstract class and interfaces for the authenticated, stateful
sessions a device controller drives.
"""

from abc import ABC, abstractmethod
from typing import Optional
import asyncio
import logging
from enum import Enum

from taglogger.core.patterns.observer import ValueObserver
from taglogger.models.value import Value


class ProtocolType(Enum):
    """Enumeration of supported protocol types."""
    MQTT = "mqtt"
    OPCUA = "opcua"


class SubscriptionHandle(ABC):
    """Standing subscription returned by ``SessionEngine.subscribe``."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        pass


class SessionEngine(ABC):
    """
    Abstract base class for session engines.

    One instance belongs to exactly one device controller. All methods are
    called from the event loop thread; ``login``, ``logout`` and ``request``
    complete asynchronously, the rest return immediately.
    """

    protocol_type: ProtocolType

    def __init__(self, url: str, request_timeout: float = 10.0):
        self.url = url
        self.request_timeout = request_timeout
        self.logger = logging.getLogger(f"{self.__class__.__name__}[{url}]")
        self._tasks: set = set()

    # Abstract methods that subclasses must implement (Strategy pattern)
    @abstractmethod
    async def login(self, user: str, password: str) -> None:
        """Open the session. Raises on rejection or transport failure."""
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Close the session. Always completes; safe to call repeatedly."""
        pass

    @abstractmethod
    def subscribe(self, tag: str, observer: ValueObserver,
                  format_profile: Optional[str] = None) -> SubscriptionHandle:
        """Register a standing subscription delivering values to *observer*."""
        pass

    @abstractmethod
    async def request(self, tag: str) -> Value:
        """One-shot read of *tag*. Raises on failure."""
        pass

    @abstractmethod
    def connection_ok(self) -> bool:
        """Non-blocking health probe."""
        pass

    def test_timeouts(self) -> None:
        """Periodic housekeeping hook, called once per healthy tick."""
        pass

    # Common implementations that can be overridden
    def _spawn(self, coro) -> asyncio.Task:
        """Run *coro* in the background, keeping a reference until it finishes."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"Background task failed: {task.exception()}")
