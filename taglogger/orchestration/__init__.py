# taglogger/orchestration/__init__.py
"""Device lifecycle and supervision layer."""

from .device_controller import DeviceController, RETRY_SECONDS
from .supervisor import Supervisor, SupervisorState

__all__ = [
    'DeviceController',
    'RETRY_SECONDS',
    'Supervisor',
    'SupervisorState'
]
