"""Tag Logger - supervises devices and logs their tags to flat files"""

__version__ = '1.0.0'
__description__ = 'Fault-tolerant multi-device tag logging with automatic reconnect'

# Core patterns - most fundamental
from .core import DeviceStateMachine, DeviceState, ValueObserver

# Models - domain objects
from .models import DeviceConfig, TagConfig, Value

# Protocols
from .protocols import ProtocolFactory, SessionEngine

# Sampling
from .sampling import SamplerFactory

# Services
from .services import load_config, LineWriter

# Orchestration
from .orchestration import DeviceController, Supervisor

__all__ = [
    # Core
    'DeviceStateMachine',
    'DeviceState',
    'ValueObserver',

    # Models
    'DeviceConfig',
    'TagConfig',
    'Value',

    # Protocols
    'ProtocolFactory',
    'SessionEngine',

    # Sampling
    'SamplerFactory',

    # Services
    'load_config',
    'LineWriter',

    # Orchestration
    'DeviceController',
    'Supervisor'
]
