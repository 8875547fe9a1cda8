"""Session engine implementations."""

from .base_session import (
    SessionEngine,
    SubscriptionHandle,
    ProtocolType
)

from .mqtt_session import MQTTSession
from .opcua_session import OPCUASession
from .protocol_factory import ProtocolFactory

__all__ = [
    # Base classes
    'SessionEngine',
    'SubscriptionHandle',
    'ProtocolType',

    # Implementations
    'MQTTSession',
    'OPCUASession',

    # Factory
    'ProtocolFactory'
]
