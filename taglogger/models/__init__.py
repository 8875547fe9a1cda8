"""Data models and domain objects."""

from .value import Value, NUMERIC_TYPES

from .config_models import (
    DeviceConfig,
    TagConfig,
    parse_interval
)

__all__ = [
    # Readings
    'Value',
    'NUMERIC_TYPES',

    # Configuration
    'DeviceConfig',
    'TagConfig',
    'parse_interval'
]
