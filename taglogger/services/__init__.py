"""Configuration loading and output services."""

from .config_loader import load_config, parse_config
from .line_writer import LineWriter

__all__ = [
    'load_config',
    'parse_config',
    'LineWriter'
]
