"""
Centralised exception definitions for the tag logger.
All custom exceptions should inherit from TagLoggerError.
"""

class TagLoggerError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(TagLoggerError):
    """Raised when the device configuration file or a setting is invalid."""

class ProtocolError(TagLoggerError):
    """Generic failure inside a session engine (OPC-UA, MQTT, …)."""

class LoginError(ProtocolError):
    """Raised when a session engine rejects or times out a login."""

class InvalidTransitionError(TagLoggerError):
    """Raised when a device is asked to take an edge outside its state graph."""
