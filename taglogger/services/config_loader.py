"""Reads the device configuration file once at startup.

Example:
    >>> from taglogger.services.config_loader import load_config
    >>> devices = load_config("config.json")
    >>> devices[0].tags[0].tag
    'ns=2;s=Temp'
"""

import json
import logging
from typing import List

from taglogger.core.exceptions import ConfigurationError
from taglogger.models.config_models import DeviceConfig
from taglogger.protocols.protocol_factory import ProtocolFactory
from taglogger.sampling.formatting import float_format

logger = logging.getLogger(__name__)


def load_config(path: str) -> List[DeviceConfig]:
    """Read a JSON config file and validate every device and tag entry.

    Raises:
        ConfigurationError: If the file is unreadable, not JSON, or any entry
            is malformed (bad interval expression, unknown format profile,
            unsupported URL scheme, ...).
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"config file {path} is not valid JSON: {e}") from e
    return parse_config(raw)


def parse_config(raw) -> List[DeviceConfig]:
    """Validate an already-decoded config structure."""
    if not isinstance(raw, dict):
        raise ConfigurationError("config root must be an object")
    entries = raw.get("devices")
    if not isinstance(entries, list):
        raise ConfigurationError("config must contain a 'devices' list")

    devices = []
    for i, entry in enumerate(entries):
        try:
            device = DeviceConfig.from_row(entry)
            if not ProtocolFactory.supports(device.url):
                raise ConfigurationError(f"unsupported url {device.url!r}")
            for tag in device.tags:
                float_format(tag.floatres)
        except ConfigurationError as e:
            raise ConfigurationError(f"devices[{i}]: {e}") from e
        devices.append(device)

    logger.info(f"Loaded {len(devices)} devices, "
                f"{sum(len(d.tags) for d in devices)} tags")
    return devices
