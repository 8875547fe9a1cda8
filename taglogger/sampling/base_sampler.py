# taglogger/sampling/base_sampler.py
from abc import ABC, abstractmethod
import logging

from taglogger.models.config_models import TagConfig
from taglogger.models.value import Value
from taglogger.sampling.formatting import float_format, format_line


class TagSampler(ABC):
    """Abstract base class for the sampling strategy of one tag.

    *device* is the owning controller; samplers only use its ``session``
    attribute and its ``write_line`` method.
    """

    def __init__(self, device, cfg: TagConfig):
        self.device = device
        self.cfg = cfg
        self.fmt = float_format(cfg.floatres)
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def tag(self) -> str:
        return self.cfg.tag

    @abstractmethod
    def start(self) -> None:
        """Begin sampling (device became able to sample)."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop sampling. Safe when not started."""
        pass

    @abstractmethod
    def on_tick(self, now: float) -> None:
        """Per-tick hook driven by the device while it is running."""
        pass

    def _write(self, value: Value) -> bool:
        """Hand one formatted line to the device; False if the sink is gone."""
        return self.device.write_line(format_line(self.cfg.tag, value, self.fmt))
