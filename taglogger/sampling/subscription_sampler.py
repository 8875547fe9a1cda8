from typing import Optional

from taglogger.core.patterns.observer import ValueObserver
from taglogger.models.value import Value
from taglogger.protocols.base_session import SubscriptionHandle
from .base_sampler import TagSampler


class SubscriptionSampler(TagSampler, ValueObserver):
    """Event-driven sampler: the session engine pushes every change.

    Valid values are always logged. Null and error readings are logged only
    when their null/error flags differ from the last logged reading.
    """

    def __init__(self, device, cfg):
        super().__init__(device, cfg)
        self.handle: Optional[SubscriptionHandle] = None
        self.last_null = False
        self.last_error = False

    def start(self) -> None:
        if self.handle is None:
            self.handle = self.device.session.subscribe(self.cfg.tag, self, self.cfg.floatres)

    def stop(self) -> None:
        if self.handle is not None:
            self.handle.cancel()
        self.handle = None

    def on_tick(self, now: float) -> None:
        pass

    # ValueObserver
    def get_observer_id(self) -> str:
        return self.cfg.tag

    def on_value(self, value: Value) -> None:
        if self.is_duplicate(value):
            return
        if self._write(value):
            self.last_null = value.null
            self.last_error = value.error

    def is_duplicate(self, value: Value) -> bool:
        return ((value.null or value.error)
                and value.null == self.last_null
                and value.error == self.last_error)
