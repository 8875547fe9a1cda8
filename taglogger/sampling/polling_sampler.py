import asyncio
from typing import Optional

from taglogger.models.value import Value
from .base_sampler import TagSampler


class PollingSampler(TagSampler):
    """Fixed-interval sampler issuing one-shot requests.

    The schedule keeps its phase: after a request is issued the deadline
    moves forward by whole intervals until it lies in the future, so a slow
    completion costs at most one catch-up request. At most one request is
    in flight at a time.
    """

    def __init__(self, device, cfg):
        super().__init__(device, cfg)
        self.interval = cfg.interval_ms / 1000.0
        self.next_poll: Optional[float] = None
        self.in_flight: Optional[asyncio.Task] = None
        self.last_text: Optional[str] = None
        self.last_error_text: Optional[str] = None

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def on_tick(self, now: float) -> None:
        if self.in_flight is not None:
            return
        if self.next_poll is not None and now < self.next_poll:
            return
        self.next_poll = (now if self.next_poll is None else self.next_poll) + self.interval
        while self.next_poll <= now:
            self.next_poll += self.interval
        self.in_flight = asyncio.get_running_loop().create_task(self._poll())

    async def _poll(self) -> None:
        try:
            value = await self.device.session.request(self.cfg.tag)
            self.on_sample(value)
        except Exception as e:
            self.logger.warning(f"Poll of '{self.cfg.tag}' failed: {e}")
        finally:
            self.in_flight = None

    def on_sample(self, value: Value) -> None:
        if value.text == self.last_text and value.error_text == self.last_error_text:
            return
        if self._write(value):
            self.last_text = value.text
            self.last_error_text = value.error_text
