from typing import Dict, List, Type

from taglogger.models.config_models import TagConfig
from .base_sampler import TagSampler
from .polling_sampler import PollingSampler
from .subscription_sampler import SubscriptionSampler


class SamplerFactory:
    """Factory for creating tag sampler instances"""

    _strategy_registry: Dict[str, Type[TagSampler]] = {
        "polling": PollingSampler,
        "subscription": SubscriptionSampler,
    }

    @classmethod
    def create(cls, device, cfg: TagConfig) -> TagSampler:
        """Positive poll interval selects polling, anything else subscription."""
        strategy_type = "polling" if cfg.polled else "subscription"
        return cls._strategy_registry[strategy_type](device, cfg)

    @classmethod
    def create_samplers(cls, device, tags: List[TagConfig]) -> List[TagSampler]:
        """Create samplers in configuration order"""
        return [cls.create(device, cfg) for cfg in tags]
