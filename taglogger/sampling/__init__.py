"""Tag sampling strategies and factory."""

from .base_sampler import TagSampler
from .subscription_sampler import SubscriptionSampler
from .polling_sampler import PollingSampler
from .sampler_factory import SamplerFactory
from .formatting import FloatFormat, float_format, format_line

__all__ = [
    'TagSampler',
    'SubscriptionSampler',
    'PollingSampler',
    'SamplerFactory',
    'FloatFormat',
    'float_format',
    'format_line'
]
