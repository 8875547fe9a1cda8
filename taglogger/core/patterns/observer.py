"""
Observer interface for value delivery.

Session engines push new readings for a subscribed tag to a ValueObserver.
Deliveries always happen on the event loop thread; engines whose network
layer runs elsewhere marshal them back before calling ``on_value``.
"""

import logging
from abc import ABC, abstractmethod

from taglogger.models.value import Value


class ValueObserver(ABC):
    """Abstract base class for anything that consumes subscribed values."""

    @abstractmethod
    def on_value(self, value: Value) -> None:
        """Handle a new value for the subscribed tag."""
        pass

    @abstractmethod
    def get_observer_id(self) -> str:
        """Get identifier used in diagnostics."""
        pass


def notify_safely(observer: ValueObserver, value: Value) -> None:
    """Deliver *value*, logging instead of raising if the observer fails."""
    try:
        observer.on_value(value)
    except Exception as e:
        logging.getLogger(__name__).error(
            f"Error notifying observer {observer.get_observer_id()}: {e}", exc_info=True
        )
