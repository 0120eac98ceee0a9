"""Application services package.

Contains the services shared by the HTTP handlers and the triggers.
"""

from .counter_manager import CounterManager
from .derived_field_rewriter import DerivedFieldRewriter, add_pizzazz
from .fan_out_aggregator import AggregatedChild, FanOutAggregator
from .notification_dispatcher import NotificationDispatcher

__all__ = [
    "AggregatedChild",
    "FanOutAggregator",
    "CounterManager",
    "DerivedFieldRewriter",
    "add_pizzazz",
    "NotificationDispatcher",
]
