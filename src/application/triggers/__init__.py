"""Document triggers: registry, host and the handlers bound to the core services."""

from .handlers import TriggerServices, register_triggers
from .host import TriggerHost
from .registry import Trigger, TriggerHandler, TriggerRegistry

__all__ = [
    "Trigger",
    "TriggerHandler",
    "TriggerRegistry",
    "TriggerHost",
    "TriggerServices",
    "register_triggers",
]
