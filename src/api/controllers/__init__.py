"""API controllers package."""

from . import counters_controller, weather_controller

__all__ = [
    "counters_controller",
    "weather_controller",
]
