"""Test data factories.

Provides reusable factory classes for creating Records and ChangeEvents with
sensible defaults and easy customization.
"""

from typing import Any

from domain.models import ChangeEvent, Record

# ============================================================================
# RECORD FACTORY
# ============================================================================


class RecordFactory:
    """Factory for creating Records with sensible defaults."""

    @staticmethod
    def create(path: str = "rooms/lobby/messages/m1", **fields: Any) -> Record:
        return Record.of(path, fields)

    @staticmethod
    def message(room_id: str = "lobby", message_id: str = "m1", text: str = "I like pizza", author: str = "ana", **fields: Any) -> Record:
        return Record.of(f"rooms/{room_id}/messages/{message_id}", {"text": text, "author": author, **fields})

    @staticmethod
    def weather(city_id: str = "boston-ma-us", temp: float = 12.5, conditions: str = "cloudy") -> Record:
        return Record.of(f"cities-weather/{city_id}", {"temp": temp, "conditions": conditions})

    @staticmethod
    def area_city(area_id: str = "greater-boston", city_id: str = "boston", name: str = "Boston") -> Record:
        return Record.of(f"area/{area_id}/cities/{city_id}", {"name": name})


# ============================================================================
# CHANGE EVENT FACTORY
# ============================================================================


class ChangeEventFactory:
    """Factory for creating ChangeEvents from plain field mappings."""

    @staticmethod
    def created(path: str, **fields: Any) -> ChangeEvent:
        return ChangeEvent.created(Record.of(path, fields))

    @staticmethod
    def updated(path: str, before: dict[str, Any], after: dict[str, Any]) -> ChangeEvent:
        return ChangeEvent.updated(Record.of(path, before), Record.of(path, after))

    @staticmethod
    def deleted(path: str, **fields: Any) -> ChangeEvent:
        return ChangeEvent.deleted(Record.of(path, fields))
