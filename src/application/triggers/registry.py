"""Trigger registry: maps path patterns and change kinds to handlers."""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from domain.models import ChangeEvent, ChangeKind, PathPattern
from observability import trigger_failures, trigger_invocations

logger = logging.getLogger(__name__)

TriggerHandler = Callable[[ChangeEvent], Awaitable[Any]]


@dataclass(frozen=True)
class Trigger:
    """A handler bound to a path pattern and the change kinds it reacts to."""

    name: str
    pattern: PathPattern
    kinds: frozenset[ChangeKind]
    handler: TriggerHandler

    def match(self, event: ChangeEvent) -> dict[str, str] | None:
        if event.kind not in self.kinds:
            return None
        return self.pattern.match(event.path)

    async def invoke_async(self, event: ChangeEvent) -> Any:
        """Run the handler. Errors propagate so the caller can decide on redelivery."""
        trigger_invocations.add(1, {"trigger": self.name})
        logger.debug(f"Invoking {self.name} for {event.kind.value} on {event.path}")
        try:
            return await self.handler(event)
        except Exception:
            trigger_failures.add(1, {"trigger": self.name})
            raise


class TriggerRegistry:
    """Registered triggers, matched in registration order.

    Example:
        registry = TriggerRegistry()

        @registry.on_create("rooms/{roomId}/messages/{messageId}")
        async def on_message_create(event: ChangeEvent) -> None:
            room_id = event.params["roomId"]
    """

    def __init__(self) -> None:
        self._triggers: list[Trigger] = []

    @property
    def triggers(self) -> list[Trigger]:
        return list(self._triggers)

    def register(self, pattern: str, kinds: Iterable[ChangeKind], handler: TriggerHandler, name: str | None = None) -> Trigger:
        trigger = Trigger(
            name=name or getattr(handler, "__name__", repr(handler)),
            pattern=PathPattern.parse(pattern),
            kinds=frozenset(kinds),
            handler=handler,
        )
        if not trigger.kinds:
            raise ValueError(f"Trigger {trigger.name} must react to at least one change kind")
        self._triggers.append(trigger)
        logger.debug(f"Registered trigger {trigger.name} on {pattern} ({', '.join(sorted(k.value for k in trigger.kinds))})")
        return trigger

    def _decorator(self, pattern: str, kinds: Iterable[ChangeKind], name: str | None) -> Callable[[TriggerHandler], TriggerHandler]:
        def decorate(handler: TriggerHandler) -> TriggerHandler:
            self.register(pattern, kinds, handler, name=name)
            return handler

        return decorate

    def on_create(self, pattern: str, name: str | None = None) -> Callable[[TriggerHandler], TriggerHandler]:
        return self._decorator(pattern, [ChangeKind.CREATE], name)

    def on_update(self, pattern: str, name: str | None = None) -> Callable[[TriggerHandler], TriggerHandler]:
        return self._decorator(pattern, [ChangeKind.UPDATE], name)

    def on_delete(self, pattern: str, name: str | None = None) -> Callable[[TriggerHandler], TriggerHandler]:
        return self._decorator(pattern, [ChangeKind.DELETE], name)

    def on_write(self, pattern: str, name: str | None = None) -> Callable[[TriggerHandler], TriggerHandler]:
        return self._decorator(pattern, list(ChangeKind), name)

    def matching(self, event: ChangeEvent) -> list[tuple[Trigger, ChangeEvent]]:
        """Triggers matching ``event``, each paired with the event carrying its bound params."""
        matches = []
        for trigger in self._triggers:
            params = trigger.match(event)
            if params is not None:
                matches.append((trigger, event.with_params(params)))
        return matches

    async def dispatch_async(self, event: ChangeEvent) -> int:
        """Invoke every matching trigger in order and return how many ran.

        The first handler error propagates and the remaining triggers are not run.
        """
        matches = self.matching(event)
        for trigger, bound_event in matches:
            await trigger.invoke_async(bound_event)
        return len(matches)
