"""Trigger host: delivers store change events to triggers with at-least-once semantics."""

import asyncio
import contextlib
import logging
import time

from application.triggers.registry import Trigger, TriggerRegistry
from domain.models import ChangeEvent
from domain.repositories import DocumentStore
from observability import trigger_processing_time, trigger_redeliveries

logger = logging.getLogger(__name__)


class TriggerHost:
    """Consumes ``store.changes()`` and invokes the matching triggers.

    Each (trigger, event) pair is an independent invocation running as its own
    task, so a slow or failing trigger never holds up other events. A failure
    or a timeout is redelivered to that trigger only, up to ``max_deliveries``
    attempts, after which the event is logged and dropped for it. At most
    ``max_concurrency`` invocations run at once.

    When the change stream fails it is reopened after a backoff that doubles
    up to ``max_reconnect_delay_seconds`` and resets once events flow again.
    One host runs per process, started once and stopped on shutdown.
    """

    def __init__(
        self,
        store: DocumentStore,
        registry: TriggerRegistry,
        max_deliveries: int = 3,
        timeout_seconds: float | None = 60.0,
        max_concurrency: int = 64,
        reconnect_delay_seconds: float = 1.0,
        max_reconnect_delay_seconds: float = 30.0,
    ):
        if max_deliveries < 1:
            raise ValueError("max_deliveries must be >= 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._store = store
        self._registry = registry
        self._max_deliveries = max_deliveries
        self._timeout_seconds = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None
        self._slots = asyncio.Semaphore(max_concurrency)
        self._reconnect_delay_seconds = reconnect_delay_seconds
        self._max_reconnect_delay_seconds = max(max_reconnect_delay_seconds, reconnect_delay_seconds)
        self._task: asyncio.Task | None = None
        self._deliveries: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> int:
        return len(self._deliveries)

    async def deliver_async(self, event: ChangeEvent) -> bool:
        """Deliver one event to every matching trigger concurrently. Returns False if any gave up."""
        results = await asyncio.gather(*(self._deliver_to_async(trigger, bound_event) for trigger, bound_event in self._registry.matching(event)))
        return all(results)

    def dispatch(self, event: ChangeEvent) -> None:
        """Start one tracked delivery task per matching trigger without waiting for them."""
        for trigger, bound_event in self._registry.matching(event):
            task = asyncio.create_task(self._deliver_in_slot_async(trigger, bound_event), name=f"trigger:{trigger.name}")
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)

    async def _deliver_in_slot_async(self, trigger: Trigger, event: ChangeEvent) -> bool:
        async with self._slots:
            return await self._deliver_to_async(trigger, event)

    async def _deliver_to_async(self, trigger: Trigger, event: ChangeEvent) -> bool:
        for attempt in range(1, self._max_deliveries + 1):
            start = time.perf_counter()
            try:
                await asyncio.wait_for(trigger.invoke_async(event), timeout=self._timeout_seconds)
                return True
            except TimeoutError:
                logger.warning(f"⏱️ {trigger.name} timed out on {event.path} (attempt {attempt}/{self._max_deliveries})")
            except Exception as e:
                logger.warning(f"⚠️ {trigger.name} failed on {event.path} (attempt {attempt}/{self._max_deliveries}): {e}")
            finally:
                trigger_processing_time.record((time.perf_counter() - start) * 1000, {"trigger": trigger.name})

            if attempt < self._max_deliveries:
                trigger_redeliveries.add(1, {"trigger": trigger.name})

        logger.error(f"❌ Dropping {event.kind.value} event on {event.path} for {trigger.name} after {self._max_deliveries} attempts")
        return False

    async def run_async(self) -> None:
        logger.info(f"🚀 Trigger host listening for changes ({len(self._registry.triggers)} triggers)")
        delay = self._reconnect_delay_seconds
        while True:
            try:
                async for event in self._store.changes():
                    delay = self._reconnect_delay_seconds
                    self.dispatch(event)
            except Exception as e:
                logger.error(f"❌ Change stream failed, reopening in {delay:.1f}s: {e}")
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_reconnect_delay_seconds)
                continue
            logger.info("Change stream closed")
            return

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run_async(), name="trigger-host")
        self._task.add_done_callback(self._on_stopped)

    def _on_stopped(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"❌ Trigger host stopped unexpectedly: {task.exception()}")

    async def stop(self) -> None:
        """Stop consuming changes and cancel the deliveries still in flight."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

        pending = list(self._deliveries)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Cancelled {len(pending)} in-flight trigger deliveries")
        logger.info("🛑 Trigger host stopped")
