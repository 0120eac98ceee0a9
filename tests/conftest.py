"""Pytest configuration and shared fixtures for all tests.

This module provides:
- Test settings (in-memory backend, no .env)
- In-memory document store and notification channel
- The core services wired the way create_app wires them
- Trigger registry and host
"""

from datetime import UTC, datetime

import pytest

from application.services import CounterManager, DerivedFieldRewriter, FanOutAggregator, NotificationDispatcher
from application.settings import Settings
from application.triggers import TriggerHost, TriggerRegistry, TriggerServices, register_triggers
from infrastructure import InMemoryNotificationPublisher
from integration.repositories import InMemoryDocumentStore

# ============================================================================
# SETTINGS FIXTURES
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings for the in-memory backend, ignoring any local .env file."""
    return Settings(_env_file=None, store_backend="memory", trigger_timeout_seconds=5.0)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 14, 15, 9, 26, tzinfo=UTC)


# ============================================================================
# STORE AND CHANNEL FIXTURES
# ============================================================================


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Provide an empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def publisher() -> InMemoryNotificationPublisher:
    """Provide an in-memory notification channel that records what it receives."""
    return InMemoryNotificationPublisher()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def aggregator(store: InMemoryDocumentStore) -> FanOutAggregator:
    return FanOutAggregator(store, reference_field="cities", child_collection="cities-weather")


@pytest.fixture
def counter_manager(store: InMemoryDocumentStore) -> CounterManager:
    return CounterManager(store)


@pytest.fixture
def rewriter(store: InMemoryDocumentStore, fixed_now: datetime) -> DerivedFieldRewriter:
    return DerivedFieldRewriter(store, clock=lambda: fixed_now)


@pytest.fixture
def dispatcher(publisher: InMemoryNotificationPublisher) -> NotificationDispatcher:
    return NotificationDispatcher(publisher)


# ============================================================================
# TRIGGER FIXTURES
# ============================================================================


@pytest.fixture
def registry(
    test_settings: Settings,
    counter_manager: CounterManager,
    rewriter: DerivedFieldRewriter,
    dispatcher: NotificationDispatcher,
) -> TriggerRegistry:
    """Provide a registry holding every document trigger."""
    services = TriggerServices(counter_manager=counter_manager, rewriter=rewriter, dispatcher=dispatcher)
    return register_triggers(TriggerRegistry(), services, test_settings)


@pytest.fixture
def host(store: InMemoryDocumentStore, registry: TriggerRegistry) -> TriggerHost:
    return TriggerHost(store, registry, max_deliveries=3, timeout_seconds=5.0)
