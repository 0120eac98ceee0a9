"""Fixtures for HTTP boundary tests."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from application.settings import Settings
from infrastructure import InMemoryNotificationPublisher
from integration.repositories import InMemoryDocumentStore
from main import create_app


@pytest.fixture
def client(test_settings: Settings, store: InMemoryDocumentStore, publisher: InMemoryNotificationPublisher) -> TestClient:
    """Provide a client for an app over the in-memory store, with triggers not running."""
    app = create_app(test_settings, store=store, publisher=publisher, run_triggers=False)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seed(store: InMemoryDocumentStore) -> Callable[[dict[str, dict[str, Any]]], None]:
    """Provide a function writing documents straight into the store."""

    def write_documents(documents: dict[str, dict[str, Any]]) -> None:
        async def write_all() -> None:
            for path, fields in documents.items():
                await store.write_async(path, fields)

        asyncio.run(write_all())
        store.drain_changes()

    return write_documents
