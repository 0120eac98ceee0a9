"""FastAPI dependencies for the process-wide services.

The services are constructed once by ``create_app`` and kept on
``app.state``; these dependencies hand them to the controllers.
"""

from typing import Any

from fastapi import Request

from application.services import CounterManager, FanOutAggregator
from application.settings import Settings
from domain.repositories import DocumentStore


def _service(request: Request, name: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise RuntimeError(f"'{name}' not found in application state. Ensure the app was built with create_app().")
    return service


def get_store(request: Request) -> DocumentStore:
    return _service(request, "store")


def get_aggregator(request: Request) -> FanOutAggregator:
    return _service(request, "aggregator")


def get_counter_manager(request: Request) -> CounterManager:
    return _service(request, "counter_manager")


def get_settings(request: Request) -> Settings:
    return _service(request, "settings")
