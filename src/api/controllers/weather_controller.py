"""
Weather Router - reads of the weather documents

Endpoints:
- GET /api/weather/{city_id} - Weather document of a single city
- GET /api/areas/{area_id}/weather - Weather of every city listed by an area, in listing order
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from api.dependencies import get_aggregator, get_settings, get_store
from application.services import FanOutAggregator
from application.settings import Settings
from domain.models import DocumentPath
from domain.repositories import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/weather/{city_id}")
async def get_city_weather(city_id: str, store: DocumentStore = Depends(get_store), settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    """Get the weather document of one city."""
    record = await store.read_async(DocumentPath.parse(settings.weather_collection).child(city_id))
    return record.fields


@router.get("/areas/{area_id}/weather")
async def get_area_weather(
    area_id: str,
    aggregator: FanOutAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
) -> list[dict[str, Any]]:
    """Get the weather of every city of an area.

    Each entry carries the key it is listed under in the area and the id of
    its weather document. Any city that cannot be read fails the request.
    """
    children = await aggregator.aggregate_async(DocumentPath.parse(settings.areas_collection).child(area_id))
    logger.debug(f"Aggregated {len(children)} cities for area {area_id}")
    return [child.to_dict() for child in children]
