"""
Counters Router - current value of derived counters

Endpoints:
- GET /api/counters/{scope_path} - Counter held by the Record at scope_path (missing reads as 0)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_counter_manager
from application.services import CounterManager

router = APIRouter()


class CounterResponse(BaseModel):
    """Counter value response model."""

    scope: str
    value: int


@router.get("/counters/{scope_path:path}", response_model=CounterResponse)
async def get_counter(scope_path: str, counter_manager: CounterManager = Depends(get_counter_manager)) -> CounterResponse:
    """Get the counter kept for a scope, e.g. ``/api/counters/area/greater-boston``."""
    value = await counter_manager.value_async(scope_path)
    return CounterResponse(scope=scope_path.strip("/"), value=value)
