from typing import Any, List
from fastapi import APIRouter, Body, Depends, Query
from .dependencies import get_event_service
from ..auth.basic import verify_basic_auth
from ..event_models import Event, EventResponse
from ..services.event_service import EventService

router = APIRouter(prefix="/api/v1", tags=["events"], dependencies=[Depends(verify_basic_auth)])


@router.get("/event", response_model=Event)
async def get_event(
    event_id: str | None = Query(None, alias="id"),
    service: EventService = Depends(get_event_service),
):
    return await service.fetch_event(event_id)


@router.get("/events", response_model=List[Event])
async def list_events(
    max_events: str | None = Query(None, alias="max"),
    service: EventService = Depends(get_event_service),
):
    return await service.fetch_recent(max_events)


@router.post("/event", response_model=EventResponse)
async def create_event(
    payload: Any = Body(None),
    service: EventService = Depends(get_event_service),
):
    return await service.submit_event(payload)


@router.post("/events", response_model=List[EventResponse])
async def create_events(
    payload: Any = Body(None),
    service: EventService = Depends(get_event_service),
):
    return await service.submit_events(payload)
