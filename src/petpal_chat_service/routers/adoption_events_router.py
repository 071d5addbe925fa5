from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..schemas import AdoptionEventResult, AdoptionStatusEvent
from ..services import registry

adoption_events_router = APIRouter(prefix="/adoption-events", tags=["Adoption Events"])


@adoption_events_router.post("", response_model=AdoptionEventResult)
async def adoption_status_changed(
    event: AdoptionStatusEvent, db: AsyncSession = Depends(get_db)
):
    """Called by the adoption service whenever a request changes status."""
    return await registry.handle_adoption_status_change(
        db, event.adoption_request_id, event.status
    )
