from fastapi import APIRouter
from procurement_events.api.v1.endpoints import events

router = APIRouter()

router.include_router(events.router, prefix="/tenders", tags=["Tenders"])
