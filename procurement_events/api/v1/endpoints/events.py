from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from procurement_events.api.deps import get_event_service, get_principal, verify_token
from procurement_events.core.logging_config import logger
from procurement_events.schemas.events import (
    CreateEvent,
    DocumentAudienceType,
    DocumentSummary,
    EventDetail,
    EventSummary,
    EventType,
    OrganizationReference,
    PublishDates,
    UpdateEvent,
)
from procurement_events.services.event_service import EventService

router = APIRouter(dependencies=[Depends(verify_token)])


@router.get("/event-types", response_model=List[EventType])
async def list_event_types():
    return EventService.list_event_types()


@router.post(
    "/projects/{proc_id}/events",
    response_model=EventSummary,
    summary="Create a procurement event",
    description="Creates the event locally and, for market-facing types, its RFx on the remote platform.",
)
async def create_event(
        proc_id: int,
        event_request: Optional[CreateEvent] = None,
        down_selected_suppliers: Optional[bool] = Query(None, alias="down-selected-suppliers"),
        principal: str = Depends(get_principal),
        service: EventService = Depends(get_event_service),
):
    logger.info(f"Create event on project {proc_id} invoked on behalf of principal: {principal}")
    return await service.create_event(proc_id, event_request, down_selected_suppliers, principal)


@router.get("/projects/{proc_id}/events", response_model=List[EventSummary])
async def get_events(proc_id: int, principal: str = Depends(get_principal),
                     service: EventService = Depends(get_event_service)):
    logger.info(f"Get events of project {proc_id} invoked on behalf of principal: {principal}")
    return await service.get_events_for_project(proc_id, principal)


@router.get("/projects/{proc_id}/events/{event_id}", response_model=EventDetail)
async def get_event(proc_id: int, event_id: str, principal: str = Depends(get_principal),
                    service: EventService = Depends(get_event_service)):
    return await service.get_event(proc_id, event_id, principal)


@router.put("/projects/{proc_id}/events/{event_id}", response_model=EventSummary)
async def update_event(proc_id: int, event_id: str, event_request: UpdateEvent,
                       principal: str = Depends(get_principal),
                       service: EventService = Depends(get_event_service)):
    logger.info(f"Update event {event_id} invoked on behalf of principal: {principal}")
    return await service.update_event(proc_id, event_id, event_request, principal)


@router.put("/projects/{proc_id}/events/{event_id}/publish", status_code=200)
async def publish_event(proc_id: int, event_id: str, publish_dates: PublishDates,
                        principal: str = Depends(get_principal),
                        service: EventService = Depends(get_event_service)):
    logger.info(f"Publish event {event_id} invoked on behalf of principal: {principal}")
    await service.publish_event(proc_id, event_id, publish_dates, principal)
    return "OK"


@router.get("/projects/{proc_id}/events/{event_id}/suppliers", response_model=List[OrganizationReference])
async def get_suppliers(proc_id: int, event_id: str, service: EventService = Depends(get_event_service)):
    return await service.get_suppliers(proc_id, event_id)


@router.post("/projects/{proc_id}/events/{event_id}/suppliers", response_model=List[OrganizationReference])
async def add_suppliers(proc_id: int, event_id: str, organisation_refs: List[OrganizationReference],
                        overwrite: bool = Query(False),
                        principal: str = Depends(get_principal),
                        service: EventService = Depends(get_event_service)):
    logger.info(f"Add {len(organisation_refs)} suppliers to event {event_id} (overwrite={overwrite})")
    return await service.add_suppliers(proc_id, event_id, organisation_refs, overwrite, principal)


@router.delete("/projects/{proc_id}/events/{event_id}/suppliers/{supplier_id}")
async def delete_supplier(proc_id: int, event_id: str, supplier_id: str,
                          principal: str = Depends(get_principal),
                          service: EventService = Depends(get_event_service)):
    await service.delete_supplier(proc_id, event_id, supplier_id, principal)
    return "OK"


@router.get("/projects/{proc_id}/events/{event_id}/documents", response_model=List[DocumentSummary])
async def get_documents(proc_id: int, event_id: str, service: EventService = Depends(get_event_service)):
    return await service.get_document_summaries(proc_id, event_id)


@router.put("/projects/{proc_id}/events/{event_id}/documents", response_model=DocumentSummary)
async def upload_document(proc_id: int, event_id: str,
                          data: UploadFile = File(...),
                          audience: DocumentAudienceType = Form(...),
                          description: Optional[str] = Form(None),
                          service: EventService = Depends(get_event_service)):
    content = await data.read()
    logger.info(f"Upload document {data.filename} ({len(content)} bytes) to event {event_id}")
    return await service.upload_document(proc_id, event_id, data.filename or "", content, audience, description)


@router.get("/projects/{proc_id}/events/{event_id}/documents/{document_id}")
async def get_document(proc_id: int, event_id: str, document_id: str,
                       service: EventService = Depends(get_event_service)):
    document = await service.get_document(proc_id, event_id, document_id)
    return Response(
        content=document.data,
        media_type=document.content_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename={document.file_name}"},
    )
