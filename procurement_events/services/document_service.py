import os
from typing import List, Optional

from procurement_events.core.config import DocumentConfig
from procurement_events.core.errors import IllegalStateError, ResourceNotFoundError, ValidationFailureError
from procurement_events.core.logging_config import logger
from procurement_events.models.events import ProcurementEvent
from procurement_events.schemas.events import DocumentAttachment, DocumentAudienceType, DocumentKey, DocumentSummary
from procurement_events.schemas.rfx import (
    Attachment,
    AttachmentsList,
    CreateUpdateRfx,
    OperationCode,
    rfx_key,
)
from procurement_events.services.event_types import EventCategory, classify
from procurement_events.services.rfx_gateway import RfxGateway


def file_extension(file_name: str) -> str:
    return os.path.splitext(file_name)[1].lstrip(".").lower()


def build_document_summary(attachment: Attachment, audience: DocumentAudienceType) -> DocumentSummary:
    key = DocumentKey(file_id=attachment.file_id or 0, file_name=attachment.file_name or "")
    return DocumentSummary(
        id=key.document_id,
        file_name=attachment.file_name or "",
        file_size=attachment.file_size or 0,
        description=attachment.file_description,
        audience=audience,
    )


class DocumentService:
    """Event attachments, held only on the remote platform and re-read on every call."""

    def __init__(self, gateway: RfxGateway, config: DocumentConfig):
        self.gateway = gateway
        self.config = config

    @staticmethod
    def _require_remote_record(event: ProcurementEvent) -> None:
        if classify(event.event_type) != EventCategory.MARKET or not event.external_event_id:
            raise IllegalStateError(
                f"Event {event.event_id} of type {event.event_type} has no documents on the remote platform"
            )

    async def get_document_summaries(self, event: ProcurementEvent) -> List[DocumentSummary]:
        self._require_remote_record(event)
        rfx = await self.gateway.get_rfx(event.external_event_id)
        documents = [build_document_summary(a, DocumentAudienceType.BUYER) for a in rfx.buyer_attachments]
        documents.extend(build_document_summary(a, DocumentAudienceType.SUPPLIER) for a in rfx.seller_attachments)
        return documents

    def check_file(self, file_name: str, file_size: int) -> None:
        extension = file_extension(file_name)
        if extension not in self.config.allowed_extensions:
            raise ValidationFailureError(
                f"File is not one of the allowed types: {sorted(self.config.allowed_extensions)}"
            )
        if file_size > self.config.max_size:
            raise ValidationFailureError(
                f"File is too large: {file_size} bytes. Maximum allowed upload size is: {self.config.max_size} bytes"
            )

    async def upload_document(self, event: ProcurementEvent, file_name: str, content: bytes,
                              audience: DocumentAudienceType, description: Optional[str] = None) -> DocumentSummary:
        logger.debug(f"Upload document {file_name} to event {event.event_id}")
        self._require_remote_record(event)

        file_size = len(content)
        self.check_file(file_name, file_size)

        current_documents = await self.get_document_summaries(event)
        total_size = sum(d.file_size for d in current_documents)
        if total_size + file_size > self.config.max_total_size:
            raise ValidationFailureError(
                f"Uploading file will exceed the maximum allowed total limit of {self.config.max_total_size} "
                f"bytes for event {event.event_id} (current total size is {total_size} bytes, "
                f"across {len(current_documents)} files)"
            )

        rfx = rfx_key(event.external_event_id, event.external_reference_id)
        attachments = AttachmentsList(attachment=[Attachment(file_name=file_name, file_description=description)])
        if audience == DocumentAudienceType.BUYER:
            rfx.buyer_attachments_list = attachments
        else:
            rfx.seller_attachments_list = attachments

        await self.gateway.upload_document(
            file_name, content, CreateUpdateRfx(operation_code=OperationCode.CREATEUPDATE, rfx=rfx)
        )

        for document in await self.get_document_summaries(event):
            if document.file_name == file_name:
                return document
        logger.error(f"Document {file_name} missing from event {event.event_id} after upload")
        raise ResourceNotFoundError("There was an unexpected error uploading the document")

    async def get_document(self, event: ProcurementEvent, document_id: str) -> DocumentAttachment:
        self._require_remote_record(event)
        try:
            key = DocumentKey.from_string(document_id)
        except ValueError as e:
            raise ValidationFailureError(str(e)) from e
        logger.debug(f"Retrieving document {key.file_name} from event {event.event_id}")
        return await self.gateway.get_document(key.file_id, key.file_name)
