import base64
import binascii
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


class EventType(str, Enum):
    EOI = "EOI"
    RFI = "RFI"
    CA = "CA"
    DA = "DA"
    FC = "FC"
    FCA = "FCA"
    DAA = "DAA"
    TBD = "TBD"


class TenderStatus(str, Enum):
    PLANNING = "planning"
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    UNSUCCESSFUL = "unsuccessful"
    WITHDRAWN = "withdrawn"


class DocumentAudienceType(str, Enum):
    BUYER = "buyer"
    SUPPLIER = "supplier"


class CreateEvent(BaseModel):
    name: Optional[str] = None
    event_type: Optional[EventType] = None
    assessment_id: Optional[int] = None

    @field_validator("event_type")
    @classmethod
    def _concrete_type(cls, v: Optional[EventType]) -> Optional[EventType]:
        # TBD is the default, it cannot be requested explicitly
        if v == EventType.TBD:
            raise ValueError("Event type must be a concrete value")
        return v


class UpdateEvent(BaseModel):
    name: Optional[str] = None
    event_type: Optional[EventType] = None
    assessment_id: Optional[int] = None
    assessment_supplier_target: Optional[int] = None

    @field_validator("event_type")
    @classmethod
    def _concrete_type(cls, v: Optional[EventType]) -> Optional[EventType]:
        if v == EventType.TBD:
            raise ValueError("Event type must be a concrete value")
        return v


class EventSummary(BaseModel):
    id: str
    title: str
    event_stage: str = "tender"
    event_type: EventType
    status: TenderStatus
    event_support_id: Optional[str] = None
    assessment_id: Optional[int] = None


class EventDetail(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    event_type: EventType
    status: TenderStatus
    event_support_id: Optional[str] = None
    down_selected_suppliers: bool = False
    assessment_id: Optional[int] = None
    assessment_supplier_target: Optional[int] = None
    criteria: List[Dict[str, Any]] = []


class OrganizationReference(BaseModel):
    id: str
    name: Optional[str] = None


class PublishDates(BaseModel):
    start_date: Optional[datetime] = None
    end_date: datetime


class DocumentSummary(BaseModel):
    id: str
    file_name: str
    file_size: int = 0
    description: Optional[str] = None
    audience: DocumentAudienceType


class DocumentAttachment(BaseModel):
    file_name: str
    content_type: Optional[str] = None
    data: bytes


class DocumentKey(BaseModel):
    """Document id exposed to callers: urlsafe base64 of "<fileId>-<fileName>"."""

    file_id: int
    file_name: str

    @property
    def document_id(self) -> str:
        raw = f"{self.file_id}-{self.file_name}".encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @classmethod
    def from_string(cls, document_id: str) -> "DocumentKey":
        try:
            decoded = base64.urlsafe_b64decode(document_id.encode("ascii")).decode("utf-8")
            file_id, file_name = decoded.split("-", 1)
            return cls(file_id=int(file_id), file_name=file_name)
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise ValueError(f"Invalid document id '{document_id}'") from e
