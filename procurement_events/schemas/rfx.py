"""
Wire models for the remote sourcing platform's "RFx" object.

The platform merges update payloads: any field absent from the JSON is left
unchanged remotely. Every field here is therefore optional, and payloads are
always serialised with ``exclude_unset`` so that a field that was never
assigned is not sent, while a field explicitly set to an empty value is.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class RfxModel(BaseModel):

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class OperationCode(str, Enum):
    CREATE_FROM_TEMPLATE = "CREATE_FROM_TEMPLATE"
    CREATEUPDATE = "CREATEUPDATE"
    UPDATE_RESET = "UPDATE_RESET"


class CompanyData(RfxModel):
    id: Optional[int] = None
    name: Optional[str] = None


class Supplier(RfxModel):
    company_data: Optional[CompanyData] = None


class SuppliersList(RfxModel):
    supplier: Optional[List[Supplier]] = None


class Attachment(RfxModel):
    file_id: Optional[int] = None
    file_name: Optional[str] = None
    file_description: Optional[str] = None
    file_size: Optional[int] = None


class AttachmentsList(RfxModel):
    attachment: Optional[List[Attachment]] = None


class BuyerCompany(RfxModel):
    id: Optional[str] = None


class OwnerUser(RfxModel):
    id: Optional[str] = None


class RfxSetting(RfxModel):
    rfx_id: Optional[str] = None
    rfx_reference_code: Optional[str] = None
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    status_code: Optional[int] = None
    status: Optional[str] = None
    rfi_flag: Optional[int] = None
    rfx_type: Optional[str] = None
    template_reference_code: Optional[str] = None
    tender_reference_code: Optional[str] = None
    buyer_company: Optional[BuyerCompany] = None
    owner_user: Optional[OwnerUser] = None


class AdditionalInfoValue(RfxModel):
    value: Optional[str] = None


class AdditionalInfoValues(RfxModel):
    value: Optional[List[AdditionalInfoValue]] = None


class AdditionalInfo(RfxModel):
    name: Optional[str] = None
    label: Optional[str] = None
    label_locale: Optional[str] = None
    values: Optional[AdditionalInfoValues] = None


class RfxAdditionalInfoList(RfxModel):
    additional_info: Optional[List[AdditionalInfo]] = None


class Rfx(RfxModel):
    rfx_setting: Optional[RfxSetting] = None
    rfx_additional_info_list: Optional[RfxAdditionalInfoList] = None
    suppliers_list: Optional[SuppliersList] = None
    buyer_attachments_list: Optional[AttachmentsList] = None
    seller_attachments_list: Optional[AttachmentsList] = None


class CreateUpdateRfx(RfxModel):
    operation_code: OperationCode
    rfx: Rfx


class CreateUpdateRfxResponse(RfxModel):
    return_code: Optional[int] = None
    return_message: Optional[str] = None
    rfx_id: Optional[str] = None
    rfx_reference_code: Optional[str] = None


class ExportRfxResponse(RfxModel):
    rfx_setting: Optional[RfxSetting] = None
    suppliers_list: Optional[SuppliersList] = None
    buyer_attachments_list: Optional[AttachmentsList] = None
    seller_attachments_list: Optional[AttachmentsList] = None

    @property
    def suppliers(self) -> List[Supplier]:
        if self.suppliers_list is None or self.suppliers_list.supplier is None:
            return []
        return self.suppliers_list.supplier

    @property
    def buyer_attachments(self) -> List[Attachment]:
        if self.buyer_attachments_list is None or self.buyer_attachments_list.attachment is None:
            return []
        return self.buyer_attachments_list.attachment

    @property
    def seller_attachments(self) -> List[Attachment]:
        if self.seller_attachments_list is None or self.seller_attachments_list.attachment is None:
            return []
        return self.seller_attachments_list.attachment


class OperatorUser(RfxModel):
    id: Optional[str] = None


class PublishRfx(RfxModel):
    rfx_id: str
    rfx_reference_code: Optional[str] = None
    operator_user: OperatorUser
    new_closing_date: Optional[str] = None


def rfx_key(rfx_id: Optional[str], rfx_reference_code: Optional[str]) -> Rfx:
    """An Rfx carrying only the identifiers, the starting point of every partial update."""
    return Rfx(rfx_setting=RfxSetting(rfx_id=rfx_id, rfx_reference_code=rfx_reference_code))
