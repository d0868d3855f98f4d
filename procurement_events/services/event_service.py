"""
Event lifecycle orchestration across the local store and the remote sourcing platform.

There is no transaction spanning the two systems. Within each operation every
remote write that the local record depends on (creating the remote RFx,
recording its id) happens first, and a remote failure aborts before anything
is written locally. The opposite window is accepted: if the local save fails
after a remote write succeeded, the remote change stays in place.

Concurrent updates of one event are not guarded; the last local write wins.
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from procurement_events.core.config import EventConfig
from procurement_events.core.errors import (
    AuthorisationFailureError,
    IllegalStateError,
    ResourceNotFoundError,
    ValidationFailureError,
)
from procurement_events.core.logging_config import logger
from procurement_events.crud.events import get_event_by_project_and_id, get_events_by_project_id, save_event
from procurement_events.crud.projects import get_project_by_id
from procurement_events.models.events import ProcurementEvent
from procurement_events.models.projects import ProcurementProject
from procurement_events.schemas.events import (
    CreateEvent,
    DocumentAttachment,
    DocumentAudienceType,
    DocumentSummary,
    EventDetail,
    EventSummary,
    EventType,
    OrganizationReference,
    PublishDates,
    TenderStatus,
    UpdateEvent,
)
from procurement_events.schemas.rfx import (
    AdditionalInfo,
    AdditionalInfoValue,
    AdditionalInfoValues,
    BuyerCompany,
    CompanyData,
    ExportRfxResponse,
    OperationCode,
    OwnerUser,
    Rfx,
    RfxAdditionalInfoList,
    RfxSetting,
    Supplier,
    SuppliersList,
    rfx_key,
)
from procurement_events.services.checklist_validator import PublishDatesValidator
from procurement_events.services.collaborators import (
    AssessmentService,
    CriteriaService,
    SupplierDirectory,
    UserProfileService,
)
from procurement_events.services.document_service import DocumentService
from procurement_events.services.event_types import (
    PLACEHOLDER_EVENT_TYPE,
    EventCategory,
    EventTypeMachine,
    classify,
    list_event_types,
)
from procurement_events.services.rfx_gateway import RfxGateway
from procurement_events.services.status_translator import StatusTranslator
from procurement_events.services.supplier_service import SupplierService

RFI_FLAG = 0
RFX_TYPE = "STANDARD_ITT"
ADDITIONAL_INFO_FRAMEWORK_NAME = "Framework Name"
ADDITIONAL_INFO_LOT_NUMBER = "Lot Number"
ADDITIONAL_INFO_LOCALE = "en_GB"
USER_NOT_FOUND = "Remote platform user not found"


def _additional_info(name: str, value: str) -> AdditionalInfo:
    return AdditionalInfo(
        name=name,
        label=name,
        label_locale=ADDITIONAL_INFO_LOCALE,
        values=AdditionalInfoValues(value=[AdditionalInfoValue(value=value)]),
    )


class EventService:

    def __init__(
        self,
        db: AsyncSession,
        gateway: RfxGateway,
        config: EventConfig,
        assessments: AssessmentService,
        profiles: UserProfileService,
        supplier_directory: SupplierDirectory,
        criteria: CriteriaService,
        publish_validator: Optional[PublishDatesValidator] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.config = config
        self.assessments = assessments
        self.profiles = profiles
        self.supplier_directory = supplier_directory
        self.criteria = criteria
        self.publish_validator = publish_validator or PublishDatesValidator()
        self.statuses = StatusTranslator(config.rfx_status_to_tender_status)
        self.suppliers = SupplierService(db, gateway)
        self.documents = DocumentService(gateway, config.documents)

    # ------------------------------------------------------------------ lookups

    def _parse_event_id(self, event_id: str) -> int:
        prefix = self.config.ocds.event_id_prefix
        suffix = event_id[len(prefix):] if event_id.startswith(prefix) else ""
        if not (suffix.isascii() and suffix.isdigit()):
            raise ValidationFailureError(f"Invalid event id '{event_id}', expected '{prefix}<number>'")
        return int(suffix)

    async def _get_project(self, project_id: int) -> ProcurementProject:
        project = await get_project_by_id(self.db, project_id)
        if not project:
            raise ResourceNotFoundError(f"Project '{project_id}' not found")
        return project

    async def validate_project_and_event_ids(self, project_id: int, event_id: str) -> ProcurementEvent:
        event_pk = self._parse_event_id(event_id)
        event = await get_event_by_project_and_id(self.db, project_id, event_pk)
        if not event:
            raise ResourceNotFoundError(f"Event '{event_id}' not found on project '{project_id}'")
        return event

    async def _resolve_buyer_user_id(self, principal: str) -> str:
        user_id = await self.profiles.resolve_buyer_user_id(principal)
        if not user_id:
            logger.warning(f"No remote platform user for principal {principal}")
            raise AuthorisationFailureError(USER_NOT_FOUND)
        return user_id

    async def _resolve_status(self, event: ProcurementEvent,
                              principal: str) -> Tuple[TenderStatus, Optional[ExportRfxResponse]]:
        if event.external_event_id:
            rfx = await self.gateway.get_rfx(event.external_event_id)
            return self.statuses.translate(rfx.rfx_setting.status_code if rfx.rfx_setting else None), rfx
        if event.assessment_id is not None:
            assessment = await self.assessments.get_assessment(event.assessment_id, principal)
            return self.statuses.from_assessment(assessment.status), None
        return TenderStatus.PLANNING, None

    def _default_event_title(self, project_name: str, event_type: EventType) -> str:
        return self.config.remote.create_rfx["defaultTitleFormat"] % (project_name, event_type.value)

    @staticmethod
    def _summary(event: ProcurementEvent, status: TenderStatus,
                 assessment_id: Optional[int] = None) -> EventSummary:
        return EventSummary(
            id=event.event_id,
            title=event.event_name,
            event_type=EventType(event.event_type),
            status=status,
            event_support_id=event.external_reference_id,
            assessment_id=assessment_id,
        )

    # ------------------------------------------------------------ remote record

    async def _create_rfx_request(self, project: ProcurementProject, event_name: str, principal: str) -> Rfx:
        user_id = await self._resolve_buyer_user_id(principal)
        company_id = await self.profiles.resolve_buyer_company_id(principal)

        supplier_ids = await self.supplier_directory.get_suppliers_for_lot(project.ca_number, project.lot_number)
        mappings = await self.suppliers.resolve_mappings(supplier_ids)

        rfx_setting = RfxSetting(
            rfi_flag=RFI_FLAG,
            tender_reference_code=project.external_reference_id,
            template_reference_code=self.config.remote.create_rfx["templateId"],
            short_description=event_name,
            buyer_company=BuyerCompany(id=company_id),
            owner_user=OwnerUser(id=user_id),
            rfx_type=RFX_TYPE,
        )
        return Rfx(
            rfx_setting=rfx_setting,
            rfx_additional_info_list=RfxAdditionalInfoList(additional_info=[
                _additional_info(ADDITIONAL_INFO_FRAMEWORK_NAME, project.ca_number),
                _additional_info(ADDITIONAL_INFO_LOT_NUMBER, project.lot_number),
            ]),
            suppliers_list=SuppliersList(
                supplier=[Supplier(company_data=CompanyData(id=m.external_organisation_id)) for m in mappings]
            ),
        )

    async def _create_remote_record(self, event: ProcurementEvent, project: ProcurementProject,
                                    principal: str) -> None:
        rfx = await self._create_rfx_request(project, event.event_name, principal)
        response = await self.gateway.create_rfx(rfx)
        logger.info(f"Created remote Rfx {response.rfx_id} ({response.rfx_reference_code}) for project {project.id}")
        event.external_event_id = response.rfx_id
        event.external_reference_id = response.rfx_reference_code

    # ---------------------------------------------------------------- lifecycle

    async def create_event(self, project_id: int, create_event: Optional[CreateEvent],
                           down_selected_suppliers: Optional[bool], principal: str) -> EventSummary:
        project = await self._get_project(project_id)

        create_event = create_event or CreateEvent()
        event_type = create_event.event_type or PLACEHOLDER_EVENT_TYPE
        category = classify(event_type)
        event_name = create_event.name or self._default_event_title(project.project_name, event_type)
        now = datetime.now(timezone.utc)

        event = ProcurementEvent(
            project=project,
            project_id=project.id,
            event_name=event_name,
            event_type=event_type.value,
            down_selected_suppliers=bool(down_selected_suppliers),
            ocds_authority_name=self.config.ocds.authority,
            ocid_prefix=self.config.ocds.ocid_prefix,
            created_by=principal,
            created_at=now,
            updated_by=principal,
            updated_at=now,
        )

        if category == EventCategory.ASSESSMENT:
            # Resolve the lot's suppliers before creating anything
            supplier_ids = await self.supplier_directory.get_suppliers_for_lot(project.ca_number, project.lot_number)
            lot_suppliers = await self.suppliers.resolve_mappings(supplier_ids)

            if create_event.assessment_id is None:
                event.assessment_id = await self.assessments.create_empty_assessment(
                    project.ca_number, project.lot_number, event_type, principal
                )
                logger.debug(f"Created new empty assessment: {event.assessment_id}")
            else:
                assessment = await self.assessments.get_assessment(create_event.assessment_id, principal)
                event.assessment_id = assessment.assessment_id
                logger.debug(f"Linking existing assessment: {event.assessment_id} to new event")

            event = await self.suppliers.add_suppliers_to_local_store(event, lot_suppliers, True, principal)

        else:
            if category == EventCategory.MARKET:
                await self._create_remote_record(event, project, principal)
            elif create_event.assessment_id is not None:
                assessment = await self.assessments.get_assessment(create_event.assessment_id, principal)
                event.assessment_id = assessment.assessment_id
            event = await save_event(self.db, event)

        logger.info(f"Created event {event.event_id} ({event.event_type}) on project {project_id}")
        return self._summary(event, TenderStatus.PLANNING, event.assessment_id)

    async def update_event(self, project_id: int, event_id: str, update_event: UpdateEvent,
                           principal: str) -> EventSummary:
        logger.debug(f"Update event {event_id}: {update_event}")
        event = await self.validate_project_and_event_ids(project_id, event_id)

        rfx = rfx_key(event.external_event_id, event.external_reference_id)
        update_remote = False
        update_db = False
        create_assessment = False

        if update_event.name and update_event.name.strip():
            rfx.rfx_setting.short_description = update_event.name
            event.event_name = update_event.name
            update_remote = True
            update_db = True

        if update_event.event_type is not None:
            new_type = await EventTypeMachine(event.event_id, event.event_type).assign(update_event.event_type)
            if (classify(new_type) == EventCategory.ASSESSMENT
                    and update_event.assessment_id is None and event.assessment_id is None):
                create_assessment = True
            event.event_type = new_type.value
            update_db = True

        if update_event.assessment_id is not None:
            assessment = await self.assessments.get_assessment(update_event.assessment_id, principal)
            event.assessment_id = assessment.assessment_id
            update_db = True

        if update_event.assessment_supplier_target is not None:
            event.assessment_supplier_target = update_event.assessment_supplier_target
            update_db = True

        if create_assessment:
            event.assessment_id = await self.assessments.create_empty_assessment(
                event.project.ca_number, event.project.lot_number, EventType(event.event_type), principal
            )
            logger.debug(f"Created new empty assessment: {event.assessment_id} for event {event_id}")

        try:
            if classify(event.event_type) == EventCategory.MARKET and not event.external_event_id:
                # First concrete market-facing type: the remote record is created now, with the current name
                await self._create_remote_record(event, event.project, principal)
            elif update_remote and event.external_event_id:
                await self.gateway.create_update_rfx(rfx, OperationCode.CREATEUPDATE)
        except Exception:
            # Discard the staged local edits, nothing was saved
            await self.db.rollback()
            raise

        if update_db:
            event.updated_at = datetime.now(timezone.utc)
            event.updated_by = principal
            event = await save_event(self.db, event)

        status, _ = await self._resolve_status(event, principal)
        return self._summary(event, status, event.assessment_id)

    async def get_event(self, project_id: int, event_id: str, principal: str) -> EventDetail:
        event = await self.validate_project_and_event_ids(project_id, event_id)
        status, rfx = await self._resolve_status(event, principal)

        criteria = []
        if classify(event.event_type) == EventCategory.MARKET:
            criteria = await self.criteria.get_eval_criteria(project_id, event_id)

        return EventDetail(
            id=event.event_id,
            title=event.event_name,
            description=rfx.rfx_setting.long_description if rfx and rfx.rfx_setting else None,
            event_type=EventType(event.event_type),
            status=status,
            event_support_id=event.external_reference_id,
            down_selected_suppliers=bool(event.down_selected_suppliers),
            assessment_id=event.assessment_id,
            assessment_supplier_target=event.assessment_supplier_target,
            criteria=criteria,
        )

    async def get_events_for_project(self, project_id: int, principal: str) -> List[EventSummary]:
        await self._get_project(project_id)
        summaries = []
        for event in await get_events_by_project_id(self.db, project_id):
            status, _ = await self._resolve_status(event, principal)
            summaries.append(self._summary(event, status, event.assessment_id))
        return summaries

    async def publish_event(self, project_id: int, event_id: str, publish_dates: PublishDates,
                            principal: str) -> None:
        user_id = await self._resolve_buyer_user_id(principal)
        event = await self.validate_project_and_event_ids(project_id, event_id)

        if not event.external_event_id:
            raise IllegalStateError(
                f"Event {event_id} of type {event.event_type} is not on the remote platform and cannot be published"
            )
        status, _ = await self._resolve_status(event, principal)
        if status != TenderStatus.PLANNED:
            raise IllegalStateError(
                f"You cannot publish an event unless it is in a 'planned' state (event {event_id} is '{status.value}')"
            )

        self.publish_validator.validate(publish_dates)
        await self.gateway.publish_rfx(event.external_event_id, event.external_reference_id, publish_dates, user_id)
        logger.info(f"Event {event_id} published on project {project_id}")

    @staticmethod
    def list_event_types() -> List[EventType]:
        return list_event_types()

    # ---------------------------------------------------------------- suppliers

    async def get_suppliers(self, project_id: int, event_id: str) -> List[OrganizationReference]:
        logger.debug(f"Get suppliers for event '{event_id}'")
        event = await self.validate_project_and_event_ids(project_id, event_id)
        return await self.suppliers.get_suppliers(event)

    async def add_suppliers(self, project_id: int, event_id: str, organisation_refs: List[OrganizationReference],
                            overwrite: bool, principal: str) -> List[OrganizationReference]:
        event = await self.validate_project_and_event_ids(project_id, event_id)
        return await self.suppliers.add_suppliers(event, organisation_refs, overwrite, principal)

    async def delete_supplier(self, project_id: int, event_id: str, organisation_id: str, principal: str) -> None:
        logger.debug(f"Delete supplier '{organisation_id}' from event '{event_id}'")
        event = await self.validate_project_and_event_ids(project_id, event_id)
        await self.suppliers.delete_supplier(event, organisation_id, principal)

    # ---------------------------------------------------------------- documents

    async def get_document_summaries(self, project_id: int, event_id: str) -> List[DocumentSummary]:
        event = await self.validate_project_and_event_ids(project_id, event_id)
        return await self.documents.get_document_summaries(event)

    async def upload_document(self, project_id: int, event_id: str, file_name: str, content: bytes,
                              audience: DocumentAudienceType, description: Optional[str] = None) -> DocumentSummary:
        event = await self.validate_project_and_event_ids(project_id, event_id)
        return await self.documents.upload_document(event, file_name, content, audience, description)

    async def get_document(self, project_id: int, event_id: str, document_id: str) -> DocumentAttachment:
        logger.debug(f"Get document {document_id} from event {event_id}")
        event = await self.validate_project_and_event_ids(project_id, event_id)
        return await self.documents.get_document(event, document_id)
