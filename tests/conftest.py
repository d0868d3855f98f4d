"""
Shared fixtures: an in-memory database, a fake remote platform and fake collaborators.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["API_TOKEN"] = "test-token"
os.environ.setdefault("REMOTE_BASE_URL", "http://remote.test")

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from procurement_events.core.config import (
    DEFAULT_RFX_STATUS_TO_TENDER_STATUS,
    DocumentConfig,
    EventConfig,
    OcdsConfig,
    RemotePlatformConfig,
)
from procurement_events.core.errors import ExternalSystemError, ResourceNotFoundError
from procurement_events.models.base import Base
from procurement_events.models.organisation_mappings import OrganisationMapping
from procurement_events.models.projects import ProcurementProject
from procurement_events.schemas.events import DocumentAttachment, TenderStatus
from procurement_events.schemas.rfx import (
    Attachment,
    AttachmentsList,
    CompanyData,
    CreateUpdateRfxResponse,
    ExportRfxResponse,
    OperationCode,
    RfxSetting,
    Supplier,
    SuppliersList,
)
from procurement_events.services.checklist_validator import PublishDatesValidator
from procurement_events.services.event_service import EventService

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
PRINCIPAL = "buyer@example.com"

# organisation id -> (remote company id, company name)
ORGANISATIONS = {
    "GB-COH-111": (1001, "Acme Ltd"),
    "GB-COH-222": (1002, "Bravo Plc"),
    "GB-COH-333": (1003, "Charlie LLP"),
}


class FakeGateway:
    """In-memory stand-in for the remote sourcing platform, recording every call."""

    def __init__(self):
        self.records = {}
        self.calls = []
        self.fail_on = set()
        self._next_rfx = 1
        self._next_file = 1

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise ExternalSystemError(f"Remote {name} rejected", 1)

    def add_record(self, status_code=0, suppliers=(), short_description="Existing", long_description=None):
        rfx_id = f"rfq_{self._next_rfx}"
        self.records[rfx_id] = {
            "reference": f"itt_{self._next_rfx}",
            "status_code": status_code,
            "short_description": short_description,
            "long_description": long_description,
            "suppliers": [(company_id, name) for company_id, name in suppliers],
            "buyer": [],
            "seller": [],
        }
        self._next_rfx += 1
        return rfx_id

    async def create_rfx(self, rfx):
        self.calls.append(("create_rfx", rfx))
        self._maybe_fail("create_rfx")
        suppliers = rfx.suppliers_list.supplier if rfx.suppliers_list else []
        rfx_id = self.add_record(
            suppliers=[(s.company_data.id, None) for s in suppliers],
            short_description=rfx.rfx_setting.short_description,
        )
        return CreateUpdateRfxResponse(
            return_code=0, return_message="OK", rfx_id=rfx_id, rfx_reference_code=self.records[rfx_id]["reference"]
        )

    async def create_update_rfx(self, rfx, operation_code):
        self.calls.append(("create_update_rfx", rfx, operation_code))
        self._maybe_fail("create_update_rfx")
        record = self.records[rfx.rfx_setting.rfx_id]
        if rfx.rfx_setting.short_description is not None:
            record["short_description"] = rfx.rfx_setting.short_description
        if rfx.suppliers_list is not None:
            sent = [(s.company_data.id, None) for s in rfx.suppliers_list.supplier]
            if operation_code == OperationCode.UPDATE_RESET:
                record["suppliers"] = sent
            else:
                known = {company_id for company_id, _ in record["suppliers"]}
                record["suppliers"] += [s for s in sent if s[0] not in known]
        return CreateUpdateRfxResponse(return_code=0, return_message="OK", rfx_id=rfx.rfx_setting.rfx_id)

    async def get_rfx(self, rfx_id):
        self.calls.append(("get_rfx", rfx_id))
        self._maybe_fail("get_rfx")
        record = self.records[rfx_id]
        names = {company_id: name for company_id, name in ORGANISATIONS.values()}
        return ExportRfxResponse(
            rfx_setting=RfxSetting(
                rfx_id=rfx_id,
                rfx_reference_code=record["reference"],
                short_description=record["short_description"],
                long_description=record["long_description"],
                status_code=record["status_code"],
            ),
            suppliers_list=SuppliersList(supplier=[
                Supplier(company_data=CompanyData(id=company_id, name=name or names.get(company_id)))
                if company_id is not None else Supplier()
                for company_id, name in record["suppliers"]
            ]),
            buyer_attachments_list=AttachmentsList(attachment=list(record["buyer"])),
            seller_attachments_list=AttachmentsList(attachment=list(record["seller"])),
        )

    def add_attachment(self, rfx_id, file_name, file_size, audience="buyer", description=None):
        attachment = Attachment(
            file_id=self._next_file, file_name=file_name, file_size=file_size, file_description=description
        )
        self._next_file += 1
        self.records[rfx_id][audience].append(attachment)
        return attachment

    async def upload_document(self, file_name, content, update):
        self.calls.append(("upload_document", file_name, update))
        self._maybe_fail("upload_document")
        rfx = update.rfx
        if rfx.buyer_attachments_list is not None:
            audience, attachment = "buyer", rfx.buyer_attachments_list.attachment[0]
        else:
            audience, attachment = "seller", rfx.seller_attachments_list.attachment[0]
        self.add_attachment(rfx.rfx_setting.rfx_id, file_name, len(content), audience, attachment.file_description)
        return CreateUpdateRfxResponse(return_code=0, return_message="OK", rfx_id=rfx.rfx_setting.rfx_id)

    async def publish_rfx(self, rfx_id, rfx_reference_code, publish_dates, user_id):
        self.calls.append(("publish_rfx", rfx_id, rfx_reference_code, publish_dates, user_id))
        self._maybe_fail("publish_rfx")

    async def get_document(self, file_id, file_name):
        self.calls.append(("get_document", file_id, file_name))
        return DocumentAttachment(file_name=file_name, content_type="application/pdf", data=b"%PDF-1.4")

    def count(self, name):
        return len([c for c in self.calls if c[0] == name])


@dataclass
class FakeAssessment:
    assessment_id: int
    status: str


class FakeAssessments:

    def __init__(self):
        self.assessments = {}
        self.created = []
        self._next_id = 100

    def add(self, status="Planning") -> int:
        assessment_id = self._next_id
        self._next_id += 1
        self.assessments[assessment_id] = FakeAssessment(assessment_id, status)
        return assessment_id

    async def create_empty_assessment(self, framework_id, lot_id, event_type, principal):
        assessment_id = self.add()
        self.created.append((framework_id, lot_id, event_type, principal))
        return assessment_id

    async def get_assessment(self, assessment_id, principal):
        if assessment_id not in self.assessments:
            raise ResourceNotFoundError(f"Assessment '{assessment_id}' not found")
        return self.assessments[assessment_id]


class FakeProfiles:

    def __init__(self):
        self.user_ids = {PRINCIPAL: "user_42"}

    async def resolve_buyer_user_id(self, principal):
        return self.user_ids.get(principal)

    async def resolve_buyer_company_id(self, principal):
        return "company_7"


class FakeSupplierDirectory:

    def __init__(self):
        self.lot_suppliers = ["GB-COH-111", "GB-COH-222"]

    async def get_suppliers_for_lot(self, framework_id, lot_id):
        return list(self.lot_suppliers)


class FakeCriteria:

    def __init__(self):
        self.calls = []

    async def get_eval_criteria(self, project_id, event_id):
        self.calls.append((project_id, event_id))
        return [{"id": "Criterion 1", "title": "Price"}]


@pytest.fixture
def event_config() -> EventConfig:
    return EventConfig(
        remote=RemotePlatformConfig(base_url="http://remote.test", api_token="remote-token", timeout_seconds=5),
        rfx_status_to_tender_status={k: TenderStatus(v) for k, v in DEFAULT_RFX_STATUS_TO_TENDER_STATUS.items()},
        documents=DocumentConfig(allowed_extensions=frozenset({"pdf", "txt"}), max_size=100, max_total_size=250),
        ocds=OcdsConfig(),
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add(ProcurementProject(
            id=1, project_name="Office Supplies", ca_number="RM6170", lot_number="2",
            external_project_id="tender_1", external_reference_id="tender_ref_1", created_by=PRINCIPAL,
        ))
        session.add(ProcurementProject(
            id=2, project_name="Fleet", ca_number="RM6171", lot_number="1", created_by=PRINCIPAL,
        ))
        for organisation_id, (company_id, _) in ORGANISATIONS.items():
            session.add(OrganisationMapping(organisation_id=organisation_id, external_organisation_id=company_id))
        await session.commit()
    return factory


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def assessments():
    return FakeAssessments()


@pytest.fixture
def profiles():
    return FakeProfiles()


@pytest.fixture
def supplier_directory():
    return FakeSupplierDirectory()


@pytest.fixture
def criteria():
    return FakeCriteria()


@pytest.fixture
def service(db, gateway, event_config, assessments, profiles, supplier_directory, criteria) -> EventService:
    return EventService(
        db=db,
        gateway=gateway,
        config=event_config,
        assessments=assessments,
        profiles=profiles,
        supplier_directory=supplier_directory,
        criteria=criteria,
        publish_validator=PublishDatesValidator(clock=lambda: FIXED_NOW),
    )
