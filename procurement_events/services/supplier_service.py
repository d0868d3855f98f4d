from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from procurement_events.core.errors import ExternalSystemError, IllegalStateError, ResourceNotFoundError
from procurement_events.core.logging_config import logger
from procurement_events.crud.events import clear_supplier_selections, delete_supplier_selection, save_event
from procurement_events.crud.organisation_mappings import (
    get_mapping_by_external_organisation_id,
    get_mapping_by_organisation_id,
    get_mappings_by_organisation_ids,
)
from procurement_events.models.events import ProcurementEvent, SupplierSelection
from procurement_events.models.organisation_mappings import OrganisationMapping
from procurement_events.schemas.events import OrganizationReference
from procurement_events.schemas.rfx import CompanyData, OperationCode, Supplier, SuppliersList, rfx_key
from procurement_events.services.event_types import EventCategory, classify
from procurement_events.services.rfx_gateway import RfxGateway

SUPPLIER_NOT_FOUND_MSG = "Organisation id '{}' not found in organisation mappings"


class SupplierService:
    """
    Keeps the supplier list of an event in the one system that owns it.

    Assessment-backed events keep their suppliers only in the local store,
    market-facing events only on the remote platform. Placeholder events have
    no owner yet and reject every supplier operation.
    """

    def __init__(self, db: AsyncSession, gateway: RfxGateway):
        self.db = db
        self.gateway = gateway

    def _route(self, event: ProcurementEvent) -> EventCategory:
        category = classify(event.event_type)
        if category == EventCategory.PLACEHOLDER:
            raise IllegalStateError(
                f"Event {event.event_id} has no event type yet, suppliers cannot be managed"
            )
        logger.debug(f"Event {event.event_id} of type {event.event_type}: suppliers held in {category.value} store")
        return category

    async def resolve_mappings(self, organisation_ids: Iterable[str]) -> List[OrganisationMapping]:
        """Mappings in the order the ids were given; fails listing every id without a mapping."""
        ordered_ids = list(dict.fromkeys(organisation_ids))
        mappings = await get_mappings_by_organisation_ids(self.db, ordered_ids)
        by_org_id = {m.organisation_id: m for m in mappings}
        missing = [org_id for org_id in ordered_ids if org_id not in by_org_id]
        if missing:
            logger.warning(f"Organisation mappings missing for {missing}")
            raise ResourceNotFoundError(
                "The following suppliers are not present in the Organisation Mappings, "
                f"so unable to add them: {missing}"
            )
        return [by_org_id[org_id] for org_id in ordered_ids]

    async def get_suppliers(self, event: ProcurementEvent) -> List[OrganizationReference]:
        if self._route(event) == EventCategory.ASSESSMENT:
            # Display names are not available locally
            return [
                OrganizationReference(id=str(s.organisation_mapping.organisation_id))
                for s in event.supplier_selections
            ]

        rfx = await self.gateway.get_rfx(event.external_event_id)
        orgs = []
        for supplier in rfx.suppliers:
            if supplier.company_data is None or supplier.company_data.id is None:
                logger.error(f"Rfx {event.external_event_id} lists a supplier without company data")
                raise ExternalSystemError(f"Rfx '{event.external_event_id}' lists a supplier without company data")
            company_id = supplier.company_data.id
            mapping = await get_mapping_by_external_organisation_id(self.db, company_id)
            if not mapping:
                raise ResourceNotFoundError(SUPPLIER_NOT_FOUND_MSG.format(company_id))
            orgs.append(OrganizationReference(id=str(mapping.organisation_id), name=supplier.company_data.name))
        return orgs

    async def add_suppliers(self, event: ProcurementEvent, organisation_refs: List[OrganizationReference],
                            overwrite: bool, principal: str) -> List[OrganizationReference]:
        mappings = await self.resolve_mappings(ref.id for ref in organisation_refs)

        if self._route(event) == EventCategory.ASSESSMENT:
            await self.add_suppliers_to_local_store(event, mappings, overwrite, principal)
        else:
            await self.add_suppliers_to_remote(event, mappings, overwrite)
        return organisation_refs

    async def add_suppliers_to_local_store(self, event: ProcurementEvent, mappings: List[OrganisationMapping],
                                           overwrite: bool, principal: str) -> ProcurementEvent:
        if overwrite:
            await clear_supplier_selections(self.db, event)

        now = datetime.now(timezone.utc)
        selected = {s.organisation_mapping.organisation_id for s in event.supplier_selections}
        for mapping in mappings:
            if mapping.organisation_id in selected:
                continue
            logger.debug(f"Creating new SupplierSelection record for organisation [{mapping.organisation_id}]")
            event.supplier_selections.append(
                SupplierSelection(organisation_mapping=mapping, created_at=now, created_by=principal)
            )
            selected.add(mapping.organisation_id)

        event.updated_at = now
        event.updated_by = principal
        return await save_event(self.db, event)

    async def add_suppliers_to_remote(self, event: ProcurementEvent, mappings: List[OrganisationMapping],
                                      overwrite: bool) -> None:
        operation_code = OperationCode.UPDATE_RESET if overwrite else OperationCode.CREATEUPDATE
        rfx = rfx_key(event.external_event_id, event.external_reference_id)
        rfx.suppliers_list = SuppliersList(
            supplier=[Supplier(company_data=CompanyData(id=m.external_organisation_id)) for m in mappings]
        )
        await self.gateway.create_update_rfx(rfx, operation_code)

    async def delete_supplier(self, event: ProcurementEvent, organisation_id: str, principal: str) -> None:
        mapping = await get_mapping_by_organisation_id(self.db, organisation_id)
        if not mapping:
            raise ResourceNotFoundError(SUPPLIER_NOT_FOUND_MSG.format(organisation_id))

        if self._route(event) == EventCategory.ASSESSMENT:
            await self._delete_supplier_from_local_store(event, mapping, principal)
        else:
            await self._delete_supplier_from_remote(event, mapping)

    async def _delete_supplier_from_local_store(self, event: ProcurementEvent, mapping: OrganisationMapping,
                                                principal: str) -> None:
        selection = next(
            (s for s in event.supplier_selections
             if s.organisation_mapping.organisation_id == mapping.organisation_id),
            None,
        )
        if selection is None:
            raise ResourceNotFoundError(
                f"Supplier '{mapping.organisation_id}' is not selected on event {event.event_id}"
            )
        event.updated_at = datetime.now(timezone.utc)
        event.updated_by = principal
        await delete_supplier_selection(self.db, event, selection)

    async def _delete_supplier_from_remote(self, event: ProcurementEvent, mapping: OrganisationMapping) -> None:
        # No delete primitive remotely: replace the whole list minus the supplier
        existing = await self.gateway.get_rfx(event.external_event_id)
        current = [s for s in existing.suppliers if s.company_data is not None and s.company_data.id is not None]
        remaining = [s for s in current if s.company_data.id != mapping.external_organisation_id]
        if len(remaining) == len(current):
            raise ResourceNotFoundError(
                f"Supplier '{mapping.organisation_id}' is not on event {event.event_id}"
            )
        rfx = rfx_key(event.external_event_id, event.external_reference_id)
        rfx.suppliers_list = SuppliersList(
            supplier=[Supplier(company_data=CompanyData(id=s.company_data.id)) for s in remaining]
        )
        await self.gateway.create_update_rfx(rfx, OperationCode.UPDATE_RESET)
        logger.info(f"Supplier {mapping.organisation_id} removed from Rfx {event.external_event_id}")
