from typing import Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from procurement_events.models.organisation_mappings import OrganisationMapping
from procurement_events.crud.retry import retry_on_db_error


@retry_on_db_error()
async def get_mapping_by_organisation_id(db: AsyncSession, organisation_id: str) -> OrganisationMapping | None:
    result = await db.execute(
        select(OrganisationMapping).filter(OrganisationMapping.organisation_id == organisation_id)
    )
    return result.scalars().first()


@retry_on_db_error()
async def get_mapping_by_external_organisation_id(
    db: AsyncSession, external_organisation_id: int
) -> OrganisationMapping | None:
    result = await db.execute(
        select(OrganisationMapping).filter(OrganisationMapping.external_organisation_id == external_organisation_id)
    )
    return result.scalars().first()


@retry_on_db_error()
async def get_mappings_by_organisation_ids(db: AsyncSession, organisation_ids: Iterable[str]) -> list[OrganisationMapping]:
    ids = set(organisation_ids)
    if not ids:
        return []
    result = await db.execute(
        select(OrganisationMapping).filter(OrganisationMapping.organisation_id.in_(ids))
    )
    return list(result.scalars().all())
