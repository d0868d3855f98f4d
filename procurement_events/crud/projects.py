from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from procurement_events.models.projects import ProcurementProject
from procurement_events.crud.retry import retry_on_db_error
from procurement_events.core.logging_config import logger


@retry_on_db_error()
async def get_project_by_id(db: AsyncSession, project_id: int) -> ProcurementProject | None:
    result = await db.execute(select(ProcurementProject).filter(ProcurementProject.id == project_id))
    project = result.scalars().first()
    if not project:
        logger.warning(f"Project {project_id} not found")
    return project
