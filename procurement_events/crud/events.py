from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from procurement_events.models.events import ProcurementEvent, SupplierSelection
from procurement_events.crud.retry import retry_on_db_error
from procurement_events.core.logging_config import logger


@retry_on_db_error()
async def get_events_by_project_id(db: AsyncSession, project_id: int) -> list[ProcurementEvent]:
    result = await db.execute(
        select(ProcurementEvent)
        .filter(ProcurementEvent.project_id == project_id)
        .order_by(ProcurementEvent.id)
    )
    return list(result.scalars().all())


@retry_on_db_error()
async def get_event_by_project_and_id(db: AsyncSession, project_id: int, event_pk: int) -> ProcurementEvent | None:
    result = await db.execute(
        select(ProcurementEvent).filter(
            ProcurementEvent.project_id == project_id, ProcurementEvent.id == event_pk
        )
    )
    event = result.scalars().first()
    if not event:
        logger.warning(f"Event {event_pk} not found on project {project_id}")
    return event


async def save_event(db: AsyncSession, event: ProcurementEvent) -> ProcurementEvent:
    try:
        db.add(event)
        await db.commit()
        return event
    except Exception as e:
        logger.error(f"Error saving event {event.id} of project {event.project_id}: {str(e)}")
        await db.rollback()
        raise


async def clear_supplier_selections(db: AsyncSession, event: ProcurementEvent) -> None:
    """Removes every selection of the event; flushed at once so re-adding the same organisation is safe."""
    event.supplier_selections.clear()
    await db.flush()


async def delete_supplier_selection(db: AsyncSession, event: ProcurementEvent, selection: SupplierSelection) -> None:
    try:
        event.supplier_selections.remove(selection)
        await db.delete(selection)
        await db.commit()
    except Exception as e:
        logger.error(f"Error deleting supplier selection {selection.id} from event {event.id}: {str(e)}")
        await db.rollback()
        raise
