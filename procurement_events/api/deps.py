from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from procurement_events.core.config import settings
from procurement_events.core.logging_config import logger
from procurement_events.db.database import get_db
from procurement_events.services.event_service import EventService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


async def verify_token(token: str = Depends(oauth2_scheme)):

    if token != settings.API_TOKEN:
        logger.error("Invalid token provided")
        raise HTTPException(status_code=401, detail="Invalid or missing token")
    logger.debug("Token verified successfully")
    return token


async def get_principal(x_principal: str = Header(..., alias="X-Principal")) -> str:
    # Principal extraction from the bearer credential happens upstream
    return x_principal


async def get_event_service(request: Request, db: AsyncSession = Depends(get_db)) -> EventService:
    state = request.app.state
    collaborators = getattr(state, "collaborators", None)
    if collaborators is None:
        logger.error("Event collaborators are not configured on the application")
        raise HTTPException(status_code=503, detail="Service not configured")
    return EventService(
        db=db,
        gateway=state.gateway,
        config=state.event_config,
        assessments=collaborators.assessments,
        profiles=collaborators.profiles,
        supplier_directory=collaborators.supplier_directory,
        criteria=collaborators.criteria,
    )
