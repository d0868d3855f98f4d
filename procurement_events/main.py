from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from procurement_events.api.v1 import routes
from procurement_events.core.config import EventConfig, settings, load_event_config
from procurement_events.core.errors import ProcurementEventError
from procurement_events.core.logging_config import logger
from procurement_events.services.collaborators import Collaborators
from procurement_events.services.rfx_gateway import RfxGateway


def create_app(collaborators: Optional[Collaborators] = None, event_config: Optional[EventConfig] = None,
               gateway: Optional[RfxGateway] = None) -> FastAPI:
    if event_config is None:
        settings.validate()

    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Principal"],
    )

    # Загружается один раз при старте
    app.state.event_config = event_config or load_event_config(settings)
    app.state.gateway = gateway or RfxGateway(app.state.event_config.remote)
    app.state.collaborators = collaborators

    @app.exception_handler(ProcurementEventError)
    async def procurement_event_error_handler(request: Request, exc: ProcurementEventError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"errors": [{"status": exc.status_code, "title": exc.title, "detail": str(exc)}]},
        )

    app.include_router(routes.router)
    return app


app = create_app()
