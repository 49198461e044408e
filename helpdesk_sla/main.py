import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from helpdesk_sla.api.routes import calendars, sla
from helpdesk_sla.config import settings
from helpdesk_sla.exceptions import ConfigurationError, TicketNotFoundError

logger = logging.getLogger(__name__)


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.warning("SLA configuration error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.message, "context": exc.details},
    )


async def ticket_not_found_handler(request: Request, exc: TicketNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Helpdesk SLA", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(TicketNotFoundError, ticket_not_found_handler)

    @app.get("/api/v1/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(sla.router, prefix="/api/v1/sla", tags=["sla"])
    app.include_router(calendars.router, prefix="/api/v1/calendars", tags=["calendars"])

    return app


app = create_app()
