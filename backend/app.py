import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.application import TicketLifecycleEngine
from backend.core.logging import configure_logging, get_logger
from backend.infrastructure import EntityRepository, InMemoryEntityRepository
from backend.infrastructure.sql import SqlEntityRepository
from backend.routes import health, reports, tickets
from backend.workers.reports import ReportJobOrchestrator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.reports.shutdown(wait=False)


def _build_entity_repository() -> EntityRepository:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return SqlEntityRepository.from_url(database_url, echo=os.getenv("DATABASE_ECHO") == "1")
    logger.warning("entity_store_in_memory", reason="DATABASE_URL not set")
    return InMemoryEntityRepository()


def create_app(
    *,
    entities: EntityRepository | None = None,
    orchestrator: ReportJobOrchestrator | None = None,
) -> FastAPI:
    configure_logging()
    app = FastAPI(title="Operations Backend API", version="0.1.0", lifespan=lifespan)

    entities = entities if entities is not None else _build_entity_repository()
    app.state.entities = entities
    app.state.tickets = TicketLifecycleEngine(entities)
    app.state.reports = orchestrator or ReportJobOrchestrator()

    api_prefix = os.getenv("API_PREFIX", "").strip().rstrip("/")
    if api_prefix and not api_prefix.startswith("/"):
        api_prefix = f"/{api_prefix}"
    app.state.api_prefix = api_prefix

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_errors(exc)},
        )

    app.include_router(tickets.router, prefix=api_prefix)
    app.include_router(reports.router, prefix=api_prefix)
    app.include_router(health.router, prefix=api_prefix)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Operations Backend API",
                "docs": "/docs",
                "health": f"{api_prefix}/healthcheck",
            }
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


app = create_app()
