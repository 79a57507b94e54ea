from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from intake.api.routes import batches, conversions, health, security
from intake.config.settings import Settings
from intake.pipeline.service import IntakeService, build_service


def create_app(service: IntakeService | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the HTTP binding; a ready-made service can be injected for tests."""
    intake_service = service or build_service(settings or Settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.intake_service.shutdown(wait=False)

    app = FastAPI(title="File Intake", version="0.1.0", lifespan=lifespan)
    app.state.intake_service = intake_service
    app.include_router(health.router)
    app.include_router(batches.router)
    app.include_router(security.router)
    app.include_router(conversions.router)
    return app
