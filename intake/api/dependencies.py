"""FastAPI dependency providers for the intake service."""

from fastapi import HTTPException, Request

from intake.pipeline.service import IntakeService


def get_intake_service(request: Request) -> IntakeService:
    service = getattr(request.app.state, "intake_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="SERVICE_UNAVAILABLE")
    return service
