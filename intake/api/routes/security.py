from typing import Any

from fastapi import APIRouter, Depends, Query

from intake.api.dependencies import get_intake_service
from intake.pipeline.service import IntakeService

router = APIRouter(prefix="/security", tags=["security"])


@router.get("/events", summary="Most recent security events, newest first")
def list_events(
    limit: int = Query(100, ge=1, le=1000),
    service: IntakeService = Depends(get_intake_service),
) -> dict[str, Any]:
    return {"events": [e.to_payload() for e in service.get_security_events(limit)]}


@router.get("/stats", summary="Aggregated scan statistics")
def stats(service: IntakeService = Depends(get_intake_service)) -> dict[str, int]:
    return service.get_security_stats()
