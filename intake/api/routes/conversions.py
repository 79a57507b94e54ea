from typing import Any

from fastapi import APIRouter, Depends

from intake.api.dependencies import get_intake_service
from intake.pipeline.service import IntakeService

router = APIRouter(prefix="/conversions", tags=["conversions"])


@router.get("/stats", summary="Statistics over recent conversion jobs")
def stats(service: IntakeService = Depends(get_intake_service)) -> dict[str, Any]:
    return service.get_conversion_stats().to_payload()
