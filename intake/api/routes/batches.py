import json
from collections.abc import Iterator
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from intake.api.dependencies import get_intake_service
from intake.api.executors import run_sync
from intake.files.models import FileSubmission
from intake.pipeline.models import IntakeOptions
from intake.pipeline.service import IntakeService
from intake.ratelimit.exceptions import RateLimitError
from intake.sessions.exceptions import SessionNotFoundError

router = APIRouter(prefix="/batches", tags=["batches"])


@router.post("", summary="Submit a batch of files", status_code=202)
async def submit_batch(
    files: list[UploadFile] = File(...),
    actor_id: str = Form(...),
    options: str | None = Form(None),
    service: IntakeService = Depends(get_intake_service),
) -> Any:
    try:
        options_payload = json.loads(options) if options else {}
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="INVALID_OPTIONS") from exc
    if not isinstance(options_payload, dict):
        raise HTTPException(status_code=400, detail="INVALID_OPTIONS")

    submissions = [
        FileSubmission.from_bytes(
            upload.filename or "upload",
            await upload.read(),
            mime_type=upload.content_type or "",
        )
        for upload in files
    ]
    try:
        session_id = await run_sync(
            service.submit_batch,
            actor_id,
            submissions,
            IntakeOptions.from_payload(options_payload),
        )
    except RateLimitError as exc:
        content: dict[str, Any] = {"detail": "RATE_LIMIT_EXCEEDED", "message": str(exc)}
        if exc.summary is not None:
            content["session"] = exc.summary.to_payload()
        return JSONResponse(status_code=429, content=content)

    return {
        "session_id": session_id,
        "files": [{"file_id": s.file_id, "name": s.name} for s in submissions],
    }


@router.get("/{session_id}", summary="Session summary")
def get_batch(
    session_id: str, service: IntakeService = Depends(get_intake_service)
) -> dict[str, Any]:
    try:
        return service.get_session_summary(session_id).to_payload()
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="SESSION_NOT_FOUND") from exc


@router.get("/{session_id}/progress", summary="Stream progress events as NDJSON")
def stream_progress(
    session_id: str,
    file_id: str = Query(...),
    service: IntakeService = Depends(get_intake_service),
) -> StreamingResponse:
    try:
        events = service.progress(session_id, file_id)
    except (SessionNotFoundError, KeyError) as exc:
        raise HTTPException(status_code=404, detail="PROGRESS_NOT_FOUND") from exc

    def ndjson() -> Iterator[str]:
        for event in events:
            yield json.dumps(event.to_payload()) + "\n"

    return StreamingResponse(ndjson(), media_type="application/x-ndjson")


@router.post("/{session_id}/files/{file_id}/withdraw", summary="Withdraw a pending file")
def withdraw_file(
    session_id: str,
    file_id: str,
    service: IntakeService = Depends(get_intake_service),
) -> dict[str, Any]:
    try:
        withdrawn = service.withdraw(session_id, file_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="FILE_NOT_FOUND") from exc
    if not withdrawn:
        raise HTTPException(status_code=409, detail="NOT_WITHDRAWABLE")
    return {"session_id": session_id, "file_id": file_id, "withdrawn": True}


@router.get("/{session_id}/security-report", summary="Security roll-up of a batch")
def get_security_report(
    session_id: str, service: IntakeService = Depends(get_intake_service)
) -> dict[str, Any]:
    try:
        return service.get_security_report(session_id).to_payload()
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="SESSION_NOT_FOUND") from exc
