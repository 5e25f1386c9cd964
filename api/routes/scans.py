from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from syllabus_scanner.pipeline import (
    AddAssignment,
    DeleteAssignment,
    EditAssignment,
    EditCourse,
    PipelineCoordinator,
    RawPage,
    ToggleSelection,
    render_pdf_pages,
)
from syllabus_scanner.pipeline.errors import SyllabusScannerError

from api.dependencies import get_coordinator, to_http_error
from api.serializers import commit_payload, export_payload, state_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scans", tags=["scans"])


class AssignmentEdit(BaseModel):
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None


class AssignmentCreate(BaseModel):
    title: str = "New Assignment"
    date: Optional[str] = None
    time: Optional[str] = None
    type: str = "HW"


class CourseEdit(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class ExportRequest(BaseModel):
    allow_access: Optional[bool] = None


def _pdf_to_pages(payload: bytes) -> List[RawPage]:
    tmp_fd, tmp_path_str = tempfile.mkstemp(suffix=".pdf")
    tmp_path = Path(tmp_path_str)
    with os.fdopen(tmp_fd, "wb") as tmp_file:
        tmp_file.write(payload)
    try:
        return render_pdf_pages(tmp_path)
    finally:
        tmp_path.unlink(missing_ok=True)


async def _finish(coordinator: PipelineCoordinator, task: asyncio.Task) -> dict:
    # A cancel from another request ends the task early; report whatever state results.
    await asyncio.wait({task})
    if not task.cancelled() and task.exception() is not None:
        # The coordinator has already moved to a retryable Loading state for this crash.
        logger.debug("Loading task ended with %r", task.exception())
    return state_payload(coordinator)


@router.get("/state")
async def get_state(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    return state_payload(coordinator)


@router.post("")
async def start_scan(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    try:
        coordinator.start_scan()
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return state_payload(coordinator)


@router.post("/pages")
async def upload_pages(
    files: List[UploadFile] = File(...),
    coordinator: PipelineCoordinator = Depends(get_coordinator),
):
    pages: List[RawPage] = []
    for upload in files:
        payload = await upload.read()
        if not payload:
            raise HTTPException(status_code=400, detail=f"Uploaded file is empty: {upload.filename}")
        if upload.content_type == "application/pdf":
            try:
                pages.extend(await asyncio.to_thread(_pdf_to_pages, payload))
            except SyllabusScannerError as exc:
                raise to_http_error(exc) from exc
        else:
            pages.append(RawPage(data=payload, source=upload.filename))

    try:
        task = coordinator.confirm_pages(pages)
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return await _finish(coordinator, task)


@router.post("/retry")
async def retry(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    try:
        task = coordinator.retry()
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return await _finish(coordinator, task)


# region Review
def _apply(coordinator: PipelineCoordinator, command) -> dict:
    try:
        coordinator.apply(command)
    except (SyllabusScannerError, KeyError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return state_payload(coordinator)


@router.post("/review/assignments/{assignment_id}/toggle")
async def toggle_assignment(assignment_id: str, coordinator: PipelineCoordinator = Depends(get_coordinator)):
    return _apply(coordinator, ToggleSelection(assignment_id))


@router.patch("/review/assignments/{assignment_id}")
async def edit_assignment(
    assignment_id: str,
    body: AssignmentEdit,
    coordinator: PipelineCoordinator = Depends(get_coordinator),
):
    return _apply(coordinator, EditAssignment(assignment_id=assignment_id, **body.model_dump()))


@router.post("/review/assignments")
async def add_assignment(body: AssignmentCreate, coordinator: PipelineCoordinator = Depends(get_coordinator)):
    return _apply(coordinator, AddAssignment(**body.model_dump()))


@router.delete("/review/assignments/{assignment_id}")
async def delete_assignment(assignment_id: str, coordinator: PipelineCoordinator = Depends(get_coordinator)):
    return _apply(coordinator, DeleteAssignment(assignment_id))


@router.patch("/review/course")
async def edit_course(body: CourseEdit, coordinator: PipelineCoordinator = Depends(get_coordinator)):
    return _apply(coordinator, EditCourse(**body.model_dump()))


@router.post("/review/cancel")
async def cancel_review(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    try:
        coordinator.cancel_review()
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return state_payload(coordinator)


@router.post("/commit")
async def commit(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    try:
        result = coordinator.commit()
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return {"result": commit_payload(result), **state_payload(coordinator)}


# endregion


@router.post("/export")
async def export_to_calendar(
    body: Optional[ExportRequest] = None,
    coordinator: PipelineCoordinator = Depends(get_coordinator),
):
    # The client answers the consent prompt up front; only used while undetermined.
    consent = None
    if body and body.allow_access is not None:
        answer = body.allow_access
        consent = lambda: answer  # noqa: E731
    try:
        result = coordinator.export_to_calendar(consent=consent)
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return export_payload(result)


@router.post("/dismiss")
async def dismiss(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    try:
        coordinator.dismiss()
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return state_payload(coordinator)


@router.post("/cancel")
async def cancel(coordinator: PipelineCoordinator = Depends(get_coordinator)):
    coordinator.cancel()
    return state_payload(coordinator)
