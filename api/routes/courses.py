from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from syllabus_scanner.pipeline import CourseService, schedule
from syllabus_scanner.pipeline.errors import SyllabusScannerError

from api.dependencies import get_course_service, to_http_error
from api.serializers import assignment_payload, course_payload

router = APIRouter(prefix="/courses", tags=["courses"])


class NewAssignment(BaseModel):
    title: str
    date: str
    time: Optional[str] = None
    type: str = "HW"


class AssignmentChanges(BaseModel):
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None
    is_completed: Optional[bool] = None


@router.get("")
def list_courses(service: CourseService = Depends(get_course_service)):
    today = date.today()
    return [course_payload(c, today) for c in service.list_courses()]


@router.get("/schedule")
def day_schedule(day: Optional[date] = None, service: CourseService = Depends(get_course_service)):
    target = day or date.today()
    due = schedule.assignments_due_on(service.list_courses(), target)
    return {"day": target.isoformat(), "assignments": [assignment_payload(a, date.today()) for a in due]}


@router.get("/{course_id}")
def get_course(course_id: str, service: CourseService = Depends(get_course_service)):
    try:
        course = service.get_course(course_id)
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    today = date.today()
    payload = course_payload(course, today)
    payload["upcoming"] = [a.id for a in schedule.upcoming_assignments(course)]
    payload["completed"] = [a.id for a in schedule.completed_assignments(course)]
    return payload


@router.delete("/{course_id}")
def delete_course(course_id: str, service: CourseService = Depends(get_course_service)):
    try:
        service.delete_course(course_id)
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return {"status": "deleted", "course_id": course_id}


@router.post("/{course_id}/assignments")
def add_assignment(course_id: str, body: NewAssignment, service: CourseService = Depends(get_course_service)):
    try:
        assignment = service.add_assignment(course_id, body.title, body.date, body.time, body.type)
    except (SyllabusScannerError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return assignment_payload(assignment, date.today())


@router.patch("/assignments/{assignment_id}")
def edit_assignment(assignment_id: str, body: AssignmentChanges, service: CourseService = Depends(get_course_service)):
    try:
        assignment = service.edit_assignment(assignment_id, **body.model_dump())
    except (SyllabusScannerError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return assignment_payload(assignment, date.today())


@router.post("/assignments/{assignment_id}/toggle")
def toggle_completion(assignment_id: str, service: CourseService = Depends(get_course_service)):
    try:
        assignment = service.toggle_completion(assignment_id)
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return assignment_payload(assignment, date.today())


@router.delete("/assignments/{assignment_id}")
def delete_assignment(assignment_id: str, service: CourseService = Depends(get_course_service)):
    try:
        service.delete_assignment(assignment_id)
    except SyllabusScannerError as exc:
        raise to_http_error(exc) from exc
    return {"status": "deleted", "assignment_id": assignment_id}
