from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Optional

from syllabus_scanner.pipeline import (
    AssignmentRecord,
    CommitResult,
    CourseRecord,
    ExportResult,
    Home,
    Loading,
    PipelineCoordinator,
    Reviewing,
    Scanning,
    Success,
)
from syllabus_scanner.pipeline import schedule


def assignment_payload(assignment: AssignmentRecord, today: Optional[date] = None) -> Dict[str, Any]:
    payload = {
        "id": assignment.id,
        "course_id": assignment.course_id,
        "title": assignment.title,
        "due_date": assignment.due_date.isoformat(),
        "type": assignment.type.value,
        "type_display": assignment.type.display_name,
        "is_completed": assignment.is_completed,
        "calendar_event_id": assignment.calendar_event_id,
    }
    if today is not None:
        payload["due_label"] = schedule.due_label(assignment, today)
        payload["urgency"] = schedule.urgency(assignment, today)
    return payload


def course_payload(course: CourseRecord, today: Optional[date] = None) -> Dict[str, Any]:
    payload = {
        "id": course.id,
        "name": course.name,
        "code": course.code,
        "icon": course.icon,
        "color": course.color,
        "created_at": course.created_at.isoformat() if course.created_at else None,
        "assignments": [assignment_payload(a, today) for a in course.assignments],
    }
    if today is not None:
        upcoming = schedule.next_assignment(course, today)
        payload["remaining_count"] = schedule.remaining_count(course)
        payload["next_assignment"] = assignment_payload(upcoming, today) if upcoming else None
    return payload


def state_payload(coordinator: PipelineCoordinator) -> Dict[str, Any]:
    state = coordinator.state
    if isinstance(state, Home):
        return {"state": "home"}
    if isinstance(state, Scanning):
        return {"state": "scanning"}
    if isinstance(state, Loading):
        return {
            "state": "loading",
            "page_count": len(state.pages),
            "error": state.error,
            "can_retry": state.can_retry,
            "busy": coordinator.is_busy,
        }
    if isinstance(state, Reviewing):
        return {
            "state": "reviewing",
            "error": state.error,
            "failed_titles": list(state.failed_titles),
            "review": coordinator.staging.to_dict() if coordinator.staging else None,
        }
    if isinstance(state, Success):
        return {
            "state": "success",
            "count": state.count,
            "skipped_titles": list(state.skipped_titles),
            "course": course_payload(state.course),
        }
    raise TypeError(f"Unknown pipeline state: {type(state).__name__}")


def commit_payload(result: CommitResult) -> Dict[str, Any]:
    return {
        "outcome": result.outcome.value,
        "saved_count": result.saved_count,
        "failed_titles": list(result.failed_titles),
        "course_id": result.course.id if result.course else None,
    }


def export_payload(result: ExportResult) -> Dict[str, Any]:
    return asdict(result)
