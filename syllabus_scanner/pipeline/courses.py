from __future__ import annotations

import logging
from typing import List, Optional

from .dates import combine_due_date
from .errors import DateConversionError, RecordNotFoundError
from .models import AssignmentRecord, AssignmentType, CourseRecord, new_id
from .repository import CourseRepository

logger = logging.getLogger(__name__)


class CourseService:
    """
    Edits to courses after they were saved: adding, editing, completing and
    removing assignments, and deleting whole courses.
    """

    def __init__(self, repository: CourseRepository):
        self.repo = repository

    def list_courses(self) -> List[CourseRecord]:
        return self.repo.list_courses()

    def get_course(self, course_id: str) -> CourseRecord:
        course = self.repo.get_course(course_id)
        if not course:
            raise RecordNotFoundError(f"Course not found: {course_id}")
        return course

    def delete_course(self, course_id: str) -> None:
        if not self.repo.delete_course(course_id):
            raise RecordNotFoundError(f"Course not found: {course_id}")
        logger.info("Deleted course %s", course_id)

    def get_assignment(self, assignment_id: str) -> AssignmentRecord:
        assignment = self.repo.get_assignment(assignment_id)
        if not assignment:
            raise RecordNotFoundError(f"Assignment not found: {assignment_id}")
        return assignment

    def add_assignment(
        self,
        course_id: str,
        title: str,
        date: str,
        time: Optional[str] = None,
        type: str = AssignmentType.HOMEWORK.display_name,
    ) -> AssignmentRecord:
        self.get_course(course_id)
        title = (title or "").strip()
        if not title:
            raise ValueError("title must not be blank")

        assignment = AssignmentRecord(
            id=new_id(),
            course_id=course_id,
            title=title,
            due_date=_due_date(title, date, time),
            type=AssignmentType.from_display(type),
        )
        self.repo.add_assignment(assignment)
        return assignment

    def edit_assignment(
        self,
        assignment_id: str,
        title: Optional[str] = None,
        date: Optional[str] = None,
        time: Optional[str] = None,
        type: Optional[str] = None,
        is_completed: Optional[bool] = None,
    ) -> AssignmentRecord:
        """
        Apply the given changes. A new date or time replaces the whole due
        timestamp: a missing half is taken from the current due date.
        """
        assignment = self.get_assignment(assignment_id)
        if title is not None:
            if not title.strip():
                raise ValueError("title must not be blank")
            assignment.title = title.strip()
        if date is not None or time is not None:
            date = date if date is not None else assignment.due_date.strftime("%Y-%m-%d")
            time = time if time is not None else assignment.due_date.strftime("%H:%M")
            assignment.due_date = _due_date(assignment.title, date, time)
        if type is not None:
            assignment.type = AssignmentType.from_display(type)
        if is_completed is not None:
            assignment.is_completed = is_completed

        self.repo.update_assignment(assignment)
        return assignment

    def toggle_completion(self, assignment_id: str) -> AssignmentRecord:
        assignment = self.get_assignment(assignment_id)
        return self.edit_assignment(assignment_id, is_completed=not assignment.is_completed)

    def delete_assignment(self, assignment_id: str) -> None:
        if not self.repo.delete_assignment(assignment_id):
            raise RecordNotFoundError(f"Assignment not found: {assignment_id}")


def _due_date(title: str, date: str, time: Optional[str]):
    try:
        return combine_due_date(date, time)
    except (ValueError, TypeError) as exc:
        raise DateConversionError(title, f"{date} {time or ''}".strip()) from exc
