from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, List

from .dates import combine_due_date
from .errors import DateConversionError, EmptySelectionError
from .models import (
    AssignmentRecord,
    AssignmentType,
    CommitOutcome,
    CommitResult,
    CourseDraft,
    CourseRecord,
    ReviewAssignment,
    new_id,
)
from .repository import CourseRepository

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """
    Turns reviewed staging rows into a durable course. Rows whose date cannot
    be converted are skipped and reported by title; a course is only written
    when at least one assignment survives.
    """

    def __init__(self, repository: CourseRepository, now: Callable[[], datetime] = datetime.now):
        self.repo = repository
        self.now = now

    def commit(self, course_info: CourseDraft, selected: Iterable[ReviewAssignment]) -> CommitResult:
        rows = [row for row in selected if row.is_selected]
        if not rows:
            raise EmptySelectionError("Select at least one assignment before saving")

        course = CourseRecord(
            id=new_id(),
            name=course_info.name,
            code=course_info.code,
            icon=course_info.icon,
            color=course_info.color,
            created_at=self.now(),
        )

        failed_titles: List[str] = []
        for row in rows:
            try:
                course.assignments.append(self._to_record(course.id, row))
            except DateConversionError as exc:
                logger.warning("Skipping assignment: %s", exc)
                failed_titles.append(row.title)

        if not course.assignments:
            logger.warning("No assignment of %r had a usable date; course not saved", course.name)
            return CommitResult(outcome=CommitOutcome.FAILED, saved_count=0, failed_titles=failed_titles)

        # PersistenceError propagates; the repository rolls back the insert.
        self.repo.save_course(course)

        saved_count = len(course.assignments)
        outcome = CommitOutcome.PARTIAL if failed_titles else CommitOutcome.SAVED
        logger.info(
            "Saved course %s with %d assignment(s), %d skipped",
            course.name,
            saved_count,
            len(failed_titles),
        )
        return CommitResult(
            outcome=outcome,
            saved_count=saved_count,
            failed_titles=failed_titles,
            course=course,
        )

    def _to_record(self, course_id: str, row: ReviewAssignment) -> AssignmentRecord:
        try:
            due_date = combine_due_date(row.date, row.time)
        except (ValueError, TypeError) as exc:
            raise DateConversionError(row.title, f"{row.date} {row.time or ''}".strip()) from exc
        return AssignmentRecord(
            id=new_id(),
            course_id=course_id,
            title=row.title,
            due_date=due_date,
            type=AssignmentType.from_display(row.type),
        )
