from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from .dates import days_until
from .models import AssignmentRecord, CourseRecord

URGENT = "urgent"
WARNING = "warning"
NEUTRAL = "neutral"


def upcoming_assignments(course: CourseRecord) -> List[AssignmentRecord]:
    return sorted((a for a in course.assignments if not a.is_completed), key=lambda a: a.due_date)


def completed_assignments(course: CourseRecord) -> List[AssignmentRecord]:
    return sorted((a for a in course.assignments if a.is_completed), key=lambda a: a.due_date)


def remaining_count(course: CourseRecord) -> int:
    return sum(1 for a in course.assignments if not a.is_completed)


def next_assignment(course: CourseRecord, today: date) -> Optional[AssignmentRecord]:
    """
    Soonest incomplete assignment due today or later. Overdue work is not
    "next".
    """
    candidates = [a for a in upcoming_assignments(course) if days_until(a.due_date, today) >= 0]
    return candidates[0] if candidates else None


def assignments_due_on(courses: Iterable[CourseRecord], day: date) -> List[AssignmentRecord]:
    due = [a for course in courses for a in course.assignments if a.due_date.date() == day]
    return sorted(due, key=lambda a: a.due_date)


def due_label(assignment: AssignmentRecord, today: date) -> str:
    # Whole days between calendar dates; time of day is ignored.
    days = days_until(assignment.due_date, today)
    if days == 0:
        return "Due today"
    if days == 1:
        return "in 1 day"
    if 1 < days < 7:
        return f"in {days} days"
    if 7 <= days < 14:
        return "in 1 week"
    if 14 <= days < 105:
        return f"in {days // 7} weeks"
    return f"{assignment.due_date:%b} {assignment.due_date.day}"


def urgency(assignment: AssignmentRecord, today: date) -> str:
    days = days_until(assignment.due_date, today)
    if days <= 2:
        return URGENT
    if days <= 7:
        return WARNING
    return NEUTRAL
