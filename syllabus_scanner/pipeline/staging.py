from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

from .dates import format_date
from .models import (
    COURSE_COLORS,
    AssignmentType,
    CourseDraft,
    ParsedSyllabus,
    ReviewAssignment,
    new_id,
)


@dataclass(frozen=True)
class ToggleSelection:
    assignment_id: str


@dataclass(frozen=True)
class EditAssignment:
    assignment_id: str
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class AddAssignment:
    title: str = "New Assignment"
    date: Optional[str] = None
    time: Optional[str] = None
    type: str = AssignmentType.HOMEWORK.display_name


@dataclass(frozen=True)
class DeleteAssignment:
    assignment_id: str


@dataclass(frozen=True)
class EditCourse:
    name: Optional[str] = None
    code: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


StagingCommand = Union[ToggleSelection, EditAssignment, AddAssignment, DeleteAssignment, EditCourse]


class ReviewStaging:
    """
    Editable, pre-commit copy of a parsed syllabus. Rows keep the model's
    order; manual rows are appended. Nothing here touches the durable store.
    """

    def __init__(
        self,
        course: CourseDraft,
        assignments: Optional[List[ReviewAssignment]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.course = course
        self.assignments: List[ReviewAssignment] = list(assignments or [])
        self.today = today

    @classmethod
    def from_syllabus(cls, syllabus: ParsedSyllabus, today: Callable[[], date] = date.today) -> "ReviewStaging":
        rows = [
            ReviewAssignment(
                id=new_id(),
                title=parsed.title,
                date=parsed.date,
                type=parsed.type.display_name,
                is_selected=True,
            )
            for parsed in syllabus.assignments
        ]
        course = CourseDraft(name=syllabus.course_name, code=syllabus.course_code)
        return cls(course=course, assignments=rows, today=today)

    # region derived
    @property
    def selected_assignments(self) -> List[ReviewAssignment]:
        return [a for a in self.assignments if a.is_selected]

    @property
    def selected_count(self) -> int:
        return len(self.selected_assignments)

    @property
    def is_empty(self) -> bool:
        return not self.assignments

    def get(self, assignment_id: str) -> ReviewAssignment:
        for assignment in self.assignments:
            if assignment.id == assignment_id:
                return assignment
        raise KeyError(f"Staged assignment not found: {assignment_id}")

    # endregion

    # region commands
    def apply(self, command: StagingCommand) -> Optional[ReviewAssignment]:
        if isinstance(command, ToggleSelection):
            row = self.get(command.assignment_id)
            row.is_selected = not row.is_selected
            return row
        if isinstance(command, EditAssignment):
            return self._edit(command)
        if isinstance(command, AddAssignment):
            return self._add(command)
        if isinstance(command, DeleteAssignment):
            return self._delete(command)
        if isinstance(command, EditCourse):
            self._edit_course(command)
            return None
        raise TypeError(f"Unsupported staging command: {type(command).__name__}")

    def _edit(self, command: EditAssignment) -> ReviewAssignment:
        row = self.get(command.assignment_id)
        if command.title is not None:
            title = command.title.strip()
            if not title:
                raise ValueError("title must not be blank")
            row.title = title
        if command.date is not None:
            row.date = command.date.strip()
        if command.time is not None:
            row.time = command.time.strip() or None
        if command.type is not None:
            row.type = AssignmentType.from_display(command.type).display_name
        return row

    def _add(self, command: AddAssignment) -> ReviewAssignment:
        row = ReviewAssignment(
            id=new_id(),
            title=command.title.strip() or "New Assignment",
            date=command.date or format_date(self.today()),
            type=AssignmentType.from_display(command.type).display_name,
            is_selected=True,
            time=command.time,
            is_manual=True,
        )
        self.assignments.append(row)
        return row

    def _delete(self, command: DeleteAssignment) -> ReviewAssignment:
        row = self.get(command.assignment_id)
        if row.is_manual:
            self.assignments = [a for a in self.assignments if a.id != row.id]
        else:
            row.is_selected = False
        return row

    def _edit_course(self, command: EditCourse) -> None:
        if command.name is not None:
            name = command.name.strip()
            if not name:
                raise ValueError("course name must not be blank")
            self.course.name = name
        if command.code is not None:
            self.course.code = command.code.strip()
        if command.icon is not None:
            self.course.icon = command.icon
        if command.color is not None:
            if command.color.lower() not in {c.lower() for c in COURSE_COLORS}:
                raise ValueError(f"Unknown course color: {command.color}")
            self.course.color = command.color

    # endregion

    def to_dict(self) -> Dict[str, Any]:
        return {
            "course": asdict(self.course),
            "assignments": [asdict(a) for a in self.assignments],
            "selected_count": self.selected_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], today: Callable[[], date] = date.today) -> "ReviewStaging":
        course = CourseDraft(**data["course"])
        rows = [ReviewAssignment(**row) for row in data.get("assignments", [])]
        return cls(course=course, assignments=rows, today=today)
