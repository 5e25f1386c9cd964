from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple
import uuid


DEFAULT_COURSE_ICON = "book.closed.fill"
DEFAULT_COURSE_COLOR = "BrandPrimary"
COURSE_COLORS = (
    "BrandPrimary",
    "red",
    "green",
    "orange",
    "blue",
    "pink",
    "purple",
    "black",
    "gray",
    "yellow",
)


def new_id() -> str:
    return str(uuid.uuid4())


class AssignmentType(str, Enum):
    EXAM = "exam"
    QUIZ = "quiz"
    HOMEWORK = "homework"
    PROJECT = "project"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_display(cls, value: str) -> "AssignmentType":
        """
        Accepts either the display form ("HW", "Exam") or the stored form
        ("homework", "exam"). Unknown values fall back to homework.
        """
        normalized = (value or "").strip().lower()
        if normalized == "hw":
            return cls.HOMEWORK
        for member in cls:
            if member.value == normalized:
                return member
        return cls.HOMEWORK


_DISPLAY_NAMES = {
    AssignmentType.EXAM: "Exam",
    AssignmentType.QUIZ: "Quiz",
    AssignmentType.HOMEWORK: "HW",
    AssignmentType.PROJECT: "Project",
}


class InvalidImagePolicy(str, Enum):
    ABORT = "abort"
    SKIP = "skip"


class CommitOutcome(str, Enum):
    SAVED = "saved"
    PARTIAL = "partial"
    FAILED = "failed"


class CalendarAuthorization(str, Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"


@dataclass(frozen=True)
class RawPage:
    data: bytes
    source: Optional[str] = None


@dataclass(frozen=True)
class ParsedAssignment:
    title: str
    date: str  # "YYYY-MM-DD"
    type: AssignmentType = AssignmentType.HOMEWORK


@dataclass(frozen=True)
class ParsedSyllabus:
    course_name: str
    course_code: str
    assignments: Tuple[ParsedAssignment, ...] = ()


@dataclass
class ReviewAssignment:
    id: str
    title: str
    date: str
    type: str  # display form: Exam / Quiz / HW / Project
    is_selected: bool = True
    time: Optional[str] = None  # "HH:MM", None means midnight
    is_manual: bool = False


@dataclass
class CourseDraft:
    name: str
    code: str
    icon: str = DEFAULT_COURSE_ICON
    color: str = DEFAULT_COURSE_COLOR


@dataclass
class AssignmentRecord:
    id: str
    course_id: str
    title: str
    due_date: datetime
    type: AssignmentType = AssignmentType.HOMEWORK
    is_completed: bool = False
    calendar_event_id: Optional[str] = None


@dataclass
class CourseRecord:
    id: str
    name: str
    code: str
    icon: str = DEFAULT_COURSE_ICON
    color: str = DEFAULT_COURSE_COLOR
    created_at: datetime = field(default_factory=datetime.now)
    assignments: List[AssignmentRecord] = field(default_factory=list)


@dataclass
class CommitResult:
    outcome: CommitOutcome
    saved_count: int
    failed_titles: List[str] = field(default_factory=list)
    course: Optional[CourseRecord] = None


@dataclass
class CalendarEvent:
    title: str
    start: datetime
    end: datetime
    all_day: bool = True
    alarm_offset_seconds: int = -86400
    notes: str = ""


@dataclass
class ExportResult:
    success_count: int
    failed_titles: List[str] = field(default_factory=list)
    written: int = 0
