from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, StrictStr, field_validator

from .models import AssignmentType, ParsedAssignment, ParsedSyllabus


class AssignmentPayload(BaseModel):
    title: StrictStr
    date: StrictStr
    type: AssignmentType = AssignmentType.HOMEWORK

    @field_validator("type", mode="before")
    @classmethod
    def fallback_to_homework(cls, v: Any) -> str:
        if isinstance(v, str):
            normalized = v.strip().lower()
            for member in AssignmentType:
                if member.value == normalized:
                    return member.value
        return AssignmentType.HOMEWORK.value


class SyllabusPayload(BaseModel):
    course_name: StrictStr
    course_code: StrictStr
    assignments: List[AssignmentPayload]

    def to_parsed(self) -> ParsedSyllabus:
        return ParsedSyllabus(
            course_name=self.course_name,
            course_code=self.course_code,
            assignments=tuple(
                ParsedAssignment(title=a.title, date=a.date, type=a.type) for a in self.assignments
            ),
        )
