from __future__ import annotations

from copy import deepcopy
from typing import Dict, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, selectinload, sessionmaker

from .errors import PersistenceError
from .models import AssignmentRecord, AssignmentType, CourseRecord

Base = declarative_base()


class CourseModel(Base):
    __tablename__ = "courses"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    code = Column(String, nullable=False)
    icon = Column(String)
    color = Column(String)
    created_at = Column(DateTime)
    assignments = relationship(
        "AssignmentModel",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="AssignmentModel.position",
    )


class AssignmentModel(Base):
    __tablename__ = "assignments"
    id = Column(String, primary_key=True)
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, default=0)
    title = Column(String, nullable=False)
    due_date = Column(DateTime, nullable=False)
    type = Column(Enum(AssignmentType), nullable=False)
    is_completed = Column(Boolean, default=False)
    calendar_event_id = Column(String, nullable=True)
    course = relationship("CourseModel", back_populates="assignments")


class CourseRepository:
    """
    Durable store for committed courses. Courses own their assignments:
    deleting a course deletes them too.
    """

    def save_course(self, course: CourseRecord) -> None:
        """
        Insert a course together with its assignments in one transaction.
        Raises PersistenceError and leaves nothing behind on failure.
        """
        raise NotImplementedError

    def get_course(self, course_id: str) -> Optional[CourseRecord]:
        raise NotImplementedError

    def list_courses(self) -> List[CourseRecord]:
        raise NotImplementedError

    def delete_course(self, course_id: str) -> bool:
        raise NotImplementedError

    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        raise NotImplementedError

    def add_assignment(self, assignment: AssignmentRecord) -> None:
        raise NotImplementedError

    def update_assignment(self, assignment: AssignmentRecord) -> None:
        raise NotImplementedError

    def delete_assignment(self, assignment_id: str) -> bool:
        raise NotImplementedError

    def set_calendar_event_id(self, assignment_id: str, event_id: str) -> None:
        raise NotImplementedError


class InMemoryCourseRepository(CourseRepository):
    """
    Simple in-memory store for local runs and tests. Keeps copies of the
    records to avoid cross-mutation between calls.
    """

    def __init__(self):
        self.courses: Dict[str, CourseRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def _find(self, assignment_id: str) -> Optional[AssignmentRecord]:
        for course in self.courses.values():
            for assignment in course.assignments:
                if assignment.id == assignment_id:
                    return assignment
        return None

    def save_course(self, course: CourseRecord) -> None:
        if course.id in self.courses:
            raise PersistenceError(f"Course already exists: {course.id}")
        for assignment in course.assignments:
            if self._find(assignment.id):
                raise PersistenceError(f"Assignment already exists: {assignment.id}")
        self.courses[course.id] = self._clone(course)

    def get_course(self, course_id: str) -> Optional[CourseRecord]:
        course = self.courses.get(course_id)
        return self._clone(course) if course else None

    def list_courses(self) -> List[CourseRecord]:
        return [self._clone(c) for c in sorted(self.courses.values(), key=lambda c: c.created_at)]

    def delete_course(self, course_id: str) -> bool:
        return self.courses.pop(course_id, None) is not None

    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        assignment = self._find(assignment_id)
        return self._clone(assignment) if assignment else None

    def add_assignment(self, assignment: AssignmentRecord) -> None:
        course = self.courses.get(assignment.course_id)
        if not course:
            raise PersistenceError(f"Course not found: {assignment.course_id}")
        if self._find(assignment.id):
            raise PersistenceError(f"Assignment already exists: {assignment.id}")
        course.assignments.append(self._clone(assignment))

    def update_assignment(self, assignment: AssignmentRecord) -> None:
        course = self.courses.get(assignment.course_id)
        if not course:
            raise PersistenceError(f"Course not found: {assignment.course_id}")
        for idx, existing in enumerate(course.assignments):
            if existing.id == assignment.id:
                course.assignments[idx] = self._clone(assignment)
                return
        raise PersistenceError(f"Assignment not found: {assignment.id}")

    def delete_assignment(self, assignment_id: str) -> bool:
        for course in self.courses.values():
            remaining = [a for a in course.assignments if a.id != assignment_id]
            if len(remaining) != len(course.assignments):
                course.assignments = remaining
                return True
        return False

    def set_calendar_event_id(self, assignment_id: str, event_id: str) -> None:
        assignment = self._find(assignment_id)
        if not assignment:
            raise PersistenceError(f"Assignment not found: {assignment_id}")
        assignment.calendar_event_id = event_id


class SqlAlchemyCourseRepository(CourseRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def _to_assignment(self, model: AssignmentModel) -> AssignmentRecord:
        return AssignmentRecord(
            id=model.id,
            course_id=model.course_id,
            title=model.title,
            due_date=model.due_date,
            type=model.type,
            is_completed=bool(model.is_completed),
            calendar_event_id=model.calendar_event_id,
        )

    def _to_course(self, model: CourseModel) -> CourseRecord:
        return CourseRecord(
            id=model.id,
            name=model.name,
            code=model.code,
            icon=model.icon,
            color=model.color,
            created_at=model.created_at,
            assignments=[self._to_assignment(a) for a in model.assignments],
        )

    def _assignment_model(self, assignment: AssignmentRecord, position: int) -> AssignmentModel:
        return AssignmentModel(
            id=assignment.id,
            course_id=assignment.course_id,
            position=position,
            title=assignment.title,
            due_date=assignment.due_date,
            type=assignment.type,
            is_completed=assignment.is_completed,
            calendar_event_id=assignment.calendar_event_id,
        )

    # region Course operations
    def save_course(self, course: CourseRecord) -> None:
        try:
            with self._session() as session, session.begin():
                model = CourseModel(
                    id=course.id,
                    name=course.name,
                    code=course.code,
                    icon=course.icon,
                    color=course.color,
                    created_at=course.created_at,
                )
                model.assignments = [
                    self._assignment_model(a, position) for position, a in enumerate(course.assignments)
                ]
                session.add(model)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save course {course.name!r}: {exc}") from exc

    def get_course(self, course_id: str) -> Optional[CourseRecord]:
        with self._session() as session:
            stmt = select(CourseModel).where(CourseModel.id == course_id).options(selectinload(CourseModel.assignments))
            model = session.execute(stmt).scalar_one_or_none()
            return self._to_course(model) if model else None

    def list_courses(self) -> List[CourseRecord]:
        with self._session() as session:
            stmt = select(CourseModel).order_by(CourseModel.created_at).options(selectinload(CourseModel.assignments))
            return [self._to_course(m) for m in session.execute(stmt).scalars().all()]

    def delete_course(self, course_id: str) -> bool:
        try:
            with self._session() as session, session.begin():
                model = session.get(CourseModel, course_id)
                if not model:
                    return False
                session.delete(model)
                return True
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not delete course {course_id}: {exc}") from exc

    # endregion

    # region Assignment operations
    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        with self._session() as session:
            model = session.get(AssignmentModel, assignment_id)
            return self._to_assignment(model) if model else None

    def add_assignment(self, assignment: AssignmentRecord) -> None:
        try:
            with self._session() as session, session.begin():
                course = session.get(CourseModel, assignment.course_id)
                if not course:
                    raise PersistenceError(f"Course not found: {assignment.course_id}")
                course.assignments.append(self._assignment_model(assignment, len(course.assignments)))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not add assignment {assignment.title!r}: {exc}") from exc

    def update_assignment(self, assignment: AssignmentRecord) -> None:
        try:
            with self._session() as session, session.begin():
                model = session.get(AssignmentModel, assignment.id)
                if not model:
                    raise PersistenceError(f"Assignment not found: {assignment.id}")
                model.title = assignment.title
                model.due_date = assignment.due_date
                model.type = assignment.type
                model.is_completed = assignment.is_completed
                model.calendar_event_id = assignment.calendar_event_id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not update assignment {assignment.id}: {exc}") from exc

    def delete_assignment(self, assignment_id: str) -> bool:
        try:
            with self._session() as session, session.begin():
                model = session.get(AssignmentModel, assignment_id)
                if not model:
                    return False
                session.delete(model)
                return True
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not delete assignment {assignment_id}: {exc}") from exc

    def set_calendar_event_id(self, assignment_id: str, event_id: str) -> None:
        try:
            with self._session() as session, session.begin():
                model = session.get(AssignmentModel, assignment_id)
                if not model:
                    raise PersistenceError(f"Assignment not found: {assignment_id}")
                model.calendar_event_id = event_id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not store calendar event for {assignment_id}: {exc}") from exc

    # endregion
