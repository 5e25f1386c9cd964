from datetime import date, datetime

import pytest

from syllabus_scanner.pipeline import AssignmentType, CourseDraft, CourseService, PersistenceGateway, ReviewAssignment
from syllabus_scanner.pipeline import schedule
from syllabus_scanner.pipeline.errors import DateConversionError, RecordNotFoundError


def saved_course(repo):
    rows = [
        ReviewAssignment(id="r1", title="Midterm Exam", date="2026-03-05", type="Exam"),
        ReviewAssignment(id="r2", title="Homework 1", date="2026-01-20", type="HW", time="23:59"),
        ReviewAssignment(id="r3", title="Quiz 1", date="2026-01-16", type="Quiz"),
    ]
    return PersistenceGateway(repo).commit(CourseDraft(name="Intro to AI", code="CAP 4630"), rows).course


def test_add_assignment_to_saved_course(repo):
    course = saved_course(repo)
    service = CourseService(repo)

    added = service.add_assignment(course.id, "Project Proposal", "2026-02-14", "17:00", "Project")

    assert added.type == AssignmentType.PROJECT
    assert added.due_date == datetime(2026, 2, 14, 17, 0)
    assert len(service.get_course(course.id).assignments) == 4


def test_add_assignment_with_bad_date_raises(repo):
    course = saved_course(repo)
    with pytest.raises(DateConversionError):
        CourseService(repo).add_assignment(course.id, "Essay", "next Friday")


def test_edit_assignment_keeps_time_when_only_date_changes(repo):
    course = saved_course(repo)
    service = CourseService(repo)
    homework = course.assignments[1]

    edited = service.edit_assignment(homework.id, date="2026-01-22", type="exam")

    assert edited.due_date == datetime(2026, 1, 22, 23, 59)
    assert service.get_assignment(homework.id).type == AssignmentType.EXAM


def test_toggle_completion(repo):
    course = saved_course(repo)
    service = CourseService(repo)
    quiz = course.assignments[2]

    assert service.toggle_completion(quiz.id).is_completed is True
    assert service.toggle_completion(quiz.id).is_completed is False


def test_missing_records_raise_not_found(repo):
    service = CourseService(repo)
    with pytest.raises(RecordNotFoundError):
        service.get_course("nope")
    with pytest.raises(RecordNotFoundError):
        service.delete_assignment("nope")
    with pytest.raises(RecordNotFoundError):
        service.add_assignment("nope", "HW", "2026-01-01")


def test_delete_course(repo):
    course = saved_course(repo)
    service = CourseService(repo)
    service.delete_course(course.id)
    assert service.list_courses() == []


def test_schedule_views_over_saved_course(repo):
    course = saved_course(repo)
    service = CourseService(repo)
    service.toggle_completion(course.assignments[2].id)
    course = service.get_course(course.id)
    today = date(2026, 1, 15)

    assert [a.title for a in schedule.upcoming_assignments(course)] == ["Homework 1", "Midterm Exam"]
    assert [a.title for a in schedule.completed_assignments(course)] == ["Quiz 1"]
    assert schedule.remaining_count(course) == 2
    assert schedule.next_assignment(course, today).title == "Homework 1"
