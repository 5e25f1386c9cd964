from datetime import date, datetime

from syllabus_scanner.pipeline import AssignmentRecord, CourseRecord
from syllabus_scanner.pipeline import schedule

TODAY = date(2026, 1, 15)


def due(days_ahead_date, title="Task", completed=False, course_id="c1"):
    return AssignmentRecord(
        id=title,
        course_id=course_id,
        title=title,
        due_date=days_ahead_date,
        is_completed=completed,
    )


def test_due_labels():
    cases = {
        datetime(2026, 1, 15, 23, 0): "Due today",
        datetime(2026, 1, 16, 0, 0): "in 1 day",
        datetime(2026, 1, 20): "in 5 days",
        datetime(2026, 1, 22): "in 1 week",
        datetime(2026, 1, 28): "in 1 week",
        datetime(2026, 1, 29): "in 2 weeks",
        datetime(2026, 4, 29): "in 14 weeks",
        datetime(2026, 4, 30): "Apr 30",
        datetime(2026, 1, 10): "Jan 10",
    }
    for when, label in cases.items():
        assert schedule.due_label(due(when), TODAY) == label


def test_urgency_buckets():
    assert schedule.urgency(due(datetime(2026, 1, 17)), TODAY) == schedule.URGENT
    assert schedule.urgency(due(datetime(2026, 1, 14)), TODAY) == schedule.URGENT
    assert schedule.urgency(due(datetime(2026, 1, 18)), TODAY) == schedule.WARNING
    assert schedule.urgency(due(datetime(2026, 1, 22)), TODAY) == schedule.WARNING
    assert schedule.urgency(due(datetime(2026, 1, 23)), TODAY) == schedule.NEUTRAL


def test_next_assignment_skips_overdue_and_completed():
    course = CourseRecord(
        id="c1",
        name="AI",
        code="N/A",
        assignments=[
            due(datetime(2026, 1, 10), "Overdue"),
            due(datetime(2026, 1, 16), "Done", completed=True),
            due(datetime(2026, 2, 1), "Later"),
            due(datetime(2026, 1, 15, 18, 0), "Tonight"),
        ],
    )
    assert schedule.next_assignment(course, TODAY).title == "Tonight"
    assert schedule.remaining_count(course) == 3


def test_next_assignment_none_when_everything_done():
    course = CourseRecord(id="c1", name="AI", code="N/A", assignments=[due(datetime(2026, 2, 1), completed=True)])
    assert schedule.next_assignment(course, TODAY) is None


def test_assignments_due_on_across_courses():
    a = CourseRecord(id="a", name="A", code="A", assignments=[due(datetime(2026, 1, 20, 12), "A noon", course_id="a")])
    b = CourseRecord(
        id="b",
        name="B",
        code="B",
        assignments=[
            due(datetime(2026, 1, 20, 9), "B morning", course_id="b"),
            due(datetime(2026, 1, 21), "B next day", course_id="b"),
        ],
    )
    titles = [x.title for x in schedule.assignments_due_on([a, b], date(2026, 1, 20))]
    assert titles == ["B morning", "A noon"]
