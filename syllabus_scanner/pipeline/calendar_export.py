from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from .errors import CalendarPermissionError, CalendarWriteError, PersistenceError
from .models import CalendarAuthorization, CalendarEvent, CourseRecord, ExportResult, new_id
from .repository import CourseRepository

logger = logging.getLogger(__name__)

REMINDER_OFFSET_SECONDS = -24 * 60 * 60
EVENT_NOTES = "Added by Syllabus Scanner"


class CalendarStore:
    """
    Platform calendar boundary: authorization state, the one-time consent
    prompt, and event writes into a named calendar.
    """

    def authorization_status(self) -> CalendarAuthorization:
        raise NotImplementedError

    def request_access(self, consent: Optional[Callable[[], bool]] = None) -> bool:
        """
        Show the consent prompt, or use `consent` as the answer when given.
        Only called in the NOT_DETERMINED state.
        """
        raise NotImplementedError

    def default_calendar(self) -> Optional[str]:
        raise NotImplementedError

    def save_event(self, calendar: str, event: CalendarEvent) -> str:
        """Write one event and return its identifier. Raises CalendarWriteError."""
        raise NotImplementedError


class InMemoryCalendarStore(CalendarStore):
    def __init__(
        self,
        status: CalendarAuthorization = CalendarAuthorization.AUTHORIZED,
        grant_on_request: bool = True,
        calendar: Optional[str] = "Calendar",
        fail_titles: Optional[Set[str]] = None,
    ):
        self.status = status
        self.grant_on_request = grant_on_request
        self.calendar = calendar
        self.fail_titles = set(fail_titles or ())
        self.events: Dict[str, CalendarEvent] = {}
        self.prompt_count = 0

    def authorization_status(self) -> CalendarAuthorization:
        return self.status

    def request_access(self, consent: Optional[Callable[[], bool]] = None) -> bool:
        self.prompt_count += 1
        granted = bool(consent()) if consent is not None else self.grant_on_request
        self.status = CalendarAuthorization.AUTHORIZED if granted else CalendarAuthorization.DENIED
        return granted

    def default_calendar(self) -> Optional[str]:
        return self.calendar

    def save_event(self, calendar: str, event: CalendarEvent) -> str:
        if any(title in event.title for title in self.fail_titles):
            raise CalendarWriteError(f"Could not save {event.title!r}")
        event_id = new_id()
        self.events[event_id] = event
        return event_id


def _ics_escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _ics_duration(seconds: int) -> str:
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    hours, rem = divmod(seconds, 3600)
    minutes = rem // 60
    out = f"{sign}PT{hours}H"
    if minutes:
        out += f"{minutes}M"
    return out


def render_ics(uid: str, event: CalendarEvent) -> str:
    """
    Render a single VEVENT calendar. All-day events use DATE values; the ICS
    end date is exclusive, so a one-day event ends the following day.
    """
    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Syllabus Scanner//EN",
        "CALSCALE:GREGORIAN",
        "BEGIN:VEVENT",
        f"UID:{_ics_escape(uid)}",
        f"DTSTAMP:{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}",
    ]
    if event.all_day:
        end_exclusive = event.end.date() + timedelta(days=1)
        lines.append(f"DTSTART;VALUE=DATE:{event.start.strftime('%Y%m%d')}")
        lines.append(f"DTEND;VALUE=DATE:{end_exclusive.strftime('%Y%m%d')}")
    else:
        lines.append(f"DTSTART:{event.start.strftime('%Y%m%dT%H%M%S')}")
        lines.append(f"DTEND:{event.end.strftime('%Y%m%dT%H%M%S')}")
    lines.append(f"SUMMARY:{_ics_escape(event.title)}")
    if event.notes:
        lines.append(f"DESCRIPTION:{_ics_escape(event.notes)}")
    lines.extend(
        [
            "BEGIN:VALARM",
            "ACTION:DISPLAY",
            f"DESCRIPTION:{_ics_escape(event.title)}",
            f"TRIGGER:{_ics_duration(event.alarm_offset_seconds)}",
            "END:VALARM",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )
    # ICS standard uses CRLF
    return "\r\n".join(lines) + "\r\n"


class IcsCalendarStore(CalendarStore):
    """
    Directory-backed calendar: one .ics file per event under
    <root>/<calendar>/, the layout vdir-based clients sync. The consent
    answer is remembered in <root>/authorization.json.
    """

    def __init__(self, root: Path, consent: Optional[Callable[[], bool]] = None, calendar_name: str = "Syllabus"):
        self.root = Path(root)
        self.consent = consent
        self.calendar_name = calendar_name

    @property
    def authorization_path(self) -> Path:
        return self.root / "authorization.json"

    def calendar_dir(self, calendar: str) -> Path:
        return self.root / calendar

    def event_path(self, calendar: str, event_id: str) -> Path:
        return self.calendar_dir(calendar) / f"{event_id}.ics"

    def authorization_status(self) -> CalendarAuthorization:
        existing = self.root if self.root.exists() else self.root.parent
        if existing.exists() and not os.access(existing, os.W_OK):
            return CalendarAuthorization.RESTRICTED
        if not self.authorization_path.exists():
            return CalendarAuthorization.NOT_DETERMINED
        try:
            data = json.loads(self.authorization_path.read_text(encoding="utf-8"))
            return CalendarAuthorization(data.get("status"))
        except (OSError, ValueError):
            logger.warning("Unreadable calendar authorization file at %s", self.authorization_path)
            return CalendarAuthorization.NOT_DETERMINED

    def request_access(self, consent: Optional[Callable[[], bool]] = None) -> bool:
        prompt = consent or self.consent
        if prompt is None:
            raise CalendarPermissionError("No consent prompt is available for calendar access")
        granted = bool(prompt())
        status = CalendarAuthorization.AUTHORIZED if granted else CalendarAuthorization.DENIED
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self.authorization_path.write_text(json.dumps({"status": status.value}), encoding="utf-8")
        except OSError as exc:
            raise CalendarPermissionError(f"Could not record calendar authorization: {exc}") from exc
        return granted

    def default_calendar(self) -> Optional[str]:
        return self.calendar_name

    def save_event(self, calendar: str, event: CalendarEvent) -> str:
        event_id = new_id()
        target = self.event_path(calendar, event_id)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(render_ics(event_id, event), encoding="utf-8", newline="")
        except OSError as exc:
            raise CalendarWriteError(f"Could not write {target}: {exc}") from exc
        return event_id


class CalendarExportService:
    """
    Mirrors a course's assignments into the platform calendar. Assignments
    that already carry a calendar_event_id are counted as exported and not
    written again.
    """

    def __init__(self, store: CalendarStore, repository: CourseRepository):
        self.store = store
        self.repo = repository

    def authorization_status(self) -> CalendarAuthorization:
        return self.store.authorization_status()

    def request_access(self, consent: Optional[Callable[[], bool]] = None) -> bool:
        status = self.store.authorization_status()
        if status == CalendarAuthorization.AUTHORIZED:
            return True
        if status in (CalendarAuthorization.DENIED, CalendarAuthorization.RESTRICTED):
            return False
        try:
            return self.store.request_access(consent=consent)
        except CalendarPermissionError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise CalendarPermissionError(f"Calendar permission request failed: {exc}") from exc

    def build_event(self, course: CourseRecord, title: str, due_date: datetime) -> CalendarEvent:
        day = due_date.replace(hour=0, minute=0, second=0, microsecond=0)
        return CalendarEvent(
            title=f"{title} ({course.name})",
            start=day,
            end=day,
            all_day=True,
            alarm_offset_seconds=REMINDER_OFFSET_SECONDS,
            notes=EVENT_NOTES,
        )

    def export(self, course: CourseRecord) -> ExportResult:
        calendar = self.store.default_calendar()
        if not calendar:
            logger.error("No default calendar available; nothing exported for %s", course.name)
            return ExportResult(success_count=0, failed_titles=[a.title for a in course.assignments])

        result = ExportResult(success_count=0)
        for assignment in course.assignments:
            if assignment.calendar_event_id:
                result.success_count += 1
                continue

            event = self.build_event(course, assignment.title, assignment.due_date)
            try:
                event_id = self.store.save_event(calendar, event)
                self.repo.set_calendar_event_id(assignment.id, event_id)
            except (CalendarWriteError, PersistenceError) as exc:
                logger.warning("Failed to export %s: %s", assignment.title, exc)
                result.failed_titles.append(assignment.title)
                continue

            assignment.calendar_event_id = event_id
            result.success_count += 1
            result.written += 1

        logger.info(
            "Exported %s: %d ok (%d new), %d failed",
            course.name,
            result.success_count,
            result.written,
            len(result.failed_titles),
        )
        return result
