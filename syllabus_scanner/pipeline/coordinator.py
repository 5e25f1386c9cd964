"""
Navigation state machine for the scan -> parse -> review -> save -> export
pipeline.

`transition` is a pure function over frozen state/event dataclasses.
`PipelineCoordinator` owns the current state, the review staging and the
single in-flight loading task, and is the only writer of the course store.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union

from .calendar_export import CalendarExportService
from .engine import TextExtractionService
from .errors import (
    CalendarPermissionError,
    CaptureError,
    EmptySelectionError,
    ExtractionError,
    InvalidTransitionError,
    ParsingError,
    PersistenceError,
)
from .gateway import PersistenceGateway
from .models import CalendarAuthorization, CommitOutcome, CommitResult, CourseRecord, ExportResult, ParsedSyllabus, RawPage, new_id
from .parser import SyllabusParsingService
from .staging import ReviewStaging, StagingCommand
from .storage import LocalScanStorage

logger = logging.getLogger(__name__)


# region States
@dataclass(frozen=True)
class Home:
    pass


@dataclass(frozen=True)
class Scanning:
    pass


@dataclass(frozen=True)
class Loading:
    pages: Tuple[RawPage, ...]
    error: Optional[str] = None

    @property
    def can_retry(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class Reviewing:
    syllabus: ParsedSyllabus
    error: Optional[str] = None
    failed_titles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Success:
    count: int
    course: CourseRecord = field(compare=False)
    skipped_titles: Tuple[str, ...] = ()


PipelineState = Union[Home, Scanning, Loading, Reviewing, Success]

# endregion


# region Events
@dataclass(frozen=True)
class StartScan:
    pass


@dataclass(frozen=True)
class ConfirmPages:
    pages: Tuple[RawPage, ...]


@dataclass(frozen=True)
class ParseSucceeded:
    syllabus: ParsedSyllabus


@dataclass(frozen=True)
class ParseFailed:
    message: str


@dataclass(frozen=True)
class RetryLoading:
    pass


@dataclass(frozen=True)
class CommitSucceeded:
    count: int
    course: CourseRecord = field(compare=False)
    skipped_titles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CommitFailed:
    message: str
    failed_titles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CancelReview:
    pass


@dataclass(frozen=True)
class Dismiss:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


PipelineEvent = Union[
    StartScan,
    ConfirmPages,
    ParseSucceeded,
    ParseFailed,
    RetryLoading,
    CommitSucceeded,
    CommitFailed,
    CancelReview,
    Dismiss,
    Cancel,
]

# endregion


def _reject(state: PipelineState, event: PipelineEvent) -> InvalidTransitionError:
    return InvalidTransitionError(f"{type(event).__name__} is not allowed in {type(state).__name__}")


def transition(state: PipelineState, event: PipelineEvent) -> PipelineState:
    if isinstance(event, Cancel):
        return Home()

    if isinstance(state, Home):
        if isinstance(event, StartScan):
            return Scanning()
    elif isinstance(state, Scanning):
        if isinstance(event, ConfirmPages):
            if not event.pages:
                raise InvalidTransitionError("At least one page is required to start loading")
            return Loading(pages=tuple(event.pages))
    elif isinstance(state, Loading):
        if isinstance(event, ParseSucceeded) and state.error is None:
            return Reviewing(syllabus=event.syllabus)
        if isinstance(event, ParseFailed) and state.error is None:
            return Loading(pages=state.pages, error=event.message)
        if isinstance(event, RetryLoading) and state.can_retry:
            return Loading(pages=state.pages)
    elif isinstance(state, Reviewing):
        if isinstance(event, CommitSucceeded):
            if event.count < 1:
                raise InvalidTransitionError("A successful commit saves at least one assignment")
            return Success(count=event.count, course=event.course, skipped_titles=tuple(event.skipped_titles))
        if isinstance(event, CommitFailed):
            return Reviewing(syllabus=state.syllabus, error=event.message, failed_titles=tuple(event.failed_titles))
        if isinstance(event, CancelReview):
            return Home()
    elif isinstance(state, Success):
        if isinstance(event, Dismiss):
            return Home()

    raise _reject(state, event)


class PipelineCoordinator:
    """
    Drives one pipeline run at a time. OCR and network work happen in the
    loading task; their results are applied here only if the run that
    produced them is still current.
    """

    def __init__(
        self,
        extractor: TextExtractionService,
        parser: SyllabusParsingService,
        gateway: PersistenceGateway,
        calendar: Optional[CalendarExportService] = None,
        storage: Optional[LocalScanStorage] = None,
    ):
        self.extractor = extractor
        self.parser = parser
        self.gateway = gateway
        self.calendar = calendar
        self.storage = storage

        self.state: PipelineState = Home()
        self.staging: Optional[ReviewStaging] = None
        self.scan_id: Optional[str] = None
        self._session = 0
        self._task: Optional[asyncio.Task] = None

    def _dispatch(self, event: PipelineEvent) -> PipelineState:
        previous = self.state
        self.state = transition(self.state, event)
        logger.debug("%s --%s--> %s", type(previous).__name__, type(event).__name__, type(self.state).__name__)
        return self.state

    @property
    def is_busy(self) -> bool:
        return self._task is not None and not self._task.done()

    # region Scan + load
    def start_scan(self) -> PipelineState:
        return self._dispatch(StartScan())

    def confirm_pages(self, pages) -> asyncio.Task:
        """
        Accept the captured pages and start extraction + parsing. Must be
        called from a running event loop; returns the loading task.
        """
        self._dispatch(ConfirmPages(pages=tuple(pages)))
        self._session += 1
        self.scan_id = new_id()
        if self.storage:
            self._keep_artifact(self.storage.save_pages, self.state.pages)
        return self._start_loading()

    def retry(self) -> asyncio.Task:
        self._dispatch(RetryLoading())
        self._session += 1
        return self._start_loading()

    def _start_loading(self) -> asyncio.Task:
        state = self.state
        assert isinstance(state, Loading)
        self._task = asyncio.create_task(self._run_loading(self._session, state.pages))
        return self._task

    def _keep_artifact(self, write, payload) -> None:
        # Scan artifacts are a debugging aid; a failed write never blocks the run.
        try:
            write(self.scan_id, payload)
        except OSError as exc:
            logger.warning("Could not keep scan artifact for %s: %s", self.scan_id, exc)

    def _is_current(self, session: int) -> bool:
        return session == self._session and isinstance(self.state, Loading)

    async def _run_loading(self, session: int, pages: Tuple[RawPage, ...]) -> None:
        try:
            text = await self.extractor.extract(pages)
            if not self._is_current(session):
                logger.info("Dropping OCR result for abandoned scan session %s", session)
                return
            if self.storage and self.scan_id:
                self._keep_artifact(self.storage.write_extracted_text, text)

            syllabus = await self.parser.parse(text)
        except (CaptureError, ExtractionError, ParsingError) as exc:
            if not self._is_current(session):
                logger.info("Ignoring failure from abandoned scan session %s: %s", session, exc)
                return
            logger.warning("Scan session %s failed: %s", session, exc)
            self._dispatch(ParseFailed(message=str(exc)))
            return
        except Exception as exc:  # noqa: BLE001
            if self._is_current(session):
                logger.exception("Scan session %s crashed", session)
                self._dispatch(ParseFailed(message=f"Something went wrong: {exc}"))
            raise

        if not self._is_current(session):
            logger.info("Dropping parse result for abandoned scan session %s", session)
            return
        if self.storage and self.scan_id:
            self._keep_artifact(self.storage.write_parse_output, syllabus)
        self._dispatch(ParseSucceeded(syllabus=syllabus))
        self.staging = ReviewStaging.from_syllabus(syllabus)

    # endregion

    # region Review
    def _require_staging(self) -> ReviewStaging:
        if not isinstance(self.state, Reviewing) or self.staging is None:
            raise InvalidTransitionError(f"No review in progress ({type(self.state).__name__})")
        return self.staging

    def apply(self, command: StagingCommand):
        return self._require_staging().apply(command)

    def commit(self) -> CommitResult:
        staging = self._require_staging()
        if staging.selected_count == 0:
            raise EmptySelectionError("Select at least one assignment before saving")

        try:
            result = self.gateway.commit(staging.course, staging.selected_assignments)
        except PersistenceError as exc:
            logger.error("Saving %s failed: %s", staging.course.name, exc)
            self._dispatch(CommitFailed(message=str(exc)))
            raise

        if result.outcome == CommitOutcome.FAILED:
            self._dispatch(
                CommitFailed(
                    message="None of the selected assignments had a valid date",
                    failed_titles=tuple(result.failed_titles),
                )
            )
            return result

        self._dispatch(
            CommitSucceeded(
                count=result.saved_count,
                course=result.course,
                skipped_titles=tuple(result.failed_titles),
            )
        )
        self.staging = None
        return result

    def cancel_review(self) -> PipelineState:
        self._dispatch(CancelReview())
        self.staging = None
        return self.state

    # endregion

    # region Success
    def export_to_calendar(self, consent: Optional[Callable[[], bool]] = None) -> ExportResult:
        """
        Export the saved course. `consent` answers the permission prompt for
        this call only; without it the store's own prompt is used.
        """
        if not isinstance(self.state, Success):
            raise InvalidTransitionError(f"Nothing to export in {type(self.state).__name__}")
        if self.calendar is None:
            raise CalendarPermissionError("Calendar export is not configured")

        if not self.calendar.request_access(consent=consent):
            status = self.calendar.authorization_status()
            raise CalendarPermissionError(
                "Calendar access is off. Enable it in system settings to export assignments.",
                settings_required=status in (CalendarAuthorization.DENIED, CalendarAuthorization.RESTRICTED),
            )
        return self.calendar.export(self.state.course)

    def dismiss(self) -> PipelineState:
        return self._dispatch(Dismiss())

    # endregion

    def cancel(self) -> PipelineState:
        """
        Return to Home from anywhere. In-flight work is cancelled and its
        result, should it still arrive, is ignored.
        """
        self._session += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.staging = None
        return self._dispatch(Cancel())
