"""
Scan pipeline exports.
"""

from .calendar_export import CalendarExportService, CalendarStore, IcsCalendarStore, InMemoryCalendarStore
from .capture import load_pages, render_pdf_pages
from .config import PipelineConfig, build_coordinator, build_repository
from .coordinator import (
    Home,
    Loading,
    PipelineCoordinator,
    Reviewing,
    Scanning,
    Success,
    transition,
)
from .courses import CourseService
from .engine import DoclingTextRecognitionEngine, TextExtractionService, TextRecognitionEngine
from .gateway import PersistenceGateway
from .models import (
    AssignmentRecord,
    AssignmentType,
    CalendarAuthorization,
    CommitOutcome,
    CommitResult,
    CourseDraft,
    CourseRecord,
    ExportResult,
    InvalidImagePolicy,
    ParsedAssignment,
    ParsedSyllabus,
    RawPage,
    ReviewAssignment,
)
from .parser import SyllabusParsingService
from .repository import CourseRepository, InMemoryCourseRepository, SqlAlchemyCourseRepository
from .staging import (
    AddAssignment,
    DeleteAssignment,
    EditAssignment,
    EditCourse,
    ReviewStaging,
    ToggleSelection,
)
from .storage import LocalScanStorage, StoragePaths

__all__ = [
    "AddAssignment",
    "AssignmentRecord",
    "AssignmentType",
    "CalendarAuthorization",
    "CalendarExportService",
    "CalendarStore",
    "CommitOutcome",
    "CommitResult",
    "CourseDraft",
    "CourseRecord",
    "CourseRepository",
    "CourseService",
    "DeleteAssignment",
    "DoclingTextRecognitionEngine",
    "EditAssignment",
    "EditCourse",
    "ExportResult",
    "Home",
    "IcsCalendarStore",
    "InMemoryCalendarStore",
    "InMemoryCourseRepository",
    "InvalidImagePolicy",
    "Loading",
    "LocalScanStorage",
    "ParsedAssignment",
    "ParsedSyllabus",
    "PersistenceGateway",
    "PipelineConfig",
    "PipelineCoordinator",
    "RawPage",
    "ReviewAssignment",
    "ReviewStaging",
    "Reviewing",
    "Scanning",
    "SqlAlchemyCourseRepository",
    "StoragePaths",
    "Success",
    "SyllabusParsingService",
    "TextExtractionService",
    "TextRecognitionEngine",
    "ToggleSelection",
    "build_coordinator",
    "build_repository",
    "load_pages",
    "render_pdf_pages",
    "transition",
]
