from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from syllabus_scanner.pipeline import (
    CourseRepository,
    CourseService,
    PipelineConfig,
    PipelineCoordinator,
    build_coordinator,
    build_repository,
)
from syllabus_scanner.pipeline.errors import (
    ApiError,
    CalendarPermissionError,
    CalendarWriteError,
    CaptureError,
    DateConversionError,
    EmptySelectionError,
    ExtractionError,
    InvalidTransitionError,
    ParsingError,
    PersistenceError,
    RecordNotFoundError,
    SyllabusScannerError,
)


@lru_cache(maxsize=1)
def get_config() -> PipelineConfig:
    return PipelineConfig.from_env()


@lru_cache(maxsize=1)
def get_repo() -> CourseRepository:
    return build_repository(get_config())


@lru_cache(maxsize=1)
def get_coordinator() -> PipelineCoordinator:
    return build_coordinator(get_config(), repository=get_repo())


@lru_cache(maxsize=1)
def get_course_service() -> CourseService:
    return CourseService(get_repo())


def to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (RecordNotFoundError, KeyError)):
        return HTTPException(status_code=404, detail=str(exc).strip("'\""))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, CalendarPermissionError):
        return HTTPException(
            status_code=403,
            detail={"message": str(exc), "settings_required": exc.settings_required},
        )
    if isinstance(exc, (ApiError, CalendarWriteError)):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=500, detail=str(exc))
    if isinstance(
        exc,
        (CaptureError, ExtractionError, ParsingError, DateConversionError, EmptySelectionError, ValueError),
    ):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, SyllabusScannerError):
        return HTTPException(status_code=400, detail=str(exc))
    raise exc
