"""
Exception taxonomy for the scan pipeline.

Per-item errors (date conversion, calendar writes) are collected by the
component that raises them and reported in aggregate. Stage errors abort the
stage and leave the coordinator in a retry-capable state.
"""

from __future__ import annotations

from typing import List, Optional


class SyllabusScannerError(Exception):
    pass


class CaptureError(SyllabusScannerError):
    pass


class InvalidImageError(CaptureError):
    def __init__(self, message: str, page_indexes: Optional[List[int]] = None):
        super().__init__(message)
        self.page_indexes = list(page_indexes or [])


class ExtractionError(SyllabusScannerError):
    pass


class NoTextFoundError(ExtractionError):
    def __init__(self, message: str = "No text found in the scanned pages. Please try a clearer photo."):
        super().__init__(message)


class ParsingError(SyllabusScannerError):
    pass


class InvalidRequestError(ParsingError):
    pass


class ApiError(ParsingError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponseError(ParsingError):
    pass


class DateConversionError(SyllabusScannerError):
    def __init__(self, title: str, value: str):
        super().__init__(f"Could not convert date {value!r} for {title!r}")
        self.title = title
        self.value = value


class PersistenceError(SyllabusScannerError):
    pass


class EmptySelectionError(SyllabusScannerError):
    pass


class CalendarPermissionError(SyllabusScannerError):
    def __init__(self, message: str, settings_required: bool = False):
        super().__init__(message)
        self.settings_required = settings_required


class CalendarWriteError(SyllabusScannerError):
    pass


class InvalidTransitionError(SyllabusScannerError):
    pass


class RecordNotFoundError(PersistenceError):
    pass
