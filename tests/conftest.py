from __future__ import annotations

import asyncio
from io import BytesIO
from typing import Dict, List, Optional, Union

import pytest
from PIL import Image

from syllabus_scanner.pipeline import (
    CalendarExportService,
    InMemoryCalendarStore,
    InMemoryCourseRepository,
    ParsedAssignment,
    ParsedSyllabus,
    PersistenceGateway,
    PipelineCoordinator,
    RawPage,
    TextExtractionService,
    TextRecognitionEngine,
)
from syllabus_scanner.pipeline.capture import detect_image_format
from syllabus_scanner.pipeline.models import AssignmentType


def png_bytes(color: str = "white", size=(16, 16), fmt: str = "PNG") -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=color).save(buf, format=fmt)
    return buf.getvalue()


def make_page(source: str, color: str = "white") -> RawPage:
    return RawPage(data=png_bytes(color), source=source)


class FakeEngine(TextRecognitionEngine):
    """
    Returns canned text per page source. Pages whose bytes are not an image
    fail the same way the real engine does.
    """

    engine_version = "fake"

    def __init__(self, texts: Dict[str, Union[str, Exception]]):
        self.texts = texts
        self.seen: List[str] = []

    def recognize(self, page: RawPage) -> str:
        detect_image_format(page.data)
        self.seen.append(page.source)
        outcome = self.texts.get(page.source, "")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeParser:
    def __init__(self, results: List[Union[ParsedSyllabus, Exception]], gate: Optional[asyncio.Event] = None):
        self.results = list(results)
        self.gate = gate
        self.calls: List[str] = []

    async def parse(self, text: str) -> ParsedSyllabus:
        self.calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def syllabus(*items, course_name: str = "Intro to AI", course_code: str = "CAP 4630") -> ParsedSyllabus:
    return ParsedSyllabus(
        course_name=course_name,
        course_code=course_code,
        assignments=tuple(ParsedAssignment(title=t, date=d, type=AssignmentType(k)) for t, d, k in items),
    )


@pytest.fixture
def repo():
    return InMemoryCourseRepository()


@pytest.fixture
def calendar_store():
    return InMemoryCalendarStore()


def build_pipeline(repo, parser, texts=None, calendar_store=None, storage=None) -> PipelineCoordinator:
    engine = FakeEngine(texts if texts is not None else {"p1.png": "Midterm Exam March 5"})
    store = calendar_store or InMemoryCalendarStore()
    return PipelineCoordinator(
        extractor=TextExtractionService(engine),
        parser=parser,
        gateway=PersistenceGateway(repo),
        calendar=CalendarExportService(store, repo),
        storage=storage,
    )
