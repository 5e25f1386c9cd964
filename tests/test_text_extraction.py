import pytest

from syllabus_scanner.pipeline import InvalidImagePolicy, RawPage, TextExtractionService
from syllabus_scanner.pipeline.errors import ExtractionError, InvalidImageError, NoTextFoundError

from conftest import FakeEngine, make_page


@pytest.mark.asyncio
async def test_pages_joined_in_capture_order():
    engine = FakeEngine({"p1.png": "Week 1: Intro", "p2.png": "Week 2: Search", "p3.png": "Final Exam"})
    service = TextExtractionService(engine)

    text = await service.extract([make_page("p1.png"), make_page("p2.png"), make_page("p3.png")])

    assert text == "Week 1: Intro\n\nWeek 2: Search\n\nFinal Exam"
    assert engine.seen == ["p1.png", "p2.png", "p3.png"]


@pytest.mark.asyncio
async def test_blank_pages_are_left_out_of_join():
    engine = FakeEngine({"p1.png": "Quiz 1 Feb 3", "p2.png": "   ", "p3.png": "Quiz 2 Feb 10"})
    service = TextExtractionService(engine)

    text = await service.extract([make_page("p1.png"), make_page("p2.png"), make_page("p3.png")])

    assert text == "Quiz 1 Feb 3\n\nQuiz 2 Feb 10"


@pytest.mark.asyncio
async def test_no_text_on_any_page_raises():
    service = TextExtractionService(FakeEngine({"p1.png": "", "p2.png": "\n"}))
    with pytest.raises(NoTextFoundError):
        await service.extract([make_page("p1.png"), make_page("p2.png")])


@pytest.mark.asyncio
async def test_skip_policy_drops_undecodable_page():
    engine = FakeEngine({"p1.png": "Homework 1 due Jan 20", "p3.png": "Homework 2 due Jan 27"})
    service = TextExtractionService(engine, invalid_image_policy=InvalidImagePolicy.SKIP)
    pages = [make_page("p1.png"), RawPage(data=b"not an image", source="p2.png"), make_page("p3.png")]

    text = await service.extract(pages)

    assert text == "Homework 1 due Jan 20\n\nHomework 2 due Jan 27"


@pytest.mark.asyncio
async def test_skip_policy_with_every_page_invalid_raises():
    service = TextExtractionService(FakeEngine({}), invalid_image_policy=InvalidImagePolicy.SKIP)
    with pytest.raises(InvalidImageError) as excinfo:
        await service.extract([RawPage(data=b"", source="a"), RawPage(data=b"garbage", source="b")])
    assert excinfo.value.page_indexes == [0, 1]


@pytest.mark.asyncio
async def test_abort_policy_reports_the_bad_page():
    engine = FakeEngine({"p1.png": "Project proposal"})
    service = TextExtractionService(engine, invalid_image_policy=InvalidImagePolicy.ABORT)
    pages = [make_page("p1.png"), RawPage(data=b"\x00\x01", source="p2.png")]

    with pytest.raises(InvalidImageError) as excinfo:
        await service.extract(pages)
    assert excinfo.value.page_indexes == [1]


@pytest.mark.asyncio
async def test_engine_failure_is_an_extraction_error():
    engine = FakeEngine({"p1.png": ExtractionError("Recognition failed for p1.png")})
    service = TextExtractionService(engine)
    with pytest.raises(ExtractionError):
        await service.extract([make_page("p1.png")])
