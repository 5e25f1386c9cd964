import pytest

from syllabus_scanner.pipeline import load_pages, render_pdf_pages
from syllabus_scanner.pipeline.capture import detect_image_format
from syllabus_scanner.pipeline.errors import CaptureError, InvalidImageError

from conftest import png_bytes


def test_detect_image_format():
    assert detect_image_format(png_bytes()) == "png"
    assert detect_image_format(png_bytes(fmt="JPEG")) == "jpeg"
    with pytest.raises(InvalidImageError):
        detect_image_format(b"")
    with pytest.raises(InvalidImageError):
        detect_image_format(b"definitely not an image")


@pytest.mark.asyncio
async def test_load_pages_keeps_input_order(tmp_path):
    paths = []
    for i, color in enumerate(["red", "green", "blue", "white", "black"]):
        path = tmp_path / f"page{i}.png"
        path.write_bytes(png_bytes(color))
        paths.append(path)

    pages = await load_pages(paths, max_concurrency=2)

    assert [p.source for p in pages] == [f"page{i}.png" for i in range(5)]
    assert pages[3].data == paths[3].read_bytes()


@pytest.mark.asyncio
async def test_load_pages_reports_every_bad_file(tmp_path):
    good = tmp_path / "good.png"
    good.write_bytes(png_bytes())
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"broken")
    missing = tmp_path / "missing.png"

    with pytest.raises(InvalidImageError) as excinfo:
        await load_pages([good, bad, missing])

    assert excinfo.value.page_indexes == [1, 2]
    assert "bad.png" in str(excinfo.value) and "missing.png" in str(excinfo.value)


@pytest.mark.asyncio
async def test_load_pages_rejects_zero_concurrency(tmp_path):
    with pytest.raises(ValueError):
        await load_pages([], max_concurrency=0)


def test_render_pdf_pages(tmp_path):
    fitz = pytest.importorskip("fitz")
    pdf_path = tmp_path / "syllabus.pdf"
    doc = fitz.open()
    for text in ["Week 1: Quiz 1 Feb 3", "Week 8: Midterm Mar 5"]:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    doc.save(pdf_path)
    doc.close()

    pages = render_pdf_pages(pdf_path, dpi=72)

    assert [p.source for p in pages] == ["syllabus-p1.png", "syllabus-p2.png"]
    assert detect_image_format(pages[0].data) == "png"


def test_render_pdf_pages_missing_file(tmp_path):
    with pytest.raises(CaptureError):
        render_pdf_pages(tmp_path / "missing.pdf")
