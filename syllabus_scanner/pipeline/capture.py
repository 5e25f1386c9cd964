"""
Page import helpers: photos from disk and pages of imported PDF syllabi.

Photos are decoded concurrently, but only the collector coroutine writes to
the result list, and pages come back in the order they were given.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError

from .errors import CaptureError, InvalidImageError
from .models import RawPage

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def detect_image_format(data: bytes) -> str:
    """
    Decode the header of an image and return its format name (lowercase).
    Raises InvalidImageError for bytes Pillow cannot identify.
    """
    if not data:
        raise InvalidImageError("Page image is empty")
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise InvalidImageError("Could not process the image. Please try again.") from exc
    return (fmt or "png").lower()


def _read_page(path: Path) -> RawPage:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise CaptureError(f"Could not read {path}: {exc}") from exc
    detect_image_format(data)
    return RawPage(data=data, source=path.name)


async def load_pages(paths: Sequence[PathLike], max_concurrency: int = 4) -> List[RawPage]:
    """
    Load and validate page images. Raises InvalidImageError naming every
    undecodable file once all loads have finished.
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    semaphore = asyncio.Semaphore(max_concurrency)
    queue: "asyncio.Queue[Optional[Tuple[int, Union[RawPage, Exception]]]]" = asyncio.Queue()
    slots: List[Optional[RawPage]] = [None] * len(paths)
    failures: List[Tuple[int, str]] = []

    async def worker(index: int, path: Path) -> None:
        async with semaphore:
            try:
                page = await asyncio.to_thread(_read_page, path)
            except CaptureError as exc:
                await queue.put((index, exc))
                return
        await queue.put((index, page))

    async def collector() -> None:
        while True:
            item = await queue.get()
            if item is None:
                return
            index, outcome = item
            if isinstance(outcome, Exception):
                failures.append((index, str(outcome)))
            else:
                slots[index] = outcome

    collector_task = asyncio.create_task(collector())
    try:
        await asyncio.gather(*(worker(i, Path(p)) for i, p in enumerate(paths)))
    finally:
        await queue.put(None)
        await collector_task

    if failures:
        failures.sort()
        names = ", ".join(Path(paths[i]).name for i, _ in failures)
        raise InvalidImageError(f"Could not process: {names}", page_indexes=[i for i, _ in failures])

    logger.info("Loaded %d page image(s)", len(slots))
    return [page for page in slots if page is not None]


def render_pdf_pages(pdf_path: Path, dpi: int = 200) -> List[RawPage]:
    """
    Render every page of an imported PDF to a PNG page image.
    """
    import fitz  # PyMuPDF

    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise CaptureError(f"PDF not found: {pdf_path}")

    try:
        doc = fitz.open(pdf_path)
    except RuntimeError as exc:  # fitz.FileDataError subclasses RuntimeError
        raise InvalidImageError(f"Could not open {pdf_path.name}") from exc

    pages: List[RawPage] = []
    try:
        if doc.page_count == 0:
            raise CaptureError(f"PDF has zero pages: {pdf_path}")
        scale = dpi / 72.0
        for idx in range(doc.page_count):
            page = doc.load_page(idx)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale))
            pages.append(RawPage(data=pix.tobytes("png"), source=f"{pdf_path.stem}-p{idx + 1}.png"))
    finally:
        doc.close()
    return pages
