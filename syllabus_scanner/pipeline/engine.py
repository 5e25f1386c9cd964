from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence

from .capture import detect_image_format
from .errors import ExtractionError, InvalidImageError, NoTextFoundError
from .models import InvalidImagePolicy, RawPage

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


class TextRecognitionEngine:
    """
    Abstract OCR engine for a single page image. Implementations should be
    stateless and reusable.
    """

    engine_version = "unknown"

    def recognize(self, page: RawPage) -> str:
        raise NotImplementedError


class DoclingTextRecognitionEngine(TextRecognitionEngine):
    """
    Docling-based OCR over single page images.

    Every page is OCR'd in full (no embedded text layer exists for photos) and
    rendered at twice its size, trading speed for accuracy.
    """

    def __init__(
        self,
        languages: Optional[List[str]] = None,
        force_full_page_ocr: bool = True,
        engine_version: str = "docling-rapidocr",
    ):
        from docling.datamodel.accelerator_options import AcceleratorDevice, AcceleratorOptions
        from docling.datamodel.base_models import InputFormat
        from docling.datamodel.pipeline_options import PdfPipelineOptions, RapidOcrOptions
        from docling.document_converter import DocumentConverter, ImageFormatOption

        accelerator_options = AcceleratorOptions(num_threads=4, device=AcceleratorDevice.AUTO)

        self.engine_version = engine_version

        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_ocr = True
        pipeline_options.do_table_structure = True
        pipeline_options.images_scale = 2.0
        pipeline_options.ocr_options = RapidOcrOptions(
            force_full_page_ocr=force_full_page_ocr,
            lang=languages or ["english"],
        )
        pipeline_options.accelerator_options = accelerator_options

        self.converter = DocumentConverter(
            allowed_formats=[InputFormat.IMAGE],
            format_options={
                InputFormat.IMAGE: ImageFormatOption(
                    pipeline_options=pipeline_options,
                )
            },
        )

    def recognize(self, page: RawPage) -> str:
        from docling.datamodel.base_models import DocumentStream

        fmt = detect_image_format(page.data)
        name = f"{Path(page.source or 'page').stem}.{fmt}"
        stream = DocumentStream(name=name, stream=BytesIO(page.data))
        try:
            result = self.converter.convert(stream)
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(f"Recognition failed for {name}") from exc

        lines = []
        for item, _level in result.document.iterate_items():
            text = getattr(item, "text", "")
            if text and text.strip():
                lines.append(text.strip())
        return "\n".join(lines)


class TextExtractionService:
    """
    Runs OCR over an ordered page batch and joins the per-page text with a
    blank line. Pages are recognized one at a time, in capture order, each in
    a worker thread so the event loop stays free.
    """

    def __init__(
        self,
        engine: TextRecognitionEngine,
        invalid_image_policy: InvalidImagePolicy = InvalidImagePolicy.SKIP,
    ):
        self.engine = engine
        self.invalid_image_policy = invalid_image_policy

    async def extract(self, pages: Sequence[RawPage]) -> str:
        texts: List[str] = []
        invalid_pages: List[int] = []

        for index, page in enumerate(pages):
            try:
                text = await asyncio.to_thread(self.engine.recognize, page)
            except InvalidImageError as exc:
                if self.invalid_image_policy == InvalidImagePolicy.ABORT:
                    raise InvalidImageError(str(exc), page_indexes=[index]) from exc
                logger.warning("Skipping undecodable page %s (%s)", index + 1, page.source or "unnamed")
                invalid_pages.append(index)
                continue
            text = (text or "").strip()
            if not text:
                logger.info("Page %s produced no text", index + 1)
                continue
            texts.append(text)

        if pages and len(invalid_pages) == len(pages):
            raise InvalidImageError(
                "Could not process any of the scanned pages. Please try again.",
                page_indexes=invalid_pages,
            )

        combined = PAGE_SEPARATOR.join(texts)
        if not combined.strip():
            raise NoTextFoundError()

        logger.info(
            "Extracted %d characters from %d page(s) (%d skipped)",
            len(combined),
            len(pages),
            len(invalid_pages),
        )
        return combined
