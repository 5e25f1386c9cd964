from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .models import ParsedSyllabus, RawPage


@dataclass
class StoragePaths:
    root: Path

    def scan_dir(self, scan_id: str) -> Path:
        return self.root / "scans" / str(scan_id)

    def page_image_path(self, scan_id: str, page_number: int) -> Path:
        return self.scan_dir(scan_id) / "pages" / f"{page_number:03d}.img"

    def extracted_text_path(self, scan_id: str) -> Path:
        return self.scan_dir(scan_id) / "extracted_text.txt"

    def parse_output_path(self, scan_id: str) -> Path:
        return self.scan_dir(scan_id) / "parsed_syllabus.json"


class LocalScanStorage:
    """
    Manages filesystem layout for scan batches: captured page images, the
    OCR output and the decoded parser output.
    """

    def __init__(self, storage_paths: StoragePaths):
        self.paths = storage_paths

    def ensure_base_dirs(self, scan_id: str) -> None:
        (self.paths.scan_dir(scan_id) / "pages").mkdir(parents=True, exist_ok=True)

    def save_pages(self, scan_id: str, pages: Sequence[RawPage]) -> List[Path]:
        self.ensure_base_dirs(scan_id)
        written = []
        for number, page in enumerate(pages, start=1):
            target = self.paths.page_image_path(scan_id, number)
            target.write_bytes(page.data)
            written.append(target)
        return written

    def load_pages(self, scan_id: str) -> List[RawPage]:
        pages_dir = self.paths.scan_dir(scan_id) / "pages"
        if not pages_dir.exists():
            return []
        return [RawPage(data=p.read_bytes(), source=p.name) for p in sorted(pages_dir.glob("*.img"))]

    def write_extracted_text(self, scan_id: str, text: str) -> Path:
        self.ensure_base_dirs(scan_id)
        target = self.paths.extracted_text_path(scan_id)
        target.write_text(text, encoding="utf-8")
        return target

    def write_parse_output(self, scan_id: str, syllabus: ParsedSyllabus) -> Path:
        self.ensure_base_dirs(scan_id)
        target = self.paths.parse_output_path(scan_id)
        with target.open("w", encoding="utf-8") as f:
            json.dump(asdict(syllabus), f, ensure_ascii=False, indent=2, default=str)
        return target

    def find_extracted_text(self, scan_id: str) -> Optional[str]:
        path = self.paths.extracted_text_path(scan_id)
        return path.read_text(encoding="utf-8") if path.exists() else None

