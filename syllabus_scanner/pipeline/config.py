from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .calendar_export import CalendarExportService, IcsCalendarStore
from .coordinator import PipelineCoordinator
from .engine import DoclingTextRecognitionEngine, TextExtractionService
from .gateway import PersistenceGateway
from .models import InvalidImagePolicy
from .parser import DEFAULT_API_URL, DEFAULT_MODEL, SyllabusParsingService
from .repository import CourseRepository, SqlAlchemyCourseRepository
from .storage import LocalScanStorage, StoragePaths

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./data/syllabus_scanner.db"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PipelineConfig:
    database_url: str = DEFAULT_DATABASE_URL
    scan_storage_root: str = "./data"
    calendar_root: str = "./data/calendar"
    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    max_tokens: int = 4096
    timeout_seconds: float = 30.0
    invalid_image_policy: InvalidImagePolicy = InvalidImagePolicy.SKIP
    ocr_languages: List[str] = field(default_factory=lambda: ["english"])
    import_max_concurrency: int = 4
    persist_scan_artifacts: bool = False

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        languages = os.getenv("OCR_LANGUAGES", "english")
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            scan_storage_root=os.getenv("SCAN_STORAGE_ROOT", "./data"),
            calendar_root=os.getenv("CALENDAR_ROOT", "./data/calendar"),
            api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            api_url=os.getenv("PARSER_API_URL", DEFAULT_API_URL),
            model=os.getenv("PARSER_MODEL", DEFAULT_MODEL),
            max_tokens=int(os.getenv("PARSER_MAX_TOKENS", "4096")),
            timeout_seconds=float(os.getenv("PARSER_TIMEOUT_SECONDS", "30")),
            invalid_image_policy=InvalidImagePolicy(os.getenv("OCR_INVALID_IMAGE_POLICY", "skip").strip().lower()),
            ocr_languages=[lang.strip() for lang in languages.split(",") if lang.strip()],
            import_max_concurrency=int(os.getenv("IMPORT_MAX_CONCURRENCY", "4")),
            persist_scan_artifacts=_env_bool("PERSIST_SCAN_ARTIFACTS", False),
        )


def build_repository(config: PipelineConfig) -> CourseRepository:
    if config.database_url.startswith("sqlite") and ":///" in config.database_url:
        db_path = config.database_url.split(":///", 1)[1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return SqlAlchemyCourseRepository(config.database_url)


def build_coordinator(
    config: PipelineConfig,
    repository: Optional[CourseRepository] = None,
    consent: Optional[Callable[[], bool]] = None,
) -> PipelineCoordinator:
    """
    Wire every pipeline component from configuration. `consent` is the
    calendar permission prompt; without one, a first export cannot ask.
    """
    repo = repository or build_repository(config)
    engine = DoclingTextRecognitionEngine(languages=config.ocr_languages)
    extractor = TextExtractionService(engine, invalid_image_policy=config.invalid_image_policy)
    parser = SyllabusParsingService(
        api_key=config.api_key,
        api_url=config.api_url,
        model=config.model,
        max_tokens=config.max_tokens,
        timeout=config.timeout_seconds,
    )
    calendar = CalendarExportService(IcsCalendarStore(Path(config.calendar_root), consent=consent), repo)
    storage = None
    if config.persist_scan_artifacts:
        storage = LocalScanStorage(StoragePaths(Path(config.scan_storage_root)))
    return PipelineCoordinator(
        extractor=extractor,
        parser=parser,
        gateway=PersistenceGateway(repo),
        calendar=calendar,
        storage=storage,
    )
