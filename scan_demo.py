"""
Example: run the whole pipeline on syllabus photos or a PDF using Docling OCR,
the messages API, SQLite and an .ics calendar directory.

Usage:
    ANTHROPIC_API_KEY=... python3 scan_demo.py --images page1.jpg page2.jpg
    ANTHROPIC_API_KEY=... python3 scan_demo.py --pdf syllabus.pdf --export
"""

import argparse
import asyncio
import logging
from pathlib import Path

from syllabus_scanner.pipeline import (
    Loading,
    PipelineConfig,
    Reviewing,
    build_coordinator,
    load_pages,
    render_pdf_pages,
)
from syllabus_scanner.pipeline.errors import SyllabusScannerError


def setup_logging(log_dir: Path) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    file_handler = logging.FileHandler(log_dir / "app.log", encoding="utf-8")
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(console)
    root.addHandler(file_handler)


def ask_calendar_consent() -> bool:
    answer = input("Allow Syllabus Scanner to add events to your calendar? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


async def run(args) -> int:
    config = PipelineConfig.from_env()
    if args.db:
        config.database_url = f"sqlite+pysqlite:///{args.db}"
    if args.calendar_root:
        config.calendar_root = str(args.calendar_root)
    config.persist_scan_artifacts = args.keep_artifacts

    if args.pdf:
        pages = render_pdf_pages(args.pdf)
    else:
        pages = await load_pages(args.images, max_concurrency=config.import_max_concurrency)
    print(f"Loaded {len(pages)} page(s)")

    coordinator = build_coordinator(config, consent=ask_calendar_consent)
    coordinator.start_scan()
    await coordinator.confirm_pages(pages)

    state = coordinator.state
    if isinstance(state, Loading):
        print(f"Scan failed: {state.error}")
        return 1
    assert isinstance(state, Reviewing)

    staging = coordinator.staging
    print(f"{staging.course.name} ({staging.course.code})")
    for row in staging.assignments:
        print(f"  [{row.type:>7}] {row.date}  {row.title}")
    if staging.is_empty:
        print("No dated assignments found; nothing to save.")
        coordinator.cancel_review()
        return 0

    result = coordinator.commit()
    print(f"Commit {result.outcome.value}: {result.saved_count} saved, skipped {result.failed_titles or 'none'}")
    if not result.course:
        return 1

    if args.export:
        export = coordinator.export_to_calendar()
        print(f"Calendar: {export.success_count} exported, failed {export.failed_titles or 'none'}")
    coordinator.dismiss()
    return 0


def main():
    parser = argparse.ArgumentParser()
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--images", nargs="+", type=Path, help="Page photos in reading order")
    source.add_argument("--pdf", type=Path, help="Syllabus PDF to import")
    parser.add_argument("--db", default=None, type=Path, help="SQLite DB path (overrides DATABASE_URL)")
    parser.add_argument("--calendar-root", default=None, type=Path, help="Directory for exported .ics events")
    parser.add_argument("--keep-artifacts", action="store_true", help="Store page images, OCR text and parse output")
    parser.add_argument("--export", action="store_true", help="Export saved assignments to the calendar")
    parser.add_argument("--log-dir", default=Path("./logs"), type=Path, help="Directory for app.log")
    args = parser.parse_args()

    setup_logging(args.log_dir)
    try:
        raise SystemExit(asyncio.run(run(args)))
    except SyllabusScannerError as exc:
        logging.getLogger("scan_demo").error("%s", exc)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
