from syllabus_scanner.pipeline import InvalidImagePolicy, PipelineConfig, SqlAlchemyCourseRepository, build_repository


def test_defaults_without_environment(monkeypatch):
    for name in ["DATABASE_URL", "OCR_INVALID_IMAGE_POLICY", "OCR_LANGUAGES", "PERSIST_SCAN_ARTIFACTS", "ANTHROPIC_API_KEY"]:
        monkeypatch.delenv(name, raising=False)
    config = PipelineConfig.from_env()
    assert config.database_url == "sqlite+pysqlite:///./data/syllabus_scanner.db"
    assert config.invalid_image_policy == InvalidImagePolicy.SKIP
    assert config.ocr_languages == ["english"]
    assert config.persist_scan_artifacts is False
    assert config.api_key == ""


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OCR_INVALID_IMAGE_POLICY", "ABORT")
    monkeypatch.setenv("OCR_LANGUAGES", "english, latin")
    monkeypatch.setenv("PARSER_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("IMPORT_MAX_CONCURRENCY", "8")
    monkeypatch.setenv("PERSIST_SCAN_ARTIFACTS", "yes")
    config = PipelineConfig.from_env()
    assert config.invalid_image_policy == InvalidImagePolicy.ABORT
    assert config.ocr_languages == ["english", "latin"]
    assert config.timeout_seconds == 12.5
    assert config.import_max_concurrency == 8
    assert config.persist_scan_artifacts is True


def test_build_repository_creates_sqlite_directory(tmp_path):
    db_path = tmp_path / "nested" / "courses.db"
    repo = build_repository(PipelineConfig(database_url=f"sqlite+pysqlite:///{db_path}"))
    assert isinstance(repo, SqlAlchemyCourseRepository)
    assert db_path.parent.is_dir()
