from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "docintake"
    APP_VERSION: str = "0.1.0"

    # Logging
    LOG_FORMAT: str = "json"  # "json" for production, "text" for development
    LOG_LEVEL: str = "INFO"

    # Batch limits
    MAX_FILES_PER_BATCH: int = 5
    FILE_TIMEOUT_SECONDS: float = 30.0
    MAX_STATS_ERRORS: int = 50

    # PDF
    PDF_MAX_TEXT_PAGES: int = 10
    PDF_MAX_STRUCTURE_PAGES: int = 5
    PDF_PREVIEW_DPI: int = 72

    # Archive scanning
    ARCHIVE_MIN_FRAGMENT_CHARS: int = 20
    ARCHIVE_MAX_ENTRY_BYTES: int = 50 * 1024 * 1024

    # Binary fallback
    HEURISTIC_MAX_BYTES: int = 1024 * 1024
    HEURISTIC_MIN_MATCH_CHARS: int = 15
    BINARY_MIN_CONTENT_CHARS: int = 50

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
