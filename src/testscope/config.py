"""Configuration settings for testscope."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``TESTSCOPE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TESTSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Input / output locations
    report_dir: Path = Path("playwright-report")
    report_file: str = "report.json"
    view_model_file: str = "view-model.json"

    # Path segment the runner writes per-test artifacts under
    results_marker: str = "test-results"

    # Run metadata fallbacks
    default_run_id: str = "TEST_RUN_00001"
    triggered_by: str | None = None

    # Logging
    log_level: str = "INFO"
    log_json_format: bool = False

    @property
    def report_path(self) -> Path:
        """Default location of the raw JSON report."""
        return self.report_dir / self.report_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
