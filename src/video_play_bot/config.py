from __future__ import annotations
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml  # type: ignore[import-untyped]
from pathlib import Path
from typing import Optional

DEFAULT_HUB_URL = "wss://cdp.browserstack.com/playwright"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    # Required, normally supplied through the environment
    DATABASE_URL: Optional[str] = None
    BROWSERSTACK_USERNAME: Optional[str] = None
    BROWSERSTACK_ACCESS_KEY: Optional[str] = None

    # Database
    DB_SSLMODE: str = "require"

    # Remote session
    BROWSERSTACK_HUB_URL: str = DEFAULT_HUB_URL
    PROJECT_NAME: str = "Video Test"
    BUILD_NAME_PREFIX: str = "Video Play Test"
    SESSION_CONNECT_TIMEOUT_MS: int = 60_000

    # Devices
    DEVICES_JSON_PATH: str = "browsers.json"

    # Batch
    BATCH_SIZE: int = 5

    # Timings (milliseconds)
    PAGE_LOAD_TIMEOUT_MS: int = 15_000
    PAGE_SETTLE_MS: int = 3_000
    LOOKUP_TIMEOUT_MS: int = 5_000
    PLAY_DWELL_MS: int = 16_000
    INTER_VIDEO_GAP_MS: int = 1_000

    # Diagnostics
    CAPTURE_ARTIFACTS_ON_ERROR: bool = True
    ARTIFACT_DIR: Optional[str] = None
    LOG_DIR: Optional[str] = None

    @field_validator("BATCH_SIZE")
    @classmethod
    def _validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"BATCH_SIZE must be >= 1, got {v}")
        return v

    @field_validator(
        "SESSION_CONNECT_TIMEOUT_MS",
        "PAGE_LOAD_TIMEOUT_MS",
        "PAGE_SETTLE_MS",
        "LOOKUP_TIMEOUT_MS",
        "PLAY_DWELL_MS",
        "INTER_VIDEO_GAP_MS",
    )
    @classmethod
    def _validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"durations must be non-negative, got {v}")
        return v


def load_settings(config_path: str | Path | None) -> Settings:
    """Build settings from the environment, overlaid with an optional YAML file."""
    if config_path is None:
        return Settings()
    p = Path(config_path)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return Settings(**data)
