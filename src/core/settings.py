"""Application settings with environment variable support.

Uses pydantic-settings for typed configuration validation.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class AppSettings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")
    log_file: Path | None = Field(
        default=DATA_DIR.parent.parent / "logs" / "simulateur.log",
        description="Rotating log file, None for console only",
    )

    # Feature flags
    debug_mode: bool = Field(default=False, description="Enable debug features")

    # Fiscal data
    default_fiscal_year: int = Field(default=2025, ge=2000, le=2100)
    fiscal_parameters_path: Path = Field(
        default=DATA_DIR / "fiscal_parameters.json",
        description="JSON file holding the yearly fiscal parameters",
    )
    classification_path: Path = Field(
        default=DATA_DIR / "classification.json",
        description="JSON file holding the keyword -> category table",
    )

    # Autofill
    default_management_fee_pct: float = Field(default=6.0, ge=0, le=100)
    transactions_path: Path | None = Field(
        default=None,
        description="JSON export of bookkeeping data used as the local transaction source",
    )
    local_user_id: str = Field(default="local", description="User id of the local Streamlit session")

    model_config = {
        "env_prefix": "SIMIMPOTS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()
