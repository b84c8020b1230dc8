"""Configuration for IAST telemetry"""
from pathlib import Path
from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Telemetry configuration loaded from DD_* environment variables"""

    # Telemetry settings
    telemetry_enabled: bool = Field(default=True, description="Enable instrumentation telemetry")
    iast_telemetry_verbosity: Optional[str] = Field(
        default=None,
        description="IAST telemetry verbosity (OFF, MANDATORY, INFORMATION, DEBUG)"
    )
    telemetry_heartbeat_interval: float = Field(default=60.0, ge=0, description="Reporting interval in seconds")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Log file path (console only when unset)")

    model_config = SettingsConfigDict(env_prefix="DD_", case_sensitive=False)

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('iast_telemetry_verbosity', mode='before')
    @classmethod
    def blank_verbosity_is_unset(cls, v):
        # Unknown names are kept as-is; the verbosity parser maps them to MANDATORY
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('log_file')
    @classmethod
    def ensure_log_directory(cls, v):
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v
