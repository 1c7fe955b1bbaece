from __future__ import annotations

from typing import Any, Dict, List, Optional, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..inventory.inventory import DEFAULT_EXTENSIONS

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class _BaseConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class LoggingSettings(_BaseConfigModel):
    level: str = "INFO"
    log_dir: str = "logs"
    file_logging: bool = True
    json_output: bool = False
    max_log_size: str = "10MB"
    backup_count: int = Field(default=3, ge=0)

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


class AuditConfig(_BaseConfigModel):
    catalog_path: Optional[str] = None
    roms_dir: Optional[str] = None
    extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    verify_sha1: bool = False
    workers: int = Field(default=1, ge=1)
    sets: List[str] = Field(default_factory=list)
    report_path: Optional[str] = None
    report_diagnostics: bool = True
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for ext in value:
            ext = str(ext).strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in normalized:
                normalized.append(ext)
        if not normalized:
            raise ValueError("at least one container extension is required")
        return normalized


def validate_config(payload: Dict[str, Any]) -> AuditConfig:
    return cast(AuditConfig, AuditConfig.model_validate(payload))
