"""ROM Audit - configuration package."""

from .models import AuditConfig, LoggingSettings, validate_config
from .io import apply_env_overrides, load_config, merge_overrides, read_config_file

__all__ = [
    "AuditConfig",
    "LoggingSettings",
    "apply_env_overrides",
    "load_config",
    "merge_overrides",
    "read_config_file",
    "validate_config",
]
