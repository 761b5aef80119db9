from .models import (
    ConnectionSettings,
    LoggingSettings,
    LogLevel,
    PacingSettings,
    PatchSettings,
    Settings,
    WorkspaceSettings,
)
from .loader import apply_env_overrides, load_settings

__all__ = [
    "ConnectionSettings",
    "LoggingSettings",
    "LogLevel",
    "PacingSettings",
    "PatchSettings",
    "Settings",
    "WorkspaceSettings",
    "apply_env_overrides",
    "load_settings",
]
