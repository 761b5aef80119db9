from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from editlink.patch.models import MissPolicy


DEFAULT_USER_SLUG = "local-test-user"


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"
    disabled = "disabled"


class LoggingSettings(BaseModel):
    default_level: LogLevel = LogLevel.info
    # Mapping of logger name -> level override (e.g., {"aiohttp": "debug"})
    enabled_loggers: Dict[str, LogLevel] = Field(default_factory=dict)
    # Optional log file; None keeps logs in memory only
    file: Optional[str] = None
    max_entries: Optional[int] = 1000


class ConnectionSettings(BaseModel):
    # Full websocket URL. When unset it is built from host/port/path_template.
    url: Optional[str] = None
    user_slug: str = DEFAULT_USER_SLUG
    host: str = "127.0.0.1"
    port: int = 8007
    path_template: str = "/api/v1/ws/{user_slug}"
    reconnect_delay_s: float = 5.0
    heartbeat_s: Optional[float] = None

    @field_validator("reconnect_delay_s")
    @classmethod
    def _non_negative_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("reconnect_delay_s must be >= 0")
        return v

    def resolve_url(self) -> str:
        if self.url:
            return self.url
        path = self.path_template.format(user_slug=self.user_slug)
        return f"ws://{self.host}:{self.port}{path}"


class PacingSettings(BaseModel):
    """
    Presentation pacing for narrated edits. All values are in seconds, except
    batch_lines which is the number of streamed lines written between pauses.
    Zero delays make every edit apply immediately.
    """

    removal_pause_s: float = 0.6
    insert_highlight_s: float = 1.0
    line_delay_s: float = 0.02
    batch_lines: int = 1
    status_timeout_s: float = 3.0

    @field_validator("batch_lines")
    @classmethod
    def _positive_batch(cls, v: int) -> int:
        if v < 1:
            raise ValueError("batch_lines must be >= 1")
        return v


class PatchSettings(BaseModel):
    on_miss: MissPolicy = MissPolicy.ABORT


class WorkspaceSettings(BaseModel):
    root: Optional[Path] = None


class Settings(BaseModel):
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    pacing: PacingSettings = Field(default_factory=PacingSettings)
    patch: PatchSettings = Field(default_factory=PatchSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
