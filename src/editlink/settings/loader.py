from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import json5  # type: ignore
import yaml

from .models import Settings


# Supports ${env:NAME}. '$${env:NAME}' escapes a literal placeholder.
ENV_VAR_PATTERN = re.compile(r"(?<!\$)\$\{env:([A-Za-z_][A-Za-z0-9_]*)\}")

ENV_WS_URL = "AGENT_WS_URL"
ENV_USER_SLUG = "USER_SLUG"
ENV_WORKSPACE = "EDITLINK_WORKSPACE"


def _interpolate(node: Any, environ: Mapping[str, str]) -> Any:
    if isinstance(node, str):

        def _sub(m: re.Match[str]) -> str:
            val = environ.get(m.group(1))
            if val is None:
                return m.group(0)
            return val

        return ENV_VAR_PATTERN.sub(_sub, node).replace("$${", "${")
    if isinstance(node, dict):
        return {k: _interpolate(v, environ) for k, v in node.items()}
    if isinstance(node, list):
        return [_interpolate(v, environ) for v in node]
    return node


def _load_raw_file(path: Path) -> Any:
    ext = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    data: Any = None
    if ext in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif ext in {".json5", ".jsonc", ".json"}:
        data = json5.loads(text) if text.strip() else None
    else:
        raise ValueError(f"Unsupported config file extension: {ext}")
    if data is None:
        return {}
    return data


def load_settings(
    path: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    env = os.environ if environ is None else environ
    data = _load_raw_file(Path(path))
    if not isinstance(data, dict):
        raise ValueError("Root configuration must be a mapping/object")
    return Settings.model_validate(_interpolate(data, env))


def apply_env_overrides(
    settings: Settings,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Return a copy of settings with process environment overrides applied."""
    env = os.environ if environ is None else environ
    connection = settings.connection
    workspace = settings.workspace

    url = env.get(ENV_WS_URL)
    if url:
        connection = connection.model_copy(update={"url": url})
    slug = env.get(ENV_USER_SLUG)
    if slug:
        connection = connection.model_copy(update={"user_slug": slug})
    root = env.get(ENV_WORKSPACE)
    if root:
        workspace = workspace.model_copy(update={"root": Path(root)})

    return settings.model_copy(update={"connection": connection, "workspace": workspace})
