from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import click

from editlink.connection import ConnectionManager
from editlink.editor.workspace import open_workspace
from editlink.logger import apply_logging_settings, logger
from editlink.settings import LogLevel, Settings, apply_env_overrides, load_settings


def build_settings(
    config: Optional[Path],
    workspace: Optional[Path],
    url: Optional[str],
    log_level: Optional[str],
) -> Settings:
    settings = load_settings(config) if config is not None else Settings()
    settings = apply_env_overrides(settings)
    if workspace is not None:
        settings.workspace.root = workspace
    if url:
        settings.connection.url = url
    if log_level:
        settings.logging.default_level = LogLevel(log_level)
    return settings


async def run(settings: Settings) -> None:
    editor = open_workspace(settings.workspace.root)
    manager = ConnectionManager(editor, settings)
    logger.info(
        "Starting agent client",
        user=settings.connection.user_slug,
        url=manager.url,
        workspace=str(editor.root),
    )
    try:
        await manager.start()
    finally:
        await manager.stop()


@click.command()
@click.option(
    "--config",
    "config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (.yaml, .yml, .json, .json5)",
)
@click.option(
    "--workspace",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory the agent edits; defaults to the current directory",
)
@click.option("--url", default=None, help="Agent websocket URL")
@click.option(
    "--log-level",
    type=click.Choice([lvl.value for lvl in LogLevel]),
    default=None,
)
def main(
    config: Optional[Path],
    workspace: Optional[Path],
    url: Optional[str],
    log_level: Optional[str],
) -> None:
    try:
        settings = build_settings(config, workspace, url, log_level)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    apply_logging_settings(settings.logging)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
