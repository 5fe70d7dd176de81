"""Uvicorn server launcher for the H2obot API.

The app is built by the ``create_app`` factory inside the server process, so settings
(including ``--env-file``) are read there rather than at import time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
import uvicorn

APP_FACTORY = "h2obot.api.app:create_app"


def main(
    host: Annotated[str, typer.Option(help="Bind host")] = "0.0.0.0",
    port: Annotated[int, typer.Option(help="Bind port")] = 8787,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload (dev)")] = False,
    env_file: Annotated[Path | None, typer.Option(help="Settings file (sets H2OBOT_ENV_FILE)")] = None,
    log_level: Annotated[str, typer.Option(help="Uvicorn log level")] = "info",
) -> None:
    """Start the H2obot API server."""

    if env_file is not None:
        os.environ["H2OBOT_ENV_FILE"] = str(env_file.resolve())

    uvicorn.run(APP_FACTORY, factory=True, host=host, port=port, reload=reload, log_level=log_level)


def run() -> None:
    """Console script entry point."""

    typer.run(main)


if __name__ == "__main__":
    run()
