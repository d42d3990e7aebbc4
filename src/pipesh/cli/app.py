"""CLI main module for pipesh."""

from __future__ import annotations

from typing import Optional

import typer
from loguru import logger

from pipesh.cli.interactive import InteractiveShell
from pipesh.config import get_settings
from pipesh.core.shell import Shell
from pipesh.logging_utils import configure_logging

app = typer.Typer(
    name="pipesh",
    help="A minimal interactive shell with pipes and redirection.",
    add_completion=False,
)


@app.command()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override PIPESH_LOG_LEVEL"),  # noqa: UP007
) -> None:
    """Start the interactive prompt loop."""

    overrides: dict[str, object] = {}
    if log_level:
        overrides["log_level"] = log_level
    settings = get_settings(**overrides)
    configure_logging(level=settings.log_level)
    logger.debug("pipesh.start prompt={!r} max_args={}", settings.prompt, settings.max_args)

    shell = Shell(settings)
    status = InteractiveShell(shell, prompt=settings.prompt).run()
    raise typer.Exit(status)
