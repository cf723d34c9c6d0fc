# src/morpherctl/main.py
"""
morpherctl - Entrypoint
Typer CLI for managing morpher agents that perform VM migrations
"""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .cli.commands import agent_app, config_app, controller_app
from .common.config import get_settings
from .utils import setup_logging
from .version import get_version_info

app = typer.Typer(
    name="morpherctl",
    help="CLI tool for managing morpher agents that perform VM migrations",
    no_args_is_help=True,
)

# Register sub-applications
app.add_typer(agent_app, name="agent")
app.add_typer(controller_app, name="controller")
app.add_typer(config_app, name="config")

console = Console()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", envvar="MORPHERCTL_CONFIG", help="Config file (default ~/.morpherctl/config.yaml)"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level for diagnostics on stderr"),
):
    """CLI tool for managing morpher agents that perform VM migrations."""
    settings = get_settings()
    setup_logging(log_level or ("DEBUG" if settings.debug else settings.log_level))
    ctx.obj = {"config_file": config}


@app.command()
def version():
    """Print the version number of morpherctl."""
    console.print(get_version_info(), end="", highlight=False)


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
