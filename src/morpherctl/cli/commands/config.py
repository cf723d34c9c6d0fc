"""
Configuration Commands for morpherctl

Manage the operator's configuration store.
"""
import typer
from rich.console import Console

from ..ui.components import create_config_table, create_success_panel
from ..utils.context import get_config_manager
from ..utils.decorators import handle_errors

console = Console()
app = typer.Typer(help="Manage morpherctl configuration", no_args_is_help=True)


@app.command("init")
@handle_errors
def init(ctx: typer.Context):
    """Write a configuration file with default values."""
    path = get_config_manager(ctx).init()
    console.print(create_success_panel("Configuration initialized", details=str(path)))


@app.command("set")
@handle_errors
def set_value(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted configuration key, e.g. controller.ip"),
    value: str = typer.Argument(..., help="Value to store; durations such as 30s or 1m30s, bare numbers are seconds"),
):
    """Set a configuration value."""
    get_config_manager(ctx).set(key, value)
    console.print(f"[green]✓[/green] Set {key} = {value}")


@app.command("get")
@handle_errors
def get_value(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted configuration key"),
):
    """Print a configuration value."""
    value = get_config_manager(ctx).get(key)
    console.print(f"{key} = {value}")


@app.command("show")
@handle_errors
def show(ctx: typer.Context):
    """Show all configuration values."""
    config = get_config_manager(ctx)
    console.print(create_config_table(config.get_all(), str(config.config_file)))
