"""
Controller Commands for morpherctl

Connectivity check and host information from the morpher controller.
"""
import typer
from rich.console import Console

from ...integration.controller_client import ControllerClient
from ..ui.components import create_error_panel, create_info_panel, create_key_value_table, create_success_panel
from ..utils.context import get_config_manager
from ..utils.decorators import async_command, handle_errors

console = Console()
app = typer.Typer(help="Talk to the morpher controller", no_args_is_help=True)


def build_client(ctx: typer.Context) -> ControllerClient:
    return ControllerClient.from_config(get_config_manager(ctx))


@app.command("ping")
@handle_errors
@async_command
async def ping(ctx: typer.Context):
    """Send a ping request to the controller."""
    client = build_client(ctx)
    console.print(f"Sending ping request to controller: [cyan]{client.base_url}[/cyan]")

    response = await client.with_deadline(client.ping())

    if response.success:
        details = f"Response time: {response.response_time}" if response.response_time else None
        console.print(create_success_panel("Controller responded successfully", details=details))
    else:
        console.print(
            create_error_panel(f"Controller responded but with unexpected status code: {response.status_code}")
        )
        raise typer.Exit(1)


@app.command("info")
@handle_errors
@async_command
async def info(ctx: typer.Context):
    """Get detailed information about the controller."""
    client = build_client(ctx)
    console.print(f"Getting controller information: [cyan]{client.base_url}[/cyan]")

    response = await client.with_deadline(client.get_info())

    if not response.success:
        console.print(create_error_panel(f"Failed to get controller information: {response.status_code}"))
        raise typer.Exit(1)

    if response.result is None:
        console.print(create_info_panel("No detailed information available"))
        return

    result = response.result
    console.print(create_success_panel("Successfully retrieved controller information"))
    console.print(
        create_key_value_table(
            [
                ("OS", f"{result.os.name} {result.os.platform_version} ({result.os.kernel_version})"),
                ("Platform", result.os.platform_name),
                ("Go Version", result.go_version),
                ("Uptime", result.uptime),
            ],
            title="Controller Details",
        )
    )
