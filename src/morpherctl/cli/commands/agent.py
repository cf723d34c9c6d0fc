"""
Agent Management Commands for morpherctl

Install, uninstall, upgrade, verify and inspect the morpher agent on this host.
"""
import typer
from rich.console import Console

from ...common.exceptions import NotInstalled, PreflightFailure
from ...core.command_runner import SubprocessRunner, build_runner
from ...core.downloader import LATEST
from ...core.lifecycle import AgentLifecycleManager
from ...core.target import AgentTarget
from ..ui.components import (
    create_detail_table,
    create_header,
    create_status_table,
    create_success_panel,
    create_summary_panel,
    create_verdict_panel,
    create_verification_table,
    create_warning_panel,
    print_step,
)
from ..utils.context import get_config_manager, resolve_controller_ip
from ..utils.decorators import handle_errors

console = Console()
app = typer.Typer(help="Manage the morpher agent on this host", no_args_is_help=True)


def build_manager(target: AgentTarget, escalate: bool = False) -> AgentLifecycleManager:
    """Lifecycle manager wired to the real host"""
    return AgentLifecycleManager(
        target,
        build_runner(escalate=escalate),
        preflight_runner=SubprocessRunner(),
    )


def _load_target(ctx: typer.Context) -> AgentTarget:
    controller_ip = resolve_controller_ip(get_config_manager(ctx))
    return AgentTarget.from_settings(controller_ip)


def _preflight(manager: AgentLifecycleManager, operation: str) -> None:
    try:
        manager.run_preflight(operation)
    except PreflightFailure:
        print_step(console, "Running preflight checks", ok=False)
        raise
    print_step(console, "Running preflight checks", ok=True)


@app.command("install")
@handle_errors
def install(
    ctx: typer.Context,
    version: str = typer.Argument(LATEST, help="Agent version to install"),
):
    """Install the morpher agent."""
    target = _load_target(ctx)
    manager = build_manager(target)

    console.print(f"Installing morpher agent {version}...")
    console.print(f"Controller IP: [cyan]{target.controller_ip}[/cyan]")

    _preflight(manager, "install")

    try:
        manager.install(version)
    except Exception:
        print_step(console, "Installing agent", ok=False)
        raise
    print_step(console, "Installing agent", ok=True)

    console.print(create_success_panel("Installation completed successfully"))


@app.command("uninstall")
@handle_errors
def uninstall(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    force: bool = typer.Option(False, "--force", help="Remove leftovers even if the agent binary is missing"),
):
    """Uninstall the morpher agent."""
    target = _load_target(ctx)
    manager = build_manager(target)

    console.print("Checking current installation...")
    if not manager.is_installed():
        if not force:
            raise NotInstalled(str(target.binary_path))
        console.print(create_warning_panel("Agent binary not found, removing leftovers"))

    if not yes and not typer.confirm("Are you sure you want to uninstall morpher agent?", default=False):
        console.print("Uninstallation cancelled")
        raise typer.Exit()

    _preflight(manager, "uninstall")

    try:
        manager.uninstall()
    except Exception:
        print_step(console, "Uninstalling agent", ok=False)
        raise
    print_step(console, "Uninstalling agent", ok=True)

    console.print(create_success_panel("Uninstallation completed successfully"))


@app.command("upgrade")
@handle_errors
def upgrade(
    ctx: typer.Context,
    version: str = typer.Argument(LATEST, help="Agent version to upgrade to"),
):
    """Upgrade the morpher agent."""
    target = _load_target(ctx)
    manager = build_manager(target, escalate=True)

    console.print(f"Upgrading morpher agent to {version}...")
    console.print(f"Controller IP: [cyan]{target.controller_ip}[/cyan]")

    console.print("Checking current installation...")
    if not manager.is_installed():
        raise NotInstalled(str(target.binary_path))

    _preflight(manager, "upgrade")

    try:
        manager.upgrade(version)
    except Exception:
        print_step(console, "Upgrading agent", ok=False)
        raise
    print_step(console, "Upgrading agent", ok=True)

    console.print(create_success_panel("Upgrade completed successfully"))


@app.command("verify")
@handle_errors
def verify(ctx: typer.Context):
    """Verify the morpher agent installation."""
    target = _load_target(ctx)
    manager = build_manager(target)

    console.print(create_header("Verify", "Verifying morpher agent installation"))
    result = manager.verify()

    console.print(create_verification_table(result))
    console.print(create_verdict_panel(result))


@app.command("status")
@handle_errors
def status(
    ctx: typer.Context,
    detailed: bool = typer.Option(False, "--detailed", help="Show detailed status information"),
):
    """Show the morpher agent status."""
    target = _load_target(ctx)
    manager = build_manager(target)

    console.print(create_header("Status", "Checking morpher agent status"))
    result = manager.status()

    console.print(create_status_table(result))
    if detailed and result.installed:
        console.print(create_detail_table(str(target.binary_path), target.controller_ip, target.architecture))
    console.print(create_summary_panel(result))
