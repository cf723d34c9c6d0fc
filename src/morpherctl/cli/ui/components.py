"""
morpherctl CLI UI Components
Rich-powered panels and tables for agent and controller output
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ...core.status import StatusResult, StatusSummary, VerificationResult, Verdict

STYLE_BOLD_BLUE = "bold blue"

_SUMMARY_STYLES = {
    StatusSummary.RUNNING_AND_ENABLED: "green",
    StatusSummary.RUNNING_NOT_ENABLED: "yellow",
    StatusSummary.INSTALLED_NOT_RUNNING: "yellow",
    StatusSummary.NOT_INSTALLED: "red",
}

_VERDICT_STYLES = {
    Verdict.PASS: "green",
    Verdict.WARNING: "yellow",
    Verdict.FAIL: "red",
}


def _yes_no(value: bool) -> str:
    return "[green]YES[/green]" if value else "[red]NO[/red]"


def _service_word(raw_status: str) -> str:
    return raw_status if raw_status else "NOT FOUND"


def create_header(title: str, subtitle: Optional[str] = None) -> Panel:
    """Create the morpherctl header panel"""
    header_text = Text()
    header_text.append("morpherctl", style="bold white")
    header_text.append(" - ", style="dim white")
    header_text.append(title, style="bold cyan")

    if subtitle:
        header_text.append(f"\n{subtitle}", style="dim white")

    return Panel(header_text, style="blue", padding=(0, 1))


def create_key_value_table(rows: Iterable[Tuple[str, str]], title: Optional[str] = None) -> Table:
    """Two-column table without header, used for status style listings"""
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    return table


def create_status_table(status: StatusResult) -> Table:
    """Installation, service and boot state for `agent status`"""
    installed = (
        f"[green]YES[/green] ({status.install_path})" if status.installed else "[red]NO[/red]"
    )
    return create_key_value_table(
        [
            ("Installed", installed),
            ("Service", _service_word(status.service.raw_status)),
            ("Enabled", _yes_no(status.service.is_enabled)),
        ],
        title="Agent Status",
    )


def create_detail_table(binary_path: str, controller_ip: str, architecture: str) -> Table:
    return create_key_value_table(
        [
            ("Binary Path", binary_path),
            ("Controller IP", controller_ip),
            ("Architecture", architecture),
        ],
        title="Detailed Information",
    )


def create_verification_table(result: VerificationResult) -> Table:
    """Binary, service and boot state for `agent verify`"""
    binary = (
        f"[green]INSTALLED[/green] ({result.binary_path})"
        if result.binary_installed
        else "[red]NOT INSTALLED[/red]"
    )
    return create_key_value_table(
        [
            ("Binary", binary),
            ("Service", _service_word(result.service.raw_status)),
            ("Enabled", _yes_no(result.service.is_enabled)),
        ],
        title="Verification Results",
    )


def create_summary_panel(status: StatusResult) -> Panel:
    style = _SUMMARY_STYLES[status.summary]
    return Panel(f"[{style}]{status.describe()}[/{style}]", title="Summary", title_align="left", style=style)


def create_verdict_panel(result: VerificationResult) -> Panel:
    style = _VERDICT_STYLES[result.verdict]
    return Panel(f"[{style}]{result.describe()}[/{style}]", title="Overall Status", title_align="left", style=style)


def create_config_table(values: Dict[str, Any], source: str) -> Table:
    """Flattened config store listing"""
    table = Table(title=f"Current configuration ({source})", show_header=True, header_style=STYLE_BOLD_BLUE)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in sorted(_flatten(values).items()):
        table.add_row(key, str(value))
    return table


def _flatten(values: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in values.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def create_info_panel(message: str, details: Optional[str] = None, title: str = "ℹ️ Info") -> Panel:
    """Create an info panel with message and optional details

    Args:
        message: Main info message
        details: Optional details text
        title: Panel title

    Returns:
        Rich Panel with info styling
    """
    content = [f"[blue]{message}[/blue]"]

    if details:
        content.append("")
        content.append(f"[dim]{details}[/dim]")

    return Panel("\n".join(content), title=title, title_align="left", style="blue", padding=(1, 2))


def create_error_panel(message: str, details: Optional[str] = None, title: str = "🚨 Error") -> Panel:
    """Create an error panel with message and optional details

    Args:
        message: Main error message
        details: Optional details text
        title: Panel title

    Returns:
        Rich Panel with error styling
    """
    content = [f"[red]❌ {message}[/red]"]

    if details:
        content.append("")
        content.append("[bold]Details:[/bold]")
        content.append(f"[dim]{details}[/dim]")

    return Panel("\n".join(content), title=title, title_align="left", style="red", padding=(1, 2))


def create_success_panel(message: str, details: Optional[str] = None, title: str = "✅ Success") -> Panel:
    """Create a success panel with message and optional details"""
    content = [f"[green]✅ {message}[/green]"]

    if details:
        content.append("")
        content.append(f"[dim]{details}[/dim]")

    return Panel("\n".join(content), title=title, title_align="left", style="green", padding=(1, 2))


def create_warning_panel(message: str, details: Optional[str] = None, title: str = "⚠️ Warning") -> Panel:
    """Create a warning panel with message and optional details"""
    content = [f"[yellow]⚠️ {message}[/yellow]"]

    if details:
        content.append("")
        content.append(f"[dim]{details}[/dim]")

    return Panel("\n".join(content), title=title, title_align="left", style="yellow", padding=(1, 2))


def print_step(console: Console, label: str, ok: bool) -> None:
    """Print a `label... OK/FAILED` progress line"""
    outcome = "[green]OK[/green]" if ok else "[red]FAILED[/red]"
    console.print(f"{label}... {outcome}")
