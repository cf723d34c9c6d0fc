"""
CLI Decorators for morpherctl

Provides decorators for error handling and async commands.
"""

import asyncio
import functools
import traceback
from typing import Any, Callable, Optional, TypeVar

import typer
from rich.console import Console

from ...common.config import get_settings
from ...common.exceptions import (
    ConfigurationError,
    ControllerConnectionError,
    ControllerTimeoutError,
    LifecycleStepError,
    MorpherctlError,
    NotInstalled,
    PreflightFailure,
)
from ..ui.components import create_error_panel

# Create console instance for error display
console = Console(stderr=True)

F = TypeVar("F", bound=Callable[..., Any])

EXIT_FAILURE = 1
EXIT_NOT_INSTALLED = 3
EXIT_PREFLIGHT = 77
EXIT_CONFIG = 78
EXIT_CONNECTION = 111
EXIT_TIMEOUT = 124
EXIT_INTERRUPTED = 130


def _is_debug_mode() -> bool:
    """Check if debug mode is enabled"""
    return get_settings().debug


def _handle_keyboard_interrupt() -> int:
    """Handle Ctrl+C gracefully"""
    console.print("\n[yellow]Operation cancelled by user[/yellow]")
    return EXIT_INTERRUPTED


def _handle_preflight_failure(e: PreflightFailure) -> int:
    console.print(create_error_panel(f"Preflight failed: {e.reason}", details=f"check: {e.check_name}"))
    return EXIT_PREFLIGHT


def _handle_not_installed(e: NotInstalled) -> int:
    console.print(create_error_panel(str(e)))
    return EXIT_NOT_INSTALLED


def _handle_lifecycle_error(e: LifecycleStepError) -> int:
    details = f"operation: {e.operation}\nstep: {e.step}\nerror: {e.error}"
    console.print(create_error_panel(f"{e.operation.capitalize()} failed", details=details))
    return EXIT_FAILURE


def _handle_config_error(e: ConfigurationError) -> int:
    console.print(create_error_panel(f"Configuration error: {e}"))
    return EXIT_CONFIG


def _handle_controller_error(e: MorpherctlError) -> int:
    if isinstance(e, ControllerTimeoutError):
        console.print(create_error_panel(f"Operation timed out: {e}"))
        return EXIT_TIMEOUT
    console.print(create_error_panel(f"Connection error: {e}"))
    return EXIT_CONNECTION


def _handle_generic_exception(e: Exception) -> int:
    """Handle unexpected exceptions with debug support"""
    console.print(f"[red]✗ Unexpected error:[/red] {str(e)}")

    if _is_debug_mode():
        console.print("\n[dim]Full traceback:[/dim]")
        console.print(traceback.format_exc())

    return EXIT_FAILURE


def _handle_morpherctl_error(e: MorpherctlError) -> int:
    console.print(create_error_panel(str(e)))
    return EXIT_FAILURE


# Exception handlers mapping, most specific first
EXCEPTION_HANDLERS = {
    PreflightFailure: _handle_preflight_failure,
    NotInstalled: _handle_not_installed,
    LifecycleStepError: _handle_lifecycle_error,
    ConfigurationError: _handle_config_error,
    ControllerTimeoutError: _handle_controller_error,
    ControllerConnectionError: _handle_controller_error,
    MorpherctlError: _handle_morpherctl_error,
}


def _handle_exception_by_type(e: Exception) -> int:
    """Route exception to appropriate handler"""
    for exc_type, handler in EXCEPTION_HANDLERS.items():
        if isinstance(e, exc_type):
            return handler(e)

    return _handle_generic_exception(e)


def _exit_with(code: Optional[int]) -> None:
    if code:
        raise typer.Exit(code=code)


def handle_errors(func: F) -> F:
    """
    Decorator to handle exceptions in CLI commands.

    Renders failures with Rich on stderr and turns them into process exit
    codes. typer.Exit and typer.Abort raised by the command pass through.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (typer.Exit, typer.Abort):
            raise
        except KeyboardInterrupt:
            _exit_with(_handle_keyboard_interrupt())
        except Exception as e:
            _exit_with(_handle_exception_by_type(e))

    return wrapper  # type: ignore[return-value]


def async_command(func: F) -> F:
    """
    Decorator to run async commands under Typer

    Args:
        func: The async function to wrap

    Returns:
        Wrapped synchronous function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return asyncio.run(func(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
