"""
morpherctl CLI utilities
"""

from .context import get_config_manager, resolve_controller_ip
from .decorators import async_command, handle_errors

__all__ = ["async_command", "handle_errors", "get_config_manager", "resolve_controller_ip"]
