"""
Shared lookups for CLI commands
"""
from pathlib import Path
from typing import Optional

import structlog
import typer

from ...common.config import ConfigManager, get_settings
from ...common.exceptions import ConfigurationError

logger = structlog.get_logger()

DEFAULT_CONTROLLER_IP = "localhost"


def config_file_from(ctx: Optional[typer.Context]) -> Optional[Path]:
    """Config path from --config or MORPHERCTL_CONFIG, else None for the default location"""
    if ctx is not None:
        root = ctx.find_root()
        if isinstance(root.obj, dict) and root.obj.get("config_file"):
            return Path(root.obj["config_file"])
    return get_settings().config_file


def get_config_manager(ctx: Optional[typer.Context] = None) -> ConfigManager:
    return ConfigManager(config_file_from(ctx))


def resolve_controller_ip(config: ConfigManager) -> str:
    """controller.ip from the config store; an absent store means the default"""
    try:
        value = config.get_string("controller.ip")
    except ConfigurationError as e:
        logger.debug("Using default controller address", reason=str(e))
        return DEFAULT_CONTROLLER_IP
    return value or DEFAULT_CONTROLLER_IP
