# src/morpherctl/common/config.py
"""
morpherctl configuration

Two layers:
- process settings read from the environment (pydantic-settings);
- the operator's key-value store, a YAML file edited with `morpherctl config`.
"""
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

logger = structlog.get_logger()

MORPHERCTL_DIR_NAME = ".morpherctl"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "controller": {"ip": "localhost", "port": 9000, "timeout": "30s"},
    "auth": {"token": "", "refresh_token": ""},
    "agent": {"install_path": "/opt/morpher", "log_level": "info"},
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_BARE_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_TRUTHY = ("1", "true", "yes", "on")


def _get_morpherctl_path(*subdirs: str) -> Path:
    """Get morpherctl path under the user's home with optional subdirectories."""
    base_path = Path.home() / MORPHERCTL_DIR_NAME
    for subdir in subdirs:
        base_path = base_path / subdir
    return base_path


def default_config_file() -> Path:
    return _get_morpherctl_path(CONFIG_FILE_NAME)


class CLISettings(BaseSettings):
    """Process-level settings for the CLI itself"""

    config_file: Optional[Path] = Field(
        default=None, validation_alias=AliasChoices("MORPHERCTL_CONFIG", "MORPHERCTL_CONFIG_FILE")
    )
    log_level: str = Field(default="WARNING")
    debug: bool = Field(default=False, validation_alias=AliasChoices("MORPHERCTL_DEBUG", "DEBUG"))

    model_config = SettingsConfigDict(env_prefix="MORPHERCTL_", case_sensitive=False, extra="ignore")

    @field_validator("debug", mode="before")
    @classmethod
    def _lenient_debug(cls, value: Any) -> bool:
        # unrecognised values such as DEBUG=express:* mean off
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUTHY


class AgentSettings(BaseSettings):
    """Defaults describing where and how the managed agent lives on a host"""

    controller_port: int = Field(default=9000)
    install_path: Path = Field(default=Path("/usr/local/bin"))
    service_name: str = Field(default="morpher-agent")
    unit_dir: Path = Field(default=Path("/etc/systemd/system"))
    config_dir: Path = Field(default=Path("/etc/morpher-agent"))
    script_base_url: str = Field(default="https://raw.githubusercontent.com/morpher-vm/morpher-agent")

    model_config = SettingsConfigDict(env_prefix="MORPHER_AGENT_", case_sensitive=False, extra="ignore")


def get_settings() -> CLISettings:
    """Load CLI process settings"""
    return CLISettings()


def get_agent_settings() -> AgentSettings:
    """Load agent layout defaults"""
    return AgentSettings()


def parse_duration(value: Any) -> timedelta:
    """
    Parse a duration value from the config store.

    Accepts Go-style strings ("30s", "1m30s", "250ms") and bare numbers,
    which are read as seconds.

    Raises:
        ConfigurationError: If the value is not a valid duration
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip()
    if not text:
        return timedelta(0)

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if _BARE_NUMBER.fullmatch(text):
        return timedelta(seconds=sign * float(text))

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text) or position == 0:
        raise ConfigurationError(f"invalid duration: {value!r}")
    return timedelta(seconds=sign * total)


class ConfigManager:
    """
    YAML-backed key-value store for operator configuration.

    Keys are dotted paths ("controller.ip") mapped onto nested mappings.
    Every read reloads the file, so values always reflect what is on disk.
    """

    def __init__(self, config_file: Optional[Path | str] = None):
        self.config_file = Path(config_file) if config_file else default_config_file()
        self.config_dir = self.config_file.parent

    def init(self) -> Path:
        """Write a configuration file holding the default values"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"failed to create configuration directory: {e}") from e

        self._write(DEFAULT_CONFIG)
        logger.info("Configuration initialized", path=str(self.config_file))
        return self.config_file

    def set(self, key: str, value: str) -> None:
        data = self._load()

        parts = self._split_key(key)
        node = data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

        self._write(data)
        logger.debug("Configuration value set", key=key)

    def get(self, key: str) -> Any:
        """
        Get a configuration value by dotted key.

        Raises:
            ConfigurationError: If the file cannot be read or the key is missing
        """
        found, value = self._lookup(self._load(), key)
        if not found or value is None:
            raise ConfigurationError(f"configuration key '{key}' not found", key=key)
        return value

    def get_all(self) -> Dict[str, Any]:
        return self._load()

    def get_string(self, key: str) -> str:
        """Get a value as a string; a missing key yields an empty string"""
        found, value = self._lookup(self._load(), key)
        if not found or value is None:
            return ""
        return str(value)

    def get_duration(self, key: str) -> timedelta:
        """Get a value as a duration; a missing key yields zero"""
        found, value = self._lookup(self._load(), key)
        if not found or value is None:
            return timedelta(0)
        return parse_duration(value)

    @staticmethod
    def _split_key(key: str) -> list[str]:
        parts = [part for part in key.lower().split(".") if part]
        if not parts:
            raise ConfigurationError(f"invalid configuration key: '{key}'", key=key)
        return parts

    def _lookup(self, data: Dict[str, Any], key: str) -> tuple[bool, Any]:
        node: Any = data
        for part in self._split_key(key):
            if not isinstance(node, dict) or part not in node:
                return False, None
            node = node[part]
        return True, node

    def _load(self) -> Dict[str, Any]:
        try:
            raw = self.config_file.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"failed to read configuration file {self.config_file}: file not found "
                "(run 'morpherctl config init' first)"
            ) from e
        except OSError as e:
            raise ConfigurationError(f"failed to read configuration file {self.config_file}: {e}") from e

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"failed to parse configuration file {self.config_file}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"configuration file {self.config_file} must contain a mapping")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.config_file.write_text(
                yaml.safe_dump(data, default_flow_style=False, sort_keys=True),
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigurationError(f"failed to save configuration file {self.config_file}: {e}") from e
