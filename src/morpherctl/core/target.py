"""
AgentTarget - what a lifecycle operation manages on this host
"""

import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..common.config import AgentSettings, get_agent_settings

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "i386": "386",
    "i686": "386",
    "x86": "386",
}


def detect_architecture(machine: Optional[str] = None) -> str:
    """Map the host machine type onto the architecture tag used in artifact names"""
    raw = (machine if machine is not None else platform.machine()).lower()
    return _ARCH_ALIASES.get(raw, raw or "unknown")


@dataclass(frozen=True)
class AgentTarget:
    """Immutable description of the agent installation being managed"""

    controller_ip: str
    controller_port: int = 9000
    architecture: str = field(default_factory=detect_architecture)
    install_path: Path = Path("/usr/local/bin")
    service_name: str = "morpher-agent"
    unit_dir: Path = Path("/etc/systemd/system")
    config_dir: Path = Path("/etc/morpher-agent")
    script_base_url: str = "https://raw.githubusercontent.com/morpher-vm/morpher-agent"

    @classmethod
    def from_settings(cls, controller_ip: str, settings: Optional[AgentSettings] = None) -> "AgentTarget":
        settings = settings or get_agent_settings()
        return cls(
            controller_ip=controller_ip,
            controller_port=settings.controller_port,
            install_path=Path(settings.install_path),
            service_name=settings.service_name,
            unit_dir=Path(settings.unit_dir),
            config_dir=Path(settings.config_dir),
            script_base_url=settings.script_base_url,
        )

    @property
    def binary_path(self) -> Path:
        return Path(self.install_path) / self.service_name

    @property
    def unit_file(self) -> Path:
        return Path(self.unit_dir) / f"{self.service_name}.service"

    @property
    def install_script_name(self) -> str:
        return f"install_{self.architecture}.sh"
