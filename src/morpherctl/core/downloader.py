"""
Artifact download over HTTPS through the host's transfer tools
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import structlog

from ..common.exceptions import CommandExecutionError, TransportFailure, TransportUnavailable
from .command_runner import SystemCommandRunner

logger = structlog.get_logger()

LATEST = "latest"
DEFAULT_REF = "main"


@dataclass(frozen=True)
class TransportTool:
    """A command-line fetcher and how to invoke it"""

    name: str
    build_command: Callable[[str, str], List[str]]


def _wget(url: str, destination: str) -> List[str]:
    return ["wget", "-q", "-O", destination, url]


def _curl(url: str, destination: str) -> List[str]:
    return ["curl", "-fsSL", "-o", destination, url]


DEFAULT_TOOLS = (TransportTool("wget", _wget), TransportTool("curl", _curl))


def ref_for_version(version: str) -> str:
    """Map a requested version to the source ref holding its install script"""
    if not version or version == LATEST:
        return DEFAULT_REF
    return version


class Downloader:
    """
    Fetch artifacts with the first available transport tool.

    A tool that is present but fails is reported as is; the next tool is
    only tried when the previous one is absent from the host.
    """

    def __init__(
        self,
        runner: SystemCommandRunner,
        base_url: str,
        tools: Sequence[TransportTool] = DEFAULT_TOOLS,
    ):
        self.runner = runner
        self.base_url = base_url.rstrip("/")
        self.tools = tuple(tools)

    def artifact_url(self, artifact_name: str, version: str = LATEST) -> str:
        return f"{self.base_url}/{ref_for_version(version)}/scripts/{artifact_name}"

    def select_tool(self) -> Optional[TransportTool]:
        for tool in self.tools:
            if self.runner.is_available(tool.name):
                return tool
        return None

    def fetch(self, artifact_name: str, destination: Path | str, version: str = LATEST) -> None:
        """
        Download an artifact into a caller-owned location.

        Args:
            artifact_name: File name of the artifact, e.g. install_amd64.sh
            destination: Where to write; the caller is responsible for cleanup
            version: Requested version, "latest" for the default ref

        Raises:
            TransportUnavailable: If no transport tool is installed
            TransportFailure: If the selected tool could not complete the transfer
        """
        url = self.artifact_url(artifact_name, version)
        tool = self.select_tool()
        if tool is None:
            raise TransportUnavailable([t.name for t in self.tools])

        logger.info("Downloading artifact", url=url, tool=tool.name, destination=str(destination))
        try:
            result = self.runner.run(tool.build_command(url, str(destination)))
        except CommandExecutionError as e:
            raise TransportFailure(tool.name, url, stderr=str(e)) from e

        if not result.success:
            raise TransportFailure(tool.name, url, exit_code=result.exit_code, stderr=result.stderr)
