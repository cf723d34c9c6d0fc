"""
Agent state model and status summaries

Everything here is derived from fresh checks; nothing is cached.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RunningState(str, Enum):
    """Run state of the managed unit"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    FAILED = "failed"
    UNKNOWN = "unknown"


class EnabledState(str, Enum):
    """Boot-time activation of the managed unit"""

    ENABLED = "enabled"
    DISABLED = "disabled"
    UNKNOWN = "unknown"


class StatusSummary(str, Enum):
    """Mutually exclusive summary categories"""

    RUNNING_AND_ENABLED = "running-and-enabled"
    RUNNING_NOT_ENABLED = "running-not-enabled"
    INSTALLED_NOT_RUNNING = "installed-not-running"
    NOT_INSTALLED = "not-installed"


class Verdict(str, Enum):
    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"


@dataclass(frozen=True)
class ServiceState:
    """Externally observed state of the unit, as reported by the init system"""

    running: RunningState
    enabled: EnabledState
    raw_status: str = ""

    @property
    def is_running(self) -> bool:
        return self.running is RunningState.ACTIVE

    @property
    def is_enabled(self) -> bool:
        return self.enabled is EnabledState.ENABLED


@dataclass(frozen=True)
class InstallationState:
    """Whether the agent binary exists at the expected path"""

    installed: bool
    binary_path: str


def summarize(installed: bool, running: RunningState, enabled: EnabledState) -> StatusSummary:
    """
    Fold check results into one summary category.

    Total over every input combination. Anything short of a confirmed
    "active" counts as not running, and anything short of a confirmed
    "enabled" counts as not enabled. A running unit without a binary is
    still reported as not installed.
    """
    if not installed:
        return StatusSummary.NOT_INSTALLED
    if running is not RunningState.ACTIVE:
        return StatusSummary.INSTALLED_NOT_RUNNING
    if enabled is EnabledState.ENABLED:
        return StatusSummary.RUNNING_AND_ENABLED
    return StatusSummary.RUNNING_NOT_ENABLED


_STATUS_MESSAGES = {
    StatusSummary.RUNNING_AND_ENABLED: "Agent is running and properly configured",
    StatusSummary.RUNNING_NOT_ENABLED: "Agent is running but not enabled at boot",
    StatusSummary.INSTALLED_NOT_RUNNING: "Agent is installed but service is not running",
    StatusSummary.NOT_INSTALLED: "Agent is not installed",
}

_VERIFY_MESSAGES = {
    StatusSummary.RUNNING_AND_ENABLED: (Verdict.PASS, "Agent is properly installed and running"),
    StatusSummary.RUNNING_NOT_ENABLED: (Verdict.WARNING, "Agent is running but not enabled"),
    StatusSummary.INSTALLED_NOT_RUNNING: (Verdict.WARNING, "Agent is installed but service is not running"),
    StatusSummary.NOT_INSTALLED: (Verdict.FAIL, "Agent is not properly installed"),
}


def describe_status(summary: StatusSummary) -> str:
    return _STATUS_MESSAGES[summary]


def verdict_for(summary: StatusSummary) -> Verdict:
    return _VERIFY_MESSAGES[summary][0]


def describe_verification(summary: StatusSummary) -> str:
    verdict, message = _VERIFY_MESSAGES[summary]
    return f"{verdict.value} - {message}"


@dataclass(frozen=True)
class StatusResult:
    """Snapshot returned by the status operation"""

    installation: InstallationState
    service: ServiceState

    @property
    def installed(self) -> bool:
        return self.installation.installed

    @property
    def install_path(self) -> Optional[str]:
        return self.installation.binary_path if self.installation.installed else None

    @property
    def summary(self) -> StatusSummary:
        return summarize(self.installation.installed, self.service.running, self.service.enabled)

    def describe(self) -> str:
        return describe_status(self.summary)


@dataclass(frozen=True)
class VerificationResult:
    """Snapshot returned by the verify operation"""

    installation: InstallationState
    service: ServiceState

    @property
    def binary_installed(self) -> bool:
        return self.installation.installed

    @property
    def binary_path(self) -> Optional[str]:
        return self.installation.binary_path if self.installation.installed else None

    @property
    def summary(self) -> StatusSummary:
        return summarize(self.installation.installed, self.service.running, self.service.enabled)

    @property
    def verdict(self) -> Verdict:
        return verdict_for(self.summary)

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS

    def describe(self) -> str:
        return describe_verification(self.summary)
