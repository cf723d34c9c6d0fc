"""
Init system control for the managed agent unit
"""

from typing import Protocol, Sequence

import structlog

from ..common.exceptions import (
    CommandExecutionError,
    CommandNotFoundError,
    CommandPermissionError,
    ServiceAuthorizationError,
    ServiceControlError,
)
from .command_runner import CommandResult, SystemCommandRunner
from .status import EnabledState, RunningState, ServiceState

logger = structlog.get_logger()

_AUTHORIZATION_MARKERS = (
    "access denied",
    "interactive authentication required",
    "a password is required",
    "permission denied",
    "not in the sudoers",
    "is not allowed to",
)

_RUNNING_STATES = {
    "active": RunningState.ACTIVE,
    "reloading": RunningState.ACTIVE,
    "inactive": RunningState.INACTIVE,
    "deactivating": RunningState.INACTIVE,
    "failed": RunningState.FAILED,
}

_ENABLED_STATES = {
    "enabled": EnabledState.ENABLED,
    "enabled-runtime": EnabledState.ENABLED,
    "disabled": EnabledState.DISABLED,
    "masked": EnabledState.DISABLED,
    "masked-runtime": EnabledState.DISABLED,
}


class ServiceController(Protocol):
    """Capability interface over the host init system for one unit"""

    unit: str

    def query_active(self) -> RunningState: ...

    def query_enabled(self) -> EnabledState: ...

    def query_state(self) -> ServiceState: ...

    def start(self) -> None: ...

    def stop_and_disable(self) -> None: ...

    def reload_manager(self) -> None: ...


class SystemdServiceController:
    """
    ServiceController backed by systemctl.

    Never escalates privilege on its own: hand it an escalating runner if the
    caller is not root.
    """

    def __init__(self, unit: str, runner: SystemCommandRunner, systemctl: str = "systemctl"):
        self.unit = unit
        self.runner = runner
        self.systemctl = systemctl

    def query_active(self) -> RunningState:
        """Query run state. Any failure to ask yields UNKNOWN, never INACTIVE."""
        word = self._query("is-active")
        return _RUNNING_STATES.get(word, RunningState.UNKNOWN)

    def query_enabled(self) -> EnabledState:
        """Query boot state. Any failure to ask yields UNKNOWN."""
        word = self._query("is-enabled")
        return _ENABLED_STATES.get(word, EnabledState.UNKNOWN)

    def query_state(self) -> ServiceState:
        raw = self._query("is-active")
        return ServiceState(
            running=_RUNNING_STATES.get(raw, RunningState.UNKNOWN),
            enabled=self.query_enabled(),
            raw_status=raw,
        )

    def start(self) -> None:
        self._mutate("start", ["start", self.unit])

    def stop_and_disable(self) -> None:
        self._mutate("stop and disable", ["disable", "--now", self.unit])

    def reload_manager(self) -> None:
        self._mutate("reload unit files for", ["daemon-reload"])

    def _query(self, verb: str) -> str:
        # systemctl exits nonzero for "inactive"/"disabled", so the printed
        # word is authoritative and the exit code is ignored here.
        try:
            result = self.runner.run([self.systemctl, verb, self.unit])
        except CommandExecutionError as e:
            logger.debug("Service query failed", unit=self.unit, verb=verb, error=str(e))
            return ""
        lines = result.stdout.strip().splitlines()
        return lines[0].strip() if lines else ""

    def _mutate(self, action: str, args: Sequence[str]) -> None:
        command = [self.systemctl, *args]
        logger.info("Service control", unit=self.unit, action=action)
        try:
            result = self.runner.run(command)
        except CommandPermissionError as e:
            raise ServiceAuthorizationError(action, self.unit, str(e)) from e
        except CommandNotFoundError as e:
            raise ServiceControlError(action, self.unit, f"{self.systemctl} is not available") from e
        except CommandExecutionError as e:
            raise ServiceControlError(action, self.unit, str(e)) from e

        if not result.success:
            raise _failure(action, self.unit, result)


def _failure(action: str, unit: str, result: CommandResult) -> ServiceControlError:
    reason = result.stderr.strip() or f"exit code {result.exit_code}"
    if any(marker in reason.lower() for marker in _AUTHORIZATION_MARKERS):
        return ServiceAuthorizationError(action, unit, reason, exit_code=result.exit_code)
    return ServiceControlError(action, unit, reason, exit_code=result.exit_code)
