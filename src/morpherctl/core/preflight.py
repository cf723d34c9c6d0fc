"""
Preflight checks

Read-only predicates evaluated before a lifecycle operation mutates anything.
"""

import os
import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from ..common.exceptions import CommandExecutionError, PreflightFailure
from .command_runner import SystemCommandRunner

logger = structlog.get_logger()

SYSTEMD_RUNTIME_DIR = "/run/systemd/system"


@dataclass(frozen=True)
class PreflightCheck:
    """A named precondition over the ambient environment"""

    name: str
    reason: str
    predicate: Callable[[], bool]

    def evaluate(self) -> bool:
        return bool(self.predicate())


class PreflightChecker:
    """Evaluates ordered check lists and stops at the first failure"""

    def run_all(self, checks: Sequence[PreflightCheck]) -> Tuple[Optional[PreflightCheck], bool]:
        """
        Evaluate checks in order.

        Returns:
            (first failed check, False) or (None, True) when all pass.
            Checks after the first failure are never evaluated.
        """
        for check in checks:
            if not check.evaluate():
                logger.debug("Preflight check failed", check=check.name)
                return check, False
            logger.debug("Preflight check passed", check=check.name)
        return None, True

    def require(self, checks: Sequence[PreflightCheck]) -> None:
        """Raise PreflightFailure for the first failing check"""
        failed, ok = self.run_all(checks)
        if not ok and failed is not None:
            raise PreflightFailure(failed.name, failed.reason)


def root_privileges(operation: str, geteuid: Callable[[], int] = os.geteuid) -> PreflightCheck:
    return PreflightCheck(
        name="root-privileges",
        reason=f"{operation} requires root privileges",
        predicate=lambda: geteuid() == 0,
    )


def systemd_present(exists: Callable[[str], bool] = os.path.isdir) -> PreflightCheck:
    return PreflightCheck(
        name="systemd-present",
        reason="systemd is not available",
        predicate=lambda: exists(SYSTEMD_RUNTIME_DIR),
    )


def command_on_path(
    command: str,
    reason: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> PreflightCheck:
    return PreflightCheck(
        name=f"{command}-available",
        reason=reason or f"{command} is not available",
        predicate=lambda: which(command) is not None,
    )


def any_of(name: str, reason: str, checks: Sequence[PreflightCheck]) -> PreflightCheck:
    """Passes when at least one of the alternatives passes"""
    return PreflightCheck(
        name=name,
        reason=reason,
        predicate=lambda: any(check.evaluate() for check in checks),
    )


def sudo_privileges(
    runner: SystemCommandRunner,
    geteuid: Callable[[], int] = os.geteuid,
) -> PreflightCheck:
    """Root passes outright; anyone else must be able to sudo without a prompt"""

    def _can_sudo() -> bool:
        if geteuid() == 0:
            return True
        try:
            return runner.run(["sudo", "-n", "true"]).success
        except CommandExecutionError:
            return False

    return PreflightCheck(
        name="sudo-privileges",
        reason="sudo privileges required - run with 'sudo morpherctl agent upgrade' or ensure sudo access",
        predicate=_can_sudo,
    )


def install_checks(
    geteuid: Callable[[], int] = os.geteuid,
    exists: Callable[[str], bool] = os.path.isdir,
) -> List[PreflightCheck]:
    return [root_privileges("installation", geteuid), systemd_present(exists)]


def uninstall_checks(
    geteuid: Callable[[], int] = os.geteuid,
    exists: Callable[[str], bool] = os.path.isdir,
) -> List[PreflightCheck]:
    return [root_privileges("uninstallation", geteuid), systemd_present(exists)]


def upgrade_checks(
    runner: SystemCommandRunner,
    geteuid: Callable[[], int] = os.geteuid,
    exists: Callable[[str], bool] = os.path.isdir,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> List[PreflightCheck]:
    return [
        command_on_path("sudo", "sudo is not available - upgrade requires sudo privileges", which),
        any_of(
            "init-system-present",
            "neither systemd nor launchd is available - unsupported platform",
            [systemd_present(exists), command_on_path("launchctl", which=which)],
        ),
        sudo_privileges(runner, geteuid),
    ]

