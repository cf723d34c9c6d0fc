"""
Agent lifecycle manager

Install, uninstall, upgrade, verify and status as fail-fast pipelines of
named steps. Nothing is rolled back automatically: a failed step aborts the
operation and re-running it is the recovery path. The manager holds no state
between calls; every check goes back to the filesystem and the init system.

Known limitations:
- shell-outs (download, install script, systemctl) have no timeout;
- concurrent invocations against the same host are not coordinated;
- fetched install scripts are executed without any integrity verification.
"""

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

import structlog

from ..common.exceptions import CommandExecutionError, LifecycleStepError, MorpherctlError, NotInstalled
from ..utils import format_duration
from .command_runner import SystemCommandRunner
from .downloader import LATEST, Downloader
from .filesystem import HostFilesystem
from .preflight import PreflightCheck, PreflightChecker, install_checks, uninstall_checks, upgrade_checks
from .service_controller import ServiceController, SystemdServiceController
from .status import InstallationState, RunningState, StatusResult, VerificationResult
from .target import AgentTarget

logger = structlog.get_logger()

CONTROLLER_ENV_VAR = "MORPHER_CONTROLLER_IP"


class AgentLifecycleManager:
    """Drives lifecycle operations for one AgentTarget"""

    def __init__(
        self,
        target: AgentTarget,
        runner: SystemCommandRunner,
        service: Optional[ServiceController] = None,
        downloader: Optional[Downloader] = None,
        filesystem: Optional[HostFilesystem] = None,
        checker: Optional[PreflightChecker] = None,
        checks: Optional[Mapping[str, Sequence[PreflightCheck]]] = None,
        preflight_runner: Optional[SystemCommandRunner] = None,
    ):
        self.target = target
        self.runner = runner
        # checks inspect the caller's own privileges, so they never go through an escalating runner
        self.preflight_runner = preflight_runner or runner
        self.service = service or SystemdServiceController(target.service_name, runner)
        self.downloader = downloader or Downloader(runner, target.script_base_url)
        self.fs = filesystem or HostFilesystem()
        self.checker = checker or PreflightChecker()
        self._checks: Optional[Dict[str, List[PreflightCheck]]] = (
            {name: list(items) for name, items in checks.items()} if checks is not None else None
        )

    # Preflight

    def preflight_checks(self, operation: str) -> List[PreflightCheck]:
        """Ordered checks an operation requires before it may mutate anything"""
        if self._checks is not None:
            return list(self._checks.get(operation, []))
        if operation == "install":
            return install_checks()
        if operation == "uninstall":
            return uninstall_checks()
        if operation == "upgrade":
            return upgrade_checks(self.preflight_runner)
        return []

    def run_preflight(self, operation: str) -> None:
        """Raise PreflightFailure naming the first unmet check"""
        self.checker.require(self.preflight_checks(operation))

    # Inspection

    def inspect_installation(self) -> InstallationState:
        binary = self.target.binary_path
        return InstallationState(installed=self.fs.exists(binary), binary_path=str(binary))

    def is_installed(self) -> bool:
        return self.inspect_installation().installed

    def status(self) -> StatusResult:
        """Current installation and service state; absence is a valid answer"""
        installation = self.inspect_installation()
        return StatusResult(installation=installation, service=self.service.query_state())

    def verify(self) -> VerificationResult:
        installation = self.inspect_installation()
        return VerificationResult(installation=installation, service=self.service.query_state())

    # Mutating pipelines

    def install(self, version: str = LATEST) -> None:
        """
        Download the install script for the target architecture and run it.

        The temporary script is always discarded afterwards, and failure to
        discard it never fails the install.
        """
        operation = "install"
        script: Optional[Path] = None
        logger.info("Installing agent", version=version, architecture=self.target.architecture)
        try:
            with self._step(operation, "download"):
                script = self.fs.make_temp_file(suffix=f"_{self.target.install_script_name}")
                self.downloader.fetch(self.target.install_script_name, script, version)

            with self._step(operation, "make-executable"):
                self.fs.make_executable(script)

            with self._step(operation, "run-install-script"):
                self._run_install_script(script)
        finally:
            if script is not None:
                self.fs.discard(script)
                logger.debug("Discarded install script", path=str(script))

    def uninstall(self) -> None:
        """Stop the service and remove every file the agent owns"""
        operation = "uninstall"
        with self._step(operation, "stop-and-disable"):
            self.service.stop_and_disable()

        with self._step(operation, "remove-unit-file"):
            self.fs.remove_file(self.target.unit_file)

        with self._step(operation, "remove-binary"):
            self.fs.remove_file(self.target.binary_path)

        with self._step(operation, "remove-config-dir"):
            self.fs.remove_tree(self.target.config_dir)

        with self._step(operation, "reload-unit-cache"):
            self.service.reload_manager()

    def upgrade(self, version: str = LATEST) -> None:
        """
        Replace the installed agent with another version.

        The service is disabled while stopping and only started again
        afterwards; it is not re-enabled at boot.
        """
        operation = "upgrade"
        if not self.is_installed():
            raise NotInstalled(str(self.target.binary_path))

        with self._step(operation, "stop-and-disable"):
            self.service.stop_and_disable()

        with self._step(operation, "install"):
            self.install(version)

        with self._step(operation, "start"):
            self.service.start()

        running = self.service.query_active()
        if running is not RunningState.ACTIVE:
            logger.warning("Service not active after upgrade", unit=self.target.service_name, state=running.value)

    def _run_install_script(self, script: Path) -> None:
        result = self.runner.run(
            [str(script)],
            env={CONTROLLER_ENV_VAR: self.target.controller_ip},
            capture_output=False,
        )
        if not result.success:
            raise CommandExecutionError(
                f"install script exited with code {result.exit_code}",
                command=result.command,
                exit_code=result.exit_code,
            )

    @contextmanager
    def _step(self, operation: str, step: str) -> Iterator[None]:
        logger.info("Lifecycle step started", operation=operation, step=step)
        start = time.monotonic()
        try:
            yield
        except MorpherctlError as e:
            logger.error("Lifecycle step failed", operation=operation, step=step, error=str(e))
            raise LifecycleStepError(operation, step, e) from e
        logger.info(
            "Lifecycle step completed",
            operation=operation,
            step=step,
            elapsed=format_duration(time.monotonic() - start),
        )
