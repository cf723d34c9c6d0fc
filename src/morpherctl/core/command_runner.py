"""
System command runner

Every interaction with the host (init system, download tools, install
script) goes through a SystemCommandRunner so it can be replaced in tests.
"""

import os
import shutil
import subprocess
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import structlog

from ..common.exceptions import CommandExecutionError, CommandNotFoundError, CommandPermissionError

logger = structlog.get_logger()

SUDO_PREFIX = ("sudo", "-n", "-E")


class CommandResult:
    """Result of command execution with metadata"""

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        execution_time: float = 0.0,
    ):
        self.command = list(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.execution_time = execution_time
        self.executed_at = datetime.now(timezone.utc)
        self.success = exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary"""
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "success": self.success,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "execution_time": self.execution_time,
            "executed_at": self.executed_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"CommandResult(command={self.command!r}, exit_code={self.exit_code})"


class SystemCommandRunner(Protocol):
    """Capability to run host commands"""

    def run(
        self,
        command: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = True,
    ) -> CommandResult:
        """
        Run a command and wait for it to exit.

        Args:
            command: Program name followed by its arguments
            env: Extra environment variables layered over the caller's environment
            capture_output: Capture stdout/stderr instead of inheriting the caller's streams

        Returns:
            CommandResult carrying the exit code; a nonzero exit is not an error here

        Raises:
            CommandNotFoundError: If the program does not exist
            CommandPermissionError: If the program cannot be executed by the caller
            CommandExecutionError: For any other failure to start the program
        """
        ...

    def is_available(self, name: str) -> bool:
        """Whether a command is present on PATH"""
        ...


class SubprocessRunner:
    """SystemCommandRunner backed by subprocess. Blocks until the command exits; no timeout."""

    def run(
        self,
        command: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = True,
    ) -> CommandResult:
        argv = list(command)
        process_env = None
        if env:
            process_env = dict(os.environ)
            process_env.update(env)

        logger.debug("Running command", command=argv)
        start = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                env=process_env,
                capture_output=capture_output,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(f"command not found: {argv[0]}", command=argv) from e
        except PermissionError as e:
            raise CommandPermissionError(f"permission denied executing {argv[0]}", command=argv) from e
        except OSError as e:
            raise CommandExecutionError(f"failed to execute {argv[0]}: {e}", command=argv) from e

        result = CommandResult(
            command=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            execution_time=time.monotonic() - start,
        )
        logger.debug("Command finished", command=argv, exit_code=result.exit_code)
        return result

    def is_available(self, name: str) -> bool:
        return shutil.which(name) is not None


class EscalatingRunner:
    """
    Wraps another runner and prefixes every command with the privilege
    escalation helper. Used when the operator is not root but may sudo.
    """

    def __init__(self, inner: SystemCommandRunner, prefix: Sequence[str] = SUDO_PREFIX):
        self.inner = inner
        self.prefix: List[str] = list(prefix)

    def run(
        self,
        command: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = True,
    ) -> CommandResult:
        return self.inner.run([*self.prefix, *command], env=env, capture_output=capture_output)

    def is_available(self, name: str) -> bool:
        return self.inner.is_available(name)


def build_runner(escalate: bool = False) -> SystemCommandRunner:
    """Create the host runner, escalating through sudo when asked and not already root"""
    runner: SystemCommandRunner = SubprocessRunner()
    if escalate and os.geteuid() != 0:
        logger.debug("Escalating commands through sudo")
        return EscalatingRunner(runner)
    return runner
