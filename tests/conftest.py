"""
Shared fixtures and fakes for the morpherctl test suite
"""
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pytest
import structlog

from morpherctl.core.command_runner import CommandResult
from morpherctl.core.filesystem import HostFilesystem
from morpherctl.core.status import EnabledState, RunningState, ServiceState
from morpherctl.core.target import AgentTarget

Outcome = Union[CommandResult, BaseException]


class FakeRunner:
    """
    SystemCommandRunner double.

    Records every call. Outcomes are scripted either for an exact argv or for
    a program name; anything unscripted exits 0 with no output.
    """

    def __init__(self, available: Sequence[str] = ()):
        self.available = set(available)
        self.calls: List[Tuple[List[str], Optional[Dict[str, str]], bool]] = []
        self._exact: Dict[Tuple[str, ...], Outcome] = {}
        self._by_program: Dict[str, Outcome] = {}

    def script(self, command: Sequence[str], exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._exact[tuple(command)] = CommandResult(command, exit_code, stdout, stderr)

    def script_program(self, program: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._by_program[program] = CommandResult([program], exit_code, stdout, stderr)

    def fail(self, command: Sequence[str], error: BaseException) -> None:
        self._exact[tuple(command)] = error

    def fail_program(self, program: str, error: BaseException) -> None:
        self._by_program[program] = error

    def run(
        self,
        command: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = True,
    ) -> CommandResult:
        argv = list(command)
        self.calls.append((argv, dict(env) if env is not None else None, capture_output))

        outcome = self._exact.get(tuple(argv))
        if outcome is None and argv:
            outcome = self._by_program.get(argv[0])
        if outcome is None:
            return CommandResult(argv, 0)
        if isinstance(outcome, BaseException):
            raise outcome
        return CommandResult(argv, outcome.exit_code, outcome.stdout, outcome.stderr)

    def is_available(self, name: str) -> bool:
        return name in self.available

    @property
    def commands(self) -> List[List[str]]:
        return [argv for argv, _, _ in self.calls]


class FakeService:
    """ServiceController double recording the mutations it receives"""

    def __init__(
        self,
        unit: str = "morpher-agent",
        running: RunningState = RunningState.ACTIVE,
        enabled: EnabledState = EnabledState.ENABLED,
    ):
        self.unit = unit
        self.running = running
        self.enabled = enabled
        self.calls: List[str] = []
        self.failures: Dict[str, Exception] = {}

    def query_active(self) -> RunningState:
        return self.running

    def query_enabled(self) -> EnabledState:
        return self.enabled

    def query_state(self) -> ServiceState:
        raw = "" if self.running is RunningState.UNKNOWN else self.running.value
        return ServiceState(running=self.running, enabled=self.enabled, raw_status=raw)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def start(self) -> None:
        self._record("start")

    def stop_and_disable(self) -> None:
        self._record("stop_and_disable")

    def reload_manager(self) -> None:
        self._record("reload_manager")


class RecordingFilesystem(HostFilesystem):
    """Real filesystem access that also remembers temp files and discards"""

    def __init__(self, temp_dir: Path):
        self.temp_dir = temp_dir
        self.temp_files: List[Path] = []
        self.discarded: List[Path] = []

    def make_temp_file(self, suffix: str = "") -> Path:
        path = self.temp_dir / f"morpherctl-{len(self.temp_files)}{suffix}"
        path.touch()
        self.temp_files.append(path)
        return path

    def discard(self, path) -> None:
        self.discarded.append(Path(path))
        super().discard(path)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def target(tmp_path) -> AgentTarget:
    return AgentTarget(
        controller_ip="10.0.0.5",
        architecture="amd64",
        install_path=tmp_path / "bin",
        unit_dir=tmp_path / "units",
        config_dir=tmp_path / "etc" / "morpher-agent",
        script_base_url="https://example.test/agent",
    )


@pytest.fixture
def installed_target(target) -> AgentTarget:
    """Target with binary, unit file and config dir present on disk"""
    target.install_path.mkdir(parents=True)
    target.binary_path.write_text("binary")
    target.unit_dir.mkdir(parents=True)
    target.unit_file.write_text("[Unit]\n")
    target.config_dir.mkdir(parents=True)
    (target.config_dir / "agent.yaml").write_text("controller: 10.0.0.5\n")
    return target


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(available=["wget", "curl"])


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def filesystem(tmp_path) -> RecordingFilesystem:
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    return RecordingFilesystem(temp_dir)
