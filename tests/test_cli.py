"""
Tests for the Typer command line
"""
import httpx
import pytest
from typer.testing import CliRunner

from conftest import FakeRunner, FakeService
from morpherctl.cli.commands import agent as agent_commands
from morpherctl.cli.commands import controller as controller_commands
from morpherctl.common.exceptions import FilesystemError
from morpherctl.core.filesystem import HostFilesystem
from morpherctl.core.lifecycle import AgentLifecycleManager
from morpherctl.core.preflight import PreflightCheck
from morpherctl.core.status import EnabledState
from morpherctl.integration.controller_client import ControllerClient
from morpherctl.main import app

cli = CliRunner()


def passing(name):
    return PreflightCheck(name, f"{name} failed", lambda: True)


def failing(name, reason):
    return PreflightCheck(name, reason, lambda: False)


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "config.yaml"


@pytest.fixture
def agent_env(monkeypatch, tmp_path):
    """Point agent layout defaults at a scratch directory"""
    monkeypatch.setenv("MORPHER_AGENT_INSTALL_PATH", str(tmp_path / "bin"))
    monkeypatch.setenv("MORPHER_AGENT_UNIT_DIR", str(tmp_path / "units"))
    monkeypatch.setenv("MORPHER_AGENT_CONFIG_DIR", str(tmp_path / "etc"))
    return tmp_path


@pytest.fixture
def wired(monkeypatch, agent_env):
    """Replace the host wiring with fakes; returns the shared doubles"""
    doubles = {
        "runner": FakeRunner(available=["wget"]),
        "service": FakeService(),
        "checks": {op: [passing("root-privileges")] for op in ("install", "uninstall", "upgrade")},
        "escalate": [],
    }

    def build_manager(target, escalate=False):
        doubles["escalate"].append(escalate)
        doubles["target"] = target
        return AgentLifecycleManager(
            target, doubles["runner"], service=doubles["service"], checks=doubles["checks"]
        )

    monkeypatch.setattr(agent_commands, "build_manager", build_manager)
    return doubles


def install_binary(root):
    (root / "bin").mkdir()
    (root / "bin" / "morpher-agent").write_text("binary")


def test_version():
    result = cli.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "Version: dev" in result.output
    assert "Git Commit: none" in result.output


@pytest.mark.parametrize("value", ["*", "express:*", "verbose"])
def test_foreign_debug_values_do_not_break_startup(value, config_file):
    result = cli.invoke(app, ["--config", str(config_file), "version"], env={"DEBUG": value})

    assert result.exit_code == 0, result.output
    assert "Version: dev" in result.output


class TestConfigCommands:
    def test_init_set_get_show(self, config_file):
        assert cli.invoke(app, ["--config", str(config_file), "config", "init"]).exit_code == 0
        assert cli.invoke(app, ["--config", str(config_file), "config", "set", "controller.ip", "10.2.0.1"]).exit_code == 0

        result = cli.invoke(app, ["--config", str(config_file), "config", "get", "controller.ip"])
        assert result.exit_code == 0
        assert "controller.ip = 10.2.0.1" in result.output

        result = cli.invoke(app, ["--config", str(config_file), "config", "show"])
        assert result.exit_code == 0
        assert "controller.timeout" in result.output

    def test_config_env_var(self, config_file):
        result = cli.invoke(app, ["config", "init"], env={"MORPHERCTL_CONFIG": str(config_file)})

        assert result.exit_code == 0
        assert config_file.exists()

    def test_missing_key_exit_code(self, config_file):
        cli.invoke(app, ["--config", str(config_file), "config", "init"])

        result = cli.invoke(app, ["--config", str(config_file), "config", "get", "nope"])

        assert result.exit_code == 78

    def test_set_before_init(self, config_file):
        result = cli.invoke(app, ["--config", str(config_file), "config", "set", "controller.ip", "1.1.1.1"])

        assert result.exit_code == 78


class TestAgentCommands:
    def test_install(self, wired, config_file):
        cli.invoke(app, ["--config", str(config_file), "config", "init"])
        cli.invoke(app, ["--config", str(config_file), "config", "set", "controller.ip", "10.9.9.9"])

        result = cli.invoke(app, ["--config", str(config_file), "agent", "install", "v1.0.0"])

        assert result.exit_code == 0, result.output
        assert "Controller IP: 10.9.9.9" in result.output
        assert "Running preflight checks... OK" in result.output
        assert "Installing agent... OK" in result.output
        assert wired["target"].controller_ip == "10.9.9.9"
        assert wired["runner"].calls[-1][1] == {"MORPHER_CONTROLLER_IP": "10.9.9.9"}

    def test_install_defaults_to_localhost_without_config(self, wired, config_file):
        result = cli.invoke(app, ["--config", str(config_file), "agent", "install"])

        assert result.exit_code == 0, result.output
        assert wired["target"].controller_ip == "localhost"

    def test_install_preflight_failure(self, wired, config_file):
        wired["checks"]["install"] = [failing("root-privileges", "installation requires root privileges")]

        result = cli.invoke(app, ["--config", str(config_file), "agent", "install"])

        assert result.exit_code == 77
        assert "Running preflight checks... FAILED" in result.output
        assert wired["runner"].calls == []

    def test_install_failure_names_step(self, wired, config_file):
        wired["runner"].available.clear()

        result = cli.invoke(app, ["--config", str(config_file), "agent", "install"])

        assert result.exit_code == 1
        assert "Installing agent... FAILED" in result.output
        assert "download" in result.output

    def test_uninstall_not_installed(self, wired, config_file):
        result = cli.invoke(app, ["--config", str(config_file), "agent", "uninstall", "--yes"])

        assert result.exit_code == 3
        assert wired["service"].calls == []

    def test_uninstall_force_when_not_installed(self, wired, config_file):
        result = cli.invoke(app, ["--config", str(config_file), "agent", "uninstall", "--yes", "--force"])

        assert result.exit_code == 0, result.output
        assert wired["service"].calls == ["stop_and_disable", "reload_manager"]

    def test_uninstall_declined(self, wired, agent_env, config_file):
        install_binary(agent_env)

        result = cli.invoke(app, ["--config", str(config_file), "agent", "uninstall"], input="n\n")

        assert result.exit_code == 0
        assert "cancelled" in result.output
        assert wired["service"].calls == []
        assert (agent_env / "bin" / "morpher-agent").exists()

    def test_uninstall_confirmed(self, wired, agent_env, config_file):
        install_binary(agent_env)

        result = cli.invoke(app, ["--config", str(config_file), "agent", "uninstall"], input="y\n")

        assert result.exit_code == 0, result.output
        assert "Uninstalling agent... OK" in result.output
        assert not (agent_env / "bin" / "morpher-agent").exists()

    def test_upgrade_escalates(self, wired, agent_env, config_file):
        install_binary(agent_env)

        result = cli.invoke(app, ["--config", str(config_file), "agent", "upgrade"])

        assert result.exit_code == 0, result.output
        assert wired["escalate"] == [True]
        assert wired["service"].calls == ["stop_and_disable", "start"]

    def test_upgrade_not_installed(self, wired, config_file):
        result = cli.invoke(app, ["--config", str(config_file), "agent", "upgrade"])

        assert result.exit_code == 3
        assert wired["service"].calls == []

    def test_status_detailed(self, wired, agent_env, config_file):
        install_binary(agent_env)
        wired["service"].enabled = EnabledState.DISABLED

        result = cli.invoke(app, ["--config", str(config_file), "agent", "status", "--detailed"])

        assert result.exit_code == 0, result.output
        assert "Detailed Information" in result.output
        assert "not enabled at boot" in result.output

    def test_status_not_installed_skips_details(self, wired, config_file):
        result = cli.invoke(app, ["--config", str(config_file), "agent", "status", "--detailed"])

        assert result.exit_code == 0
        assert "Detailed Information" not in result.output
        assert "Agent is not installed" in result.output

    def test_binary_check_io_error_is_reported(self, wired, agent_env, config_file, monkeypatch):
        def broken_exists(self, path):
            raise FilesystemError(f"failed to inspect {path}: Input/output error", path=str(path))

        monkeypatch.setattr(HostFilesystem, "exists", broken_exists)

        result = cli.invoke(app, ["--config", str(config_file), "agent", "status"])

        assert result.exit_code == 1
        assert "failed to inspect" in result.output
        assert "Unexpected error" not in result.output

    def test_verify(self, wired, agent_env, config_file):
        install_binary(agent_env)

        result = cli.invoke(app, ["--config", str(config_file), "agent", "verify"])

        assert result.exit_code == 0, result.output
        assert "PASS" in result.output


class TestControllerCommands:
    @pytest.fixture
    def serve(self, monkeypatch):
        def install(handler):
            client = ControllerClient(base_url="http://controller.test:9000", transport=httpx.MockTransport(handler))
            monkeypatch.setattr(controller_commands, "build_client", lambda ctx: client)

        return install

    def test_ping(self, serve):
        serve(lambda request: httpx.Response(200, headers={"X-Response-Time": "2ms"}))

        result = cli.invoke(app, ["controller", "ping"])

        assert result.exit_code == 0, result.output
        assert "Controller responded successfully" in result.output

    def test_ping_bad_status(self, serve):
        serve(lambda request: httpx.Response(502))

        result = cli.invoke(app, ["controller", "ping"])

        assert result.exit_code == 1
        assert "502" in result.output

    def test_ping_unreachable(self, serve):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        serve(handler)

        result = cli.invoke(app, ["controller", "ping"])

        assert result.exit_code == 111

    def test_info(self, serve):
        serve(
            lambda request: httpx.Response(
                200,
                json={
                    "OS": {"Name": "linux", "PlatformVersion": "22.04", "KernelVersion": "5.15"},
                    "GoVersion": "go1.22",
                    "UpTime": "1h",
                },
            )
        )

        result = cli.invoke(app, ["controller", "info"])

        assert result.exit_code == 0, result.output
        assert "go1.22" in result.output
