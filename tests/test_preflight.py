"""
Tests for preflight checks
"""
import pytest

from conftest import FakeRunner
from morpherctl.common.exceptions import CommandNotFoundError, PreflightFailure
from morpherctl.core.preflight import (
    SYSTEMD_RUNTIME_DIR,
    PreflightCheck,
    PreflightChecker,
    install_checks,
    sudo_privileges,
    uninstall_checks,
    upgrade_checks,
)


def as_root():
    return 0


def as_user():
    return 1000


def systemd_host(path):
    return path == SYSTEMD_RUNTIME_DIR


def no_systemd(path):
    return False


def which_from(*present):
    return lambda name: f"/usr/bin/{name}" if name in present else None


def test_all_pass():
    failed, ok = PreflightChecker().run_all(install_checks(as_root, systemd_host))

    assert ok
    assert failed is None


def test_run_all_short_circuits():
    seen = []
    checks = [
        PreflightCheck("a", "a failed", lambda: seen.append("a") or False),
        PreflightCheck("b", "b failed", lambda: seen.append("b") or True),
    ]

    failed, ok = PreflightChecker().run_all(checks)

    assert not ok
    assert failed.name == "a"
    assert seen == ["a"]


def test_install_requires_root_first():
    with pytest.raises(PreflightFailure) as exc_info:
        PreflightChecker().require(install_checks(as_user, no_systemd))

    assert exc_info.value.check_name == "root-privileges"
    assert exc_info.value.reason == "installation requires root privileges"


def test_uninstall_requires_systemd():
    with pytest.raises(PreflightFailure) as exc_info:
        PreflightChecker().require(uninstall_checks(as_root, no_systemd))

    assert exc_info.value.check_name == "systemd-present"


def test_upgrade_requires_sudo_on_path():
    checks = upgrade_checks(FakeRunner(), as_root, systemd_host, which_from())

    with pytest.raises(PreflightFailure) as exc_info:
        PreflightChecker().require(checks)

    assert exc_info.value.check_name == "sudo-available"


def test_upgrade_accepts_launchd():
    checks = upgrade_checks(FakeRunner(), as_root, no_systemd, which_from("sudo", "launchctl"))

    PreflightChecker().require(checks)


def test_upgrade_without_init_system():
    checks = upgrade_checks(FakeRunner(), as_root, no_systemd, which_from("sudo"))

    with pytest.raises(PreflightFailure) as exc_info:
        PreflightChecker().require(checks)

    assert exc_info.value.check_name == "init-system-present"


def test_sudo_privileges_checked_for_non_root():
    runner = FakeRunner()
    runner.script(["sudo", "-n", "true"], exit_code=1, stderr="sudo: a password is required")

    assert not sudo_privileges(runner, as_user).evaluate()
    assert runner.commands == [["sudo", "-n", "true"]]


def test_sudo_privileges_root_skips_check():
    runner = FakeRunner()

    assert sudo_privileges(runner, as_root).evaluate()
    assert runner.calls == []


def test_sudo_privileges_when_sudo_cannot_run():
    runner = FakeRunner()
    runner.fail_program("sudo", CommandNotFoundError("command not found: sudo"))

    assert not sudo_privileges(runner, as_user).evaluate()
