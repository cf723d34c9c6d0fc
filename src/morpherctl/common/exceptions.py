# src/morpherctl/common/exceptions.py
"""
morpherctl exceptions
"""
from typing import Optional, Sequence


class MorpherctlError(Exception):
    """Base exception for morpherctl"""

    pass


class ConfigurationError(MorpherctlError):
    """Configuration store could not be read or a key is missing"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class CommandExecutionError(MorpherctlError):
    """A system command could not be executed"""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None, exit_code: Optional[int] = None):
        super().__init__(message)
        self.command = list(command) if command else []
        self.exit_code = exit_code


class CommandNotFoundError(CommandExecutionError):
    """The command binary is not present on the host"""

    pass


class CommandPermissionError(CommandExecutionError):
    """The command exists but the caller is not allowed to run it"""

    pass


class PreflightFailure(MorpherctlError):
    """A preflight check failed before any mutation happened"""

    def __init__(self, check_name: str, reason: str):
        super().__init__(f"preflight check '{check_name}' failed: {reason}")
        self.check_name = check_name
        self.reason = reason


class TransportUnavailable(MorpherctlError):
    """None of the download tools is installed"""

    def __init__(self, tools: Sequence[str]):
        super().__init__(f"no download tool available (tried: {', '.join(tools)})")
        self.tools = list(tools)


class TransportFailure(MorpherctlError):
    """A download tool was found but the transfer failed"""

    def __init__(self, tool: str, url: str, exit_code: Optional[int] = None, stderr: str = ""):
        message = f"{tool} failed to download {url}"
        if exit_code is not None:
            message += f" (exit code {exit_code})"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(message)
        self.tool = tool
        self.url = url
        self.exit_code = exit_code
        self.stderr = stderr


class ServiceControlError(MorpherctlError):
    """Init system command failed"""

    def __init__(self, action: str, unit: str, reason: str = "", exit_code: Optional[int] = None):
        message = f"failed to {action} service {unit}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.action = action
        self.unit = unit
        self.reason = reason
        self.exit_code = exit_code


class ServiceAuthorizationError(ServiceControlError):
    """Init system command was refused for lack of privileges"""

    pass


class FilesystemError(MorpherctlError):
    """Filesystem check or removal failed for a reason other than absence"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class NotInstalled(MorpherctlError):
    """The agent binary is not present at the expected path"""

    def __init__(self, binary_path: str):
        super().__init__(f"agent is not installed (no binary at {binary_path})")
        self.binary_path = binary_path


class LifecycleStepError(MorpherctlError):
    """A lifecycle pipeline aborted at a named step"""

    def __init__(self, operation: str, step: str, error: Exception):
        super().__init__(f"{operation} failed at step '{step}': {error}")
        self.operation = operation
        self.step = step
        self.error = error


class ControllerError(MorpherctlError):
    """Controller request failed"""

    pass


class ControllerConnectionError(ControllerError):
    """Controller could not be reached"""

    pass


class ControllerTimeoutError(ControllerError):
    """Controller did not answer before the deadline"""

    pass


class ControllerResponseError(ControllerError):
    """Controller answered with a body that could not be decoded"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
