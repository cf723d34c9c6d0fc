"""
Host filesystem operations used by the lifecycle pipelines

"Not found" is never an error here: existence checks answer False and removals of
absent paths succeed, so pipelines can be re-run after a partial failure.
"""

import contextlib
import os
import shutil
import stat
import tempfile
from pathlib import Path

import structlog

from ..common.exceptions import FilesystemError

logger = structlog.get_logger()

EXECUTABLE_MODE = 0o755


class HostFilesystem:
    """Thin wrapper over os/shutil that raises FilesystemError for real I/O failures"""

    def exists(self, path: Path | str) -> bool:
        try:
            os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise FilesystemError(f"failed to inspect {path}: {e}", path=str(path)) from e
        return True

    def remove_file(self, path: Path | str) -> None:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            raise FilesystemError(f"failed to remove {path}: {e}", path=str(path)) from e
        logger.debug("Removed file", path=str(path))

    def remove_tree(self, path: Path | str) -> None:
        target = Path(path)
        try:
            mode = os.lstat(target).st_mode
        except FileNotFoundError:
            return
        except OSError as e:
            raise FilesystemError(f"failed to inspect {path}: {e}", path=str(path)) from e

        try:
            if stat.S_ISDIR(mode):
                shutil.rmtree(target)
            else:
                target.unlink(missing_ok=True)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(f"failed to remove {path}: {e}", path=str(path)) from e
        logger.debug("Removed directory tree", path=str(path))

    def make_executable(self, path: Path | str, mode: int = EXECUTABLE_MODE) -> None:
        try:
            os.chmod(path, mode)
        except OSError as e:
            raise FilesystemError(f"failed to make {path} executable: {e}", path=str(path)) from e

    def make_temp_file(self, suffix: str = "") -> Path:
        """Create an empty temporary file; the caller must discard it"""
        try:
            fd, name = tempfile.mkstemp(prefix="morpherctl-", suffix=suffix)
        except OSError as e:
            raise FilesystemError(f"failed to create temp file: {e}") from e
        os.close(fd)
        return Path(name)

    def discard(self, path: Path | str) -> None:
        """Best-effort removal; errors are ignored"""
        with contextlib.suppress(OSError):
            os.unlink(path)
