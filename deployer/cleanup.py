"""Release-on-exit registry for temporary files and other run resources."""

import logging
import os
import shutil
import tempfile
from typing import Callable, List, Tuple

from .errors import TempResourceError

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """
    Collects release callbacks as resources are created.

    ``release()`` runs every callback once, newest first. A failing callback
    is logged and the remaining ones still run.
    """

    def __init__(self):
        self._callbacks: List[Tuple[str, Callable[[], None]]] = []
        self._released = False

    def register(self, description: str, callback: Callable[[], None]) -> None:
        """
        Register a release callback.

        Args:
            description: Human readable name used in log lines
            callback: Called without arguments on release
        """
        self._callbacks.append((description, callback))

    def release(self) -> int:
        """
        Run all release callbacks in reverse registration order.

        Returns:
            Number of callbacks that failed
        """
        if self._released:
            return 0
        self._released = True

        failures = 0
        while self._callbacks:
            description, callback = self._callbacks.pop()
            try:
                callback()
                logger.debug(f"Released {description}")
            except Exception as e:
                failures += 1
                logger.warning(f"Failed to release {description}: {e}")
        return failures

    def __len__(self) -> int:
        return len(self._callbacks)

    def __enter__(self) -> "ResourceRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def write_file(self, content: bytes, prefix: str, suffix: str) -> str:
        """
        Write content to a new temporary file registered for removal.

        Returns:
            Path of the file
        """
        try:
            fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix)
        except OSError as e:
            raise TempResourceError(f"cannot create temporary file {prefix}*{suffix}: {e}") from e
        self.register(f"temporary file {path}", lambda: os.remove(path))

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        except OSError as e:
            raise TempResourceError(f"cannot write temporary file {path}: {e}") from e
        return path

    def write_dir_file(self, content: bytes, prefix: str, filename: str) -> Tuple[str, str]:
        """
        Write content as ``filename`` inside a new temporary directory
        registered for removal.

        Returns:
            Tuple of (directory, file path)
        """
        try:
            directory = tempfile.mkdtemp(prefix=prefix)
        except OSError as e:
            raise TempResourceError(f"cannot create temporary directory {prefix}*: {e}") from e
        self.register(f"temporary directory {directory}", lambda: shutil.rmtree(directory))

        path = os.path.join(directory, filename)
        try:
            with open(path, "wb") as f:
                f.write(content)
        except OSError as e:
            raise TempResourceError(f"cannot write temporary file {path}: {e}") from e
        return directory, path
