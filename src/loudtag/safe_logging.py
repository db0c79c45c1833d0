"""Path-safe logging for loudtag.

Log lines name the files being tagged. These helpers keep full library paths
out of logs:
- File path hashing/relativization
- A formatter that rewrites paths in messages and arguments
- Rich handler setup for the CLI
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Absolute POSIX paths ending in a file name with an extension
ABSOLUTE_PATH = re.compile(r"(?<![\w.:/])/(?:[^\s/:]+/)+[^\s/:]+\.[A-Za-z0-9]+")


def hash_path(file_path: Path | str, length: int = 12) -> str:
    """Hash a file path for logging.

    Creates a deterministic, non-reversible hash of the full path.

    Args:
        file_path: Path to hash
        length: Length of hash to return

    Returns:
        Truncated SHA256 hash of the path
    """
    return hashlib.sha256(str(file_path).encode()).hexdigest()[:length]


def relativize_path(file_path: Path | str, library_root: Path | str | None = None) -> str:
    """Convert path to relative form for safe logging.

    Relative to ``library_root`` when the path is inside it, otherwise
    just the parent directory and file name.
    """
    path = Path(file_path)

    if library_root:
        try:
            return str(path.relative_to(Path(library_root)))
        except ValueError:
            pass

    if path.parent.name:
        return f"{path.parent.name}/{path.name}"
    return path.name


def safe_path(
    file_path: Path | str,
    library_root: Path | str | None = None,
    use_hash: bool = False,
) -> str:
    """Get a safe representation of a path for logging."""
    if use_hash:
        return f"file:{hash_path(file_path)}"
    return relativize_path(file_path, library_root)


@lru_cache(maxsize=1)
def _get_library_root() -> Path | None:
    """Get library root from environment."""
    root = os.environ.get("LOUDTAG_LIBRARY_ROOT")
    return Path(root) if root else None


class SafeLogFormatter(logging.Formatter):
    """Log formatter that shortens or hashes file paths.

    Handles paths passed as ``%`` arguments as well as absolute paths
    already interpolated into the message.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        hash_paths: bool = False,
        library_root: Path | None = None,
    ):
        super().__init__(fmt, datefmt)
        self.hash_paths = hash_paths
        self._library_root = library_root or _get_library_root()

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers see the original record
        record = logging.makeLogRecord(record.__dict__)

        if record.args:
            record.args = self._sanitize_args(record.args)
        record.msg = self.sanitize_message(str(record.msg))

        return super().format(record)

    def sanitize_message(self, message: str) -> str:
        return ABSOLUTE_PATH.sub(lambda match: self._safe(match.group(0)), message)

    def _safe(self, value: Path | str) -> str:
        return safe_path(value, self._library_root, use_hash=self.hash_paths)

    def _sanitize_args(
        self, args: tuple[Any, ...] | Mapping[str, Any]
    ) -> tuple[Any, ...] | dict[str, Any]:
        if isinstance(args, Mapping):
            return {k: self._sanitize_value(v) for k, v in args.items()}
        return tuple(self._sanitize_value(arg) for arg in args)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Path):
            return self._safe(value)
        if isinstance(value, str):
            return self.sanitize_message(value)
        return value


def _reset_root(handler: logging.Handler, level: int) -> None:
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, "_loudtag", False):
            root_logger.removeHandler(existing)
    handler._loudtag = True  # type: ignore[attr-defined]
    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def configure_rich_logging(
    level: int = logging.WARNING,
    hash_paths: bool = False,
    format_string: str = "%(message)s",
    show_time: bool = True,
    show_path: bool = False,
) -> Console:
    """Configure logging through a rich handler on stderr, for the CLI.

    The handler draws its own time and level columns, so ``format_string``
    usually holds only the message.

    Returns:
        Console on stdout for command output
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
    )
    handler.setFormatter(SafeLogFormatter(fmt=format_string, hash_paths=hash_paths))
    _reset_root(handler, level)
    return Console()
