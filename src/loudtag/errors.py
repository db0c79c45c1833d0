"""Structured errors raised by the tagging engine.

Every error carries an ``ErrorKind`` and a context dictionary. The boolean
functions in ``loudtag.dispatch`` collapse them to ``False``; everything else
lets them propagate.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Kinds of failure the engine distinguishes."""

    INVALID_GAIN_VALUE = "invalid_gain_value"
    UNSUPPORTED_FIELD = "unsupported_field"
    UNSUPPORTED_FORMAT = "unsupported_format"
    MISSING_ALBUM_DATA = "missing_album_data"
    INVALID_ID3_VERSION = "invalid_id3_version"
    CONTAINER_OPEN_FAILED = "container_open_failed"
    WRITE_FAILED = "write_failed"
    CLEAR_FAILED = "clear_failed"


class TagError(Exception):
    """Base class for all tagging errors."""

    kind: ErrorKind

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class InvalidGainValue(TagError):
    """Gain or peak is not a finite number."""

    kind = ErrorKind.INVALID_GAIN_VALUE


class UnsupportedField(TagError):
    """A logical field has no key in the requested tag family."""

    kind = ErrorKind.UNSUPPORTED_FIELD


class UnsupportedFormat(TagError):
    """No writer exists for the requested container kind."""

    kind = ErrorKind.UNSUPPORTED_FORMAT


class MissingAlbumData(TagError):
    """Album tags were requested but the scan has no album aggregates."""

    kind = ErrorKind.MISSING_ALBUM_DATA


class InvalidId3Version(TagError):
    """ID3v2 version outside {2, 3, 4}."""

    kind = ErrorKind.INVALID_ID3_VERSION


class ContainerOpenFailed(TagError):
    """The file could not be opened as the expected container."""

    kind = ErrorKind.CONTAINER_OPEN_FAILED


class WriteFailed(TagError):
    """Persisting written tags failed."""

    kind = ErrorKind.WRITE_FAILED


class ClearFailed(TagError):
    """Persisting a clear or strip failed."""

    kind = ErrorKind.CLEAR_FAILED
