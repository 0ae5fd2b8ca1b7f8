"""Structured failures raised by the snapshot core.

Every failure that reaches the CLI is a ``ClaudesetError`` carrying a ``kind``,
a human-readable message and a ``details`` dict. The CLI maps them to exit
codes; the core never exits the process itself.
"""

from __future__ import annotations

import errno

# errno values worth retrying: the condition may clear on its own
TRANSIENT_ERRNOS = frozenset(
    {
        errno.EAGAIN,
        errno.EBUSY,
        errno.EMFILE,
        errno.ENFILE,
        errno.ENOSPC,
        errno.ETXTBSY,
    }
)


class ClaudesetError(Exception):
    """Base class for all structured failures."""

    kind = "error"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class InvalidSetNameError(ClaudesetError):
    kind = "validation"


class SetNotFoundError(ClaudesetError):
    kind = "not_found"


class NoFilesFoundError(ClaudesetError):
    kind = "no_files"


class FileOperationError(ClaudesetError):
    """Wraps an ``OSError`` from the filesystem collaborator."""

    kind = "io"

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        transient: bool = False,
    ) -> None:
        super().__init__(message, details)
        self.transient = transient

    @classmethod
    def from_os_error(cls, exc: OSError, operation: str, path: str) -> FileOperationError:
        code = errno.errorcode.get(exc.errno, "") if exc.errno is not None else ""
        return cls(
            f"{operation} failed: {path} ({exc.strerror or exc})",
            {"operation": operation, "path": path, "errno": code},
            transient=exc.errno in TRANSIENT_ERRNOS,
        )


class BackupError(FileOperationError):
    pass


class RestoreError(ClaudesetError):
    """A load copy failed; the files written by the run were rolled back.

    ``details["errors"]`` lists the copy failures, ``details["rollback_errors"]``
    the files that could not be removed again.
    """

    kind = "aggregate"
