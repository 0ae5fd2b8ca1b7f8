"""Async filesystem access used by discovery, save and load.

Each call runs in the default executor so the event loop stays free for the
interactive prompts, and every ``OSError`` surfaces as a
``FileOperationError`` with a transient/fatal classification.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

from claudeset.errors import FileOperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FileSystem:
    """Thin async wrapper over pathlib/shutil."""

    async def _run(self, operation: str, path: Path, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(fn, *args))
        except OSError as e:
            raise FileOperationError.from_os_error(e, operation, str(path)) from e

    async def exists(self, path: Path) -> bool:
        return await self._run("stat", path, os.path.lexists, path)

    async def is_dir(self, path: Path) -> bool:
        return await self._run("stat", path, path.is_dir)

    async def is_file(self, path: Path) -> bool:
        return await self._run("stat", path, path.is_file)

    async def read_text(self, path: Path) -> str:
        return await self._run("read", path, path.read_text, "utf-8")

    async def ensure_dir(self, path: Path) -> None:
        await self._run("mkdir", path, functools.partial(path.mkdir, parents=True, exist_ok=True))

    async def copy_file(self, src: Path, dst: Path, *, preserve_timestamps: bool = False) -> None:
        copy = shutil.copy2 if preserve_timestamps else shutil.copyfile
        await self._run("copy", src, copy, src, dst)

    async def rename(self, src: Path, dst: Path) -> None:
        await self._run("rename", src, os.replace, src, dst)

    async def remove(self, path: Path) -> None:
        """Remove a file or a whole tree. Missing paths are not an error."""
        await self._run("remove", path, _remove, path)

    async def mtime(self, path: Path) -> float:
        return await self._run("stat", path, os.path.getmtime, path)

    async def list_dir(self, path: Path) -> list[Path]:
        """Entries of ``path``, sorted by name."""
        return await self._run("list", path, lambda: sorted(path.iterdir()))

    async def glob(self, root: Path, pattern: str) -> list[str]:
        """Files under ``root`` matching ``pattern``, as relative POSIX paths."""
        return await self._run("glob", root, _glob_files, root, pattern)

    async def walk_files(self, root: Path) -> list[str]:
        """Every file below ``root`` (dotfiles included), sorted, relative POSIX paths."""
        return await self._run("walk", root, _walk_files, root)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif os.path.lexists(path):
        path.unlink()


def _glob_files(root: Path, pattern: str) -> list[str]:
    return sorted(p.relative_to(root).as_posix() for p in root.glob(pattern) if p.is_file())


def _walk_files(root: Path) -> list[str]:
    files: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            files.append((Path(dirpath) / name).relative_to(root).as_posix())
    return sorted(files)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay: float = 0.5,
) -> T:
    """Run ``operation``, retrying transient failures with linear backoff.

    Non-transient failures propagate on the first attempt. When the attempt
    budget runs out the last error is re-raised as fatal.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except FileOperationError as e:
            if not e.transient:
                raise
            if attempt >= max_attempts:
                e.transient = False
                e.details["attempts"] = attempt
                raise
            wait = delay * attempt
            logger.warning(
                "%s; retrying in %.1fs (%d/%d)", e.message, wait, attempt, max_attempts
            )
            await asyncio.sleep(wait)
            attempt += 1
