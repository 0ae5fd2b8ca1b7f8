"""Snapshot storage: naming, lookup, listing and deletion."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from claudeset.errors import InvalidSetNameError, SetNotFoundError
from claudeset.files.discovery import SCOPES
from claudeset.fs import FileSystem

logger = logging.getLogger(__name__)

INVALID_CHARS = re.compile(r'[:*?"<>|\\]')
RESERVED_NAMES = {"CON", "PRN", "AUX", "NUL", "COM1", "LPT1", "PROFILES"}


def validate_set_name(name: str) -> None:
    """Raise ``InvalidSetNameError`` unless ``name`` is a safe set name.

    Names may be hierarchical (``team/backend``); every ``/``-separated part is
    checked on its own.
    """
    if not name or not name.strip():
        raise InvalidSetNameError("Set name is required")

    parts = name.split("/")
    if ".." in parts or name.startswith("/") or os.path.isabs(name):
        raise InvalidSetNameError(f"Invalid set name: {name}", {"set_name": name})

    for part in parts:
        if not part.strip():
            raise InvalidSetNameError(
                f"Set name contains an empty part: {name}", {"set_name": name}
            )
        if INVALID_CHARS.search(part):
            raise InvalidSetNameError(
                f"Set name contains invalid characters: {name}", {"set_name": name}
            )
        if part.upper() in RESERVED_NAMES:
            raise InvalidSetNameError(
                f"'{part}' is a reserved name", {"set_name": name, "part": part}
            )
        if part.startswith("."):
            raise InvalidSetNameError(
                f"Set name parts cannot start with '.': {name}", {"set_name": name}
            )


@dataclass
class SetInfo:
    """Summary of one stored snapshot."""

    name: str
    path: Path
    file_count: int
    modified: datetime


class SetStore:
    """Snapshots live under ``root/<name>/{project,user}/``."""

    def __init__(self, root: Path, fs: FileSystem) -> None:
        self.root = root
        self.fs = fs

    def set_dir(self, name: str) -> Path:
        validate_set_name(name)
        return self.root / name

    async def exists(self, name: str) -> bool:
        return await self.is_set(self.set_dir(name))

    async def is_set(self, path: Path) -> bool:
        """A directory is a snapshot only when it holds a scope sub-tree."""
        for scope in SCOPES:
            if await self.fs.is_dir(path / scope):
                return True
        return False

    async def list_sets(self) -> list[SetInfo]:
        """Every snapshot under the root, sorted by name."""
        if not await self.fs.is_dir(self.root):
            return []
        return sorted(await self._find_sets(self.root), key=lambda s: s.name)

    async def nested_sets(self, name: str) -> list[str]:
        """Names of the snapshots stored below ``name`` (a group, or a set with children)."""
        path = self.set_dir(name)
        if not await self.fs.is_dir(path):
            return []
        found = await self._find_sets(path, skip=SCOPES)
        return sorted(s.name for s in found)

    async def require(self, name: str) -> Path:
        """The directory of an existing set; ``SetNotFoundError`` otherwise."""
        path = self.set_dir(name)
        if not await self.is_set(path):
            raise SetNotFoundError(f"Set '{name}' not found", {"set_name": name, "path": str(path)})
        return path

    async def delete(self, name: str) -> Path:
        """Remove a snapshot and prune empty parent groups."""
        path = await self.require(name)

        await self.fs.remove(path)
        logger.info("Deleted set %s (%s)", name, path)

        parent = path.parent
        while parent != self.root and parent.is_relative_to(self.root):
            if await self.fs.list_dir(parent):
                break
            await self.fs.remove(parent)
            parent = parent.parent
        return path

    async def _find_sets(self, start: Path, skip: tuple[str, ...] = ()) -> list[SetInfo]:
        sets: list[SetInfo] = []
        pending = [
            d for d in await self._subdirs(start) if not d.name.startswith(".") and d.name not in skip
        ]
        while pending:
            current = pending.pop()
            subdirs = await self._subdirs(current)
            if any(d.name in SCOPES for d in subdirs):
                sets.append(await self._info(current))
                continue
            pending.extend(d for d in subdirs if not d.name.startswith("."))
        return sets

    async def _subdirs(self, path: Path) -> list[Path]:
        entries = await self.fs.list_dir(path)
        return [p for p in entries if await self.fs.is_dir(p)]

    async def _info(self, path: Path) -> SetInfo:
        files = await self.fs.walk_files(path)
        modified = await self.fs.mtime(path)
        return SetInfo(
            name=path.relative_to(self.root).as_posix(),
            path=path,
            file_count=len(files),
            modified=datetime.fromtimestamp(modified),
        )
