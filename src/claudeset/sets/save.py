"""Write a file selection into a named snapshot."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from claudeset.config import RetryConfig
from claudeset.errors import FileOperationError, InvalidSetNameError, NoFilesFoundError
from claudeset.files.discovery import PROJECT, USER
from claudeset.files.selection import FileSelectionResult
from claudeset.fs import FileSystem, with_retry
from claudeset.prompts import Prompter
from claudeset.sets.store import SetStore

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of a save. ``cancelled`` means nothing was touched."""

    name: str
    path: Path
    saved: dict[str, list[str]] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total(self) -> int:
        return sum(len(files) for files in self.saved.values())

    @property
    def project_count(self) -> int:
        return len(self.saved.get(PROJECT, []))

    @property
    def user_count(self) -> int:
        return len(self.saved.get(USER, []))


def escapes_root(path: str) -> bool:
    return os.path.isabs(path) or path == ".." or path.startswith("../")


class SnapshotWriter:
    """Replace a snapshot with the selected files.

    An existing snapshot is deleted outright before copying, so files outside
    the new selection do not survive a re-save.
    """

    def __init__(
        self,
        store: SetStore,
        fs: FileSystem,
        prompter: Prompter,
        retry: RetryConfig | None = None,
    ) -> None:
        self.store = store
        self.fs = fs
        self.prompter = prompter
        self.retry = retry or RetryConfig()

    async def save(
        self,
        name: str,
        selections: list[FileSelectionResult],
        *,
        force: bool = False,
    ) -> SaveResult:
        set_dir = self.store.set_dir(name)
        result = SaveResult(name=name, path=set_dir)

        savable: list[FileSelectionResult] = []
        for group in selections:
            inside = []
            for file in group.files:
                if escapes_root(file):
                    logger.warning("Skipping %s: outside the %s root", file, group.scope)
                    result.skipped.append(file)
                else:
                    inside.append(file)
            if inside:
                savable.append(FileSelectionResult(group.scope, group.base_dir, inside))
        if not savable:
            raise NoFilesFoundError(
                "No files selected", {"set_name": name, "skipped": result.skipped}
            )

        nested = await self.store.nested_sets(name)
        if nested:
            raise InvalidSetNameError(
                f"'{name}' holds other sets and cannot be replaced",
                {"set_name": name, "nested_sets": nested},
            )

        exists = await self.store.exists(name)
        if exists and not force:
            overwrite = await self.prompter.confirm(
                f"Set '{name}' already exists. Overwrite it?", default=False
            )
            if not overwrite:
                logger.info("Save of %s cancelled", name)
                result.cancelled = True
                return result

        if exists:
            logger.debug("Removing existing set %s", set_dir)
            await self.fs.remove(set_dir)

        for group in savable:
            scope_dir = set_dir / group.scope
            saved = result.saved.setdefault(group.scope, [])
            for file in group.files:
                await self._copy(group.base_dir / file, scope_dir / file, group.scope, file)
                saved.append(file)

        logger.info("Saved %d files to %s", result.total, set_dir)
        return result

    async def _copy(self, src: Path, dst: Path, scope: str, file: str) -> None:
        try:
            await self.fs.ensure_dir(dst.parent)
            await with_retry(
                lambda: self.fs.copy_file(src, dst),
                max_attempts=self.retry.max_attempts,
                delay=self.retry.delay,
            )
        except FileOperationError as e:
            e.details.update(
                {"file": file, "scope": scope, "source": str(src), "target": str(dst)}
            )
            raise
        logger.debug("Copied %s:%s", scope, file)
