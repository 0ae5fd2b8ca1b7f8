"""Restore a snapshot into the live project and home directories.

Lookup -> discover -> conflict check -> resolve -> copy. A copy that still
fails after retries stops the run and removes every destination the run
created, then raises one ``RestoreError`` describing both the failure and
anything the rollback could not remove.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from claudeset.config import RetryConfig
from claudeset.errors import (
    BackupError,
    FileOperationError,
    RestoreError,
)
from claudeset.files.discovery import PROJECT, SCOPES, USER
from claudeset.fs import FileSystem, with_retry
from claudeset.prompts import Choice, Prompter
from claudeset.sets.store import SetStore

logger = logging.getLogger(__name__)

BACKUP = "backup"
OVERWRITE = "overwrite"
CANCEL = "cancel"

BACKUP_SUFFIX = ".bak"


@dataclass
class SetFile:
    """One file of a snapshot and where it goes."""

    scope: str
    path: str
    source: Path
    target: Path

    @property
    def label(self) -> str:
        return f"~/{self.path}" if self.scope == USER else self.path


@dataclass
class LoadResult:
    name: str
    path: Path
    restored: dict[str, list[str]] = field(default_factory=dict)
    conflicts: list[str] = field(default_factory=list)
    backups: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total(self) -> int:
        return sum(len(files) for files in self.restored.values())


class RestoreEngine:
    """Copy a snapshot's ``project/`` and ``user/`` trees back into place."""

    def __init__(
        self,
        store: SetStore,
        fs: FileSystem,
        prompter: Prompter,
        project_root: Path,
        user_root: Path,
        retry: RetryConfig | None = None,
    ) -> None:
        self.store = store
        self.fs = fs
        self.prompter = prompter
        self.roots = {PROJECT: project_root, USER: user_root}
        self.retry = retry or RetryConfig()

    async def load(self, name: str, *, force: bool = False) -> LoadResult:
        set_dir = await self.store.require(name)
        result = LoadResult(name=name, path=set_dir)

        files = await self._discover(set_dir)
        if not files:
            logger.warning("Set %s contains no files", name)

        conflicts = await self._check_conflicts(files)
        result.conflicts = [f.label for f in conflicts]

        if conflicts and not force:
            action = await self._ask_conflict_action(conflicts)
            if action == CANCEL:
                logger.info("Load of %s cancelled", name)
                result.cancelled = True
                return result
            if action == BACKUP:
                result.backups = await self._backup(conflicts)

        # destinations that hold someone else's content stay out of the rollback
        overwritten = {f.target for f in conflicts} if not result.backups else set()
        await self._copy_all(files, overwritten)

        for scope in SCOPES:
            restored = [f.path for f in files if f.scope == scope]
            if restored:
                result.restored[scope] = restored
        logger.info("Loaded %d files from %s", result.total, set_dir)
        return result

    async def _discover(self, set_dir: Path) -> list[SetFile]:
        files: list[SetFile] = []
        for scope in SCOPES:
            scope_dir = set_dir / scope
            if not await self.fs.is_dir(scope_dir):
                continue
            for path in await self.fs.walk_files(scope_dir):
                files.append(SetFile(scope, path, scope_dir / path, self.roots[scope] / path))
        logger.debug("Set %s holds %d files", set_dir, len(files))
        return files

    async def _check_conflicts(self, files: list[SetFile]) -> list[SetFile]:
        return [f for f in files if await self.fs.exists(f.target)]

    async def _ask_conflict_action(self, conflicts: list[SetFile]) -> str:
        listing = "\n".join(f"  {f.label}" for f in conflicts)
        return await self.prompter.select(
            f"These files already exist:\n{listing}\nHow do you want to proceed?",
            [
                Choice("Back up existing files (.bak) and continue", BACKUP),
                Choice("Overwrite existing files", OVERWRITE),
                Choice("Cancel", CANCEL),
            ],
            default=BACKUP,
        )

    async def _backup(self, conflicts: list[SetFile]) -> list[str]:
        backups: list[str] = []
        for f in conflicts:
            backup_path = f.target.with_name(f.target.name + BACKUP_SUFFIX)
            try:
                await self.fs.rename(f.target, backup_path)
            except FileOperationError as e:
                raise BackupError(
                    f"Could not back up {f.label}",
                    {**e.details, "file": f.label, "backup_path": str(backup_path)},
                ) from e
            logger.debug("Backed up %s", f.label)
            backups.append(f.label + BACKUP_SUFFIX)
        return backups

    async def _copy_all(self, files: list[SetFile], overwritten: set[Path]) -> None:
        created: list[SetFile] = []
        replaced: list[SetFile] = []
        for f in files:
            try:
                await self.fs.ensure_dir(f.target.parent)
                await with_retry(
                    lambda f=f: self.fs.copy_file(f.source, f.target, preserve_timestamps=True),
                    max_attempts=self.retry.max_attempts,
                    delay=self.retry.delay,
                )
            except FileOperationError as e:
                logger.error("Failed to restore %s: %s", f.label, e)
                rollback_errors = await self._rollback(created)
                raise RestoreError(
                    f"Failed to load set files; rolled back {len(created) - len(rollback_errors)}"
                    f" of {len(created)} restored files",
                    {
                        "errors": [{"file": f.label, "error": e.message, **e.details}],
                        "rollback_errors": rollback_errors,
                        "overwritten": [r.label for r in replaced],
                    },
                ) from e

            if f.target in overwritten:
                replaced.append(f)
            else:
                created.append(f)
            logger.debug("Restored %s", f.label)

    async def _rollback(self, created: list[SetFile]) -> list[dict]:
        logger.info("Rolling back %d restored files", len(created))
        failures: list[dict] = []
        for f in created:
            try:
                await self.fs.remove(f.target)
            except FileOperationError as e:
                logger.warning("Rollback could not remove %s: %s", f.label, e)
                failures.append({"file": f.label, "error": e.message})
            else:
                logger.debug("Rolled back %s", f.label)
        return failures
