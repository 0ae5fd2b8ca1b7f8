"""Find the Claude configuration files of a scope.

Main files come from a fixed pattern set per scope; referenced files are the
targets of their ``@`` mentions that are not main files themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from claudeset.errors import FileOperationError
from claudeset.files.references import ReferencedFile, ReferenceResolver, merge_references
from claudeset.fs import FileSystem

logger = logging.getLogger(__name__)

PROJECT = "project"
USER = "user"
SCOPES = (PROJECT, USER)

# Relative to the current directory
PROJECT_PATTERNS = ("CLAUDE.md", "CLAUDE.local.md", ".claude/**/*.md")
# Relative to the home directory
USER_PATTERNS = (".claude/CLAUDE.md", ".claude/commands/**/*.md")


@dataclass
class FileSearchResult:
    """Candidate files of one scope."""

    main_files: list[str] = field(default_factory=list)
    referenced_files: list[ReferencedFile] = field(default_factory=list)

    @property
    def all_files(self) -> list[str]:
        return self.main_files + [ref.path for ref in self.referenced_files]

    @property
    def is_empty(self) -> bool:
        return not self.main_files and not self.referenced_files


def patterns_for(scope: str) -> tuple[str, ...]:
    return PROJECT_PATTERNS if scope == PROJECT else USER_PATTERNS


class FileDiscovery:
    """Turn fixed patterns plus resolved references into a scope's candidates."""

    def __init__(self, fs: FileSystem, resolver: ReferenceResolver) -> None:
        self.fs = fs
        self.resolver = resolver

    async def find_main_files(self, root: Path, patterns: tuple[str, ...]) -> list[str]:
        """Sorted, de-duplicated files under ``root`` matching ``patterns``."""
        found: set[str] = set()
        for pattern in patterns:
            try:
                found.update(await self.fs.glob(root, pattern))
            except FileOperationError as e:
                logger.debug("Pattern %r failed under %s: %s", pattern, root, e)
        return sorted(found)

    async def find_referenced_files(
        self, main_files: list[str], root: Path
    ) -> list[ReferencedFile]:
        """Referenced files of ``main_files`` that are not main files themselves."""
        visited: set[str] = set()
        merged: dict[str, ReferencedFile] = {}
        for main_file in main_files:
            merge_references(merged, await self.resolver.collect(main_file, root, visited))

        mains = set(main_files)
        return [ref for path, ref in merged.items() if path not in mains]

    async def search(self, root: Path, scope: str) -> FileSearchResult:
        main_files = await self.find_main_files(root, patterns_for(scope))
        referenced = await self.find_referenced_files(main_files, root) if main_files else []
        logger.debug(
            "%s scope: %d main files, %d referenced files under %s",
            scope,
            len(main_files),
            len(referenced),
            root,
        )
        return FileSearchResult(main_files, referenced)
