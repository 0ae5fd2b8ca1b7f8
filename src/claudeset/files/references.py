"""Inline ``@path`` reference resolution.

Instruction documents pull other files in with ``@docs/guide.md``-style
mentions. A snapshot has to carry those files along, so every main file is
walked for mentions, each mention is resolved against the mentioning file's
directory, and markdown targets are walked in turn up to ``max_depth`` hops.

The walk is an explicit stack of frames rather than recursion. Each frame owns
the references found below it and merges them into its parent when it is
popped, so a target reached from several places keeps all of its referrers.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from claudeset.errors import FileOperationError
from claudeset.fs import FileSystem

logger = logging.getLogger(__name__)

REFERENCE_PATTERN = re.compile(r"@([^\s)]+)")

# Only these targets are walked for further mentions
EXPANDABLE_SUFFIXES = (".md",)

DEFAULT_MAX_DEPTH = 2


@dataclass
class ReferencedFile:
    """A file pulled in by one or more ``@`` mentions."""

    path: str
    referred_from: list[str] = field(default_factory=list)

    def add_referrer(self, referrer: str) -> None:
        if referrer not in self.referred_from:
            self.referred_from.append(referrer)


@dataclass
class _Frame:
    path: str
    depth: int
    targets: list[str]
    refs: dict[str, ReferencedFile] = field(default_factory=dict)
    index: int = 0


def extract_references(content: str) -> list[str]:
    """Return the distinct ``@`` mentions in ``content``, first-seen order."""
    refs: list[str] = []
    for match in REFERENCE_PATTERN.finditer(content):
        token = match.group(1)
        if token not in refs:
            refs.append(token)
    return refs


def is_expandable(path: str) -> bool:
    return path.endswith(EXPANDABLE_SUFFIXES)


def merge_references(
    into: dict[str, ReferencedFile], refs: list[ReferencedFile] | None = None
) -> None:
    """Merge ``refs`` into ``into`` by path, unioning referrers."""
    for ref in refs or []:
        existing = into.get(ref.path)
        if existing is None:
            into[ref.path] = ReferencedFile(ref.path, list(ref.referred_from))
        else:
            for referrer in ref.referred_from:
                existing.add_referrer(referrer)


class ReferenceResolver:
    """Resolve and expand ``@`` mentions below one scope root."""

    def __init__(self, fs: FileSystem, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.fs = fs
        self.max_depth = max_depth

    async def resolve(self, token: str, root: Path, referrer: str) -> str | None:
        """Resolve ``token`` as mentioned from ``referrer``.

        Returns the target relative to ``root`` (possibly starting with ``..``)
        or None when it is not an existing regular file.
        """
        root = Path(os.path.abspath(root))
        if os.path.isabs(token):
            candidate = Path(token)
        else:
            candidate = (root / referrer).parent / token
        resolved = os.path.normpath(candidate)

        try:
            if not await self.fs.is_file(Path(resolved)):
                return None
        except FileOperationError as e:
            logger.debug("Could not check reference %s: %s", token, e)
            return None

        rel = Path(os.path.relpath(resolved, root)).as_posix()
        logger.debug("Resolved reference %s -> %s", token, rel)
        return rel

    async def collect(
        self,
        rel_path: str,
        root: Path,
        visited: set[str] | None = None,
        depth: int = 0,
    ) -> list[ReferencedFile]:
        """Collect every file reachable from ``rel_path`` within ``max_depth`` hops.

        ``visited`` is shared across calls by the caller; a file already in it is
        never read again.
        """
        if visited is None:
            visited = set()

        first = await self._open(rel_path, root, visited, depth)
        if first is None:
            return []

        stack = [first]
        while True:
            frame = stack[-1]
            if frame.index < len(frame.targets):
                target = frame.targets[frame.index]
                frame.index += 1

                existing = frame.refs.get(target)
                if existing is not None:
                    existing.add_referrer(frame.path)
                    continue

                frame.refs[target] = ReferencedFile(target, [frame.path])
                if is_expandable(target):
                    child = await self._open(target, root, visited, frame.depth + 1)
                    if child is not None:
                        stack.append(child)
                continue

            stack.pop()
            if not stack:
                return list(frame.refs.values())
            merge_references(stack[-1].refs, list(frame.refs.values()))

    async def _open(
        self, rel_path: str, root: Path, visited: set[str], depth: int
    ) -> _Frame | None:
        if depth >= self.max_depth:
            logger.debug("Depth limit reached at %s (depth=%d)", rel_path, depth)
            return None

        key = os.path.normpath(rel_path)
        if key in visited:
            logger.debug("Already walked %s", rel_path)
            return None
        visited.add(key)

        try:
            content = await self.fs.read_text(Path(root) / rel_path)
        except FileOperationError as e:
            logger.debug("Skipping references of %s: %s", rel_path, e)
            return _Frame(rel_path, depth, [])

        targets: list[str] = []
        for token in extract_references(content):
            target = await self.resolve(token, root, rel_path)
            if target is not None:
                targets.append(target)
        logger.debug("%s references %s", rel_path, targets)
        return _Frame(rel_path, depth, targets)
