"""Tests for main-file discovery and reference collection per scope."""

from __future__ import annotations

import pytest
from pathlib import Path

from claudeset.files.discovery import (
    PROJECT,
    PROJECT_PATTERNS,
    USER,
    USER_PATTERNS,
    FileDiscovery,
    FileSearchResult,
    patterns_for,
)
from claudeset.files.references import ReferencedFile, ReferenceResolver
from claudeset.fs import FileSystem


def _write(root: Path, rel: str, content: str = "") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def discovery() -> FileDiscovery:
    fs = FileSystem()
    return FileDiscovery(fs, ReferenceResolver(fs))


class TestPatterns:
    def test_per_scope(self):
        assert patterns_for(PROJECT) == PROJECT_PATTERNS
        assert patterns_for(USER) == USER_PATTERNS


class TestFileSearchResult:
    def test_all_files_mains_first(self):
        result = FileSearchResult(["CLAUDE.md"], [ReferencedFile("docs/a.md", ["CLAUDE.md"])])
        assert result.all_files == ["CLAUDE.md", "docs/a.md"]
        assert not result.is_empty

    def test_empty(self):
        assert FileSearchResult().is_empty


class TestFindMainFiles:
    @pytest.mark.asyncio
    async def test_project_patterns(self, discovery, project_root: Path):
        _write(project_root, "CLAUDE.md")
        _write(project_root, "CLAUDE.local.md")
        _write(project_root, ".claude/commands/test.md")
        _write(project_root, ".claude/notes/deep/x.md")
        _write(project_root, ".claude/settings.json")
        _write(project_root, "README.md")

        found = await discovery.find_main_files(project_root, PROJECT_PATTERNS)
        assert found == [
            ".claude/commands/test.md",
            ".claude/notes/deep/x.md",
            "CLAUDE.local.md",
            "CLAUDE.md",
        ]

    @pytest.mark.asyncio
    async def test_user_patterns(self, discovery, home: Path):
        _write(home, ".claude/CLAUDE.md")
        _write(home, ".claude/commands/review.md")
        _write(home, ".claude/commands/git/commit.md")
        _write(home, ".claude/other.md")
        _write(home, "CLAUDE.md")

        found = await discovery.find_main_files(home, USER_PATTERNS)
        assert found == [
            ".claude/CLAUDE.md",
            ".claude/commands/git/commit.md",
            ".claude/commands/review.md",
        ]

    @pytest.mark.asyncio
    async def test_overlapping_patterns_deduped(self, discovery, project_root: Path):
        _write(project_root, ".claude/a.md")
        found = await discovery.find_main_files(project_root, (".claude/*.md", ".claude/**/*.md"))
        assert found == [".claude/a.md"]

    @pytest.mark.asyncio
    async def test_missing_root(self, discovery, tmp_path: Path):
        assert await discovery.find_main_files(tmp_path / "nope", PROJECT_PATTERNS) == []


class TestFindReferencedFiles:
    @pytest.mark.asyncio
    async def test_mains_excluded(self, discovery, project_root: Path):
        _write(project_root, "CLAUDE.md", "@CLAUDE.local.md @docs/guide.md")
        _write(project_root, "CLAUDE.local.md", "")
        _write(project_root, "docs/guide.md", "")

        refs = await discovery.find_referenced_files(["CLAUDE.local.md", "CLAUDE.md"], project_root)
        assert refs == [ReferencedFile("docs/guide.md", ["CLAUDE.md"])]

    @pytest.mark.asyncio
    async def test_shared_target_read_once(self, discovery, project_root: Path):
        _write(project_root, "CLAUDE.md", "@docs/shared.md")
        _write(project_root, "CLAUDE.local.md", "@docs/shared.md")
        _write(project_root, "docs/shared.md", "@inner.md")
        _write(project_root, "docs/inner.md", "")

        refs = await discovery.find_referenced_files(["CLAUDE.local.md", "CLAUDE.md"], project_root)
        assert refs == [
            ReferencedFile("docs/shared.md", ["CLAUDE.local.md", "CLAUDE.md"]),
            ReferencedFile("docs/inner.md", ["docs/shared.md"]),
        ]


class TestSearch:
    @pytest.mark.asyncio
    async def test_project_scope(self, discovery, project_root: Path):
        _write(project_root, "CLAUDE.md", "See @docs/guide.md")
        _write(project_root, ".claude/commands/test.md", "# test")
        _write(project_root, "docs/guide.md", "guide")

        result = await discovery.search(project_root, PROJECT)
        assert result.main_files == [".claude/commands/test.md", "CLAUDE.md"]
        assert result.referenced_files == [ReferencedFile("docs/guide.md", ["CLAUDE.md"])]

    @pytest.mark.asyncio
    async def test_empty_scope(self, discovery, home: Path):
        result = await discovery.search(home, USER)
        assert result.is_empty
