"""Choose which discovered files go into a snapshot.

The user first picks a group (both scopes, one scope, or custom). Custom opens
a checklist over every candidate; the checklist is built once as a flat list of
``CheckItem`` entries whose ``group`` drives the headers at render time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import frontmatter

from claudeset.errors import FileOperationError, NoFilesFoundError
from claudeset.files.discovery import PROJECT, USER, FileDiscovery, FileSearchResult
from claudeset.fs import FileSystem
from claudeset.prompts import CheckItem, Choice, Prompter

logger = logging.getLogger(__name__)

BOTH = "both"
CUSTOM = "custom"

COMMANDS_DIR = ".claude/commands/"

# (scope, relative path) -> pre-checked in the custom checklist
DefaultChecked = Callable[[str, str], bool]


def project_files_checked(scope: str, path: str) -> bool:
    """Default for save: project files checked, user files unchecked."""
    return scope == PROJECT


@dataclass
class FileSelectionResult:
    """Files picked from one scope."""

    scope: str
    base_dir: Path
    files: list[str] = field(default_factory=list)


def format_path(path: str, scope: str) -> str:
    if path.startswith("../"):
        return path
    if scope == USER:
        return f"~/{path}"
    return f"./{path}"


class FileSelector:
    """Interactive selection across the project and user scopes."""

    def __init__(
        self,
        prompter: Prompter,
        fs: FileSystem,
        project_root: Path,
        user_root: Path,
    ) -> None:
        self.prompter = prompter
        self.fs = fs
        self.roots = {PROJECT: project_root, USER: user_root}

    async def select(
        self,
        project: FileSearchResult,
        user: FileSearchResult,
        default_checked: DefaultChecked = project_files_checked,
    ) -> list[FileSelectionResult]:
        candidates = {PROJECT: project, USER: user}
        available = [scope for scope, found in candidates.items() if not found.is_empty]
        if not available:
            raise NoFilesFoundError(
                "No Claude configuration files found",
                {"search_dirs": [str(self.roots[PROJECT]), str(self.roots[USER])]},
            )

        group = await self._choose_group(available)
        if group == CUSTOM:
            picked = await self._choose_custom(candidates, default_checked)
        else:
            scopes = available if group == BOTH else [group]
            picked = {scope: candidates[scope].all_files for scope in scopes}

        results = [
            FileSelectionResult(scope, self.roots[scope], files)
            for scope, files in picked.items()
            if files
        ]
        if not results:
            raise NoFilesFoundError("No files selected")

        logger.info("Selected %d files", sum(len(r.files) for r in results))
        return results

    async def _choose_group(self, available: list[str]) -> str:
        if len(available) == 2:
            choices = [
                Choice("Both (project + user files)", BOTH),
                Choice("Project files only", PROJECT),
                Choice("User files only", USER),
                Choice("Custom (pick individual files)", CUSTOM),
            ]
            default = BOTH
        else:
            scope = available[0]
            choices = [
                Choice(f"All {scope} files", scope),
                Choice("Custom (pick individual files)", CUSTOM),
            ]
            default = scope
        return await self.prompter.select("How do you want to select files?", choices, default)

    async def _choose_custom(
        self,
        candidates: dict[str, FileSearchResult],
        default_checked: DefaultChecked,
    ) -> dict[str, list[str]]:
        items = await self.build_checklist(candidates, default_checked)
        keys = await self.prompter.checkbox(
            "Select the files to save",
            items,
            validate=lambda selected: True if selected else "Select at least one file",
        )

        picked: dict[str, list[str]] = {PROJECT: [], USER: []}
        for scope, path in keys:
            picked[scope].append(path)
        return picked

    async def build_checklist(
        self,
        candidates: dict[str, FileSearchResult],
        default_checked: DefaultChecked,
    ) -> list[CheckItem]:
        """Main files first, then referenced files, per scope."""
        items: list[CheckItem] = []
        for scope, found in candidates.items():
            title = scope.capitalize()
            for path in found.main_files:
                label = format_path(path, scope)
                description = await self._command_description(scope, path)
                if description:
                    label = f"{label}  {description}"
                items.append(
                    CheckItem(label, (scope, path), default_checked(scope, path), title)
                )
            for ref in found.referenced_files:
                sources = ", ".join(format_path(p, scope) for p in ref.referred_from)
                items.append(
                    CheckItem(
                        f"{format_path(ref.path, scope)} (from {sources})",
                        (scope, ref.path),
                        default_checked(scope, ref.path),
                        f"{title} references",
                    )
                )
        return items

    async def _command_description(self, scope: str, path: str) -> str:
        """The frontmatter ``description`` of a slash-command document, if any."""
        if not path.startswith(COMMANDS_DIR):
            return ""
        try:
            text = await self.fs.read_text(self.roots[scope] / path)
            post = frontmatter.loads(text)
        except FileOperationError:
            return ""
        except Exception:
            logger.debug("Unreadable frontmatter in %s", path)
            return ""
        return str(post.metadata.get("description", "") or "")


async def perform_file_selection(
    prompter: Prompter,
    discovery: FileDiscovery,
    project_root: Path,
    user_root: Path,
    default_checked: DefaultChecked = project_files_checked,
) -> list[FileSelectionResult]:
    """Discover both scopes and let the user choose."""
    project = await discovery.search(project_root, PROJECT)
    user = await discovery.search(user_root, USER)
    selector = FileSelector(prompter, discovery.fs, project_root, user_root)
    return await selector.select(project, user, default_checked)
