"""Entry point: python -m claudeset <command>

- save NAME     Snapshot Claude configuration files into a named set
- load NAME     Restore a set into the current directory and home directory
- list          Show saved sets
- delete NAME   Remove a set
- init          Create the storage directory
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from claudeset import __version__
from claudeset.config import ClaudesetConfig, load_config
from claudeset.errors import ClaudesetError, NoFilesFoundError
from claudeset.files.discovery import PROJECT, FileDiscovery
from claudeset.files.references import ReferenceResolver
from claudeset.files.selection import FileSelectionResult, format_path, perform_file_selection
from claudeset.fs import FileSystem
from claudeset.prompts import Prompter, TerminalPrompter
from claudeset.sets.load import RestoreEngine
from claudeset.sets.save import SnapshotWriter
from claudeset.sets.store import SetStore

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claudeset",
        description="Save and restore named sets of CLAUDE.md and .claude/commands files.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug output")
    parser.add_argument("-c", "--config", type=Path, help="path to claudeset.toml")
    sub = parser.add_subparsers(dest="command", required=True)

    save = sub.add_parser("save", help="save the current files as a set")
    save.add_argument("name")
    save.add_argument("-f", "--force", action="store_true", help="overwrite without asking")
    save.add_argument(
        "-a", "--all", action="store_true", help="save every project file without prompting"
    )

    load = sub.add_parser("load", help="restore a set")
    load.add_argument("name")
    load.add_argument("-f", "--force", action="store_true", help="overwrite without asking")

    sub.add_parser("list", help="list saved sets")

    delete = sub.add_parser("delete", help="delete a set")
    delete.add_argument("name")
    delete.add_argument("-f", "--force", action="store_true", help="delete without asking")

    sub.add_parser("init", help="create the storage directory")
    return parser


class App:
    """Wires config, filesystem and prompter into the commands."""

    def __init__(
        self,
        config: ClaudesetConfig,
        prompter: Prompter | None = None,
        fs: FileSystem | None = None,
        cwd: Path | None = None,
        home: Path | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self.verbose = verbose
        self.prompter = prompter or TerminalPrompter()
        self.fs = fs or FileSystem()
        self.cwd = cwd or Path.cwd()
        self.home = home or Path.home()
        self.store = SetStore(config.sets_dir, self.fs)
        self.discovery = FileDiscovery(
            self.fs, ReferenceResolver(self.fs, config.references.max_depth)
        )

    async def save(self, name: str, *, force: bool = False, all_files: bool = False) -> int:
        self.store.set_dir(name)
        if all_files:
            found = await self.discovery.search(self.cwd, PROJECT)
            if found.is_empty:
                raise NoFilesFoundError(
                    "No Claude configuration files found", {"search_dir": str(self.cwd)}
                )
            selections = [FileSelectionResult(PROJECT, self.cwd, found.all_files)]
        else:
            selections = await perform_file_selection(
                self.prompter, self.discovery, self.cwd, self.home
            )

        writer = SnapshotWriter(self.store, self.fs, self.prompter, self.config.retry)
        result = await writer.save(name, selections, force=force)
        if result.cancelled:
            print("Cancelled.")
            return 0

        print(f"✓ Saved {result.total} files to set '{name}'")
        print(f"  {result.path}")
        if result.project_count and result.user_count:
            print(f"  project: {result.project_count}, user: {result.user_count}")
        for skipped in result.skipped:
            print(f"  skipped (outside its root): {skipped}")
        if self.verbose:
            for scope, files in result.saved.items():
                for file in files:
                    print(f"    {format_path(file, scope)}")
        print(f"\nRestore with: claudeset load {name}")
        return 0

    async def load(self, name: str, *, force: bool = False) -> int:
        engine = RestoreEngine(
            self.store, self.fs, self.prompter, self.cwd, self.home, self.config.retry
        )
        result = await engine.load(name, force=force)
        if result.cancelled:
            print("Cancelled.")
            return 0

        print(f"✓ Loaded set '{name}'")
        for scope, files in result.restored.items():
            print(f"  {scope}:")
            for file in files:
                print(f"    {format_path(file, scope)}")
        if result.backups:
            print("  backups:")
            for backup in result.backups:
                print(f"    {backup}")
        return 0

    async def list_sets(self) -> int:
        sets = await self.store.list_sets()
        if not sets:
            print("No saved sets. Create one with: claudeset save <name>")
            return 0

        width = max(len(s.name) for s in sets)
        for s in sets:
            print(f"{s.name:<{width}}  {s.modified:%Y/%m/%d %H:%M}  {s.file_count} files")
        print(f"\n{len(sets)} sets in {self.store.root}")
        return 0

    async def delete(self, name: str, *, force: bool = False) -> int:
        await self.store.require(name)
        if not force and not await self.prompter.confirm(f"Delete set '{name}'?"):
            print("Cancelled.")
            return 0
        await self.store.delete(name)
        print(f"✓ Deleted set '{name}'")
        return 0

    async def init(self) -> int:
        await self.fs.ensure_dir(self.store.root)
        print(f"✓ Sets are stored in {self.store.root}")
        return 0


def _report_error(error: ClaudesetError) -> None:
    print(f"Error: {error.message}", file=sys.stderr)
    if error.details:
        print(
            json.dumps(error.details, indent=2, ensure_ascii=False, default=str),
            file=sys.stderr,
        )


async def _dispatch(app: App, args: argparse.Namespace) -> int:
    if args.command == "save":
        return await app.save(args.name, force=args.force, all_files=args.all)
    if args.command == "load":
        return await app.load(args.name, force=args.force)
    if args.command == "list":
        return await app.list_sets()
    if args.command == "delete":
        return await app.delete(args.name, force=args.force)
    return await app.init()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config(args.config)
    _setup_logging("DEBUG" if args.verbose else config.log_level)

    try:
        return asyncio.run(_dispatch(App(config, verbose=args.verbose), args))
    except ClaudesetError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        _report_error(e)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nAborted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
