"""Interactive prompt protocol and a plain-terminal implementation."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# Checklist validator: returns True or an error message to show before re-prompting
Validator = Callable[[list[Any]], "bool | str"]


@dataclass
class Choice:
    """One option of a single-choice list."""

    label: str
    value: Any


@dataclass
class CheckItem:
    """One checklist entry. Items sharing ``group`` are rendered under one header."""

    label: str
    key: Any
    checked: bool = False
    group: str = ""


@runtime_checkable
class Prompter(Protocol):
    """Protocol for the interactive surface used by selection, save and load."""

    async def select(self, message: str, choices: list[Choice], default: Any = None) -> Any:
        """Ask for exactly one of ``choices`` and return its value."""
        ...

    async def checkbox(
        self,
        message: str,
        items: list[CheckItem],
        validate: Validator | None = None,
    ) -> list[Any]:
        """Ask for a subset of ``items`` and return the checked keys in item order."""
        ...

    async def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        ...


class TerminalPrompter:
    """Numbered menus on stdout, answers read from stdin."""

    async def _ask(self, prompt: str) -> str:
        loop = asyncio.get_event_loop()
        line = await loop.run_in_executor(None, self._read_input, prompt)
        if line is None:
            raise EOFError("stdin closed")
        return line.strip()

    def _read_input(self, prompt: str) -> str | None:
        sys.stdout.write(prompt)
        sys.stdout.flush()
        raw = sys.stdin.buffer.readline()
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace").rstrip("\n")

    async def select(self, message: str, choices: list[Choice], default: Any = None) -> Any:
        default_idx = next((i for i, c in enumerate(choices) if c.value == default), 0)
        print(message)
        for i, choice in enumerate(choices, 1):
            marker = "*" if i - 1 == default_idx else " "
            print(f" {marker}{i}) {choice.label}")

        while True:
            answer = await self._ask(f"Choice [{default_idx + 1}]: ")
            if not answer:
                return choices[default_idx].value
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1].value
            print(f"Please enter a number between 1 and {len(choices)}.")

    async def checkbox(
        self,
        message: str,
        items: list[CheckItem],
        validate: Validator | None = None,
    ) -> list[Any]:
        checked = [item.checked for item in items]

        while True:
            print(message)
            group = None
            for i, item in enumerate(items, 1):
                if item.group != group:
                    group = item.group
                    print(f"--- {group} ---")
                print(f"  [{'x' if checked[i - 1] else ' '}] {i}) {item.label}")

            answer = await self._ask("Toggle numbers (a=all, n=none, Enter=done): ")
            if not answer:
                selected = [item.key for item, on in zip(items, checked) if on]
                verdict = validate(selected) if validate else True
                if verdict is True:
                    return selected
                print(verdict)
                continue
            if answer.lower() == "a":
                checked = [True] * len(items)
                continue
            if answer.lower() == "n":
                checked = [False] * len(items)
                continue
            for token in answer.replace(",", " ").split():
                if token.isdigit() and 1 <= int(token) <= len(items):
                    checked[int(token) - 1] = not checked[int(token) - 1]
                else:
                    print(f"Ignoring '{token}'")

    async def confirm(self, message: str, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        while True:
            answer = (await self._ask(f"{message} [{hint}] ")).lower()
            if not answer:
                return default
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
