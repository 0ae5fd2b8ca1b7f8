"""Shared fixtures: a scripted prompter and scope roots under tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

from claudeset.prompts import CheckItem, Choice


class ScriptedPrompter:
    """Answers prompts from queues and records what was asked."""

    def __init__(self) -> None:
        self.selects: list = []
        self.checkboxes: list = []
        self.confirms: list[bool] = []
        self.asked: list[tuple[str, str]] = []
        self.last_choices: list[Choice] = []
        self.last_items: list[CheckItem] = []
        self.last_default = None

    async def select(self, message, choices, default=None):
        self.asked.append(("select", message))
        self.last_choices = choices
        self.last_default = default
        return self.selects.pop(0)

    async def checkbox(self, message, items, validate=None):
        self.asked.append(("checkbox", message))
        self.last_items = items
        while True:
            answer = self.checkboxes.pop(0)
            if answer is None:
                answer = [item.key for item in items if item.checked]
            if validate is None or validate(answer) is True:
                return answer

    async def confirm(self, message, default=False):
        self.asked.append(("confirm", message))
        return self.confirms.pop(0)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    root = tmp_path / "home"
    root.mkdir()
    return root


@pytest.fixture
def sets_dir(tmp_path: Path) -> Path:
    return tmp_path / "sets"

