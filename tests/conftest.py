"""Shared pytest fixtures for the djangify test suite.

Provides:
- A fake command runner that records invocations and imitates the side
  effects of virtualenv and django-admin on disk
- A project context rooted in a temporary directory
"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from djangify_cli import (
    BUNDLED_TEMPLATES_DIR,
    CommandOutcome,
    GENERATOR_TOOL,
    ISOLATION_TOOL,
    ProjectContext,
)

DEFAULT_SETTINGS = "# default settings from django-admin\nROOT_URLCONF = 'blog.urls'\n"
DEFAULT_URLS = "# default urls from django-admin\nurlpatterns = []\n"


class FakeRunner:
    """Stand-in for SubprocessRunner.

    ``available`` lists the executables ``which`` resolves. ``failing`` holds
    command prefixes (as tuples) that exit 1. ``missing`` holds executables that
    cannot be launched at all.
    """

    def __init__(self, available=("python3", ISOLATION_TOOL), failing=(), missing=()):
        self.available = set(available)
        self.failing = {tuple(f) for f in failing}
        self.missing = set(missing)
        self.calls: list[tuple[list[str], Path | None]] = []
        self.hooks = {}

    def _fails(self, cmd: list[str]) -> bool:
        return any(tuple(cmd[:len(prefix)]) == prefix for prefix in self.failing)

    def run(self, cmd, cwd=None):
        self.calls.append((list(cmd), cwd))
        hook = self.hooks.get(cmd[0])
        if hook:
            hook(cmd, cwd)
        if cmd[0] in self.missing:
            return CommandOutcome(list(cmd), None, error=f"No such file or directory: '{cmd[0]}'")
        if self._fails(cmd):
            return CommandOutcome(list(cmd), 1, stderr="boom")
        if cmd[0] == "which":
            return CommandOutcome(list(cmd), 0 if cmd[1] in self.available else 1)
        if cmd[1:3] == ["-m", ISOLATION_TOOL] and cmd[3] == "--version":
            return CommandOutcome(list(cmd), 0 if cmd[0] in self.available else 1)
        if cmd[1:3] == ["-m", ISOLATION_TOOL]:
            (Path(cwd) / cmd[3]).mkdir()
        elif cmd[0] == GENERATOR_TOOL:
            self._startproject(cmd[2], Path(cwd))
        return CommandOutcome(list(cmd), 0)

    @staticmethod
    def _startproject(name: str, target: Path) -> None:
        package = target / name
        package.mkdir()
        (package / "__init__.py").write_text("", encoding="utf-8")
        (package / "settings.py").write_text(DEFAULT_SETTINGS, encoding="utf-8")
        (package / "urls.py").write_text(DEFAULT_URLS, encoding="utf-8")
        (package / "wsgi.py").write_text("", encoding="utf-8")
        (target / "manage.py").write_text("", encoding="utf-8")

    def commands(self, program: str | None = None) -> list[list[str]]:
        return [cmd for cmd, _ in self.calls if program is None or cmd[0] == program]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """A private copy of the bundled templates that tests may break."""
    target = tmp_path / "templates"
    shutil.copytree(BUNDLED_TEMPLATES_DIR, target)
    return target


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    base = tmp_path / "work"
    base.mkdir()
    return base


@pytest.fixture
def ctx(workspace: Path, templates_dir: Path) -> ProjectContext:
    return ProjectContext(name="blog", base_dir=workspace, templates_dir=templates_dir)
