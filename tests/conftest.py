"""Shared test fixtures for git-extra tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, Callable

import pytest

from git_extra import utils


class RecordingLog:
    def __init__(self) -> None:
        self.outputs: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def output(self, message: str) -> None:
        self.outputs.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A fake $HOME with no catalog file in it."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.delenv("GIT_EXTRA_CATALOG", raising=False)
    return home_dir


@pytest.fixture
def write_catalog(home: Path) -> Callable[[str], Path]:
    def _write(content: str) -> Path:
        path = home / ".config" / "git_extra" / "repos.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


class FakeGit:
    """Stands in for `subprocess.run`, simulating `git clone` and `git remote`.

    Anything that isn't a git command is passed to the real `subprocess.run`
    so customizer scripts actually execute.
    """

    def __init__(self, real_run: Callable[..., Any]) -> None:
        self.real_run = real_run
        self.calls: list[list[str]] = []
        self.clone_returncode = 0
        self.clone_files: dict[str, str] = {}
        self.clone_files_mode = 0o755
        self.remote_listing = ""

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        if cmd[:2] == ["git", "clone"]:
            if self.clone_returncode == 0:
                target = Path(cmd[3])
                target.mkdir(parents=True, exist_ok=True)
                for name, content in self.clone_files.items():
                    path = target / name
                    path.write_text(content, encoding="utf-8")
                    path.chmod(self.clone_files_mode)
            return subprocess.CompletedProcess(cmd, self.clone_returncode)
        if cmd[:2] == ["git", "remote"]:
            return subprocess.CompletedProcess(
                cmd, 0, stdout=self.remote_listing, stderr=""
            )
        return self.real_run(cmd, **kwargs)

    @property
    def clones(self) -> list[list[str]]:
        return [c for c in self.calls if c[:2] == ["git", "clone"]]


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    fake = FakeGit(subprocess.run)
    monkeypatch.setattr(utils.subprocess, "run", fake)
    return fake
