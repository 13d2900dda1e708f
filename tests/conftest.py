"""Test bootstrap and shared fixtures.

The modules live at the repo root; add it to sys.path so `pytest -q` works
without an editable install. External tools are never run: FakeRunner
stands in for runner.run_cmd / runner.spawn and records every invocation.
"""

import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config  # noqa: E402
import runner  # noqa: E402
from config import BuildConfiguration  # noqa: E402
from runner import CommandResult  # noqa: E402


class FakeProcess:
    _next_pid = 4000

    def __init__(self, exit_code=None):
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.returncode = exit_code
        self._exited = asyncio.Event()
        if exit_code is not None:
            self._exited.set()

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    def terminate(self):
        self._finish(-15)

    def kill(self):
        self._finish(-9)

    def _finish(self, code):
        if self.returncode is None:
            self.returncode = code
        self._exited.set()


class FakeRunner:
    def __init__(self):
        self.calls: list[list[str]] = []
        self.cwds: list = []
        self.spawned: list[list[str]] = []
        self.processes: list[FakeProcess] = []
        self._rules: list[tuple[tuple[str, ...], CommandResult]] = []
        self.spawn_exit_code = None

    def fail_when(self, *tokens, returncode=1, output="boom", missing=False, timed_out=False):
        """Every command containing all tokens returns a failing result."""
        self._rules.append((tokens, dict(returncode=returncode, output=output,
                                         missing=missing, timed_out=timed_out)))

    def commands_with(self, *tokens) -> list[list[str]]:
        return [c for c in self.calls if all(t in c for t in tokens)]

    async def run_cmd(self, cmd, cwd=None, timeout=None, stream=True):
        cmd = [str(c) for c in cmd]
        self.calls.append(cmd)
        self.cwds.append(Path(cwd) if cwd is not None else None)
        for tokens, kwargs in self._rules:
            if all(t in cmd for t in tokens):
                return CommandResult(cmd, timeout=timeout, **kwargs)
        return CommandResult(cmd, 0, "ok")

    async def spawn(self, cmd, cwd=None):
        cmd = [str(c) for c in cmd]
        self.spawned.append(cmd)
        proc = FakeProcess(self.spawn_exit_code)
        self.processes.append(proc)
        return proc


@pytest.fixture
def fake_runner(monkeypatch):
    fake = FakeRunner()
    monkeypatch.setattr(runner, "run_cmd", fake.run_cmd)
    monkeypatch.setattr(runner, "spawn", fake.spawn)
    monkeypatch.setattr(config, "SPAWN_SETTLE_SECONDS", 0.01)
    return fake


@pytest.fixture
def project(tmp_path) -> Path:
    """A project tree with a built frontend, both shell projects, and packaged artifacts."""
    root = tmp_path / "project"
    dist = root / "frontend" / "dist"
    dist.mkdir(parents=True)
    (dist / "index.html").write_text("<html>hello</html>")
    (dist / "assets").mkdir()
    (dist / "assets" / "app.js").write_text("console.log('hi')")

    android = root / "mobile-shell" / "android"
    android.mkdir(parents=True)
    gradlew = android / "gradlew"
    gradlew.write_text("#!/bin/sh\n")
    (android / "gradlew.bat").write_text("@echo off\n")
    apk = android / "app" / "build" / "outputs" / "apk" / "debug" / "app-debug.apk"
    apk.parent.mkdir(parents=True)
    apk.write_bytes(b"PK")

    ios = root / "mobile-shell" / "ios"
    (ios / "App.xcodeproj").mkdir(parents=True)
    app = ios / "build" / "Build" / "Products" / "Debug-iphonesimulator" / "App.app"
    app.mkdir(parents=True)
    return root


@pytest.fixture
def make_config(project):
    def _make(**overrides) -> BuildConfiguration:
        fields = dict(root_dir=project, dev_port="3000", preview_port="8080")
        fields.update(overrides)
        return BuildConfiguration(**fields)
    return _make
