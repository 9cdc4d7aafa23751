from __future__ import annotations

import os
import socket
import stat
import subprocess
from pathlib import Path
from typing import Callable

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

from cwaudit.checks.model import CheckDef, Unit
from cwaudit.core.context import RunContext

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / "artifacts/cwaudit/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("cwaudit", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("cwaudit")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


def make_ctx(root: Path, run_id: str = "t-run", verbose: bool = False) -> RunContext:
    return RunContext(
        run_id=run_id,
        workspace_root=root.resolve(),
        output_root=(root / "artifacts" / run_id).resolve(),
        output_format="text",
        verbose=verbose,
        quiet=True,
        log_json=False,
        git_sha="unknown",
        git_dirty=False,
    )


def make_check(name: str, scope: str = "unit", required: bool = True, **kwargs: object) -> CheckDef:
    kwargs.setdefault("category", "build")
    if "builtin" not in kwargs:
        kwargs.setdefault("command", ("sh", "-c", "true"))
    return CheckDef(name=name, scope=scope, required=required, **kwargs)  # type: ignore[arg-type]



def interrupting_communicate(on_call: int = 3) -> Callable[..., tuple[str, str]]:
    """Popen.communicate replacement that raises KeyboardInterrupt on one poll."""
    real = subprocess.Popen.communicate
    calls: list[int] = []

    def _communicate(self: subprocess.Popen[str], *args: object, **kwargs: object) -> tuple[str, str]:
        calls.append(1)
        if len(calls) == on_call:
            raise KeyboardInterrupt
        return real(self, *args, **kwargs)  # type: ignore[arg-type]

    return _communicate


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "ws"
    (root / "contracts").mkdir(parents=True)
    return root.resolve()


@pytest.fixture
def run_ctx(workspace: Path) -> RunContext:
    return make_ctx(workspace)


@pytest.fixture
def make_units(workspace: Path) -> Callable[..., tuple[Unit, ...]]:
    def _make(*names: str) -> tuple[Unit, ...]:
        units = []
        for name in names:
            path = workspace / "contracts" / name
            (path / "src").mkdir(parents=True, exist_ok=True)
            (path / "Cargo.toml").write_text(f'[package]\nname = "{name}"\n', encoding="utf-8")
            units.append(Unit(name=name, path=path))
        return tuple(units)

    return _make


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Callable[[str, str], Path]:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")

    def _write(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write
