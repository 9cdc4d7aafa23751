from __future__ import annotations

import json
import re
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import make_ctx
from cwaudit.core.clock import utc_now_iso, utc_stamp
from cwaudit.core.context import RunContext
from cwaudit.core.logging import log_event


def test_log_event_key_value_and_levels(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    quiet = make_ctx(tmp_path)
    log_event(quiet, "info", "runner", "dispatch", check="fmt")
    log_event(quiet, "warn", "runner", "tool-unavailable", tool="cargo")
    err = capsys.readouterr().err.splitlines()
    assert len(err) == 1
    assert "component=runner action=tool-unavailable tool=cargo" in err[0]
    assert "run_id=t-run" in err[0]


def test_log_event_json_lines(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    base = make_ctx(tmp_path, verbose=True)
    ctx = replace(base, quiet=False, log_json=True)
    log_event(ctx, "debug", "process", "run-command", code=0)
    row = json.loads(capsys.readouterr().err)
    assert row["level"] == "debug"
    assert row["action"] == "run-command"
    assert row["code"] == 0


def test_run_context_from_args_env_precedence(tmp_path: Path) -> None:
    env = {"RUN_ID": "env-run", "CWAUDIT_ROOT": str(tmp_path), "PATH": "/usr/bin:/bin"}
    with patch.dict("os.environ", env, clear=True):
        ctx = RunContext.from_args(None, None, None)
        assert ctx.run_id == "env-run"
        assert ctx.workspace_root == tmp_path.resolve()
        assert ctx.output_root == (tmp_path / "artifacts/cwaudit/env-run").resolve()
        env_out = RunContext.from_args("cli-run", str(tmp_path), None)
        assert env_out.run_id == "cli-run"
    with patch.dict("os.environ", {**env, "CWAUDIT_OUT": "out/x"}, clear=True):
        assert RunContext.from_args(None, None, None).output_root == (tmp_path / "out/x").resolve()


def test_default_run_id_shape(tmp_path: Path) -> None:
    with patch.dict("os.environ", {"PATH": "/usr/bin:/bin"}, clear=True):
        ctx = RunContext.from_args(None, str(tmp_path), None)
    assert re.fullmatch(r"cwaudit-\d{8}-\d{6}-[0-9a-z]+", ctx.run_id)


def test_clock_formats() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\+00:00", utc_now_iso())
    assert re.fullmatch(r"\d{8}-\d{6}", utc_stamp())
