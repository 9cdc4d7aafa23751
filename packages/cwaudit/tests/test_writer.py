from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_check
from cwaudit.checks.model import CheckResult, Finding
from cwaudit.core import fs
from cwaudit.contracts import AUDIT_SUMMARY
from cwaudit.contracts.validate import validate
from cwaudit.errors import ArtifactError, ScriptError
from cwaudit.exit_codes import ERR_CHECKS, ERR_SKIPPED, ERR_VALIDATION, OK
from cwaudit.reporting.gate import exit_code_for
from cwaudit.reporting.model import Report
from cwaudit.reporting.writer import build_summary, write_report

STAMP = "2026-10-16T12:00:00+00:00"


def _report(make_units, *results: CheckResult) -> Report:
    units = make_units("a")
    checks = (make_check("wasm"), make_check("audit", "global", required=False))
    return Report("run-1", STAMP, checks, units, results)


def test_write_report_places_documents_and_summary(run_ctx, make_units) -> None:
    report = _report(
        make_units,
        CheckResult("wasm", "a", "success", True, "build", metrics={"duration_ms": 5}),
        CheckResult("audit", None, "failure", False, "build", reason="exit code 1"),
    )
    documents, summary_path = write_report(run_ctx, report, ["markdown", "junit"])
    assert [p.name for p in documents] == ["report.md", "report.xml"]
    assert summary_path == run_ctx.output_root / "summary.json"
    payload = json.loads(summary_path.read_text(encoding="utf-8"))
    assert payload["status"] == "success"
    assert payload["units"] == {"a": "success"}
    assert payload["documents"] == ["report.md", "report.xml"]
    assert payload["summary"]["failure"] == 1
    assert payload["results"][1]["metrics"] == {"duration_ms": 5}


def test_build_summary_counts_findings(make_units) -> None:
    report = _report(
        make_units,
        CheckResult("wasm", "a", "failure", True, "build", findings=(Finding("x", "y"), Finding("x", "z"))),
    )
    payload = build_summary(report)
    assert payload["status"] == "failure"
    assert payload["results"][0]["findings"] == 2
    assert payload["summary"]["required_failures"] == 1


def test_summary_schema_rejects_tampered_payload() -> None:
    with pytest.raises(ScriptError) as err:
        validate(AUDIT_SUMMARY, {"schema_version": 1, "tool": "other"})
    assert err.value.code == ERR_VALIDATION


def test_exit_code_for_statuses(make_units) -> None:
    ok = _report(make_units, CheckResult("wasm", "a", "success", True, "build"))
    failed = _report(make_units, CheckResult("wasm", "a", "failure", True, "build"))
    skipped = _report(make_units, CheckResult("wasm", "a", "skipped", True, "build", reason="tool unavailable: cargo"))
    assert exit_code_for(ok) == OK
    assert exit_code_for(failed) == ERR_CHECKS
    assert exit_code_for(skipped) == OK
    assert exit_code_for(skipped, strict_skips=True) == ERR_SKIPPED
    assert exit_code_for(failed, strict_skips=True) == ERR_CHECKS


def test_writes_outside_output_root_are_rejected(run_ctx, tmp_path: Path) -> None:
    with pytest.raises(ArtifactError):
        fs.write_text(run_ctx, tmp_path / "escape.txt", "x")
    with pytest.raises(ArtifactError):
        fs.write_text(run_ctx, Path("../escape.txt"), "x")
    out = fs.write_text(run_ctx, Path("nested/ok.txt"), "x")
    assert fs.output_relative(run_ctx, out) == "nested/ok.txt"
