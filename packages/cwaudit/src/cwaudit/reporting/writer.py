from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from ..contracts import AUDIT_SUMMARY
from ..contracts.validate import validate
from ..core import fs
from ..core.context import RunContext
from ..core.logging import log_event
from .model import Report
from .render import render, report_filename

SUMMARY_FILENAME = "summary.json"


def build_summary(report: Report, documents: Sequence[str] = ()) -> dict[str, Any]:
    return {
        "schema_version": 1,
        "tool": "cwaudit",
        "kind": "audit-summary",
        "run_id": report.run_id,
        "generated_at": report.generated_at,
        "status": report.overall_status.value,
        "summary": report.summary,
        "units": {unit.name: report.unit_status(unit.name).value for unit in report.units},
        "documents": sorted(documents),
        "results": [
            {
                "check": r.check,
                "unit": r.unit,
                "status": r.status.value,
                "required": r.required,
                "category": r.category.value,
                "reason": r.reason,
                "artifacts": list(r.artifacts),
                "findings": len(r.findings),
                "metrics": dict(sorted(r.metrics.items())),
            }
            for r in report.results
        ],
    }


def write_documents(ctx: RunContext, report: Report, formats: Sequence[str]) -> list[Path]:
    written: list[Path] = []
    for fmt in formats:
        text = render(report, fmt)
        path = fs.write_text(ctx, ctx.output_root / report_filename(fmt), text)
        log_event(ctx, "info", "writer", "report-written", format=fmt, path=ctx.relative(path))
        written.append(path)
    return written


def write_summary(ctx: RunContext, report: Report, documents: Sequence[Path] = ()) -> Path:
    payload = build_summary(report, [fs.output_relative(ctx, path) for path in documents])
    validate(AUDIT_SUMMARY, payload)
    path = fs.write_json(ctx, ctx.output_root / SUMMARY_FILENAME, payload)
    log_event(ctx, "info", "writer", "summary-written", path=ctx.relative(path), status=payload["status"])
    return path


def write_report(ctx: RunContext, report: Report, formats: Sequence[str]) -> tuple[list[Path], Path]:
    documents = write_documents(ctx, report, formats)
    return documents, write_summary(ctx, report, documents)
