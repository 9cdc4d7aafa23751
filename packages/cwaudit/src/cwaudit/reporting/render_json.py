from __future__ import annotations

import json

from ..checks.model import CheckResult
from .view import ReportView, visible_metrics


def result_row(result: CheckResult) -> dict[str, object]:
    return {
        "check": result.check,
        "unit": result.unit,
        "status": result.status.value,
        "required": result.required,
        "category": result.category.value,
        "reason": result.reason,
        "output": result.output,
        "artifacts": list(result.artifacts),
        "findings": [
            {"code": f.code, "message": f.message, "path": f.path, "line": f.line} for f in result.findings
        ],
        "metrics": visible_metrics(result),
    }


def render_json(view: ReportView) -> str:
    payload = {
        "schema_version": 1,
        "tool": "cwaudit",
        "kind": "audit-report",
        "run_id": view.run_id,
        "generated_at": view.generated_at,
        "status": view.status.value,
        "summary": view.summary,
        "checks": [
            {
                "name": check.name,
                "scope": check.scope.value,
                "category": check.category.value,
                "required": check.required,
                "kind": check.kind,
                "description": check.description,
            }
            for check in view.report.checks
        ],
        "units": [
            {
                "name": row.unit,
                "status": row.status.value,
                "checks": dict(zip(view.unit_columns, row.cells)),
            }
            for row in view.unit_rows
        ],
        "sections": {section.category.value: [r.check for r in section.results] for section in view.sections},
        "results": [result_row(result) for result in view.results],
    }
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"
