from __future__ import annotations

from ..checks.model import CheckStatus
from .model import Report


def render_text(report: Report) -> str:
    summary = report.summary
    lines = [
        f"cwaudit run {report.run_id}: {report.overall_status.value.upper()}",
        f"results: total={summary['total']} success={summary['success']} failure={summary['failure']} "
        f"skipped={summary['skipped']} required_failures={summary['required_failures']}",
    ]
    for unit in report.units:
        lines.append(f"unit {unit.name}: {report.unit_status(unit.name).value}")
    for result in report.results:
        if result.status == CheckStatus.SUCCESS:
            continue
        label = f"{result.check} ({result.unit})" if result.unit else result.check
        marker = "required" if result.required else "advisory"
        suffix = f": {result.reason}" if result.reason else ""
        lines.append(f"- {label} [{marker}] {result.status.value}{suffix}")
    return "\n".join(lines)
