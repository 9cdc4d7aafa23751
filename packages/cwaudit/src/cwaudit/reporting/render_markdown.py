from __future__ import annotations

from .view import NO_OUTPUT, ReportView, result_label


def _cell(value: object) -> str:
    text = str(value).replace("\r", "").replace("\n", " ").replace("|", "\\|").strip()
    return text or "-"


def _fence(body: str) -> str:
    width = 3
    while "`" * width in body:
        width += 1
    return "`" * width


def _table(headers: list[str], rows: list[list[object]]) -> list[str]:
    lines = ["| " + " | ".join(headers) + " |", "|" + "---|" * len(headers)]
    lines.extend("| " + " | ".join(_cell(value) for value in row) + " |" for row in rows)
    return lines


def render_markdown(view: ReportView) -> str:
    summary = view.summary
    lines = [
        "# cwaudit report",
        "",
        f"**Status: {view.status.value.upper()}**",
        "",
        f"- Run: `{view.run_id}`",
        f"- Generated at: {view.generated_at}",
        f"- Results: {summary['total']} total, {summary['success']} success, "
        f"{summary['failure']} failure, {summary['skipped']} skipped",
        f"- Required failures: {summary['required_failures']}",
        "",
        "## Units",
        "",
    ]
    if view.unit_rows:
        lines.extend(
            _table(
                ["Unit", *view.unit_columns, "Status"],
                [[row.unit, *row.cells, row.status.value] for row in view.unit_rows],
            )
        )
    else:
        lines.append("_No units discovered._")
    for section in view.sections:
        lines.extend(["", f"## {section.title}", ""])
        if not section.results:
            lines.append("_No results._")
            continue
        lines.extend(
            _table(
                ["Check", "Unit", "Status", "Required", "Reason", "Artifacts"],
                [
                    [
                        r.check,
                        r.unit or "-",
                        r.status.value,
                        "yes" if r.required else "no",
                        r.reason,
                        ", ".join(r.artifacts),
                    ]
                    for r in section.results
                ],
            )
        )
    if view.details:
        lines.extend(["", "## Output"])
        for result in view.details:
            body = result.output or NO_OUTPUT
            fence = _fence(body)
            lines.extend(["", f"### {result_label(result)}: {result.status.value}", ""])
            if result.reason:
                lines.extend([f"Reason: {result.reason}", ""])
            if result.findings:
                lines.extend(f"- {finding.render()}" for finding in result.findings)
                lines.append("")
            lines.extend([f"{fence}text", body, fence])
    return "\n".join(lines) + "\n"
