"""Validated, render-ready projection of a Report shared by every document renderer."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from ..checks.model import DURATION_METRIC, CheckCategory, CheckResult, CheckStatus
from ..errors import RenderError
from .model import Report

MISSING_CELL = "-"
NO_OUTPUT = "(no output captured)"

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -\/]*[@-~]")
_XML_ILLEGAL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


@dataclass(frozen=True)
class UnitRow:
    unit: str
    cells: tuple[str, ...]
    status: CheckStatus


@dataclass(frozen=True)
class CategorySection:
    category: CheckCategory
    results: tuple[CheckResult, ...]

    @property
    def title(self) -> str:
        return self.category.title


@dataclass(frozen=True)
class ReportView:
    report: Report
    status: CheckStatus
    summary: dict[str, int]
    unit_columns: tuple[str, ...]
    unit_rows: tuple[UnitRow, ...]
    sections: tuple[CategorySection, ...]
    details: tuple[CheckResult, ...]
    results: tuple[CheckResult, ...]

    @property
    def run_id(self) -> str:
        return self.report.run_id

    @property
    def generated_at(self) -> str:
        return self.report.generated_at


def result_label(result: CheckResult) -> str:
    return f"{result.check} ({result.unit})" if result.unit else result.check


def visible_metrics(result: CheckResult) -> dict[str, object]:
    return {key: value for key, value in sorted(result.metrics.items()) if key != DURATION_METRIC}


def clean_text(text: str) -> str:
    """Drop terminal escape sequences and characters XML 1.0 cannot carry."""
    return _XML_ILLEGAL_RE.sub("", _ANSI_RE.sub("", text))


def clean_result(result: CheckResult) -> CheckResult:
    return replace(
        result,
        output=clean_text(result.output),
        reason=clean_text(result.reason),
        findings=tuple(replace(f, message=clean_text(f.message)) for f in result.findings),
    )


def needs_details(result: CheckResult) -> bool:
    return result.status != CheckStatus.SUCCESS or not result.required


def validate_report(report: Report) -> None:
    if not str(report.generated_at).strip():
        raise RenderError("report has no generated_at timestamp")
    checks = {check.name: check for check in report.checks}
    units = {unit.name for unit in report.units}
    seen: set[tuple[str, str | None]] = set()
    for result in report.results:
        check = checks.get(result.check)
        if check is None:
            raise RenderError(f"result names unknown check `{result.check}`")
        if result.unit is None and check.per_unit:
            raise RenderError(f"per-unit check `{result.check}` recorded without a unit")
        if result.unit is not None:
            if not check.per_unit:
                raise RenderError(f"global check `{result.check}` recorded for unit `{result.unit}`")
            if result.unit not in units:
                raise RenderError(f"result for `{result.check}` names undiscovered unit `{result.unit}`")
        key = (result.check, result.unit)
        if key in seen:
            raise RenderError(f"duplicate result for {result_label(result)}")
        seen.add(key)


def build_view(report: Report) -> ReportView:
    validate_report(report)
    results = tuple(clean_result(r) for r in report.results)
    columns = tuple(check.name for check in report.checks if check.per_unit and check.required)
    rows: list[UnitRow] = []
    for unit in report.units:
        statuses = {r.check: r.status.value for r in report.results_for(unit=unit.name)}
        rows.append(
            UnitRow(
                unit=unit.name,
                cells=tuple(statuses.get(name, MISSING_CELL) for name in columns),
                status=report.unit_status(unit.name),
            )
        )
    used = {check.category for check in report.checks}
    sections = tuple(
        CategorySection(
            category=category,
            results=tuple(r for r in results if r.category == category),
        )
        for category in CheckCategory
        if category in used
    )
    return ReportView(
        report=report,
        status=report.overall_status,
        summary=report.summary,
        unit_columns=columns,
        unit_rows=tuple(rows),
        sections=sections,
        details=tuple(r for r in results if needs_details(r)),
        results=results,
    )
