from __future__ import annotations

from xml.etree.ElementTree import Element, SubElement, tostring

from ..checks.model import CheckStatus
from .view import NO_OUTPUT, ReportView


def render_junit(view: ReportView) -> str:
    summary = view.summary
    suites = Element(
        "testsuites",
        name="cwaudit",
        tests=str(summary["total"]),
        failures=str(summary["failure"]),
        skipped=str(summary["skipped"]),
        timestamp=view.generated_at,
    )
    for section in view.sections:
        suite = SubElement(
            suites,
            "testsuite",
            name=section.category.value,
            tests=str(len(section.results)),
            failures=str(sum(1 for r in section.results if r.status == CheckStatus.FAILURE)),
            skipped=str(sum(1 for r in section.results if r.status == CheckStatus.SKIPPED)),
        )
        for result in section.results:
            case = SubElement(
                suite,
                "testcase",
                classname=f"cwaudit.{result.unit or 'global'}",
                name=result.check,
            )
            if result.status == CheckStatus.FAILURE:
                message = result.reason or "check failed"
                node = SubElement(case, "failure", message=message if result.required else f"advisory: {message}")
                node.text = result.output or NO_OUTPUT
            elif result.status == CheckStatus.SKIPPED:
                SubElement(case, "skipped", message=result.reason or "skipped")
                if result.output:
                    out = SubElement(case, "system-out")
                    out.text = result.output
            elif not result.required and result.output:
                out = SubElement(case, "system-out")
                out.text = result.output
    return '<?xml version="1.0" encoding="utf-8"?>\n' + tostring(suites, encoding="unicode") + "\n"
