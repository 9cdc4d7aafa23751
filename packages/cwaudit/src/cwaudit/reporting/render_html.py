from __future__ import annotations

from xml.etree.ElementTree import Element, SubElement, tostring

from .view import NO_OUTPUT, ReportView, result_label

_STYLE = (
    "body{font-family:sans-serif;margin:2em}"
    "table{border-collapse:collapse;margin:1em 0}"
    "th,td{border:1px solid #ccc;padding:4px 8px;text-align:left}"
    ".success{color:#1a7f37}.failure{color:#cf222e}.skipped{color:#9a6700}"
    ".banner{font-size:1.4em;font-weight:bold}"
    "pre{background:#f6f8fa;padding:8px;overflow:auto}"
)


def _text(parent: Element, tag: str, text: str, **attrs: str) -> Element:
    node = SubElement(parent, tag, attrs)
    node.text = text
    return node


def _table(parent: Element, headers: list[str], rows: list[list[str]], status_cols: set[int]) -> None:
    table = SubElement(parent, "table")
    head = SubElement(table, "tr")
    for header in headers:
        _text(head, "th", header)
    for row in rows:
        tr = SubElement(table, "tr")
        for index, value in enumerate(row):
            attrs = {"class": value} if index in status_cols else {}
            _text(tr, "td", value or "-", **attrs)


def render_html(view: ReportView) -> str:
    html = Element("html", lang="en")
    head = SubElement(html, "head")
    SubElement(head, "meta", charset="utf-8")
    _text(head, "title", f"cwaudit report {view.run_id}")
    _text(head, "style", _STYLE)
    body = SubElement(html, "body")
    _text(body, "h1", "cwaudit report")
    _text(body, "p", f"Status: {view.status.value.upper()}", **{"class": f"banner {view.status.value}"})
    _text(body, "p", f"Run: {view.run_id}", **{"class": "run-id"})
    _text(body, "p", f"Generated at: {view.generated_at}", **{"class": "generated-at"})
    summary = view.summary
    _text(
        body,
        "p",
        f"{summary['total']} total, {summary['success']} success, {summary['failure']} failure, "
        f"{summary['skipped']} skipped, {summary['required_failures']} required failures",
        **{"class": "summary"},
    )

    _text(body, "h2", "Units")
    if view.unit_rows:
        columns = ["Unit", *view.unit_columns, "Status"]
        status_cols = set(range(1, len(columns)))
        _table(
            body,
            columns,
            [[row.unit, *row.cells, row.status.value] for row in view.unit_rows],
            status_cols,
        )
    else:
        _text(body, "p", "No units discovered.", **{"class": "empty"})

    for section in view.sections:
        _text(body, "h2", section.title)
        if not section.results:
            _text(body, "p", "No results.", **{"class": "empty"})
            continue
        _table(
            body,
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
            {2},
        )

    if view.details:
        _text(body, "h2", "Output")
        for result in view.details:
            details = SubElement(body, "details", **{"class": result.status.value})
            _text(details, "summary", f"{result_label(result)}: {result.status.value}")
            if result.reason:
                _text(details, "p", f"Reason: {result.reason}")
            if result.findings:
                listing = SubElement(details, "ul")
                for finding in result.findings:
                    _text(listing, "li", finding.render())
            _text(details, "pre", result.output or NO_OUTPUT)
    return "<!DOCTYPE html>\n" + tostring(html, encoding="unicode", method="html") + "\n"
