from __future__ import annotations

from typing import Callable

from ..errors import RenderError
from .model import Report
from .render_html import render_html
from .render_json import render_json
from .render_junit import render_junit
from .render_markdown import render_markdown
from .view import ReportView, build_view

Renderer = Callable[[ReportView], str]

RENDERERS: dict[str, Renderer] = {
    "html": render_html,
    "json": render_json,
    "junit": render_junit,
    "markdown": render_markdown,
}

EXTENSIONS: dict[str, str] = {
    "html": "html",
    "json": "json",
    "junit": "xml",
    "markdown": "md",
}

REPORT_FORMATS = tuple(sorted(RENDERERS))


def report_filename(fmt: str) -> str:
    return f"report.{EXTENSIONS.get(fmt, fmt)}"


def render(report: Report, fmt: str) -> str:
    renderer = RENDERERS.get(fmt)
    if renderer is None:
        raise RenderError(f"unknown report format `{fmt}`; expected one of {sorted(RENDERERS)}")
    return renderer(build_view(report))
