from __future__ import annotations

from .aggregator import ResultAggregator
from .gate import exit_code_for
from .model import Report, derive_overall_status, derive_unit_status
from .render import REPORT_FORMATS, render

__all__ = [
    "REPORT_FORMATS",
    "Report",
    "ResultAggregator",
    "derive_overall_status",
    "derive_unit_status",
    "exit_code_for",
    "render",
]
