from __future__ import annotations

from ..checks.model import CheckStatus
from ..exit_codes import ERR_CHECKS, ERR_SKIPPED, OK
from .model import Report


def exit_code_for(report: Report, strict_skips: bool = False) -> int:
    if report.overall_status == CheckStatus.FAILURE:
        return ERR_CHECKS
    if strict_skips and any(r.status == CheckStatus.SKIPPED for r in report.results):
        return ERR_SKIPPED
    return OK
