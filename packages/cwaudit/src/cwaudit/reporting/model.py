from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..checks.model import CheckDef, CheckResult, CheckStatus, Unit


def derive_overall_status(results: Iterable[CheckResult]) -> CheckStatus:
    return CheckStatus.FAILURE if any(r.is_required_failure for r in results) else CheckStatus.SUCCESS


def derive_unit_status(results: Iterable[CheckResult], unit: str) -> CheckStatus:
    return derive_overall_status(r for r in results if r.unit == unit)


@dataclass(frozen=True)
class Report:
    run_id: str
    generated_at: str
    checks: tuple[CheckDef, ...]
    units: tuple[Unit, ...]
    results: tuple[CheckResult, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "checks", tuple(sorted(self.checks, key=lambda c: c.name)))
        object.__setattr__(self, "units", tuple(sorted(self.units, key=lambda u: u.path.as_posix())))
        object.__setattr__(self, "results", tuple(sorted(self.results, key=lambda r: r.canonical_key)))

    @property
    def overall_status(self) -> CheckStatus:
        return derive_overall_status(self.results)

    def unit_status(self, unit: str) -> CheckStatus:
        return derive_unit_status(self.results, unit)

    def check(self, name: str) -> CheckDef | None:
        for check in self.checks:
            if check.name == name:
                return check
        return None

    def results_for(self, *, unit: str | None = None, check: str | None = None) -> tuple[CheckResult, ...]:
        return tuple(
            r for r in self.results if (unit is None or r.unit == unit) and (check is None or r.check == check)
        )

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.results),
            "success": sum(1 for r in self.results if r.status == CheckStatus.SUCCESS),
            "failure": sum(1 for r in self.results if r.status == CheckStatus.FAILURE),
            "skipped": sum(1 for r in self.results if r.status == CheckStatus.SKIPPED),
            "required_failures": sum(1 for r in self.results if r.is_required_failure),
        }
