from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from ..checks.model import CheckDef, CheckResult, CheckStatus, Unit
from .model import Report, derive_overall_status, derive_unit_status

ScheduledPair = tuple[str, "str | None"]


class ResultAggregator:
    """Append-only, lock-guarded collection of check results for one run."""

    def __init__(self, checks: Sequence[CheckDef] = ()) -> None:
        self._checks = tuple(checks)
        self._lock = threading.Lock()
        self._results: list[CheckResult] = []

    @property
    def checks(self) -> tuple[CheckDef, ...]:
        return self._checks

    def append(self, result: CheckResult) -> None:
        with self._lock:
            self._results.append(result)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def _snapshot(self) -> list[CheckResult]:
        with self._lock:
            return list(self._results)

    def results(self) -> tuple[CheckResult, ...]:
        return tuple(sorted(self._snapshot(), key=lambda r: r.canonical_key))

    def by_unit(self) -> Mapping[str | None, tuple[CheckResult, ...]]:
        grouped: dict[str | None, list[CheckResult]] = {}
        for result in self.results():
            grouped.setdefault(result.unit, []).append(result)
        return MappingProxyType({key: tuple(rows) for key, rows in grouped.items()})

    def by_check(self) -> Mapping[str, tuple[CheckResult, ...]]:
        grouped: dict[str, list[CheckResult]] = {}
        for result in self.results():
            grouped.setdefault(result.check, []).append(result)
        return MappingProxyType({key: tuple(rows) for key, rows in sorted(grouped.items())})

    def overall_status(self) -> CheckStatus:
        return derive_overall_status(self._snapshot())

    def unit_status(self, unit: str) -> CheckStatus:
        return derive_unit_status(self._snapshot(), unit)

    def missing(self, scheduled: Iterable[ScheduledPair]) -> list[ScheduledPair]:
        seen = {(r.check, r.unit) for r in self._snapshot()}
        return [pair for pair in scheduled if pair not in seen]

    def duplicates(self) -> list[ScheduledPair]:
        counts: dict[ScheduledPair, int] = {}
        for result in self._snapshot():
            key = (result.check, result.unit)
            counts[key] = counts.get(key, 0) + 1
        return sorted((key for key, count in counts.items() if count > 1), key=lambda k: (k[1] or "", k[0]))

    def build_report(self, *, run_id: str, generated_at: str, units: Sequence[Unit] = ()) -> Report:
        return Report(
            run_id=run_id,
            generated_at=generated_at,
            checks=self._checks,
            units=tuple(units),
            results=self.results(),
        )
