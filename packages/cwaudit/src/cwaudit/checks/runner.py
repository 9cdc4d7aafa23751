from __future__ import annotations

import re
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from ..core.cancel import CANCELLED, Cancelled, CancelToken
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import ToolUnavailable
from ..reporting.aggregator import ResultAggregator
from .builtin import get_builtin
from .context import CheckContext
from .model import (
    DURATION_METRIC,
    CheckDef,
    CheckOutcome,
    CheckResult,
    CheckStatus,
    Finding,
    Unit,
    failed,
    result_for,
    skipped,
)

NO_RESULT = "no result recorded"
_WAIT_SECONDS = 0.2


@dataclass(frozen=True)
class Job:
    unit: Unit | None
    checks: tuple[CheckDef, ...]

    @property
    def pairs(self) -> list[tuple[str, str | None]]:
        unit_name = self.unit.name if self.unit is not None else None
        return [(check.name, unit_name) for check in self.checks]


def schedule(checks: Sequence[CheckDef], units: Sequence[Unit]) -> list[Job]:
    ordered = sorted(checks, key=lambda c: c.name)
    global_checks = [c for c in ordered if not c.per_unit]
    unit_checks = tuple(c for c in ordered if c.per_unit)
    jobs = [Job(unit=None, checks=(check,)) for check in global_checks]
    if unit_checks:
        for unit in sorted(units, key=lambda u: u.path.as_posix()):
            jobs.append(Job(unit=unit, checks=unit_checks))
    return jobs


def scheduled_pairs(jobs: Iterable[Job]) -> list[tuple[str, str | None]]:
    return [pair for job in jobs for pair in job.pairs]


def match_fail_patterns(patterns: Sequence[str], output: str) -> tuple[Finding, ...]:
    compiled = [re.compile(pattern) for pattern in patterns]
    findings: list[Finding] = []
    for lineno, line in enumerate(output.splitlines(), start=1):
        for regex in compiled:
            if regex.search(line):
                findings.append(Finding(code="fail-pattern", message=line.strip(), line=lineno))
                break
    return tuple(findings)


def run_command_check(ctx: CheckContext) -> CheckOutcome:
    check = ctx.check
    command = list(check.command)
    ctx.require_tool(command[0], *check.requires)
    result = ctx.run_command(command)
    output = result.combined_output
    findings = match_fail_patterns(check.fail_patterns, output)
    artifacts = ctx.collect_artifacts(check.artifacts)
    metrics: dict[str, object] = {"exit_code": result.code}
    if result.timed_out:
        status, reason = CheckStatus.FAILURE, f"timed out after {check.timeout_seconds:g}s (exit code {result.code})"
    elif result.code != 0:
        status, reason = CheckStatus.FAILURE, f"exit code {result.code}"
    elif findings:
        status, reason = CheckStatus.FAILURE, f"fail pattern matched ({len(findings)} lines)"
    else:
        status, reason = CheckStatus.SUCCESS, ""
    return CheckOutcome(
        status=status,
        output=output,
        reason=reason,
        findings=findings,
        artifacts=artifacts,
        metrics=metrics,
    )


def run_builtin_check(ctx: CheckContext) -> CheckOutcome:
    return get_builtin(ctx.check.builtin).fn(ctx)


class CheckRunner:
    """Dispatches scheduled jobs onto a bounded pool and collects one result per pair."""

    def __init__(
        self,
        ctx: RunContext,
        checks: Sequence[CheckDef],
        *,
        jobs: int = 1,
        cancel: CancelToken | None = None,
        timeout_seconds: float = 0,
    ) -> None:
        self._ctx = ctx
        self._checks = tuple(sorted(checks, key=lambda c: c.name))
        self._jobs = max(1, int(jobs))
        self._cancel = cancel if cancel is not None else CancelToken()
        self._timeout_seconds = float(timeout_seconds or 0)

    @property
    def cancel_token(self) -> CancelToken:
        return self._cancel

    def run(self, units: Sequence[Unit]) -> ResultAggregator:
        aggregator = ResultAggregator(self._checks)
        jobs = schedule(self._checks, units)
        log_event(
            self._ctx,
            "info",
            "runner",
            "schedule",
            jobs=len(jobs),
            units=len(units),
            checks=len(self._checks),
            workers=self._jobs,
        )
        timer: threading.Timer | None = None
        if self._timeout_seconds > 0:
            timer = threading.Timer(
                self._timeout_seconds,
                self._cancel.cancel,
                args=(f"run timeout after {self._timeout_seconds:g}s",),
            )
            timer.daemon = True
            timer.start()
        try:
            if self._jobs > 1 and len(jobs) > 1:
                with ThreadPoolExecutor(max_workers=self._jobs) as ex:
                    futures = [ex.submit(self._run_job, job, aggregator) for job in jobs]
                    self._drain(futures)
            else:
                for job in jobs:
                    try:
                        self._run_job(job, aggregator)
                    except KeyboardInterrupt:
                        self._interrupt()
        finally:
            if timer is not None:
                timer.cancel()
        self._fill_missing(aggregator, scheduled_pairs(jobs))
        if self._cancel.is_set():
            log_event(self._ctx, "warn", "runner", "cancelled", cause=self._cancel.cause)
        return aggregator

    def _interrupt(self) -> None:
        self._cancel.cancel("interrupted")
        log_event(self._ctx, "warn", "runner", "interrupt", cause="KeyboardInterrupt")

    def _drain(self, futures: list[Future[None]]) -> None:
        pending = set(futures)
        while pending:
            try:
                _, pending = wait(pending, timeout=_WAIT_SECONDS)
            except KeyboardInterrupt:
                self._interrupt()
        for future in futures:
            future.result()

    def _fill_missing(self, aggregator: ResultAggregator, pairs: list[tuple[str, str | None]]) -> None:
        by_name = {check.name: check for check in self._checks}
        reason = CANCELLED if self._cancel.is_set() else NO_RESULT
        for check_name, unit_name in aggregator.missing(pairs):
            log_event(self._ctx, "warn", "runner", "missing-result", check=check_name, unit=unit_name or "-")
            aggregator.append(skipped(by_name[check_name], unit_name, reason))

    def _run_job(self, job: Job, aggregator: ResultAggregator) -> None:
        for check in job.checks:
            aggregator.append(self._run_check(check, job.unit))

    def _run_check(self, check: CheckDef, unit: Unit | None) -> CheckResult:
        unit_label = unit.name if unit is not None else "-"
        if self._cancel.is_set():
            return skipped(check, unit, CANCELLED)
        ctx = CheckContext(run=self._ctx, check=check, unit=unit, cancel=self._cancel)
        log_event(self._ctx, "info", "runner", "dispatch", check=check.name, unit=unit_label, kind=check.kind)
        started = time.perf_counter()
        try:
            outcome = run_builtin_check(ctx) if check.builtin else run_command_check(ctx)
            result = result_for(check, unit, outcome)
        except ToolUnavailable as exc:
            log_event(self._ctx, "warn", "runner", "tool-unavailable", check=check.name, unit=unit_label, tool=exc.tool)
            result = skipped(check, unit, exc.message)
        except Cancelled as exc:
            result = skipped(check, unit, CANCELLED, exc.output)
        except Exception as exc:
            result = failed(check, unit, f"internal check error: {exc}")
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        result = replace(result, metrics={**result.metrics, DURATION_METRIC: elapsed_ms})
        log_event(
            self._ctx,
            "info",
            "runner",
            "complete",
            check=check.name,
            unit=unit_label,
            status=result.status.value,
            duration_ms=elapsed_ms,
        )
        return result
