from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping

DURATION_METRIC = "duration_ms"


class CheckScope(str, Enum):
    GLOBAL = "global"
    UNIT = "unit"


class CheckStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class CheckCategory(str, Enum):
    LINT = "lint"
    SECURITY = "security"
    CONTRACT_ANALYSIS = "contract-analysis"
    BUILD = "build"
    STATS = "stats"

    @property
    def title(self) -> str:
        return self.value.replace("-", " ").title()


@dataclass(frozen=True, order=True)
class Unit:
    name: str
    path: Path

    @property
    def snake_name(self) -> str:
        return self.name.replace("-", "_")


@dataclass(frozen=True)
class Finding:
    code: str
    message: str
    path: str = ""
    line: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", str(self.code).strip() or "finding")
        object.__setattr__(self, "message", str(self.message).strip())
        object.__setattr__(self, "path", str(self.path).strip())
        object.__setattr__(self, "line", int(self.line or 0))

    @property
    def canonical_key(self) -> tuple[str, int, str, str]:
        return (self.path, self.line, self.code, self.message)

    def render(self) -> str:
        loc = f"{self.path}:{self.line}: " if self.path and self.line else (f"{self.path}: " if self.path else "")
        return f"{loc}{self.message}"


@dataclass(frozen=True)
class CheckDef:
    name: str
    scope: CheckScope | str
    category: CheckCategory | str
    required: bool
    description: str = ""
    command: tuple[str, ...] = ()
    builtin: str = ""
    requires: tuple[str, ...] = ()
    fail_patterns: tuple[str, ...] = ()
    artifacts: tuple[str, ...] = ()
    timeout_seconds: float = 0
    options: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", str(self.name).strip())
        object.__setattr__(self, "scope", CheckScope(str(getattr(self.scope, "value", self.scope))))
        object.__setattr__(self, "category", CheckCategory(str(getattr(self.category, "value", self.category))))
        object.__setattr__(self, "required", bool(self.required))
        object.__setattr__(self, "description", str(self.description).strip())
        object.__setattr__(self, "command", tuple(str(part) for part in self.command))
        object.__setattr__(self, "builtin", str(self.builtin).strip())
        object.__setattr__(self, "requires", tuple(str(t).strip() for t in self.requires if str(t).strip()))
        object.__setattr__(self, "fail_patterns", tuple(str(p) for p in self.fail_patterns if str(p)))
        object.__setattr__(self, "artifacts", tuple(str(p).strip() for p in self.artifacts if str(p).strip()))
        object.__setattr__(self, "timeout_seconds", float(self.timeout_seconds or 0))
        object.__setattr__(self, "options", dict(self.options or {}))
        if not self.name:
            raise ValueError("check name cannot be empty")
        if bool(self.command) == bool(self.builtin):
            raise ValueError(f"check `{self.name}` must define exactly one of command or builtin")
        for pattern in self.fail_patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"check `{self.name}` has invalid fail pattern `{pattern}`: {exc}") from exc

    @property
    def kind(self) -> str:
        return "builtin" if self.builtin else "command"

    @property
    def per_unit(self) -> bool:
        return self.scope == CheckScope.UNIT


@dataclass(frozen=True)
class CheckOutcome:
    status: CheckStatus
    output: str = ""
    reason: str = ""
    findings: tuple[Finding, ...] = ()
    artifacts: tuple[str, ...] = ()
    metrics: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckResult:
    check: str
    unit: str | None
    status: CheckStatus | str
    required: bool
    category: CheckCategory | str
    output: str = ""
    reason: str = ""
    findings: tuple[Finding, ...] = ()
    artifacts: tuple[str, ...] = ()
    metrics: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", CheckStatus(str(getattr(self.status, "value", self.status))))
        object.__setattr__(self, "category", CheckCategory(str(getattr(self.category, "value", self.category))))
        object.__setattr__(self, "output", str(self.output or "").rstrip())
        object.__setattr__(self, "reason", str(self.reason or "").strip())
        object.__setattr__(self, "findings", tuple(sorted(self.findings, key=lambda row: row.canonical_key)))
        object.__setattr__(self, "artifacts", tuple(sorted(str(a) for a in self.artifacts)))
        object.__setattr__(self, "metrics", dict(self.metrics or {}))

    @property
    def canonical_key(self) -> tuple[str, str]:
        return (self.unit or "", self.check)

    @property
    def is_required_failure(self) -> bool:
        return self.required and self.status == CheckStatus.FAILURE


def result_for(check: CheckDef, unit: Unit | None, outcome: CheckOutcome) -> CheckResult:
    return CheckResult(
        check=check.name,
        unit=unit.name if unit is not None else None,
        status=outcome.status,
        required=check.required,
        category=check.category,
        output=outcome.output,
        reason=outcome.reason,
        findings=outcome.findings,
        artifacts=outcome.artifacts,
        metrics=outcome.metrics,
    )


def skipped(check: CheckDef, unit: Unit | str | None, reason: str, output: str = "") -> CheckResult:
    unit_name = unit.name if isinstance(unit, Unit) else unit
    return CheckResult(
        check=check.name,
        unit=unit_name,
        status=CheckStatus.SKIPPED,
        required=check.required,
        category=check.category,
        output=output,
        reason=reason,
    )


def failed(check: CheckDef, unit: Unit | None, reason: str, output: str = "") -> CheckResult:
    return result_for(check, unit, CheckOutcome(status=CheckStatus.FAILURE, output=output, reason=reason))


__all__ = [
    "CheckCategory",
    "CheckDef",
    "CheckOutcome",
    "CheckResult",
    "CheckScope",
    "CheckStatus",
    "DURATION_METRIC",
    "Finding",
    "Unit",
    "failed",
    "result_for",
    "skipped",
]
