"""Source pattern scan for risky constructs in contract code.

Each rule is a line-oriented regex over ``src/**/*.rs``; every matching line
becomes a :class:`Finding`. Rules listed in the ``deny`` option turn the
result into a failure, the rest are reported as warnings only.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from ..context import CheckContext
from ..model import CheckOutcome, CheckScope, CheckStatus, Finding
from .base import BuiltinCheck

EXAMPLES_PER_RULE = 5


@dataclass(frozen=True)
class PatternRule:
    code: str
    pattern: re.Pattern[str]
    message: str
    exclude: re.Pattern[str] | None = None

    def matches(self, line: str) -> bool:
        if not self.pattern.search(line):
            return False
        return self.exclude is None or not self.exclude.search(line)


RULES: tuple[PatternRule, ...] = (
    PatternRule("unwrap", re.compile(r"\.unwrap\("), "unwrap() call, use proper error handling instead"),
    PatternRule("expect", re.compile(r"\.expect\("), "expect() call, use proper error handling instead"),
    PatternRule("panic", re.compile(r"\bpanic!"), "panic! macro in contract code"),
    PatternRule(
        "unchecked-arithmetic",
        re.compile(r"\.(?:add|sub|mul|div)\(.*\)"),
        "possibly unchecked arithmetic, consider checked_add/checked_sub/checked_mul/checked_div",
        exclude=re.compile(r"checked_"),
    ),
    PatternRule("unsafe", re.compile(r"\bunsafe\s*\{"), "unsafe block, review and document it"),
    PatternRule("assert", re.compile(r"\b(?:debug_assert|assert)(?:_eq|_ne)?!"), "assertion macro may panic at runtime"),
)
RULE_CODES = tuple(rule.code for rule in RULES)


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("//")


def scan_text(text: str, rel_path: str, rules: tuple[PatternRule, ...] = RULES) -> list[Finding]:
    findings: list[Finding] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if _is_comment(line):
            continue
        for rule in rules:
            if rule.matches(line):
                findings.append(Finding(code=rule.code, message=line.strip(), path=rel_path, line=lineno))
    return findings


def scan_tree(src_root: Path, base: Path, rules: tuple[PatternRule, ...] = RULES) -> list[Finding]:
    findings: list[Finding] = []
    for path in sorted(src_root.rglob("*.rs")):
        if not path.is_file():
            continue
        text = path.read_text(encoding="utf-8", errors="replace")
        findings.extend(scan_text(text, path.relative_to(base).as_posix(), rules))
    return findings


def _summary(findings: list[Finding], denied: set[str]) -> str:
    lines: list[str] = []
    for rule in RULES:
        hits = [f for f in findings if f.code == rule.code]
        if not hits:
            lines.append(f"- ok: no {rule.code} matches")
            continue
        marker = "DENIED" if rule.code in denied else "WARNING"
        lines.append(f"- {marker}: {len(hits)} {rule.code} match(es): {rule.message}")
        for finding in hits[:EXAMPLES_PER_RULE]:
            lines.append(f"    {finding.render()}")
    return "\n".join(lines)


def run(ctx: CheckContext) -> CheckOutcome:
    assert ctx.unit is not None
    src_root = ctx.unit.path / str(ctx.option("source_dir", "src"))
    if not src_root.is_dir():
        return CheckOutcome(status=CheckStatus.SUCCESS, reason=f"no source directory at {ctx.run.relative(src_root)}")
    deny_opt = ctx.option("deny", list(RULE_CODES))
    denied = {str(code) for code in deny_opt} if isinstance(deny_opt, (list, tuple)) else set(RULE_CODES)
    findings = scan_tree(src_root, ctx.unit.path)
    artifact = ctx.write_artifact(
        "findings.json",
        json.dumps(
            [{"code": f.code, "path": f.path, "line": f.line, "message": f.message} for f in findings],
            indent=2,
            sort_keys=True,
        )
        + "\n",
    )
    hit_codes = sorted({f.code for f in findings} & denied)
    metrics: dict[str, object] = {code: sum(1 for f in findings if f.code == code) for code in RULE_CODES}
    return CheckOutcome(
        status=CheckStatus.FAILURE if hit_codes else CheckStatus.SUCCESS,
        output=_summary(findings, denied),
        reason=f"denied patterns matched: {', '.join(hit_codes)}" if hit_codes else "",
        findings=tuple(findings),
        artifacts=(artifact,),
        metrics=metrics,
    )


BUILTIN = BuiltinCheck(
    name="security-patterns",
    scope=CheckScope.UNIT,
    description="scan contract sources for unwrap/expect/panic, unchecked arithmetic, unsafe and asserts",
    fn=run,
)
