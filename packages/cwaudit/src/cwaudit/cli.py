from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .checks.discovery import discover_units
from .checks.runner import CheckRunner
from .config import load_check_config, resolve_config_path, select_checks
from .config.loader import CheckConfig
from .core import fs
from .core.clock import utc_now_iso
from .core.context import RunContext
from .core.logging import log_event
from .errors import RenderError, ScriptError
from .exit_codes import ERR_INTERNAL, ERR_USAGE, OK
from .patches import apply_patch, generate_patch
from .reporting.gate import exit_code_for
from .reporting.render import REPORT_FORMATS
from .reporting.render_text import render_text
from .reporting.writer import build_summary, write_documents, write_summary


def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", help="check configuration YAML (default: $CWAUDIT_CONFIG or bundled)")
    p.add_argument("--contracts-dir", help="directory holding one subdirectory per contract")
    p.add_argument("--manifest", help="file that marks a subdirectory as a unit")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cwaudit", description="CosmWasm contract audit report pipeline")
    p.add_argument("--version", action="version", version=f"cwaudit {__version__}")
    p.add_argument("--run-id", help="run identifier for artifacts")
    p.add_argument("--root", help="workspace root (default: $CWAUDIT_ROOT or cwd)")
    p.add_argument("--out", help="output root (default: $CWAUDIT_OUT or artifacts/cwaudit/<run-id>)")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--log-json", action="store_true", help="emit structured logs as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="run configured checks and write the consolidated report")
    _add_config_args(run_p)
    run_p.add_argument(
        "--format",
        action="append",
        choices=REPORT_FORMATS,
        help="report format; repeat for several (default: markdown)",
    )
    run_p.add_argument("--jobs", type=int, help="worker pool size (default from config)")
    run_p.add_argument("--timeout", type=float, default=0, help="cancel the run after this many seconds")
    run_p.add_argument("--only", action="append", help="comma-separated check names to run")
    run_p.add_argument("--strict-skips", action="store_true", help="exit non-zero when any result was skipped")

    discover_p = sub.add_parser("discover", help="list discovered units")
    _add_config_args(discover_p)

    checks_p = sub.add_parser("checks", help="list configured checks")
    checks_p.add_argument("--config", help="check configuration YAML")

    validate_p = sub.add_parser("validate-config", help="validate a check configuration file")
    validate_p.add_argument("--config", help="check configuration YAML")

    patch_p = sub.add_parser("patch", help="generate source patches for lint suppressions")
    patch_sub = patch_p.add_subparsers(dest="patch_cmd", required=True)
    div_p = patch_sub.add_parser("div-ceil", help="allow clippy::manual_div_ceil above manual ceiling divisions")
    div_p.add_argument("--path", help="directory to scan (default: workspace root)")
    div_p.add_argument("--apply", action="store_true", help="write the patch to the scanned sources")
    div_p.add_argument("--out", dest="patch_out", help="write the unified diff to this file under the output root")

    sub.add_parser("version", help="print version and git context")
    return p


def _emit(payload: dict[str, object], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, sort_keys=True))
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))


def _load_config(ns: argparse.Namespace) -> CheckConfig:
    return load_check_config(resolve_config_path(getattr(ns, "config", None)))


def _contracts_root(ctx: RunContext, ns: argparse.Namespace, config: CheckConfig) -> Path:
    return ctx.resolve(ns.contracts_dir or config.contracts_dir)


def _cmd_run(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    config = _load_config(ns)
    checks = select_checks(config.checks, ns.only)
    contracts_root = _contracts_root(ctx, ns, config)
    log_event(ctx, "info", "cli", "run-start", checks=len(checks), config=ctx.relative(config.path))
    units = discover_units(contracts_root, ns.manifest or config.manifest)
    log_event(ctx, "info", "discovery", "units", count=len(units), root=ctx.relative(contracts_root))
    runner = CheckRunner(ctx, checks, jobs=ns.jobs or config.jobs, timeout_seconds=ns.timeout)
    aggregator = runner.run(units)
    report = aggregator.build_report(run_id=ctx.run_id, generated_at=utc_now_iso(), units=units)
    try:
        documents = write_documents(ctx, report, ns.format or ["markdown"])
    except RenderError:
        write_summary(ctx, report)
        log_event(ctx, "error", "writer", "render-failed", status=report.overall_status.value, **report.summary)
        raise
    summary_path = write_summary(ctx, report, documents)
    code = exit_code_for(report, strict_skips=ns.strict_skips)
    log_event(ctx, "info", "cli", "run-end", status=report.overall_status.value, exit_code=code)
    if as_json:
        payload = build_summary(report, [fs.output_relative(ctx, path) for path in documents])
        payload["summary_path"] = str(summary_path)
        payload["exit_code"] = code
        print(json.dumps(payload, sort_keys=True))
    else:
        print(render_text(report))
        for path in documents:
            print(f"report: {path}")
        print(f"summary: {summary_path}")
    return code


def _cmd_discover(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    config = _load_config(ns)
    contracts_root = _contracts_root(ctx, ns, config)
    units = discover_units(contracts_root, ns.manifest or config.manifest)
    if as_json:
        _emit(
            {
                "schema_version": 1,
                "tool": "cwaudit",
                "status": "ok",
                "contracts_root": str(contracts_root),
                "units": [{"name": u.name, "path": ctx.relative(u.path)} for u in units],
            },
            True,
        )
    else:
        for unit in units:
            print(f"{unit.name}\t{ctx.relative(unit.path)}")
    return OK


def _cmd_checks(ns: argparse.Namespace, as_json: bool) -> int:
    config = _load_config(ns)
    rows = [
        {
            "name": c.name,
            "scope": c.scope.value,
            "category": c.category.value,
            "required": c.required,
            "kind": c.kind,
            "description": c.description,
        }
        for c in config.checks
    ]
    if as_json:
        _emit({"schema_version": 1, "tool": "cwaudit", "status": "ok", "checks": rows}, True)
    else:
        for row in rows:
            marker = "required" if row["required"] else "advisory"
            print(f"{row['name']}\t{row['scope']}\t{row['category']}\t{marker}\t{row['description']}")
    return OK


def _cmd_validate_config(ns: argparse.Namespace, as_json: bool) -> int:
    config = _load_config(ns)
    payload = {
        "schema_version": 1,
        "tool": "cwaudit",
        "status": "ok",
        "config": str(config.path),
        "checks": len(config.checks),
    }
    if as_json:
        _emit(payload, True)
    else:
        print(f"config ok: {config.path} ({len(config.checks)} checks)")
    return OK


def _cmd_patch(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    root = ctx.resolve(ns.path) if ns.path else ctx.workspace_root
    patch = generate_patch(root)
    diff = patch.unified_diff()
    out_path = fs.write_text(ctx, Path(ns.patch_out), diff) if ns.patch_out else None
    applied = [ctx.relative(p) for p in apply_patch(patch)] if ns.apply else []
    log_event(ctx, "info", "patch", "div-ceil", files=len(patch.files), lines=patch.line_count, applied=len(applied))
    if as_json:
        _emit(
            {
                "schema_version": 1,
                "tool": "cwaudit",
                "status": "ok",
                "files": [ctx.relative(f.path) for f in patch.files],
                "lines": patch.line_count,
                "applied": applied,
                "diff_path": str(out_path) if out_path else None,
            },
            True,
        )
    elif out_path is None and not ns.apply:
        sys.stdout.write(diff)
    else:
        print(f"div-ceil: files={len(patch.files)} lines={patch.line_count} applied={len(applied)}")
    return OK


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    as_json = bool(ns.json)
    try:
        ctx = RunContext.from_args(
            ns.run_id,
            ns.root,
            ns.out,
            "json" if as_json else "text",
            ns.verbose,
            ns.quiet,
            ns.log_json,
        )
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            _emit(
                {
                    "schema_version": 1,
                    "tool": "cwaudit",
                    "version": __version__,
                    "run_id": ctx.run_id,
                    "workspace_root": str(ctx.workspace_root),
                    "output_root": str(ctx.output_root),
                    "git_sha": ctx.git_sha,
                    "git_dirty": ctx.git_dirty,
                },
                as_json,
            )
            return OK
        if ns.cmd == "run":
            return _cmd_run(ctx, ns, as_json)
        if ns.cmd == "discover":
            return _cmd_discover(ctx, ns, as_json)
        if ns.cmd == "checks":
            return _cmd_checks(ns, as_json)
        if ns.cmd == "validate-config":
            return _cmd_validate_config(ns, as_json)
        if ns.cmd == "patch":
            return _cmd_patch(ctx, ns, as_json)
        return ERR_USAGE
    except ScriptError as exc:
        if as_json:
            print(
                json.dumps(
                    {
                        "schema_version": 1,
                        "tool": "cwaudit",
                        "status": "fail",
                        "error": {"message": str(exc), "code": exc.code, "kind": exc.kind},
                    },
                    sort_keys=True,
                ),
                file=sys.stderr,
            )
        else:
            print(str(exc), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        if as_json:
            print(
                json.dumps(
                    {
                        "schema_version": 1,
                        "tool": "cwaudit",
                        "status": "fail",
                        "error": {"message": f"internal error: {exc}", "code": ERR_INTERNAL},
                    },
                    sort_keys=True,
                ),
                file=sys.stderr,
            )
        else:
            print(f"internal error: {exc}", file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
