from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from ..checks.builtin import BUILTINS
from ..checks.context import ARTIFACT_PLACEHOLDERS, artifact_placeholders
from ..checks.discovery import DEFAULT_MANIFEST
from ..checks.model import CheckDef
from ..contracts import CHECK_CONFIG
from ..contracts.validate import validate
from ..errors import ConfigError, ScriptError

CONFIG_ENV = "CWAUDIT_CONFIG"
DEFAULT_CONTRACTS_DIR = "contracts"
DEFAULT_JOBS = 4


@dataclass(frozen=True)
class CheckConfig:
    path: Path
    schema_version: int
    manifest: str
    contracts_dir: str
    jobs: int
    checks: tuple[CheckDef, ...]

    def check(self, name: str) -> CheckDef | None:
        for check in self.checks:
            if check.name == name:
                return check
        return None


def default_config_path() -> Path:
    return Path(__file__).resolve().parent / "default-checks.yaml"


def resolve_config_path(explicit: str | Path | None, base: Path | None = None) -> Path:
    raw = explicit or os.environ.get(CONFIG_ENV, "")
    if not raw:
        return default_config_path()
    path = Path(raw)
    if not path.is_absolute() and base is not None:
        path = base / path
    return path.resolve()


def load_yaml(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"check config not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"check config unreadable: {path}: {exc}") from exc
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"check config is not valid YAML: {path}: {exc}") from exc


def _check_from_row(row: dict[str, Any]) -> CheckDef:
    try:
        return CheckDef(
            name=row["name"],
            scope=row["scope"],
            category=row["category"],
            required=row["required"],
            description=row.get("description", ""),
            command=tuple(row.get("command", ())),
            builtin=row.get("builtin", ""),
            requires=tuple(row.get("requires", ())),
            fail_patterns=tuple(row.get("fail_patterns", ())),
            artifacts=tuple(row.get("artifacts", ())),
            timeout_seconds=row.get("timeout_seconds", 0),
            options=row.get("options", {}),
        )
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _check_artifact_patterns(check: CheckDef, path: Path) -> None:
    for pattern in check.artifacts:
        try:
            fields = artifact_placeholders(pattern)
        except ValueError as exc:
            raise ConfigError(f"{path}: check `{check.name}` artifact pattern `{pattern}` is malformed: {exc}") from exc
        unknown = [field for field in fields if field not in ARTIFACT_PLACEHOLDERS]
        if unknown:
            raise ConfigError(
                f"{path}: check `{check.name}` artifact pattern `{pattern}` uses unknown placeholder "
                f"`{{{unknown[0]}}}`; expected one of {', '.join(ARTIFACT_PLACEHOLDERS)}"
            )


def parse_check_config(payload: Any, path: Path) -> CheckConfig:
    if not isinstance(payload, dict):
        raise ConfigError(f"check config must be a mapping: {path}")
    try:
        validate(CHECK_CONFIG, payload)
    except ScriptError as exc:
        raise ConfigError(f"{path}: {exc.message}") from exc
    checks = tuple(_check_from_row(row) for row in payload["checks"])
    seen: set[str] = set()
    for check in checks:
        if check.name in seen:
            raise ConfigError(f"{path}: duplicate check name `{check.name}`")
        seen.add(check.name)
        _check_artifact_patterns(check, path)
        if not check.builtin:
            continue
        builtin = BUILTINS.get(check.builtin)
        if builtin is None:
            raise ConfigError(f"{path}: check `{check.name}` names unknown builtin `{check.builtin}`")
        if builtin.scope != check.scope:
            raise ConfigError(
                f"{path}: check `{check.name}` has scope `{check.scope.value}` "
                f"but builtin `{builtin.name}` runs with scope `{builtin.scope.value}`"
            )
    return CheckConfig(
        path=path,
        schema_version=int(payload["schema_version"]),
        manifest=str(payload.get("manifest", DEFAULT_MANIFEST)),
        contracts_dir=str(payload.get("contracts_dir", DEFAULT_CONTRACTS_DIR)),
        jobs=int(payload.get("jobs", DEFAULT_JOBS)),
        checks=tuple(sorted(checks, key=lambda c: c.name)),
    )


def load_check_config(path: Path) -> CheckConfig:
    return parse_check_config(load_yaml(path), path)


def select_checks(checks: Sequence[CheckDef], only: Sequence[str] | None) -> tuple[CheckDef, ...]:
    if not only:
        return tuple(checks)
    wanted = [name.strip() for raw in only for name in raw.split(",") if name.strip()]
    known = {check.name for check in checks}
    unknown = sorted(set(wanted) - known)
    if unknown:
        raise ConfigError(f"unknown check(s) for --only: {', '.join(unknown)}")
    return tuple(check for check in checks if check.name in set(wanted))
