from __future__ import annotations

import re
from pathlib import Path

import pytest

from conftest import make_check
from cwaudit.checks.model import CheckScope
from cwaudit.config.loader import (
    CONFIG_ENV,
    default_config_path,
    load_check_config,
    resolve_config_path,
    select_checks,
)
from cwaudit.errors import ConfigError
from cwaudit.exit_codes import ERR_CONFIG


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "checks.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_default_config_mirrors_pipeline_table() -> None:
    config = load_check_config(default_config_path())
    table = {c.name: (c.scope.value, c.required) for c in config.checks}
    assert table == {
        "format": ("global", True),
        "clippy-default": ("global", True),
        "clippy-all-features": ("global", True),
        "cargo-audit": ("global", False),
        "cargo-deny": ("global", False),
        "dependency-inventory": ("global", False),
        "security-patterns": ("unit", False),
        "code-stats": ("unit", False),
        "wasm-check": ("unit", True),
        "schema-generation": ("unit", False),
        "wasm-build": ("unit", True),
    }
    assert config.manifest == "Cargo.toml"
    assert config.contracts_dir == "contracts"
    wasm_build = config.check("wasm-build")
    assert wasm_build is not None
    assert all(pattern.endswith(".wasm") for pattern in wasm_build.artifacts)
    assert [c.name for c in config.checks] == sorted(c.name for c in config.checks)


def test_resolve_config_path_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    assert resolve_config_path(None) == default_config_path()
    monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "env.yaml"))
    assert resolve_config_path(None) == (tmp_path / "env.yaml").resolve()
    assert resolve_config_path(str(tmp_path / "cli.yaml")) == (tmp_path / "cli.yaml").resolve()


def test_minimal_config_applies_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
schema_version: 1
checks:
  - name: compile
    scope: unit
    category: build
    required: true
    command: [cargo, check]
    fail_patterns: ["^error"]
""",
    )
    config = load_check_config(path)
    assert config.jobs == 4
    (check,) = config.checks
    assert check.scope == CheckScope.UNIT
    assert check.kind == "command"
    assert check.command == ("cargo", "check")
    assert check.fail_patterns == ("^error",)


@pytest.mark.parametrize(
    ("body", "needle"),
    [
        ("schema_version: 2\nchecks: []\n", "schema_version"),
        ("schema_version: 1\nchecks:\n  - {name: Bad, scope: unit, category: build, required: true, command: [x]}\n", "checks/0/name"),
        ("schema_version: 1\nchecks:\n  - {name: a, scope: unit, category: build, required: true}\n", "checks/0"),
        (
            "schema_version: 1\nchecks:\n  - {name: a, scope: unit, category: build, required: true, command: [x], builtin: code-stats}\n",
            "checks/0",
        ),
        ("schema_version: 1\nchecks:\n  - {name: a, scope: unit, category: misc, required: true, command: [x]}\n", "category"),
        ("schema_version: 1\nunknown: 1\nchecks: []\n", "unknown"),
    ],
)
def test_schema_violations_are_config_errors(tmp_path: Path, body: str, needle: str) -> None:
    with pytest.raises(ConfigError) as err:
        load_check_config(_write(tmp_path, body))
    assert err.value.code == ERR_CONFIG
    assert needle in str(err.value)


def test_duplicate_names_rejected(tmp_path: Path) -> None:
    body = "schema_version: 1\nchecks:\n" + "  - {name: a, scope: unit, category: build, required: true, command: [x]}\n" * 2
    with pytest.raises(ConfigError, match="duplicate check name `a`"):
        load_check_config(_write(tmp_path, body))


def test_unknown_builtin_rejected(tmp_path: Path) -> None:
    body = "schema_version: 1\nchecks:\n  - {name: a, scope: unit, category: stats, required: false, builtin: nope}\n"
    with pytest.raises(ConfigError, match="unknown builtin `nope`"):
        load_check_config(_write(tmp_path, body))


def test_builtin_scope_mismatch_rejected(tmp_path: Path) -> None:
    body = "schema_version: 1\nchecks:\n  - {name: a, scope: global, category: stats, required: false, builtin: code-stats}\n"
    with pytest.raises(ConfigError, match="runs with scope `unit`"):
        load_check_config(_write(tmp_path, body))


def test_invalid_fail_pattern_rejected(tmp_path: Path) -> None:
    body = "schema_version: 1\nchecks:\n  - {name: a, scope: unit, category: build, required: true, command: [x], fail_patterns: ['(']}\n"
    with pytest.raises(ConfigError, match="invalid fail pattern"):
        load_check_config(_write(tmp_path, body))


@pytest.mark.parametrize(
    ("pattern", "needle"),
    [
        ("target/*.{wasm,json}", "unknown placeholder `{wasm,json}`"),
        ("{unit.name}.wasm", "unknown placeholder `{unit.name}`"),
        ("target/{unit", "is malformed"),
    ],
)
def test_bad_artifact_placeholders_rejected(tmp_path: Path, pattern: str, needle: str) -> None:
    body = (
        "schema_version: 1\nchecks:\n"
        f"  - {{name: a, scope: unit, category: build, required: true, command: [x], artifacts: ['{pattern}']}}\n"
    )
    with pytest.raises(ConfigError, match=re.escape(needle)):
        load_check_config(_write(tmp_path, body))


def test_known_artifact_placeholders_accepted(tmp_path: Path) -> None:
    body = (
        "schema_version: 1\nchecks:\n"
        "  - {name: a, scope: unit, category: build, required: true, command: [x],\n"
        "     artifacts: ['{root}/target/{unit_snake}.wasm', '{unit_dir}/{unit}.txt', '*.wasm']}\n"
    )
    (check,) = load_check_config(_write(tmp_path, body)).checks
    assert len(check.artifacts) == 3


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_check_config(tmp_path / "absent.yaml")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_check_config(_write(tmp_path, "checks: [\n"))
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_check_config(_write(tmp_path, "- 1\n"))


def test_select_checks_accepts_repeat_and_comma_lists() -> None:
    checks = (make_check("a"), make_check("b"), make_check("c"))
    assert select_checks(checks, None) == checks
    assert [c.name for c in select_checks(checks, ["c,a"])] == ["a", "c"]
    assert [c.name for c in select_checks(checks, ["b", "c"])] == ["b", "c"]
    with pytest.raises(ConfigError, match="zzz"):
        select_checks(checks, ["a,zzz"])
