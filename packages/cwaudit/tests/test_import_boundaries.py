from __future__ import annotations

import ast
from pathlib import Path

SRC = Path(__file__).resolve().parents[1] / "src" / "cwaudit"


def _imports(pkg: str) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    for path in sorted((SRC / pkg).rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, ast.ImportFrom):
                module = "." * node.level + (node.module or "")
                rows.append((path.relative_to(SRC).as_posix(), module))
    return rows


def test_core_does_not_import_upper_layers() -> None:
    forbidden = ("..checks", "..reporting", "..cli", "..config", "..patches")
    bad = [f"{path}: {module}" for path, module in _imports("core") if module.startswith(forbidden)]
    assert not bad, "\n".join(bad)


def test_renderers_do_not_run_checks() -> None:
    bad = [
        f"{path}: {module}"
        for path, module in _imports("reporting")
        if module.startswith(("..checks.runner", "..checks.builtin", "..core.process"))
    ]
    assert not bad, "\n".join(bad)
