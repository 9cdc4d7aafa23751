from __future__ import annotations

from pathlib import Path

import pytest

from cwaudit.errors import ArtifactError
from cwaudit.patches.div_ceil import ALLOW_ATTR, apply_patch, generate_patch, patch_text

SOURCE = """pub fn pages(total: u64, size: u64) -> u64 {
    // (total + size - 1) / size in a comment stays untouched
    let n = (total + size - 1) / size;
    #[allow(clippy::manual_div_ceil)]
    let m = (total + size - 1) / size;
    n + m
}
"""


def test_patch_text_inserts_attribute_with_indent() -> None:
    updated, lines = patch_text(SOURCE)
    assert lines == (3,)
    assert f"    {ALLOW_ATTR}\n    let n = (total + size - 1) / size;" in updated
    assert updated.count(ALLOW_ATTR) == 2


def test_patch_text_respects_crate_level_allow() -> None:
    text = "#![allow(clippy::manual_div_ceil)]\nlet n = (a + b - 1) / b;\n"
    assert patch_text(text) == (text, ())


def test_generate_patch_is_read_only_and_skips_target(tmp_path: Path) -> None:
    src = tmp_path / "contracts" / "a" / "src"
    src.mkdir(parents=True)
    lib = src / "lib.rs"
    lib.write_text(SOURCE, encoding="utf-8")
    (src / "clean.rs").write_text("pub fn f() {}\n", encoding="utf-8")
    built = tmp_path / "target" / "debug"
    built.mkdir(parents=True)
    (built / "gen.rs").write_text("let n = (a + b - 1) / b;\n", encoding="utf-8")
    patch = generate_patch(tmp_path)
    assert [f.path for f in patch.files] == [lib.resolve()]
    assert lib.read_text(encoding="utf-8") == SOURCE
    diff = patch.unified_diff()
    assert diff.startswith("--- a/contracts/a/src/lib.rs\n+++ b/contracts/a/src/lib.rs\n")
    assert f"+    {ALLOW_ATTR}" in diff


def test_apply_patch_writes_and_is_idempotent(tmp_path: Path) -> None:
    lib = tmp_path / "lib.rs"
    lib.write_text(SOURCE, encoding="utf-8")
    written = apply_patch(generate_patch(tmp_path))
    assert written == [lib.resolve()]
    assert lib.read_text(encoding="utf-8").count(ALLOW_ATTR) == 2
    assert generate_patch(tmp_path).empty


def test_apply_patch_refuses_changed_file(tmp_path: Path) -> None:
    lib = tmp_path / "lib.rs"
    lib.write_text(SOURCE, encoding="utf-8")
    patch = generate_patch(tmp_path)
    lib.write_text(SOURCE + "// edited\n", encoding="utf-8")
    with pytest.raises(ArtifactError, match="changed since patch generation"):
        apply_patch(patch)
    assert ALLOW_ATTR + "\n    let n" not in lib.read_text(encoding="utf-8")
