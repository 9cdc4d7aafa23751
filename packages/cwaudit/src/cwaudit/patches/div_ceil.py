"""Lint-suppression patch for clippy's manual_div_ceil.

Generation is read-only: it returns a reviewable Patch. Writing happens only
through apply_patch, which refuses files that changed after generation.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from pathlib import Path

from ..errors import ArtifactError

ALLOW_ATTR = "#[allow(clippy::manual_div_ceil)]"
CRATE_ALLOW_ATTR = "#![allow(clippy::manual_div_ceil)]"
DIV_CEIL_RE = re.compile(r"\(.+\+.+-\s*1\s*\)\s*/\s*\S")
SKIP_DIRS = {"target", ".git"}


@dataclass(frozen=True)
class FilePatch:
    path: Path
    original: str
    updated: str
    lines: tuple[int, ...]

    def unified_diff(self, root: Path | None = None) -> str:
        name = self.path.relative_to(root).as_posix() if root is not None else self.path.as_posix()
        return "".join(
            difflib.unified_diff(
                self.original.splitlines(keepends=True),
                self.updated.splitlines(keepends=True),
                fromfile=f"a/{name}",
                tofile=f"b/{name}",
            )
        )


@dataclass(frozen=True)
class Patch:
    root: Path
    files: tuple[FilePatch, ...]

    @property
    def empty(self) -> bool:
        return not self.files

    @property
    def line_count(self) -> int:
        return sum(len(f.lines) for f in self.files)

    def unified_diff(self) -> str:
        return "".join(f.unified_diff(self.root) for f in self.files)


def _is_comment(stripped: str) -> bool:
    return stripped.startswith("//") or stripped.startswith("/*") or stripped.startswith("*")


def _has_allow(prev: str | None) -> bool:
    return prev is not None and prev.strip() == ALLOW_ATTR


def patch_text(text: str) -> tuple[str, tuple[int, ...]]:
    if CRATE_ALLOW_ATTR in text:
        return text, ()
    out: list[str] = []
    touched: list[int] = []
    prev: str | None = None
    for lineno, line in enumerate(text.splitlines(keepends=True), start=1):
        stripped = line.strip()
        if (
            stripped
            and not _is_comment(stripped)
            and not stripped.startswith("#")
            and DIV_CEIL_RE.search(line)
            and not _has_allow(prev)
        ):
            indent = line[: len(line) - len(line.lstrip())]
            newline = "\r\n" if line.endswith("\r\n") else "\n"
            out.append(f"{indent}{ALLOW_ATTR}{newline}")
            touched.append(lineno)
        out.append(line)
        prev = line
    return "".join(out), tuple(touched)


def _rust_sources(root: Path) -> list[Path]:
    files: list[Path] = []
    for path in sorted(root.rglob("*.rs")):
        rel = path.relative_to(root)
        if any(part in SKIP_DIRS for part in rel.parts[:-1]):
            continue
        if path.is_file():
            files.append(path)
    return files


def generate_patch(root: Path) -> Patch:
    root = root.resolve()
    patched: list[FilePatch] = []
    for path in _rust_sources(root):
        original = path.read_text(encoding="utf-8", errors="replace")
        updated, lines = patch_text(original)
        if lines:
            patched.append(FilePatch(path=path, original=original, updated=updated, lines=lines))
    return Patch(root=root, files=tuple(patched))


def apply_patch(patch: Patch) -> list[Path]:
    for file_patch in patch.files:
        try:
            current = file_patch.path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ArtifactError(f"cannot read {file_patch.path}: {exc}", kind="stale_patch") from exc
        if current != file_patch.original:
            raise ArtifactError(f"file changed since patch generation: {file_patch.path}", kind="stale_patch")
    written: list[Path] = []
    for file_patch in patch.files:
        try:
            file_patch.path.write_text(file_patch.updated, encoding="utf-8")
        except OSError as exc:
            raise ArtifactError(f"failed to write {file_patch.path}: {exc}", kind="artifact_write_failed") from exc
        written.append(file_patch.path)
    return written
