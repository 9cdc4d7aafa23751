from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

from ..errors import ArtifactError
from .context import RunContext


def ensure_output_path(ctx: RunContext, path: Path) -> Path:
    resolved = path.resolve() if path.is_absolute() else (ctx.output_root / path).resolve()
    root = ctx.output_root.resolve()
    if resolved == root or root not in resolved.parents:
        raise ArtifactError(f"forbidden write path outside output root: {resolved}")
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def output_relative(ctx: RunContext, path: Path) -> str:
    return path.resolve().relative_to(ctx.output_root.resolve()).as_posix()


def write_text(ctx: RunContext, path: Path, content: str, encoding: str = "utf-8") -> Path:
    out = ensure_output_path(ctx, path)
    try:
        out.write_text(content, encoding=encoding)
    except OSError as exc:
        raise ArtifactError(f"failed to write {out}: {exc}", kind="artifact_write_failed") from exc
    return out


def write_json(ctx: RunContext, path: Path, payload: Any) -> Path:
    return write_text(ctx, path, json.dumps(payload, indent=2, sort_keys=True) + "\n")


def copy_file(ctx: RunContext, src: Path, dest: Path) -> Path:
    out = ensure_output_path(ctx, dest)
    try:
        shutil.copy2(src, out)
    except OSError as exc:
        raise ArtifactError(f"failed to copy {src} to {out}: {exc}", kind="artifact_write_failed") from exc
    return out
