from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .clock import utc_stamp
from .git import read_git_context

OutputFormat = Literal["text", "json"]


def _resolve(base: Path, raw: str | Path) -> Path:
    path = Path(raw)
    return (base / path).resolve() if not path.is_absolute() else path.resolve()


@dataclass(frozen=True)
class RunContext:
    run_id: str
    workspace_root: Path
    output_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool

    def resolve(self, raw: str | Path) -> Path:
        return _resolve(self.workspace_root, raw)

    def relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.workspace_root).as_posix()
        except ValueError:
            return path.resolve().as_posix()

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        workspace_root: str | None,
        output_root: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        root = _resolve(Path.cwd(), workspace_root or os.environ.get("CWAUDIT_ROOT", "."))
        git_ctx = read_git_context(root)
        default_run = f"cwaudit-{utc_stamp()}-{git_ctx.sha}"
        resolved_run_id = run_id or os.environ.get("RUN_ID", default_run)
        out = output_root or os.environ.get("CWAUDIT_OUT", f"artifacts/cwaudit/{resolved_run_id}")
        return cls(
            run_id=resolved_run_id,
            workspace_root=root,
            output_root=_resolve(root, out),
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
        )
