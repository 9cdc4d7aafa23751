from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..errors import ToolUnavailable
from .process import run_command


@dataclass(frozen=True)
class GitContext:
    sha: str
    is_dirty: bool


def read_git_context(repo_root: Path) -> GitContext:
    try:
        sha_res = run_command(["git", "rev-parse", "--short", "HEAD"], repo_root)
        dirty_res = run_command(["git", "status", "--porcelain"], repo_root)
    except (ToolUnavailable, NotADirectoryError, FileNotFoundError):
        return GitContext(sha="unknown", is_dirty=False)
    sha = sha_res.stdout.strip() if sha_res.code == 0 else "unknown"
    is_dirty = bool(dirty_res.stdout.strip()) if dirty_res.code == 0 else False
    return GitContext(sha=sha or "unknown", is_dirty=is_dirty)
