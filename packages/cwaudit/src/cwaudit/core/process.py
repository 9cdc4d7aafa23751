from __future__ import annotations

import os
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ToolUnavailable
from .cancel import Cancelled, CancelToken
from .logging import log_event

if TYPE_CHECKING:
    from .context import RunContext

TIMEOUT_EXIT_CODE = 124
_POLL_SECONDS = 0.1
_TERMINATE_GRACE_SECONDS = 5.0


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    cancelled: bool = False

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()


def tool_available(tool: str) -> bool:
    if os.sep in tool or (os.altsep and os.altsep in tool):
        path = Path(tool)
        return path.is_file() and os.access(path, os.X_OK)
    return shutil.which(tool) is not None


def _spawn(cmd: list[str], cwd: Path) -> subprocess.Popen[str]:
    try:
        return subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=(os.name == "posix"),
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ToolUnavailable(f"tool unavailable: {cmd[0]}", tool=cmd[0]) from exc


def _signal(proc: subprocess.Popen[str], sig: int) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, sig)
        except ProcessLookupError:
            pass
    elif sig == signal.SIGTERM:
        proc.terminate()
    else:
        proc.kill()


def _terminate(proc: subprocess.Popen[str]) -> tuple[str, str]:
    _signal(proc, signal.SIGTERM)
    try:
        return proc.communicate(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        _signal(proc, signal.SIGKILL)
        return proc.communicate()


def _run_once(
    cmd: list[str],
    cwd: Path,
    timeout_seconds: float,
    cancel: CancelToken | None,
) -> CommandResult:
    started = time.monotonic()
    deadline = started + timeout_seconds if timeout_seconds > 0 else None
    proc = _spawn(cmd, cwd)
    timed_out = False
    cancelled = False
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=_POLL_SECONDS)
            break
        except KeyboardInterrupt:
            stdout, stderr = _terminate(proc)
            if cancel is None:
                raise
            cancel.cancel("interrupted")
            raise Cancelled(((stdout or "") + (stderr or "")).strip()) from None
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                stdout, stderr = _terminate(proc)
                cancelled = True
                break
            if deadline is not None and time.monotonic() >= deadline:
                stdout, stderr = _terminate(proc)
                timed_out = True
                break
    duration_ms = int((time.monotonic() - started) * 1000)
    if timed_out:
        return CommandResult(
            code=TIMEOUT_EXIT_CODE,
            stdout=stdout or "",
            stderr=((stderr or "") + f"\ncommand timed out after {timeout_seconds:g}s").strip(),
            duration_ms=duration_ms,
            timed_out=True,
        )
    return CommandResult(
        code=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        duration_ms=duration_ms,
        cancelled=cancelled,
    )


def run_command(
    cmd: list[str],
    cwd: Path,
    timeout_seconds: float = 0,
    ctx: RunContext | None = None,
    cancel: CancelToken | None = None,
) -> CommandResult:
    result = _run_once(cmd, cwd, timeout_seconds, cancel)
    if ctx is not None:
        log_event(
            ctx,
            "debug",
            "process",
            "run-command",
            command=" ".join(cmd),
            cwd=str(cwd),
            code=result.code,
            duration_ms=result.duration_ms,
        )
    return result
