from __future__ import annotations

import json
import sys
import threading
from typing import TYPE_CHECKING

from .clock import utc_now_iso

if TYPE_CHECKING:
    from .context import RunContext

_WRITE_LOCK = threading.Lock()


def _enabled(ctx: RunContext, level: str) -> bool:
    if level == "debug":
        return ctx.verbose
    if level == "info":
        return not ctx.quiet
    return True


def log_event(ctx: RunContext, level: str, component: str, action: str, **fields: object) -> None:
    if not _enabled(ctx, level):
        return
    payload = {
        "ts": utc_now_iso(),
        "level": level,
        "run_id": ctx.run_id,
        "component": component,
        "action": action,
        **fields,
    }
    if ctx.log_json:
        line = json.dumps(payload, sort_keys=True, default=str)
    else:
        core = f"ts={payload['ts']} level={level} run_id={ctx.run_id} component={component} action={action}"
        extras = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        line = core if not extras else f"{core} {extras}"
    with _WRITE_LOCK:
        sys.stderr.write(line + "\n")
