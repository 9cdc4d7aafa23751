from __future__ import annotations

from ..context import CheckContext
from ..model import CheckOutcome, CheckScope, CheckStatus
from .base import BuiltinCheck

NOTICE_LOC = 1000
LARGE_LOC = 2000


def size_class(loc: int, notice_loc: int = NOTICE_LOC, large_loc: int = LARGE_LOC) -> str:
    if loc > large_loc:
        return "large"
    if loc > notice_loc:
        return "notice"
    return "ok"


def run(ctx: CheckContext) -> CheckOutcome:
    assert ctx.unit is not None
    notice_loc = int(ctx.option("notice_loc", NOTICE_LOC))  # type: ignore[arg-type]
    large_loc = int(ctx.option("large_loc", LARGE_LOC))  # type: ignore[arg-type]
    src_root = ctx.unit.path / str(ctx.option("source_dir", "src"))
    if not src_root.is_dir():
        return CheckOutcome(
            status=CheckStatus.SUCCESS,
            reason=f"no source directory at {ctx.run.relative(src_root)}",
            metrics={"files": 0, "loc": 0, "size_class": "ok"},
        )
    files = 0
    loc = 0
    for path in sorted(src_root.rglob("*.rs")):
        if not path.is_file():
            continue
        files += 1
        loc += len(path.read_text(encoding="utf-8", errors="replace").splitlines())
    klass = size_class(loc, notice_loc, large_loc)
    output = f"source: {loc} lines in {files} files ({klass})"
    if klass == "large":
        return CheckOutcome(
            status=CheckStatus.FAILURE,
            output=output,
            reason=f"contract source is large (>{large_loc} lines)",
            metrics={"files": files, "loc": loc, "size_class": klass},
        )
    return CheckOutcome(
        status=CheckStatus.SUCCESS,
        output=output,
        reason=f"contract source is medium size (>{notice_loc} lines)" if klass == "notice" else "",
        metrics={"files": files, "loc": loc, "size_class": klass},
    )


BUILTIN = BuiltinCheck(
    name="code-stats",
    scope=CheckScope.UNIT,
    description="count Rust source files and lines, flag oversized contracts",
    fn=run,
)
