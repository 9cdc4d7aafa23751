from __future__ import annotations

import json

from ..context import CheckContext
from ..model import CheckOutcome, CheckScope, CheckStatus, Finding
from .base import BuiltinCheck

METADATA_COMMAND = ["cargo", "metadata", "--format-version=1", "--no-deps"]


def package_names(metadata: object) -> list[str]:
    if not isinstance(metadata, dict):
        raise ValueError("cargo metadata root must be an object")
    packages = metadata.get("packages", [])
    if not isinstance(packages, list):
        raise ValueError("cargo metadata `packages` must be a list")
    return sorted({str(pkg["name"]) for pkg in packages if isinstance(pkg, dict) and pkg.get("name")})


def run(ctx: CheckContext) -> CheckOutcome:
    ctx.require_tool("cargo")
    result = ctx.run_command(METADATA_COMMAND)
    if result.code != 0:
        return CheckOutcome(
            status=CheckStatus.FAILURE,
            output=result.combined_output,
            reason=f"cargo metadata failed with exit code {result.code}",
        )
    try:
        names = package_names(json.loads(result.stdout))
    except (json.JSONDecodeError, ValueError) as exc:
        return CheckOutcome(
            status=CheckStatus.FAILURE,
            output=result.stderr.strip(),
            reason=f"unparseable cargo metadata: {exc}",
        )
    listing = "\n".join(names)
    artifact = ctx.write_artifact("dependencies.txt", listing + "\n" if listing else "")
    return CheckOutcome(
        status=CheckStatus.SUCCESS,
        output=listing,
        findings=tuple(Finding(code="package", message=name) for name in names),
        artifacts=(artifact,),
        metrics={"packages": len(names)},
    )


BUILTIN = BuiltinCheck(
    name="dependency-inventory",
    scope=CheckScope.GLOBAL,
    description="list workspace crates from cargo metadata",
    fn=run,
)
