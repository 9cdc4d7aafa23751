from __future__ import annotations

import json

from ..context import CheckContext
from ..model import CheckOutcome, CheckScope, CheckStatus
from .base import BuiltinCheck

SCHEMA_COMMAND = ["cargo", "run", "--example", "schema"]


def placeholder_schema(unit_name: str) -> dict[str, object]:
    return {
        "title": f"{unit_name} Schema",
        "description": "Generated placeholder schema",
        "type": "object",
        "additionalProperties": True,
    }


def run(ctx: CheckContext) -> CheckOutcome:
    assert ctx.unit is not None
    command = [str(part) for part in ctx.option("command", SCHEMA_COMMAND)]  # type: ignore[union-attr]
    ctx.require_tool(command[0])
    result = ctx.run_command(command)
    schema_dir = ctx.unit.path / str(ctx.option("schema_dir", "schema"))
    generated = sorted(schema_dir.glob("*.json")) if schema_dir.is_dir() else []
    if result.code == 0 and generated:
        artifacts = tuple(ctx.copy_artifact(path) for path in generated)
        return CheckOutcome(
            status=CheckStatus.SUCCESS,
            output=result.combined_output,
            artifacts=artifacts,
            metrics={"schema_files": len(artifacts)},
        )
    placeholder = ctx.write_artifact(
        "schema.json",
        json.dumps(placeholder_schema(ctx.unit.name), indent=2, sort_keys=True) + "\n",
    )
    detail = f"exit code {result.code}" if result.code != 0 else f"no schema files in {ctx.run.relative(schema_dir)}"
    return CheckOutcome(
        status=CheckStatus.FAILURE,
        output=result.combined_output,
        reason=f"placeholder schema written ({detail})",
        artifacts=(placeholder,),
        metrics={"schema_files": 0},
    )


BUILTIN = BuiltinCheck(
    name="schema-generation",
    scope=CheckScope.UNIT,
    description="run the contract schema example and collect its JSON schema files",
    fn=run,
)
