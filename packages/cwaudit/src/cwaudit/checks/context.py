from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from string import Formatter

from ..core import fs
from ..core.cancel import Cancelled, CancelToken
from ..core.context import RunContext
from ..core.process import CommandResult, run_command, tool_available
from ..errors import ToolUnavailable
from .model import CheckDef, Unit

GLOBAL_OUTPUT_DIR = "_global"
ARTIFACT_PLACEHOLDERS = ("root", "unit", "unit_snake", "unit_dir")


def artifact_placeholders(pattern: str) -> list[str]:
    """Field names used by an artifact pattern. Raises ValueError on unbalanced braces."""
    return [field for _, field, _, _ in Formatter().parse(pattern) if field is not None]


@dataclass(frozen=True)
class CheckContext:
    run: RunContext
    check: CheckDef
    unit: Unit | None
    cancel: CancelToken

    @property
    def workdir(self) -> Path:
        return self.unit.path if self.unit is not None else self.run.workspace_root

    @property
    def output_dir(self) -> Path:
        owner = self.unit.name if self.unit is not None else GLOBAL_OUTPUT_DIR
        return self.run.output_root / owner / self.check.name

    def option(self, key: str, default: object = None) -> object:
        return self.check.options.get(key, default)

    def require_tool(self, *tools: str) -> None:
        for tool in tools:
            if not tool_available(tool):
                raise ToolUnavailable(f"tool unavailable: {tool}", tool=tool)

    def run_command(self, cmd: list[str], timeout_seconds: float | None = None) -> CommandResult:
        result = run_command(
            cmd,
            self.workdir,
            timeout_seconds=self.check.timeout_seconds if timeout_seconds is None else timeout_seconds,
            ctx=self.run,
            cancel=self.cancel,
        )
        if result.cancelled:
            raise Cancelled(result.combined_output)
        return result

    def write_artifact(self, name: str, content: str) -> str:
        out = fs.write_text(self.run, self.output_dir / name, content)
        return fs.output_relative(self.run, out)

    def copy_artifact(self, src: Path, name: str | None = None) -> str:
        out = fs.copy_file(self.run, src, self.output_dir / (name or src.name))
        return fs.output_relative(self.run, out)

    def expand(self, pattern: str) -> str:
        unit = self.unit
        return pattern.format(
            root=self.run.workspace_root.as_posix(),
            unit=unit.name if unit else "",
            unit_snake=unit.snake_name if unit else "",
            unit_dir=self.run.relative(unit.path) if unit else ".",
        )

    def collect_artifacts(self, patterns: tuple[str, ...]) -> tuple[str, ...]:
        collected: list[str] = []
        seen: set[Path] = set()
        for pattern in patterns:
            expanded = Path(self.expand(pattern))
            base = self.workdir
            if expanded.is_absolute():
                base = Path(expanded.anchor)
                expanded = expanded.relative_to(base)
            for path in sorted(base.glob(expanded.as_posix())):
                if not path.is_file() or path.resolve() in seen:
                    continue
                seen.add(path.resolve())
                collected.append(self.copy_artifact(path))
        return tuple(collected)
