from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_ARTIFACT, ERR_CONFIG, ERR_DISCOVERY, ERR_INTERNAL, ERR_PREREQ, ERR_RENDER


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


@dataclass
class ConfigError(ScriptError):
    code: int = ERR_CONFIG
    kind: str = "config_error"


@dataclass
class DiscoveryError(ScriptError):
    code: int = ERR_DISCOVERY
    kind: str = "discovery_error"


@dataclass
class RenderError(ScriptError):
    code: int = ERR_RENDER
    kind: str = "render_error"


@dataclass
class ArtifactError(ScriptError):
    code: int = ERR_ARTIFACT
    kind: str = "forbidden_write_path"


@dataclass
class ToolUnavailable(ScriptError):
    code: int = ERR_PREREQ
    kind: str = "tool_unavailable"
    tool: str = ""
