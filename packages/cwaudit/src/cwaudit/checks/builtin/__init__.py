from __future__ import annotations

from ...errors import ConfigError
from . import code_stats, dependency_inventory, schema_generation, security_patterns
from .base import BuiltinCheck, BuiltinFunc

BUILTINS: dict[str, BuiltinCheck] = {
    builtin.name: builtin
    for builtin in (
        code_stats.BUILTIN,
        dependency_inventory.BUILTIN,
        schema_generation.BUILTIN,
        security_patterns.BUILTIN,
    )
}


def get_builtin(name: str) -> BuiltinCheck:
    builtin = BUILTINS.get(name)
    if builtin is None:
        raise ConfigError(f"unknown builtin check `{name}`; expected one of {sorted(BUILTINS)}")
    return builtin


__all__ = ["BUILTINS", "BuiltinCheck", "BuiltinFunc", "get_builtin"]
