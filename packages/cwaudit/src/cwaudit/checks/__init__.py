from __future__ import annotations

from .discovery import DEFAULT_MANIFEST, discover_units
from .model import CheckCategory, CheckDef, CheckResult, CheckScope, CheckStatus, Unit

__all__ = [
    "CheckCategory",
    "CheckDef",
    "CheckResult",
    "CheckScope",
    "CheckStatus",
    "DEFAULT_MANIFEST",
    "Unit",
    "discover_units",
]
