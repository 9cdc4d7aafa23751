from __future__ import annotations

import json
from pathlib import Path

ERROR_REGISTRY = Path(__file__).resolve().parent / "_meta" / "error-registry.json"


def _load_registry() -> dict[str, int]:
    payload = json.loads(ERROR_REGISTRY.read_text(encoding="utf-8"))
    mapping: dict[str, int] = {}
    for row in payload.get("codes", []):
        mapping[str(row["name"])] = int(row["code"])
    return mapping


_REG = _load_registry()

OK = _REG["CWAUDIT_OK"]
ERR_CHECKS = _REG["CWAUDIT_ERR_CHECKS"]
ERR_USAGE = _REG["CWAUDIT_ERR_USAGE"]
ERR_SKIPPED = _REG["CWAUDIT_ERR_SKIPPED"]
ERR_CONFIG = _REG["CWAUDIT_ERR_CONFIG"]
ERR_DISCOVERY = _REG["CWAUDIT_ERR_DISCOVERY"]
ERR_RENDER = _REG["CWAUDIT_ERR_RENDER"]
ERR_ARTIFACT = _REG["CWAUDIT_ERR_ARTIFACT"]
ERR_VALIDATION = _REG["CWAUDIT_ERR_VALIDATION"]
ERR_PREREQ = _REG["CWAUDIT_ERR_PREREQ"]
ERR_INTERNAL = _REG["CWAUDIT_ERR_INTERNAL"]
