from __future__ import annotations

from .loader import CheckConfig, default_config_path, load_check_config, resolve_config_path, select_checks

__all__ = ["CheckConfig", "default_config_path", "load_check_config", "resolve_config_path", "select_checks"]
