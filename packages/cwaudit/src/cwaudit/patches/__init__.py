from __future__ import annotations

from .div_ceil import FilePatch, Patch, apply_patch, generate_patch

__all__ = ["FilePatch", "Patch", "apply_patch", "generate_patch"]
